#!/usr/bin/env python
import unittest

from difflint import diffutils
from difflint.diffutils import map_lines, parse_hunk_header

WORKED_EXAMPLE = ['@@ -0,0 +1 @@', '@@ -108 +109 @@', '@@ -119,4 +120,2 @@', '@@ -127 +126 @@',
                  '@@ -144,0 +144 @@']


def parse_all(headers):
    return [parse_hunk_header(h) for h in headers]


class HunkHeader(unittest.TestCase):
    def test_counts_default_to_one(self):
        h = parse_hunk_header('@@ -108 +109 @@')
        self.assertEqual((h.op, h.a_start, h.a_lines, h.b_start, h.b_lines), (diffutils.UPDATE, 108, 1, 109, 1))
        self.assertEqual(h.correspondence, {109: 108})
        self.assertEqual(h.post_offset, -1)

    def test_trailing_context_is_ignored(self):
        h = parse_hunk_header('@@ -3,2 +3,2 @@ (defn foo [x]')
        self.assertEqual(h.correspondence, {3: 3, 4: 4})
        self.assertEqual(h.post_offset, 0)

    def test_create(self):
        h = parse_hunk_header('@@ -0,0 +5,3 @@')
        self.assertEqual(h.op, diffutils.CREATE)
        self.assertEqual((h.a_end, h.b_end, h.a_next, h.b_next), (0, 7, 1, 8))
        self.assertEqual(h.correspondence, {})

    def test_delete(self):
        h = parse_hunk_header('@@ -10,3 +9,0 @@')
        self.assertEqual(h.op, diffutils.DELETE)
        self.assertEqual((h.a_end, h.b_end), (12, 9))
        self.assertEqual(h.post_offset, 3)

    def test_replacement_pairs_positionally(self):
        self.assertEqual(parse_hunk_header('@@ -119,4 +120,2 @@').correspondence, {120: 119, 121: 120})
        self.assertEqual(parse_hunk_header('@@ -20,1 +20,3 @@').correspondence, {20: 20})

    def test_malformed(self):
        for header in ['@@ -1 @@', '@@ +1 -1 @@', 'diff --git a/x b/x', '@@ -a,1 +1 @@', '']:
            with self.assertRaises(diffutils.HunkHeaderError):
                parse_hunk_header(header)


class LineMap(unittest.TestCase):
    def test_worked_example(self):
        self.assertEqual(map_lines(parse_all(WORKED_EXAMPLE), [1, 5, 109, 115, 144]),
                         {1: None, 5: 4, 109: 108, 115: 114, 144: None})

    def test_without_hunks(self):
        self.assertEqual(map_lines([], [1, 2, 30]), {1: 1, 2: 2, 30: 30})

    def test_create(self):
        self.assertEqual(map_lines(parse_all(['@@ -0,0 +5,3 @@']), [5, 6, 7]), {5: None, 6: None, 7: None})

    def test_insertion(self):
        self.assertEqual(map_lines(parse_all(['@@ -4,0 +5,3 @@']), [4, 5, 6, 7, 8]),
                         {4: 4, 5: None, 6: None, 7: None, 8: 5})

    def test_shrinking_update(self):
        self.assertEqual(map_lines(parse_all(['@@ -10,3 +9 @@']), [9, 10]), {9: 10, 10: 13})

    def test_lines_after_last_hunk(self):
        self.assertEqual(map_lines(parse_all(['@@ -2,0 +3,2 @@']), [1, 10, 11]), {1: 1, 10: 8, 11: 9})

    def test_never_reorders(self):
        lines = list(range(1, 160))
        mapping = map_lines(parse_all(WORKED_EXAMPLE), lines)
        self.assertEqual(sorted(mapping), lines)
        mapped = [mapping[line] for line in lines if mapping[line] is not None]
        self.assertEqual(mapped, sorted(mapped))

    def test_parses_headers_lazily(self):
        def hunks():
            yield parse_hunk_header('@@ -1 +1,2 @@')
            raise AssertionError('second header should not be needed')

        self.assertEqual(map_lines(hunks(), [1, 2]), {1: 1, 2: None})

    def test_requires_increasing_lines(self):
        with self.assertRaises(ValueError):
            map_lines([], [3, 3])


DIFF = """diff --git a/src/core.clj b/src/core.clj
index 3b18e51..a9c2d1f 100644
--- a/src/core.clj
+++ b/src/core.clj
@@ -1,0 +2 @@ (ns core)
+(def x 1)
@@ -10,2 +11 @@ (defn f []
--- a comment that looks like a marker
-  (g))
+  (h))
diff --git a/src/new.clj b/src/new.clj
new file mode 100644
index 0000000..e69de29
--- /dev/null
+++ b/src/new.clj
@@ -0,0 +1,2 @@
+(ns new)
+(def y 2)
diff --git a/src/old.clj b/src/old.clj
deleted file mode 100644
index e69de29..0000000
--- a/src/old.clj
+++ /dev/null
@@ -1 +0,0 @@
-(ns old)
diff --git a/run.sh b/run.sh
old mode 100644
new mode 100755
diff --git a/empty.clj b/empty.clj
new file mode 100644
index 0000000..e69de29
""".split('\n')


class Segment(unittest.TestCase):
    def test_segment(self):
        self.assertEqual(diffutils.segment(DIFF), [
            diffutils.FileDiff('src/core.clj', 'src/core.clj', ['@@ -1,0 +2 @@ (ns core)', '@@ -10,2 +11 @@ (defn f []']),
            diffutils.FileDiff(None, 'src/new.clj', ['@@ -0,0 +1,2 @@']),
            diffutils.FileDiff('src/old.clj', None, ['@@ -1 +0,0 @@']),
            diffutils.FileDiff('run.sh', 'run.sh', []),
            diffutils.FileDiff(None, 'empty.clj', []),
        ])

    def test_empty_diff(self):
        self.assertEqual(diffutils.segment(['']), [])

    def test_path_with_space(self):
        records = diffutils.segment(['diff --git a/my file.clj b/my file.clj',
                                     '--- a/my file.clj\t',
                                     '+++ b/my file.clj\t',
                                     '@@ -1 +1 @@'])
        self.assertEqual(records, [diffutils.FileDiff('my file.clj', 'my file.clj', ['@@ -1 +1 @@'])])

    def test_missing_new_path(self):
        with self.assertRaises(diffutils.DiffFormatError):
            diffutils.segment(['diff --git a/x.clj b/x.clj', '--- a/x.clj', '@@ -1 +1 @@'])

    def test_hunk_without_paths(self):
        with self.assertRaises(diffutils.DiffFormatError):
            diffutils.segment(['diff --git a/x.clj b/x.clj', '@@ -1 +1 @@'])

    def test_blocks_are_independent(self):
        blocks = diffutils.split_blocks(['diff --git a/x.clj b/x.clj', '@@ -1 +1 @@'] + DIFF)
        self.assertEqual(len(blocks), 6)
        with self.assertRaises(diffutils.DiffFormatError):
            diffutils.parse_block(blocks[0])
        self.assertEqual(diffutils.parse_block(blocks[1]).new_path, 'src/core.clj')


if __name__ == '__main__':
    unittest.main()
