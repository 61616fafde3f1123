import collections
import re

CREATE = 'create'
DELETE = 'delete'
UPDATE = 'update'

hunk_header_re = re.compile('^@@ -([0-9]+)(?:,([0-9]+))? \\+([0-9]+)(?:,([0-9]+))? @@')


class HunkHeaderError(ValueError):
    pass


class DiffFormatError(ValueError):
    pass


HunkDescriptor = collections.namedtuple(
    'HunkDescriptor',
    ['op', 'a_start', 'a_lines', 'b_start', 'b_lines', 'a_end', 'b_end', 'a_next', 'b_next', 'post_offset',
     'correspondence'])

FileDiff = collections.namedtuple('FileDiff', ['old_path', 'new_path', 'hunks'])


def parse_hunk_header(header):
    m = hunk_header_re.match(header)
    if not m:
        raise HunkHeaderError('Invalid hunk header: %s' % header.rstrip())

    a_start = int(m.group(1))
    a_lines = int(m.group(2)) if m.group(2) is not None else 1
    b_start = int(m.group(3))
    b_lines = int(m.group(4)) if m.group(4) is not None else 1

    if a_lines == 0:
        op = CREATE
    elif b_lines == 0:
        op = DELETE
    else:
        op = UPDATE

    a_end = a_start if op == CREATE else a_start + a_lines - 1
    b_end = b_start if op == DELETE else b_start + b_lines - 1
    a_next = a_end + 1
    b_next = b_end + 1

    # Positional pairing, truncated to the shorter range.
    correspondence = dict(zip(range(b_start, b_start + b_lines), range(a_start, a_start + a_lines)))

    return HunkDescriptor(op, a_start, a_lines, b_start, b_lines, a_end, b_end, a_next, b_next, a_next - b_next,
                          correspondence)


def map_lines(hunks, lines):
    """
    Map line numbers of the new version of a file to the old version.

    hunks is an iterable of HunkDescriptor ordered by b_start, consumed
    lazily, so headers past the last target line are never looked at.
    lines must be strictly increasing. The result holds an entry for every
    target line: the old line number, or None when the line has no
    counterpart in the old version.

    For hunks @@ -0,0 +1 @@, @@ -108 +109 @@, @@ -119,4 +120,2 @@,
    @@ -127 +126 @@ and @@ -144,0 +144 @@, lines [1, 5, 109, 115, 144] map to
    {1: None, 5: 4, 109: 108, 115: 114, 144: None}.
    """
    hunks = iter(hunks)
    hunk = next(hunks, None)
    offset = 0
    previous = None
    mapping = {}

    for line in lines:
        if previous is not None and line <= previous:
            raise ValueError('Line numbers must be strictly increasing (%d after %d)' % (line, previous))
        previous = line

        while hunk is not None and line > hunk.b_end:
            offset = hunk.post_offset
            hunk = next(hunks, None)

        if hunk is None or line < hunk.b_start:
            mapping[line] = line + offset
        else:
            mapping[line] = hunk.correspondence.get(line)

    return mapping


def split_blocks(lines):
    blocks = []
    for line in lines:
        if line.startswith('diff '):
            blocks.append([line])
        elif blocks:
            blocks[-1].append(line)

    return blocks


def strip_path(path):
    path = path.rstrip('\n').rstrip('\t')
    if path == '/dev/null':
        return None
    return path[2:]


def header_path(line):
    # diff --git a/P b/P, renames are disabled so both sides are equal.
    rest = line.rstrip('\n')[len('diff --git '):]
    half = (len(rest) - 1) // 2
    a, b = rest[:half], rest[half + 1:]
    if not line.startswith('diff --git ') or a[2:] != b[2:]:
        raise DiffFormatError('Unable to read path from: %s' % line.rstrip())
    return a[2:]


def parse_block(block):
    old_path = new_path = None
    markers = False
    hunks = []

    i = 0
    while i < len(block):
        line = block[i]
        if not markers and line.startswith('---'):
            if i + 1 >= len(block) or not block[i + 1].startswith('+++'):
                raise DiffFormatError('Missing +++ line after: %s' % line.rstrip())
            old_path = strip_path(line[4:])
            new_path = strip_path(block[i + 1][4:])
            markers = True
            i += 2
            continue
        if line.startswith('@@'):
            if not markers:
                raise DiffFormatError('Hunk found before ---/+++ lines in: %s' % block[0].rstrip())
            hunks.append(line.rstrip('\n'))
        i += 1

    if not markers:
        old_path = new_path = header_path(block[0])
        if any(line.startswith('new file mode') for line in block):
            old_path = None
        elif any(line.startswith('deleted file mode') for line in block):
            new_path = None

    return FileDiff(old_path, new_path, hunks)


def segment(lines):
    return [parse_block(block) for block in split_blocks(lines)]
