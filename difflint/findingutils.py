import re


class Finding(object):
    def __init__(self, path, line, column, severity, message):
        self.path = path
        self.line = line
        self.column = column
        self.severity = severity
        self.message = message

    @property
    def identity(self):
        return self.column, self.message

    def render(self):
        return '%s:%d:%d %s %s' % (self.path, self.line, self.column, self.severity, self.message)

    def __eq__(self, other):
        if not isinstance(other, Finding):
            return NotImplemented
        return (self.path, self.line, self.column, self.severity, self.message) == \
            (other.path, other.line, other.column, other.severity, other.message)

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash((self.path, self.line, self.column, self.severity, self.message))

    def __repr__(self):
        return 'Finding(%r)' % self.render()


def group_by_line(findings):
    by_line = {}
    for finding in findings:
        by_line.setdefault(finding.line, []).append(finding)
    return by_line


def reconcile(new_by_line, old_by_line, line_map):
    """
    Return the findings of the new version which did not exist at the
    corresponding line of the old version, line by line in ascending order.

    Two findings are the same when their identity (column and message)
    match. old_by_line is None when the file has no old version, in which
    case every finding is new.
    """
    new_findings = []

    for line in sorted(new_by_line):
        old_line = line_map.get(line) if old_by_line is not None else None

        if old_line is None:
            new_findings.extend(new_by_line[line])
            continue

        known = set(finding.identity for finding in old_by_line.get(old_line, []))
        new_findings.extend(finding for finding in new_by_line[line] if finding.identity not in known)

    return new_findings


def load_ignore_patterns(lines):
    return [re.compile(line.rstrip('\n')) for line in lines if line.strip()]


def is_relevant(finding, ignore_patterns):
    rendered = finding.render()
    return not any(p.search(rendered) for p in ignore_patterns)
