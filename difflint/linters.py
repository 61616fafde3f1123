import json
import os
import re

from difflint.findingutils import Finding


class LinterError(ValueError):
    pass


class Linter(object):
    name = None
    extensions = ()

    def __init__(self, options=(), config_dir=None):
        self.options = list(options)
        self.config_dir = config_dir

    def accepts(self, path):
        return os.path.splitext(path)[1] in self.extensions

    def command(self, root, path):
        raise NotImplementedError

    def parse(self, path, returncode, out, err):
        raise NotImplementedError


class CljKondoLinter(Linter):
    name = 'clj-kondo'
    extensions = ('.clj', '.cljs', '.cljc', '.edn', '.bb')
    # 2 and 3 are returned when warnings or errors are found.
    success_codes = (0, 2, 3)

    def command(self, root, path):
        cmd = ['clj-kondo', '--lint', path, '--cache', 'false']

        config_dir = self.config_dir or os.path.join(root, '.clj-kondo')
        if os.path.isdir(config_dir):
            cmd.extend(['--config-dir', config_dir])

        cmd.extend(['--config', '{:output {:format :json}}'])
        cmd.extend(self.options)
        return cmd

    def parse(self, path, returncode, out, err):
        if returncode not in self.success_codes:
            raise LinterError('clj-kondo failed on %s (exit code %d): %s'
                              % (path, returncode, err.decode('utf-8').strip()))

        try:
            report = json.loads(out.decode('utf-8'))
        except ValueError as ex:
            raise LinterError('Unable to read clj-kondo output for %s: %s' % (path, ex))

        return [Finding(path, f['row'], f['col'], f['level'], f['message'])
                for f in report.get('findings', [])
                if f.get('row') is not None]


class CppcheckLinter(Linter):
    name = 'cppcheck'
    extensions = ('.c', '.cc', '.cpp', '.cxx', '.h', '.hh', '.hpp', '.hxx')
    # The file is left out, parse() already knows which file was linted.
    template = '{line}:{column}:{severity}:{message} [{id}]'
    default_options = ('--enable=warning,style,performance,portability', '--language=c++', '--inconclusive')

    finding_re = re.compile('^([0-9]+):([0-9]+):([a-z]+):(.*)$')

    def __init__(self, options=(), config_dir=None):
        super(CppcheckLinter, self).__init__(options or self.default_options, config_dir)

    def command(self, root, path):
        cmd = ['cppcheck', '-q', '--relative-paths=%s' % root, '--template=%s' % self.template]
        if self.config_dir:
            cmd.append('--suppressions-list=%s' % os.path.join(self.config_dir, 'suppressions.txt'))
        cmd.extend(self.options)
        cmd.append(os.path.join(root, path))
        return cmd

    def parse(self, path, returncode, out, err):
        if returncode != 0:
            raise LinterError('cppcheck failed on %s (exit code %d): %s'
                              % (path, returncode, err.decode('utf-8').strip()))

        findings = []
        for line in err.decode('utf-8').split('\n'):
            m = self.finding_re.match(line)
            # cppcheck reports file-less information messages at line 0.
            if m and int(m.group(1)) > 0:
                findings.append(Finding(path, int(m.group(1)), int(m.group(2)), m.group(3), m.group(4)))

        return findings


LINTERS = {
    CljKondoLinter.name: CljKondoLinter,
    CppcheckLinter.name: CppcheckLinter,
}
