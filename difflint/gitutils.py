import collections
import contextlib
import multiprocessing
import os
import re
import shlex
import subprocess
import sys

from termcolor import colored

from difflint import diffutils, findingutils
from difflint.linters import CljKondoLinter, LinterError

LOCK_NAME = 'diff-lint.lock'

FileResult = collections.namedtuple('FileResult', ['path', 'findings', 'error'])


class GitError(ValueError):
    pass


class RepositoryRestoreError(RuntimeError):
    pass


class Worker(object):
    def __init__(self, ctx, method):
        self.ctx = ctx
        self.method = method

    def __call__(self, item):
        return getattr(self.ctx, self.method)(item)


class GitDiffLintRunner(object):
    @staticmethod
    def eprint(*args, **kwargs):
        print(*args, file=sys.stderr, **kwargs)

    def __print_cmd(self, args):
        if self.verbose > 1:
            GitDiffLintRunner.eprint(colored(shlex.join(args), 'blue'))

    def __execute(self, args, stdout=None, stderr=None, cwd=None):
        self.__print_cmd(args)
        p = subprocess.Popen(args, stdout=stdout, stderr=stderr, cwd=cwd)
        (out, err) = p.communicate()
        return p.returncode, out, err

    def __capture(self, args, cwd=None):
        return self.__execute(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, cwd=cwd)

    def __git(self, *args):
        result = self.__capture(['git', '--no-pager', '-C', self.git_root, '-c', 'core.quotePath=false'] + list(args))
        if result[0] != 0:
            raise GitError('git %s failed: %s' % (args[0], result[2].decode('utf-8').strip()))
        return result[1].decode('utf-8')

    def __restore(self, *args):
        try:
            self.__git(*args)
        except GitError as ex:
            GitDiffLintRunner.eprint(colored('Unable to restore the state of %s, the working tree needs manual '
                                             'attention: %s' % (self.git_root, ex), 'red', attrs=['bold']))
            raise RepositoryRestoreError(str(ex))

    def __init__(self, git_root=os.getcwd(), **kwargs):
        self.verbose = kwargs['verbose'] if 'verbose' in kwargs else 0
        self.linter = kwargs['linter'] if 'linter' in kwargs else CljKondoLinter()

        result = self.__capture(['git', '-C', git_root, 'rev-parse', '--show-toplevel'])
        if result[0] == 0:
            self.git_root = result[1].strip().decode('utf-8')
        else:
            raise GitError('No git repository found at %s' % git_root)

        self.ignore_patterns = []

    def set_ignore_patterns(self, *patterns):
        self.ignore_patterns = [re.compile(p) for p in patterns]

    def load_ignore_patterns(self, filename):
        with open(filename, 'r') as f:
            self.ignore_patterns = findingutils.load_ignore_patterns(f)

    def set_linter_options(self, *args):
        self.linter.options = list(args)

    def list_changed_files(self):
        staged = self.__git('diff', '--name-only', '--cached').split('\n')
        unstaged = self.__git('diff', '--name-only').split('\n')

        changed = []
        for f in staged + unstaged:
            if f and f not in changed:
                changed.append(f)

        return changed

    def diff(self):
        out = self.__git('diff', '--unified=0', '--no-color', '--no-ext-diff', '--no-renames', 'HEAD')
        return out.split('\n')

    def lint(self, path):
        cmd = self.linter.command(self.git_root, path)
        try:
            result = self.__capture(cmd, cwd=self.git_root)
        except OSError as ex:
            raise LinterError('Unable to run %s: %s' % (cmd[0], ex))
        findings = self.linter.parse(path, *result)

        if self.verbose > 2:
            GitDiffLintRunner.eprint(colored('\n'.join(f.render() for f in findings), 'cyan'))

        return [finding for finding in findings if findingutils.is_relevant(finding, self.ignore_patterns)]

    def lint_new_version(self, record):
        if self.verbose > 0:
            GitDiffLintRunner.eprint(colored('Linting %s' % record.new_path, 'blue'))

        try:
            return record, findingutils.group_by_line(self.lint(record.new_path)), None
        except ValueError as ex:
            return record, None, str(ex)

    def reconcile_file(self, item):
        record, new_by_line = item

        if self.verbose > 0:
            GitDiffLintRunner.eprint(colored('Linting previous version of %s' % record.new_path, 'blue'))

        try:
            if record.old_path is None or not os.path.exists(os.path.join(self.git_root, record.old_path)):
                return FileResult(record.new_path, findingutils.reconcile(new_by_line, None, {}), None)

            old_by_line = findingutils.group_by_line(self.lint(record.old_path))
            hunks = (diffutils.parse_hunk_header(h) for h in record.hunks)
            line_map = diffutils.map_lines(hunks, sorted(new_by_line))

            return FileResult(record.new_path, findingutils.reconcile(new_by_line, old_by_line, line_map), None)
        except ValueError as ex:
            return FileResult(record.new_path, [], str(ex))

    @contextlib.contextmanager
    def lock(self):
        git_dir = os.path.join(self.git_root, self.__git('rev-parse', '--git-dir').strip())
        lockfile = os.path.join(git_dir, LOCK_NAME)

        try:
            fd = os.open(lockfile, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            raise GitError('Another diff-lint run holds %s' % lockfile)

        try:
            os.write(fd, str(os.getpid()).encode('utf-8'))
            os.close(fd)
            yield
        finally:
            os.remove(lockfile)

    @contextlib.contextmanager
    def temporary_commit(self):
        self.__git('-c', 'commit.gpgsign=false', 'commit', '-q', '--allow-empty', '--no-verify',
                   '-m', 'diff-lint temporary commit')
        try:
            yield
        finally:
            self.__restore('reset', '-q', '--soft', 'HEAD^')

    @contextlib.contextmanager
    def stashed_changes(self):
        if not self.__git('diff', '--name-only').strip():
            yield
            return

        self.__git('stash', 'push', '-q')
        try:
            yield
        finally:
            self.__restore('stash', 'pop', '-q')

    @contextlib.contextmanager
    def detached_parent(self):
        ref = self.__git('rev-parse', '--abbrev-ref', 'HEAD').strip()
        if ref == 'HEAD':
            ref = self.__git('rev-parse', 'HEAD').strip()

        self.__git('checkout', '-q', '--detach', 'HEAD^')
        try:
            yield
        finally:
            self.__restore('checkout', '-q', ref)

    @contextlib.contextmanager
    def clean_checkout(self):
        """
        Check out the last commit, putting aside staged and unstaged changes.

        Everything is put back on exit, whether the body succeeds or not.
        """
        with self.lock(), self.temporary_commit(), self.stashed_changes(), self.detached_parent():
            yield

    def __map(self, method, items, j):
        worker = Worker(self, method)

        if j > 1 and len(items) > 1:
            with multiprocessing.Pool(j) as pool:
                return pool.map(worker, items)

        return [worker(item) for item in items]

    def analyse(self, files=[], j=multiprocessing.cpu_count()):
        changed = self.list_changed_files()
        if files:
            changed = [f for f in changed if f in files]

        if not changed:
            return []

        entries = []
        for block in diffutils.split_blocks(self.diff()):
            try:
                entries.append(diffutils.parse_block(block))
            except diffutils.DiffFormatError as ex:
                try:
                    path = diffutils.header_path(block[0])
                except diffutils.DiffFormatError:
                    path = None

                if path is None:
                    entries.append(FileResult(block[0].strip(), [], str(ex)))
                elif path in changed and self.linter.accepts(path):
                    entries.append(FileResult(path, [], str(ex)))

        records = [e for e in entries
                   if isinstance(e, diffutils.FileDiff) and e.new_path in changed and self.linter.accepts(e.new_path)]

        outcomes = {}
        pending = []
        for record, new_by_line, error in self.__map('lint_new_version', records, j):
            if error is not None:
                outcomes[record.new_path] = FileResult(record.new_path, [], error)
            elif new_by_line:
                pending.append((record, new_by_line))

        if pending:
            with self.clean_checkout():
                for result in self.__map('reconcile_file', pending, j):
                    outcomes[result.path] = result

        results = []
        for entry in entries:
            if isinstance(entry, FileResult):
                results.append(entry)
            elif entry.new_path in outcomes:
                result = outcomes[entry.new_path]
                if result.findings or result.error:
                    results.append(result)

        return results
