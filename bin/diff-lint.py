#!/usr/bin/env python

"""
Script to report the linter findings introduced by the uncommitted changes
of a git repository.

Every staged or unstaged file is linted, then linted again as it was in the
last commit. Findings already present at the corresponding line of the last
commit are not reported.
"""

import os, sys
import argparse
from argparse import RawTextHelpFormatter
import multiprocessing

from termcolor import colored

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(os.path.realpath(__file__)), os.pardir)))
from difflint.gitutils import GitDiffLintRunner
from difflint.linters import LINTERS


def parse_args(argv=None):
  parser = argparse.ArgumentParser(description='Report the linter findings introduced by the uncommitted changes\n'
                                               'of a git repository.\n'
                                               'Unknown options are passed to the linter.',
                                   formatter_class=RawTextHelpFormatter)
  parser.add_argument('repo', metavar='REPO', nargs='?',
                      help='Root of the git repository to check.')
  parser.add_argument('-l', '--linter', dest='linter', choices=sorted(LINTERS), default='clj-kondo',
                      help='Linter to run (default: clj-kondo).')
  parser.add_argument('--config-dir', dest='config_dir', metavar='DIR',
                      help='Linter configuration directory.\n'
                           'Defaults to REPO/.clj-kondo for clj-kondo.')
  parser.add_argument('-f', '--file', dest='files', metavar='FILE', action='append', default=[],
                      help='File to analyse.\n'
                           'If not specified, every staged or unstaged file is analysed.')
  parser.add_argument('--ignore', dest='ignore', metavar='FILE',
                      help='Ignore patterns.\n'
                           'In case of match, the finding is ignored.')
  parser.add_argument('--exitcode', type=int, dest='exitcode', metavar='VALUE=0', default=0,
                      help='Exit code if findings are found.')
  parser.add_argument('-j', dest='j', type=int, default=multiprocessing.cpu_count(),
                      help='Number of processes to use.')
  parser.add_argument('-v', '--verbose', dest='verbose', action='count', default=0,
                      help='Verbose mode')

  (args, unknown) = parser.parse_known_args(argv)

  if args.repo is None:
    parser.print_usage()
    sys.exit(0)

  return args, unknown


def main(argv=None):
  (args, unknown) = parse_args(argv)

  try:
    runner = GitDiffLintRunner(args.repo, verbose=args.verbose,
                               linter=LINTERS[args.linter](unknown, config_dir=args.config_dir))

    if args.ignore:
      runner.load_ignore_patterns(args.ignore)

    results = runner.analyse(args.files, args.j)
  except ValueError as ex:
    print(colored(str(ex), 'red'), file=sys.stderr)
    return 1

  found = False
  for result in results:
    print('\n- %s\n' % result.path)
    if result.error:
      print(colored(result.error, 'red'), file=sys.stderr)
    for finding in result.findings:
      found = True
      print(finding.render())

  return args.exitcode if found else 0


if __name__ == '__main__':
  sys.exit(main())
