"""power-pr CLI entry point.

    power-pr <source_branch> <target_branch> [options]
    power-pr -h | --help
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from power_pr import console
from power_pr.config import LABELS_ENV, STRATEGY_ENV, TIMEOUT_ENV, resolve_options
from power_pr.errors import PowerPrError, UsageError, ValidationError
from power_pr.workflow import Pipeline

_EPILOG = f"""\
environment:
  {STRATEGY_ENV:<22} same as --strategy
  {LABELS_ENV:<22} default labels if --labels is not provided
  {TIMEOUT_ENV:<22} same as --timeout

values that start with "-" must be attached with "=", e.g. --title=-WIP

exit codes: 0 done (PR merged or left open for auto-merge), 1 failure, 2 usage error
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting, so main() owns exit codes."""

    def error(self, message: str) -> None:
        raise UsageError(message)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="power-pr",
        description="Create & (auto)merge a PR from source -> target using gh.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("source", metavar="<source_branch>")
    parser.add_argument("target", metavar="<target_branch>")
    parser.add_argument(
        "--strategy",
        default=None,
        metavar="<merge|squash|rebase>",
        help="Merge strategy (default: merge)",
    )
    parser.add_argument(
        "--no-auto",
        dest="auto",
        action="store_false",
        help="Do not enable auto-merge; attempt immediate merge only",
    )
    parser.add_argument(
        "--no-push",
        dest="push",
        action="store_false",
        help="Do not push source branch before creating PR",
    )
    parser.add_argument(
        "--allow-dirty",
        action="store_true",
        help="Allow uncommitted changes in working tree",
    )
    parser.add_argument(
        "--title",
        default=None,
        metavar="TEXT",
        help='Custom PR title (default: "Merge <source> into <target>")',
    )
    parser.add_argument(
        "--body",
        default=None,
        metavar="TEXT",
        help="Custom PR body (otherwise a summary is generated)",
    )
    parser.add_argument(
        "--labels",
        default=None,
        metavar="a,b,c",
        help="Comma-separated labels to apply on creation",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print intended actions without pushing, creating or merging",
    )
    parser.add_argument(
        "--timeout",
        default=None,
        metavar="SECONDS",
        help="Time limit for each git/gh command (default: 300)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Echo every git/gh command before running it",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_arg_parser()

    # Help is only honoured as the very first token.
    if argv and argv[0] in ("-h", "--help"):
        parser.print_help()
        return 0

    try:
        args, unknown = parser.parse_known_args(argv)
    except UsageError as exc:
        parser.print_usage(sys.stderr)
        print(f"power-pr: error: {exc}", file=sys.stderr)
        return exc.exit_code

    try:
        if unknown:
            raise ValidationError(f"Unknown option: {unknown[0]}")
        options = resolve_options(
            source=args.source,
            target=args.target,
            strategy=args.strategy,
            labels=args.labels,
            timeout=args.timeout,
            auto=args.auto,
            push=args.push,
            allow_dirty=args.allow_dirty,
            title=args.title,
            body=args.body,
            dry_run=args.dry_run,
            verbose=args.verbose,
        )
    except PowerPrError as exc:
        console.error(str(exc))
        return exc.exit_code

    try:
        outcome = Pipeline(options).run()
    except KeyboardInterrupt:
        print("\n[power-pr] Ok, stopping.", file=sys.stderr)
        return 1
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
