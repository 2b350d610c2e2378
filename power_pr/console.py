"""User-facing output for power-pr.

Progress goes to stdout; warnings, errors and upstream tool output go to
stderr so they survive when stdout is piped.
"""

import shlex
import sys

PREFIX = "[power-pr]"


def say(message: str) -> None:
    print(f"{PREFIX} {message}")


def warn(message: str) -> None:
    print(f"{PREFIX} Warning: {message}", file=sys.stderr)


def error(message: str) -> None:
    print(f"{PREFIX} Error: {message}", file=sys.stderr)


def echo_output(text: str) -> None:
    """Relay output captured from git/gh verbatim."""
    if text.strip():
        print(text.rstrip(), file=sys.stderr)


def echo_command(cmd: list[str]) -> None:
    print(f"{PREFIX} $ {shlex.join(cmd)}", file=sys.stderr)
