"""Single chokepoint for running git and gh.

Both collaborators shell out through run() so timeouts, verbosity and the
"tool is not installed" case are handled in one place.
"""

from __future__ import annotations

import subprocess

from power_pr import console
from power_pr.errors import CommandTimeoutError, ToolNotFoundError


def run(
    cmd: list[str],
    *,
    timeout: float | None = None,
    cwd: str | None = None,
    verbose: bool = False,
) -> subprocess.CompletedProcess:
    """Run cmd to completion and return the completed process.

    A non-zero exit status is NOT an error here; callers decide what a
    failure means for their command.
    """
    if verbose:
        console.echo_command(cmd)
    try:
        return subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(f"'{cmd[0]}' not found in PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise CommandTimeoutError(
            f"'{' '.join(cmd[:3])}' did not finish within {timeout:g} seconds"
        ) from exc
