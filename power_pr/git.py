"""Git integration for power-pr.

All repository queries and mutations the workflow needs, expressed as
methods on one object so the workflow can be handed a double in tests.
"""

from __future__ import annotations

import shutil
import subprocess
from typing import Optional

from power_pr import runner
from power_pr.errors import GitError

DEFAULT_REMOTE = "origin"


class Git:
    """Thin wrapper over the git CLI, scoped to one remote."""

    def __init__(
        self,
        remote: str = DEFAULT_REMOTE,
        timeout: Optional[float] = None,
        verbose: bool = False,
        cwd: Optional[str] = None,
    ) -> None:
        self.remote = remote
        self.timeout = timeout
        self.verbose = verbose
        self.cwd = cwd

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        return runner.run(["git", *args], timeout=self.timeout, cwd=self.cwd, verbose=self.verbose)

    def _check(self, args: list[str]) -> str:
        """Run git and return stdout, raising GitError with stderr on failure."""
        result = self._run(args)
        if result.returncode != 0:
            raise GitError(
                f"git {' '.join(args)} failed (exit {result.returncode})",
                cmd=["git", *args],
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return result.stdout

    # -- inspection -------------------------------------------------------

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def is_inside_work_tree(self) -> bool:
        result = self._run(["rev-parse", "--is-inside-work-tree"])
        return result.returncode == 0 and result.stdout.strip() == "true"

    def toplevel(self) -> str:
        return self._check(["rev-parse", "--show-toplevel"]).strip()

    def git_dir(self) -> str:
        return self._check(["rev-parse", "--absolute-git-dir"]).strip()

    def remote_url(self) -> Optional[str]:
        """URL of the configured remote, or None when it is not configured."""
        result = self._run(["remote", "get-url", self.remote])
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def _diff_is_quiet(self, args: list[str]) -> bool:
        result = self._run(["diff", "--quiet", *args])
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        raise GitError(
            f"git diff --quiet failed (exit {result.returncode})",
            cmd=["git", "diff", "--quiet", *args],
            returncode=result.returncode,
            stderr=result.stderr,
        )

    def has_uncommitted_changes(self) -> bool:
        """True if tracked files have unstaged OR staged modifications."""
        return not self._diff_is_quiet([]) or not self._diff_is_quiet(["--cached"])

    def local_branch_exists(self, branch: str) -> bool:
        result = self._run(["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"])
        return result.returncode == 0

    def remote_branch_exists(self, branch: str) -> bool:
        """Ask the remote itself; exit status 2 from ls-remote means no match."""
        args = ["ls-remote", "--exit-code", "--heads", self.remote, f"refs/heads/{branch}"]
        result = self._run(args)
        if result.returncode == 0:
            return True
        if result.returncode == 2:
            return False
        raise GitError(
            f"git ls-remote failed for '{branch}' (exit {result.returncode})",
            cmd=["git", *args],
            returncode=result.returncode,
            stderr=result.stderr,
        )

    def commit_subjects(self, base: str, head: str, limit: int = 50) -> list[str]:
        """Subjects of non-merge commits in base..head, newest first.

        A failing log (e.g. unknown ref) yields an empty list.
        """
        result = self._run(
            [
                "log",
                "--pretty=format:%s",
                "--no-merges",
                f"--max-count={limit}",
                f"{base}..{head}",
            ]
        )
        if result.returncode != 0:
            return []
        return [line for line in result.stdout.splitlines() if line.strip()][:limit]

    # -- mutation ---------------------------------------------------------

    def fetch(self, prune: bool = True) -> None:
        args = ["fetch"]
        if prune:
            args.append("--prune")
        self._check([*args, self.remote])

    def create_tracking_branch(self, branch: str) -> None:
        self._check(["branch", "--track", branch, f"{self.remote}/{branch}"])

    def push(self, branch: str, set_upstream: bool = True) -> None:
        args = ["push", self.remote, f"{branch}:{branch}"]
        if set_upstream:
            args.append("--set-upstream")
        self._check(args)
