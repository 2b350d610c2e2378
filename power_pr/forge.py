"""GitHub CLI integration for power-pr.

Every forge call goes through `gh`, which supplies authentication and
resolves the repository from the working directory.
"""

from __future__ import annotations

import json
import re
import shutil
import subprocess
from typing import Any, Optional

from power_pr import runner
from power_pr.errors import ForgeError
from power_pr.models import AuthStatus, PullRequestStatus, RepoIdentity

_URL_RE = re.compile(r"https?://\S+")

PR_VIEW_FIELDS = (
    "number",
    "state",
    "mergedAt",
    "mergeStateStatus",
    "isInMergeQueue",
    "headRefName",
    "baseRefName",
    "url",
)


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


class GitHubCLI:
    """Wrapper over `gh` for the handful of pull request calls the workflow makes."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        verbose: bool = False,
        cwd: Optional[str] = None,
    ) -> None:
        self.timeout = timeout
        self.verbose = verbose
        self.cwd = cwd

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        return runner.run(["gh", *args], timeout=self.timeout, cwd=self.cwd, verbose=self.verbose)

    def is_available(self) -> bool:
        return shutil.which("gh") is not None

    def auth_status(self) -> Optional[AuthStatus]:
        """Return the active session, or None when gh is not logged in."""
        result = self._run(["auth", "status", "--json", "hosts"])
        if result.returncode != 0:
            return None
        return AuthStatus.from_hosts_json(_load_json(result.stdout))

    def repo_identity(self) -> Optional[RepoIdentity]:
        result = self._run(["repo", "view", "--json", "nameWithOwner"])
        if result.returncode != 0:
            return None
        data = _load_json(result.stdout)
        if not isinstance(data, dict):
            return None
        return RepoIdentity.parse(str(data.get("nameWithOwner") or ""))

    def find_open_pr(self, base: str, head: str) -> Optional[str]:
        """URL of an open PR from head into base, if one exists."""
        result = self._run(
            [
                "pr", "list",
                "--base", base,
                "--head", head,
                "--state", "open",
                "--limit", "1",
                "--json", "url",
            ]
        )
        if result.returncode != 0:
            return None
        data = _load_json(result.stdout)
        if not isinstance(data, list) or not data:
            return None
        first = data[0]
        if not isinstance(first, dict):
            return None
        return first.get("url") or None

    def create_pr(self, create_args: list[str]) -> Optional[str]:
        """Run `gh pr create` with pre-composed arguments.

        Returns the URL gh printed (None if it printed none); raises
        ForgeError carrying gh's output when creation fails.
        """
        result = self._run(["pr", "create", *create_args])
        if result.returncode != 0:
            raise ForgeError(
                "gh pr create failed",
                cmd=["gh", "pr", "create", *create_args],
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        urls = _URL_RE.findall(f"{result.stdout}\n{result.stderr}")
        return urls[-1] if urls else None

    def merge_pr(self, url: str, strategy: str, auto: bool) -> subprocess.CompletedProcess:
        """Merge, or with auto=True let GitHub merge once requirements pass.

        The completed process is returned as-is; a failed merge is not an
        error for the caller.
        """
        args = ["pr", "merge", url, f"--{strategy}"]
        if auto:
            args.append("--auto")
        return self._run(args)

    def view_pr(self, url: str) -> PullRequestStatus:
        result = self._run(["pr", "view", url, "--json", ",".join(PR_VIEW_FIELDS)])
        if result.returncode != 0:
            return PullRequestStatus()
        return PullRequestStatus.from_json(_load_json(result.stdout))
