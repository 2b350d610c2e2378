"""Typed records parsed from git and gh responses."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

_URL_PREFIXES = (
    re.compile(r"^git@[^:]+:"),
    re.compile(r"^ssh://[^/]+/"),
    re.compile(r"^https?://[^/]+/"),
)


@dataclass(frozen=True)
class AuthStatus:
    """The active gh session for one host."""

    host: str
    login: str
    state: str
    git_protocol: str

    @classmethod
    def from_hosts_json(cls, data: Any) -> Optional["AuthStatus"]:
        """Pick the active account out of `gh auth status --json hosts` output.

        The payload maps each host to a list of accounts; only one account
        per host is active. Returns None when nothing is active.
        """
        if not isinstance(data, dict):
            return None
        hosts = data.get("hosts")
        if not isinstance(hosts, dict):
            return None
        for host, accounts in hosts.items():
            for account in accounts or []:
                if not isinstance(account, dict) or not account.get("active"):
                    continue
                return cls(
                    host=str(account.get("host") or host),
                    login=str(account.get("login", "")),
                    state=str(account.get("state", "")),
                    git_protocol=str(account.get("gitProtocol", "")),
                )
        return None


@dataclass(frozen=True)
class RepoIdentity:
    owner: str
    name: str

    @property
    def name_with_owner(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> Optional["RepoIdentity"]:
        """Parse an "owner/name" string; None if it does not have that shape."""
        owner, sep, name = value.strip().strip("/").rpartition("/")
        if not sep or not owner or not name:
            return None
        return cls(owner=owner, name=name)

    @classmethod
    def from_remote_url(cls, url: str) -> Optional["RepoIdentity"]:
        """Derive owner/name from an SSH, ssh:// or http(s) remote URL."""
        path = url.strip()
        for prefix in _URL_PREFIXES:
            path = prefix.sub("", path, count=1)
        path = path.rstrip("/")
        if path.endswith(".git"):
            path = path[: -len(".git")]
        return cls.parse(path)


@dataclass(frozen=True)
class PullRequestStatus:
    """State of a pull request as reported by `gh pr view --json`."""

    url: str = ""
    number: Optional[int] = None
    state: str = ""
    merged_at: Optional[str] = None
    merge_state_status: str = ""
    is_in_merge_queue: bool = False
    head_ref_name: str = ""
    base_ref_name: str = ""

    @property
    def is_merged(self) -> bool:
        return bool(self.merged_at) or self.state == "MERGED"

    @classmethod
    def from_json(cls, data: Any) -> "PullRequestStatus":
        if not isinstance(data, dict):
            return cls()
        return cls(
            url=data.get("url") or "",
            number=data.get("number"),
            state=data.get("state") or "",
            merged_at=data.get("mergedAt") or None,
            merge_state_status=data.get("mergeStateStatus") or "",
            is_in_merge_queue=bool(data.get("isInMergeQueue")),
            head_ref_name=data.get("headRefName") or "",
            base_ref_name=data.get("baseRefName") or "",
        )
