"""Unit tests for power_pr/forge.py: gh command shapes and response parsing."""

import json
import subprocess
from unittest.mock import patch

import pytest

from power_pr.errors import ForgeError
from power_pr.forge import GitHubCLI
from power_pr.models import AuthStatus, PullRequestStatus, RepoIdentity


PR_URL = "https://github.com/octo/repo/pull/7"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ok(stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout, stderr=stderr)


def _fail(stdout="", stderr="error"):
    return subprocess.CompletedProcess(args=[], returncode=1, stdout=stdout, stderr=stderr)


def _run_with(result):
    """Patch subprocess.run to return result; yields the mock for call inspection."""
    return patch("power_pr.runner.subprocess.run", return_value=result)


def _hosts_payload(active=True):
    return json.dumps(
        {
            "hosts": {
                "github.com": [
                    {
                        "state": "success",
                        "active": active,
                        "host": "github.com",
                        "login": "octocat",
                        "tokenSource": "keyring",
                        "gitProtocol": "ssh",
                    }
                ]
            }
        }
    )


# ===========================================================================
# Authentication and identity
# ===========================================================================


class TestAuthStatus:
    def test_active_session(self):
        with _run_with(_ok(stdout=_hosts_payload())) as run:
            auth = GitHubCLI().auth_status()

        assert auth == AuthStatus(host="github.com", login="octocat", state="success", git_protocol="ssh")
        assert run.call_args.args[0] == ["gh", "auth", "status", "--json", "hosts"]

    def test_no_active_session(self):
        with _run_with(_ok(stdout=_hosts_payload(active=False))):
            assert GitHubCLI().auth_status() is None

    def test_command_failure_means_unauthenticated(self):
        with _run_with(_fail(stderr="You are not logged into any GitHub hosts.")):
            assert GitHubCLI().auth_status() is None

    def test_garbage_output_means_unauthenticated(self):
        with _run_with(_ok(stdout="github.com\n  Logged in")):
            assert GitHubCLI().auth_status() is None


class TestRepoIdentity:
    def test_name_with_owner(self):
        with _run_with(_ok(stdout='{"nameWithOwner":"octo/repo"}')) as run:
            repo = GitHubCLI().repo_identity()

        assert repo == RepoIdentity(owner="octo", name="repo")
        assert run.call_args.args[0] == ["gh", "repo", "view", "--json", "nameWithOwner"]

    def test_failure_returns_none(self):
        with _run_with(_fail(stderr="no git remotes found")):
            assert GitHubCLI().repo_identity() is None


# ===========================================================================
# Pull requests
# ===========================================================================


class TestFindOpenPr:
    def test_returns_first_url(self):
        with _run_with(_ok(stdout=json.dumps([{"url": PR_URL}]))) as run:
            url = GitHubCLI().find_open_pr(base="main", head="feature")

        assert url == PR_URL
        assert run.call_args.args[0] == [
            "gh", "pr", "list",
            "--base", "main",
            "--head", "feature",
            "--state", "open",
            "--limit", "1",
            "--json", "url",
        ]

    def test_empty_list(self):
        with _run_with(_ok(stdout="[]")):
            assert GitHubCLI().find_open_pr(base="main", head="feature") is None

    def test_failure_returns_none(self):
        with _run_with(_fail()):
            assert GitHubCLI().find_open_pr(base="main", head="feature") is None


class TestCreatePr:
    def test_returns_last_url_printed(self):
        output = "Creating pull request for feature into main in octo/repo\n\n" + PR_URL + "\n"
        with _run_with(_ok(stdout=output)) as run:
            url = GitHubCLI().create_pr(["--base", "main", "--head", "feature"])

        assert url == PR_URL
        assert run.call_args.args[0] == ["gh", "pr", "create", "--base", "main", "--head", "feature"]

    def test_no_url_printed(self):
        with _run_with(_ok(stdout="done")):
            assert GitHubCLI().create_pr([]) is None

    def test_failure_raises_with_output(self):
        with _run_with(_fail(stderr="GraphQL: No commits between main and feature")):
            with pytest.raises(ForgeError) as exc_info:
                GitHubCLI().create_pr(["--base", "main"])

        assert "No commits between main and feature" in exc_info.value.output
        assert exc_info.value.returncode == 1


class TestMergePr:
    def test_auto_merge(self):
        with _run_with(_ok()) as run:
            result = GitHubCLI().merge_pr(PR_URL, "squash", auto=True)

        assert result.returncode == 0
        assert run.call_args.args[0] == ["gh", "pr", "merge", PR_URL, "--squash", "--auto"]

    def test_immediate_merge(self):
        with _run_with(_ok()) as run:
            GitHubCLI().merge_pr(PR_URL, "rebase", auto=False)

        assert run.call_args.args[0] == ["gh", "pr", "merge", PR_URL, "--rebase"]

    def test_failure_is_returned_not_raised(self):
        with _run_with(_fail(stderr="not mergeable")):
            result = GitHubCLI().merge_pr(PR_URL, "merge", auto=False)

        assert result.returncode == 1


class TestViewPr:
    def test_parses_status(self):
        payload = {
            "number": 7,
            "state": "MERGED",
            "mergedAt": "2026-10-19T12:00:00Z",
            "mergeStateStatus": "CLEAN",
            "isInMergeQueue": False,
            "headRefName": "feature",
            "baseRefName": "main",
            "url": PR_URL,
        }
        with _run_with(_ok(stdout=json.dumps(payload))) as run:
            status = GitHubCLI().view_pr(PR_URL)

        assert status.number == 7
        assert status.is_merged
        assert status.head_ref_name == "feature"
        cmd = run.call_args.args[0]
        assert cmd[:4] == ["gh", "pr", "view", PR_URL]
        assert cmd[5] == "number,state,mergedAt,mergeStateStatus,isInMergeQueue,headRefName,baseRefName,url"

    def test_failure_yields_empty_status(self):
        with _run_with(_fail()):
            status = GitHubCLI().view_pr(PR_URL)

        assert status == PullRequestStatus()
        assert not status.is_merged
