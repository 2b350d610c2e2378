"""Title, body and `gh pr create` arguments for a new pull request."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

MAX_SUMMARY_LINES = 50
EMPTY_RANGE_LINE = "- No new commits listed (fast-forward or metadata changes)."
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%SZ"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def default_title(source: str, target: str) -> str:
    return f"Merge {source} into {target}"


def render_body(
    source: str,
    target: str,
    subjects: Sequence[str],
    clock: Optional[Callable[[], datetime]] = None,
) -> str:
    """Render the generated PR body.

    One bullet per commit subject (at most MAX_SUMMARY_LINES), or a single
    placeholder bullet when there is nothing to list, followed by a footer
    stamped with the current UTC time.
    """
    bullets = [f"- {subject}" for subject in subjects[:MAX_SUMMARY_LINES]]
    summary = "\n".join(bullets) if bullets else EMPTY_RANGE_LINE
    stamp = (clock or _utc_now)().astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
    return (
        f"Automated PR to merge `{source}` ➜ `{target}`.\n"
        "\n"
        f"Changes since `{target}`:\n"
        f"{summary}\n"
        "\n"
        f"_Opened by power-pr on {stamp}._"
    )


def create_arguments(
    source: str,
    target: str,
    title: str,
    body: str,
    labels: Optional[str] = None,
) -> list[str]:
    """Arguments for `gh pr create`; labels are passed through as one value."""
    args = ["--base", target, "--head", source, "--title", title, "--body", body]
    if labels:
        args += ["--label", labels]
    return args
