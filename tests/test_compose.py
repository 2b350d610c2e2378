"""Unit tests for power_pr/compose.py: title, body and create arguments."""

import re
from datetime import datetime, timedelta, timezone

from power_pr.compose import (
    EMPTY_RANGE_LINE,
    create_arguments,
    default_title,
    render_body,
)


def _clock():
    return datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class TestDefaultTitle:
    def test_exact_text(self):
        assert default_title("feature/login", "main") == "Merge feature/login into main"


class TestRenderBody:
    def test_one_bullet_per_subject(self):
        body = render_body("feature", "main", ["Add widget", "Fix tests"], clock=_clock)

        assert body == (
            "Automated PR to merge `feature` ➜ `main`.\n"
            "\n"
            "Changes since `main`:\n"
            "- Add widget\n"
            "- Fix tests\n"
            "\n"
            "_Opened by power-pr on 2026-01-02 03:04:05Z._"
        )

    def test_caps_at_fifty_bullets(self):
        body = render_body("feature", "main", [f"commit {i}" for i in range(75)], clock=_clock)

        bullets = [line for line in body.splitlines() if line.startswith("- ")]
        assert len(bullets) == 50
        assert bullets[-1] == "- commit 49"

    def test_empty_range_uses_placeholder(self):
        body = render_body("feature", "main", [], clock=_clock)

        assert EMPTY_RANGE_LINE in body
        assert [line for line in body.splitlines() if line.startswith("- ")] == [EMPTY_RANGE_LINE]

    def test_timestamp_is_converted_to_utc(self):
        local = datetime(2026, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))

        body = render_body("feature", "main", [], clock=lambda: local)

        assert body.endswith("_Opened by power-pr on 2026-01-02 03:04:05Z._")

    def test_default_clock_footer_format(self):
        body = render_body("feature", "main", ["x"])

        assert re.search(r"_Opened by power-pr on \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}Z\._$", body)


class TestCreateArguments:
    def test_without_labels(self):
        assert create_arguments("feature", "main", "T", "B") == [
            "--base", "main", "--head", "feature", "--title", "T", "--body", "B",
        ]

    def test_labels_passed_as_single_value(self):
        args = create_arguments("feature", "main", "T", "B", "a,b,c")

        assert args[-2:] == ["--label", "a,b,c"]
        assert args.count("--label") == 1
