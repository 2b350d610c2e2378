"""Run configuration for power-pr.

Options are resolved once per invocation, in this order:

    command-line flag > environment variable > settings file > built-in default

The settings file lives at ./.power-pr/settings.json relative to the current
working directory and is a flat JSON object, e.g.:

    {"strategy": "squash", "labels": "automerge", "timeout": 120}

It is only ever read. A missing or unreadable file counts as empty.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from power_pr.errors import ValidationError

_SETTINGS_DIR = ".power-pr"
_SETTINGS_FILE = os.path.join(_SETTINGS_DIR, "settings.json")

STRATEGY_ENV = "POWER_PR_STRATEGY"
LABELS_ENV = "POWER_PR_LABELS"
TIMEOUT_ENV = "POWER_PR_TIMEOUT"

VALID_STRATEGIES = ("merge", "squash", "rebase")

_DEFAULTS = {
    "strategy": "merge",
    "labels": "",
    "timeout": 300.0,
}


@dataclass(frozen=True)
class Options:
    """Everything one run needs to know, fixed after parsing."""

    source: str
    target: str
    strategy: str = "merge"
    auto: bool = True
    push: bool = True
    allow_dirty: bool = False
    title: str = ""
    body: str = ""
    labels: str = ""
    dry_run: bool = False
    timeout: float = 300.0
    verbose: bool = False


def _read_settings(path: str = _SETTINGS_FILE) -> dict:
    """Read settings from disk, returning an empty dict if the file is absent or unreadable."""
    if not os.path.exists(path):
        return {}
    try:
        with open(path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def _pick(flag, env_value: Optional[str], settings: dict, key: str):
    """First non-empty value among flag, environment, settings, default."""
    if flag is not None:
        return flag
    if env_value:
        return env_value
    value = settings.get(key)
    if value is not None and value != "":
        return value
    return _DEFAULTS[key]


def validate_strategy(strategy: str) -> str:
    if strategy not in VALID_STRATEGIES:
        raise ValidationError(
            f"Invalid --strategy '{strategy}' (use {'|'.join(VALID_STRATEGIES)})"
        )
    return strategy


def parse_timeout(value) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid --timeout '{value}' (expected seconds)") from None
    if seconds <= 0:
        raise ValidationError(f"Invalid --timeout '{value}' (must be positive)")
    return seconds


def resolve_options(
    *,
    source: str,
    target: str,
    strategy: Optional[str] = None,
    labels: Optional[str] = None,
    timeout: Optional[str] = None,
    auto: bool = True,
    push: bool = True,
    allow_dirty: bool = False,
    title: Optional[str] = None,
    body: Optional[str] = None,
    dry_run: bool = False,
    verbose: bool = False,
    environ: Optional[Mapping[str, str]] = None,
    settings_path: str = _SETTINGS_FILE,
) -> Options:
    """Build the Options for one run and validate the values that have a closed set."""
    env = os.environ if environ is None else environ
    settings = _read_settings(settings_path)

    return Options(
        source=source,
        target=target,
        strategy=validate_strategy(str(_pick(strategy, env.get(STRATEGY_ENV), settings, "strategy"))),
        labels=str(_pick(labels, env.get(LABELS_ENV), settings, "labels")),
        timeout=parse_timeout(_pick(timeout, env.get(TIMEOUT_ENV), settings, "timeout")),
        auto=auto,
        push=push,
        allow_dirty=allow_dirty,
        title=title or "",
        body=body or "",
        dry_run=dry_run,
        verbose=verbose,
    )
