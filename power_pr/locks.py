"""Cross-process guard around pull request creation.

Uses `filelock.FileLock` so two power-pr runs for the same source/target
pair on one machine cannot interleave their "search, then create" sequence.
The lock files live under the repository's git directory.
"""

import os
import re
from contextlib import contextmanager

from filelock import FileLock, Timeout

from power_pr.errors import OperationError

# Default seconds to wait for a concurrent run before giving up.
_LOCK_TIMEOUT = 30

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def _slug(branch: str) -> str:
    return _UNSAFE.sub("_", branch).strip("._") or "_"


def lock_path(git_dir: str, source: str, target: str) -> str:
    """Path of the lock file for one source/target pair."""
    return os.path.join(git_dir, "power-pr", f"{_slug(source)}..{_slug(target)}.lock")


@contextmanager
def pair_lock(git_dir: str, source: str, target: str, timeout: float = _LOCK_TIMEOUT):
    """Hold an exclusive lock for the source/target pair for the duration of the block.

    Raises OperationError if another run keeps the lock for longer than
    ``timeout`` seconds.
    """
    path = lock_path(git_dir, source, target)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    lock = FileLock(path, timeout=timeout)

    try:
        lock.acquire()
    except Timeout:
        raise OperationError(
            f"Another power-pr run for '{source}' -> '{target}' is in progress "
            f"(lock held at '{path}')."
        ) from None

    try:
        yield
    finally:
        lock.release()
