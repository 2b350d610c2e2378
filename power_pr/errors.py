"""Exception types for power-pr.

Every error carries the process exit code the CLI should terminate with, so
the pipeline can turn any failure into a single diagnostic line plus a code.
"""

from __future__ import annotations


class PowerPrError(Exception):
    """Base class for all power-pr specific errors."""

    exit_code = 1


class UsageError(PowerPrError):
    """Malformed invocation reported by the argument parser."""

    exit_code = 2


class ValidationError(PowerPrError):
    """An option value is not acceptable (unknown flag, bad strategy, bad timeout)."""


class EnvironmentCheckError(PowerPrError):
    """Required tooling or repository context is missing."""


class PreconditionError(PowerPrError):
    """The repository is not in a state the workflow can act on."""


class OperationError(PowerPrError):
    """A mutating step could not be completed."""


class CommandError(PowerPrError):
    """An external command exited non-zero."""

    def __init__(
        self,
        message: str,
        cmd: list[str] | None = None,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.cmd = cmd or []
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def output(self) -> str:
        """Combined upstream output, stderr first."""
        return "\n".join(part.strip() for part in (self.stderr, self.stdout) if part.strip())


class GitError(CommandError):
    """Raised when git operations fail."""


class ForgeError(CommandError):
    """Raised when gh operations fail."""


class ToolNotFoundError(PowerPrError):
    """The executable for an external command is not installed."""


class CommandTimeoutError(PowerPrError):
    """An external command exceeded its time limit."""
