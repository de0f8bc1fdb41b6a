"""
Error taxonomy and the process exit-status contract.

Every abort raised by the engine derives from :class:`ThinkerError` and
carries the exit status the CLI reports for it.
"""

from __future__ import annotations

from enum import IntEnum


class ExitStatus(IntEnum):
    SUCCESS = 0
    GENERAL_ERROR = 1
    AMBIGUOUS = 2
    VERIFICATION_FAILED = 3
    ALREADY_PATCHED = 4
    INVALID_INPUT = 5
    IO_ERROR = 6


class ThinkerError(Exception):
    """Base class for every error that aborts a run."""

    exit_status = ExitStatus.GENERAL_ERROR


class InvalidInputError(ThinkerError):
    """Raised when a styling value fails validation."""

    exit_status = ExitStatus.INVALID_INPUT


class TargetNotFoundError(ThinkerError):
    """Raised when the target program cannot be located or read."""


class ParseError(ThinkerError):
    """Raised when no supported grammar accepts the source text."""

    def __init__(self, message: str, offset: int = -1) -> None:
        super().__init__(message)
        self.offset = offset


class AmbiguousMatchError(ThinkerError):
    """Raised when a site has more than one unpatched candidate."""

    exit_status = ExitStatus.AMBIGUOUS

    def __init__(self, site: str, count: int) -> None:
        super().__init__(
            f"Ambiguous: found {count} unpatched candidates for {site}"
        )
        self.site = site
        self.count = count


class OverlappingEditsError(ThinkerError):
    """Raised when two edits of one pass touch the same bytes."""


class VerificationError(ThinkerError):
    """Raised when the edited text does not re-prove every requested patch."""

    exit_status = ExitStatus.VERIFICATION_FAILED

    def __init__(self, message: str, failures: list[str] | None = None) -> None:
        super().__init__(message)
        self.failures = failures or []


class AlreadyPatchedError(ThinkerError):
    """Raised when every requested site is already patched."""

    exit_status = ExitStatus.ALREADY_PATCHED


class NothingToPatchError(ThinkerError):
    """Raised when no requested site could be matched at all."""


class PatchIOError(ThinkerError):
    """Raised when a backup, write or restore fails at the filesystem level."""

    exit_status = ExitStatus.IO_ERROR
