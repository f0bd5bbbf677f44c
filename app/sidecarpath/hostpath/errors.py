"""Exceptions for host-path allocation and reclamation.

Skip conditions during a sweep (format mismatch, too new, mounted,
non-empty) are not errors and never raise.
"""


class HostPathError(Exception):
    """Base exception for host-path allocation and reclamation errors."""


class InvalidInputError(HostPathError, ValueError):
    """Raised when allocation input cannot produce a usable host path.

    The admission webhook must reject the Pod instead of admitting it
    with an unusable mount path.
    """


class PreconditionError(HostPathError):
    """Raised when the reclaimer cannot safely start.

    Covers a missing base directory, unavailable OS facilities and
    insufficient privilege. No scan is performed.
    """


class DeletionFailure(HostPathError):
    """Raised when an empty-only removal of a single directory fails.

    Non-fatal: the sweep logs it, counts it and moves on. The directory
    stays a candidate for the next run.

    Attributes:
        path: Directory that could not be removed.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to remove {path}: {reason}")
        self.path = path
        self.reason = reason
