"""Error taxonomy shared by scanner, extractor and verifier.

Every error carries a single human-readable message; callers that only need to
report a failure catch ``UpdataError``.
"""
from __future__ import annotations


class UpdataError(Exception):
    """Base error: a message for the user, nothing else."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class FormatError(UpdataError, ValueError):
    """Bytes do not follow the container layout."""


class InvalidPreamble(FormatError):
    """The container does not start with the all-zero preamble."""


class ChunkIOError(UpdataError):
    """Open/read/seek/write failure."""

    @classmethod
    def from_os_error(cls, error: OSError) -> "ChunkIOError":
        kind = type(error).__name__
        return cls(f"IO error (kind: {kind}): {error}")


class ShortRead(ChunkIOError):
    """A bounded copy hit end-of-file before the expected size."""


class AlreadyExists(UpdataError):
    """Refusing to overwrite an existing output file."""


class TextDecodeError(UpdataError):
    """A fixed-width text field is not valid UTF-8."""
