"""Exception types raised by the API build pipeline."""

from __future__ import annotations


class OptionsApiError(RuntimeError):
    """Base class for pipeline failures."""


class SourceReadError(OptionsApiError):
    """The input feed could not be read or decoded (fatal for the run)."""


class ArtifactWriteError(OptionsApiError):
    """An artifact could not be persisted."""


class NonRetryableWriteError(ArtifactWriteError):
    """A write failure that retrying cannot fix."""


class ArtifactTooLargeError(NonRetryableWriteError):
    """Serialized artifact exceeds the configured size ceiling."""

    def __init__(self, location: str, size: int, max_size: int) -> None:
        super().__init__(
            f"File too large: {location} is {size} bytes > {max_size} bytes"
        )
        self.location = location
        self.size = size
        self.max_size = max_size


class InvalidLocationError(NonRetryableWriteError):
    """Sink location is absolute or escapes the sink root."""
