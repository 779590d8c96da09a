"""Artifact sinks.

A sink stores opaque byte payloads at relative, POSIX-style locations
(e.g. `symbols/AAPL.json`). The pipeline only depends on the `SinkWriter`
protocol; `LocalFileSink` is the filesystem implementation.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Protocol

from .errors import InvalidLocationError
from .types import WriteReceipt

logger = logging.getLogger(__name__)


class SinkWriter(Protocol):
    def ensure_location(self, location: str) -> None:
        """Make `location` (a directory-like prefix) ready to receive writes."""
        ...

    def write(self, location: str, payload: bytes) -> WriteReceipt:
        """Store `payload` at `location`, replacing any previous content."""
        ...


class LocalFileSink:
    """Write artifacts under a root directory with atomic replace semantics.

    Each write goes to a temp file in the target directory, is fsynced, then
    moved into place with `os.replace`, so readers never see a partial file.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"LocalFileSink(root={str(self.root)!r})"

    def resolve(self, location: str) -> Path:
        """Map a relative location to a path under `root`."""
        rel = PurePosixPath(location)
        if rel.is_absolute() or ".." in rel.parts:
            raise InvalidLocationError(f"Invalid sink location: {location!r}")
        return self.root.joinpath(*rel.parts)

    def ensure_location(self, location: str) -> None:
        path = self.resolve(location)
        path.mkdir(parents=True, exist_ok=True)
        logger.debug("Ensured sink location %s", path)

    def write(self, location: str, payload: bytes) -> WriteReceipt:
        path = self.resolve(location)
        if not PurePosixPath(location).parts:
            raise InvalidLocationError("Sink location must name a file")

        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path: str | None = None

        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                delete=False,
                dir=str(path.parent),
                prefix=path.name + ".",
                suffix=".tmp",
            ) as f:
                tmp_path = f.name
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())

            os.replace(tmp_path, path)
            tmp_path = None
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass

        return WriteReceipt(size=len(payload))
