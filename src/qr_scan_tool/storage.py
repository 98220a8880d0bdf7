"""Local key-value slots used to persist the scan history."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class Slot(Protocol):
    """A single named blob in local storage."""

    key: str

    def read(self) -> Optional[str]:
        ...

    def write(self, blob: str) -> None:
        ...


class FileSlot:
    """Store one slot as ``<directory>/<key>.json``.

    Writes go through a temporary file in the same directory and are moved into
    place with :func:`os.replace`, so readers see either the previous or the new
    contents, never a partial file.
    """

    __slots__ = ("directory", "key")

    def __init__(self, directory: str | os.PathLike[str], key: str):
        self.directory = Path(directory)
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def read(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Unable to read slot %s: %s", self.path, exc)
            return None

    def write(self, blob: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.key}.", suffix=".tmp", dir=self.directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(blob)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"FileSlot({str(self.path)!r})"


__all__ = ["Slot", "FileSlot"]
