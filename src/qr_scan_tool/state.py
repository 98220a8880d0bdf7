"""Runtime state shared between the windows of the QR Scan Tool."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class AppState:
    """Mutable UI state.  Scan history lives in :class:`HistoryStore`."""

    is_scanning: bool = False
    camera_available: bool = False
    decoder_available: bool = False
    generator_available: bool = False
    last_scanned_code: str = ""
    generated_payload: Optional[str] = None


__all__ = ["AppState"]
