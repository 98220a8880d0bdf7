"""QR Scan Tool package."""
from __future__ import annotations

from .classify import Category, classify
from .config import AppConfig, CameraConfig, StyleConfig
from .formatting import GeneratorCategory, browser_url, format_for_generation
from .history import HistoryChange, HistoryStore, ScanRecord
from .qr import QRCodeManager
from .state import AppState
from .storage import FileSlot

__all__ = [
    "AppConfig",
    "CameraConfig",
    "StyleConfig",
    "AppState",
    "Category",
    "classify",
    "GeneratorCategory",
    "browser_url",
    "format_for_generation",
    "HistoryChange",
    "HistoryStore",
    "ScanRecord",
    "FileSlot",
    "QRCodeManager",
]

__version__ = "1.0"
