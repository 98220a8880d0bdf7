"""Configuration data structures for the QR Scan Tool."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


def _default_data_dir() -> Path:
    override = os.environ.get("QRSCAN_DATA_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".qr_scan_tool"


@dataclass(slots=True)
class AppConfig:
    """Static configuration options used across the application."""

    app_name: str = "QRScanTool"
    app_version: str = "1.0"
    history_key: str = "QRScanResults"
    data_dir: Path = field(default_factory=_default_data_dir)
    camera_frame_skip: int = 5
    qr_error_correction: str = "H"
    qr_scale: int = 10
    qr_border: int = 4
    max_frame_size: int = 1_920
    log_level: str = field(
        default_factory=lambda: os.environ.get("QRSCAN_LOG_LEVEL", "INFO")
    )


@dataclass(slots=True)
class CameraConfig:
    """Runtime camera configuration used by the camera worker."""

    width: int = 640
    height: int = 480

    def get_backends(self) -> List[int]:
        """Return a list of OpenCV backend identifiers to try.

        OpenCV is imported lazily so that the core package stays importable
        without it.
        """

        try:  # pragma: no cover - depends on the environment
            import cv2  # type: ignore
        except Exception:  # pragma: no cover - we simply fall back to an empty list
            return []

        return [
            getattr(cv2, name)
            for name in ("CAP_DSHOW", "CAP_MSMF", "CAP_V4L2", "CAP_ANY")
            if hasattr(cv2, name)
        ]

    def get_indices(self) -> List[int]:
        """Return candidate camera indices."""

        return [0, 1, 2]


@dataclass(slots=True)
class StyleConfig:
    """Simple grouping of UI styling constants."""

    bg_primary: str = "#2E3440"
    bg_secondary: str = "#3B4252"
    bg_tertiary: str = "#434C5E"
    fg_primary: str = "#D8DEE9"
    fg_secondary: str = "#ECEFF4"
    accent_primary: str = "#88C0D0"
    accent_secondary: str = "#5E81AC"
    warning: str = "#BF616A"
    success: str = "#A3BE8C"
    border: str = "#4C566A"
    font_family: str = "Segoe UI, sans-serif"
    font_size: int = 14
    font_mono: str = "Courier New, monospace"


__all__ = ["AppConfig", "CameraConfig", "StyleConfig"]
