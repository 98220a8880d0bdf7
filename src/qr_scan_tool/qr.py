"""QR code generation and decoding utilities."""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any, Optional

from .config import AppConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class QRCodeManager:
    """Encode text with :mod:`segno` and decode images with OpenCV and pyzbar."""

    config: AppConfig

    def is_available(self) -> bool:
        try:
            import segno  # type: ignore  # noqa: F401
        except Exception:
            return False
        return True

    @staticmethod
    def decoder_available() -> bool:
        try:
            import cv2  # type: ignore  # noqa: F401
            from pyzbar import pyzbar  # type: ignore  # noqa: F401
        except Exception:
            return False
        return True

    def render_png(self, text: str) -> Optional[bytes]:
        """Return PNG bytes for a QR code holding ``text`` or ``None``.

        ``None`` is returned when segno is missing or rejects the data, for
        example because it does not fit into a single QR symbol.
        """

        try:
            import segno  # type: ignore
        except Exception:
            logger.warning("QR generation requires segno")
            return None

        try:
            qr = segno.make(
                text.encode("utf-8"),
                error=self.config.qr_error_correction,
                micro=False,
            )
            buffer = io.BytesIO()
            qr.save(
                buffer,
                kind="png",
                scale=self.config.qr_scale,
                border=self.config.qr_border,
            )
        except Exception:
            logger.exception("QR encoder failed for %d characters", len(text))
            return None

        return buffer.getvalue()

    def save_png(self, text: str, path: str) -> bool:
        """Write a QR code for ``text`` to ``path``; return ``False`` on failure."""

        data = self.render_png(text)
        if data is None:
            return False
        with open(path, "wb") as handle:
            handle.write(data)
        return True

    def to_qpixmap(self, text: str):  # pragma: no cover - requires PyQt at runtime
        """Return a ``QPixmap`` for ``text`` or ``None`` if no image was produced."""

        from PyQt5.QtGui import QImage, QPixmap

        data = self.render_png(text)
        if data is None:
            return None

        image = QImage()
        if not image.loadFromData(data):
            logger.error("Failed to load QR image into QImage")
            return None
        return QPixmap.fromImage(image)

    @staticmethod
    def decode_payload(data: bytes) -> str:
        """Return decoded symbol bytes as text."""

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return data.decode("latin-1")

    def decode_frame(self, frame: Any, cv2: Any = None, pyzbar: Any = None) -> Optional[str]:
        """Return the first QR payload found in an OpenCV ``frame``.

        The grayscale frame is tried as is, blurred and Otsu thresholded.
        """

        if cv2 is None or pyzbar is None:
            import cv2  # type: ignore
            from pyzbar import pyzbar  # type: ignore

        gray = frame if len(frame.shape) == 2 else cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        candidates = (
            lambda: gray,
            lambda: cv2.GaussianBlur(gray, (5, 5), 0),
            lambda: cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)[1],
        )
        for build in candidates:
            decoded = pyzbar.decode(build())
            if decoded:
                return self.decode_payload(bytes(decoded[0].data))
        return None

    def read_from_file(self, path: str) -> Optional[str]:
        """Decode the first QR code in the image at ``path``."""

        try:
            import cv2  # type: ignore
            from pyzbar import pyzbar  # type: ignore
        except Exception:
            logger.warning("Image scanning requires opencv-python and pyzbar")
            return None

        image = cv2.imread(path)
        if image is None:
            logger.warning("Unable to read image %s", path)
            return None

        return self.decode_frame(image, cv2, pyzbar)


__all__ = ["QRCodeManager"]
