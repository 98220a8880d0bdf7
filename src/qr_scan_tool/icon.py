"""Application icon helpers."""
from __future__ import annotations


def create_icon(size: int = 64, color: str = "#88C0D0"):  # pragma: no cover - requires PyQt at runtime
    """Create a :class:`~PyQt5.QtGui.QIcon` showing three finder squares.

    The import is performed lazily so that automated tests do not require a
    graphical backend.
    """

    try:
        from PyQt5.QtGui import QColor, QIcon, QPainter, QPixmap
        from PyQt5.QtCore import Qt
    except Exception as exc:  # pragma: no cover - depends on environment
        raise RuntimeError("PyQt5 is required to generate the application icon") from exc

    pixmap = QPixmap(size, size)
    pixmap.fill(Qt.transparent)

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing)
    painter.setPen(Qt.NoPen)
    painter.setBrush(QColor("#2E3440"))
    painter.drawRoundedRect(0, 0, size, size, size // 8, size // 8)

    cell = size // 8
    finder = cell * 3
    for x, y in ((cell, cell), (size - cell - finder, cell), (cell, size - cell - finder)):
        painter.setBrush(QColor(color))
        painter.drawRect(x, y, finder, finder)
        painter.setBrush(QColor("#2E3440"))
        painter.drawRect(x + cell // 2, y + cell // 2, finder - cell, finder - cell)
        painter.setBrush(QColor(color))
        painter.drawRect(x + cell, y + cell, cell, cell)

    painter.setBrush(QColor(color))
    painter.drawRect(size - cell * 3, size - cell * 3, cell * 2, cell * 2)
    painter.end()

    return QIcon(pixmap)


__all__ = ["create_icon"]
