"""Classification of decoded QR content."""
from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    """Semantic category assigned to scanned content."""

    URL = "url"
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    WIFI = "wifi"
    # Never returned by ``classify``; kept so stored data and the UI can name it.
    UNKNOWN = "unknown"


_PREFIX_RULES = (
    (("http://", "https://"), Category.URL),
    (("mailto:",), Category.EMAIL),
    (("tel:", "phone:"), Category.PHONE),
    (("WIFI:",), Category.WIFI),
)


def classify(content: str) -> Category:
    """Return the :class:`Category` for ``content``.

    Prefix rules are checked in order and are case-sensitive.  Content that
    matches no prefix but contains both ``@`` and ``.`` is treated as an email
    address; everything else, including the empty string, is plain text.
    """

    for prefixes, category in _PREFIX_RULES:
        if content.startswith(prefixes):
            return category
    if "@" in content and "." in content:
        return Category.EMAIL
    return Category.TEXT


__all__ = ["Category", "classify"]
