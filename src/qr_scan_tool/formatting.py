"""Text helpers used when generating QR codes and opening scanned links."""
from __future__ import annotations

from enum import Enum
from typing import Optional


class GeneratorCategory(str, Enum):
    """Kinds of payload offered by the QR generator."""

    TEXT = "text"
    URL = "url"
    EMAIL = "email"
    PHONE = "phone"
    WIFI = "wifi"


_WEB_SCHEMES = ("http://", "https://")


def format_for_generation(text: str, category: GeneratorCategory) -> str:
    """Return ``text`` with the scheme prefix expected for ``category``.

    Text that already carries the prefix is returned unchanged, so the
    function is idempotent.  Categories without a prefix rule pass through.
    """

    if category is GeneratorCategory.URL:
        if not text.startswith(_WEB_SCHEMES):
            return "https://" + text
    elif category is GeneratorCategory.EMAIL:
        if not text.startswith("mailto:"):
            return "mailto:" + text
    elif category is GeneratorCategory.PHONE:
        if not text.startswith("tel:"):
            return "tel:" + text
    return text


def browser_url(content: str) -> Optional[str]:
    """Return the URL to open for ``content`` or ``None`` if it is not a link.

    Bare domains such as ``example.com`` are opened over HTTPS.
    """

    if content.startswith(_WEB_SCHEMES):
        return content
    if "." in content and " " not in content and len(content) > 3:
        return "https://" + content
    return None


__all__ = ["GeneratorCategory", "format_for_generation", "browser_url"]
