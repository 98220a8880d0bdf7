"""Display metadata for categories, kept apart from the classification logic."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .classify import Category
from .formatting import GeneratorCategory


@dataclass(frozen=True, slots=True)
class CategoryStyle:
    label: str
    icon: str
    color: str
    placeholder: str = ""


CATEGORY_STYLES: Dict[Category, CategoryStyle] = {
    Category.URL: CategoryStyle("URL", "safari", "#5E81AC"),
    Category.TEXT: CategoryStyle("Text", "text-bubble", "#A3BE8C"),
    Category.EMAIL: CategoryStyle("Email", "envelope", "#D08770"),
    Category.PHONE: CategoryStyle("Phone", "phone", "#B48EAD"),
    Category.WIFI: CategoryStyle("Wi-Fi", "wifi", "#88C0D0"),
    Category.UNKNOWN: CategoryStyle("Other", "qrcode", "#4C566A"),
}

GENERATOR_STYLES: Dict[GeneratorCategory, CategoryStyle] = {
    GeneratorCategory.TEXT: CategoryStyle(
        "Text", "text-bubble", "#A3BE8C", "Enter some text..."
    ),
    GeneratorCategory.URL: CategoryStyle(
        "URL", "safari", "#5E81AC", "https://example.com"
    ),
    GeneratorCategory.EMAIL: CategoryStyle(
        "Email", "envelope", "#D08770", "example@email.com"
    ),
    GeneratorCategory.PHONE: CategoryStyle(
        "Phone", "phone", "#B48EAD", "090-1234-5678"
    ),
    GeneratorCategory.WIFI: CategoryStyle(
        "Wi-Fi", "wifi", "#88C0D0", "WIFI:T:WPA;S:network;P:password;;"
    ),
}


def style_for(category: Category) -> CategoryStyle:
    """Return the display style for ``category``, falling back to ``UNKNOWN``."""

    return CATEGORY_STYLES.get(category, CATEGORY_STYLES[Category.UNKNOWN])


__all__ = ["CategoryStyle", "CATEGORY_STYLES", "GENERATOR_STYLES", "style_for"]
