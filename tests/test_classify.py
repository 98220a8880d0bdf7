from __future__ import annotations

import pytest

from qr_scan_tool.classify import Category, classify
from qr_scan_tool.presentation import CATEGORY_STYLES, style_for


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ("https://example.com", Category.URL),
        ("http://example.com/path?q=1", Category.URL),
        ("mailto:someone@example.com", Category.EMAIL),
        ("tel:+81-90-1234-5678", Category.PHONE),
        ("phone:0901234567", Category.PHONE),
        ("WIFI:T:WPA;S:home;P:secret;;", Category.WIFI),
        ("someone@example.com", Category.EMAIL),
        ("hello world", Category.TEXT),
        ("", Category.TEXT),
    ],
)
def test_classify_rules(content: str, expected: Category):
    assert classify(content) is expected


def test_prefix_checks_are_case_sensitive():
    assert classify("HTTPS://EXAMPLE") is Category.TEXT
    assert classify("wifi:T:WPA;S:home;;") is Category.TEXT
    assert classify("Tel:123") is Category.TEXT


def test_prefix_rules_win_over_email_heuristic():
    assert classify("https://user@example.com") is Category.URL
    assert classify("WIFI:S:cafe@corner.net;;") is Category.WIFI


def test_email_heuristic_needs_both_markers():
    assert classify("user@localhost") is Category.TEXT
    assert classify("example.com") is Category.TEXT


def test_unknown_is_never_produced():
    samples = ["", "x", "@.", "ftp://host", "geo:35.0,139.0", "SMSTO:123:hi"]
    assert all(classify(sample) is not Category.UNKNOWN for sample in samples)


def test_every_category_has_display_style():
    assert set(CATEGORY_STYLES) == set(Category)
    assert style_for(Category.UNKNOWN).label == "Other"
    assert style_for(Category.WIFI).icon == "wifi"
