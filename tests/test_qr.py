from __future__ import annotations

import sys
import types

import pytest

from qr_scan_tool.config import AppConfig
from qr_scan_tool.qr import QRCodeManager


def _install_fake_segno(monkeypatch, calls, fail=None):
    class DummyQR:
        def save(self, stream, *_args, **kwargs):
            calls.append(kwargs)
            stream.write(b"\x89PNG fake")

    def fake_make(data, **kwargs):
        if fail is not None:
            raise fail
        calls.append({"data": data, **kwargs})
        return DummyQR()

    monkeypatch.setitem(sys.modules, "segno", types.SimpleNamespace(make=fake_make))


def test_render_png_uses_configured_encoder_settings(monkeypatch):
    calls = []
    _install_fake_segno(monkeypatch, calls)

    manager = QRCodeManager(AppConfig())
    data = manager.render_png("こんにちは")

    assert data == b"\x89PNG fake"
    assert calls[0]["data"] == "こんにちは".encode("utf-8")
    assert calls[0]["error"] == "H"
    assert calls[1] == {"kind": "png", "scale": 10, "border": 4}


def test_render_png_returns_none_on_encoder_failure(monkeypatch):
    _install_fake_segno(monkeypatch, [], fail=ValueError("data too large"))

    manager = QRCodeManager(AppConfig())

    assert manager.render_png("x" * 10_000) is None


def test_save_png_writes_file(monkeypatch, tmp_path):
    _install_fake_segno(monkeypatch, [])

    manager = QRCodeManager(AppConfig())
    output = tmp_path / "qr.png"

    assert manager.save_png("payload", str(output))
    assert output.read_bytes() == b"\x89PNG fake"


def test_save_png_reports_failure_without_writing(monkeypatch, tmp_path):
    _install_fake_segno(monkeypatch, [], fail=ValueError("nope"))

    manager = QRCodeManager(AppConfig())
    output = tmp_path / "qr.png"

    assert not manager.save_png("payload", str(output))
    assert not output.exists()


def test_decode_payload_falls_back_to_latin1():
    assert QRCodeManager.decode_payload("テスト".encode("utf-8")) == "テスト"
    assert QRCodeManager.decode_payload(b"caf\xe9") == "café"


def test_decode_frame_tries_variants_until_found():
    np = pytest.importorskip("numpy")

    class FakeCV2:
        COLOR_BGR2GRAY = 6
        THRESH_BINARY = 0
        THRESH_OTSU = 8

        def cvtColor(self, frame, _code):
            return frame[:, :, 0]

        def GaussianBlur(self, gray, *_args):
            return gray + 1

        def threshold(self, gray, *_args):
            return 0, gray + 2

    class FakeSymbol:
        data = b"https://example.com"

    class FakePyzbar:
        def __init__(self):
            self.calls = 0

        def decode(self, image):
            self.calls += 1
            return [FakeSymbol()] if int(image[0, 0]) == 2 else []

    pyzbar = FakePyzbar()
    frame = np.zeros((4, 4, 3), dtype=np.uint8)

    text = QRCodeManager(AppConfig()).decode_frame(frame, FakeCV2(), pyzbar)

    assert text == "https://example.com"
    assert pyzbar.calls == 3


def test_generated_code_decodes_back():
    segno = pytest.importorskip("segno")
    cv2 = pytest.importorskip("cv2")
    pyzbar = pytest.importorskip("pyzbar.pyzbar")
    np = pytest.importorskip("numpy")
    del segno, pyzbar

    manager = QRCodeManager(AppConfig())
    data = manager.render_png("https://example.com/scan")
    assert data is not None

    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert manager.decode_frame(image) == "https://example.com/scan"
