from __future__ import annotations

import functools
import types

import pytest

pytest.importorskip("PyQt5.QtWidgets")

from qr_scan_tool.app import MainWindow  # noqa: E402
from qr_scan_tool.state import AppState  # noqa: E402


class FakeSignal:
    def __init__(self):
        self.callbacks = []

    def connect(self, callback):
        self.callbacks.append(callback)

    def emit(self):
        for callback in self.callbacks:
            callback()


class FakeThread:
    def __init__(self, stops_in_time: bool):
        self._stops_in_time = stops_in_time
        self.finished = FakeSignal()

    def isRunning(self):
        return True

    def quit(self):
        pass

    def wait(self, _timeout):
        return self._stops_in_time


class FakeButton:
    def setEnabled(self, _enabled):
        pass


def _window(thread: FakeThread):
    window = types.SimpleNamespace(
        _camera_thread=thread,
        _camera_worker=object(),
        _stale_cameras=[],
        _state=AppState(is_scanning=True, camera_available=True),
        _camera_start_btn=FakeButton(),
        _camera_stop_btn=FakeButton(),
    )
    window._forget_stale_camera = functools.partial(MainWindow._forget_stale_camera, window)
    return window


def test_stuck_camera_thread_stays_referenced_until_finished():
    thread = FakeThread(stops_in_time=False)
    window = _window(thread)
    worker = window._camera_worker

    MainWindow._release_camera_thread(window)

    assert window._camera_thread is None
    assert window._stale_cameras == [(thread, worker)]
    assert not window._state.is_scanning

    thread.finished.emit()
    assert window._stale_cameras == []


def test_stopped_camera_thread_is_dropped():
    window = _window(FakeThread(stops_in_time=True))

    MainWindow._release_camera_thread(window)

    assert window._camera_thread is None
    assert window._stale_cameras == []
