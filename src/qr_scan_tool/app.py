"""PyQt5 user interface for the QR Scan Tool."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt5.QtCore import QObject, QThread, QUrl, Qt, pyqtSignal
from PyQt5.QtGui import QDesktopServices, QImage, QPixmap
from PyQt5.QtWidgets import (
    QApplication,
    QComboBox,
    QDialog,
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QTabWidget,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from .config import AppConfig, CameraConfig, StyleConfig
from .formatting import GeneratorCategory, browser_url, format_for_generation
from .history import HistoryChange, HistoryStore, ScanRecord
from .icon import create_icon
from .presentation import GENERATOR_STYLES, style_for
from .qr import QRCodeManager
from .state import AppState
from .storage import FileSlot

logger = logging.getLogger(__name__)


class CameraWorker(QObject):  # pragma: no cover - requires Qt event loop
    """Background worker that streams frames from the system camera."""

    frame_captured = pyqtSignal(object)
    decoded = pyqtSignal(str)
    status = pyqtSignal(str)
    finished = pyqtSignal()

    def __init__(self, config: AppConfig, camera_config: CameraConfig, qr: QRCodeManager):
        super().__init__()
        self._config = config
        self._camera_config = camera_config
        self._qr = qr
        self._running = False
        self._cv2 = None
        self._pyzbar = None

    def stop(self) -> None:
        self._running = False

    def run(self) -> None:
        try:
            import cv2  # type: ignore
            from pyzbar import pyzbar  # type: ignore
        except Exception:
            self.status.emit("Camera dependencies not installed")
            self.finished.emit()
            return

        self._cv2 = cv2
        self._pyzbar = pyzbar

        capture = self._open_capture()
        if capture is None:
            logger.warning("No usable camera found")
            self.status.emit("Unable to access camera")
            self.finished.emit()
            return

        self._running = True
        frame_skip = max(1, self._config.camera_frame_skip)
        frame_counter = 0

        self.status.emit("Camera active, point it at a QR code")

        try:
            while self._running:
                success, frame = capture.read()
                if not success or frame is None:
                    self.status.emit("Camera feed unavailable")
                    break

                frame = self._resize_frame(frame)
                self.frame_captured.emit(frame)

                frame_counter += 1
                if frame_counter % frame_skip:
                    continue

                text = self._qr.decode_frame(frame, self._cv2, self._pyzbar)
                if text is not None:
                    self.decoded.emit(text)
                    break
        finally:
            self._running = False
            capture.release()
            self.finished.emit()

    def _open_capture(self):
        assert self._cv2 is not None
        config = self._camera_config

        default_backend = getattr(self._cv2, "CAP_ANY", 0)
        for backend in config.get_backends() or [default_backend]:
            for index in config.get_indices():
                try:
                    capture = self._cv2.VideoCapture(index, backend)
                except TypeError:
                    capture = self._cv2.VideoCapture(index)
                if not capture or not capture.isOpened():
                    if capture:
                        capture.release()
                    continue

                capture.set(self._cv2.CAP_PROP_FRAME_WIDTH, config.width)
                capture.set(self._cv2.CAP_PROP_FRAME_HEIGHT, config.height)
                logger.debug("Opened camera %d with backend %s", index, backend)
                return capture
        return None

    def _resize_frame(self, frame):
        assert self._cv2 is not None
        max_dim = max(frame.shape[:2])
        limit = self._config.max_frame_size
        if max_dim <= limit:
            return frame

        scale = limit / float(max_dim)
        new_size = (int(frame.shape[1] * scale), int(frame.shape[0] * scale))
        return self._cv2.resize(frame, new_size)


def copy_to_clipboard(text: str) -> None:  # pragma: no cover - requires Qt event loop
    QApplication.clipboard().setText(text)


def open_in_browser(content: str) -> bool:  # pragma: no cover - requires Qt event loop
    url = browser_url(content)
    if url is None:
        return False
    return QDesktopServices.openUrl(QUrl(url))


class ResultDialog(QDialog):  # pragma: no cover - requires Qt event loop
    """Shows a freshly scanned record with copy and open actions."""

    def __init__(self, record: ScanRecord, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle("Scan Result")
        self.setMinimumWidth(420)
        self._record = record

        style = style_for(record.category)
        layout = QVBoxLayout(self)

        header = QLabel(f"[{style.label}]")
        header.setObjectName("HeaderLabel")
        header.setStyleSheet(f"color: {style.color};")
        header.setAlignment(Qt.AlignCenter)

        content = QTextEdit()
        content.setReadOnly(True)
        content.setPlainText(record.content)

        buttons = QHBoxLayout()
        copy_btn = QPushButton("Copy")
        open_btn = QPushButton("Open")
        open_btn.setEnabled(browser_url(record.content) is not None)
        done_btn = QPushButton("Done")
        done_btn.setObjectName("AccentButton")
        buttons.addWidget(copy_btn)
        buttons.addWidget(open_btn)
        buttons.addStretch()
        buttons.addWidget(done_btn)

        layout.addWidget(header)
        layout.addWidget(content)
        layout.addLayout(buttons)

        copy_btn.clicked.connect(lambda: copy_to_clipboard(record.content))
        open_btn.clicked.connect(lambda: open_in_browser(record.content))
        done_btn.clicked.connect(self.accept)


class MainWindow(QWidget):  # pragma: no cover - requires Qt event loop
    def __init__(
        self,
        config: AppConfig,
        state: AppState,
        style: StyleConfig,
        camera_config: CameraConfig,
        history: HistoryStore,
    ):
        super().__init__()
        self._config = config
        self._state = state
        self._style = style
        self._camera_config = camera_config
        self._history = history
        self._qr = QRCodeManager(config)

        self._state.decoder_available = self._qr.decoder_available()
        self._state.camera_available = self._state.decoder_available
        self._state.generator_available = self._qr.is_available()

        self._camera_thread: QThread | None = None
        self._camera_worker: CameraWorker | None = None
        # Threads that did not stop in time; referenced until they finish.
        self._stale_cameras: list[tuple[QThread, CameraWorker | None]] = []
        self._cv2_module = None

        self._setup_ui()
        self._unsubscribe = self._history.subscribe(self._on_history_changed)
        self._refresh_history()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)

        self._tabs = QTabWidget()
        self._tabs.addTab(self._create_scan_tab(), "Scan")
        self._tabs.addTab(self._create_generate_tab(), "Generate")
        self._tabs.addTab(self._create_history_tab(), "History")

        layout.addWidget(self._tabs)

    # -- scan tab ----------------------------------------------------------------
    def _create_scan_tab(self) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        group = QGroupBox("Camera")
        group_layout = QVBoxLayout(group)

        self._camera_display = QLabel("Camera preview will appear here")
        self._camera_display.setAlignment(Qt.AlignCenter)
        self._camera_display.setMinimumSize(480, 320)
        self._camera_display.setObjectName("qrDisplayLabel")

        self._camera_status = QLabel()
        self._camera_status.setObjectName("SubtleLabel")

        buttons = QHBoxLayout()
        self._camera_start_btn = QPushButton("Start Scanning")
        self._camera_start_btn.setObjectName("AccentButton")
        self._camera_stop_btn = QPushButton("Stop")
        self._camera_stop_btn.setEnabled(False)
        image_btn = QPushButton("Scan from Image...")
        buttons.addWidget(self._camera_start_btn)
        buttons.addWidget(self._camera_stop_btn)
        buttons.addStretch()
        buttons.addWidget(image_btn)

        group_layout.addWidget(self._camera_display)
        group_layout.addWidget(self._camera_status)
        group_layout.addLayout(buttons)
        layout.addWidget(group)

        if self._state.camera_available:
            try:
                import cv2  # type: ignore

                self._cv2_module = cv2
            except Exception:
                self._state.camera_available = False

        if not self._state.camera_available:
            self._camera_status.setText("Install opencv-python and pyzbar to enable scanning")
            self._camera_start_btn.setEnabled(False)
            image_btn.setEnabled(False)

        self._camera_start_btn.clicked.connect(self._start_camera)
        self._camera_stop_btn.clicked.connect(self._stop_camera)
        image_btn.clicked.connect(self._scan_image_file)
        return tab

    def _start_camera(self) -> None:
        if not self._state.camera_available or self._camera_thread:
            return

        self._camera_status.setText("Initialising camera...")
        self._camera_start_btn.setEnabled(False)
        self._camera_stop_btn.setEnabled(True)
        self._state.is_scanning = True

        worker = CameraWorker(self._config, self._camera_config, self._qr)
        thread = QThread()
        worker.moveToThread(thread)

        thread.started.connect(worker.run)
        worker.frame_captured.connect(self._on_camera_frame)
        worker.decoded.connect(self._on_camera_decoded)
        worker.status.connect(self._camera_status.setText)
        worker.finished.connect(self._on_camera_finished)
        thread.finished.connect(thread.deleteLater)

        self._camera_thread = thread
        self._camera_worker = worker
        thread.start()

    def _stop_camera(self) -> None:
        if self._camera_worker:
            self._camera_worker.stop()
        self._release_camera_thread()

        self._camera_display.clear()
        self._camera_display.setText("Camera preview will appear here")
        if "QR detected" not in self._camera_status.text():
            self._camera_status.setText("Camera stopped")

    def _release_camera_thread(self) -> None:
        thread, worker = self._camera_thread, self._camera_worker
        if thread and thread.isRunning():
            thread.quit()
            if not thread.wait(1500):
                logger.warning("Camera thread did not stop within 1.5s")
                self._stale_cameras.append((thread, worker))
                thread.finished.connect(lambda: self._forget_stale_camera(thread))
        self._camera_thread = None
        self._camera_worker = None
        self._state.is_scanning = False
        self._camera_start_btn.setEnabled(self._state.camera_available)
        self._camera_stop_btn.setEnabled(False)

    def _on_camera_frame(self, frame) -> None:
        if self._cv2_module is None:
            return

        rgb = self._cv2_module.cvtColor(frame, self._cv2_module.COLOR_BGR2RGB)
        height, width, channel = rgb.shape
        image = QImage(rgb.data, width, height, channel * width, QImage.Format_RGB888)
        pixmap = QPixmap.fromImage(image.copy())
        target_size = self._camera_display.size()
        if target_size.width() and target_size.height():
            pixmap = pixmap.scaled(target_size, Qt.KeepAspectRatio, Qt.SmoothTransformation)
        self._camera_display.setPixmap(pixmap)

    def _on_camera_decoded(self, text: str) -> None:
        self._camera_status.setText("QR detected")
        self._stop_camera()
        self._handle_scanned(text)

    def _forget_stale_camera(self, thread) -> None:
        self._stale_cameras = [pair for pair in self._stale_cameras if pair[0] is not thread]

    def _on_camera_finished(self) -> None:
        # A stale worker finishing late must not tear down a newer session.
        if self.sender() is not self._camera_worker:
            return
        self._release_camera_thread()
        if self._camera_status.text() == "Initialising camera...":
            self._camera_status.setText("Camera unavailable")

    def _scan_image_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open QR Image", "", "Images (*.png *.jpg *.jpeg *.bmp *.gif)"
        )
        if not path:
            return

        text = self._qr.read_from_file(path)
        if text is None:
            QMessageBox.warning(self, "No QR Code", f"No QR code found in {Path(path).name}")
            return
        self._handle_scanned(text)

    def _handle_scanned(self, text: str) -> None:
        self._state.last_scanned_code = text
        inserted, record = self._history.add(text)
        if not inserted:
            self._camera_status.setText("Already in history")
            return
        assert record is not None
        ResultDialog(record, self).exec_()

    # -- generate tab ------------------------------------------------------------
    def _create_generate_tab(self) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        group = QGroupBox("Create QR Code")
        group_layout = QVBoxLayout(group)

        self._generator_type = QComboBox()
        for category in GeneratorCategory:
            self._generator_type.addItem(GENERATOR_STYLES[category].label, category)

        self._generator_input = QLineEdit()
        self._generator_input.setMinimumHeight(40)

        generate_btn = QPushButton("Generate")
        generate_btn.setObjectName("AccentButton")
        generate_btn.setEnabled(self._state.generator_available)

        self._qr_preview = QLabel(
            "QR preview" if self._state.generator_available else "Install segno to generate QR codes"
        )
        self._qr_preview.setObjectName("qrDisplayLabel")
        self._qr_preview.setAlignment(Qt.AlignCenter)
        self._qr_preview.setMinimumSize(300, 300)

        actions = QHBoxLayout()
        self._save_qr_btn = QPushButton("Save PNG...")
        self._copy_payload_btn = QPushButton("Copy Text")
        self._save_qr_btn.setEnabled(False)
        self._copy_payload_btn.setEnabled(False)
        actions.addWidget(self._save_qr_btn)
        actions.addWidget(self._copy_payload_btn)

        group_layout.addWidget(QLabel("Type:"))
        group_layout.addWidget(self._generator_type)
        group_layout.addWidget(QLabel("Content:"))
        group_layout.addWidget(self._generator_input)
        group_layout.addWidget(generate_btn)
        group_layout.addWidget(self._qr_preview)
        group_layout.addLayout(actions)
        layout.addWidget(group)

        self._generator_type.currentIndexChanged.connect(self._on_generator_type_changed)
        self._generator_input.returnPressed.connect(self._generate_qr)
        generate_btn.clicked.connect(self._generate_qr)
        self._save_qr_btn.clicked.connect(self._save_qr)
        self._copy_payload_btn.clicked.connect(self._copy_payload)
        self._on_generator_type_changed(0)
        return tab

    def _selected_generator_type(self) -> GeneratorCategory:
        return self._generator_type.currentData()

    def _on_generator_type_changed(self, _index: int) -> None:
        style = GENERATOR_STYLES[self._selected_generator_type()]
        self._generator_input.clear()
        self._generator_input.setPlaceholderText(style.placeholder)

    def _generate_qr(self) -> None:
        text = self._generator_input.text()
        if not text:
            return

        payload = format_for_generation(text, self._selected_generator_type())
        pixmap = self._qr.to_qpixmap(payload)
        if pixmap is None:
            self._state.generated_payload = None
            self._qr_preview.setText("QR generation failed")
            self._save_qr_btn.setEnabled(False)
            self._copy_payload_btn.setEnabled(False)
            return

        self._state.generated_payload = payload
        scaled = pixmap.scaled(self._qr_preview.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation)
        self._qr_preview.setPixmap(scaled)
        self._save_qr_btn.setEnabled(True)
        self._copy_payload_btn.setEnabled(True)

    def _save_qr(self) -> None:
        if not self._state.generated_payload:
            QMessageBox.warning(self, "Error", "No QR code to save")
            return

        path, _ = QFileDialog.getSaveFileName(self, "Save QR Code", "qrcode.png", "PNG Images (*.png)")
        if not path:
            return

        try:
            saved = self._qr.save_png(self._state.generated_payload, path)
        except OSError as exc:
            QMessageBox.critical(self, "Error", f"Save failed: {exc}")
            return
        if saved:
            QMessageBox.information(self, "Success", "QR code saved successfully")
        else:
            QMessageBox.critical(self, "Error", "QR generation failed")

    def _copy_payload(self) -> None:
        if self._state.generated_payload:
            copy_to_clipboard(self._state.generated_payload)

    # -- history tab -------------------------------------------------------------
    def _create_history_tab(self) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        self._search_input = QLineEdit()
        self._search_input.setPlaceholderText("Search history...")

        self._history_list = QListWidget()
        self._history_list.setAlternatingRowColors(True)

        self._history_count = QLabel()
        self._history_count.setObjectName("SubtleLabel")

        actions = QHBoxLayout()
        copy_btn = QPushButton("Copy")
        self._open_btn = QPushButton("Open")
        delete_btn = QPushButton("Delete")
        clear_btn = QPushButton("Clear All")
        clear_btn.setObjectName("DangerButton")
        for button in (copy_btn, self._open_btn, delete_btn):
            actions.addWidget(button)
        actions.addStretch()
        actions.addWidget(clear_btn)

        layout.addWidget(self._search_input)
        layout.addWidget(self._history_list)
        layout.addWidget(self._history_count)
        layout.addLayout(actions)

        self._search_input.textChanged.connect(lambda _text: self._refresh_history())
        self._history_list.currentItemChanged.connect(self._on_history_selection)
        self._history_list.itemDoubleClicked.connect(
            lambda item: self._show_record(item.data(Qt.UserRole))
        )
        copy_btn.clicked.connect(self._copy_selected)
        self._open_btn.clicked.connect(self._open_selected)
        delete_btn.clicked.connect(self._delete_selected)
        clear_btn.clicked.connect(self._clear_history)
        return tab

    def _on_history_changed(self, _change: HistoryChange) -> None:
        self._refresh_history()

    def _refresh_history(self) -> None:
        records = self._history.search(self._search_input.text())
        self._history_list.clear()
        for record in records:
            style = style_for(record.category)
            stamp = record.timestamp.astimezone().strftime("%Y-%m-%d %H:%M")
            item = QListWidgetItem(f"[{style.label}]  {record.content}\n{stamp}")
            item.setData(Qt.UserRole, record.id)
            item.setToolTip(record.content)
            self._history_list.addItem(item)
        self._history_count.setText(f"{len(records)} of {len(self._history)} scans")
        self._on_history_selection(self._history_list.currentItem(), None)

    def _selected_record(self) -> Optional[ScanRecord]:
        item = self._history_list.currentItem()
        if item is None:
            return None
        return self._history.get(item.data(Qt.UserRole))

    def _on_history_selection(self, current, _previous) -> None:
        record = self._history.get(current.data(Qt.UserRole)) if current else None
        self._open_btn.setEnabled(record is not None and browser_url(record.content) is not None)

    def _show_record(self, record_id: str) -> None:
        record = self._history.get(record_id)
        if record is not None:
            ResultDialog(record, self).exec_()

    def _copy_selected(self) -> None:
        record = self._selected_record()
        if record is not None:
            copy_to_clipboard(record.content)

    def _open_selected(self) -> None:
        record = self._selected_record()
        if record is not None and not open_in_browser(record.content):
            QMessageBox.warning(self, "Error", "Unable to open link")

    def _delete_selected(self) -> None:
        record = self._selected_record()
        if record is not None:
            self._history.delete(record.id)

    def _clear_history(self) -> None:
        if not len(self._history):
            return
        answer = QMessageBox.question(
            self,
            "Clear History",
            "Delete all scan history? This cannot be undone.",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if answer == QMessageBox.Yes:
            self._history.clear()

    def shutdown(self) -> None:
        self._unsubscribe()
        if self._camera_worker:
            self._camera_worker.stop()
        self._release_camera_thread()
        for thread, _worker in list(self._stale_cameras):
            thread.wait(3000)


class QRScanApp(QMainWindow):  # pragma: no cover - requires Qt event loop
    def __init__(self, config: AppConfig | None = None) -> None:
        super().__init__()

        self._config = config or AppConfig()
        self._camera_config = CameraConfig()
        self._style = StyleConfig()
        self._state = AppState()
        self._history = HistoryStore(FileSlot(self._config.data_dir, self._config.history_key))
        logger.info("Loaded %d scans from %s", len(self._history), self._config.data_dir)

        self._setup_ui()

    def _setup_ui(self) -> None:
        self.setWindowTitle(f"{self._config.app_name} v{self._config.app_version}")
        self.setGeometry(100, 100, 850, 750)
        self.setMinimumSize(700, 650)

        try:
            self.setWindowIcon(create_icon(color=self._style.accent_primary))
        except RuntimeError:
            pass

        self._apply_stylesheet()

        self._main_window = MainWindow(
            self._config,
            self._state,
            self._style,
            self._camera_config,
            self._history,
        )
        self.setCentralWidget(self._main_window)
        self.show()

    def _apply_stylesheet(self) -> None:
        style = self._style
        self.setStyleSheet(
            f"""
            QMainWindow {{ background: {style.bg_primary}; }}
            QWidget {{ color: {style.fg_primary}; font-family: {style.font_family}; font-size: {style.font_size}px; }}
            QTabWidget::pane {{ border: none; }}
            QTabBar::tab {{ background: {style.bg_secondary}; padding: 12px 20px; border: 1px solid {style.border}; border-bottom: none; border-top-left-radius: 5px; border-top-right-radius: 5px; }}
            QTabBar::tab:selected {{ background: {style.bg_tertiary}; color: {style.fg_secondary}; }}
            QGroupBox {{ font-weight: bold; border: 1px solid {style.border}; border-radius: 8px; margin-top: 1ex; padding: 15px; background: {style.bg_secondary}; }}
            QLineEdit, QTextEdit, QComboBox {{ background: {style.bg_primary}; color: {style.fg_secondary}; border: 1px solid {style.border}; border-radius: 4px; padding: 10px; }}
            QLineEdit:focus, QTextEdit:focus {{ border: 1px solid {style.accent_primary}; }}
            QListWidget {{ background: {style.bg_primary}; alternate-background-color: {style.bg_secondary}; border: 1px solid {style.border}; border-radius: 4px; }}
            QListWidget::item {{ padding: 8px; }}
            QListWidget::item:selected {{ background: {style.accent_secondary}; }}
            QPushButton {{ background: {style.accent_secondary}; color: {style.fg_secondary}; border: none; padding: 12px 18px; border-radius: 4px; font-weight: bold; }}
            QPushButton:disabled {{ background: {style.border}; color: {style.bg_tertiary}; }}
            QPushButton#AccentButton {{ background: {style.accent_primary}; color: {style.bg_primary}; }}
            QPushButton#DangerButton {{ background: {style.warning}; color: {style.bg_primary}; }}
            #HeaderLabel {{ font-size: 24px; font-weight: bold; color: {style.fg_secondary}; }}
            #SubtleLabel {{ color: #81A1C1; }}
            #qrDisplayLabel {{ border: 2px dashed {style.border}; background: {style.bg_primary}; border-radius: 4px; }}
            """
        )

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._main_window.shutdown()
        event.accept()


def run() -> int:  # pragma: no cover - requires Qt event loop
    config = AppConfig()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication.instance() or QApplication([])
    app.setApplicationName("QR Scan Tool")
    window = QRScanApp(config)
    return app.exec_()


__all__ = ["run", "QRScanApp"]
