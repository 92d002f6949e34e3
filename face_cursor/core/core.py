import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

import cv2
from PySide6.QtCore import QObject, QSize, Qt, QTimer, Signal
from PySide6.QtGui import QImage
from PySide6.QtWidgets import QApplication

from face_cursor.canvas.canvas import RenderEngine
from face_cursor.canvas.model import AppState, SceneModel
from face_cursor.config import (
    CAMERA_FACING,
    CAMERA_FIT,
    CAMERA_MIRROR,
    FRAME_INTERVAL_MS,
    AppConfig,
    parse_args,
)
from face_cursor.ui.ui import MainWindow
from face_cursor.utils.exceptions import AssetLoadError, CameraError
from face_cursor.utils.logging_utils import setup_logging
from face_cursor.vision.camera_service import CameraService
from face_cursor.vision.face_detector import FaceMeshDetector

logger = logging.getLogger(__name__)


def load_cursor_image(path) -> QImage:
    """Изображение курсора обязательно: без него приложение не стартует."""
    path = Path(path)
    if not path.is_file():
        raise AssetLoadError(path, cause=FileNotFoundError(str(path)))
    image = QImage(str(path))
    if image.isNull():
        raise AssetLoadError(path)
    return image


def windowed_canvas_size(available: QSize, frame_size: QSize, client_size: QSize) -> QSize:
    """Холст, при котором окно вместе с рамкой помещается в available."""
    margins = frame_size - client_size
    return QSize(max(1, available.width() - margins.width()),
                 max(1, available.height() - margins.height()))


class DetectionBridge(QObject):
    """Переносит результаты детектора из потока MediaPipe в GUI-поток."""
    results_ready = Signal(list)


class AppCore:
    def __init__(self, sys_argv, config: Optional[AppConfig] = None):
        self.config = config or parse_args(sys_argv[1:])
        setup_logging(self.config.log_level, self.config.log_file)

        self.app = QApplication.instance() or QApplication(sys_argv[:1])
        self.app.setStyle("Fusion")

        cursor_image = load_cursor_image(self.config.image_path)
        logger.info("Loaded cursor image %s (%dx%d)", self.config.image_path,
                    cursor_image.width(), cursor_image.height())

        self.camera = CameraService(
            camera_index=self.config.camera_index,
            resolution=self.config.resolution,
            facing=CAMERA_FACING,
            mirror=CAMERA_MIRROR,
            fit=CAMERA_FIT,
        )

        state = AppState(tracked_index=self.config.tracked_index)
        landmark_count = self.config.detector.landmark_count
        if not 0 <= state.tracked_index < landmark_count:
            logger.warning("Tracked keypoint %d is outside the %d-point face mesh; cursor will not be drawn",
                           state.tracked_index, landmark_count)

        self.model = SceneModel(cursor_image, state)
        self.engine = RenderEngine(self.model, self.camera)

        screen = self.app.primaryScreen()
        if self.config.fullscreen:
            canvas_size = screen.geometry().size()
            self.window = MainWindow(self.model, self.engine, canvas_size)
            self.window.showFullScreen()
        else:
            available = screen.availableGeometry()
            self.window = MainWindow(self.model, self.engine, available.size())
            self.window.show()
            # Размер рамки окна известен только после show
            canvas_size = windowed_canvas_size(
                available.size(), self.window.frameGeometry().size(), self.window.geometry().size()
            )
            self.window.set_canvas_size(canvas_size)
            self.window.move(available.topLeft())

        self.canvas_width, self.canvas_height = canvas_size.width(), canvas_size.height()
        self.camera.set_canvas_size(self.canvas_width, self.canvas_height)

        self.detector: Optional[FaceMeshDetector] = None
        self.bridge = DetectionBridge()
        self.bridge.results_ready.connect(self._on_faces, Qt.QueuedConnection)
        self.camera.on_ready(self._start_detector)

        self._start_time = time.perf_counter()

        # Камера открывается уже внутри event loop, чтобы первый кадр показал ожидание
        QTimer.singleShot(0, self._open_camera)

        self.timer = QTimer()
        self.timer.timeout.connect(self._game_loop)
        self.timer.start(FRAME_INTERVAL_MS)

        self.app.aboutToQuit.connect(self.shutdown)

    def run(self):
        return self.app.exec()

    def shutdown(self):
        self.timer.stop()
        if self.detector is not None:
            self.detector.close()
            self.detector = None
        self.camera.release()
        logger.info("Stopped")

    def _open_camera(self):
        try:
            self.camera.start()
        except CameraError as e:
            logger.warning("Camera error: %s. Waiting for camera...", e)

    def _start_detector(self):
        self.detector = FaceMeshDetector(self.config.detector)
        self.detector.detect_start(self.camera, self.bridge.results_ready.emit)

    def _on_faces(self, results):
        self.model.set_faces(results)

    def _game_loop(self):
        frame = self.camera.read()

        if frame is not None:
            display_frame = cv2.flip(frame, 1) if self.camera.mirror else frame
            rgb_frame = cv2.cvtColor(display_frame, cv2.COLOR_BGR2RGB)
            h, w, ch = rgb_frame.shape
            qt_image = QImage(rgb_frame.data, w, h, ch * w, QImage.Format_RGB888)
            self.model.set_camera_frame(qt_image.copy())

            if self.detector is not None:
                timestamp_ms = int((time.perf_counter() - self._start_time) * 1000)
                self.detector.update(timestamp_ms)

        self.window.canvas_widget.update()


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv if argv is None else argv)
    try:
        core = AppCore(argv)
    except AssetLoadError as e:
        logger.error("%s", e)
        return 1
    return core.run()
