# face_cursor/vision/camera_service.py
import logging
from typing import Callable, Iterable, List, Optional, Tuple

import cv2
import numpy as np

from face_cursor.utils.exceptions import CameraError
from .frame_data import Keypoint, MappedPoint

logger = logging.getLogger(__name__)

FIT_MODES = ("fitHeight", "fitWidth", "contain", "cover")


class CameraService:
    def __init__(self, camera_index: int = 0, resolution: tuple = (640, 480),
                 facing: str = "user", mirror: bool = True, fit: str = "fitHeight"):
        self.cap = None
        if fit not in FIT_MODES:
            raise ValueError(f"Unknown fit mode: {fit}")

        self.camera_index = camera_index
        self.resolution = resolution
        self.active = facing
        self.mirror = mirror
        self.fit = fit

        # Состояние
        self.ready = False
        self.frame: Optional[np.ndarray] = None
        self.frame_index = 0
        self.video_size: Tuple[int, int] = resolution
        self.canvas_size: Tuple[int, int] = resolution

        self._ready_callbacks: List[Callable[[], None]] = []

    def start(self):
        """Запуск захвата. Камера станет ready на первом полученном кадре."""
        cap = cv2.VideoCapture(self.camera_index)
        if not cap.isOpened():
            cap.release()
            raise CameraError(self.camera_index)

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])
        self.cap = cap
        logger.info("Camera %d opened, waiting for first frame", self.camera_index)

    def on_ready(self, callback: Callable[[], None]):
        if self.ready:
            callback()
        else:
            self._ready_callbacks.append(callback)

    def set_canvas_size(self, width: int, height: int):
        self.canvas_size = (width, height)

    def read(self) -> Optional[np.ndarray]:
        """Получить следующий кадр (BGR, без зеркалирования) или None."""
        if self.cap is None:
            return None

        ret, frame = self.cap.read()
        if not ret:
            return None

        self.frame = frame
        self.frame_index += 1
        h, w = frame.shape[:2]
        self.video_size = (w, h)

        if not self.ready:
            self.ready = True
            logger.info("Camera ready: %dx%d, facing=%s, mirrored=%s", w, h, self.active, self.mirror)
            callbacks, self._ready_callbacks = self._ready_callbacks, []
            for callback in callbacks:
                callback()

        return frame

    def fit_rect(self) -> Tuple[float, float, float, float]:
        """Прямоугольник видео на холсте: (x, y, w, h)."""
        vw, vh = self.video_size
        cw, ch = self.canvas_size

        if self.fit == "fitHeight":
            scale = ch / vh
        elif self.fit == "fitWidth":
            scale = cw / vw
        elif self.fit == "contain":
            scale = min(cw / vw, ch / vh)
        else:
            scale = max(cw / vw, ch / vh)

        w = vw * scale
        h = vh * scale
        return (cw - w) / 2, (ch - h) / 2, w, h

    def map_keypoint(self, point: Keypoint) -> MappedPoint:
        """Перевод точки из пространства кадра в координаты холста."""
        rx, ry, rw, rh = self.fit_rect()
        vw, vh = self.video_size

        nx = point.x / vw
        if self.mirror:
            nx = 1.0 - nx
        ny = point.y / vh

        return MappedPoint(rx + nx * rw, ry + ny * rh)

    def map_keypoints(self, points: Iterable[Keypoint]) -> List[MappedPoint]:
        return [self.map_keypoint(p) for p in points]

    def release(self):
        if self.cap is not None and self.cap.isOpened():
            self.cap.release()
        self.cap = None

    def __del__(self):
        self.release()
