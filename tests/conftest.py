from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import numpy as np
import pytest
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication

from face_cursor.vision.frame_data import Keypoint, MappedPoint


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def cursor_image(qapp) -> QImage:
    image = QImage(16, 16, QImage.Format.Format_ARGB32)
    image.fill(QColor(255, 0, 0))
    return image


class FakeCamera:
    """Камера с тождественным отображением координат."""

    def __init__(self, ready=True, active="user", mirror=True, size=(640, 480)):
        self.ready = ready
        self.active = active
        self.mirror = mirror
        self.size = size

    def fit_rect(self):
        return 0.0, 0.0, float(self.size[0]), float(self.size[1])

    def map_keypoint(self, point):
        return MappedPoint(point.x, point.y)

    def map_keypoints(self, points):
        return [self.map_keypoint(p) for p in points]


@pytest.fixture
def fake_camera():
    return FakeCamera()


def make_face(count=468, tracked=None):
    """Лицо из count точек; tracked = {index: (x, y)} переопределяет координаты."""
    tracked = tracked or {}
    face = []
    for i in range(count):
        x, y = tracked.get(i, (10.0 + i % 20, 10.0 + i // 20))
        face.append(Keypoint(x, y, 0.0))
    return face


class FakeCapture:
    """Подмена cv2.VideoCapture: отдаёт заданное число чёрных кадров."""

    def __init__(self, index=0, opened=True, frames=3, size=(640, 480)):
        self.index = index
        self.opened = opened
        self.frames = frames
        self.size = size
        self.props = {}
        self.released = False

    def isOpened(self):
        return self.opened and not self.released

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def read(self):
        if self.frames <= 0:
            return False, None
        self.frames -= 1
        w, h = self.size
        return True, np.zeros((h, w, 3), dtype=np.uint8)

    def release(self):
        self.released = True
