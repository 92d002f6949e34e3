from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QFont, QFontMetricsF, QPainter, QPainterPath, QPen

from face_cursor.config import BACKGROUND_GRAY, CURSOR_SIZE, KEYPOINT_SIZE
from face_cursor.vision.frame_data import MappedPoint
from .model import SceneModel, status_text

TEXT_WHITE = QColor(255, 255, 255)
TEXT_HINT = QColor(200, 200, 200)
TOGGLE_ON = QColor(0, 255, 0)
TOGGLE_OFF = QColor(150, 150, 150)
KEYPOINT_COLOR = QColor(0, 255, 0, 100)


@dataclass
class FrameReport:
    """Что было нарисовано за кадр."""
    status: str
    cursor: Optional[MappedPoint] = None
    cursor_rect: Optional[QRectF] = None
    keypoints_drawn: int = 0
    label: Optional[str] = None
    lines: List[Tuple[str, QColor]] = field(default_factory=list)  # нижние строки статуса


class RenderEngine:
    def __init__(self, model: SceneModel, camera):
        self.model = model
        self.camera = camera

    def render_to_painter(self, painter: QPainter, target_rect: QRectF) -> FrameReport:
        painter.save()
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setRenderHint(QPainter.SmoothPixmapTransform)

        painter.fillRect(target_rect, QColor(BACKGROUND_GRAY, BACKGROUND_GRAY, BACKGROUND_GRAY))

        if self.model.state.show_video and self.model.camera_frame is not None:
            x, y, w, h = self.camera.fit_rect()
            painter.drawImage(QRectF(x, y, w, h), self.model.camera_frame)

        report = FrameReport(status="")
        if len(self.model.faces) > 0:
            self._draw_face_tracking(painter, report)

        self._draw_ui(painter, target_rect, report)

        painter.restore()
        return report

    def _draw_face_tracking(self, painter: QPainter, report: FrameReport):
        face = self.model.faces[0]
        if not face:
            return

        tracked = self.model.tracked_keypoint()
        if tracked is None:
            return

        cursor = self.camera.map_keypoint(tracked)
        report.cursor = cursor

        # --- Изображение в точке курсора ---
        size = CURSOR_SIZE * 2
        rect = QRectF(cursor.x - size / 2, cursor.y - size / 2, size, size)
        painter.drawImage(rect, self.model.cursor_image)
        report.cursor_rect = rect

        # --- Координаты под изображением ---
        label = f"x: {cursor.x:.0f}, y: {cursor.y:.0f}"
        self._draw_text(painter, label, cursor.x, cursor.y + size / 2 + 10, 14,
                        TEXT_WHITE, outline=QColor(0, 0, 0))
        report.label = label

        # --- Все точки сетки (диагностика) ---
        if self.model.state.show_all_keypoints:
            points = self.camera.map_keypoints(face)
            painter.save()
            painter.setPen(Qt.NoPen)
            painter.setBrush(QBrush(KEYPOINT_COLOR))
            r = KEYPOINT_SIZE / 2
            for point in points:
                painter.drawEllipse(QPointF(point.x, point.y), r, r)
            painter.restore()
            report.keypoints_drawn = len(points)

    def _draw_ui(self, painter: QPainter, rect: QRectF, report: FrameReport):
        state = self.model.state
        cx = rect.center().x()
        bottom = rect.bottom()

        report.status = status_text(self.camera.ready, len(self.model.faces), state.tracked_index)
        self._draw_text(painter, report.status, cx, rect.top() + 20, 18, TEXT_WHITE)

        # (текст, размер, отступ снизу, цвет)
        lines = [
            ("Touch screen to toggle video", 14, 20, TEXT_HINT),
            (f"Video: {'ON' if state.show_video else 'OFF'}", 12, 40,
             TOGGLE_ON if state.show_video else TOGGLE_OFF),
            (f"All Keypoints: {'ON' if state.show_all_keypoints else 'OFF'}", 12, 55,
             TOGGLE_ON if state.show_all_keypoints else TOGGLE_OFF),
        ]
        if self.camera.ready:
            mirrored = "true" if self.camera.mirror else "false"
            lines.append((f"Camera: {self.camera.active} (mirrored: {mirrored})", 12, 70, TEXT_WHITE))

        for text, size, offset, color in lines:
            self._draw_text(painter, text, cx, bottom - offset, size, color, anchor_bottom=True)
            report.lines.append((text, color))

    def _draw_text(self, painter: QPainter, text: str, cx: float, y: float, size: int,
                   color: QColor, outline: Optional[QColor] = None, anchor_bottom: bool = False):
        """Текст по центру cx; y задаёт верхнюю или нижнюю границу строки."""
        font = QFont()
        font.setPixelSize(size)
        metrics = QFontMetricsF(font)

        x = cx - metrics.horizontalAdvance(text) / 2
        baseline = y - metrics.descent() if anchor_bottom else y + metrics.ascent()

        path = QPainterPath()
        path.addText(QPointF(x, baseline), font, text)

        painter.save()
        if outline is not None:
            painter.strokePath(path, QPen(outline, 3))
        painter.fillPath(path, QBrush(color))
        painter.restore()
