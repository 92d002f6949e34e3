import logging
from typing import Optional

from PySide6.QtCore import QEvent, QRectF, QSize, Qt
from PySide6.QtGui import QMouseEvent, QPainter, QPaintEvent
from PySide6.QtWidgets import QMainWindow, QSizePolicy, QWidget

from face_cursor.canvas.canvas import FrameReport, RenderEngine
from face_cursor.canvas.model import SceneModel

logger = logging.getLogger(__name__)

# Жесты системы, которые мешают полноэкранному режиму
LOCKED_GESTURES = (
    Qt.PinchGesture,
    Qt.PanGesture,
    Qt.SwipeGesture,
    Qt.TapAndHoldGesture,
    Qt.TapGesture,
)


# --- ВИДЖЕТ ХОЛСТА ---
class CanvasWidget(QWidget):
    def __init__(self, model: SceneModel, engine: RenderEngine, parent=None):
        super().__init__(parent)
        self._model = model
        self._engine = engine
        self.last_report: Optional[FrameReport] = None

        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self._lock_gestures()

    def _lock_gestures(self):
        self.setAttribute(Qt.WA_AcceptTouchEvents, True)
        self.setContextMenuPolicy(Qt.NoContextMenu)
        for gesture in LOCKED_GESTURES:
            self.ungrabGesture(gesture)

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        self.last_report = self._engine.render_to_painter(painter, QRectF(self.rect()))
        painter.end()

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self._on_pointer_activated()
        event.accept()

    def event(self, event: QEvent) -> bool:
        # Принимаем TouchBegin сами, иначе Qt синтезирует ещё и нажатие мыши
        if event.type() == QEvent.TouchBegin:
            self._on_pointer_activated()
            event.accept()
            return True
        if event.type() in (QEvent.TouchUpdate, QEvent.TouchEnd, QEvent.TouchCancel):
            event.accept()
            return True
        return super().event(event)

    def _on_pointer_activated(self):
        show_video = self._model.toggle_video()
        logger.debug("Video %s", "on" if show_video else "off")
        self.update()


# --- MAIN WINDOW ---
class MainWindow(QMainWindow):
    def __init__(self, model: SceneModel, engine: RenderEngine, canvas_size: QSize):
        super().__init__()
        self._model = model
        self._engine = engine

        self.setWindowTitle("Face Cursor")
        self.setStyleSheet("QMainWindow { background-color: #282828; }")

        self.canvas_widget = CanvasWidget(self._model, self._engine)
        self.setCentralWidget(self.canvas_widget)
        self.set_canvas_size(canvas_size)

    def set_canvas_size(self, canvas_size: QSize):
        # Размер холста фиксируется при запуске
        self.canvas_widget.setFixedSize(canvas_size)
        self.adjustSize()
