from dataclasses import dataclass, replace
from typing import Optional

from PySide6.QtGui import QImage

from face_cursor.config import (
    KEYPOINT_NAMES,
    SHOW_ALL_KEYPOINTS,
    SHOW_VIDEO,
    TRACKED_KEYPOINT_INDEX,
)
from face_cursor.vision.frame_data import DetectionResult, Keypoint


@dataclass(frozen=True)
class AppState:
    """Флаги приложения. Сбрасываются к значениям по умолчанию при каждом запуске."""
    show_video: bool = SHOW_VIDEO
    show_all_keypoints: bool = SHOW_ALL_KEYPOINTS
    tracked_index: int = TRACKED_KEYPOINT_INDEX


def toggle_video(state: AppState) -> AppState:
    return replace(state, show_video=not state.show_video)


def keypoint_name(index: int) -> str:
    return KEYPOINT_NAMES.get(index, f"Keypoint {index}")


def status_text(camera_ready: bool, result_count: int, tracked_index: int) -> str:
    if not camera_ready:
        return "Starting camera..."
    if result_count == 0:
        return "Show your face to start tracking"
    return f"Tracking: {keypoint_name(tracked_index)}"


class ResultSlot:
    """Последний результат детектора. Каждая запись целиком заменяет предыдущую."""

    def __init__(self):
        self._results: DetectionResult = []

    def put(self, results: DetectionResult):
        self._results = results

    def get(self) -> DetectionResult:
        return self._results


class SceneModel:
    """Модель сцены: флаги, последний результат детектора и изображения для отрисовки"""

    def __init__(self, cursor_image: QImage, state: Optional[AppState] = None):
        self.cursor_image = cursor_image
        self.state = state or AppState()

        self.camera_frame: Optional[QImage] = None
        self._slot = ResultSlot()

    @property
    def faces(self) -> DetectionResult:
        return self._slot.get()

    def set_faces(self, results: DetectionResult):
        self._slot.put(results)

    def set_camera_frame(self, image: QImage):
        self.camera_frame = image

    def toggle_video(self) -> bool:
        self.state = toggle_video(self.state)
        return self.state.show_video

    def tracked_keypoint(self) -> Optional[Keypoint]:
        """Отслеживаемая точка первого лица, None если лица нет или индекс вне диапазона."""
        faces = self.faces
        if not faces or not faces[0]:
            return None
        keypoints = faces[0]
        index = self.state.tracked_index
        if 0 <= index < len(keypoints):
            return keypoints[index]
        return None
