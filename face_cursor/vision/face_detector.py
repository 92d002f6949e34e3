import logging
import tempfile
import urllib.request
from pathlib import Path
from typing import Callable, Optional, Sequence

import cv2
import mediapipe as mp
from mediapipe.tasks.python import BaseOptions, vision

from face_cursor.config import DETECTOR_OPTIONS, DetectorOptions
from face_cursor.utils.exceptions import DetectorError
from .frame_data import DetectionResult, FaceKeypoints, Keypoint

logger = logging.getLogger(__name__)

MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/"
    "face_landmarker/face_landmarker/float16/latest/face_landmarker.task"
)

RUNTIMES = {
    "cpu": BaseOptions.Delegate.CPU,
    "gpu": BaseOptions.Delegate.GPU,
}


def get_model_path(cache_dir: Optional[Path] = None) -> str:
    cache_dir = cache_dir or Path(tempfile.gettempdir()) / "mediapipe_models"
    cache_dir.mkdir(exist_ok=True)
    model_path = cache_dir / "face_landmarker.task"
    if not model_path.exists():
        logger.info("Downloading face_landmarker model to %s", model_path)
        # Недокачанный файл не должен выглядеть как готовая модель
        part_path = model_path.with_name(model_path.name + ".part")
        urllib.request.urlretrieve(MODEL_URL, str(part_path))
        part_path.replace(model_path)
    return str(model_path)


def landmarks_to_keypoints(landmarks: Sequence, width: int, height: int,
                           landmark_count: int, flip_horizontal: bool = False) -> FaceKeypoints:
    """Нормализованные landmarks MediaPipe -> пиксели кадра."""
    keypoints = []
    for lm in landmarks[:landmark_count]:
        x = lm.x * width
        if flip_horizontal:
            x = width - x
        keypoints.append(Keypoint(x, lm.y * height, getattr(lm, "z", None)))
    return keypoints


def _create_landmarker(options):
    return vision.FaceLandmarker.create_from_options(options)


class FaceMeshDetector:
    """
    Face mesh в режиме LIVE_STREAM.
    Результаты приходят в callback из потока MediaPipe, по одному
    списку лиц на каждый обработанный кадр.
    """

    def __init__(self, options: DetectorOptions = DETECTOR_OPTIONS, model_path: Optional[str] = None):
        if options.runtime not in RUNTIMES:
            raise DetectorError("Unsupported runtime", context={"runtime": options.runtime})
        if options.max_faces < 1:
            raise DetectorError("max_faces must be positive", context={"max_faces": options.max_faces})

        self.options = options
        self.model_path = model_path

        self._landmarker = None
        self._source = None
        self._callback: Optional[Callable[[DetectionResult], None]] = None
        self._last_frame_index = 0
        self._last_timestamp_ms = -1

    @property
    def running(self) -> bool:
        return self._landmarker is not None

    def detect_start(self, source, callback: Callable[[DetectionResult], None]):
        """Запуск непрерывной детекции по кадрам source (CameraService)."""
        model_path = self.model_path or get_model_path()
        landmarker_options = vision.FaceLandmarkerOptions(
            base_options=BaseOptions(
                model_asset_path=model_path,
                delegate=RUNTIMES[self.options.runtime],
            ),
            running_mode=vision.RunningMode.LIVE_STREAM,
            num_faces=self.options.max_faces,
            result_callback=self._on_result,
        )
        self._landmarker = _create_landmarker(landmarker_options)
        self._source = source
        self._callback = callback
        logger.info(
            "Face mesh started: max_faces=%d, refine_landmarks=%s, runtime=%s",
            self.options.max_faces, self.options.refine_landmarks, self.options.runtime,
        )

    def update(self, timestamp_ms: int):
        """Отправить в модель текущий кадр источника, если он новый."""
        if self._landmarker is None:
            return
        if self._source.frame is None or self._source.frame_index == self._last_frame_index:
            return
        # MediaPipe требует строго возрастающие метки времени
        if timestamp_ms <= self._last_timestamp_ms:
            return

        self._last_frame_index = self._source.frame_index
        self._last_timestamp_ms = timestamp_ms

        rgb_frame = cv2.cvtColor(self._source.frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)
        self._landmarker.detect_async(mp_image, timestamp_ms)

    def _on_result(self, result, output_image, timestamp_ms: int):
        width, height = output_image.width, output_image.height
        faces = [
            landmarks_to_keypoints(
                landmarks, width, height,
                self.options.landmark_count, self.options.flip_horizontal,
            )
            for landmarks in (result.face_landmarks or [])
        ]
        if self._callback is not None:
            self._callback(faces)

    def close(self):
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None
