from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Keypoint:
    # Координаты в пикселях исходного (незеркального) кадра камеры
    x: float
    y: float
    z: Optional[float] = None  # относительная глубина MediaPipe


@dataclass(frozen=True)
class MappedPoint:
    # Координаты в пикселях холста
    x: float
    y: float


# Ключевые точки одного лица
FaceKeypoints = List[Keypoint]

# Результат детектора: по списку точек на каждое найденное лицо (0 или 1)
DetectionResult = List[FaceKeypoints]
