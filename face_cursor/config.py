import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

PACKAGE_DIR = Path(__file__).parent
ASSETS_DIR = PACKAGE_DIR / "assets"
DEFAULT_IMAGE_PATH = ASSETS_DIR / "crab.png"

# --- ПАРАМЕТРЫ СЦЕНЫ ---
SHOW_VIDEO = True
SHOW_ALL_KEYPOINTS = True

TRACKED_KEYPOINT_INDEX = 1  # Кончик носа
CURSOR_SIZE = 60
KEYPOINT_SIZE = 3

BACKGROUND_GRAY = 40
FRAME_INTERVAL_MS = 16

# --- КАМЕРА ---
CAMERA_INDEX = 0
CAMERA_RESOLUTION = (640, 480)
CAMERA_FACING = "user"
CAMERA_MIRROR = True
CAMERA_FIT = "fitHeight"

# Топология сетки MediaPipe: 468 точек, 478 с радужками
FACE_MESH_POINTS = 468
FACE_MESH_REFINED_POINTS = 478

KEYPOINT_NAMES = {
    1: "Nose Tip",
    10: "Top of Face",
    152: "Chin",
    234: "Left Eye",
    454: "Right Eye",
    13: "Lips",
}


@dataclass(frozen=True)
class DetectorOptions:
    """Фиксированная конфигурация детектора, не меняется во время работы."""
    max_faces: int = 1
    refine_landmarks: bool = False
    runtime: str = "cpu"  # "cpu" или "gpu"
    flip_horizontal: bool = False

    @property
    def landmark_count(self) -> int:
        return FACE_MESH_REFINED_POINTS if self.refine_landmarks else FACE_MESH_POINTS


DETECTOR_OPTIONS = DetectorOptions()


@dataclass
class AppConfig:
    camera_index: int = CAMERA_INDEX
    resolution: tuple = CAMERA_RESOLUTION
    image_path: Path = DEFAULT_IMAGE_PATH
    tracked_index: int = TRACKED_KEYPOINT_INDEX
    log_level: str = "INFO"
    log_file: Optional[str] = None
    fullscreen: bool = True
    detector: DetectorOptions = DETECTOR_OPTIONS


def parse_args(argv: Optional[Sequence[str]] = None) -> AppConfig:
    parser = argparse.ArgumentParser(
        prog="face-cursor",
        description="Face tracking as UI interaction: follow a face landmark with an image.",
    )
    parser.add_argument("--camera", type=int, default=CAMERA_INDEX, help="camera index")
    parser.add_argument("--width", type=int, default=CAMERA_RESOLUTION[0], help="capture width")
    parser.add_argument("--height", type=int, default=CAMERA_RESOLUTION[1], help="capture height")
    parser.add_argument("--image", type=Path, default=DEFAULT_IMAGE_PATH, help="cursor image")
    parser.add_argument("--tracked-index", type=int, default=TRACKED_KEYPOINT_INDEX,
                        help="face mesh keypoint to follow")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--windowed", action="store_true", help="do not go full screen")
    args = parser.parse_args(argv)

    return AppConfig(
        camera_index=args.camera,
        resolution=(args.width, args.height),
        image_path=args.image,
        tracked_index=args.tracked_index,
        log_level=args.log_level,
        log_file=args.log_file,
        fullscreen=not args.windowed,
    )
