from .camera_service import CameraService
from .face_detector import FaceMeshDetector
from .frame_data import DetectionResult, Keypoint, MappedPoint

__all__ = ["CameraService", "FaceMeshDetector", "DetectionResult", "Keypoint", "MappedPoint"]
