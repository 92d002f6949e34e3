from types import SimpleNamespace

import numpy as np
import pytest

from face_cursor.config import DetectorOptions
from face_cursor.utils.exceptions import DetectorError
from face_cursor.vision import face_detector
from face_cursor.vision.face_detector import FaceMeshDetector, landmarks_to_keypoints


def fake_landmarks(count=478):
    return [SimpleNamespace(x=0.25, y=0.5, z=-0.01 * i) for i in range(count)]


class FakeLandmarker:
    def __init__(self):
        self.calls = []
        self.closed = False

    def detect_async(self, image, timestamp_ms):
        self.calls.append(timestamp_ms)

    def close(self):
        self.closed = True


class FakeSource:
    def __init__(self):
        self.frame = None
        self.frame_index = 0

    def push(self):
        self.frame = np.zeros((480, 640, 3), dtype=np.uint8)
        self.frame_index += 1


@pytest.fixture
def landmarker(monkeypatch):
    fake = FakeLandmarker()
    created = []

    def create(options):
        created.append(options)
        return fake

    monkeypatch.setattr(face_detector, "_create_landmarker", create)
    fake.created = created
    return fake


def test_landmarks_to_keypoints_scales_to_pixels():
    keypoints = landmarks_to_keypoints(fake_landmarks(), 640, 480, 468)
    assert len(keypoints) == 468
    assert keypoints[0].x == 160.0
    assert keypoints[0].y == 240.0
    assert keypoints[3].z == pytest.approx(-0.03)


def test_landmarks_to_keypoints_flip():
    keypoints = landmarks_to_keypoints(fake_landmarks(5), 640, 480, 468, flip_horizontal=True)
    assert len(keypoints) == 5
    assert keypoints[0].x == 480.0


def test_refine_landmarks_keeps_iris_points():
    assert DetectorOptions(refine_landmarks=True).landmark_count == 478
    assert DetectorOptions().landmark_count == 468


def test_unsupported_runtime():
    with pytest.raises(DetectorError) as exc:
        FaceMeshDetector(DetectorOptions(runtime="tfjs"))
    assert "runtime=tfjs" in str(exc.value)


def test_update_before_start_is_noop():
    detector = FaceMeshDetector(model_path="face_landmarker.task")
    detector.update(10)
    assert not detector.running


def test_detect_start_configures_live_stream(landmarker):
    detector = FaceMeshDetector(model_path="face_landmarker.task")
    detector.detect_start(FakeSource(), lambda faces: None)

    options = landmarker.created[0]
    assert options.num_faces == 1
    assert options.running_mode == face_detector.vision.RunningMode.LIVE_STREAM
    assert detector.running


def test_update_sends_each_new_frame_once(landmarker):
    source = FakeSource()
    detector = FaceMeshDetector(model_path="face_landmarker.task")
    detector.detect_start(source, lambda faces: None)

    detector.update(5)
    assert landmarker.calls == []

    source.push()
    detector.update(10)
    detector.update(20)
    assert landmarker.calls == [10]

    source.push()
    detector.update(10)
    assert landmarker.calls == [10]
    detector.update(30)
    assert landmarker.calls == [10, 30]


def test_results_are_forwarded(landmarker):
    received = []
    detector = FaceMeshDetector(model_path="face_landmarker.task")
    detector.detect_start(FakeSource(), received.append)

    image = SimpleNamespace(width=640, height=480)
    detector._on_result(SimpleNamespace(face_landmarks=[fake_landmarks()]), image, 1)
    detector._on_result(SimpleNamespace(face_landmarks=[]), image, 2)

    assert len(received) == 2
    assert len(received[0]) == 1
    assert len(received[0][0]) == 468
    assert received[1] == []


def test_close(landmarker):
    detector = FaceMeshDetector(model_path="face_landmarker.task")
    detector.detect_start(FakeSource(), lambda faces: None)
    detector.close()
    assert landmarker.closed
    assert not detector.running


def test_interrupted_download_leaves_no_model(tmp_path, monkeypatch):
    def broken(url, filename):
        with open(filename, "wb") as f:
            f.write(b"trunc")
        raise OSError("connection reset")

    monkeypatch.setattr(face_detector.urllib.request, "urlretrieve", broken)
    with pytest.raises(OSError):
        face_detector.get_model_path(tmp_path)
    assert not (tmp_path / "face_landmarker.task").exists()


def test_download_moves_model_into_place(tmp_path, monkeypatch):
    urls = []

    def fetch(url, filename):
        urls.append(url)
        with open(filename, "wb") as f:
            f.write(b"model")

    monkeypatch.setattr(face_detector.urllib.request, "urlretrieve", fetch)
    path = face_detector.get_model_path(tmp_path)

    assert path == str(tmp_path / "face_landmarker.task")
    assert (tmp_path / "face_landmarker.task").read_bytes() == b"model"
    assert not (tmp_path / "face_landmarker.task.part").exists()

    face_detector.get_model_path(tmp_path)
    assert urls == [face_detector.MODEL_URL]
