from types import SimpleNamespace

import pytest

pytest.importorskip("cv2")

from facerelay.detectors.face_mediapipe import convert_detection
from facerelay.quality.gate import QualityGate


def _mp_detection(xmin, ymin, width, height, keypoints, score=0.9):
    location = SimpleNamespace(
        relative_bounding_box=SimpleNamespace(xmin=xmin, ymin=ymin, width=width, height=height),
        relative_keypoints=[SimpleNamespace(x=x, y=y) for x, y in keypoints],
    )
    return SimpleNamespace(location_data=location, score=[score] if score is not None else [])


KEYPOINTS = [(0.44, 0.42), (0.56, 0.42), (0.5, 0.5), (0.5, 0.58), (0.38, 0.45), (0.62, 0.45)]


def test_convert_detection_uses_center_box():
    det = convert_detection(_mp_detection(0.4, 0.3, 0.2, 0.4, KEYPOINTS))
    assert det.bbox.x_center == pytest.approx(0.5)
    assert det.bbox.y_center == pytest.approx(0.5)
    assert det.bbox.width == pytest.approx(0.2)
    assert det.bbox.rotation is None
    assert len(det.landmarks) == 6
    assert det.landmarks[0].x == pytest.approx(0.44)
    assert all(lm.confidence is None for lm in det.landmarks)
    assert det.score == pytest.approx(0.9)


def test_converted_detection_passes_gate():
    det = convert_detection(_mp_detection(0.4, 0.3, 0.2, 0.4, KEYPOINTS))
    assert QualityGate().accepts(det)


def test_missing_score_is_none():
    det = convert_detection(_mp_detection(0.1, 0.1, 0.1, 0.1, KEYPOINTS[:2], score=None))
    assert det.score is None
