"""MediaPipe short/full range face detector adapter."""

from __future__ import annotations

import logging
from typing import Any, List

import cv2

from facerelay.types import BoundingBox, Detection, FrameContext, FrameResults, Landmark

LOGGER = logging.getLogger("facerelay.detectors.face")


class MediaPipeFaceDetector:
    """Wrapper around ``mediapipe.solutions.face_detection``.

    MediaPipe reports six relative keypoints per face in a fixed order
    (right eye, left eye, nose tip, mouth center, right ear tragion, left ear
    tragion), which is what the quality gate expects. It does not report a box
    rotation or per-keypoint confidence.
    """

    def __init__(self, model_selection: int = 0, min_detection_confidence: float = 0.5) -> None:
        try:
            import mediapipe as mp
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "mediapipe is required for MediaPipeFaceDetector. "
                "Install it via `pip install mediapipe`."
            ) from exc

        self.model_selection = model_selection
        self.min_detection_confidence = min_detection_confidence
        self._solution = mp.solutions.face_detection.FaceDetection(
            model_selection=model_selection,
            min_detection_confidence=min_detection_confidence,
        )
        LOGGER.info(
            "Loaded MediaPipe face detector model=%s min_conf=%.2f",
            "full" if model_selection == 1 else "short",
            min_detection_confidence,
        )

    def detect(self, frame: FrameContext) -> FrameResults:
        rgb = cv2.cvtColor(frame.image, cv2.COLOR_BGR2RGB)
        results = self._solution.process(rgb)
        detections = [convert_detection(det) for det in (results.detections or [])]
        return FrameResults(frame=frame, detections=detections)

    def close(self) -> None:
        self._solution.close()


def convert_detection(det: Any) -> Detection:
    """Translate a MediaPipe ``Detection`` proto into a facerelay Detection."""
    location = det.location_data
    box = location.relative_bounding_box
    bbox = BoundingBox(
        x_center=float(box.xmin) + float(box.width) / 2,
        y_center=float(box.ymin) + float(box.height) / 2,
        width=float(box.width),
        height=float(box.height),
    )
    landmarks: List[Landmark] = [
        Landmark(x=float(kp.x), y=float(kp.y)) for kp in location.relative_keypoints
    ]
    score = float(det.score[0]) if len(det.score) else None
    return Detection(bbox=bbox, landmarks=tuple(landmarks), score=score)
