"""Landmark-based quality gate for incoming face detections."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional

from facerelay.types import Detection

LOGGER = logging.getLogger("facerelay.quality")

REJECT_ROTATION = "rotation"
REJECT_LANDMARKS = "landmarks"
REJECT_INTEROCULAR = "interocular"
REJECT_CONFIDENCE = "confidence"


class QualityGate:
    """Stateless predicate deciding whether a detection is worth recognizing.

    Rules run in order and stop at the first failure:

    1. head tilt: ``abs(rotation) > max_rotation_deg`` (only when rotation is known)
    2. too few landmarks to judge geometry
    3. eye distance (landmarks 0 and 1) below ``min_interocular_ratio * bbox.width``
    4. any landmark confidence below ``min_confidence`` (landmarks without one are skipped)
    """

    def __init__(
        self,
        max_rotation_deg: float = 15.0,
        min_landmarks: int = 6,
        min_interocular_ratio: float = 0.3,
        min_confidence: float = 0.5,
    ) -> None:
        if min_landmarks < 2:
            raise ValueError(f"min_landmarks must be at least 2 (landmarks 0 and 1 are the eyes), got {min_landmarks}")
        self.max_rotation_deg = max_rotation_deg
        self.min_landmarks = min_landmarks
        self.min_interocular_ratio = min_interocular_ratio
        self.min_confidence = min_confidence

    def reject_reason(self, detection: Detection) -> Optional[str]:
        """Return the name of the first failing rule, or None if the detection passes."""
        rotation = detection.bbox.rotation
        if rotation is not None and abs(rotation) > self.max_rotation_deg:
            return REJECT_ROTATION

        landmarks = detection.landmarks
        if len(landmarks) < self.min_landmarks:
            return REJECT_LANDMARKS

        eye_a, eye_b = landmarks[0], landmarks[1]
        interocular = math.hypot(eye_a.x - eye_b.x, eye_a.y - eye_b.y)
        if interocular < detection.bbox.width * self.min_interocular_ratio:
            return REJECT_INTEROCULAR

        for landmark in landmarks:
            if landmark.confidence is not None and landmark.confidence < self.min_confidence:
                return REJECT_CONFIDENCE
        return None

    def accepts(self, detection: Detection) -> bool:
        return self.reject_reason(detection) is None

    def filter(self, detections: Iterable[Detection]) -> List[Detection]:
        """Keep accepted detections in their original order."""
        accepted: List[Detection] = []
        for idx, detection in enumerate(detections):
            reason = self.reject_reason(detection)
            if reason is None:
                accepted.append(detection)
            else:
                LOGGER.debug("Rejected detection #%d reason=%s", idx, reason)
        return accepted
