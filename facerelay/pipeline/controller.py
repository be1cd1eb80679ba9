"""Start/stop orchestration of the detect -> filter -> crop -> dispatch cycle."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Protocol

import numpy as np

from facerelay.config import RelayConfig
from facerelay.crop.encoder import FaceCropper
from facerelay.crop.region import derive_rect
from facerelay.dispatch.batch import BatchDispatcher
from facerelay.quality.gate import QualityGate
from facerelay.throttle import Throttle
from facerelay.types import Batch, FrameContext, FrameResults, PipelineState, Rectangle

LOGGER = logging.getLogger("facerelay.pipeline")


class FrameSource(Protocol):
    def start(self, callback: Callable[[FrameContext], None]) -> None: ...

    def stop(self) -> None: ...


class FaceDetector(Protocol):
    def detect(self, frame: FrameContext) -> FrameResults: ...


class Dispatcher(Protocol):
    def dispatch(self, batch: Batch) -> object: ...


class Overlay(Protocol):
    def render(self, image: np.ndarray, rects: List[Rectangle]) -> None: ...


class PipelineController:
    """Owns the STOPPED/RUNNING state and runs one cycle per admitted frame.

    Cycles run synchronously on the caller's thread (the frame source's reader)
    and are serialized by a lock. Dispatch is handed off to the dispatcher and
    never awaited here, so stopping the pipeline leaves in-flight sends alone.
    """

    def __init__(
        self,
        frame_source: FrameSource,
        gate: QualityGate,
        cropper: FaceCropper,
        dispatcher: Dispatcher,
        throttle: Throttle,
        detector: Optional[FaceDetector] = None,
        overlay: Optional[Overlay] = None,
    ) -> None:
        self.frame_source = frame_source
        self.gate = gate
        self.cropper = cropper
        self.dispatcher = dispatcher
        self.throttle = throttle
        self.detector = detector
        self.overlay = overlay
        self._state = PipelineState.STOPPED
        self._state_lock = threading.RLock()
        self._cycle_lock = threading.Lock()

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is PipelineState.RUNNING

    def start(self) -> None:
        with self._state_lock:
            if self._state is PipelineState.RUNNING:
                return
            self.throttle.reset()
            self._state = PipelineState.RUNNING
            try:
                self.frame_source.start(self.on_frame)
            except Exception:
                self._state = PipelineState.STOPPED
                raise
        LOGGER.info("Pipeline started (interval=%dms)", self.throttle.interval_ms)

    def stop(self) -> None:
        with self._state_lock:
            if self._state is PipelineState.STOPPED:
                return
            self._state = PipelineState.STOPPED
            self.frame_source.stop()
        LOGGER.info("Pipeline stopped")

    def toggle(self) -> PipelineState:
        with self._state_lock:
            if self.is_running:
                self.stop()
            else:
                self.start()
            return self._state

    def on_frame(self, frame: FrameContext) -> Optional[Batch]:
        """Frame-source callback: detect, then run the cycle on the results."""
        if not self.is_running:
            return None
        if self.detector is None:
            LOGGER.warning("No detector configured; dropping frame")
            return None
        try:
            results = self.detector.detect(frame)
        except Exception:
            LOGGER.warning("Detector failed on frame ts=%d; skipping", frame.timestamp_ms, exc_info=True)
            return None
        return self.on_results(results)

    def on_results(self, results: FrameResults) -> Optional[Batch]:
        """Run one cycle; returns the dispatched batch, or None if nothing was sent."""
        if not self.is_running:
            return None
        with self._cycle_lock:
            frame = results.frame
            if not self.throttle.admit(frame.timestamp_ms):
                return None
            try:
                return self._run_cycle(results)
            except Exception:
                LOGGER.warning("Cycle for frame ts=%d failed; skipping", frame.timestamp_ms, exc_info=True)
                return None

    def _run_cycle(self, results: FrameResults) -> Optional[Batch]:
        frame = results.frame
        if not results.detections:
            if self.overlay is not None:
                self.overlay.render(frame.image, [])
            return None

        accepted = self.gate.filter(results.detections)
        rects = [derive_rect(det.bbox, frame.width, frame.height) for det in accepted]
        if self.overlay is not None:
            self.overlay.render(frame.image, rects)

        batch: Batch = []
        for rect in rects:
            face = self.cropper.crop(frame.image, rect, frame.timestamp_ms)
            if face is not None:
                batch.append(face)

        LOGGER.debug(
            "Cycle ts=%d detections=%d accepted=%d cropped=%d",
            frame.timestamp_ms,
            len(results.detections),
            len(accepted),
            len(batch),
        )
        if not batch:
            return None
        self.dispatcher.dispatch(batch)
        return batch


def build_controller(
    config: RelayConfig,
    frame_source: FrameSource,
    detector: Optional[FaceDetector] = None,
    overlay: Optional[Overlay] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> PipelineController:
    """Wire the pipeline collaborators from a RelayConfig."""
    gate = QualityGate(
        max_rotation_deg=config.max_rotation_deg,
        min_landmarks=config.min_landmarks,
        min_interocular_ratio=config.min_interocular_ratio,
        min_confidence=config.min_confidence_threshold,
    )
    if dispatcher is None:
        dispatcher = BatchDispatcher(
            config.recognition_endpoint,
            max_workers=config.dispatch_workers,
            timeout=config.request_timeout_s,
        )
    return PipelineController(
        frame_source=frame_source,
        gate=gate,
        cropper=FaceCropper(image_format=config.image_format),
        dispatcher=dispatcher,
        throttle=Throttle(config.throttle_interval_ms),
        detector=detector,
        overlay=overlay,
    )
