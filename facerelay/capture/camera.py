"""OpenCV camera frame source driven by a background reader thread."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Union

import cv2

from facerelay.types import FrameContext

LOGGER = logging.getLogger("facerelay.capture")

FrameCallback = Callable[[FrameContext], None]


def now_ms() -> int:
    return int(time.time() * 1000)


class CameraSource:
    """Reads frames from ``cv2.VideoCapture`` and hands each one to a callback.

    Frames are delivered one at a time on the reader thread, so a callback
    finishes before the next frame is read.
    """

    def __init__(
        self,
        device: Union[int, str] = 0,
        width: int = 640,
        height: int = 480,
        read_fail_limit: int = 30,
        join_timeout_s: float = 3.0,
    ) -> None:
        self.device = device
        self.width = width
        self.height = height
        self.read_fail_limit = read_fail_limit
        self.join_timeout_s = join_timeout_s
        self._cap: Optional[cv2.VideoCapture] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, callback: FrameCallback) -> None:
        if self.is_running:
            if not self._stop_event.is_set():
                return
            raise RuntimeError(f"Previous reader for camera {self.device} is still finishing a frame")
        cap = cv2.VideoCapture(self.device)
        if not cap.isOpened():
            raise RuntimeError(f"Unable to open camera {self.device}")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        # One stop event and capture per session.
        stop_event = threading.Event()
        self._cap = cap
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._loop, args=(cap, stop_event, callback), name="facerelay-camera", daemon=True
        )
        self._thread.start()
        LOGGER.info(
            "Camera %s started requested=%dx%d actual=%dx%d",
            self.device,
            self.width,
            self.height,
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.join_timeout_s)
        if thread is not None and thread.is_alive():
            if thread is not threading.current_thread():
                LOGGER.warning(
                    "Camera %s reader still busy after %.1fs; it will exit after the current frame",
                    self.device,
                    self.join_timeout_s,
                )
        else:
            self._thread = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        LOGGER.info("Camera %s stopped", self.device)

    def _loop(self, cap: cv2.VideoCapture, stop_event: threading.Event, callback: FrameCallback) -> None:
        fail_streak = 0
        while not stop_event.is_set():
            ok, image = cap.read()
            if not ok or image is None:
                fail_streak += 1
                if fail_streak >= self.read_fail_limit:
                    LOGGER.error("Camera %s returned no frames %d times; stopping reader", self.device, fail_streak)
                    break
                time.sleep(0.01)
                continue
            fail_streak = 0
            callback(FrameContext(image=image, timestamp_ms=now_ms()))
