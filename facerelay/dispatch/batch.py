"""Fire-and-forget delivery of face batches to the recognition service."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence

import requests

from facerelay.types import CroppedFace

LOGGER = logging.getLogger("facerelay.dispatch")

FailureHook = Callable[[BaseException, int], None]


def build_payload(batch: Sequence[CroppedFace]) -> Dict[str, List[Dict]]:
    """Serialize a batch into the JSON body expected by ``/recognize-batch``."""
    return {"images": [face.to_payload() for face in batch]}


class BatchDispatcher:
    """POSTs batches on a worker pool without blocking the caller.

    Transport errors, non-2xx responses and unexpected worker errors are
    logged, forwarded to the optional ``on_failure`` hook and dropped.
    Nothing is retried and response bodies are never read.
    """

    def __init__(
        self,
        endpoint: str,
        session: Optional[requests.Session] = None,
        max_workers: int = 4,
        timeout: Optional[float] = None,
        on_failure: Optional[FailureHook] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.endpoint = endpoint
        self.session = session or requests.Session()
        self.timeout = timeout
        self.on_failure = on_failure
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="facerelay-dispatch"
        )
        self._counter_lock = threading.Lock()
        self.sent = 0
        self.failed = 0

    def dispatch(self, batch: Sequence[CroppedFace]) -> Optional[Future]:
        """Queue ``batch`` for delivery and return immediately."""
        if not batch:
            LOGGER.debug("Skipping dispatch of empty batch")
            return None
        payload = build_payload(batch)
        size = len(batch)
        LOGGER.debug("Dispatching batch of %d face(s) to %s", size, self.endpoint)
        return self._executor.submit(self._send, payload, size)

    def _send(self, payload: Dict, size: int) -> bool:
        try:
            response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
            try:
                response.raise_for_status()
            finally:
                response.close()
        except requests.RequestException as exc:
            self._record_failure(exc, size)
            return False
        except Exception as exc:
            LOGGER.exception("Unexpected error while sending %d face(s) to %s", size, self.endpoint)
            self._record_failure(exc, size)
            return False
        with self._counter_lock:
            self.sent += 1
        LOGGER.debug("Delivered batch of %d face(s) status=%s", size, response.status_code)
        return True

    def _record_failure(self, exc: BaseException, size: int) -> None:
        with self._counter_lock:
            self.failed += 1
        LOGGER.warning("Failed to send %d face(s) to %s: %s", size, self.endpoint, exc)
        if self.on_failure is None:
            return
        try:
            self.on_failure(exc, size)
        except Exception:  # pragma: no cover - hook must not break the worker
            LOGGER.exception("Dispatch failure hook raised")

    def close(self, wait: bool = True) -> None:
        """Stop accepting batches; in-flight sends are allowed to finish."""
        self._executor.shutdown(wait=wait)
        if wait:
            self.session.close()
        LOGGER.info("Dispatcher closed sent=%d failed=%d", self.sent, self.failed)
