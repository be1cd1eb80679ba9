"""Recognition service delivery."""

from facerelay.dispatch.batch import BatchDispatcher, build_payload

__all__ = ["BatchDispatcher", "build_payload"]
