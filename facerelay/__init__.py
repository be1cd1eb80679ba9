"""
Core package init for the face relay pipeline.

Turns per-frame face detections into throttled batches of cropped faces for a
remote recognition service.
"""

__all__ = [
    "capture",
    "config",
    "crop",
    "detectors",
    "dispatch",
    "io_utils",
    "pipeline",
    "quality",
    "throttle",
    "types",
    "viz",
]
