"""Pipeline orchestration."""

from facerelay.pipeline.controller import PipelineController, build_controller

__all__ = ["PipelineController", "build_controller"]
