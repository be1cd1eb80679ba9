#!/usr/bin/env python3
"""CLI for streaming quality-gated face crops from a camera to a recognition service."""

from __future__ import annotations

import argparse
import logging
import threading
from pathlib import Path
from typing import Optional, Sequence

import cv2

from facerelay.capture.camera import CameraSource
from facerelay.config import RelayConfig, load_config
from facerelay.detectors.face_mediapipe import MediaPipeFaceDetector
from facerelay.dispatch.batch import BatchDispatcher
from facerelay.io_utils import dump_yaml, setup_logging
from facerelay.pipeline.controller import PipelineController, build_controller
from facerelay.viz.overlay import PreviewOverlay


LOGGER = logging.getLogger("scripts.run_relay")
WINDOW_NAME = "facerelay"
KEY_TOGGLE = ord(" ")
KEYS_QUIT = {ord("q"), 27}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Relay quality-gated face crops to a recognition endpoint")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("configs/relay.yaml"),
        help="Relay configuration YAML",
    )
    parser.add_argument("--endpoint", dest="recognition_endpoint", type=str, default=None, help="Recognition URL")
    parser.add_argument("--camera", dest="camera_index", type=int, default=None, help="Camera device index")
    parser.add_argument(
        "--frame-size",
        type=int,
        nargs=2,
        default=None,
        metavar=("WIDTH", "HEIGHT"),
        help="Requested capture size",
    )
    parser.add_argument(
        "--interval-ms",
        dest="throttle_interval_ms",
        type=int,
        default=None,
        help="Minimum time between processed frames",
    )
    parser.add_argument(
        "--min-confidence",
        dest="min_confidence_threshold",
        type=float,
        default=None,
        help="Minimum per-landmark confidence",
    )
    parser.add_argument(
        "--full-range",
        dest="model_selection",
        action="store_const",
        const=1,
        default=None,
        help="Use the full-range detector (faces further from the camera)",
    )
    parser.add_argument("--image-format", choices=["png", "jpeg"], default=None)
    parser.add_argument("--timeout", dest="request_timeout_s", type=float, default=None, help="HTTP timeout seconds")
    parser.add_argument(
        "--dump-config",
        type=Path,
        default=None,
        help="Write the resolved configuration to this YAML file and exit",
    )
    parser.add_argument("--headless", action="store_true", help="Start immediately without a preview window")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> RelayConfig:
    """Merge CLI overrides on top of the YAML config."""
    config = load_config(args.config)
    width, height = args.frame_size if args.frame_size else (None, None)
    return config.with_overrides(
        recognition_endpoint=args.recognition_endpoint,
        camera_index=args.camera_index,
        frame_width=width,
        frame_height=height,
        throttle_interval_ms=args.throttle_interval_ms,
        min_confidence_threshold=args.min_confidence_threshold,
        model_selection=args.model_selection,
        image_format=args.image_format,
        request_timeout_s=args.request_timeout_s,
    )


def run_headless(controller: PipelineController) -> None:
    controller.start()
    LOGGER.info("Running headless; press Ctrl+C to stop")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        LOGGER.info("Interrupted")
    finally:
        controller.stop()


def run_preview(controller: PipelineController, overlay: PreviewOverlay) -> None:
    LOGGER.info("SPACE starts/stops detection, q quits")
    cv2.namedWindow(WINDOW_NAME)
    try:
        while True:
            frame = overlay.latest()
            if frame is not None:
                cv2.imshow(WINDOW_NAME, frame)
            key = cv2.waitKey(30) & 0xFF
            if key in KEYS_QUIT:
                break
            if key == KEY_TOGGLE:
                try:
                    state = controller.toggle()
                except RuntimeError as exc:
                    LOGGER.warning("Could not start detection: %s", exc)
                    continue
                LOGGER.info("Detection %s", state.value)
    finally:
        controller.stop()
        cv2.destroyWindow(WINDOW_NAME)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    config = resolve_config(args)
    if args.dump_config is not None:
        dump_yaml(args.dump_config, config.to_dict())
        LOGGER.info("Wrote resolved config to %s", args.dump_config)
        return

    LOGGER.info(
        "Runtime config: endpoint=%s interval=%dms frame=%dx%d format=%s",
        config.recognition_endpoint,
        config.throttle_interval_ms,
        config.frame_width,
        config.frame_height,
        config.image_format,
    )

    source = CameraSource(config.camera_index, width=config.frame_width, height=config.frame_height)
    detector = MediaPipeFaceDetector(
        model_selection=config.model_selection,
        min_detection_confidence=config.min_detection_confidence,
    )
    dispatcher = BatchDispatcher(
        config.recognition_endpoint,
        max_workers=config.dispatch_workers,
        timeout=config.request_timeout_s,
    )
    overlay = None if args.headless else PreviewOverlay()
    controller = build_controller(config, source, detector=detector, overlay=overlay, dispatcher=dispatcher)

    try:
        if overlay is None:
            run_headless(controller)
        else:
            run_preview(controller, overlay)
    finally:
        detector.close()
        dispatcher.close()


if __name__ == "__main__":
    main()
