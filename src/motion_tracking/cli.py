"""
Motion Tracking CLI
Runs the engine over a video file or stream and writes motion events as JSON lines.

Supports Terraform-like workflow:
  --validate  Check configuration validity
"""

import argparse
import dataclasses
import json
import logging
import signal
import sys
import time
from enum import Enum
from pathlib import Path
from threading import Event as ThreadEvent

import cv2
import numpy as np

from .config import (
    ConfigValidationError,
    apply_env_overrides,
    load_settings,
    print_validation_result,
    read_config_file,
    validate_settings,
)
from .engine import MotionDetectionEngine
from .events import EVENT_ERROR
from .models import MotionEvent
from .utils.constants import MAX_SOURCE_OPEN_ATTEMPTS, SOURCE_OPEN_RETRY_DELAY

logger = logging.getLogger(__name__)

# Module-level shutdown signal for SIGTERM/SIGINT handling
_shutdown_signal = ThreadEvent()


def _handle_shutdown_signal(signum, _frame):
    """Handle SIGTERM/SIGINT for graceful shutdown."""
    signal_name = "SIGTERM" if signum == signal.SIGTERM else "SIGINT"
    # Note: print is safer than logger in signal handlers
    print(f"\nReceived {signal_name}, initiating graceful shutdown...")
    _shutdown_signal.set()


def _setup_signal_handlers():
    """Register signal handlers for graceful shutdown."""
    signal.signal(signal.SIGTERM, _handle_shutdown_signal)
    signal.signal(signal.SIGINT, _handle_shutdown_signal)


def setup_logging(quiet: bool = False) -> None:
    """
    Setup logging configuration.

    Args:
        quiet: If True, only show warnings and errors
    """
    level = logging.WARNING if quiet else logging.INFO

    # Custom formatter with shorter module names
    class ShortNameFormatter(logging.Formatter):
        def format(self, record):
            record.name = record.name.replace("motion_tracking.", "mt.")
            return super().format(record)

    handler = logging.StreamHandler()
    handler.setFormatter(
        ShortNameFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s", datefmt="%H:%M:%S"
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(level)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Motion Tracking - Detect and track moving regions in video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m motion_tracking clip.mp4                        # Default settings
  python -m motion_tracking 0 --algorithm hybrid            # Webcam, hybrid detector
  python -m motion_tracking clip.mp4 -c motion.yaml -o events.jsonl
  python -m motion_tracking clip.mp4 -c motion.yaml --validate
        """,
    )
    parser.add_argument(
        "source",
        nargs="?",
        help="Video file, stream URL, or camera index",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="YAML settings file (default: built-in settings)",
    )
    parser.add_argument(
        "--algorithm",
        default=None,
        help="Override the detection algorithm",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Write motion events to this JSONL file",
    )
    parser.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help="Stop after this many frames",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration and exit",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only show warnings and errors",
    )
    return parser.parse_args(argv)


def open_source(source: str) -> cv2.VideoCapture:
    """
    Open a video source with retry logic.

    Args:
        source: File path, stream URL, or camera index as a string

    Returns:
        OpenCV VideoCapture object

    Raises:
        RuntimeError: If the source cannot be opened after retries
    """
    target = int(source) if source.isdigit() else source

    for attempt in range(MAX_SOURCE_OPEN_ATTEMPTS + 1):
        logger.info(f"Opening video source: {source} (attempt {attempt + 1})")
        cap = cv2.VideoCapture(target)

        if cap.isOpened():
            logger.info("Video source opened")
            return cap

        if attempt < MAX_SOURCE_OPEN_ATTEMPTS:
            logger.warning(f"Failed to open, retrying in {SOURCE_OPEN_RETRY_DELAY}s...")
            time.sleep(SOURCE_OPEN_RETRY_DELAY)

    logger.error(
        f"Failed to open video source after {MAX_SOURCE_OPEN_ATTEMPTS + 1} attempts"
    )
    raise RuntimeError(f"Cannot open video source: {source}")


def frame_timestamp(cap: cv2.VideoCapture, frame_index: int, fps: float) -> int:
    """Position of the current frame in ms, falling back to index / fps."""
    position = cap.get(cv2.CAP_PROP_POS_MSEC)
    if position and position > 0:
        return int(position)
    return int(frame_index * 1000 / fps) if fps > 0 else int(time.time() * 1000)


def _json_default(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Not JSON serializable: {type(value).__name__}")


def event_to_json(event: MotionEvent) -> str:
    """One-line JSON rendering of a motion event."""
    return json.dumps(dataclasses.asdict(event), default=_json_default)


def _build_settings(args: argparse.Namespace):
    """Load settings from file/env and apply the --algorithm override."""
    settings = load_settings(args.config)
    if args.algorithm:
        result = validate_settings(
            settings.model_dump() | {"algorithm": args.algorithm}
        )
        if not result.valid:
            raise ConfigValidationError("Invalid --algorithm", result.errors)
        settings = result.settings
    return settings


def run(args: argparse.Namespace) -> int:
    """Run the engine over the source. Returns the process exit code."""
    try:
        settings = _build_settings(args)
    except ConfigValidationError as e:
        logger.error(str(e))
        for error in e.errors:
            logger.error(f"  {error}")
        return 1

    try:
        cap = open_source(args.source)
    except RuntimeError as e:
        logger.error(str(e))
        return 1

    engine = MotionDetectionEngine(settings)
    engine.on(
        EVENT_ERROR,
        lambda payload: logger.warning(
            f"Engine error ({payload['context']}): {payload['error']}"
        ),
    )

    output = open(args.output, "w", encoding="utf-8") if args.output else None
    if output:
        logger.info(f"Writing events to {args.output}")

    fps = cap.get(cv2.CAP_PROP_FPS) or 0.0
    frame_index = 0
    start_time = time.time()

    try:
        engine.start()
        while not _shutdown_signal.is_set():
            if args.max_frames is not None and frame_index >= args.max_frames:
                break

            ret, frame = cap.read()
            if not ret:
                logger.info("End of video source")
                break

            event = engine.process_frame(frame, frame_timestamp(cap, frame_index, fps))
            frame_index += 1

            if event is not None and output:
                output.write(event_to_json(event) + "\n")
                output.flush()

    except KeyboardInterrupt:
        logger.info("Stopped by user")
    finally:
        _log_final_stats(engine, frame_index, start_time)
        engine.destroy()
        cap.release()
        if output:
            output.close()

    return 0


def _log_final_stats(
    engine: MotionDetectionEngine, frame_count: int, start_time: float
) -> None:
    """Log final statistics."""
    elapsed = time.time() - start_time
    state = engine.get_tracking_state()

    logger.info("Motion tracking complete")
    logger.info(f"Runtime: {elapsed:.1f} seconds")
    logger.info(f"Frames: {frame_count}")
    logger.info(f"Avg processing: {engine.average_processing_time_ms:.1f}ms")
    logger.info(f"Events: {engine.event_count}")
    logger.info(
        f"Trackers: {len(state.active_trackers)} active, "
        f"{len(state.lost_tracks)} retired"
    )


def validate(args: argparse.Namespace) -> int:
    """Validate configuration, print the result, and return the exit code."""
    try:
        data = read_config_file(args.config) if args.config else {}
    except ConfigValidationError as e:
        print(f"Error: {e}")
        return 1

    data = apply_env_overrides(data)
    if args.algorithm:
        data["algorithm"] = args.algorithm

    result = validate_settings(data)
    print_validation_result(result)
    return 0 if result.valid else 1


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(quiet=args.quiet or args.validate)

    if args.validate:
        sys.exit(validate(args))

    if args.source is None:
        logger.error("A video source is required (file, stream URL, or camera index)")
        sys.exit(2)

    if args.config and not Path(args.config).exists():
        logger.error(f"Specified config file not found: {args.config}")
        sys.exit(1)

    _setup_signal_handlers()
    sys.exit(run(args))


if __name__ == "__main__":
    main()
