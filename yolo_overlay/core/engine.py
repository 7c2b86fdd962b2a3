"""Frame-synchronous driving loop.

`OverlayEngine` reads a frame, runs the model, processes the raw tensor and
renders the overlay, one full cycle at a time on the calling thread. When the
source has no new frame the tick is skipped without touching pipeline state.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path

import numpy as np

from yolo_overlay.core.config.settings import OverlaySettings
from yolo_overlay.core.detectors.dnn import DnnModelRunner
from yolo_overlay.core.errors import ConfigurationError
from yolo_overlay.core.labels import load_labels
from yolo_overlay.core.overlay.draw import OpenCVRenderer
from yolo_overlay.core.pipeline import FramePipeline
from yolo_overlay.core.types import Frame, FrameSummary, RawTensor
from yolo_overlay.core.video_sources.base import FileSource, VideoSource, WebcamSource

logger = logging.getLogger(__name__)

FrameCallback = Callable[[FrameSummary, np.ndarray], None]


class OverlayEngine:
    """Runs the read → infer → process → render cycle."""

    def __init__(
        self,
        settings: OverlaySettings,
        *,
        source: VideoSource | None = None,
        model: Callable[[Frame], RawTensor] | None = None,
        labels: Sequence[str] | None = None,
        renderer: OpenCVRenderer | None = None,
        display_size_fn: Callable[[], tuple[float, float] | None] | None = None,
    ) -> None:
        """Create an engine. All configuration problems surface here.

        Args:
            settings: Validated settings.
            source: Optional frame source (defaults to the configured file/webcam).
            model: Optional callable returning the raw tensor for a frame
                (defaults to `DnnModelRunner` on `settings.model_path`).
            labels: Optional labels (defaults to `settings.labels_path`).
            renderer: Optional renderer that creates annotation handles.
            display_size_fn: Optional callable polled every cycle for the live
                display size; falls back to settings, then to the frame size.
        """

        self.settings = settings
        self.labels = tuple(labels) if labels is not None else load_labels(settings.labels_path)
        self.renderer = renderer or OpenCVRenderer(color=settings.box_color)
        self.pipeline = FramePipeline.from_settings(settings, self.labels, self.renderer.create_handle)
        self.model = model or DnnModelRunner(settings.model_path, settings.model_size)
        self._display_size_fn = display_size_fn
        self.source = source
        self.running = False
        self.last_error: str | None = None
        self.last_output: np.ndarray | None = None
        self.frames_processed = 0
        self.frames_skipped = 0

    def _make_source(self) -> VideoSource:
        """Instantiate the configured `VideoSource`."""

        if self.settings.video_source == "file":
            video_path = Path(self.settings.video_path)
            if not video_path.exists():
                raise RuntimeError(f"Video path not found: {video_path}")
            return FileSource(str(video_path), loop=self.settings.loop_video)
        return WebcamSource(self.settings.camera_index)

    def _display_size(self, frame: Frame) -> tuple[float, float]:
        if self._display_size_fn is not None:
            size = self._display_size_fn()
            if size is not None:
                return size
        if self.settings.display_size is not None:
            return self.settings.display_size
        h, w = frame.shape[:2]
        return (float(w), float(h))

    def tick(self) -> FrameSummary | None:
        """Run one cycle. Returns `None` when no frame was available."""

        if self.source is None:
            self.source = self._make_source()

        frame = self.source.read()
        if frame is None:
            self.frames_skipped += 1
            logger.debug("No frame available, skipping tick")
            return None

        display = self._display_size(frame)
        raw = self.model(frame)
        summary = self.pipeline.process_frame(raw, display)
        self.last_output = self.renderer.render(frame, self.pipeline.pool, display)
        self.frames_processed += 1
        return summary

    def run(self, max_frames: int = 0, on_frame: FrameCallback | None = None) -> int:
        """Loop until stopped, `max_frames` are processed, or a non-looping file ends.

        Per-frame failures are logged and the loop keeps going; configuration
        errors propagate. Returns the number of processed frames.
        """

        if self.source is None:
            self.source = self._make_source()

        self.running = True
        processed = 0
        target_fps = float(self.settings.target_fps)
        logger.debug("Overlay loop started")
        try:
            while self.running:
                start = time.perf_counter()
                try:
                    summary = self.tick()
                    self.last_error = None
                except ConfigurationError:
                    raise
                except Exception:
                    self.last_error = "Frame processing failed"
                    logger.exception(self.last_error)
                    summary = None

                if summary is not None:
                    processed += 1
                    if on_frame is not None and self.last_output is not None:
                        on_frame(summary, self.last_output)
                    if max_frames and processed >= max_frames:
                        break
                elif getattr(self.source, "exhausted", False):
                    break
                elif target_fps <= 0:
                    time.sleep(0.01)

                if target_fps > 0:
                    delay = (1.0 / target_fps) - (time.perf_counter() - start)
                    if delay > 0:
                        time.sleep(delay)
        finally:
            self.running = False
        return processed

    def stop(self) -> None:
        self.running = False

    def close(self) -> None:
        """Stop the loop and release the video source."""

        self.running = False
        if self.source is not None:
            self.source.close()
