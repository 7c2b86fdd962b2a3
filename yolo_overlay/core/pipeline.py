"""Per-frame overlay pipeline.

Ties decoding, display mapping and the annotation pool together behind a single
`process_frame(raw, display_size)` call. The pipeline owns no timer or event
loop; an external driver (see `yolo_overlay.core.engine`) calls it once per frame.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence

from yolo_overlay.core.annotations.pool import AnnotationHandle, AnnotationPool
from yolo_overlay.core.config.settings import OverlaySettings
from yolo_overlay.core.decoder import DetectorDecoder
from yolo_overlay.core.mapping import map_detections, validate_size
from yolo_overlay.core.types import FrameSummary, RawTensor, Size


class FramePipeline:
    """Decode → suppress → map → annotate for one frame at a time."""

    def __init__(
        self,
        decoder: DetectorDecoder,
        pool: AnnotationPool,
        model_size: Size = (640, 640),
        label_font_fraction: float = 0.05,
    ) -> None:
        self.decoder = decoder
        self.pool = pool
        self.model_size = validate_size("model_size", model_size)
        self.label_font_fraction = float(label_font_fraction)
        self.frame_id = 0
        self._last_fps_at = time.perf_counter()
        self._fps = 0.0

    @classmethod
    def from_settings(
        cls,
        settings: OverlaySettings,
        labels: Sequence[str],
        handle_factory: Callable[[], AnnotationHandle],
    ) -> FramePipeline:
        """Build a pipeline from validated settings (raises `ConfigurationError`)."""

        decoder = DetectorDecoder(
            labels,
            iou_threshold=settings.iou_threshold,
            score_threshold=settings.score_threshold,
            layout=settings.tensor_layout,
        )
        pool = AnnotationPool(handle_factory, max_displayed=settings.max_displayed)
        return cls(
            decoder,
            pool,
            model_size=settings.model_size,
            label_font_fraction=settings.label_font_fraction,
        )

    def _process_internal(
        self,
        raw: RawTensor,
        display_size: tuple[float, float],
        profile: bool,
    ) -> tuple[FrameSummary, dict[str, float]]:
        timings: dict[str, float] = {}
        t0 = time.perf_counter() if profile else 0.0

        self.frame_id += 1
        detections = self.decoder.decode(raw)
        t1 = time.perf_counter() if profile else 0.0

        boxes = map_detections(detections, self.model_size, display_size)
        t2 = time.perf_counter() if profile else 0.0

        font_size = float(display_size[1]) * self.label_font_fraction
        active = self.pool.update(boxes, font_size=font_size)
        t3 = time.perf_counter() if profile else 0.0

        now_perf = time.perf_counter()
        dt = now_perf - self._last_fps_at
        if dt > 0:
            instant_fps = 1.0 / dt
            alpha = 0.1
            self._fps = (
                instant_fps if self._fps == 0 else (self._fps * (1.0 - alpha) + instant_fps * alpha)
            )
        self._last_fps_at = now_perf

        if profile:
            timings["decode_ms"] = (t1 - t0) * 1000.0
            timings["map_ms"] = (t2 - t1) * 1000.0
            timings["annotate_ms"] = (t3 - t2) * 1000.0
            timings["pipeline_ms"] = (t3 - t0) * 1000.0

        summary = FrameSummary(
            frame_id=self.frame_id,
            timestamp=time.time(),
            detections=detections,
            boxes=boxes,
            display_size=(int(display_size[0]), int(display_size[1])),
            active_slots=active,
            pool_size=len(self.pool),
            dropped=self.decoder.dropped_last_frame,
            fps=self._fps,
            profile=dict(timings) if profile else None,
        )
        return summary, timings

    def process_frame(self, raw: RawTensor, display_size: tuple[float, float]) -> FrameSummary:
        """Process one raw tensor against the current display size."""

        summary, _timings = self._process_internal(raw, display_size, profile=False)
        return summary

    def process_with_profile(
        self,
        raw: RawTensor,
        display_size: tuple[float, float],
    ) -> tuple[FrameSummary, dict[str, float]]:
        """Like `process_frame`, also returning stage durations in milliseconds."""

        return self._process_internal(raw, display_size, profile=True)
