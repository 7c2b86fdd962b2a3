"""Raw detector output decoding.

Turns the per-frame raw tensor of an anchor-free YOLO head (box parameters in
center form followed by one score per class) into an ordered list of labeled
detections: best class per candidate, center-to-corner transform, then NMS.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from yolo_overlay.core.errors import ConfigurationError, DecodeAnomaly
from yolo_overlay.core.geometry import CENTERS_TO_CORNERS, centers_to_corners, validate_transform
from yolo_overlay.core.nms import non_max_suppression, validate_threshold
from yolo_overlay.core.types import Candidates, Detection, RawTensor

logger = logging.getLogger(__name__)

TENSOR_LAYOUTS = ("candidates_first", "attributes_first")


class DetectorDecoder:
    """Decode raw detection tensors into labeled detections.

    Two tensor layouts are accepted, each with an optional leading batch axis of 1:

    - `candidates_first`: (N, 4 + C), one row per candidate.
    - `attributes_first`: (4 + C, N), as produced by Ultralytics ONNX exports.
    """

    def __init__(
        self,
        labels: Sequence[str],
        iou_threshold: float = 0.5,
        score_threshold: float = 0.5,
        layout: str = "candidates_first",
        transform: np.ndarray = CENTERS_TO_CORNERS,
    ) -> None:
        self.labels = tuple(labels)
        if not self.labels:
            raise ConfigurationError("labels must not be empty")
        if layout not in TENSOR_LAYOUTS:
            raise ConfigurationError(f"layout must be one of {TENSOR_LAYOUTS}, got {layout!r}")
        self.layout = layout
        self.iou_threshold = validate_threshold("iou_threshold", iou_threshold)
        self.score_threshold = validate_threshold("score_threshold", score_threshold)
        self.transform = validate_transform(transform)

        self.anomaly_count = 0
        self.last_anomaly: DecodeAnomaly | None = None
        self.dropped_last_frame = 0

    @property
    def num_classes(self) -> int:
        return len(self.labels)

    def to_rows(self, raw: RawTensor) -> np.ndarray:
        """Return `raw` as a (N, 4 + C) float32 array."""

        arr = np.asarray(raw, dtype=np.float32)
        if arr.ndim == 3:
            if arr.shape[0] != 1:
                raise ConfigurationError(f"only batch size 1 is supported, got {arr.shape[0]}")
            arr = arr[0]
        if arr.ndim != 2:
            raise ConfigurationError(f"raw tensor must be 2-D (or 3-D with batch 1), got {arr.shape}")
        if self.layout == "attributes_first":
            arr = arr.T

        expected = 4 + self.num_classes
        if arr.shape[1] != expected:
            raise ConfigurationError(
                f"raw tensor has {arr.shape[1] - 4} class columns but {self.num_classes} labels"
            )
        return arr

    def candidates(self, raw: RawTensor) -> Candidates:
        """Reduce class scores and transform boxes for every candidate row."""

        rows = self.to_rows(raw)
        centers = rows[:, :4]
        class_scores = rows[:, 4:]
        # argmax and max over the same columns so class id and score stay aligned
        class_ids = np.argmax(class_scores, axis=1)
        scores = np.take_along_axis(class_scores, class_ids[:, None], axis=1)[:, 0]
        corners = centers_to_corners(centers, self.transform)
        return Candidates(
            centers=centers,
            corners=corners,
            scores=scores,
            class_ids=class_ids.astype(np.int64),
        )

    def suppress(self, candidates: Candidates) -> np.ndarray:
        return non_max_suppression(
            candidates.corners,
            candidates.scores,
            iou_threshold=self.iou_threshold,
            score_threshold=self.score_threshold,
        )

    def decode(self, raw: RawTensor) -> list[Detection]:
        """Decode one frame's raw tensor into ordered detections."""

        cands = self.candidates(raw)
        keep = self.suppress(cands)
        return self._build(keep, cands)

    def decode_selected(
        self,
        coords: np.ndarray,
        label_ids: np.ndarray,
        scores: np.ndarray | None = None,
    ) -> list[Detection]:
        """Build detections from a model that already ran NMS in its graph.

        Args:
            coords: (K, 4) center-form boxes of the kept candidates, in order.
            label_ids: (K,) class ids.
            scores: optional (K,) confidences (defaults to 1.0).
        """

        centers = np.asarray(coords, dtype=np.float32).reshape(-1, 4)
        ids = np.asarray(label_ids).reshape(-1).astype(np.int64)
        if ids.shape[0] != centers.shape[0]:
            raise ValueError(f"coords/label_ids length mismatch: {centers.shape[0]} != {ids.shape[0]}")
        if scores is None:
            conf = np.ones(ids.shape[0], dtype=np.float32)
        else:
            conf = np.asarray(scores, dtype=np.float32).reshape(-1)
        cands = Candidates(
            centers=centers,
            corners=centers_to_corners(centers, self.transform),
            scores=conf,
            class_ids=ids,
        )
        return self._build(np.arange(ids.shape[0], dtype=np.int64), cands)

    def _build(self, keep: np.ndarray, cands: Candidates) -> list[Detection]:
        out: list[Detection] = []
        dropped = 0
        n_labels = self.num_classes
        for i in keep:
            idx = int(i)
            class_id = int(cands.class_ids[idx])
            if not 0 <= class_id < n_labels:
                dropped += 1
                self._report(DecodeAnomaly(candidate_index=idx, class_id=class_id, num_labels=n_labels))
                continue
            cx, cy, w, h = (float(v) for v in cands.centers[idx])
            x0, y0, x1, y1 = (float(v) for v in cands.corners[idx])
            out.append(
                Detection(
                    index=idx,
                    center=(cx, cy, w, h),
                    bbox=(x0, y0, x1, y1),
                    class_id=class_id,
                    label=self.labels[class_id],
                    confidence=float(cands.scores[idx]),
                )
            )
        self.dropped_last_frame = dropped
        return out

    def _report(self, anomaly: DecodeAnomaly) -> None:
        self.anomaly_count += 1
        self.last_anomaly = anomaly
        if self.anomaly_count == 1:
            logger.warning("Dropping detection: %s", anomaly.describe())
        else:
            logger.debug("Dropping detection: %s", anomaly.describe())
