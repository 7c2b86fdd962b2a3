"""Greedy non-maximum suppression over corner-form boxes."""

from __future__ import annotations

import numpy as np

from yolo_overlay.core.errors import ConfigurationError
from yolo_overlay.core.geometry import iou_one_to_many


def validate_threshold(name: str, value: float) -> float:
    v = float(value)
    if not 0.0 <= v <= 1.0:
        raise ConfigurationError(f"{name} must be in [0, 1], got {value!r}")
    return v


def order_by_confidence(scores: np.ndarray) -> np.ndarray:
    """Indices sorted by descending score; equal scores keep ascending index order."""

    s = np.asarray(scores, dtype=np.float64)
    return np.argsort(-s, kind="stable")


def non_max_suppression(
    boxes: np.ndarray,
    scores: np.ndarray,
    iou_threshold: float = 0.5,
    score_threshold: float = 0.5,
) -> np.ndarray:
    """Return the indices of boxes kept by greedy NMS.

    Args:
        boxes: (N, 4) corner-form boxes (x0, y0, x1, y1).
        scores: (N,) confidences.
        iou_threshold: a remaining box is suppressed when its IoU with a kept box
            is >= this value. Boxes that do not overlap at all are never suppressed.
        score_threshold: boxes scoring below this value are discarded up front.

    Returns:
        (K,) int64 array of indices into the inputs, highest confidence first,
        ties broken by ascending original index.
    """

    b = np.asarray(boxes, dtype=np.float32).reshape(-1, 4)
    s = np.asarray(scores, dtype=np.float64).reshape(-1)
    if b.shape[0] != s.shape[0]:
        raise ValueError(f"boxes and scores length mismatch: {b.shape[0]} != {s.shape[0]}")

    iou_thr = float(iou_threshold)
    # NaN scores fail this comparison and are dropped together with low scores.
    eligible = np.flatnonzero(s >= float(score_threshold))
    if eligible.size == 0:
        return np.zeros((0,), dtype=np.int64)

    order = eligible[order_by_confidence(s[eligible])]
    keep: list[int] = []
    while order.size > 0:
        best = int(order[0])
        keep.append(best)
        rest = order[1:]
        if rest.size == 0:
            break
        ious = iou_one_to_many(b[best], b[rest])
        suppressed = (ious >= iou_thr) & (ious > 0.0)
        order = rest[~suppressed]

    return np.asarray(keep, dtype=np.int64)
