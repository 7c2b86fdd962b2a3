"""Shared type definitions used across the overlay core.

This module centralizes small, stable types (boxes, detections, display boxes and
per-frame summaries) so decoder/pool/renderer code can stay strongly typed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

Frame = np.ndarray
RawTensor = np.ndarray

# (x0, y0, x1, y1)
BBox = tuple[float, float, float, float]
# (cx, cy, w, h)
CenterBox = tuple[float, float, float, float]
Size = tuple[int, int]


@dataclass(frozen=True)
class Candidates:
    """Decoded candidate set handed from the decoder to suppression.

    All arrays are parallel and indexed by the original row of the raw tensor.
    """

    centers: np.ndarray  # (N, 4) cx, cy, w, h
    corners: np.ndarray  # (N, 4) x0, y0, x1, y1
    scores: np.ndarray  # (N,)
    class_ids: np.ndarray  # (N,)

    def __len__(self) -> int:
        return int(self.scores.shape[0])


@dataclass(frozen=True)
class Detection:
    """A candidate that survived suppression, in model-input pixel space."""

    index: int
    center: CenterBox
    bbox: BBox
    class_id: int
    label: str
    confidence: float


@dataclass(frozen=True)
class DisplayBox:
    """Display-space box with a center-origin convention ((0, 0) = display center)."""

    center_x: float
    center_y: float
    width: float
    height: float
    label: str
    confidence: float = 0.0
    class_id: int = -1


@dataclass
class FrameSummary:
    """Metadata payload associated with a processed frame."""

    frame_id: int
    timestamp: float
    detections: list[Detection]
    boxes: list[DisplayBox]
    display_size: Size = (0, 0)
    active_slots: int = 0
    pool_size: int = 0
    dropped: int = 0
    fps: float = 0.0
    profile: dict[str, float] | None = field(default=None)
