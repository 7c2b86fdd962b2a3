"""Box geometry: the center-to-corner transform and IoU helpers."""

from __future__ import annotations

import numpy as np

from yolo_overlay.core.errors import ConfigurationError

# Row vector (cx, cy, w, h) @ M -> (x0, y0, x1, y1).
CENTERS_TO_CORNERS = np.array(
    [
        [1.0, 0.0, 1.0, 0.0],
        [0.0, 1.0, 0.0, 1.0],
        [-0.5, 0.0, 0.5, 0.0],
        [0.0, -0.5, 0.0, 0.5],
    ],
    dtype=np.float32,
)


def validate_transform(matrix: np.ndarray) -> np.ndarray:
    """Return `matrix` as float32 if it is a finite, invertible 4x4 matrix."""

    m = np.asarray(matrix, dtype=np.float32)
    if m.shape != (4, 4):
        raise ConfigurationError(f"transform matrix must be 4x4, got shape {m.shape}")
    if not np.all(np.isfinite(m)):
        raise ConfigurationError("transform matrix must be finite")
    if abs(float(np.linalg.det(m.astype(np.float64)))) < 1e-12:
        raise ConfigurationError("transform matrix must be invertible")
    return m


def centers_to_corners(centers: np.ndarray, matrix: np.ndarray = CENTERS_TO_CORNERS) -> np.ndarray:
    """Map (N, 4) center-form boxes to corner form with a single matmul.

    A 1-D input of length 4 is treated as a single box.
    """

    c = np.asarray(centers, dtype=np.float32)
    return c @ matrix


def corners_to_centers(corners: np.ndarray, matrix: np.ndarray = CENTERS_TO_CORNERS) -> np.ndarray:
    """Inverse of `centers_to_corners`."""

    c = np.asarray(corners, dtype=np.float64)
    return c @ np.linalg.inv(np.asarray(matrix, dtype=np.float64))


def iou_one_to_many(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """Vectorized IoU of one (4,) corner box against (M, 4) corner boxes.

    Boxes with zero or negative area contribute an IoU of 0.
    """

    b = np.asarray(box, dtype=np.float64)
    bs = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    if bs.shape[0] == 0:
        return np.zeros((0,), dtype=np.float64)

    area_a = max(0.0, b[2] - b[0]) * max(0.0, b[3] - b[1])
    area_b = np.clip(bs[:, 2] - bs[:, 0], 0.0, None) * np.clip(bs[:, 3] - bs[:, 1], 0.0, None)

    iw = np.clip(np.minimum(b[2], bs[:, 2]) - np.maximum(b[0], bs[:, 0]), 0.0, None)
    ih = np.clip(np.minimum(b[3], bs[:, 3]) - np.maximum(b[1], bs[:, 1]), 0.0, None)
    inter = iw * ih
    union = area_a + area_b - inter

    out = np.zeros(bs.shape[0], dtype=np.float64)
    valid = (area_a > 0.0) & (area_b > 0.0) & (union > 0.0) & (inter > 0.0)
    out[valid] = inter[valid] / union[valid]
    return out
