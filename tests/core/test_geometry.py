from __future__ import annotations

import numpy as np
import pytest

from yolo_overlay.core.errors import ConfigurationError
from yolo_overlay.core.geometry import (
    CENTERS_TO_CORNERS,
    centers_to_corners,
    corners_to_centers,
    iou_one_to_many,
    validate_transform,
)


def _bbox_iou(a, b) -> float:
    ix = max(0.0, min(a[2], b[2]) - max(a[0], b[0]))
    iy = max(0.0, min(a[3], b[3]) - max(a[1], b[1]))
    inter = ix * iy
    if inter <= 0.0:
        return 0.0
    area_a = (a[2] - a[0]) * (a[3] - a[1])
    area_b = (b[2] - b[0]) * (b[3] - b[1])
    return inter / (area_a + area_b - inter)


def test_single_box_center_to_corner():
    corners = centers_to_corners(np.array([10.0, 20.0, 4.0, 6.0]))
    assert corners.tolist() == [8.0, 17.0, 12.0, 23.0]


def test_centers_to_corners_is_batched_matmul():
    centers = np.array([[10.0, 20.0, 4.0, 6.0], [0.0, 0.0, 2.0, 2.0]], dtype=np.float32)
    corners = centers_to_corners(centers)
    assert corners.shape == (2, 4)
    np.testing.assert_allclose(corners, centers @ CENTERS_TO_CORNERS)
    np.testing.assert_allclose(corners[1], [-1.0, -1.0, 1.0, 1.0])


def test_inverse_recovers_centers():
    rng = np.random.default_rng(0)
    centers = np.column_stack(
        [
            rng.uniform(0, 640, 200),
            rng.uniform(0, 640, 200),
            rng.uniform(0.5, 300, 200),
            rng.uniform(0.5, 300, 200),
        ]
    ).astype(np.float32)
    back = corners_to_centers(centers_to_corners(centers))
    np.testing.assert_allclose(back, centers, atol=1e-3)


def test_positive_size_gives_ordered_corners():
    rng = np.random.default_rng(1)
    centers = np.column_stack(
        [
            rng.uniform(-100, 100, 100),
            rng.uniform(-100, 100, 100),
            rng.uniform(0.01, 50, 100),
            rng.uniform(0.01, 50, 100),
        ]
    ).astype(np.float32)
    corners = centers_to_corners(centers)
    assert np.all(corners[:, 0] < corners[:, 2])
    assert np.all(corners[:, 1] < corners[:, 3])


def test_nan_and_inf_propagate():
    # Zero matrix coefficients times NaN or Inf still yield NaN, so the whole row is poisoned.
    with np.errstate(invalid="ignore"):
        corners = centers_to_corners(np.array([[np.nan, 0.0, 2.0, np.inf]], dtype=np.float32))
    assert not np.isfinite(corners[0]).any()

    with np.errstate(invalid="ignore"):
        corners = centers_to_corners(np.array([[5.0, 5.0, 2.0, 2.0], [1.0, np.inf, 2.0, 2.0]], dtype=np.float32))
    assert corners[0].tolist() == [4.0, 4.0, 6.0, 6.0]
    assert not np.isfinite(corners[1]).any()


def test_validate_transform_rejects_malformed_matrices():
    with pytest.raises(ConfigurationError):
        validate_transform(np.zeros((3, 4)))
    bad = CENTERS_TO_CORNERS.copy()
    bad[0, 0] = np.nan
    with pytest.raises(ConfigurationError):
        validate_transform(bad)
    with pytest.raises(ConfigurationError):
        validate_transform(np.zeros((4, 4)))
    assert validate_transform(CENTERS_TO_CORNERS).dtype == np.float32


def test_iou_one_to_many_matches_scalar_iou():
    box = np.array([0.0, 0.0, 10.0, 10.0])
    boxes = np.array(
        [
            [5.0, 0.0, 15.0, 10.0],
            [0.0, 0.0, 10.0, 10.0],
            [20.0, 20.0, 30.0, 30.0],
            [3.0, 3.0, 3.0, 8.0],  # zero width
            [8.0, 8.0, 2.0, 2.0],  # negative size
        ]
    )
    out = iou_one_to_many(box, boxes)
    assert out.shape == (5,)
    assert out[0] == pytest.approx(_bbox_iou(box, boxes[0]))
    assert out[0] == pytest.approx(1.0 / 3.0)
    assert out[1] == pytest.approx(1.0)
    assert out[2] == 0.0
    assert out[3] == 0.0
    assert out[4] == 0.0
    assert iou_one_to_many(box, np.zeros((0, 4))).shape == (0,)
