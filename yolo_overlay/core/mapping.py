"""Model-space to display-space coordinate mapping."""

from __future__ import annotations

from yolo_overlay.core.errors import ConfigurationError
from yolo_overlay.core.types import CenterBox, Detection, DisplayBox, Size


def validate_size(name: str, size: Size) -> tuple[int, int]:
    w, h = size
    if int(w) <= 0 or int(h) <= 0:
        raise ConfigurationError(f"{name} must be positive, got {size!r}")
    return int(w), int(h)


def scale_factors(model_size: Size, display_size: tuple[float, float]) -> tuple[float, float]:
    """Return (sx, sy) = (Wd / Wm, Hd / Hm)."""

    wm, hm = model_size
    wd, hd = display_size
    return float(wd) / float(wm), float(hd) / float(hm)


def map_center_box(
    box: CenterBox,
    model_size: Size,
    display_size: tuple[float, float],
) -> CenterBox:
    """Scale a center-form box to the display and move the origin to its center."""

    sx, sy = scale_factors(model_size, display_size)
    wd, hd = display_size
    cx, cy, w, h = box
    return (
        float(cx) * sx - float(wd) / 2.0,
        float(cy) * sy - float(hd) / 2.0,
        float(w) * sx,
        float(h) * sy,
    )


def map_detection(
    det: Detection,
    model_size: Size,
    display_size: tuple[float, float],
) -> DisplayBox:
    cx, cy, w, h = map_center_box(det.center, model_size, display_size)
    return DisplayBox(
        center_x=cx,
        center_y=cy,
        width=w,
        height=h,
        label=det.label,
        confidence=det.confidence,
        class_id=det.class_id,
    )


def map_detections(
    detections: list[Detection],
    model_size: Size,
    display_size: tuple[float, float],
) -> list[DisplayBox]:
    return [map_detection(d, model_size, display_size) for d in detections]
