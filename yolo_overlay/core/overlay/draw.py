"""Overlay drawing (OpenCV).

`BoxWidget` is the annotation handle handed to the pool; `OpenCVRenderer`
creates widgets and draws the active ones onto a frame.
"""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from yolo_overlay.core.annotations.pool import AnnotationPool
from yolo_overlay.core.types import DisplayBox

BOX_COLOR = (0, 255, 255)  # yellow (BGR)
DEFAULT_FONT_SIZE = 40.0
LABEL_INSET_X = 20
FONT = cv2.FONT_HERSHEY_SIMPLEX


@dataclass
class BoxWidget:
    """A bordered, labeled box overlay kept alive across frames."""

    color: tuple[int, int, int] = BOX_COLOR
    visible: bool = False
    box: DisplayBox | None = None
    font_size: float = DEFAULT_FONT_SIZE
    updates: int = 0

    def set_active(self, active: bool) -> None:
        self.visible = bool(active)

    def configure(self, box: DisplayBox, font_size: float) -> None:
        self.box = box
        if font_size > 0:
            self.font_size = float(font_size)
        self.updates += 1


def display_to_pixel_rect(
    box: DisplayBox,
    display_size: tuple[float, float],
    frame_size: tuple[int, int] | None = None,
) -> tuple[int, int, int, int]:
    """Convert a center-origin display box into integer (x1, y1, x2, y2) pixels.

    When `frame_size` differs from `display_size`, coordinates are rescaled to the
    frame being drawn on.
    """

    wd, hd = display_size
    fx = fy = 1.0
    if frame_size is not None and wd > 0 and hd > 0:
        fx = float(frame_size[0]) / float(wd)
        fy = float(frame_size[1]) / float(hd)
    cx = box.center_x + float(wd) / 2.0
    cy = box.center_y + float(hd) / 2.0
    x1 = (cx - box.width / 2.0) * fx
    y1 = (cy - box.height / 2.0) * fy
    x2 = (cx + box.width / 2.0) * fx
    y2 = (cy + box.height / 2.0) * fy
    return int(round(x1)), int(round(y1)), int(round(x2)), int(round(y2))


class OpenCVRenderer:
    """Creates `BoxWidget` handles and draws the active ones."""

    def __init__(self, color: tuple[int, int, int] = BOX_COLOR, thickness: int = 2) -> None:
        self.color = tuple(int(c) for c in color)
        self.thickness = int(thickness)
        self.created = 0

    def create_handle(self) -> BoxWidget:
        self.created += 1
        return BoxWidget(color=self.color)

    def render(
        self,
        frame: np.ndarray,
        pool: AnnotationPool,
        display_size: tuple[float, float] | None = None,
    ) -> np.ndarray:
        """Return a copy of `frame` with every active widget drawn."""

        active = [s.handle for s in pool.active_slots()]
        if not active:
            return frame

        h, w = frame.shape[:2]
        disp = display_size or (float(w), float(h))
        # A zero-height display (e.g. a minimized window) draws labels at their nominal size.
        font_scale_y = h / float(disp[1]) if disp[1] > 0 else 1.0
        img = frame.copy()
        for widget in active:
            box = getattr(widget, "box", None)
            if box is None:
                continue
            color = getattr(widget, "color", self.color)
            x1, y1, x2, y2 = display_to_pixel_rect(box, disp, (w, h))
            cv2.rectangle(img, (x1, y1), (x2, y2), color, self.thickness)
            font_px = max(1, int(getattr(widget, "font_size", DEFAULT_FONT_SIZE) * font_scale_y))
            scale = cv2.getFontScaleFromHeight(FONT, font_px, 1)
            cv2.putText(
                img,
                box.label,
                (x1 + LABEL_INSET_X, max(y1 + font_px, 0)),
                FONT,
                float(scale),
                color,
                1,
                cv2.LINE_AA,
            )
        return img
