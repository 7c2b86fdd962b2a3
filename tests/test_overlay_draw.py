from __future__ import annotations

import numpy as np

from yolo_overlay.core.annotations.pool import AnnotationPool
from yolo_overlay.core.overlay.draw import BOX_COLOR, BoxWidget, OpenCVRenderer, display_to_pixel_rect
from yolo_overlay.core.types import DisplayBox


def _box(**kw) -> DisplayBox:
    base = dict(center_x=0.0, center_y=0.0, width=40.0, height=40.0, label="giraffe")
    base.update(kw)
    return DisplayBox(**base)


def test_display_to_pixel_rect_moves_origin_to_top_left():
    assert display_to_pixel_rect(_box(), (100, 100)) == (30, 30, 70, 70)
    assert display_to_pixel_rect(_box(center_x=-50.0, center_y=-50.0), (100, 100)) == (-20, -20, 20, 20)


def test_display_to_pixel_rect_rescales_to_frame():
    assert display_to_pixel_rect(_box(), (100, 100), frame_size=(200, 50)) == (60, 15, 140, 35)


def test_box_widget_tracks_state():
    w = BoxWidget()
    assert w.visible is False
    w.set_active(True)
    w.configure(_box(), font_size=12.0)
    w.configure(_box(label="zebra"), font_size=0.0)
    assert w.visible is True
    assert w.box.label == "zebra"
    assert w.font_size == 12.0
    assert w.updates == 2


def test_render_fast_path_returns_same_object():
    renderer = OpenCVRenderer()
    pool = AnnotationPool(renderer.create_handle)
    frame = np.zeros((10, 10, 3), dtype=np.uint8)
    assert renderer.render(frame, pool) is frame

    pool.update([_box()])
    pool.update([])
    assert renderer.render(frame, pool) is frame


def test_render_draws_active_boxes_on_a_copy():
    renderer = OpenCVRenderer()
    pool = AnnotationPool(renderer.create_handle)
    pool.update([_box()], font_size=5.0)
    frame = np.zeros((100, 100, 3), dtype=np.uint8)

    out = renderer.render(frame, pool, (100, 100))
    assert out is not frame
    assert out.shape == frame.shape
    assert int(frame.sum()) == 0
    assert tuple(int(v) for v in out[30, 50]) == BOX_COLOR
    assert renderer.created == 1


def test_render_tolerates_zero_height_display():
    renderer = OpenCVRenderer()
    pool = AnnotationPool(renderer.create_handle)
    pool.update([_box()], font_size=5.0)
    frame = np.zeros((64, 64, 3), dtype=np.uint8)

    out = renderer.render(frame, pool, (64.0, 0.0))
    assert out is not frame
    assert out.shape == frame.shape
