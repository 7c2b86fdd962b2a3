"""Reusable on-screen annotation handles.

The pool keeps a grow-only list of visual handles addressed by ordinal slot.
Every frame all slots are hidden first, then the first `max_displayed`
detections reuse slots 0..k-1, allocating new handles only when the detection
count exceeds anything seen before. Handles are never destroyed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from yolo_overlay.core.errors import ConfigurationError
from yolo_overlay.core.types import DisplayBox

DEFAULT_MAX_DISPLAYED = 200


class AnnotationHandle(Protocol):
    """What the renderer must expose for a single box overlay."""

    def set_active(self, active: bool) -> None:
        """Show or hide the overlay."""

    def configure(self, box: DisplayBox, font_size: float) -> None:
        """Reposition, resize and relabel the overlay."""


@dataclass
class AnnotationSlot:
    handle: AnnotationHandle
    active: bool = False


class AnnotationPool:
    """Index-addressable arena of annotation handles with Active/Inactive tags."""

    def __init__(
        self,
        factory: Callable[[], AnnotationHandle],
        max_displayed: int = DEFAULT_MAX_DISPLAYED,
    ) -> None:
        if int(max_displayed) <= 0:
            raise ConfigurationError(f"max_displayed must be > 0, got {max_displayed!r}")
        self._factory = factory
        self.max_displayed = int(max_displayed)
        self.slots: list[AnnotationSlot] = []

    def __len__(self) -> int:
        return len(self.slots)

    @property
    def active_count(self) -> int:
        return sum(1 for s in self.slots if s.active)

    def active_slots(self) -> list[AnnotationSlot]:
        return [s for s in self.slots if s.active]

    def clear(self) -> None:
        """Deactivate every slot (handles are kept for reuse)."""

        for slot in self.slots:
            slot.active = False
            slot.handle.set_active(False)

    def update(self, boxes: Sequence[DisplayBox], font_size: float = 0.0) -> int:
        """Apply one frame of boxes and return the number of active slots."""

        self.clear()
        count = min(len(boxes), self.max_displayed)
        for i in range(count):
            if i < len(self.slots):
                slot = self.slots[i]
            else:
                slot = AnnotationSlot(handle=self._factory())
                self.slots.append(slot)
            slot.active = True
            slot.handle.set_active(True)
            slot.handle.configure(boxes[i], font_size)
        return count
