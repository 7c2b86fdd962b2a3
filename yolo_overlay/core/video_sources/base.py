"""Video source abstractions.

The engine consumes frames through a small interface (`VideoSource`) so the
capture implementation (webcam/file) can be swapped without touching the
overlay pipeline. `read()` returning `None` means "no new frame this tick".
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import cv2

from yolo_overlay.core.types import Frame

logger = logging.getLogger(__name__)


class VideoSource(ABC):
    """Base interface for anything that can produce video frames."""

    @abstractmethod
    def read(self) -> Frame | None:
        """Return the next frame, or `None` when unavailable."""

        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Release any underlying resources."""

        raise NotImplementedError


class OpenCVSource(VideoSource):
    """A `VideoSource` backed by `cv2.VideoCapture`."""

    def __init__(self, source: str | int) -> None:
        self.cap = cv2.VideoCapture(source)
        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open video source: {source}")
        logger.info("Opened video source %s", source)

    def read(self) -> Frame | None:
        """Read the next frame from the underlying OpenCV capture."""

        ok, frame = self.cap.read()
        if not ok:
            return None
        return frame

    def close(self) -> None:
        """Release the underlying OpenCV capture."""

        self.cap.release()


class WebcamSource(OpenCVSource):
    """Webcam capture with minimal driver buffering."""

    def __init__(self, index: int = 0) -> None:
        super().__init__(index)
        try:
            self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        except Exception:
            pass


class FileSource(OpenCVSource):
    """Video file source; optionally rewinds at EOF to play in a loop."""

    def __init__(self, path: str, loop: bool = True) -> None:
        self._path = path
        self.loop = loop
        self.exhausted = False
        super().__init__(path)

    def read(self) -> Frame | None:
        """Read the next frame; when EOF is reached, rewind (if looping) and continue."""

        if self.exhausted:
            return None

        ok, frame = self.cap.read()
        if ok:
            return frame

        if not self.loop:
            self.exhausted = True
            return None

        rewound = False
        try:
            rewound = bool(self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0))
        except Exception:
            rewound = False

        if not rewound:
            # Some backends ignore CAP_PROP_POS_FRAMES; fall back to reopen.
            self.cap.release()
            self.cap = cv2.VideoCapture(self._path)
            if not self.cap.isOpened():
                return None

        ok2, frame2 = self.cap.read()
        if not ok2:
            return None
        return frame2
