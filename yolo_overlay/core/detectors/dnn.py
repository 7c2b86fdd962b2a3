"""ONNX model execution through OpenCV's DNN module.

This is the inference collaborator of the overlay core: it only turns a frame
into the raw detection tensor. Decoding happens in `DetectorDecoder`.
"""

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

from yolo_overlay.core.errors import ConfigurationError
from yolo_overlay.core.types import Frame, RawTensor, Size

logger = logging.getLogger(__name__)


class DnnModelRunner:
    """Run an ONNX detector exported with a fixed input size."""

    def __init__(self, model_path: str, input_size: Size = (640, 640)) -> None:
        path = Path(model_path)
        if not path.exists():
            raise ConfigurationError(f"Model file not found: {path}")
        self.model_path = str(path)
        self.input_size = (int(input_size[0]), int(input_size[1]))
        self.net = cv2.dnn.readNetFromONNX(self.model_path)
        logger.info("Loaded model %s input=%sx%s", self.model_path, *self.input_size)

    def preprocess(self, frame: Frame) -> np.ndarray:
        """Stretch `frame` to the model size and return a (1, 3, H, W) RGB blob in [0, 1]."""

        return cv2.dnn.blobFromImage(
            frame,
            scalefactor=1.0 / 255.0,
            size=self.input_size,
            swapRB=True,
            crop=False,
        )

    def __call__(self, frame: Frame) -> RawTensor:
        self.net.setInput(self.preprocess(frame))
        out = self.net.forward()
        return np.asarray(out, dtype=np.float32)


class SyntheticModel:
    """Deterministic stand-in model that emits a fixed raw tensor.

    Used by tooling (`--mock`) to exercise the pipeline without model weights.
    Emits `attributes_first` tensors shaped (1, 4 + C, N).
    """

    def __init__(self, num_classes: int, input_size: Size = (640, 640), boxes: int = 3) -> None:
        self.num_classes = int(num_classes)
        self.input_size = (int(input_size[0]), int(input_size[1]))
        self.boxes = int(boxes)

    def __call__(self, frame: Frame) -> RawTensor:
        wm, hm = self.input_size
        n = self.boxes
        out = np.zeros((1, 4 + self.num_classes, n), dtype=np.float32)
        for i in range(n):
            out[0, 0, i] = wm * (i + 1) / (n + 1)
            out[0, 1, i] = hm / 2.0
            out[0, 2, i] = wm / (2.0 * (n + 1))
            out[0, 3, i] = hm / 4.0
            out[0, 4 + (i % self.num_classes), i] = 0.9 - 0.1 * i
        return out
