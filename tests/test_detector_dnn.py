from pathlib import Path

import numpy as np
import pytest

import yolo_overlay.core.detectors.dnn as dnn_mod
from yolo_overlay.core.decoder import DetectorDecoder
from yolo_overlay.core.errors import ConfigurationError


class FakeNet:
    def __init__(self, out: np.ndarray) -> None:
        self.out = out
        self.inputs: list[np.ndarray] = []

    def setInput(self, blob):
        self.inputs.append(blob)

    def forward(self):
        return self.out


def test_runner_feeds_blob_and_returns_raw_tensor(tmp_path: Path, monkeypatch):
    model_path = tmp_path / "model.onnx"
    model_path.write_bytes(b"onnx")
    out = np.zeros((1, 6, 3), dtype=np.float64)
    net = FakeNet(out)
    loaded = {}

    def fake_read(path):
        loaded["path"] = path
        return net

    monkeypatch.setattr(dnn_mod.cv2.dnn, "readNetFromONNX", fake_read)
    runner = dnn_mod.DnnModelRunner(str(model_path), input_size=(32, 16))
    assert loaded["path"] == str(model_path)

    frame = np.full((48, 64, 3), 255, dtype=np.uint8)
    raw = runner(frame)

    assert raw.shape == (1, 6, 3)
    assert raw.dtype == np.float32
    blob = net.inputs[0]
    assert blob.shape == (1, 3, 16, 32)
    assert float(blob.max()) == pytest.approx(1.0)


def test_runner_missing_model_is_a_configuration_error(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        dnn_mod.DnnModelRunner(str(tmp_path / "missing.onnx"))


def test_synthetic_model_output_decodes_to_disjoint_boxes():
    model = dnn_mod.SyntheticModel(num_classes=2, input_size=(640, 640), boxes=3)
    raw = model(np.zeros((10, 10, 3), dtype=np.uint8))
    assert raw.shape == (1, 6, 3)

    dets = DetectorDecoder(("a", "b"), layout="attributes_first").decode(raw)
    assert [d.label for d in dets] == ["a", "b", "a"]
    assert [d.index for d in dets] == [0, 1, 2]
