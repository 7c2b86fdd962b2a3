"""Export a YOLO checkpoint to ONNX for the OpenCV DNN runner (CPU-only).

Writes the class names next to the model as `classes.txt`, one per line, in
class-id order. This script is intentionally simple and print-oriented.
"""

from __future__ import annotations

import os
from pathlib import Path


def write_labels(names: dict[int, str] | list[str], path: Path) -> int:
    """Write class names ordered by class id; returns the number written."""

    if isinstance(names, dict):
        ordered = [names[k] for k in sorted(names)]
    else:
        ordered = list(names)
    path.write_text("\n".join(ordered) + "\n", encoding="utf-8")
    return len(ordered)


def main() -> int:
    """Run an ONNX export for the configured model."""

    # Do not let Ultralytics auto-install runtimes as part of export.
    os.environ.setdefault("ULTRALYTICS_AUTOUPDATE", "0")

    from ultralytics import YOLO

    try:
        print("Loading model...")
        model_name = os.getenv("YOV_EXPORT_MODEL", "yolo11n.pt")
        imgsz = int(os.getenv("YOV_MODEL_WIDTH", "640"))
        model = YOLO(model_name)
        print("Exporting to ONNX...")
        onnx_path = Path(model.export(format="onnx", imgsz=imgsz, device="cpu", opset=12))
        count = write_labels(model.names, onnx_path.with_name("classes.txt"))
        print(f"Success! {onnx_path} ({count} classes)")
        return 0
    except Exception as e:
        print(f"Failed: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
