from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict, is_dataclass
from pathlib import Path

import cv2
import numpy as np

from yolo_overlay.core.config.settings import load_settings
from yolo_overlay.core.detectors.dnn import SyntheticModel
from yolo_overlay.core.engine import OverlayEngine
from yolo_overlay.core.labels import load_labels
from yolo_overlay.core.video_sources.base import FileSource

MOCK_LABELS = ("person", "giraffe", "car")


def _to_jsonable(obj):
    if is_dataclass(obj):
        return _to_jsonable(asdict(obj))
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, dict):
        return {str(k): _to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_jsonable(v) for v in obj]
    return obj


def run(args):
    overrides = {
        "iou_threshold": args.iou,
        "score_threshold": args.score,
        "max_displayed": args.max_displayed,
        "target_fps": 0.0,
        "video_source": "file",
        "video_path": args.input,
        "loop_video": False,
    }
    if args.model:
        overrides["model_path"] = args.model
    if args.labels:
        overrides["labels_path"] = args.labels
    if args.mock:
        overrides["tensor_layout"] = "attributes_first"
    settings = load_settings(**overrides)
    # --log-level wins; otherwise YOV_LOG_LEVEL or the YAML log_level applies.
    level = args.log_level or settings.log_level
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        source = FileSource(args.input, loop=False)
    except RuntimeError:
        raise SystemExit(f"Cannot open video {args.input}")

    if args.mock:
        labels = MOCK_LABELS
        model = SyntheticModel(num_classes=len(labels), input_size=settings.model_size)
    else:
        labels = load_labels(settings.labels_path)
        model = None

    engine = OverlayEngine(settings, source=source, model=model, labels=labels)

    writer = None
    outputs = []

    def on_frame(summary, frame):
        nonlocal writer
        outputs.append(_to_jsonable(summary))
        if args.save_video:
            if writer is None:
                h, w = frame.shape[:2]
                fourcc = cv2.VideoWriter_fourcc(*"MJPG")
                writer = cv2.VideoWriter(str(args.save_video), fourcc, 25.0, (w, h))
            writer.write(frame)

    try:
        engine.run(max_frames=args.max_frames, on_frame=on_frame)
    finally:
        engine.close()
        if writer is not None:
            writer.release()

    out_path = Path(args.output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(outputs, f, indent=2)
    print(f"Wrote {len(outputs)} frame summaries to {out_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the detection overlay on a video")
    parser.add_argument("--input", required=True, help="Path to video file")
    parser.add_argument("--output", required=True, help="Where to save JSON output")
    parser.add_argument("--model", default=None, help="ONNX model path")
    parser.add_argument("--labels", default=None, help="classes.txt path")
    parser.add_argument("--iou", type=float, default=0.5)
    parser.add_argument("--score", type=float, default=0.5)
    parser.add_argument("--max-displayed", type=int, default=200)
    parser.add_argument("--max-frames", type=int, default=0, help="Limit frames for quick tests")
    parser.add_argument("--save-video", default=None, help="Optional annotated .avi output")
    parser.add_argument("--log-level", default=None, help="Overrides the configured log_level")
    parser.add_argument(
        "--mock", action="store_true", help="Use a synthetic model (no weights needed)"
    )
    return parser


if __name__ == "__main__":
    run(build_parser().parse_args())
