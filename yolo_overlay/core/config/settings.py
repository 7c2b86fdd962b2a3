"""Overlay configuration.

Settings are loaded from YAML defaults and overridden by environment variables
prefixed with `YOV_`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from yolo_overlay.core.decoder import TENSOR_LAYOUTS
from yolo_overlay.core.errors import ConfigurationError


class OverlaySettings(BaseSettings):
    """Runtime configuration loaded from YAML defaults and `YOV_` env overrides."""

    model_config = SettingsConfigDict(
        env_prefix="YOV_",
        validate_assignment=True,
        protected_namespaces=(),
    )

    # ONNX export of an anchor-free YOLO detector (see export_model.py).
    model_path: str = "yolo11n.onnx"
    labels_path: str = "classes.txt"
    tensor_layout: str = Field("attributes_first", description="attributes_first|candidates_first")
    model_width: int = 640
    model_height: int = 640

    iou_threshold: float = 0.5
    score_threshold: float = 0.5
    max_displayed: int = 200

    video_source: str = Field("file", description="webcam|file")
    video_path: str = "giraffes.mp4"
    camera_index: int = 0
    loop_video: bool = True
    # Live display size; None means "use the frame size of each cycle".
    display_width: int | None = None
    display_height: int | None = None
    # 0 runs as fast as possible.
    target_fps: float = 60.0
    # Label font height as a fraction of the display height.
    label_font_fraction: float = 0.05
    box_color: tuple[int, int, int] = (0, 255, 255)
    log_level: str = "INFO"

    @field_validator("iou_threshold", "score_threshold")
    @classmethod
    def _validate_threshold(cls, v: float) -> float:
        if not 0.0 <= float(v) <= 1.0:
            raise ValueError("thresholds must be in [0, 1]")
        return float(v)

    @field_validator("max_displayed")
    @classmethod
    def _validate_max_displayed(cls, v: int) -> int:
        if int(v) <= 0:
            raise ValueError("max_displayed must be >= 1")
        return int(v)

    @field_validator("model_width", "model_height")
    @classmethod
    def _validate_model_size(cls, v: int) -> int:
        if int(v) <= 0:
            raise ValueError("model size must be > 0")
        return int(v)

    @field_validator("display_width", "display_height")
    @classmethod
    def _validate_display_size(cls, v: int | None) -> int | None:
        if v is None:
            return v
        if int(v) <= 0:
            raise ValueError("display size must be > 0")
        return int(v)

    @field_validator("tensor_layout")
    @classmethod
    def _validate_layout(cls, v: str) -> str:
        v2 = str(v).strip().lower()
        if v2 not in TENSOR_LAYOUTS:
            raise ValueError("tensor_layout must be attributes_first|candidates_first")
        return v2

    @field_validator("video_source")
    @classmethod
    def _validate_source(cls, v: str) -> str:
        if v not in {"webcam", "file"}:
            raise ValueError("video_source must be webcam|file")
        return v

    @field_validator("target_fps")
    @classmethod
    def _validate_target_fps(cls, v: float) -> float:
        if v < 0:
            raise ValueError("target_fps must be >= 0")
        return float(v)

    @field_validator("label_font_fraction")
    @classmethod
    def _validate_font_fraction(cls, v: float) -> float:
        if not 0.0 < float(v) <= 1.0:
            raise ValueError("label_font_fraction must be in (0, 1]")
        return float(v)

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        v2 = str(v).strip().upper()
        if v2 not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be DEBUG|INFO|WARNING|ERROR|CRITICAL")
        return v2

    @property
    def model_size(self) -> tuple[int, int]:
        return (self.model_width, self.model_height)

    @property
    def display_size(self) -> tuple[int, int] | None:
        if self.display_width is None or self.display_height is None:
            return None
        return (self.display_width, self.display_height)


def _config_path() -> Path:
    """Return the YAML configuration path (defaults to config/overlay.config.yml)."""

    return Path(os.getenv("YOV_CONFIG", "config/overlay.config.yml"))


def load_settings(**overrides: Any) -> OverlaySettings:
    """Load settings from YAML and environment variables.

    YAML provides defaults; environment variables override; keyword overrides
    (e.g. from CLI flags) win over both. Invalid values raise `ConfigurationError`.
    """

    data: dict[str, Any] = {}
    path = _config_path()
    if path.exists():
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    try:
        env_settings = OverlaySettings()
        env_overrides: dict[str, Any] = {
            name: getattr(env_settings, name) for name in env_settings.model_fields_set
        }
        merged = {**data, **env_overrides, **overrides}
        return OverlaySettings(**merged)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
