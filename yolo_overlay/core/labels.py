"""Class label loading (one class name per line, e.g. `classes.txt`)."""

from __future__ import annotations

from pathlib import Path

from yolo_overlay.core.errors import ConfigurationError


def parse_labels(text: str) -> tuple[str, ...]:
    """Split newline-separated class names.

    Carriage returns are stripped and trailing blank lines dropped. Blank lines in
    the middle are kept so that line numbers stay aligned with class ids.
    """

    lines = [line.rstrip("\r") for line in text.split("\n")]
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        raise ConfigurationError("labels must contain at least one class name")
    return tuple(lines)


def load_labels(path: str | Path) -> tuple[str, ...]:
    """Load labels once at startup from a text file."""

    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Labels file not found: {p}")
    return parse_labels(p.read_text(encoding="utf-8"))
