"""Error taxonomy for the overlay core.

Configuration problems are fatal and raised before the first frame. Decode
anomalies are recoverable: the offending candidate is dropped and a diagnostic
record is produced instead of an exception.
"""

from __future__ import annotations

from dataclasses import dataclass


class ConfigurationError(ValueError):
    """Invalid startup configuration (labels, thresholds, transform, sizes)."""


@dataclass(frozen=True)
class DecodeAnomaly:
    """A candidate that could not be turned into a detection."""

    candidate_index: int
    class_id: int
    num_labels: int

    def describe(self) -> str:
        return (
            f"class id {self.class_id} of candidate {self.candidate_index} "
            f"is outside [0, {self.num_labels})"
        )
