# ABOUTME: Configuration dataclass for LOD merge settings
# ABOUTME: Validates screen coverage values and the LOD name label

from dataclasses import dataclass
from typing import List, Optional

import numpy as np


@dataclass
class MergeConfig:
    """Configuration for merging documents as LODs."""

    screen_coverage: Optional[List[float]] = None  # One value per LOD tier, highest detail first
    lod_label: str = '_lod'  # Appended node/material/mesh names get "<label><level>"

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not isinstance(self.lod_label, str) or not self.lod_label:
            raise ValueError("LOD label must be a non-empty string")

        if self.screen_coverage is None:
            return

        values = np.asarray(self.screen_coverage, dtype=np.float64)
        if values.ndim != 1:
            raise ValueError("Screen coverage must be a flat sequence of numbers")
        if not np.all(np.isfinite(values)):
            raise ValueError("Screen coverage values must be finite")

        self.screen_coverage = values.tolist()

    @property
    def has_screen_coverage(self) -> bool:
        return bool(self.screen_coverage)
