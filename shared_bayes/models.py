"""
Data models and types for the shared Bayes classifier, dood!

This module defines the core data structures used throughout the library.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List

from .exceptions import ClassifierConfigError

DEFAULT_CORRECTION = 0.001

LABELS_SUFFIX = "labels"
TALLY_PREFIX = "tally_for:"

# Largest count (and tally) stored exactly as a Lua number
MAX_COUNT = 2**53 - 1

# Marker of the error reply procedures send when a count would leave that range
COUNT_OUT_OF_RANGE = "count out of range"


@dataclass
class ClassifierConfig:
    """Configuration for a classifier instance"""

    # Prefix of every key this classifier touches
    namespace: str

    # Substitute count for tokens unseen under a label
    correction: float = DEFAULT_CORRECTION

    def __post_init__(self):
        """Validate configuration parameters"""
        if not isinstance(self.namespace, str) or not self.namespace:
            raise ClassifierConfigError("Missing namespace")

        if isinstance(self.correction, bool) or not isinstance(self.correction, (int, float)):
            raise ClassifierConfigError(f"Correction must be a number, got {type(self.correction).__name__}")

        if not math.isfinite(self.correction) or self.correction <= 0:
            raise ClassifierConfigError(f"Correction must be positive, got {self.correction}")

        self.correction = float(self.correction)


@dataclass
class LabelStats:
    """Statistics for a single label"""

    label: str
    tally: int  # Sum of all token counts
    vocabularySize: int  # Number of distinct tokens


@dataclass
class ModelStats:
    """Overall statistics for the model stored under one namespace"""

    namespace: str
    labels: List[LabelStats] = field(default_factory=list)

    @property
    def totalTally(self) -> int:
        """Sum of tallies over all labels"""
        return sum(stats.tally for stats in self.labels)

    @property
    def labelCount(self) -> int:
        """Number of active labels"""
        return len(self.labels)

    def toDict(self) -> Dict[str, object]:
        """Convert to dictionary for JSON output"""
        return {
            "namespace": self.namespace,
            "labelCount": self.labelCount,
            "totalTally": self.totalTally,
            "labels": {
                stats.label: {"tally": stats.tally, "vocabularySize": stats.vocabularySize} for stats in self.labels
            },
        }
