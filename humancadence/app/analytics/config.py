from __future__ import annotations
import math
from dataclasses import dataclass, field, fields, replace, asdict
from enum import Enum
from typing import Dict, Mapping, Optional

METRIC_NAMES = (
    "dwell_variance",
    "flight_fit",
    "timing_entropy",
    "correction_ratio",
    "burst_regularity",
    "rollover_rate",
)

class Scheduling(Enum):
    MANUAL = "manual"       # caller drives analyze()
    DEFERRED = "deferred"   # one coalesced recompute after key releases

@dataclass(frozen=True)
class MetricWeights:
    # Reliability-ordered: rollover is the strongest single human signal,
    # flight fit the weakest (digraph mixtures vs a single log-normal).
    dwell_variance: float = 0.15
    flight_fit: float = 0.15
    timing_entropy: float = 0.20
    correction_ratio: float = 0.10
    burst_regularity: float = 0.15
    rollover_rate: float = 0.25

    def __post_init__(self):
        for f in fields(self):
            w = getattr(self, f.name)
            if not math.isfinite(w) or w < 0:
                raise ValueError(f"weight {f.name} must be finite and >= 0, got {w!r}")

    def with_overrides(self, overrides: Optional[Mapping[str, float]]) -> "MetricWeights":
        if not overrides:
            return self
        unknown = set(overrides) - set(METRIC_NAMES)
        if unknown:
            raise ValueError(f"unknown metric weight(s): {sorted(unknown)}")
        return replace(self, **overrides)

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

@dataclass(frozen=True)
class ClassificationThresholds:
    # enter_bot < exit_bot < exit_human < enter_human; the gaps are dead zones
    enter_bot: float = 0.30
    exit_bot: float = 0.40
    exit_human: float = 0.60
    enter_human: float = 0.70

    def __post_init__(self):
        seq = (self.enter_bot, self.exit_bot, self.exit_human, self.enter_human)
        if not all(0.0 <= v <= 1.0 for v in seq):
            raise ValueError(f"classification thresholds must lie in [0, 1], got {seq}")
        if not (seq[0] < seq[1] < seq[2] < seq[3]):
            raise ValueError(
                "classification thresholds must satisfy "
                f"enter_bot < exit_bot < exit_human < enter_human, got {seq}"
            )

@dataclass(frozen=True)
class CadenceConfig:
    # sliding window (keystrokes)
    window_size: int = 50
    # dwell samples needed before a score is actionable
    min_samples: int = 20

    weights: MetricWeights = field(default_factory=MetricWeights)
    thresholds: ClassificationThresholds = field(default_factory=ClassificationThresholds)
    classify: bool = True

    scheduling: Scheduling = Scheduling.DEFERRED

    def __post_init__(self):
        if self.window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {self.window_size}")
        if self.min_samples < 0:
            raise ValueError(f"min_samples must be >= 0, got {self.min_samples}")
        if isinstance(self.scheduling, str):
            object.__setattr__(self, "scheduling", Scheduling(self.scheduling))
