# humancadence/app/analytics/analyzer.py
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Tuple, Union
import numpy as np

from humancadence.app.analytics.anti_spoof import detect_spoof
from humancadence.app.analytics.config import METRIC_NAMES, MetricWeights
from humancadence.core.utils.stats import ArrayLike, as_array, clamp, mean, shannon_entropy, sigmoid, stddev

NEUTRAL = 0.5

# Minimum-evidence gates. Below these a metric reports NEUTRAL.
MIN_DWELL_SAMPLES = 5
MIN_FLIGHT_SAMPLES = 5
MIN_ENTROPY_SAMPLES = 5
MIN_CORRECTION_SAMPLES = 5
MIN_BURST_SAMPLES = 10
MIN_ROLLOVER_SAMPLES = 10

# dwell variance: bell over stddev (ms)
DWELL_UP_SLOPE = 0.3
DWELL_UP_MIDPOINT_MS = 8.0
DWELL_DOWN_SLOPE = -0.05
DWELL_DOWN_MIDPOINT_MS = 80.0

# flight fit: sustained sub-60ms intervals are not humanly possible
IKI_FLOOR_MS = 60.0
SUB_FLOOR_RATIO_THRESHOLD = 0.5
IKI_FLOOR_PENALTY = 0.15

# timing entropy
ENTROPY_BINS = 10
ENTROPY_UP_SLOPE = 3.0
ENTROPY_UP_MIDPOINT_BITS = 1.5
ENTROPY_DOWN_SLOPE = -3.0
ENTROPY_DOWN_MIDPOINT_BITS = 3.5
FLUCTUATION_SLOPE = 1.0
FLUCTUATION_MIDPOINT = 4.0  # max/min flight ratio
ENTROPY_WEIGHT = 0.7
FLUCTUATION_WEIGHT = 0.3

# correction ratio
CORRECTION_SLOPE = 80.0
CORRECTION_MIDPOINT = 0.015
EXCESSIVE_CORRECTION_THRESHOLD = 0.3
EXCESSIVE_CORRECTION_PENALTY = 0.8

# burst regularity
BURST_GAP_MS = 300.0
BURST_CV_SLOPE = 8.0
BURST_CV_MIDPOINT = 0.2

# rollover rate
ROLLOVER_SLOPE = 60.0
ROLLOVER_MIDPOINT = 0.03


# ---- metric outcome: scored value or no behavioural evidence ----

@dataclass(frozen=True)
class Scored:
    value: float

class NoEvidence:
    """Metric saw nothing to score; it is left out of the composite."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_EVIDENCE"

NO_EVIDENCE = NoEvidence()
MetricOutcome = Union[Scored, NoEvidence]


@dataclass(frozen=True)
class MetricScores:
    dwell_variance: float
    flight_fit: float
    timing_entropy: float
    correction_ratio: float
    burst_regularity: float
    rollover_rate: float

    @classmethod
    def neutral(cls) -> "MetricScores":
        return cls(**{name: NEUTRAL for name in METRIC_NAMES})

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

@dataclass(frozen=True)
class AnalyzerResult:
    score: float
    metrics: MetricScores
    sample_count: int
    confident: bool


# ---- metrics ----

def _floor_rescaled(ratio: float, k: float, midpoint: float) -> float:
    # sigmoid(0) maps to 0 so any positive ratio scores in (0, 1]
    floor = sigmoid(0.0, k, midpoint)
    return (sigmoid(ratio, k, midpoint) - floor) / (1.0 - floor)


def score_dwell_variance(dwells: ArrayLike) -> MetricOutcome:
    """
    Humans hold keys for varying durations (stddev ~15-60 ms). Near-zero
    spread is scripted, very large spread is noise.
    """
    arr = as_array(dwells)
    if arr.size < MIN_DWELL_SAMPLES:
        return Scored(NEUTRAL)
    sd = stddev(arr)
    up = sigmoid(sd, DWELL_UP_SLOPE, DWELL_UP_MIDPOINT_MS)
    down = sigmoid(sd, DWELL_DOWN_SLOPE, DWELL_DOWN_MIDPOINT_MS)
    return Scored(up * down)


def score_flight_fit(flights: ArrayLike) -> MetricOutcome:
    arr = as_array(flights)
    if arr.size < MIN_FLIGHT_SAMPLES:
        return Scored(NEUTRAL)
    genuine = detect_spoof(arr).genuine_score
    sub_floor = float(np.count_nonzero(arr < IKI_FLOOR_MS)) / arr.size
    if sub_floor > SUB_FLOOR_RATIO_THRESHOLD:
        genuine *= IKI_FLOOR_PENALTY
    return Scored(genuine)


def score_timing_entropy(flights: ArrayLike) -> MetricOutcome:
    """
    Bell over binned entropy (humans ~2-3.5 bits: varied, not flat) blended
    with how wide the flight range is (max/min ratio).
    """
    arr = as_array(flights)
    if arr.size < MIN_ENTROPY_SAMPLES:
        return Scored(NEUTRAL)
    entropy = shannon_entropy(arr, ENTROPY_BINS)
    lo, hi = float(arr.min()), float(arr.max())
    fluctuation = hi / lo if lo > 0 else 0.0

    entropy_score = (
        sigmoid(entropy, ENTROPY_UP_SLOPE, ENTROPY_UP_MIDPOINT_BITS)
        * sigmoid(entropy, ENTROPY_DOWN_SLOPE, ENTROPY_DOWN_MIDPOINT_BITS)
    )
    fluct_score = sigmoid(fluctuation, FLUCTUATION_SLOPE, FLUCTUATION_MIDPOINT)
    return Scored(ENTROPY_WEIGHT * entropy_score + FLUCTUATION_WEIGHT * fluct_score)


def score_correction_ratio(corrections: int, total: int) -> MetricOutcome:
    # Not backspacing is normal for many skilled typists, so zero
    # corrections is no evidence either way.
    if total < MIN_CORRECTION_SAMPLES:
        return Scored(NEUTRAL)
    if corrections == 0:
        return NO_EVIDENCE
    ratio = corrections / total
    score = _floor_rescaled(ratio, CORRECTION_SLOPE, CORRECTION_MIDPOINT)
    if ratio > EXCESSIVE_CORRECTION_THRESHOLD:
        score *= EXCESSIVE_CORRECTION_PENALTY
    return Scored(score)


def burst_gaps(flights: ArrayLike) -> np.ndarray:
    arr = as_array(flights)
    return arr[arr > BURST_GAP_MS]


def score_burst_regularity(flights: ArrayLike) -> MetricOutcome:
    """Irregular pauses between typing bursts read as human."""
    arr = as_array(flights)
    if arr.size < MIN_BURST_SAMPLES:
        return Scored(NEUTRAL)
    gaps = burst_gaps(arr)
    if gaps.size < 2:
        return NO_EVIDENCE
    gap_mean = mean(gaps)
    cv = stddev(gaps) / gap_mean if gap_mean > 0 else 0.0
    return Scored(sigmoid(cv, BURST_CV_SLOPE, BURST_CV_MIDPOINT))


def score_rollover_rate(rollovers: int, total: int) -> MetricOutcome:
    if total < MIN_ROLLOVER_SAMPLES:
        return Scored(NEUTRAL)
    if rollovers == 0:
        return NO_EVIDENCE
    return Scored(_floor_rescaled(rollovers / total, ROLLOVER_SLOPE, ROLLOVER_MIDPOINT))


# ---- composite ----

def combine(items: Iterable[Tuple[float, MetricOutcome]]) -> float:
    """
    Weighted mean over metrics that produced evidence. Metrics with
    NO_EVIDENCE drop out together with their weight. 0.0 when nothing is
    left to weigh.
    """
    num = 0.0
    den = 0.0
    for weight, outcome in items:
        if isinstance(outcome, Scored):
            num += weight * outcome.value
            den += weight
    if den <= 0:
        return 0.0
    return clamp(num / den, 0.0, 1.0)


def _report(outcome: MetricOutcome) -> float:
    return outcome.value if isinstance(outcome, Scored) else 0.0


class Analyzer:
    """Pure scoring over a snapshot of observer state."""
    def __init__(self, weights: MetricWeights | None = None, min_samples: int = 20):
        self.weights = weights or MetricWeights()
        self.min_samples = min_samples

    def outcomes(
        self,
        dwells: ArrayLike,
        flights: ArrayLike,
        corrections: int,
        rollovers: int,
        total: int,
    ) -> Dict[str, MetricOutcome]:
        d = as_array(dwells)
        f = as_array(flights)
        return {
            "dwell_variance": score_dwell_variance(d),
            "flight_fit": score_flight_fit(f),
            "timing_entropy": score_timing_entropy(f),
            "correction_ratio": score_correction_ratio(corrections, total),
            "burst_regularity": score_burst_regularity(f),
            "rollover_rate": score_rollover_rate(rollovers, total),
        }

    def analyze(
        self,
        dwells: ArrayLike,
        flights: ArrayLike,
        corrections: int,
        rollovers: int,
        total: int,
    ) -> AnalyzerResult:
        d = as_array(dwells)
        raw = self.outcomes(d, flights, corrections, rollovers, total)
        w = self.weights.as_dict()
        score = combine((w[name], raw[name]) for name in METRIC_NAMES)
        sample_count = int(d.size)
        return AnalyzerResult(
            score=score,
            metrics=MetricScores(**{name: _report(o) for name, o in raw.items()}),
            sample_count=sample_count,
            confident=sample_count >= self.min_samples,
        )
