# humancadence/app/analytics/anti_spoof.py
"""
Distribution-fit checks on inter-key (flight) times.

Human flight times are right-skewed and close to log-normal, with mild
serial correlation from digraph effects. Scripted input tends to be
constant, uniform jitter (base + random() * range) or independent noise.
Two one-sample Kolmogorov-Smirnov tests and a lag-1 autocorrelation are
fused into a single genuineness score; the sub-scores are returned too so
callers can explain a low result.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Callable
import numpy as np

from humancadence.core.utils.stats import ArrayLike, as_array, autocorrelation, normal_cdf

MIN_KS_SAMPLES = 5
NEUTRAL = 0.5

# c / sqrt(n) critical value. 1.22 is the alpha=0.10 coefficient, looser than
# the textbook 1.36 (alpha=0.05): real flight times are mixtures of
# digraph-specific distributions and over-reject at 0.05. Tunable.
KS_CRITICAL_COEFF = 1.22
KS_PASS_BASELINE = 0.7
KS_PASS_BONUS = 0.3
KS_FAIL_BASELINE = 0.7
SIGMA_RTOL = 1e-12           # log-space spread treated as zero

AUTOCORR_NOISE_FLOOR = 0.05   # |r| below this counts as zero
AUTOCORR_HUMAN_MAX = 0.3      # |r| at which the correlation term saturates
SPOOF_WEIGHT_LOGNORMALITY = 0.45
SPOOF_WEIGHT_UNIFORMITY = 0.30
SPOOF_WEIGHT_AUTOCORR = 0.25


@dataclass(frozen=True)
class SpoofResult:
    genuine_score: float      # 0 = spoofed, 1 = genuine
    log_normality: float      # higher = more human-like
    uniformity: float         # higher = more bot-like
    serial_correlation: float # raw lag-1 autocorrelation


def ks_statistic(samples: ArrayLike, cdf: Callable[[np.ndarray], np.ndarray]) -> float:
    """Max deviation between the empirical CDF of `samples` and `cdf`."""
    xs = np.sort(as_array(samples))
    n = xs.size
    if n == 0:
        return 0.0
    theoretical = np.asarray(cdf(xs), dtype=np.float64)
    i = np.arange(n, dtype=np.float64)
    upper = np.abs((i + 1) / n - theoretical)
    lower = np.abs(i / n - theoretical)
    return float(np.maximum(upper, lower).max())


def _ks_score(d: float, n: int) -> float:
    critical = KS_CRITICAL_COEFF / math.sqrt(n)
    if d <= critical:
        return KS_PASS_BASELINE + KS_PASS_BONUS * (1.0 - d / critical)
    return max(0.0, KS_FAIL_BASELINE * (critical / d))


def compute_log_normality_score(samples: ArrayLike) -> float:
    """KS fit of log(samples) to a normal with the sample's own moments."""
    arr = as_array(samples)
    if arr.size < MIN_KS_SAMPLES:
        return NEUTRAL
    positive = arr[arr > 0]
    if positive.size < MIN_KS_SAMPLES:
        return NEUTRAL

    logged = np.log(positive)
    mu = float(logged.mean())
    sigma = float(logged.std(ddof=0))
    # the mean of identical floats can be off by an ulp, leaving a residual sigma
    if sigma <= SIGMA_RTOL * max(1.0, abs(mu)):
        return 0.0  # perfectly constant timing is a bot signature

    d = ks_statistic(logged, lambda x: normal_cdf((x - mu) / sigma))
    return _ks_score(d, logged.size)


def compute_uniformity_score(samples: ArrayLike) -> float:
    """KS fit to Uniform(min, max). High means suspiciously flat jitter."""
    arr = as_array(samples)
    if arr.size < MIN_KS_SAMPLES:
        return NEUTRAL
    lo = float(arr.min())
    span = float(arr.max()) - lo
    if span == 0:
        return 0.0  # constant is degenerate, not uniform

    d = ks_statistic(arr, lambda x: (x - lo) / span)
    return _ks_score(d, arr.size)


def correlation_score(r: float) -> float:
    a = abs(r)
    if a <= AUTOCORR_NOISE_FLOOR:
        return 0.0
    return min(1.0, a / AUTOCORR_HUMAN_MAX)


def detect_spoof(samples: ArrayLike) -> SpoofResult:
    arr = as_array(samples)
    log_normality = compute_log_normality_score(arr)
    uniformity = compute_uniformity_score(arr)
    serial = autocorrelation(arr) if arr.size >= 3 else 0.0

    genuine = (
        SPOOF_WEIGHT_LOGNORMALITY * log_normality
        + SPOOF_WEIGHT_UNIFORMITY * (1.0 - uniformity)
        + SPOOF_WEIGHT_AUTOCORR * correlation_score(serial)
    )
    return SpoofResult(
        genuine_score=max(0.0, min(1.0, genuine)),
        log_normality=log_normality,
        uniformity=uniformity,
        serial_correlation=serial,
    )
