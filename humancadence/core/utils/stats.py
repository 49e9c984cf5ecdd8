# humancadence/core/utils/stats.py
"""
Small numeric helpers shared by the analytics layer.

All functions accept any 1-D sequence of floats (list, tuple, numpy array,
RingBuffer snapshot) and are total: empty or degenerate input yields a
defined value instead of raising.
"""
from __future__ import annotations
import math
from typing import Sequence, Union
import numpy as np

ArrayLike = Union[Sequence[float], np.ndarray]

# Abramowitz & Stegun 26.2.17 rational approximation of the standard
# normal CDF, |error| < 7.5e-8.
AS_P = 0.2316419
INV_SQRT_2PI = 0.3989422804014327
AS_A1 = 0.31938153
AS_A2 = -0.356563782
AS_A3 = 1.781477937
AS_A4 = -1.821255978
AS_A5 = 1.330274429


def as_array(values: ArrayLike) -> np.ndarray:
    return np.asarray(values, dtype=np.float64).ravel()


def mean(values: ArrayLike) -> float:
    """Arithmetic mean; 0.0 for empty input."""
    arr = as_array(values)
    if arr.size == 0:
        return 0.0
    return float(arr.mean())


def stddev(values: ArrayLike) -> float:
    """Population standard deviation (ddof=0); 0.0 for fewer than 2 values."""
    arr = as_array(values)
    if arr.size < 2:
        return 0.0
    return float(arr.std(ddof=0))


def clamp(value: float, lo: float, hi: float) -> float:
    return lo if value < lo else hi if value > hi else value


def normal_cdf(x):
    """Standard normal CDF. Works element-wise on arrays, returns float for scalars."""
    xa = np.asarray(x, dtype=np.float64)
    t = 1.0 / (1.0 + AS_P * np.abs(xa))
    poly = t * (AS_A1 + t * (AS_A2 + t * (AS_A3 + t * (AS_A4 + t * AS_A5))))
    tail = INV_SQRT_2PI * np.exp(-xa * xa / 2.0) * poly
    out = np.where(xa >= 0, 1.0 - tail, tail)
    if out.ndim == 0:
        return float(out)
    return out


def shannon_entropy(values: ArrayLike, bins: int = 10) -> float:
    """
    Entropy in bits of `values` binned into `bins` equal-width buckets over
    their own [min, max] range. 0.0 for fewer than 2 values or zero range.
    """
    arr = as_array(values)
    if arr.size < 2:
        return 0.0
    lo = float(arr.min())
    span = float(arr.max()) - lo
    if span == 0:
        return 0.0
    idx = np.minimum(np.floor((arr - lo) / span * bins), bins - 1).astype(np.int64)
    counts = np.bincount(idx, minlength=bins)
    p = counts[counts > 0] / arr.size
    return float(-(p * np.log2(p)).sum())


def autocorrelation(values: ArrayLike) -> float:
    """
    Lag-1 autocorrelation. Human inter-key timing sits around 0.1-0.4
    (digraph effects); independent jitter sits near 0.
    """
    arr = as_array(values)
    if arr.size < 3:
        return 0.0
    d = arr - arr.mean()
    den = float((d * d).sum())
    if den == 0:
        return 0.0
    num = float((d[1:] * d[:-1]).sum())
    return num / den


def sigmoid(x: float, k: float, midpoint: float) -> float:
    """Logistic 1 / (1 + exp(-k (x - midpoint))), overflow-safe."""
    z = k * (x - midpoint)
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    e = math.exp(z)
    return e / (1.0 + e)
