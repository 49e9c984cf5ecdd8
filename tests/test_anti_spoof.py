# tests/test_anti_spoof.py
# How to run:
#   pytest -q
#
# Verifies:
#   - KS statistic on hand-checkable inputs
#   - neutral / degenerate handling of both fit scores
#   - log-normal timing reads genuine, flat jitter reads spoofed
#   - detect_spoof exposes every sub-score

import math
import numpy as np
import pytest

from humancadence.app.analytics.anti_spoof import (
    KS_CRITICAL_COEFF, SpoofResult, _ks_score, compute_log_normality_score, compute_uniformity_score,
    correlation_score, detect_spoof, ks_statistic,
)

def lognormal_ar(n: int, seed: int = 7, phi: float = 0.3) -> np.ndarray:
    """Log-normal flights with lag-1 dependence in log space (digraph-like)."""
    rng = np.random.default_rng(seed)
    z = np.empty(n)
    z[0] = rng.standard_normal()
    for i in range(1, n):
        z[i] = phi * z[i - 1] + math.sqrt(1 - phi * phi) * rng.standard_normal()
    return np.exp(4.5 + 0.5 * z)

def uniform_jitter(n: int, seed: int = 11) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return 80 + rng.random(n) * 60

def test_ks_statistic_hand_values():
    ident = lambda x: x
    assert ks_statistic([0.5], ident) == pytest.approx(0.5)
    assert ks_statistic([0.75, 0.25], ident) == pytest.approx(0.25)
    assert ks_statistic([], ident) == 0.0

def test_too_few_samples_is_neutral():
    assert compute_log_normality_score([100, 120, 90, 110]) == 0.5
    assert compute_uniformity_score([100, 120, 90, 110]) == 0.5
    # non-positive values are dropped before the log transform
    assert compute_log_normality_score([0, 0, 0, -5, 100, 120]) == 0.5

def test_constant_timing_scores_zero_on_both_fits():
    flat = [100.0] * 40
    assert compute_log_normality_score(flat) == 0.0
    assert compute_uniformity_score(flat) == 0.0


@pytest.mark.parametrize("value", [100.0, 107.3, 0.1, 333.333, 1e6])
def test_constant_timing_zero_despite_rounding_in_mean(value):
    # 37 copies: the float mean of the logs need not equal each log exactly
    assert compute_log_normality_score([value] * 37) == 0.0

def test_tiny_real_spread_is_still_fitted():
    assert compute_log_normality_score([100.0, 100.5] * 20) > 0.0
def test_evenly_spaced_values_fit_uniform():
    grid = np.linspace(100, 200, 50)
    # D is 1/n here, far under the critical value
    assert compute_uniformity_score(grid) > 0.9

def test_lognormal_fits_lognormal_not_uniform():
    flights = lognormal_ar(200)
    assert compute_log_normality_score(flights) >= 0.6
    assert compute_uniformity_score(flights) < 0.5

def test_ks_score_shape():
    n = 25
    crit = KS_CRITICAL_COEFF / math.sqrt(n)
    assert _ks_score(0.0, n) == pytest.approx(1.0)
    assert _ks_score(crit, n) == pytest.approx(0.7)
    assert _ks_score(crit * 1.000001, n) == pytest.approx(0.7, abs=1e-5)
    assert _ks_score(2 * crit, n) == pytest.approx(0.35)

def test_correlation_noise_floor_and_cap():
    assert correlation_score(0.04) == 0.0
    assert correlation_score(-0.04) == 0.0
    assert correlation_score(0.15) == pytest.approx(0.5)
    assert correlation_score(-0.6) == 1.0

def test_detect_spoof_exposes_subscores():
    res = detect_spoof(lognormal_ar(120))
    assert isinstance(res, SpoofResult)
    for v in (res.genuine_score, res.log_normality, res.uniformity):
        assert 0.0 <= v <= 1.0
    assert -1.0 <= res.serial_correlation <= 1.0

def test_detect_spoof_constant_input():
    res = detect_spoof([100.0] * 30)
    assert res.log_normality == 0.0
    assert res.uniformity == 0.0
    assert res.serial_correlation == 0.0
    # only the anti-uniformity term contributes
    assert res.genuine_score == pytest.approx(0.3)

def test_detect_spoof_two_samples_is_neutral_fit_without_correlation():
    res = detect_spoof([100.0, 140.0])
    assert res.serial_correlation == 0.0
    assert res.genuine_score == pytest.approx(0.45 * 0.5 + 0.30 * 0.5)

def test_human_like_timing_beats_uniform_jitter():
    human = detect_spoof(lognormal_ar(200))
    bot = detect_spoof(uniform_jitter(200))
    assert human.uniformity < bot.uniformity
    assert human.genuine_score > bot.genuine_score
