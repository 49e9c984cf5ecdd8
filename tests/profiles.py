# tests/profiles.py
# Seeded synthetic typing profiles shared by analyzer and end-to-end tests.
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple
import numpy as np

@dataclass
class Profile:
    dwells: np.ndarray
    flights: np.ndarray
    corrections: int
    rollovers: int
    total: int

    def args(self):
        return self.dwells, self.flights, self.corrections, self.rollovers, self.total

def human_like(count: int, seed: int = 123) -> Profile:
    """Log-normal flights with occasional thinking pauses, log-normal dwells,
    3-15% corrections, 10-30% rollovers."""
    rng = np.random.default_rng(seed)
    flights = np.exp(4.5 + 0.6 * rng.standard_normal(count))          # median ~90 ms
    pauses = rng.random(count) < 0.1
    flights[pauses] += 200 + rng.random(pauses.sum()) * 500
    flights = np.maximum(15.0, flights)
    dwells = np.maximum(10.0, np.exp(3.5 + 0.4 * rng.standard_normal(count)))  # median ~33 ms
    corrections = int(count * (0.03 + rng.random() * 0.12))
    rollovers = int(count * (0.10 + rng.random() * 0.20))
    return Profile(dwells, flights, corrections, rollovers, count)

def constant_bot(count: int) -> Profile:
    return Profile(np.full(count, 50.0), np.full(count, 100.0), 0, 0, count)

def uniform_jitter_bot(count: int, seed: int = 42) -> Profile:
    """base + random() * range"""
    rng = np.random.default_rng(seed)
    return Profile(30 + rng.random(count) * 40, 80 + rng.random(count) * 60, 0, 0, count)

def gaussian_bot(count: int, seed: int = 42) -> Profile:
    rng = np.random.default_rng(seed)
    dwells = np.maximum(10.0, 55 + rng.standard_normal(count) * 15)
    flights = np.maximum(10.0, 120 + rng.standard_normal(count) * 30)
    return Profile(dwells, flights, 0, 0, count)

def human_keystrokes(count: int, seed: int = 99) -> List[Tuple[float, float]]:
    """(dwell_ms, flight_ms) pairs for typing through an event source."""
    rng = np.random.default_rng(seed)
    out = []
    for _ in range(count):
        dwell = max(15.0, float(np.exp(3.5 + 0.4 * rng.standard_normal())))
        flight = max(20.0, float(np.exp(4.5 + 0.6 * rng.standard_normal())))
        if rng.random() < 0.1:
            flight += 200 + float(rng.random()) * 500
        out.append((dwell, flight))
    return out
