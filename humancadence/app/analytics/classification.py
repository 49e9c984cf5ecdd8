# humancadence/app/analytics/classification.py
from __future__ import annotations
from enum import Enum
from typing import Optional

from humancadence.app.analytics.config import ClassificationThresholds

class Classification(Enum):
    BOT = "bot"
    UNKNOWN = "unknown"
    HUMAN = "human"

def transition(state: Classification, score: float, th: ClassificationThresholds) -> Classification:
    """
    Schmitt-trigger step. bot and human are only ever left via unknown,
    and each is exited at a looser threshold than it is entered.
    """
    if state is Classification.UNKNOWN:
        if score < th.enter_bot:
            return Classification.BOT
        if score >= th.enter_human:
            return Classification.HUMAN
        return state
    if state is Classification.BOT:
        return Classification.UNKNOWN if score >= th.exit_bot else state
    return Classification.UNKNOWN if score < th.exit_human else state

class HysteresisClassifier:
    """Stateful label over a stream of scores; starts and resets to UNKNOWN."""
    def __init__(self, thresholds: Optional[ClassificationThresholds] = None):
        self.thresholds = thresholds or ClassificationThresholds()
        self.state = Classification.UNKNOWN

    def update(self, score: float) -> Classification:
        self.state = transition(self.state, score, self.thresholds)
        return self.state

    def reset(self) -> None:
        self.state = Classification.UNKNOWN
