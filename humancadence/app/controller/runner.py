from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Callable, List, Mapping, Optional
import structlog

from humancadence.app.analytics.analyzer import Analyzer, AnalyzerResult, MetricScores
from humancadence.app.analytics.classification import Classification, HysteresisClassifier
from humancadence.app.analytics.config import CadenceConfig, Scheduling
from humancadence.app.controller.observer import KeystrokeObserver
from humancadence.app.controller.scheduling import DeferredScheduler, ManualScheduler, Scheduler
from humancadence.core.hooks.events import BaseEvent, EventType, KeyAction, KeyEvent
from humancadence.core.hooks.event_source import EventSource

log = structlog.get_logger()

@dataclass(frozen=True)
class CadenceSignals:
    """
    Side channels that explain a low score without being bot evidence.
    Callers should hold off on decisions when these fire (assistive tech,
    dictation, autofill and paste all look "non-typed").
    """
    paste_detected: bool = False
    synthetic_events: int = 0
    insufficient_data: bool = True
    input_without_keystrokes: bool = False
    input_without_keystroke_count: int = 0

@dataclass(frozen=True)
class CadenceResult:
    score: float
    metrics: MetricScores
    sample_count: int
    confident: bool
    signals: CadenceSignals = field(default_factory=CadenceSignals)
    classification: Optional[Classification] = None

@dataclass(frozen=True)
class TimingData:
    """Raw timing window for debugging panels; no key identity."""
    dwells: List[float]
    flights: List[float]
    corrections: int
    rollovers: int
    total: int

class Cadence:
    """Wires one observer to the analyzer; owns lifecycle and scheduling."""
    def __init__(
        self,
        source: EventSource,
        config: Optional[CadenceConfig] = None,
        on_score: Optional[Callable[[CadenceResult], None]] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.source = source
        self.cfg = config or CadenceConfig()
        self.on_score = on_score
        self.observer = KeystrokeObserver(source, window_size=self.cfg.window_size)
        self.analyzer = Analyzer(weights=self.cfg.weights, min_samples=self.cfg.min_samples)
        self.classifier = HysteresisClassifier(self.cfg.thresholds) if self.cfg.classify else None

        if scheduler is None:
            scheduler = DeferredScheduler() if self.cfg.scheduling == Scheduling.DEFERRED else ManualScheduler()
        self.scheduler = scheduler

        self._dirty = False
        self._last_result = self._neutral_result()

    # ---- lifecycle ----

    def start(self) -> None:
        if self.observer.listening:
            return
        # observer first so state is updated before we react to the key
        self.observer.start()
        self.source.subscribe(EventType.KEY, self._on_key)
        log.info("cadence.start", window_size=self.cfg.window_size, scheduling=self.cfg.scheduling.value)

    def stop(self) -> None:
        if not self.observer.listening:
            return
        self.observer.stop()
        self.source.unsubscribe(EventType.KEY, self._on_key)
        self.scheduler.cancel()
        log.info("cadence.stop")

    def reset(self) -> None:
        self.scheduler.cancel()
        self.observer.clear()
        if self.classifier:
            self.classifier.reset()
        self._dirty = False
        self._last_result = self._neutral_result()
        log.info("cadence.reset")

    def destroy(self) -> None:
        self.stop()
        self.reset()

    # ---- scoring ----

    @property
    def last_result(self) -> CadenceResult:
        return self._last_result

    @property
    def dirty(self) -> bool:
        return self._dirty

    def analyze(self) -> CadenceResult:
        """Score now, synchronously; also fires on_score."""
        self._compute()
        return self._last_result

    def run_pending(self) -> bool:
        """Let a polled deferred run fire; call from the event-pumping thread."""
        return self.scheduler.run_pending()

    def timing_data(self) -> TimingData:
        st = self.observer.snapshot()
        return TimingData(
            dwells=st.dwells.tolist(),
            flights=st.flights.tolist(),
            corrections=st.corrections,
            rollovers=st.rollovers,
            total=st.total,
        )

    def _compute(self) -> None:
        # cleared before the snapshot: a release landing mid-compute stays dirty
        self._dirty = False
        st = self.observer.snapshot()
        base: AnalyzerResult = self.analyzer.analyze(
            st.dwells, st.flights, st.corrections, st.rollovers, st.total,
        )
        classification = None
        if self.classifier:
            classification = self.classifier.update(base.score) if base.confident else self.classifier.state

        self._last_result = CadenceResult(
            score=base.score,
            metrics=base.metrics,
            sample_count=base.sample_count,
            confident=base.confident,
            signals=CadenceSignals(
                paste_detected=st.paste_detected,
                synthetic_events=st.synthetic_events,
                insufficient_data=base.sample_count < self.cfg.min_samples,
                input_without_keystrokes=st.input_without_keystrokes,
                input_without_keystroke_count=st.input_without_keystroke_count,
            ),
            classification=classification,
        )
        log.debug(
            "cadence.score",
            score=round(base.score, 4),
            samples=base.sample_count,
            confident=base.confident,
            classification=classification.value if classification else None,
        )

        if self.on_score:
            try:
                self.on_score(self._last_result)
            except Exception as e:
                log.warning("cadence.on_score.error", err=str(e))

    def _on_key(self, ev: BaseEvent) -> None:
        if not isinstance(ev, KeyEvent) or ev.action != KeyAction.UP:
            return
        self._dirty = True
        self.scheduler.request(self._compute_if_dirty)

    def _compute_if_dirty(self) -> None:
        if self._dirty:
            self._compute()

    def _neutral_result(self) -> CadenceResult:
        return CadenceResult(
            score=0.5,
            metrics=MetricScores.neutral(),
            sample_count=0,
            confident=False,
            signals=CadenceSignals(),
            classification=Classification.UNKNOWN if self.cfg.classify else None,
        )


def create_cadence(
    source: EventSource,
    config: Optional[CadenceConfig] = None,
    weights: Optional[Mapping[str, float]] = None,
    on_score: Optional[Callable[[CadenceResult], None]] = None,
    scheduler: Optional[Scheduler] = None,
) -> Cadence:
    """Build a session on `source`. `weights` overrides individual metric weights."""
    cfg = config or CadenceConfig()
    if weights:
        cfg = replace(cfg, weights=cfg.weights.with_overrides(weights))
    return Cadence(source, config=cfg, on_score=on_score, scheduler=scheduler)
