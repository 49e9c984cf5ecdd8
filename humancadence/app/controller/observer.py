# humancadence/app/controller/observer.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import numpy as np
import structlog

from humancadence.core.hooks.events import BaseEvent, EventType, KeyAction, KeyEvent
from humancadence.core.hooks.event_source import EventSource
from humancadence.core.utils.ring_buffer import RingBuffer

log = structlog.get_logger()

# input arriving later than this after the last key press did not come from it
INPUT_GRACE_MS = 50.0

@dataclass(frozen=True)
class ObserverState:
    """Point-in-time copy of everything the analyzer needs, plus side signals."""
    dwells: np.ndarray
    flights: np.ndarray
    corrections: int
    rollovers: int
    total: int
    paste_detected: bool
    synthetic_events: int
    input_without_keystrokes: bool
    input_without_keystroke_count: int

class KeystrokeObserver:
    """
    Reduces KEY/PASTE/INPUT events from one source into dwell and flight
    windows and a handful of counters. Only timing is kept; the single key
    fact ever read is whether a press deletes text.

    Per press:
      - untrusted → synthetic counter (still captured)
      - deletes → correction, even under modifiers
      - auto-repeat → never opens an interval; the hold's dwell runs from
        the real press
      - ctrl/alt/cmd held → shortcut; its release is drained later
      - else → total++, flight on the 0→1 active transition, rollover if
        another key is still down
    Per release: drain a pending shortcut release, or record dwell.
    """
    def __init__(self, source: EventSource, window_size: int = 50):
        self.source = source
        self.window_size = window_size
        self.dwells = RingBuffer(window_size)
        self.flights = RingBuffer(window_size)
        self._listening = False
        self.clear()

    # ---- lifecycle ----

    @property
    def listening(self) -> bool:
        return self._listening

    def start(self) -> None:
        if self._listening:
            return
        self.source.subscribe(EventType.KEY, self._on_key)
        self.source.subscribe(EventType.PASTE, self._on_paste)
        self.source.subscribe(EventType.INPUT, self._on_input)
        self._listening = True

    def stop(self) -> None:
        if not self._listening:
            return
        self.source.unsubscribe(EventType.KEY, self._on_key)
        self.source.unsubscribe(EventType.PASTE, self._on_paste)
        self.source.unsubscribe(EventType.INPUT, self._on_input)
        self._listening = False

    def clear(self) -> None:
        self.dwells.clear()
        self.flights.clear()
        self.corrections = 0
        self.rollovers = 0
        self.total = 0
        self.paste_detected = False
        self.synthetic_events = 0
        self.input_without_keystrokes = False
        self.input_without_keystroke_count = 0

        self._last_keydown_t: Optional[float] = None
        self._last_press_t: Optional[float] = None
        self._last_release_t: Optional[float] = None
        self._active_keys = 0
        self._pending_filtered_ups = 0
        self._orphan_repeat = False

    def destroy(self) -> None:
        self.stop()
        self.clear()

    def snapshot(self) -> ObserverState:
        return ObserverState(
            dwells=self.dwells.to_array(),
            flights=self.flights.to_array(),
            corrections=self.corrections,
            rollovers=self.rollovers,
            total=self.total,
            paste_detected=self.paste_detected,
            synthetic_events=self.synthetic_events,
            input_without_keystrokes=self.input_without_keystrokes,
            input_without_keystroke_count=self.input_without_keystroke_count,
        )

    # ---- handlers ----

    def _on_key(self, ev: BaseEvent) -> None:
        if not isinstance(ev, KeyEvent):
            return
        if ev.action == KeyAction.DOWN:
            self._key_down(ev)
        else:
            self._key_up(ev)

    def _key_down(self, ev: KeyEvent) -> None:
        now = ev.t_mono
        self._last_keydown_t = now

        if not ev.trusted:
            self.synthetic_events += 1

        # before the shortcut filter: ctrl+backspace is still a correction
        if ev.deletes:
            self.corrections += 1

        if ev.repeat:
            # a hold whose real press we never saw must not yield a dwell
            if self._active_keys == 0 and self._pending_filtered_ups == 0:
                self._orphan_repeat = True
            return

        if ev.is_shortcut:
            self._pending_filtered_ups += 1
            return

        self._orphan_repeat = False
        if self._active_keys > 0:
            self.rollovers += 1
        self._active_keys += 1
        self.total += 1

        if self._active_keys == 1 and self._last_release_t is not None:
            self.flights.push(now - self._last_release_t)

        self._last_press_t = now

    def _key_up(self, ev: KeyEvent) -> None:
        if self._pending_filtered_ups > 0:
            self._pending_filtered_ups -= 1
            return

        now = ev.t_mono
        if self._last_press_t is not None and not self._orphan_repeat:
            self.dwells.push(now - self._last_press_t)
        self._orphan_repeat = False

        self._active_keys = max(0, self._active_keys - 1)
        self._last_release_t = now

    def _on_paste(self, ev: BaseEvent) -> None:
        if not self.paste_detected:
            log.debug("observer.paste")
        self.paste_detected = True

    def _on_input(self, ev: BaseEvent) -> None:
        last = self._last_keydown_t
        if last is None or ev.t_mono - last > INPUT_GRACE_MS:
            self.input_without_keystrokes = True
            self.input_without_keystroke_count += 1
            # a stale release would otherwise yield a bogus flight next time
            self._last_release_t = None
            log.debug("observer.input_without_keystroke", count=self.input_without_keystroke_count)
