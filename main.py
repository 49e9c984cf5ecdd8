# main.py
from __future__ import annotations
import argparse
import time
import structlog

from humancadence.app.logging_config import configure_logging
from humancadence.app.analytics.config import CadenceConfig, Scheduling
from humancadence.app.controller.runner import CadenceResult, create_cadence
from humancadence.core.hooks.event_source import QueuedEventSource
from humancadence.core.hooks.keyboard_listener import KeyboardHook

POLL_S = 0.05

def main() -> None:
    ap = argparse.ArgumentParser(description="Live keystroke cadence scoring from the system keyboard")
    ap.add_argument("--window", type=int, default=50, help="sliding window (keystrokes)")
    ap.add_argument("--min-samples", type=int, default=20)
    ap.add_argument("--console", action="store_true", help="human-readable logs instead of JSON")
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args()

    configure_logging(debug=args.debug, json_logs=not args.console)
    log = structlog.get_logger()

    def on_score(result: CadenceResult) -> None:
        log.info(
            "cadence.update",
            score=round(result.score, 3),
            confident=result.confident,
            classification=result.classification.value if result.classification else None,
            samples=result.sample_count,
            metrics={k: round(v, 3) for k, v in result.metrics.as_dict().items()},
        )

    source = QueuedEventSource()
    hook = KeyboardHook(source.queue)
    # events are pumped on this thread; the deferred run fires from run_pending() here too
    cadence = create_cadence(
        source,
        config=CadenceConfig(window_size=args.window, min_samples=args.min_samples, scheduling=Scheduling.DEFERRED),
        on_score=on_score,
    )

    log.info("app.start", msg="Type anywhere; Ctrl+C in this terminal to quit")
    cadence.start()
    hook.start()
    try:
        while True:
            source.pump()
            cadence.run_pending()
            time.sleep(POLL_S)
    except KeyboardInterrupt:
        pass
    finally:
        hook.stop()
        cadence.destroy()
        log.info("app.stop", msg="Exited cleanly")

if __name__ == "__main__":
    main()
