# humancadence/core/hooks/keyboard_listener.py
from __future__ import annotations
from typing import Set, Optional
from queue import Queue
from pynput import keyboard
import structlog

from .events import KeyEvent, KeyAction, mono_ms
from humancadence.core.utils.queueing import safe_put

log = structlog.get_logger()

MOD_KEYS = {
    keyboard.Key.shift: "shift",
    keyboard.Key.shift_r: "shift",
    keyboard.Key.shift_l: "shift",
    keyboard.Key.ctrl: "ctrl",
    keyboard.Key.ctrl_l: "ctrl",
    keyboard.Key.ctrl_r: "ctrl",
    keyboard.Key.alt: "alt",
    keyboard.Key.alt_l: "alt",
    keyboard.Key.alt_r: "alt",
    keyboard.Key.cmd: "cmd",      # macOS / some Linux
    keyboard.Key.cmd_l: "cmd",
    keyboard.Key.cmd_r: "cmd",
}

DELETE_KEYS = {keyboard.Key.backspace, keyboard.Key.delete}

def _slot(k: keyboard.Key | keyboard.KeyCode):
    # Opaque identity used only to spot auto-repeat; never leaves this module.
    if isinstance(k, keyboard.KeyCode):
        return ("vk", k.vk) if k.vk is not None else ("char", k.char)
    return k

class KeyboardHook:
    """
    Background pynput listener emitting KeyEvent into a queue.
    Pair with QueuedEventSource so observers run on the consumer thread.
    """
    def __init__(self, out_q: Queue):
        self.out_q = out_q
        self._mods: Set[str] = set()
        self._held: Set = set()
        self._listener: Optional[keyboard.Listener] = None

    @property
    def running(self) -> bool:
        return bool(self._listener and self._listener.running)

    def start(self) -> None:
        if self.running:
            return
        self._mods.clear()
        self._held.clear()
        self._listener = keyboard.Listener(
            on_press=self._on_press,
            on_release=self._on_release,
            suppress=False
        )
        self._listener.daemon = True
        self._listener.start()
        log.info("kbd.start")

    def stop(self) -> None:
        if self._listener:
            self._listener.stop()
            self._listener = None
        log.info("kbd.stop")

    def _on_press(self, key, injected: bool = False):
        now = mono_ms()
        slot = _slot(key)
        # OS auto-repeat re-fires press without a release in between
        repeat = slot in self._held
        self._held.add(slot)
        if key in MOD_KEYS:
            self._mods.add(MOD_KEYS[key])
        ev = KeyEvent(
            t_mono=now,
            trusted=not injected,
            action=KeyAction.DOWN,
            mods=set(self._mods),
            repeat=repeat,
            deletes=key in DELETE_KEYS,
        )
        safe_put(self.out_q, ev)

    def _on_release(self, key, injected: bool = False):
        now = mono_ms()
        self._held.discard(_slot(key))
        if key in MOD_KEYS:
            self._mods.discard(MOD_KEYS[key])
        ev = KeyEvent(
            t_mono=now,
            trusted=not injected,
            action=KeyAction.UP,
            mods=set(self._mods),
            deletes=key in DELETE_KEYS,
        )
        safe_put(self.out_q, ev)
