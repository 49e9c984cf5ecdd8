from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Set, Dict, Any
import time

# --- timing helpers ---
def mono_ms() -> float:
    # Monotonic high-res timestamp in milliseconds (one clock per session)
    return time.perf_counter() * 1000.0

MODIFIERS = frozenset({"shift", "ctrl", "alt", "cmd"})
SHORTCUT_MODIFIERS = frozenset({"ctrl", "alt", "cmd"})

# --- core enums ---
class EventType(Enum):
    """Top-level classifier for event routing."""
    KEY = auto()
    PASTE = auto()
    INPUT = auto()

class KeyAction(Enum):
    DOWN = "down"
    UP = "up"

# --- base event ---
@dataclass(frozen=True)
class BaseEvent:
    """Common shape for all events."""
    etype: EventType = field(init=False)         # auto-set by subclasses
    t_mono: float = field(default_factory=mono_ms)
    trusted: bool = True                         # False for injected/programmatic input

    def to_record(self) -> Dict[str, Any]:
        return {
            "etype": self.etype.name,
            "t_mono": self.t_mono,
            "trusted": self.trusted,
        }

# --- key event ---
@dataclass(frozen=True)
class KeyEvent(BaseEvent):
    """Keystroke timing event. Carries no key identity beyond the delete bit."""
    action: KeyAction = KeyAction.DOWN
    mods: Set[str] = field(default_factory=set)  # subset of MODIFIERS
    repeat: bool = False                         # auto-repeat of a held key
    deletes: bool = False                        # Backspace / Delete

    def __post_init__(self):
        object.__setattr__(self, "etype", EventType.KEY)

    @property
    def is_shortcut(self) -> bool:
        return bool(self.mods & SHORTCUT_MODIFIERS)

    def to_record(self) -> Dict[str, Any]:
        base = super().to_record()
        base.update({
            "action": self.action.value,
            "mods": sorted(self.mods),
            "repeat": self.repeat,
            "deletes": self.deletes,
        })
        return base

# --- paste event ---
@dataclass(frozen=True)
class PasteEvent(BaseEvent):
    """Clipboard paste into the observed field (no content)."""

    def __post_init__(self):
        object.__setattr__(self, "etype", EventType.PASTE)

# --- input event ---
@dataclass(frozen=True)
class InputEvent(BaseEvent):
    """Field value changed, from any origin (typing, dictation, autofill, IME)."""

    def __post_init__(self):
        object.__setattr__(self, "etype", EventType.INPUT)
