from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, List, Tuple
import logging

from .note import Note

# --- Pass 1: extracted track ---

@dataclass(frozen=True)
class Event:
    note: Note
    time: int          # absolute ticks
    velocity: int

@dataclass
class Track:
    events: List[Event] = field(default_factory=list)
    tick_length: int = 0
    min_distance: Optional[int] = None     # None: no non-zero same-pitch repeat
    max_distance: Optional[int] = None

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

# --- Pass 2: page geometry ---

@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke_colour: str
    stroke_width: float

@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    radius: float
    fill_colour: str

@dataclass(frozen=True)
class Page:
    events: Tuple[Event, ...]
    first_event_time: int
    overflow_ticks: int

@dataclass
class PageGeometry:
    lines: List[Line] = field(default_factory=list)
    circles: List[Circle] = field(default_factory=list)
    note_holes: int = 0
    overflow_ticks: int = 0
    overflow_sprocket_mm_in: float = 0.0
    overflow_sprocket_mm_out: float = 0.0

# --- Diagnostics ---

UNPLAYABLE_NOTE = "unplayable_note"
TRANSPOSED_NOTE = "transposed_note"
OVERLAPPING_NOTES = "overlapping_notes"
UNDRAWN_NOTES = "undrawn_notes"
PIN_COLLISION = "pin_collision"

@dataclass(frozen=True)
class Diagnostic:
    level: int          # logging level
    kind: str           # UNPLAYABLE_NOTE | TRANSPOSED_NOTE | OVERLAPPING_NOTES | UNDRAWN_NOTES | PIN_COLLISION
    message: str
    tick: Optional[int] = None
    note: Optional[Note] = None

class Diagnostics:
    """
    Sammelt nicht-fatale Befunde einer Konvertierung. Jeder Eintrag geht zusätzlich
    an den übergebenen Logger, Tests prüfen dagegen direkt die Liste.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.items: List[Diagnostic] = []
        self.logger = logger or logging.getLogger("midi2musicbox")

    def add(self, level: int, kind: str, message: str,
            tick: Optional[int] = None, note: Optional[Note] = None) -> Diagnostic:
        d = Diagnostic(level, kind, message, tick, note)
        self.items.append(d)
        self.logger.log(level, message)
        return d

    def warning(self, kind: str, message: str, **ctx) -> Diagnostic:
        return self.add(logging.WARNING, kind, message, **ctx)

    def info(self, kind: str, message: str, **ctx) -> Diagnostic:
        return self.add(logging.INFO, kind, message, **ctx)

    def of_kind(self, kind: str) -> List[Diagnostic]:
        return [d for d in self.items if d.kind == kind]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.items if d.level >= logging.WARNING]

    def __len__(self) -> int:
        return len(self.items)
