from __future__ import annotations
from dataclasses import dataclass
import re

# MIDI 60 -> C4 (same convention as midi = (octave + 1) * 12 + semitone)
OCTAVE_OFFSET = 12

PITCH_CLASS_NAMES = ["C", "C♯", "D", "D♯", "E", "F", "F♯", "G", "G♯", "A", "A♯", "B"]

STEP_TO_SEMITONE = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}
_ALTER = {"": 0, "#": 1, "♯": 1, "S": 1, "s": 1, "b": -1, "♭": -1}
_NOTE_RE = re.compile(r"^\s*([A-Ga-g])(#|♯|S|s|b|♭)?(-?\d+)\s*$")


@dataclass(frozen=True)
class Note:
    pitch_class: int   # 0 = C ... 11 = B
    octave: int

    def __post_init__(self):
        if not 0 <= self.pitch_class <= 11:
            raise ValueError(f"pitch class out of range: {self.pitch_class}")

    @classmethod
    def from_midi_pitch(cls, p: int) -> "Note":
        p = int(p)
        if not 0 <= p <= 127:
            raise ValueError(f"MIDI pitch out of range: {p}")
        return cls(p % 12, (p - OCTAVE_OFFSET) // 12)

    @classmethod
    def parse(cls, text: str) -> "Note":
        """
        Liest 'C4', 'C#4', 'C♯4', 'CS4' (Schreibweise der alten Box-Dateien) oder 'Db4'.
        Bes werden auf das enharmonische Kreuz abgebildet (Db4 -> C♯4, Cb4 -> B3).
        """
        m = _NOTE_RE.match(str(text))
        if not m:
            raise ValueError(f"not a note: {text!r}")
        step, acc, octave = m.group(1).upper(), m.group(2) or "", int(m.group(3))
        semitone = STEP_TO_SEMITONE[step] + _ALTER[acc]
        return cls(semitone % 12, octave + semitone // 12)

    def to_midi_pitch(self) -> int:
        return self.octave * 12 + OCTAVE_OFFSET + self.pitch_class

    def transpose(self, target_octave: int) -> "Note":
        return Note(self.pitch_class, int(target_octave))

    def is_playable(self, music_box) -> bool:
        return music_box.contains(self)

    @property
    def name(self) -> str:
        return PITCH_CLASS_NAMES[self.pitch_class]

    def __str__(self) -> str:
        return f"{self.name}{self.octave}"
