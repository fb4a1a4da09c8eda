"""Shared fixtures: a five-note box and helpers for in-memory MIDI tracks."""
from __future__ import annotations

import mido
import pytest

from midi2musicbox.config import Settings
from midi2musicbox.music_box import MusicBox
from midi2musicbox.note import Note
from midi2musicbox.timeline import Event, Track


def make_box(names=("C4", "D4", "E4", "F4", "G4"), strip_height_mm=8.0, min_distance_mm=5.0, name="test"):
    return MusicBox(name, tuple(Note.parse(n) for n in names), strip_height_mm, min_distance_mm)


def note_on(delta: int, pitch: int, velocity: int = 100) -> mido.Message:
    return mido.Message("note_on", note=pitch, velocity=velocity, time=delta)


def note_off(delta: int, pitch: int) -> mido.Message:
    return mido.Message("note_off", note=pitch, velocity=0, time=delta)


def make_track(*times_and_names, min_distance=None, max_distance=None) -> Track:
    """make_track((0, "C4"), (10, "C4"), ...) -> Track with the given absolute times."""
    events = [Event(Note.parse(name), t, 100) for t, name in times_and_names]
    return Track(
        events=events,
        tick_length=events[-1].time if events else 0,
        min_distance=min_distance,
        max_distance=max_distance,
    )


@pytest.fixture()
def box() -> MusicBox:
    """C4..G4 (no sharps): scale.y == 2.0, min playable distance 5 mm."""
    return make_box()


@pytest.fixture()
def settings() -> Settings:
    return Settings()
