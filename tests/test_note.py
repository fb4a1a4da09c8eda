"""Tests for midi2musicbox/note.py."""
from __future__ import annotations

import pytest

from midi2musicbox.note import Note
from conftest import make_box


def test_midi_pitch_round_trip_for_all_pitches() -> None:
    for p in range(128):
        assert Note.from_midi_pitch(p).to_midi_pitch() == p


def test_middle_c_is_octave_four() -> None:
    assert Note.from_midi_pitch(60) == Note(0, 4)
    assert str(Note.from_midi_pitch(60)) == "C4"
    assert str(Note.from_midi_pitch(61)) == "C♯4"


def test_extreme_pitches() -> None:
    assert Note.from_midi_pitch(0) == Note(0, -1)
    assert str(Note.from_midi_pitch(127)) == "G9"


@pytest.mark.parametrize("bad", [-1, 128])
def test_from_midi_pitch_rejects_out_of_range(bad: int) -> None:
    with pytest.raises(ValueError):
        Note.from_midi_pitch(bad)


def test_transpose_to_own_octave_is_identity() -> None:
    for p in range(128):
        n = Note.from_midi_pitch(p)
        assert n.transpose(n.octave) == n


def test_transpose_returns_new_note() -> None:
    n = Note(9, 4)
    moved = n.transpose(2)
    assert moved == Note(9, 2)
    assert n == Note(9, 4)


@pytest.mark.parametrize("text", ["C#4", "C♯4", "CS4", "Db4", "c#4"])
def test_parse_sharp_spellings(text: str) -> None:
    assert Note.parse(text) == Note(1, 4)


def test_parse_wraps_octave_on_enharmonics() -> None:
    assert Note.parse("Cb4") == Note(11, 3)
    assert Note.parse("B#3") == Note(0, 4)
    assert Note.parse("A-1") == Note(9, -1)


@pytest.mark.parametrize("bad", ["", "H4", "C", "C#x"])
def test_parse_rejects_garbage(bad: str) -> None:
    with pytest.raises(ValueError):
        Note.parse(bad)


def test_is_playable_needs_class_and_octave() -> None:
    box = make_box()
    assert Note(0, 4).is_playable(box)
    assert not Note(0, 5).is_playable(box)
    assert not Note(1, 4).is_playable(box)
