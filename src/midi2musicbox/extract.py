# src/midi2musicbox/extract.py
from __future__ import annotations
from typing import Iterable, List, Optional, Tuple
import logging
import mido

from .errors import InsufficientPlayableNotes, OverlappingNotes, TrackIndexOutOfBounds
from .music_box import MusicBox
from .note import Note
from .timeline import (
    Diagnostics, Event, Track,
    OVERLAPPING_NOTES, PIN_COLLISION, TRANSPOSED_NOTE, UNPLAYABLE_NOTE,
)

log = logging.getLogger(__name__)

MIDI_PITCHES = 128
# Suchbereich für --transpose; deckt alle 128 MIDI-Tonhöhen ab (C-1 .. G9)
TRANSPOSE_OCTAVES = range(-1, 10)


def read_midi(path: str) -> mido.MidiFile:
    return mido.MidiFile(path)

def select_track(midi_file: mido.MidiFile, index: int) -> mido.MidiTrack:
    if index < 0 or index >= len(midi_file.tracks):
        raise TrackIndexOutOfBounds(index, len(midi_file.tracks))
    return midi_file.tracks[index]

def _is_note_message(msg) -> bool:
    return not msg.is_meta and msg.type in ("note_on", "note_off")

def find_playable_octave(note: Note, music_box: MusicBox) -> Optional[Note]:
    for octave in TRANSPOSE_OCTAVES:
        candidate = note.transpose(octave)
        if candidate.is_playable(music_box):
            return candidate
    return None

def track_from_messages(
    messages: Iterable,
    music_box: MusicBox,
    transpose: bool = False,
    diagnostics: Optional[Diagnostics] = None,
    overlap_policy: str = "warn",
) -> Track:
    """
    Absolute Zeiten + Abstandsmetriken aus einer delta-kodierten Nachrichtenfolge.

    - note_off und note_on mit velocity 0 schieben nur die Zeit weiter
    - unspielbare Noten werden übersprungen (oder mit transpose in eine spielbare Oktave gelegt)
    - min/max_distance: kleinster/größter Abstand zweier Anschläge derselben Tonhöhe (> 0)
    """
    diag = diagnostics if diagnostics is not None else Diagnostics(log)
    track = Track()
    current_time = 0
    last_seen: List[Optional[int]] = [None] * MIDI_PITCHES
    pin_seen: List[Optional[Tuple[int, int]]] = [None] * MIDI_PITCHES   # (tick, Ausgangstonhöhe)
    pin_hits: List[Tuple[int, int, Note]] = []

    for msg in messages:
        current_time += int(msg.time)

        if not _is_note_message(msg):
            continue
        if msg.type == "note_off" or msg.velocity == 0:
            continue

        pitch = int(msg.note)
        note = Note.from_midi_pitch(pitch)

        if not note.is_playable(music_box):
            if not transpose:
                diag.warning(
                    UNPLAYABLE_NOTE,
                    f"Found note '{note}' at tick {current_time}. Note not playable with "
                    f"music box '{music_box.name}'. Skipping",
                    tick=current_time, note=note,
                )
                continue
            moved = find_playable_octave(note, music_box)
            if moved is None:
                diag.warning(
                    UNPLAYABLE_NOTE,
                    f"Found note '{note}' at tick {current_time}. No octave of it is playable "
                    f"with music box '{music_box.name}'. Skipping",
                    tick=current_time, note=note,
                )
                continue
            diag.info(
                TRANSPOSED_NOTE,
                f"Transposed note '{note}' to '{moved}' at tick {current_time}",
                tick=current_time, note=moved,
            )
            note = moved

        log.debug("Found note '%s' at tick %d", note, current_time)

        prev = last_seen[pitch]
        if prev is not None:
            distance = current_time - prev
            if distance != 0:
                track.min_distance = distance if track.min_distance is None else min(track.min_distance, distance)
                track.max_distance = distance if track.max_distance is None else max(track.max_distance, distance)
            elif overlap_policy == "error":
                raise OverlappingNotes(note, current_time)
            elif overlap_policy == "warn":
                diag.warning(
                    OVERLAPPING_NOTES,
                    f"Note '{note}' is struck twice at tick {current_time}; "
                    f"ignored for distance calculation",
                    tick=current_time, note=note,
                )

        # transponierte Noten können auf einem Stift landen, den eine andere Ausgangstonhöhe belegt
        pin = note.to_midi_pitch()
        prev_on_pin = pin_seen[pin]
        if prev_on_pin is not None and prev_on_pin[1] != pitch:
            pin_hits.append((current_time - prev_on_pin[0], current_time, note))
        pin_seen[pin] = (current_time, pitch)

        last_seen[pitch] = current_time
        track.events.append(Event(note, current_time, int(msg.velocity)))

    track.tick_length = current_time

    for distance, tick, note in pin_hits:
        if track.min_distance is None or distance < track.min_distance:
            diag.warning(
                PIN_COLLISION,
                f"Pin '{note}' is struck at tick {tick}, {distance} tick(s) after a note of another "
                f"source pitch; closer than the smallest repeat distance ({track.min_distance})",
                tick=tick, note=note,
            )
    return track

def extract_track(
    midi_file: mido.MidiFile,
    index: int,
    music_box: MusicBox,
    transpose: bool = False,
    diagnostics: Optional[Diagnostics] = None,
    overlap_policy: str = "warn",
) -> Track:
    """Track auswählen, extrahieren und auf mindestens zwei spielbare Noten prüfen."""
    source = select_track(midi_file, index)
    track = track_from_messages(source, music_box, transpose, diagnostics, overlap_policy)
    if len(track) < 2:
        raise InsufficientPlayableNotes(index, len(track))
    log.info(
        "track %d: %d notes, length=%d ticks, min_distance=%s, max_distance=%s",
        index, len(track), track.tick_length, track.min_distance, track.max_distance,
    )
    return track
