"""End-to-end tests for midi2musicbox/cli.py."""
from __future__ import annotations

from pathlib import Path

import mido
import pytest

from midi2musicbox.cli import main
from conftest import note_on


def _write_midi(path: Path, notes) -> Path:
    mid = mido.MidiFile(type=1, ticks_per_beat=96)
    mid.tracks.append(mido.MidiTrack([
        mido.MetaMessage("track_name", name="Conductor", time=0),
        mido.MetaMessage("set_tempo", tempo=500000, time=0),
    ]))
    mid.tracks.append(mido.MidiTrack(notes))
    mid.save(str(path))
    return path


@pytest.fixture()
def midi_path(tmp_path: Path) -> Path:
    # C4 E4 G4 C4 on the bundled 30-note box
    notes = [note_on(0, 60), note_on(48, 64), note_on(48, 67), note_on(0, 60), note_on(48, 60)]
    return _write_midi(tmp_path / "song.mid", notes)


def _base_args(tmp_path: Path, midi_path: Path, out: Path):
    return ["--in", str(midi_path), "--out", str(out), "--config", str(tmp_path / "no-config.yaml"), "-q"]


def test_convert_writes_pages(tmp_path: Path, midi_path: Path, capsys) -> None:
    out = tmp_path / "svg"
    assert main(_base_args(tmp_path, midi_path, out) + ["--track", "1"]) == 0

    page = (out / "0.svg").read_text(encoding="utf-8")
    assert page.startswith('<svg version="1.1"')
    assert page.count("<circle") == 5
    assert "[cli] Done." in capsys.readouterr().out


def test_out_midi(tmp_path: Path, midi_path: Path) -> None:
    out_mid = tmp_path / "extra" / "transposed.mid"
    main(_base_args(tmp_path, midi_path, tmp_path / "svg") + ["--track", "1", "--out-midi", str(out_mid)])
    assert len(mido.MidiFile(str(out_mid)).tracks) == 3


def test_track_out_of_bounds_writes_nothing(tmp_path: Path, midi_path: Path, capsys) -> None:
    out = tmp_path / "svg"
    with pytest.raises(SystemExit) as exc:
        main(_base_args(tmp_path, midi_path, out) + ["--track", "5"])
    assert exc.value.code == 2
    assert not out.exists()
    assert "out of bounds" in capsys.readouterr().err


def test_conductor_track_has_no_notes(tmp_path: Path, midi_path: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(_base_args(tmp_path, midi_path, tmp_path / "svg") + ["--track", "0"])
    assert exc.value.code == 2


def test_missing_input(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--in", str(tmp_path / "nope.mid"), "-q"])
    assert exc.value.code == 1


def test_list_boxes(capsys) -> None:
    assert main(["--list-boxes", "-q"]) == 0
    assert "30-note: 30 notes" in capsys.readouterr().out


def test_incomplete_box_catalogue_exits_2(tmp_path: Path, midi_path: Path, capsys) -> None:
    boxes = tmp_path / "boxes.yaml"
    boxes.write_text("boxes:\n  x:\n    notes: [C4, D4]\n", encoding="utf-8")
    out = tmp_path / "svg"
    with pytest.raises(SystemExit) as exc:
        main(_base_args(tmp_path, midi_path, out) + ["--track", "1", "--boxes", str(boxes), "--box", "x"])
    assert exc.value.code == 2
    assert not out.exists()
    err = capsys.readouterr().err
    assert "[cli] ERROR" in err and "strip_height_mm" in err


def test_list_boxes_broken_catalogue_exits_2(tmp_path: Path, capsys) -> None:
    boxes = tmp_path / "boxes.yaml"
    boxes.write_text("boxes: [unclosed", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["--list-boxes", "--boxes", str(boxes), "-q"])
    assert exc.value.code == 2
    assert "[cli] ERROR" in capsys.readouterr().err


def test_out_midi_takes_meta_from_selected_track(tmp_path: Path) -> None:
    midi_path = _write_midi(tmp_path / "named.mid", [
        mido.MetaMessage("track_name", name="Melody", time=0),
        note_on(0, 60), note_on(48, 64), note_on(48, 60),
    ])
    out_mid = tmp_path / "named.out.mid"
    main(_base_args(tmp_path, midi_path, tmp_path / "svg") + ["--track", "1", "--out-midi", str(out_mid)])

    added = mido.MidiFile(str(out_mid)).tracks[-1]
    names = [m.name for m in added if m.type == "track_name"]
    tempos = [m.tempo for m in added if m.type == "set_tempo"]
    assert names == ["Melody"]
    assert tempos == [500000]
