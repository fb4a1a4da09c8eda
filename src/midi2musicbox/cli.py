from __future__ import annotations
import argparse, logging, pathlib, sys
from . import extract, layout, write
from .config import load_config, load_settings, get_overlap_policy
from .errors import MusicBoxError
from .music_box import get_music_box, load_music_boxes
from .timeline import Diagnostics

def _setup_logging(verbosity: int, quiet: bool) -> None:
    if quiet:
        level = logging.CRITICAL + 1
    else:
        level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(level=level, format="[%(name)s] %(levelname)s: %(message)s")

def main(argv=None):
    p = argparse.ArgumentParser(description="MIDI -> music box strip (SVG pages)")
    p.add_argument("--in", dest="infile", help="Input MIDI file (.mid/.midi)")
    p.add_argument("--out", dest="outdir", help="Output directory for the SVG pages (default: <input>_svg)")
    p.add_argument("--config", dest="config", default=None, help="YAML config (defaults applied if omitted)")
    p.add_argument("--box", dest="box", default=None, help="Name of the music box (from the box catalogue)")
    p.add_argument("--boxes", dest="boxes", default=None, help="YAML box catalogue (default: bundled catalogue)")
    p.add_argument("--list-boxes", action="store_true", help="List the music boxes of the catalogue and exit")
    p.add_argument("-t", "--track", dest="track", type=int, default=0, help="Zero-based track number")
    p.add_argument("--transpose", action="store_true", help="Move unplayable notes into a playable octave")
    p.add_argument("--out-midi", dest="out_midi", default=None, help="Also write the input MIDI plus one track with the extracted notes (track name, tempo, time/key signature from --track, missing ones from track 0)")
    p.add_argument("-v", "--verbose", dest="verbosity", action="count", default=0, help="More output (-vv for debug)")
    p.add_argument("-q", "--quiet", action="store_true", help="No log output")

    args = p.parse_args(argv)
    _setup_logging(args.verbosity, args.quiet)

    cfg = load_config(args.config)
    boxes_path = args.boxes or cfg.get("boxes_path")

    if args.list_boxes:
        try:
            boxes = load_music_boxes(boxes_path)
        except (MusicBoxError, OSError) as e:
            print(f"[cli] ERROR: {e}", file=sys.stderr)
            sys.exit(2)
        for name, box in boxes.items():
            print(f"{name}: {box.note_count} notes, {box.strip_height_mm} mm, min distance {box.min_playable_distance_mm} mm")
        return 0

    if not args.infile:
        p.error("--in is required")

    in_path = pathlib.Path(args.infile).expanduser().resolve()
    if not in_path.exists():
        print(f"[cli] ERROR: Input not found: {in_path}", file=sys.stderr)
        sys.exit(1)

    out_dir = pathlib.Path(args.outdir).expanduser().resolve() if args.outdir \
        else in_path.with_name(in_path.stem + "_svg")
    print(f"[cli] infile = {in_path}")

    diagnostics = Diagnostics()
    try:
        settings = load_settings(cfg)
        music_box = get_music_box(args.box or cfg["box"], boxes_path)
        midi_file = extract.read_midi(str(in_path))
        track = extract.extract_track(
            midi_file, args.track, music_box,
            transpose=args.transpose,
            diagnostics=diagnostics,
            overlap_policy=get_overlap_policy(cfg),
        )
        pages = layout.layout(track, music_box, settings, diagnostics)
    except (MusicBoxError, OSError, EOFError, ValueError) as e:
        print(f"[cli] ERROR: {e}", file=sys.stderr)
        sys.exit(2)

    if args.out_midi:
        midi_path = pathlib.Path(args.out_midi).expanduser().resolve()
        write.write_transposed_midi(midi_file, track, str(midi_path), source_index=args.track)
        print(f"[cli] midi  -> {midi_path}")

    paths = write.write_pages(pages, str(out_dir))
    print(f"[cli] pages -> {out_dir}")

    print(f"[cli] Done. box={music_box.name} notes={len(track)} pages={len(paths)} warnings={len(diagnostics.warnings)}")
    return 0
