from __future__ import annotations
import os
import re
import logging
import mido
from typing import Iterable, List, Optional
from .timeline import Circle, Line, PageGeometry, Track
from .util.fmt import mm

log = logging.getLogger(__name__)

# Meta-Events, die aus dem Quelltrack übernommen werden (jeweils das erste Vorkommen)
COPIED_META = ("track_name", "time_signature", "key_signature", "set_tempo")

SVG_OPEN = '<svg version="1.1" xmlns="http://www.w3.org/2000/svg">'
SVG_CLOSE = "</svg>"
PAGE_FILE_RE = re.compile(r"^\d+\.svg$")

# ---------- MIDI ----------

def _first_meta(source: Optional[Iterable]) -> List[mido.MetaMessage]:
    found = {}
    for msg in source or ():
        if msg.is_meta and msg.type in COPIED_META and msg.type not in found:
            found[msg.type] = msg.copy(time=0)
    return [found[t] for t in COPIED_META if t in found]

def to_midi_track(track: Track, source: Optional[Iterable] = None, channel: int = 0) -> mido.MidiTrack:
    """
    Absolute Events -> delta-times. Tempo/TS/Tonart/Name kommen aus 'source'
    (erstes Vorkommen), am Ende steht end_of_track.
    """
    mt = mido.MidiTrack()
    mt.extend(_first_meta(source))

    last = 0
    for ev in track:
        delta = ev.time - last
        last = ev.time
        mt.append(mido.Message("note_on", note=ev.note.to_midi_pitch(), velocity=ev.velocity,
                               channel=channel, time=delta))

    mt.append(mido.MetaMessage("end_of_track", time=max(0, track.tick_length - last)))
    return mt

def write_transposed_midi(midi_file: mido.MidiFile, track: Track, out_path: str,
                          source_index: int = 0) -> None:
    """
    Schreibt die Eingabedatei plus einen zusätzlichen Track mit den (ggf. transponierten) Noten.
    Meta-Events kommen aus Track source_index, fehlende aus Track 0 (Conductor).
    """
    parent = os.path.dirname(os.path.abspath(out_path))
    os.makedirs(parent, exist_ok=True)
    mid = mido.MidiFile(type=1, ticks_per_beat=midi_file.ticks_per_beat)
    mid.tracks.extend(midi_file.tracks)
    source = list(midi_file.tracks[source_index])
    if source_index != 0:
        source += list(midi_file.tracks[0])
    mid.tracks.append(to_midi_track(track, source))
    mid.save(out_path)

# ---------- SVG ----------

def _svg_line(l: Line, unit: str) -> str:
    return (f'<line x1="{mm(l.x1)}{unit}" y1="{mm(l.y1)}{unit}" x2="{mm(l.x2)}{unit}" y2="{mm(l.y2)}{unit}" '
            f'stroke="{l.stroke_colour}" stroke-width="{mm(l.stroke_width)}{unit}" />')

def _svg_circle(c: Circle, unit: str) -> str:
    return f'<circle cx="{mm(c.cx)}{unit}" cy="{mm(c.cy)}{unit}" r="{mm(c.radius)}{unit}" fill="{c.fill_colour}" />'

def render_svg(page: PageGeometry, unit: str = "mm") -> str:
    content = "".join(_svg_line(l, unit) + "\n" for l in page.lines)
    content += "".join(_svg_circle(c, unit) + "\n" for c in page.circles)
    return f"{SVG_OPEN}\n{content}{SVG_CLOSE}"

def write_pages(pages: List[PageGeometry], out_dir: str, unit: str = "mm") -> List[str]:
    """
    Eine SVG pro Seite: <out_dir>/0.svg, 1.svg, ...
    Alle Dokumente werden vorher gerendert, damit kein halber Satz Seiten entsteht.
    Seitendateien eines früheren, längeren Laufs werden entfernt.
    """
    docs = [render_svg(p, unit) for p in pages]
    os.makedirs(out_dir, exist_ok=True)
    for name in os.listdir(out_dir):
        if PAGE_FILE_RE.match(name) and int(name[:-4]) >= len(docs):
            os.remove(os.path.join(out_dir, name))
            log.info("removed stale page %s", name)
    paths = []
    for idx, doc in enumerate(docs):
        path = os.path.join(out_dir, f"{idx}.svg")
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(doc)
        paths.append(path)
    log.info("wrote %d page(s) to %s", len(paths), out_dir)
    return paths
