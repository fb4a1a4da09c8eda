from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple
import logging
import math

from .config import Settings
from .errors import DegenerateScaleFactor, InsufficientPlayableNotes
from .music_box import MusicBox
from .timeline import Circle, Diagnostics, Event, Line, Page, PageGeometry, Track, UNDRAWN_NOTES

log = logging.getLogger(__name__)

@dataclass(frozen=True)
class Scale:
    x: float   # mm per tick
    y: float   # mm between two note lines

@dataclass(frozen=True)
class LayoutState:
    """Zwischenstand der Seitenfaltung: Sprocket-Phase für die nächste Seite + fertige Seiten."""
    overflow_sprocket_mm: float = 0.0
    pages: Tuple[PageGeometry, ...] = ()

def compute_scale(track: Track, music_box: MusicBox) -> Scale:
    """
    x: kleinster Wiederholungsabstand im Stück -> kleinster spielbarer Abstand der Spieluhr
    y: Streifenhöhe gleichmäßig auf die Notenlinien verteilt
    """
    if len(track) < 2:
        raise InsufficientPlayableNotes(None, len(track))
    if not track.min_distance or track.min_distance <= 0:
        raise DegenerateScaleFactor(
            "Track has no repeated pitch at distinct ticks; cannot derive a horizontal scale"
        )
    if music_box.min_playable_distance_mm <= 0:
        raise DegenerateScaleFactor(
            f"Music box '{music_box.name}' has non-positive min_playable_distance_mm "
            f"({music_box.min_playable_distance_mm})"
        )
    if music_box.strip_height_mm <= 0:
        raise DegenerateScaleFactor(
            f"Music box '{music_box.name}' has non-positive strip_height_mm ({music_box.strip_height_mm})"
        )
    return Scale(
        x=music_box.min_playable_distance_mm / track.min_distance,
        y=music_box.vertical_note_distance(),
    )

def _x(time: int, first_event_time: int, overflow_ticks: int, scale: Scale, settings: Settings) -> float:
    return (time - first_event_time + overflow_ticks) * scale.x + settings.staff_offset_mm

def split_pages(track: Track, scale: Scale, settings: Settings) -> Iterator[Page]:
    """
    Verteilt die Events auf Seiten. Beim Umbruch wird der Abstand zwischen dem letzten
    Event der alten und dem ersten Event der neuen Seite als overflow_ticks mitgenommen.
    """
    events: List[Event] = []
    first_event_time: Optional[int] = None
    overflow_ticks = 0

    for ev in track:
        if ev.velocity == 0:
            continue
        if first_event_time is None:
            first_event_time = ev.time
        if events and _x(ev.time, first_event_time, overflow_ticks, scale, settings) > settings.paper_size_x_mm:
            yield Page(tuple(events), first_event_time, overflow_ticks)
            overflow_ticks = ev.time - events[-1].time
            first_event_time = ev.time
            events = []
        events.append(ev)

    yield Page(tuple(events), first_event_time or 0, overflow_ticks)

def draw_page(
    page: Page,
    overflow_sprocket_mm: float,
    music_box: MusicBox,
    settings: Settings,
    scale: Scale,
) -> PageGeometry:
    s = settings
    off = s.staff_offset_mm
    n = music_box.note_count
    geo = PageGeometry(
        overflow_ticks=page.overflow_ticks,
        overflow_sprocket_mm_in=overflow_sprocket_mm,
    )

    if page.events:
        span_ticks = page.events[-1].time - page.first_event_time + page.overflow_ticks
    else:
        span_ticks = 0
    end_x = span_ticks * scale.x + off

    # Notenlinien
    for i in range(n):
        y = off + (i * scale.y)
        geo.lines.append(Line(off, y, end_x, y, s.staff_line_colour, s.staff_line_thickness_mm))

    # Rahmen
    top_y = off - s.bounding_box_top_bottom_distance_mm
    bottom_y = scale.y * (n - 1) + off + s.bounding_box_top_bottom_distance_mm
    lr, tb, w = s.bounding_box_left_right_colour, s.bounding_box_top_bottom_colour, s.bounding_box_thickness_mm
    geo.lines.append(Line(off, top_y, off, bottom_y, lr, w))
    geo.lines.append(Line(end_x, top_y, end_x, bottom_y, lr, w))
    geo.lines.append(Line(off, top_y, end_x, top_y, tb, w))
    geo.lines.append(Line(off, bottom_y, end_x, bottom_y, tb, w))

    # Notenlöcher; Position 1 (tiefster Ton) liegt auf der untersten Linie
    for ev in page.events:
        idx = music_box.index_of(ev.note)
        if idx is None:
            log.warning("note '%s' at tick %d is not on music box '%s'; not drawn", ev.note, ev.time, music_box.name)
            continue
        geo.circles.append(Circle(
            _x(ev.time, page.first_event_time, page.overflow_ticks, scale, s),
            (n - (idx + 1)) * scale.y + off,
            s.hole_radius_mm,
            s.hole_colour,
        ))
        geo.note_holes += 1

    # Transportlöcher
    last_hole_x = 0.0
    if s.sprocket_hole_enable:
        sprocket_top_y = off - s.sprocket_hole_distance_staff_mm
        sprocket_bot_y = off + ((n - 1) * scale.y) + s.sprocket_hole_distance_staff_mm
        area = scale.x * span_ticks - overflow_sprocket_mm
        count = max(0, math.floor(area / s.sprocket_hole_distance_mm))
        for i in range(count + 1):
            last_hole_x = (off + overflow_sprocket_mm) + (i * s.sprocket_hole_distance_mm)
            geo.circles.append(Circle(last_hole_x, sprocket_top_y, s.hole_radius_mm, s.sprocket_hole_colour))
            geo.circles.append(Circle(last_hole_x, sprocket_bot_y, s.hole_radius_mm, s.sprocket_hole_colour))

    geo.overflow_sprocket_mm_out = s.paper_size_x_mm - off - last_hole_x
    return geo

def layout_step(state: LayoutState, page: Page, music_box: MusicBox, settings: Settings, scale: Scale) -> LayoutState:
    geo = draw_page(page, state.overflow_sprocket_mm, music_box, settings, scale)
    return LayoutState(geo.overflow_sprocket_mm_out, state.pages + (geo,))

def layout(
    track: Track,
    music_box: MusicBox,
    settings: Settings,
    diagnostics: Optional[Diagnostics] = None,
) -> List[PageGeometry]:
    scale = compute_scale(track, music_box)
    log.info("scale factor x=%r mm/tick, y=%r mm", scale.x, scale.y)

    state = LayoutState()
    for page in split_pages(track, scale, settings):
        state = layout_step(state, page, music_box, settings, scale)

    drawn = sum(p.note_holes for p in state.pages)
    if drawn != len(track) and diagnostics is not None:
        diagnostics.warning(
            UNDRAWN_NOTES,
            f"{len(track) - drawn} note(s) of the track were not drawn",
        )
    log.info("layout: %d page(s), %d note hole(s)", len(state.pages), drawn)
    return list(state.pages)
