from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple
import yaml

from .errors import BoxCatalogueError, DegenerateScaleFactor, UnknownMusicBox
from .note import Note

PKG_ROOT = Path(__file__).resolve().parent
DEFAULT_BOXES_PATH = PKG_ROOT / "boxes.default.yaml"
REQUIRED_BOX_KEYS = ("strip_height_mm", "min_playable_distance_mm")


@dataclass(frozen=True)
class MusicBox:
    name: str
    notes: Tuple[Note, ...]          # lowest listed note first
    strip_height_mm: float
    min_playable_distance_mm: float

    def __post_init__(self):
        notes = tuple(self.notes)
        if len(set(notes)) != len(notes):
            raise ValueError(f"music box '{self.name}' lists a note twice")
        object.__setattr__(self, "notes", notes)

    @property
    def note_count(self) -> int:
        return len(self.notes)

    def contains(self, note: Note) -> bool:
        return note in self.notes

    def index_of(self, note: Note) -> Optional[int]:
        try:
            return self.notes.index(note)
        except ValueError:
            return None

    def vertical_note_distance(self) -> float:
        if self.note_count < 2:
            raise DegenerateScaleFactor(
                f"Music box '{self.name}' has {self.note_count} note(s); at least two are needed"
            )
        return float(self.strip_height_mm) / (self.note_count - 1)


def music_box_from_dict(name: str, d: Dict, path=DEFAULT_BOXES_PATH) -> MusicBox:
    if not isinstance(d, dict):
        raise BoxCatalogueError(path, f"expected a mapping, got {d!r}", box=name)
    for key in REQUIRED_BOX_KEYS:
        if key not in d:
            raise BoxCatalogueError(path, f"missing key '{key}'", box=name, key=key)
    key = "notes"
    try:
        notes = tuple(Note.parse(n) for n in (d.get("notes") or []))
        key = "strip_height_mm"
        strip_height_mm = float(d["strip_height_mm"])
        key = "min_playable_distance_mm"
        min_playable_distance_mm = float(d["min_playable_distance_mm"])
        key = "notes"
        return MusicBox(name, notes, strip_height_mm, min_playable_distance_mm)
    except (TypeError, ValueError) as e:
        raise BoxCatalogueError(path, f"bad value for '{key}': {e}", box=name, key=key) from e


def load_music_boxes(path: Optional[Path] = None) -> Dict[str, MusicBox]:
    """
    Liest einen Box-Katalog (YAML):

        boxes:
          30-note:
            strip_height_mm: 58.0
            min_playable_distance_mm: 7.0
            notes: [F3, G3, C4, ...]
    """
    p = Path(path) if path else DEFAULT_BOXES_PATH
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise BoxCatalogueError(p, f"not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise BoxCatalogueError(p, "expected a 'boxes:' mapping at the top level")
    return {str(name): music_box_from_dict(str(name), entry, p)
            for name, entry in (data.get("boxes") or {}).items()}


def get_music_box(name: str, path: Optional[Path] = None) -> MusicBox:
    boxes = load_music_boxes(path)
    if name not in boxes:
        raise UnknownMusicBox(name, sorted(boxes))
    return boxes[name]
