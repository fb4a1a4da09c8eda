from __future__ import annotations
from typing import Optional


class MusicBoxError(Exception):
    """Base class: a conversion attempt cannot continue."""


class TrackIndexOutOfBounds(MusicBoxError):
    def __init__(self, index: int, track_count: int):
        self.index = index
        self.track_count = track_count
        super().__init__(
            f"File only contains {track_count} track(s). Track number {index} is out of bounds "
            f"(track numbers are zero-based: 0 => first track)"
        )


class InsufficientPlayableNotes(MusicBoxError):
    def __init__(self, track_index: Optional[int], count: int):
        self.track_index = track_index
        self.count = count
        where = f"Track {track_index}" if track_index is not None else "Track"
        super().__init__(f"{where} contains fewer than two playable notes ({count} found)")


class OverlappingNotes(MusicBoxError):
    def __init__(self, note, tick: int):
        self.note = note
        self.tick = tick
        super().__init__(f"Note '{note}' is struck twice at tick {tick}")


class DegenerateScaleFactor(MusicBoxError):
    pass


class UnknownMusicBox(MusicBoxError):
    def __init__(self, name: str, available):
        self.name = name
        self.available = list(available)
        super().__init__(
            f"Unknown music box '{name}'. Available: {', '.join(self.available) or '-'}"
        )


class SettingsError(MusicBoxError):
    pass


class BoxCatalogueError(MusicBoxError):
    def __init__(self, path, message: str, box: Optional[str] = None, key: Optional[str] = None):
        self.path = str(path)
        self.box = box
        self.key = key
        where = f"box '{box}' in {self.path}" if box is not None else self.path
        super().__init__(f"Music box catalogue {where}: {message}")
