# src/midi2musicbox/config.py
from __future__ import annotations
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional
import copy
import logging
import yaml

from .errors import SettingsError

log = logging.getLogger(__name__)

# Paket-Root: .../src/midi2musicbox
PKG_ROOT = Path(__file__).resolve().parent
DEFAULT_CFG_PATH = PKG_ROOT / "config.default.yaml"
USER_CFG_PATH = Path.home() / ".config" / "midi2musicbox" / "config.yaml"

OVERLAP_POLICIES = ("ignore", "warn", "error")

def _safe_load(path: Path) -> Dict[str, Any]:
    try:
        if path.exists():
            return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        # lieber leer zurückgeben als den Core zu crashen
        log.warning("could not read config %s: %s", path, e)
    return {}

def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(a)
    for k, v in (b or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out

def load_config(
    user_path: Optional[Path] = None,
    default_path: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Lädt die Konfiguration (Default + User-Overrides) und liefert ein gemergtes Dict
    mit 'box', 'boxes_path', 'overlap_policy' und dem Abschnitt 'settings'.
    """
    dpath = Path(default_path) if default_path else DEFAULT_CFG_PATH
    upath = Path(user_path) if user_path else USER_CFG_PATH

    defaults = _safe_load(dpath)
    user = _safe_load(upath)
    cfg = _deep_merge(defaults, user)

    # Minimal-Defaults sicherstellen
    cfg.setdefault("box", "30-note")
    cfg.setdefault("overlap_policy", "warn")
    cfg.setdefault("settings", {})

    return cfg

def get_overlap_policy(cfg: Dict[str, Any]) -> str:
    policy = str(cfg.get("overlap_policy", "warn")).lower()
    if policy not in OVERLAP_POLICIES:
        raise SettingsError(
            f"overlap_policy must be one of {', '.join(OVERLAP_POLICIES)}, got {policy!r}"
        )
    return policy


@dataclass(frozen=True)
class Settings:
    paper_size_x_mm: float = 420.0
    staff_offset_mm: float = 10.0
    staff_line_thickness_mm: float = 1.0
    staff_line_colour: str = "#000000"
    bounding_box_thickness_mm: float = 1.0
    bounding_box_top_bottom_distance_mm: float = 5.0
    bounding_box_top_bottom_colour: str = "#00ff00"
    bounding_box_left_right_colour: str = "#ff00ff"
    hole_radius_mm: float = 1.0
    hole_colour: str = "#ff0000"
    sprocket_hole_enable: bool = False
    sprocket_hole_distance_mm: float = 4.0
    sprocket_hole_distance_staff_mm: float = 3.0
    sprocket_hole_colour: str = "#0000ff"

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "Settings":
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in (d or {}):
                continue
            raw = d[f.name]
            try:
                if f.type == "bool":
                    if not isinstance(raw, bool):
                        raise TypeError("expected true/false")
                    kwargs[f.name] = raw
                elif f.type == "float":
                    if isinstance(raw, bool):
                        raise TypeError("expected a number")
                    kwargs[f.name] = float(raw)
                else:
                    kwargs[f.name] = str(raw)
            except (TypeError, ValueError) as e:
                raise SettingsError(f"setting '{f.name}': {e} (got {raw!r})") from e
        settings = cls(**kwargs)
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.paper_size_x_mm <= 0:
            raise SettingsError("paper_size_x_mm must be positive")
        if self.staff_offset_mm >= self.paper_size_x_mm:
            raise SettingsError("staff_offset_mm must be smaller than paper_size_x_mm")
        if self.sprocket_hole_enable and self.sprocket_hole_distance_mm <= 0:
            raise SettingsError("sprocket_hole_distance_mm must be positive")

def load_settings(cfg: Dict[str, Any]) -> Settings:
    """Bequemer Accessor."""
    return Settings.from_dict(cfg.get("settings"))
