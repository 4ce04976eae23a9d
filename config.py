"""
config.py

Typed configuration loading and validation for Chartwright.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- Run with defaults when no config file exists (the editor must start on a clean machine)
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If CHARTWRIGHT_CONFIG_PATH is set, that file is used (and must exist).
- Otherwise Chartwright searches these paths in order and uses the first one that exists:
  1) ./chartwright_config.json (current working directory)
  2) <user config dir>/Chartwright/chartwright_config.json

Example config file (chartwright_config.json)
{
  "layout": {
    "lanes_count": 7,
    "lane_width_pixels": 80,
    "beat_height_pixels": 48,
    "beat_ceiling": 512
  },
  "editor": {
    "snap_division": 4,
    "history_limit": 0,
    "default_tempo_bpm": 120
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator

ALLOWED_SNAP_DIVISIONS = (1, 2, 3, 4, 6, 8, 12, 16, 24, 32)


class LayoutConfig(BaseModel):
    lanes_count: int = Field(default=7, ge=1, le=16, description="Number of lanes. Lanes are numbered 0..lanes_count-1.")
    lane_width_pixels: float = Field(default=80.0, gt=0, description="Width of one lane on the canvas.")
    beat_height_pixels: float = Field(default=48.0, gt=0, description="Height of one beat at 120 bpm.")
    beat_ceiling: float = Field(default=512.0, gt=0, description="Last beat reachable on the canvas.")

    @property
    def max_lane(self) -> int:
        return int(self.lanes_count) - 1


class EditorConfig(BaseModel):
    snap_division: int = Field(default=4, description="Sub beats per beat used when placing notes.")
    history_limit: int = Field(default=0, ge=0, description="Maximum undo snapshots kept. 0 keeps everything.")
    default_tempo_bpm: float = Field(default=120.0, gt=0, description="bpm placed by the tempo tool until changed.")

    @field_validator("snap_division")
    @classmethod
    def validate_snap_division(cls, value: int) -> int:
        if int(value) not in ALLOWED_SNAP_DIVISIONS:
            allowed_text = ", ".join(str(item) for item in ALLOWED_SNAP_DIVISIONS)
            raise ValueError(f"snap_division must be one of: {allowed_text}")
        return int(value)


class AppConfig(BaseModel):
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    editor: EditorConfig = Field(default_factory=EditorConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("Chartwright", appauthor=False))
    return [
        Path.cwd() / "chartwright_config.json",
        config_directory / "chartwright_config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("CHARTWRIGHT_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - CHARTWRIGHT_LANES_COUNT
    - CHARTWRIGHT_BEAT_HEIGHT
    - CHARTWRIGHT_SNAP_DIVISION
    - CHARTWRIGHT_HISTORY_LIMIT
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            return section
        section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    layout_section = ensure_nested(updated_config, "layout")
    editor_section = ensure_nested(updated_config, "editor")

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            return

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            return

    override_int("CHARTWRIGHT_LANES_COUNT", layout_section, "lanes_count")
    override_float("CHARTWRIGHT_BEAT_HEIGHT", layout_section, "beat_height_pixels")
    override_int("CHARTWRIGHT_SNAP_DIVISION", editor_section, "snap_division")
    override_int("CHARTWRIGHT_HISTORY_LIMIT", editor_section, "history_limit")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source_text = str(resolved_path) if resolved_path is not None else "(defaults)"
        raise ValueError(f"Config validation failed for {source_text}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": config.model_dump(),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
