"""Persistence for the known-world catalog used for suggestions."""

from __future__ import annotations

import json
from pathlib import Path

from claimpoints.utils.atomic_io import write_json_atomic
from claimpoints.utils.errors import ConfigError

KNOWN_WORLDS_FILE_NAME = "known_worlds.json"


def known_worlds_path(config_path: Path) -> Path:
    return config_path.with_name(KNOWN_WORLDS_FILE_NAME)


def load_known_worlds(path: Path) -> list[str]:
    if not path.exists():
        return []
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid known worlds JSON: {path}", code="invalid_file") from exc
    worlds = raw.get("worlds", []) if isinstance(raw, dict) else None
    if not isinstance(worlds, list):
        raise ConfigError(f"Known worlds file must hold a 'worlds' list: {path}", code="invalid_file")
    return list(dict.fromkeys(str(world) for world in worlds))


def save_known_worlds(path: Path, worlds: list[str]) -> None:
    write_json_atomic(path, {"worlds": list(dict.fromkeys(worlds))})
