"""Configuration loading, fallback and persistence."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from claimpoints.config.models import MAX_ALIAS_LENGTH, ClaimPointsConfig
from claimpoints.patterns.pattern_set import PatternSet, build_pattern_set
from claimpoints.utils.atomic_io import write_yaml_atomic
from claimpoints.utils.errors import ConfigError
from claimpoints.utils.events import log_event

DEFAULT_CONFIG_PATH = Path("config") / "claimpoints.yaml"

logger = logging.getLogger("claimpoints.config")


def load_config(path: Path) -> ClaimPointsConfig:
    """Load and validate configuration from YAML."""

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}", code="invalid_file") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config file: {path}", code="invalid_file") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}", code="invalid_file")

    try:
        return ClaimPointsConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config schema: {path}", code="invalid_file") from exc


def save_config(path: Path, config: ClaimPointsConfig) -> None:
    """Persist configuration atomically."""

    write_yaml_atomic(path, config.model_dump(mode="json"))


def load_or_default(path: Path) -> tuple[ClaimPointsConfig, PatternSet]:
    """Load configuration, falling back to defaults when it is unusable.

    The resulting known-good configuration is always written back.
    """

    config: ClaimPointsConfig | None = None
    patterns: PatternSet | None = None

    if path.exists():
        try:
            config = load_config(path)
            patterns = build_pattern_set(config)
        except ConfigError as exc:
            log_event(
                logger,
                logging.WARNING,
                "config_invalid",
                path=str(path),
                error_code=exc.code,
                error_message=str(exc),
            )
            config = None
    else:
        log_event(logger, logging.INFO, "config_missing", path=str(path))

    if config is None or patterns is None:
        log_event(logger, logging.INFO, "config_default", path=str(path))
        config = ClaimPointsConfig()
        patterns = build_pattern_set(config)

    save_config(path, config)
    return config, patterns


def with_name_format(config: ClaimPointsConfig, name_format: str) -> ClaimPointsConfig:
    """Return a copy with a new name format, rejecting invalid formats."""

    updated = config.model_copy(deep=True)
    updated.claim_points.name_format = name_format
    build_pattern_set(updated)
    return updated


def with_alias(config: ClaimPointsConfig, alias: str) -> ClaimPointsConfig:
    """Return a copy with a new alias, truncated to the maximum length."""

    updated = config.model_copy(deep=True)
    updated.claim_points.alias = alias[:MAX_ALIAS_LENGTH]
    build_pattern_set(updated)
    return updated


def with_color(config: ClaimPointsConfig, color: str) -> ClaimPointsConfig:
    """Return a copy with a new marker color, rejecting unknown colors."""

    updated = config.model_copy(deep=True)
    updated.claim_points.color = color
    build_pattern_set(updated)
    return updated
