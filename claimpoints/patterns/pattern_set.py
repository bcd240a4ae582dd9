"""Compiled, validated matcher bundle built from user-editable settings.

A PatternSet is never edited in place. Every settings change builds a new one,
so a scan in progress always sees one consistent set of matchers.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from claimpoints.config.models import (
    MARKER_COLORS,
    MAX_ALIAS_LENGTH,
    SIZE_PLACEHOLDER,
    ClaimPointsConfig,
    color_index,
)
from claimpoints.utils.errors import ConfigError

CLAIM_LINE_GROUPS = 4


@dataclass(frozen=True)
class PatternSet:
    """Matchers for one claim list report plus ClaimPoint styling."""

    start: re.Pattern[str]
    claim: re.Pattern[str]
    ignored: tuple[re.Pattern[str], ...]
    end: tuple[re.Pattern[str], ...]
    name_format: str
    name_pattern: re.Pattern[str]
    alias: str
    color: str
    color_index: int

    def render_label(self, size: int) -> str:
        """Render a ClaimPoint label for a claim of ``size`` blocks."""

        return self.name_format.replace(SIZE_PLACEHOLDER, str(size), 1)

    def parse_label(self, label: str) -> int | None:
        """Recover the encoded size from a label, or None if it does not match."""

        match = self.name_pattern.fullmatch(label)
        if match is None:
            return None
        return int(match.group(1))


def build_pattern_set(config: ClaimPointsConfig) -> PatternSet:
    """Validate settings and compile them into a PatternSet.

    Raises:
        ConfigError: placeholder count is not one, alias is too long, color is
            unknown, or any textual pattern does not compile.
    """

    cp = config.claim_points
    report = config.report

    name_pattern = _compile(derive_name_pattern(cp.name_format), "name_format")

    if len(cp.alias) > MAX_ALIAS_LENGTH:
        raise ConfigError(
            f"Alias '{cp.alias}' is longer than {MAX_ALIAS_LENGTH} characters.",
            code="bad_alias",
            value=cp.alias,
        )

    index = color_index(cp.color)
    if index is None:
        raise ConfigError(
            f"Color '{cp.color}' is not a valid marker color. "
            f"Expected one of: {', '.join(MARKER_COLORS)}.",
            code="unknown_color",
            value=cp.color,
        )

    claim = _compile(report.claim_line_pattern, "claim_line_pattern")
    if claim.groups != CLAIM_LINE_GROUPS:
        raise ConfigError(
            f"Claim line pattern must have exactly {CLAIM_LINE_GROUPS} capture groups "
            f"(world, x, z, size), found {claim.groups}.",
            code="bad_pattern",
            value=report.claim_line_pattern,
        )

    return PatternSet(
        start=_compile(report.first_line_pattern, "first_line_pattern"),
        claim=claim,
        ignored=_compile_all(report.ignored_line_patterns, "ignored_line_patterns"),
        end=_compile_all(report.ending_line_patterns, "ending_line_patterns"),
        name_format=cp.name_format,
        name_pattern=name_pattern,
        alias=cp.alias,
        color=cp.color,
        color_index=index,
    )


def derive_name_pattern(name_format: str) -> str:
    """Turn a name format into an anchored pattern capturing the size."""

    if name_format.count(SIZE_PLACEHOLDER) != 1:
        raise ConfigError(
            f"Name format '{name_format}' must contain {SIZE_PLACEHOLDER} exactly once.",
            code="missing_placeholder",
            value=name_format,
        )
    prefix, _sep, suffix = name_format.partition(SIZE_PLACEHOLDER)
    return f"^{re.escape(prefix)}(\\d+){re.escape(suffix)}$"


def _compile(pattern: str, field_name: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(
            f"Invalid pattern for {field_name}: '{pattern}' ({exc}).",
            code="bad_pattern",
            value=pattern,
        ) from exc


def _compile_all(patterns: Iterable[str], field_name: str) -> tuple[re.Pattern[str], ...]:
    return tuple(_compile(pattern, field_name) for pattern in patterns)
