"""Settings models for ClaimPoint markers and claim report patterns."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

MARKER_COLORS: tuple[str, ...] = (
    "black",
    "dark_blue",
    "dark_green",
    "dark_aqua",
    "dark_red",
    "dark_purple",
    "gold",
    "gray",
    "dark_gray",
    "blue",
    "green",
    "aqua",
    "red",
    "light_purple",
    "yellow",
    "white",
)

SIZE_PLACEHOLDER = "%d"
MAX_ALIAS_LENGTH = 2

DEFAULT_NAME_FORMAT = "Claim (%d)"
DEFAULT_ALIAS = "CP"
DEFAULT_COLOR = MARKER_COLORS[-1]
DEFAULT_FIRST_LINE_PATTERN = r"^-?\d+ blocks from play \+ -?\d+ bonus = -?\d+ total.$"
DEFAULT_CLAIM_LINE_PATTERN = r"^(.+): x(-?\d+), z(-?\d+) \(-?(\d+) blocks\)$"
DEFAULT_IGNORED_LINE_PATTERNS: tuple[str, ...] = (r"^Claims:$",)
DEFAULT_ENDING_LINE_PATTERNS: tuple[str, ...] = (r"^ = -?\d* blocks left to spend$",)


class ClaimPointSettings(BaseModel):
    """How ClaimPoint markers are labelled and styled."""

    model_config = ConfigDict(extra="forbid")

    name_format: str = DEFAULT_NAME_FORMAT
    alias: str = DEFAULT_ALIAS
    color: str = DEFAULT_COLOR


class ReportSettings(BaseModel):
    """Textual patterns describing the claim list report."""

    model_config = ConfigDict(extra="forbid")

    first_line_pattern: str = DEFAULT_FIRST_LINE_PATTERN
    claim_line_pattern: str = DEFAULT_CLAIM_LINE_PATTERN
    ignored_line_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_LINE_PATTERNS)
    )
    ending_line_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ENDING_LINE_PATTERNS)
    )


class ClaimPointsConfig(BaseModel):
    """Persisted configuration record."""

    model_config = ConfigDict(extra="forbid")

    claim_points: ClaimPointSettings = Field(default_factory=ClaimPointSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)


def color_index(color: str) -> int | None:
    """Return the index of a marker color name, or None when unknown."""

    try:
        return MARKER_COLORS.index(color)
    except ValueError:
        return None
