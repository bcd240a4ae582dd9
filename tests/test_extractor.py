from __future__ import annotations

import pytest

from claimpoints.config.models import ClaimPointsConfig, ReportSettings
from claimpoints.patterns.pattern_set import PatternSet, build_pattern_set
from claimpoints.scan.extractor import classify
from claimpoints.scan.models import ClaimLine
from claimpoints.utils.errors import NumericOverflowError


@pytest.fixture
def patterns() -> PatternSet:
    return build_pattern_set(ClaimPointsConfig())


def test_classify_default_report_lines(patterns: PatternSet) -> None:
    assert classify("Claims:", patterns).kind == "ignored"
    assert classify("5 blocks from play + 0 bonus = 5 total.", patterns).kind == "start"
    assert classify(" = 900 blocks left to spend", patterns).kind == "end"
    assert classify("<Steve> hello there", patterns).kind == "unrecognized"


def test_classify_claim_line_extracts_fields(patterns: PatternSet) -> None:
    result = classify("World1: x10, z20 (100 blocks)", patterns)

    assert result.kind == "claim"
    assert result.claim == ClaimLine(world="World1", x=10, z=20, size=100)


def test_classify_claim_line_with_negative_values(patterns: PatternSet) -> None:
    result = classify("the_nether: x-300, z-45 (-64 blocks)", patterns)

    assert result.claim == ClaimLine(world="the_nether", x=-300, z=-45, size=64)


def test_classify_end_takes_priority_over_ignored() -> None:
    config = ClaimPointsConfig(
        report=ReportSettings(ignored_line_patterns=["^-+$"], ending_line_patterns=["^-+$"])
    )
    patterns = build_pattern_set(config)

    assert classify("-----", patterns).kind == "end"


def test_classify_matches_whole_line_only() -> None:
    config = ClaimPointsConfig(
        report=ReportSettings(claim_line_pattern=r"(.+): x(-?\d+), z(-?\d+) \(-?(\d+) blocks\)")
    )
    patterns = build_pattern_set(config)

    assert classify("World1: x1, z2 (3 blocks) and more", patterns).kind == "unrecognized"
    assert classify("World1: x1, z2 (3 blocks)", patterns).kind == "claim"


def test_classify_raises_on_coordinate_overflow(patterns: PatternSet) -> None:
    with pytest.raises(NumericOverflowError) as exc_info:
        classify("World1: x99999999999, z0 (5 blocks)", patterns)

    assert exc_info.value.field == "x"
    assert exc_info.value.raw_value == "99999999999"


def test_classify_raises_on_size_overflow(patterns: PatternSet) -> None:
    with pytest.raises(NumericOverflowError) as exc_info:
        classify("World1: x0, z0 (2147483648 blocks)", patterns)

    assert exc_info.value.field == "size"
