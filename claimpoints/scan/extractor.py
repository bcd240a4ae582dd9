"""Single-line classification for claim list reports."""

from __future__ import annotations

from claimpoints.patterns.pattern_set import PatternSet
from claimpoints.scan.models import ClaimLine, LineClass
from claimpoints.utils.errors import NumericOverflowError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


def classify(line: str, patterns: PatternSet) -> LineClass:
    """Classify one line against the pattern set.

    Order is fixed: end, ignored, claim, start, otherwise unrecognized. End
    comes first so a terminator is never swallowed by an ignore pattern.

    Raises:
        NumericOverflowError: the line is a claim line whose coordinates or
            size fall outside the 32-bit range.
    """

    if any(matcher.fullmatch(line) for matcher in patterns.end):
        return LineClass(kind="end")

    if any(matcher.fullmatch(line) for matcher in patterns.ignored):
        return LineClass(kind="ignored")

    match = patterns.claim.fullmatch(line)
    if match is not None:
        world, raw_x, raw_z, raw_size = match.group(1, 2, 3, 4)
        claim = ClaimLine(
            world=world,
            x=_parse_int(line, "x", raw_x, INT32_MIN, INT32_MAX),
            z=_parse_int(line, "z", raw_z, INT32_MIN, INT32_MAX),
            size=_parse_int(line, "size", raw_size, 0, INT32_MAX),
        )
        return LineClass(kind="claim", claim=claim)

    if patterns.start.fullmatch(line):
        return LineClass(kind="start")

    return LineClass(kind="unrecognized")


def _parse_int(line: str, field: str, raw_value: str | None, lower: int, upper: int) -> int:
    try:
        value = int(raw_value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise NumericOverflowError(
            f"Field {field} is not an integer: '{raw_value}'",
            line=line,
            field=field,
            raw_value=str(raw_value),
        ) from exc
    if not lower <= value <= upper:
        raise NumericOverflowError(
            f"Field {field} out of range [{lower}, {upper}]: {value}",
            line=line,
            field=field,
            raw_value=raw_value,
        )
    return value
