"""User-facing summary messages for scan and marker commands."""

from __future__ import annotations

from claimpoints.scan.models import SessionOutcome

PREFIX = "[ClaimPoints] "


def render_scan_summary(outcome: SessionOutcome, applied: dict[str, int]) -> str:
    """Render the one-line result of a claim scan."""

    if outcome.timed_out:
        return f"{PREFIX}No response from server (claim list timed out)."
    if outcome.kind == "add":
        return f"{PREFIX}Added {applied['create']} ClaimPoints."
    if outcome.kind == "clean":
        return f"{PREFIX}Removed {applied['delete']} ClaimPoints."
    return (
        f"{PREFIX}Updated ClaimPoints: added {applied['create']}, "
        f"removed {applied['delete']}, relabelled {applied['relabel']}."
    )


def render_empty_scan(outcome: SessionOutcome) -> str:
    return f"{PREFIX}No claims found in world '{outcome.world}'."


def render_world_summary(outcome: SessionOutcome) -> str:
    if outcome.timed_out:
        return f"{PREFIX}No response from server (claim list timed out)."
    if not outcome.worlds:
        return f"{PREFIX}No claimed worlds found."
    return f"{PREFIX}Claimed worlds: {', '.join(outcome.worlds)}"


def render_diagnostics(outcome: SessionOutcome) -> str | None:
    """Render skipped-line counters when any line was not used."""

    counters = outcome.counters
    parts = [
        f"{name}={value}"
        for name, value in (
            ("unrecognized", counters.unrecognized),
            ("dropped", counters.dropped),
            ("filtered", counters.filtered),
        )
        if value
    ]
    if not parts:
        return None
    return f"INFO(scan): skipped lines ({', '.join(parts)})"
