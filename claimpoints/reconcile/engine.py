"""Pure planners turning claim records and a marker snapshot into a MarkerDiff.

Nothing here mutates a store. Markers are matched to claims by position only;
a marker takes part in planning only when it is claim-shaped (label matches
the name pattern and alias/color equal the configured values). The marker
store is not partitioned by world, so clean/update consider claim-shaped
markers regardless of the world they were created for.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from claimpoints.patterns.pattern_set import PatternSet
from claimpoints.reconcile.models import (
    CreateOp,
    DeleteOp,
    Marker,
    MarkerDiff,
    RelabelOp,
    RestyleOp,
    SetVisibleOp,
)
from claimpoints.scan.models import ClaimRecord, ScanKind


def encoded_size(marker: Marker, patterns: PatternSet) -> int | None:
    """Return the size encoded in a claim-shaped marker, else None."""

    if marker.alias != patterns.alias or marker.color != patterns.color:
        return None
    return patterns.parse_label(marker.label)


def is_claim_shaped(marker: Marker, patterns: PatternSet) -> bool:
    return encoded_size(marker, patterns) is not None


def claim_points(markers: Iterable[Marker], patterns: PatternSet) -> list[Marker]:
    """Filter a marker snapshot down to claim-shaped markers, order preserved."""

    return [marker for marker in markers if is_claim_shaped(marker, patterns)]


def desired_marker(record: ClaimRecord, patterns: PatternSet) -> CreateOp:
    return CreateOp(
        x=record.x,
        z=record.z,
        label=patterns.render_label(record.size),
        alias=patterns.alias,
        color=patterns.color,
    )


def reconcile(
    records: Sequence[ClaimRecord],
    kind: ScanKind,
    markers: Sequence[Marker],
    patterns: PatternSet,
) -> MarkerDiff:
    """Plan marker changes for one completed claim scan."""

    if kind == "add":
        return plan_add(records, markers, patterns)
    if kind == "clean":
        return plan_clean(records, markers, patterns)
    if kind == "update":
        return plan_update(records, markers, patterns)
    raise ValueError(f"Unsupported scan kind: {kind}")


def plan_add(
    records: Sequence[ClaimRecord], markers: Sequence[Marker], patterns: PatternSet
) -> MarkerDiff:
    """Create a ClaimPoint for every claim position not already covered.

    Duplicate records at one position produce a single create (first wins).
    """

    occupied = {marker.position for marker in claim_points(markers, patterns)}
    diff = MarkerDiff()
    for record in records:
        if record.position in occupied:
            continue
        occupied.add(record.position)
        diff.operations.append(desired_marker(record, patterns))
    return diff


def plan_clean(
    records: Sequence[ClaimRecord], markers: Sequence[Marker], patterns: PatternSet
) -> MarkerDiff:
    """Delete every ClaimPoint whose position has no claim record."""

    live = {record.position for record in records}
    diff = MarkerDiff()
    for marker in claim_points(markers, patterns):
        if marker.position not in live:
            diff.operations.append(DeleteOp(ref=marker.ref))
    return diff


def plan_update(
    records: Sequence[ClaimRecord], markers: Sequence[Marker], patterns: PatternSet
) -> MarkerDiff:
    """Clean, then add, then relabel surviving ClaimPoints whose size changed.

    When several records share a position, the first reported size is used.
    """

    diff = plan_clean(records, markers, patterns)
    deleted = {operation.ref for operation in diff.operations if isinstance(operation, DeleteOp)}
    survivors = [
        marker for marker in claim_points(markers, patterns) if marker.ref not in deleted
    ]

    diff.extend(plan_add(records, survivors, patterns))

    sizes: dict[tuple[int, int], int] = {}
    for record in records:
        sizes.setdefault(record.position, record.size)

    for marker in survivors:
        size = sizes.get(marker.position)
        if size is None or patterns.parse_label(marker.label) == size:
            continue
        diff.operations.append(RelabelOp(ref=marker.ref, label=patterns.render_label(size)))
    return diff


def plan_clear(markers: Sequence[Marker], patterns: PatternSet) -> MarkerDiff:
    """Delete every ClaimPoint."""

    return MarkerDiff(
        operations=[DeleteOp(ref=marker.ref) for marker in claim_points(markers, patterns)]
    )


def plan_visibility(
    markers: Sequence[Marker], patterns: PatternSet, visible: bool
) -> MarkerDiff:
    """Show or hide every ClaimPoint whose visibility differs."""

    return MarkerDiff(
        operations=[
            SetVisibleOp(ref=marker.ref, visible=visible)
            for marker in claim_points(markers, patterns)
            if marker.visible != visible
        ]
    )


def plan_restyle(
    markers: Sequence[Marker], old: PatternSet, new: PatternSet
) -> MarkerDiff:
    """Carry existing ClaimPoints over to a new name format, alias or color."""

    diff = MarkerDiff()
    for marker in markers:
        size = encoded_size(marker, old)
        if size is None:
            continue
        label = new.render_label(size)
        if (label, new.alias, new.color) == (marker.label, marker.alias, marker.color):
            continue
        diff.operations.append(
            RestyleOp(ref=marker.ref, label=label, alias=new.alias, color=new.color)
        )
    return diff
