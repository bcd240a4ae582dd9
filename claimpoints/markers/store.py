"""Marker store interface and a local JSON-file implementation."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Protocol

from claimpoints.reconcile.models import (
    OP_NAMES,
    CreateOp,
    DeleteOp,
    Marker,
    MarkerDiff,
    RelabelOp,
    RestyleOp,
    SetVisibleOp,
)
from claimpoints.utils.atomic_io import write_json_atomic
from claimpoints.utils.errors import MarkerStoreError

_STORE_VERSION = 1


class MarkerStore(Protocol):
    """Primitives the host marker collection must provide."""

    def list_markers(self) -> list[Marker]:
        """Return every stored marker in ref order."""

    def create(self, x: int, z: int, label: str, alias: str, color: str) -> Marker:
        """Create a visible marker and return it."""

    def delete(self, ref: int) -> bool:
        """Delete a marker; False when the ref does not exist."""

    def relabel(self, ref: int, label: str) -> bool:
        """Change a marker label; False when the ref does not exist."""

    def restyle(self, ref: int, label: str, alias: str, color: str) -> bool:
        """Change label, alias and color; False when the ref does not exist."""

    def set_visible(self, ref: int, visible: bool) -> bool:
        """Change the visibility flag; False when the ref does not exist."""

    def count(self) -> int:
        """Return the number of stored markers."""


@dataclass
class _StoreData:
    version: int = _STORE_VERSION
    next_ref: int = 1
    markers: dict[int, Marker] = field(default_factory=dict)


class JsonMarkerStore:
    """Persist markers in a JSON file keyed by integer ref."""

    def __init__(self, store_path: Path) -> None:
        self._store_path = store_path

    def list_markers(self) -> list[Marker]:
        data = self._read_data()
        return [data.markers[ref] for ref in sorted(data.markers)]

    def create(self, x: int, z: int, label: str, alias: str, color: str) -> Marker:
        data = self._read_data()
        marker = Marker(ref=data.next_ref, x=x, z=z, label=label, alias=alias, color=color)
        data.markers[marker.ref] = marker
        data.next_ref += 1
        self._write_data(data)
        return marker

    def delete(self, ref: int) -> bool:
        data = self._read_data()
        if ref not in data.markers:
            return False
        del data.markers[ref]
        self._write_data(data)
        return True

    def relabel(self, ref: int, label: str) -> bool:
        return self._replace(ref, label=label)

    def restyle(self, ref: int, label: str, alias: str, color: str) -> bool:
        return self._replace(ref, label=label, alias=alias, color=color)

    def set_visible(self, ref: int, visible: bool) -> bool:
        return self._replace(ref, visible=visible)

    def count(self) -> int:
        return len(self._read_data().markers)

    def _replace(self, ref: int, **changes: object) -> bool:
        data = self._read_data()
        marker = data.markers.get(ref)
        if marker is None:
            return False
        payload = asdict(marker)
        payload.update(changes)
        data.markers[ref] = Marker(**payload)
        self._write_data(data)
        return True

    def _read_data(self) -> _StoreData:
        if not self._store_path.exists():
            return _StoreData()

        try:
            raw = json.loads(self._store_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise MarkerStoreError(f"Invalid marker store JSON: {self._store_path}") from exc
        if not isinstance(raw, dict):
            raise MarkerStoreError(f"Marker store must contain an object: {self._store_path}")

        markers: dict[int, Marker] = {}
        try:
            for item in raw.get("markers", []):
                marker = Marker(
                    ref=int(item["ref"]),
                    x=int(item["x"]),
                    z=int(item["z"]),
                    label=str(item["label"]),
                    alias=str(item["alias"]),
                    color=str(item["color"]),
                    visible=bool(item.get("visible", True)),
                )
                markers[marker.ref] = marker
        except (KeyError, TypeError, ValueError) as exc:
            raise MarkerStoreError(f"Invalid marker entry in {self._store_path}") from exc

        next_ref = int(raw.get("next_ref", max(markers, default=0) + 1))
        version = int(raw.get("version", _STORE_VERSION))
        return _StoreData(version=version, next_ref=next_ref, markers=markers)

    def _write_data(self, data: _StoreData) -> None:
        payload = {
            "version": data.version,
            "next_ref": data.next_ref,
            "markers": [asdict(data.markers[ref]) for ref in sorted(data.markers)],
        }
        write_json_atomic(self._store_path, payload)


def apply_diff(store: MarkerStore, diff: MarkerDiff) -> dict[str, int]:
    """Apply diff operations one by one and return how many took effect.

    Each operation is idempotent on its own: a create is skipped when an
    identical marker already sits at that position, and edits or deletes of a
    missing ref do nothing. The store is listed once; the snapshot follows
    every applied operation.
    """

    snapshot = {marker.ref: marker for marker in store.list_markers()}
    applied = {name: 0 for name in OP_NAMES}
    for operation in diff.operations:
        if isinstance(operation, CreateOp):
            if _has_identical_marker(snapshot.values(), operation):
                continue
            created = store.create(
                operation.x, operation.z, operation.label, operation.alias, operation.color
            )
            snapshot[created.ref] = created
            changed = True
        elif isinstance(operation, DeleteOp):
            changed = store.delete(operation.ref)
            if changed:
                snapshot.pop(operation.ref, None)
        elif isinstance(operation, RelabelOp):
            changed = store.relabel(operation.ref, operation.label)
            if changed:
                _update_snapshot(snapshot, operation.ref, label=operation.label)
        elif isinstance(operation, RestyleOp):
            changed = store.restyle(
                operation.ref, operation.label, operation.alias, operation.color
            )
            if changed:
                _update_snapshot(
                    snapshot,
                    operation.ref,
                    label=operation.label,
                    alias=operation.alias,
                    color=operation.color,
                )
        elif isinstance(operation, SetVisibleOp):
            changed = store.set_visible(operation.ref, operation.visible)
            if changed:
                _update_snapshot(snapshot, operation.ref, visible=operation.visible)
        else:
            raise TypeError(f"Unsupported marker operation: {operation!r}")
        if changed:
            applied[operation.op] += 1
    return applied


def _has_identical_marker(markers: Iterable[Marker], operation: CreateOp) -> bool:
    return any(
        marker.position == (operation.x, operation.z)
        and marker.label == operation.label
        and marker.alias == operation.alias
        and marker.color == operation.color
        for marker in markers
    )


def _update_snapshot(snapshot: dict[int, Marker], ref: int, **changes: object) -> None:
    marker = snapshot.get(ref)
    if marker is not None:
        snapshot[ref] = replace(marker, **changes)  # type: ignore[arg-type]
