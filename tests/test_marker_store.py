from __future__ import annotations

from pathlib import Path

import pytest

from claimpoints.markers.store import JsonMarkerStore, apply_diff
from claimpoints.reconcile.models import (
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


def test_marker_store_initializes_empty(tmp_path: Path) -> None:
    store = JsonMarkerStore(tmp_path / "waypoints.json")

    assert store.list_markers() == []
    assert store.count() == 0


def test_marker_store_assigns_increasing_refs(tmp_path: Path) -> None:
    store = JsonMarkerStore(tmp_path / "waypoints.json")

    first = store.create(1, 2, "Claim (10)", "CP", "white")
    second = store.create(3, 4, "Home", "H", "red")
    store.delete(first.ref)
    third = store.create(5, 6, "Claim (20)", "CP", "white")

    assert (first.ref, second.ref, third.ref) == (1, 2, 3)
    assert [marker.ref for marker in store.list_markers()] == [2, 3]


def test_marker_store_edits_existing_markers(tmp_path: Path) -> None:
    store = JsonMarkerStore(tmp_path / "waypoints.json")
    marker = store.create(1, 2, "Claim (10)", "CP", "white")

    assert store.relabel(marker.ref, "Claim (11)") is True
    assert store.set_visible(marker.ref, False) is True
    assert store.restyle(marker.ref, "[11]", "C", "aqua") is True

    assert store.list_markers() == [
        Marker(ref=1, x=1, z=2, label="[11]", alias="C", color="aqua", visible=False)
    ]


def test_marker_store_reports_missing_refs(tmp_path: Path) -> None:
    store = JsonMarkerStore(tmp_path / "waypoints.json")

    assert store.delete(5) is False
    assert store.relabel(5, "x") is False
    assert store.set_visible(5, True) is False


def test_marker_store_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "waypoints.json"
    JsonMarkerStore(path).create(1, 2, "Claim (10)", "CP", "white")

    loaded = JsonMarkerStore(path).list_markers()

    assert loaded == [Marker(ref=1, x=1, z=2, label="Claim (10)", alias="CP", color="white")]
    assert list(tmp_path.glob("waypoints.json.*.tmp")) == []


def test_marker_store_raises_on_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "waypoints.json"
    path.write_text("{invalid", encoding="utf-8")

    with pytest.raises(MarkerStoreError, match="Invalid marker store JSON"):
        JsonMarkerStore(path).list_markers()


def test_marker_store_raises_on_incomplete_entry(tmp_path: Path) -> None:
    path = tmp_path / "waypoints.json"
    path.write_text('{"markers": [{"ref": 1, "x": 0}]}', encoding="utf-8")

    with pytest.raises(MarkerStoreError, match="Invalid marker entry"):
        JsonMarkerStore(path).list_markers()


def test_apply_diff_counts_effective_operations(tmp_path: Path) -> None:
    store = JsonMarkerStore(tmp_path / "waypoints.json")
    existing = store.create(0, 0, "Claim (5)", "CP", "white")
    diff = MarkerDiff(
        operations=[
            CreateOp(x=1, z=1, label="Claim (10)", alias="CP", color="white"),
            RelabelOp(ref=existing.ref, label="Claim (6)"),
            SetVisibleOp(ref=existing.ref, visible=False),
            RestyleOp(ref=99, label="x", alias="x", color="red"),
            DeleteOp(ref=99),
        ]
    )

    applied = apply_diff(store, diff)

    assert applied == {"create": 1, "delete": 0, "relabel": 1, "restyle": 0, "set_visible": 1}
    assert store.count() == 2


def test_apply_diff_twice_does_not_duplicate_creates(tmp_path: Path) -> None:
    store = JsonMarkerStore(tmp_path / "waypoints.json")
    diff = MarkerDiff(
        operations=[CreateOp(x=1, z=1, label="Claim (10)", alias="CP", color="white")]
    )

    apply_diff(store, diff)
    applied = apply_diff(store, diff)

    assert applied["create"] == 0
    assert store.count() == 1


class _CountingStore(JsonMarkerStore):
    def __init__(self, store_path: Path) -> None:
        super().__init__(store_path)
        self.list_calls = 0

    def list_markers(self) -> list[Marker]:
        self.list_calls += 1
        return super().list_markers()


def test_apply_diff_lists_store_once_and_skips_repeated_create(tmp_path: Path) -> None:
    store = _CountingStore(tmp_path / "waypoints.json")
    create = CreateOp(x=1, z=1, label="Claim (10)", alias="CP", color="white")
    diff = MarkerDiff(
        operations=[
            create,
            CreateOp(x=2, z=2, label="Claim (20)", alias="CP", color="white"),
            create,
        ]
    )

    applied = apply_diff(store, diff)

    assert store.list_calls == 1
    assert applied["create"] == 2
    assert store.count() == 2


def test_apply_diff_recreates_marker_deleted_earlier_in_same_diff(tmp_path: Path) -> None:
    store = JsonMarkerStore(tmp_path / "waypoints.json")
    existing = store.create(1, 1, "Claim (10)", "CP", "white")
    diff = MarkerDiff(
        operations=[
            DeleteOp(ref=existing.ref),
            CreateOp(x=1, z=1, label="Claim (10)", alias="CP", color="white"),
        ]
    )

    applied = apply_diff(store, diff)

    assert applied["delete"] == 1
    assert applied["create"] == 1
    assert [marker.position for marker in store.list_markers()] == [(1, 1)]


def test_write_json_atomic_removes_temp_file_on_failure(tmp_path: Path) -> None:
    target = tmp_path / "waypoints.json"
    target.write_text('{"markers": []}', encoding="utf-8")

    with pytest.raises(TypeError):
        write_json_atomic(target, {"markers": [object()]})

    assert target.read_text(encoding="utf-8") == '{"markers": []}'
    assert list(tmp_path.glob("*.tmp")) == []
