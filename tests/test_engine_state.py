from __future__ import annotations

from pathlib import Path

import pytest

from claimpoints.config.models import ClaimPointsConfig, ClaimPointSettings
from claimpoints.engine.catalog import load_known_worlds, save_known_worlds
from claimpoints.engine.state import EngineState
from claimpoints.reconcile.models import CreateOp
from claimpoints.scan.models import ClaimRecord
from claimpoints.utils.errors import ConfigError, NoActiveScanError, ScanInProgressError

START = "5 blocks from play + 0 bonus = 5 total."
END = " = 900 blocks left to spend"


def test_claim_scan_outcome_is_returned_and_session_detached() -> None:
    state = EngineState(ClaimPointsConfig())
    state.start_claim_scan("World1", "add", now=0.0)

    assert state.feed_line(START) is None
    assert state.feed_line("World1: x10, z20 (100 blocks)") is None
    outcome = state.feed_line(END)

    assert outcome is not None
    assert outcome.status == "completed"
    assert outcome.kind == "add"
    assert outcome.records == [ClaimRecord(world="World1", x=10, z=20, size=100)]
    assert not state.scanning


def test_end_to_end_add_against_empty_markers() -> None:
    state = EngineState(ClaimPointsConfig())
    state.start_claim_scan("World1", "add", now=0.0)

    outcome = None
    for line in ["Claims:", START, "World1: x10, z20 (100 blocks)", END]:
        outcome = state.feed_line(line)

    assert outcome is not None
    diff = state.reconcile(outcome.records, "add", [])
    assert diff.operations == [
        CreateOp(x=10, z=20, label="Claim (100)", alias="CP", color="white")
    ]


def test_second_scan_is_rejected_while_one_is_active() -> None:
    state = EngineState(ClaimPointsConfig())
    state.start_claim_scan("World1", "add", now=0.0)

    with pytest.raises(ScanInProgressError):
        state.start_world_scan(now=1.0)
    with pytest.raises(ScanInProgressError):
        state.start_claim_scan("World2", "clean", now=1.0)


def test_feeding_without_scan_raises() -> None:
    state = EngineState(ClaimPointsConfig())

    with pytest.raises(NoActiveScanError):
        state.feed_line(START)
    with pytest.raises(NoActiveScanError):
        state.poll_timeout(0.0)


def test_poll_timeout_ends_scan_as_timed_out() -> None:
    state = EngineState(ClaimPointsConfig(), timeout_seconds=5.0)
    state.start_claim_scan("World1", "update", now=10.0)
    state.feed_line(START)
    state.feed_line("World1: x10, z20 (100 blocks)")

    assert state.poll_timeout(14.0) is None
    outcome = state.poll_timeout(15.0)

    assert outcome is not None
    assert outcome.timed_out
    assert outcome.records == []
    assert not state.scanning
    state.start_claim_scan("World1", "update", now=16.0)


def test_world_scan_extends_known_worlds() -> None:
    state = EngineState(ClaimPointsConfig(), known_worlds=["Nether"])
    state.start_world_scan(now=0.0)

    for line in [START, "World1: x1, z1 (1 blocks)", "Nether: x2, z2 (2 blocks)", END]:
        state.feed_line(line)

    assert state.known_worlds() == ["Nether", "World1"]


def test_timed_out_world_scan_keeps_catalog() -> None:
    state = EngineState(ClaimPointsConfig(), known_worlds=["Nether"])
    state.start_world_scan(now=0.0)
    state.feed_line(START)
    state.feed_line("World1: x1, z1 (1 blocks)")

    outcome = state.poll_timeout(1_000.0)

    assert outcome is not None and outcome.timed_out
    assert state.known_worlds() == ["Nether"]


def test_apply_config_swaps_pattern_set() -> None:
    state = EngineState(ClaimPointsConfig())
    old_patterns = state.patterns

    new_patterns = state.apply_config(
        ClaimPointsConfig(claim_points=ClaimPointSettings(name_format="Plot %d"))
    )

    assert state.patterns is new_patterns
    assert old_patterns.render_label(3) == "Claim (3)"
    assert new_patterns.render_label(3) == "Plot 3"


def test_apply_config_is_refused_during_scan() -> None:
    state = EngineState(ClaimPointsConfig())
    state.start_claim_scan("World1", "add", now=0.0)

    with pytest.raises(ScanInProgressError):
        state.apply_config(ClaimPointsConfig())


def test_apply_config_keeps_previous_set_on_invalid_config() -> None:
    state = EngineState(ClaimPointsConfig())
    before = state.patterns

    with pytest.raises(ConfigError):
        state.apply_config(ClaimPointsConfig(claim_points=ClaimPointSettings(color="pink")))

    assert state.patterns is before


def test_known_worlds_file_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "known_worlds.json"

    save_known_worlds(path, ["World1", "Nether", "World1"])

    assert load_known_worlds(path) == ["World1", "Nether"]
    assert load_known_worlds(tmp_path / "missing.json") == []


def test_known_worlds_file_rejects_bad_shape(tmp_path: Path) -> None:
    path = tmp_path / "known_worlds.json"
    path.write_text('{"worlds": "World1"}', encoding="utf-8")

    with pytest.raises(ConfigError, match="'worlds' list"):
        load_known_worlds(path)
