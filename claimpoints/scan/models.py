"""Data models for claim report scanning."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

LineKind = Literal["start", "claim", "ignored", "end", "unrecognized"]
ScanKind = Literal["add", "clean", "update"]
SessionState = Literal["awaiting_start", "collecting", "completed", "timed_out"]

SCAN_KINDS: tuple[ScanKind, ...] = ("add", "clean", "update")


@dataclass(frozen=True)
class ClaimLine:
    """Fields captured from one claim line."""

    world: str
    x: int
    z: int
    size: int


@dataclass(frozen=True)
class LineClass:
    """Classification of one report line."""

    kind: LineKind
    claim: ClaimLine | None = None


@dataclass(frozen=True)
class ClaimRecord:
    """One claim reported by the server for the scanned world."""

    world: str
    x: int
    z: int
    size: int

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.z)


@dataclass
class ScanCounters:
    """Diagnostic line counters for one session."""

    unrecognized: int = 0
    ignored: int = 0
    dropped: int = 0
    filtered: int = 0


@dataclass
class SessionOutcome:
    """Terminal result handed back to the caller once a session finishes."""

    scan: Literal["claims", "worlds"]
    status: Literal["completed", "timed_out"]
    world: str | None = None
    kind: ScanKind | None = None
    records: list[ClaimRecord] = field(default_factory=list)
    worlds: list[str] = field(default_factory=list)
    counters: ScanCounters = field(default_factory=ScanCounters)

    @property
    def timed_out(self) -> bool:
        return self.status == "timed_out"
