"""Scan sessions consuming report lines one at a time.

Sessions are purely reactive. They hold no timer; the caller polls
``poll(now)`` with a monotonic clock reading to expire a session whose report
never terminated.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from claimpoints.patterns.pattern_set import PatternSet
from claimpoints.scan.extractor import classify
from claimpoints.scan.models import (
    ClaimLine,
    ClaimRecord,
    LineClass,
    ScanCounters,
    ScanKind,
    SessionOutcome,
    SessionState,
)
from claimpoints.utils.errors import NumericOverflowError
from claimpoints.utils.events import log_event

SCAN_TIMEOUT_SECONDS = 10.0

logger = logging.getLogger("claimpoints.scan")


class _ReportSession(ABC):
    """Start/collect/end gating shared by claim and world scans."""

    scan_name = "report"

    def __init__(
        self,
        patterns: PatternSet,
        started_at: float,
        timeout_seconds: float = SCAN_TIMEOUT_SECONDS,
    ) -> None:
        self._patterns = patterns
        self._started_at = started_at
        self._timeout_seconds = timeout_seconds
        self._state: SessionState = "awaiting_start"
        self.counters = ScanCounters()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def started_at(self) -> float:
        return self._started_at

    @property
    def deadline(self) -> float:
        return self._started_at + self._timeout_seconds

    @property
    def is_terminal(self) -> bool:
        return self._state in {"completed", "timed_out"}

    def feed(self, line: str) -> SessionState:
        """Advance the session with one line in arrival order."""

        if self.is_terminal:
            return self._state

        try:
            line_class = classify(line, self._patterns)
        except NumericOverflowError as exc:
            if self._state == "collecting":
                self.counters.dropped += 1
                log_event(
                    logger,
                    logging.WARNING,
                    "line_dropped",
                    scan=self.scan_name,
                    field=exc.field,
                    raw_value=exc.raw_value,
                    line=line,
                )
            return self._state

        if self._state == "awaiting_start":
            if line_class.kind == "start":
                self._state = "collecting"
            return self._state

        self._consume(line_class)
        return self._state

    def poll(self, now: float) -> SessionState:
        """Expire the session when its deadline has passed without an end line."""

        if not self.is_terminal and now >= self.deadline:
            self._state = "timed_out"
            log_event(
                logger,
                logging.INFO,
                "scan_timed_out",
                scan=self.scan_name,
                elapsed_seconds=round(now - self._started_at, 3),
            )
        return self._state

    def _consume(self, line_class: LineClass) -> None:
        if line_class.kind == "end":
            self._state = "completed"
            self._on_completed()
        elif line_class.kind == "claim" and line_class.claim is not None:
            self._collect(line_class.claim)
        elif line_class.kind == "ignored":
            self.counters.ignored += 1
        elif line_class.kind == "unrecognized":
            self.counters.unrecognized += 1

    @abstractmethod
    def _collect(self, claim: ClaimLine) -> None:
        """Handle one claim line of this session's report."""

    @abstractmethod
    def _on_completed(self) -> None:
        """Build the outcome once the end line has arrived."""


class ClaimScanSession(_ReportSession):
    """Collects the claims of one world for one reconciliation kind."""

    scan_name = "claims"

    def __init__(
        self,
        world: str,
        kind: ScanKind,
        patterns: PatternSet,
        started_at: float,
        timeout_seconds: float = SCAN_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(patterns, started_at, timeout_seconds)
        self.world = world
        self.kind = kind
        self._records: list[ClaimRecord] = []

    @property
    def records(self) -> list[ClaimRecord]:
        return list(self._records)

    def outcome(self) -> SessionOutcome:
        if not self.is_terminal:
            raise RuntimeError("Claim scan has not finished yet")
        return SessionOutcome(
            scan="claims",
            status="completed" if self._state == "completed" else "timed_out",
            world=self.world,
            kind=self.kind,
            records=self.records if self._state == "completed" else [],
            counters=self.counters,
        )

    def _collect(self, claim: ClaimLine) -> None:
        if claim.world != self.world:
            self.counters.filtered += 1
            log_event(
                logger,
                logging.DEBUG,
                "line_filtered",
                scan=self.scan_name,
                world=claim.world,
                expected_world=self.world,
            )
            return
        self._records.append(
            ClaimRecord(world=self.world, x=claim.x, z=claim.z, size=claim.size)
        )

    def _on_completed(self) -> None:
        log_event(
            logger,
            logging.INFO,
            "scan_completed",
            scan=self.scan_name,
            world=self.world,
            kind=self.kind,
            record_count=len(self._records),
            unrecognized=self.counters.unrecognized,
            dropped=self.counters.dropped,
            filtered=self.counters.filtered,
        )


class WorldScanSession(_ReportSession):
    """Harvests distinct world names from a claim list report."""

    scan_name = "worlds"

    def __init__(
        self,
        patterns: PatternSet,
        started_at: float,
        timeout_seconds: float = SCAN_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(patterns, started_at, timeout_seconds)
        self._worlds: dict[str, None] = {}

    @property
    def worlds(self) -> list[str]:
        return list(self._worlds)

    def outcome(self) -> SessionOutcome:
        if not self.is_terminal:
            raise RuntimeError("World scan has not finished yet")
        return SessionOutcome(
            scan="worlds",
            status="completed" if self._state == "completed" else "timed_out",
            worlds=self.worlds if self._state == "completed" else [],
            counters=self.counters,
        )

    def _collect(self, claim: ClaimLine) -> None:
        self._worlds.setdefault(claim.world, None)

    def _on_completed(self) -> None:
        log_event(
            logger,
            logging.INFO,
            "scan_completed",
            scan=self.scan_name,
            world_count=len(self._worlds),
            unrecognized=self.counters.unrecognized,
        )
