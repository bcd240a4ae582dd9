"""Host-owned engine state threading configuration and the active scan."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from claimpoints.config.models import ClaimPointsConfig
from claimpoints.patterns.pattern_set import PatternSet, build_pattern_set
from claimpoints.reconcile.engine import reconcile
from claimpoints.reconcile.models import Marker, MarkerDiff
from claimpoints.scan.models import ClaimRecord, ScanKind, SessionOutcome, SessionState
from claimpoints.scan.session import SCAN_TIMEOUT_SECONDS, ClaimScanSession, WorldScanSession
from claimpoints.utils.errors import NoActiveScanError, ScanInProgressError
from claimpoints.utils.events import log_event

logger = logging.getLogger("claimpoints.engine")


class EngineState:
    """Single-writer owner of the pattern set, the active scan and known worlds.

    At most one scan is active because all report lines share one unaddressed
    chat channel. Finished sessions are detached and returned as outcomes.
    """

    def __init__(
        self,
        config: ClaimPointsConfig,
        *,
        patterns: PatternSet | None = None,
        known_worlds: Iterable[str] = (),
        timeout_seconds: float = SCAN_TIMEOUT_SECONDS,
    ) -> None:
        self._config = config
        self._patterns = patterns or build_pattern_set(config)
        self._known_worlds: dict[str, None] = dict.fromkeys(known_worlds)
        self._timeout_seconds = timeout_seconds
        self._session: ClaimScanSession | WorldScanSession | None = None

    @property
    def config(self) -> ClaimPointsConfig:
        return self._config

    @property
    def patterns(self) -> PatternSet:
        return self._patterns

    @property
    def session(self) -> ClaimScanSession | WorldScanSession | None:
        return self._session

    @property
    def scanning(self) -> bool:
        return self._session is not None

    def apply_config(self, config: ClaimPointsConfig) -> PatternSet:
        """Swap in a new configuration; the old pattern set is left untouched."""

        self._ensure_idle()
        patterns = build_pattern_set(config)
        self._config = config
        self._patterns = patterns
        return patterns

    def start_claim_scan(self, world: str, kind: ScanKind, now: float) -> ClaimScanSession:
        self._ensure_idle()
        session = ClaimScanSession(
            world=world,
            kind=kind,
            patterns=self._patterns,
            started_at=now,
            timeout_seconds=self._timeout_seconds,
        )
        self._session = session
        log_event(logger, logging.INFO, "scan_started", scan="claims", world=world, kind=kind)
        return session

    def start_world_scan(self, now: float) -> WorldScanSession:
        self._ensure_idle()
        session = WorldScanSession(
            patterns=self._patterns,
            started_at=now,
            timeout_seconds=self._timeout_seconds,
        )
        self._session = session
        log_event(logger, logging.INFO, "scan_started", scan="worlds")
        return session

    def feed_line(self, line: str) -> SessionOutcome | None:
        """Feed one line to the active scan; returns the outcome once it completes."""

        session = self._require_session()
        return self._finish_if_terminal(session.feed(line))

    def poll_timeout(self, now: float) -> SessionOutcome | None:
        """Expire the active scan when overdue; returns the outcome if it ended."""

        session = self._require_session()
        return self._finish_if_terminal(session.poll(now))

    def reconcile(
        self, records: Sequence[ClaimRecord], kind: ScanKind, markers: Sequence[Marker]
    ) -> MarkerDiff:
        return reconcile(records, kind, markers, self._patterns)

    def known_worlds(self) -> list[str]:
        return list(self._known_worlds)

    def _finish_if_terminal(self, state: SessionState) -> SessionOutcome | None:
        session = self._session
        if session is None or state not in {"completed", "timed_out"}:
            return None
        self._session = None
        outcome = session.outcome()
        if outcome.scan == "worlds" and outcome.status == "completed":
            for world in outcome.worlds:
                self._known_worlds.setdefault(world, None)
        return outcome

    def _require_session(self) -> ClaimScanSession | WorldScanSession:
        if self._session is None:
            raise NoActiveScanError("No scan is active")
        return self._session

    def _ensure_idle(self) -> None:
        if self._session is not None:
            raise ScanInProgressError(
                f"A {self._session.scan_name} scan is already in progress"
            )
