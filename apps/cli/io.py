"""CLI input helpers for chat transcripts."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

STDIN_MARKER = Path("-")


def iter_transcript_lines(path: Path) -> Iterator[str]:
    """Yield transcript lines in order with line terminators removed.

    Leading and trailing spaces are kept; report patterns may depend on them.
    """

    if path == STDIN_MARKER:
        for line in sys.stdin:
            yield line.rstrip("\r\n")
        return

    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            yield line.rstrip("\r\n")
