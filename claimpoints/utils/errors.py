"""Custom exceptions for core logic."""

from __future__ import annotations

from typing import Literal

ConfigErrorCode = Literal[
    "missing_placeholder",
    "bad_alias",
    "unknown_color",
    "bad_pattern",
    "invalid_file",
]


class ConfigError(ValueError):
    """Raised when settings cannot be turned into a usable pattern set."""

    def __init__(self, message: str, *, code: ConfigErrorCode, value: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.value = value


class ExtractionError(Exception):
    """Raised when a recognized report line cannot be converted to a record."""

    def __init__(self, message: str, *, line: str) -> None:
        super().__init__(message)
        self.line = line


class NumericOverflowError(ExtractionError):
    """Raised when a captured integer does not fit its declared range."""

    def __init__(self, message: str, *, line: str, field: str, raw_value: str) -> None:
        super().__init__(message, line=line)
        self.field = field
        self.raw_value = raw_value


class ScanInProgressError(RuntimeError):
    """Raised when a scan is requested while another scan is still active."""


class NoActiveScanError(RuntimeError):
    """Raised when lines are fed or polled without an active scan."""


class MarkerStoreError(ValueError):
    """Raised when the marker store file cannot be read."""
