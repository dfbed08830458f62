"""Failure taxonomy for the X media refresh pipeline."""

from __future__ import annotations


class XMediaError(RuntimeError):
    """Base class for refresh pipeline failures."""

    reason = "error"


class ConfigurationIncomplete(XMediaError):
    reason = "config_incomplete"


class UpstreamUnavailable(XMediaError):
    reason = "upstream_unavailable"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeFailure(XMediaError):
    reason = "decode_failure"


class ExtractionEmpty(XMediaError):
    reason = "extraction_empty"


class PersistFailure(XMediaError):
    reason = "persist_failure"
