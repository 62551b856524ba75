"""
Application-level exceptions.

InputValidationError fails fast and is never retried. TransientFetchError is
retried with backoff by the fetch layer and then degraded to a neutral value.
AnalysisDegradation describes a stage that fell back to its neutral value;
it is recorded on the StageResult rather than raised across the pipeline.
ConfigurationError is fatal at process start.
"""

from __future__ import annotations


class SolproofError(Exception):
    """Base class for all SolProof errors."""


class InputValidationError(SolproofError, ValueError):
    """Malformed input such as an invalid base58 address."""

    def __init__(self, message: str, value: str | None = None) -> None:
        super().__init__(message)
        self.value = value


class TransientFetchError(SolproofError):
    """Network, rate-limit or server failure on an external call; safe to retry."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


class RpcResponseError(SolproofError):
    """JSON-RPC error response that retrying will not fix."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class AnalysisDegradation(SolproofError):
    """A stage could not complete and returned its neutral fallback."""

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(f"{stage}: {reason}")
        self.stage = stage
        self.reason = reason


class ConfigurationError(SolproofError):
    """Missing or invalid configuration (e.g. no RPC endpoint or API key)."""
