"""Typed failures raised while talking to the Polymarket feed."""

from __future__ import annotations


class PolymarketServiceError(Exception):
    """Base class for upstream failures surfaced to API callers."""

    status_code: int = 502
    retryable: bool = True

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if retryable is not None:
            self.retryable = retryable


class UpstreamUnavailable(PolymarketServiceError):
    """The feed could not be reached or answered with a non-success status."""

    status_code = 502
    retryable = True

    @classmethod
    def from_status(cls, upstream_status: int) -> "UpstreamUnavailable":
        server_side = upstream_status >= 500
        return cls(
            f"Polymarket API responded with status {upstream_status}",
            status_code=502 if server_side else 500,
            retryable=server_side,
        )


class UpstreamMalformed(PolymarketServiceError):
    """The feed answered with a body that is not JSON or has an unexpected shape."""

    status_code = 500
    retryable = False


class ConfigurationInvalid(PolymarketServiceError):
    """The configured endpoint is not a usable URL."""

    status_code = 500
    retryable = False


__all__ = [
    "ConfigurationInvalid",
    "PolymarketServiceError",
    "UpstreamMalformed",
    "UpstreamUnavailable",
]
