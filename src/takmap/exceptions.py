"""Custom exception hierarchy for takmap."""

from __future__ import annotations


class TakMapError(Exception):
    """Base exception for all takmap errors."""


class TakMapConfigError(TakMapError):
    """Invalid or missing configuration."""


class TakMapTransportError(TakMapError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class TakMapAuthenticationError(TakMapTransportError):
    """Server rejected the request as not authenticated (HTTP 401/403).

    The map view cannot recover from this on its own; consumers are
    expected to reload (re-authenticate) when they see it.
    """


class TakMapEditError(TakMapTransportError):
    """An outgoing create/update/delete was not accepted by the server.

    Local state is left as it was; the error is meant to be shown to
    the operator.
    """


class TakMapPushError(TakMapError):
    """Push channel could not be opened or broke while reading."""


class TakMapTaxonomyError(TakMapError):
    """Type taxonomy payload is not a tree of ``{code, next}`` nodes."""
