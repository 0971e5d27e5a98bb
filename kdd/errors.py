from __future__ import annotations


class KddError(Exception):
    pass


class ConnectivityError(KddError):
    """Docker or Kong could not be reached during the startup handshake."""

    def __init__(self, service: str, cause: Exception):
        self.service = service
        self.cause = cause
        super().__init__(f"Unable to connect to {service}: {cause}")


class GatewayAPIError(KddError):
    """A Kong admin API call failed (HTTP status >= 400 or transport error)."""

    def __init__(self, detail: str, status_code: int | None = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


class DecodeError(GatewayAPIError):
    """Kong answered with a body we could not decode."""


class EventStreamError(KddError):
    """The Docker event stream failed for a reason other than a clean close."""
