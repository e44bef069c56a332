"""Error taxonomy of the chat proxy.

Every error carries a caller-safe ``public_message``; upstream error bodies
and exception details stay in server-side logs.
"""
from __future__ import annotations


class ProxyError(Exception):
    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, public_message: str | None = None, *, status_code: int | None = None) -> None:
        if public_message is not None:
            self.public_message = public_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.public_message)

    def to_envelope(self) -> dict:
        return {"error": self.public_message}


class InvalidInput(ProxyError):
    status_code = 400
    public_message = "Invalid message"


class UpstreamError(ProxyError):
    """Upstream answered with a non-success status."""
    status_code = 502
    public_message = "Failed to get response from agent"

    def __init__(self, upstream_status: int) -> None:
        self.upstream_status = upstream_status
        # Only error statuses are meaningful to the browser; 1xx/3xx become 502.
        status = upstream_status if 400 <= upstream_status <= 599 else 502
        super().__init__(status_code=status)


class InternalError(ProxyError):
    status_code = 500
    public_message = "Internal server error"
