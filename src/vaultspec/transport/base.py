"""Transport collaborator contract.

The command generator depends only on the two protocols defined here. A
transport receives a verb, a URL path relative to the API root, and an
optional JSON-ready payload. It answers with a :class:`RawResponse` or
raises :class:`~vaultspec.exceptions.TransportFailure`.

Connection reuse, TLS, authentication headers, timeouts and retries are
entirely the transport's business.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class RawResponse:
    """Undecoded-by-schema reply from a transport.

    Attributes:
        status: HTTP status code.
        payload: Decoded JSON body, raw text for non-JSON bodies, or ``None``
            when the body is empty.
        headers: Response headers.
    """

    status: int
    payload: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the status is in the 2xx range."""
        return 200 <= self.status < 300


@runtime_checkable
class Transport(Protocol):
    """Blocking transport."""

    def send(self, method: str, url: str, payload: Optional[Any] = None) -> RawResponse:
        ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Non-blocking transport; ``send`` is a coroutine function."""

    async def send(self, method: str, url: str, payload: Optional[Any] = None) -> RawResponse:
        ...
