"""Transport collaborators for the command generator.

Provides the transport protocols the engine depends on and two httpx-backed
implementations:

Classes:
    :class:`HttpTransport` -- blocking transport backed by :class:`httpx.Client`.
    :class:`AsyncHttpTransport` -- non-blocking transport backed by
    :class:`httpx.AsyncClient`.

Any object with a matching ``send(method, url, payload)`` works as a
transport; the protocols in :mod:`~vaultspec.transport.base` only document
the shape.
"""

from vaultspec.transport.async_transport import AsyncHttpTransport
from vaultspec.transport.base import AsyncTransport, RawResponse, Transport
from vaultspec.transport.sync_transport import HttpTransport

__all__ = ["AsyncHttpTransport", "AsyncTransport", "HttpTransport", "RawResponse", "Transport"]
