"""Asynchronous Vault transport -- mirrors :class:`~vaultspec.transport.sync_transport.HttpTransport`.

:class:`AsyncHttpTransport` wraps :class:`httpx.AsyncClient` and offers the
same behaviour (Vault headers, optional retry with exponential backoff,
httpx error mapping) using ``await`` and :func:`asyncio.sleep`. Because its
``send`` is a coroutine function,
:func:`~vaultspec.engine.command.generate` binds it into an
:class:`~vaultspec.engine.command.AsyncOperation`.

Cancellation of an in-flight ``send`` surfaces as
:class:`asyncio.CancelledError` and is never converted into a
:class:`~vaultspec.exceptions.TransportFailure`.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx

from vaultspec.exceptions import TransportFailure
from vaultspec.models import ClientConfig
from vaultspec.output import get_output
from vaultspec.transport.base import RawResponse
from vaultspec.transport.sync_transport import to_raw_response, vault_headers


class AsyncHttpTransport:
    """Asynchronous transport for Vault API calls.

    Args:
        config: Connection settings (address, token, namespace, timeouts).
        client: Optional pre-built :class:`httpx.AsyncClient`.

    Example::

        async with AsyncHttpTransport(config) as transport:
            raw = await transport.send("GET", "/sys/health")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._client = client

    @property
    def config(self) -> ClientConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncHttpTransport:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Transport contract
    # ------------------------------------------------------------------ #

    async def send(self, method: str, url: str, payload: Optional[Any] = None) -> RawResponse:
        """Send one request and return the raw reply.

        Behaves identically to
        :meth:`~vaultspec.transport.sync_transport.HttpTransport.send` but is
        non-blocking.

        Raises:
            TransportFailure: On network / timeout errors after all retries.
        """
        client = self._ensure_client()
        headers = vault_headers(self._config)
        max_retries = self._config.request.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                kwargs: dict[str, Any] = {"headers": headers}
                if payload is not None:
                    kwargs["json"] = payload
                response = await client.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise TransportFailure(
                    f"{method} {url} failed after {attempt + 1} attempt(s): {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                await asyncio.sleep(delay)
                continue

            return to_raw_response(response)

        raise TransportFailure(f"{method} {url} failed after all retries")  # pragma: no cover

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            request = self._config.request
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=request.timeout,
                verify=request.verify_ssl,
                follow_redirects=True,
            )
        return self._client
