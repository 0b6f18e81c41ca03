"""Blocking Vault transport backed by :class:`httpx.Client`.

:class:`HttpTransport` is the default collaborator behind
:class:`~vaultspec.engine.command.Operation`. It layers on:

- **Vault headers** -- ``X-Vault-Token`` and ``X-Vault-Namespace`` from the
  :class:`~vaultspec.models.ClientConfig`.
- **Retry with backoff** -- optional retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...), governed by
  ``config.request.max_retries``.
- **Error mapping** -- httpx network and timeout errors become
  :class:`~vaultspec.exceptions.TransportFailure`.

HTTP status codes are *not* mapped to exceptions here; the engine decides
what a status means for an operation.

See Also:
    :class:`~vaultspec.transport.async_transport.AsyncHttpTransport` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from vaultspec.exceptions import TransportFailure
from vaultspec.models import ClientConfig
from vaultspec.output import get_output
from vaultspec.transport.base import RawResponse


class HttpTransport:
    """Synchronous transport for Vault API calls.

    May be used as a context manager; otherwise the underlying
    :class:`httpx.Client` is opened lazily on the first request and must be
    released with :meth:`close`.

    Args:
        config: Connection settings (address, token, namespace, timeouts).
        client: Optional pre-built :class:`httpx.Client`, e.g. one wired to
            an :class:`httpx.MockTransport` in tests. Its ``base_url`` is
            used as-is.

    Example::

        with HttpTransport(ClientConfig(token="hvs.abc")) as transport:
            raw = transport.send("LIST", "/auth/token/accessors")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._client = client

    @property
    def config(self) -> ClientConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpTransport:
        self._ensure_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Transport contract
    # ------------------------------------------------------------------ #

    def send(self, method: str, url: str, payload: Optional[Any] = None) -> RawResponse:
        """Send one request and return the raw reply.

        Args:
            method: HTTP verb, including non-standard ``LIST``.
            url: Path relative to ``{address}/{api_version}``.
            payload: JSON-ready body, or ``None`` for no body.

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
                response = client.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
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
                time.sleep(delay)
                continue

            return to_raw_response(response)

        raise TransportFailure(f"{method} {url} failed after all retries")  # pragma: no cover

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            request = self._config.request
            self._client = httpx.Client(
                base_url=self._config.base_url,
                timeout=request.timeout,
                verify=request.verify_ssl,
                follow_redirects=True,
            )
        return self._client


def vault_headers(config: ClientConfig) -> dict[str, str]:
    """Build the per-request headers Vault expects."""
    headers = {"Accept": "application/json"}
    if config.token:
        headers["X-Vault-Token"] = config.token
    if config.namespace:
        headers["X-Vault-Namespace"] = config.namespace
    return headers


def to_raw_response(response: httpx.Response) -> RawResponse:
    """Decode an :class:`httpx.Response` into a :class:`RawResponse`.

    JSON bodies are decoded, other bodies are kept as text, and an empty
    body (e.g. ``204 No Content``) becomes ``None``.
    """
    payload: Any = None
    if response.content:
        try:
            payload = response.json()
        except ValueError:
            payload = response.text
    return RawResponse(
        status=response.status_code,
        payload=payload,
        headers=dict(response.headers),
    )
