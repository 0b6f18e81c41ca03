"""Pydantic models shared across vaultspec modules.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig` and :class:`ClientConfig`.

**Protocol vocabulary** -- :class:`HTTPMethod`, the verbs a contract may
declare, including Vault's non-standard ``LIST``.

Operation contracts themselves live in :mod:`vaultspec.engine.contract`
because they carry validator types rather than plain data.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HTTPMethod(str, enum.Enum):
    """HTTP verbs a contract may declare.

    ``LIST`` is Vault's bulk-listing verb. It travels through the same
    dispatch path as any other method; httpx sends it as a raw method string.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    LIST = "LIST"


class RequestConfig(BaseModel):
    """HTTP request settings applied by the transports."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    max_retries: int = Field(
        default=0,
        ge=0,
        description="Transport-level retries on connection errors and 5xx",
    )


class ClientConfig(BaseModel):
    """Connection settings for one Vault server.

    Loaded from ``~/.config/vaultspec/config.json`` and overlaid with
    environment variables and CLI flags by
    :func:`~vaultspec.config.resolve_config`.

    ``token_source`` is a credential descriptor (``env:VAR`` or
    ``file:/path``) consulted only when ``token`` itself is unset.

    Example::

        ClientConfig(
            address="https://vault.internal:8200",
            token_source="file:~/.vault-token",
            namespace="team-a",
        )
    """

    model_config = ConfigDict(extra="ignore")

    address: str = Field(
        default="http://127.0.0.1:8200", description="Vault server address"
    )
    api_version: str = Field(default="v1", description="API version path segment")
    token: Optional[str] = Field(default=None, description="Vault token")
    token_source: Optional[str] = Field(
        default=None, description="Token source: env:VAR or file:/path"
    )
    namespace: Optional[str] = Field(
        default=None, description="Enterprise namespace (X-Vault-Namespace)"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)

    @property
    def base_url(self) -> str:
        """``address`` joined with the API version, without a trailing slash."""
        return f"{self.address.rstrip('/')}/{self.api_version.strip('/')}"
