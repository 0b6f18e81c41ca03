"""Client facade -- one typed accessor per declared operation.

:class:`VaultClient` owns a transport and exposes each registry sector as an
attribute whose properties return bound operations::

    with VaultClient(ClientConfig(token="hvs.abc")) as client:
        created = client.token.create(body={"ttl": "1h"})
        role = client.token.read_role(path_params={"role_name": "admin"})
        health = client.operation("sys.health").invoke()

:class:`AsyncVaultClient` is the same facade over
:class:`~vaultspec.transport.AsyncHttpTransport`; its operations are
coroutines.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Union

from vaultspec.contracts import get_contract
from vaultspec.contracts import sys as sys_contracts
from vaultspec.contracts import token as token_contracts
from vaultspec.engine.command import AsyncOperation, Operation, generate
from vaultspec.engine.contract import Contract
from vaultspec.models import ClientConfig
from vaultspec.transport import AsyncHttpTransport, HttpTransport

BoundOperation = Union[Operation, AsyncOperation]


class Sector:
    """A group of operations bound through the owning client."""

    def __init__(self, bind: Callable[[Contract], BoundOperation]) -> None:
        self._bind = bind


class TokenSector(Sector):
    """Token auth method."""

    @property
    def accessors(self) -> BoundOperation:
        return self._bind(token_contracts.ACCESSORS)

    @property
    def create(self) -> BoundOperation:
        return self._bind(token_contracts.CREATE)

    @property
    def create_orphan(self) -> BoundOperation:
        return self._bind(token_contracts.CREATE_ORPHAN)

    @property
    def create_with_role(self) -> BoundOperation:
        return self._bind(token_contracts.CREATE_WITH_ROLE)

    @property
    def lookup(self) -> BoundOperation:
        return self._bind(token_contracts.LOOKUP)

    @property
    def lookup_self(self) -> BoundOperation:
        return self._bind(token_contracts.LOOKUP_SELF)

    @property
    def lookup_accessor(self) -> BoundOperation:
        return self._bind(token_contracts.LOOKUP_ACCESSOR)

    @property
    def renew(self) -> BoundOperation:
        return self._bind(token_contracts.RENEW)

    @property
    def renew_self(self) -> BoundOperation:
        return self._bind(token_contracts.RENEW_SELF)

    @property
    def renew_accessor(self) -> BoundOperation:
        return self._bind(token_contracts.RENEW_ACCESSOR)

    @property
    def revoke(self) -> BoundOperation:
        return self._bind(token_contracts.REVOKE)

    @property
    def revoke_self(self) -> BoundOperation:
        return self._bind(token_contracts.REVOKE_SELF)

    @property
    def revoke_accessor(self) -> BoundOperation:
        return self._bind(token_contracts.REVOKE_ACCESSOR)

    @property
    def revoke_orphan(self) -> BoundOperation:
        return self._bind(token_contracts.REVOKE_ORPHAN)

    @property
    def roles(self) -> BoundOperation:
        return self._bind(token_contracts.ROLES)

    @property
    def read_role(self) -> BoundOperation:
        return self._bind(token_contracts.READ_ROLE)

    @property
    def write_role(self) -> BoundOperation:
        return self._bind(token_contracts.WRITE_ROLE)

    @property
    def delete_role(self) -> BoundOperation:
        return self._bind(token_contracts.DELETE_ROLE)

    @property
    def tidy(self) -> BoundOperation:
        return self._bind(token_contracts.TIDY)


class SysSector(Sector):
    """System status endpoints."""

    @property
    def health(self) -> BoundOperation:
        return self._bind(sys_contracts.HEALTH)

    @property
    def seal_status(self) -> BoundOperation:
        return self._bind(sys_contracts.SEAL_STATUS)


class _ClientBase:
    """Shared wiring: one transport, one cache of bound operations.

    Operations are bound on first access and reused afterwards.
    """

    def __init__(self, transport: Any, owns_transport: bool) -> None:
        self._transport = transport
        self._owns_transport = owns_transport
        self._bound: dict[int, BoundOperation] = {}
        self.token = TokenSector(self._bind)
        self.sys = SysSector(self._bind)

    @property
    def transport(self) -> Any:
        return self._transport

    def operation(self, name: str) -> BoundOperation:
        """Bind a registry operation by name (``"token.lookup"``).

        Raises:
            UnknownOperationError: If *name* is not registered.
        """
        return self._bind(get_contract(name))

    def _bind(self, contract: Contract) -> BoundOperation:
        key = id(contract)
        if key not in self._bound:
            self._bound[key] = generate(contract, self._transport)
        return self._bound[key]


class VaultClient(_ClientBase):
    """Blocking Vault client.

    Args:
        config: Connection settings; ignored when *transport* is given.
        transport: Any blocking transport. When omitted an
            :class:`~vaultspec.transport.HttpTransport` is created and closed
            together with the client.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[Any] = None,
    ) -> None:
        owns = transport is None
        super().__init__(transport or HttpTransport(config), owns)

    def __enter__(self) -> VaultClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_transport:
            self._transport.close()


class AsyncVaultClient(_ClientBase):
    """Non-blocking Vault client; every operation is awaited.

    Args:
        config: Connection settings; ignored when *transport* is given.
        transport: Any coroutine transport. When omitted an
            :class:`~vaultspec.transport.AsyncHttpTransport` is created and
            closed together with the client.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[Any] = None,
    ) -> None:
        owns = transport is None
        super().__init__(transport or AsyncHttpTransport(config), owns)

    async def __aenter__(self) -> AsyncVaultClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_transport:
            await self._transport.aclose()
