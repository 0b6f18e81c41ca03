"""Registry of declared Vault operations.

:data:`REGISTRY` maps ``"<sector>.<operation>"`` names (``token.create``,
``sys.health``, ...) to :class:`~vaultspec.engine.contract.Contract`
instances. It is built once at import time and is read-only; contracts are
immutable, so the registry can be shared across threads and event loops
without synchronisation.

Sub-modules:

* :mod:`~vaultspec.contracts.token` -- token auth method.
* :mod:`~vaultspec.contracts.sys` -- system status endpoints.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType

from vaultspec.contracts import sys as sys_contracts
from vaultspec.contracts import token as token_contracts
from vaultspec.engine.command import check_contract
from vaultspec.engine.contract import Contract
from vaultspec.exceptions import UnknownOperationError

logger = logging.getLogger(__name__)

SECTORS: Mapping[str, Mapping[str, Contract]] = MappingProxyType({
    "token": MappingProxyType(dict(token_contracts.CONTRACTS)),
    "sys": MappingProxyType(dict(sys_contracts.CONTRACTS)),
})


def _build_registry() -> Mapping[str, Contract]:
    registry: dict[str, Contract] = {}
    for sector, contracts in SECTORS.items():
        for name, contract in contracts.items():
            check_contract(contract)
            registry[f"{sector}.{name}"] = contract
    logger.debug("Registered %d operations", len(registry))
    return MappingProxyType(registry)


REGISTRY: Mapping[str, Contract] = _build_registry()


def operation_names() -> list[str]:
    """Return every registered operation name, sorted."""
    return sorted(REGISTRY)


def get_contract(name: str) -> Contract:
    """Look up a contract by its registry name.

    Dashes are accepted in place of underscores (``token.lookup-accessor``).

    Raises:
        UnknownOperationError: If no operation has that name.
    """
    key = name.replace("-", "_")
    try:
        return REGISTRY[key]
    except KeyError:
        raise UnknownOperationError(
            f"Unknown operation '{name}'. Run 'vaultspec operations' to list them."
        ) from None


__all__ = ["REGISTRY", "SECTORS", "get_contract", "operation_names"]
