"""Contracts for unauthenticated ``/sys`` status endpoints.

Note that ``/sys/health`` reports standby, sealed and uninitialised states
with non-2xx status codes (429, 503, 501, ...); those arrive as
:class:`~vaultspec.exceptions.ServiceError` with the health payload attached.
"""

from __future__ import annotations

from typing import Optional

from vaultspec.engine.contract import Contract, ResponseModel
from vaultspec.models import HTTPMethod

_DOCS = "https://developer.hashicorp.com/vault/api-docs/system"


class HealthResponse(ResponseModel):
    initialized: bool
    sealed: bool
    standby: bool
    performance_standby: bool = False
    replication_performance_mode: Optional[str] = None
    replication_dr_mode: Optional[str] = None
    server_time_utc: int
    version: str
    cluster_name: Optional[str] = None
    cluster_id: Optional[str] = None


class SealStatusResponse(ResponseModel):
    type: str
    initialized: bool
    sealed: bool
    t: int
    n: int
    progress: int
    nonce: str
    version: str
    build_date: Optional[str] = None
    migration: bool = False
    recovery_seal: bool = False
    storage_type: Optional[str] = None
    cluster_name: Optional[str] = None
    cluster_id: Optional[str] = None


HEALTH = Contract(
    method=HTTPMethod.GET,
    path="/sys/health",
    response_schema=HealthResponse,
    summary="Read server health",
    docs_url=f"{_DOCS}/health",
)

SEAL_STATUS = Contract(
    method=HTTPMethod.GET,
    path="/sys/seal-status",
    response_schema=SealStatusResponse,
    summary="Read seal status",
    docs_url=f"{_DOCS}/seal-status",
)

CONTRACTS: dict[str, Contract] = {
    "health": HEALTH,
    "seal_status": SEAL_STATUS,
}
