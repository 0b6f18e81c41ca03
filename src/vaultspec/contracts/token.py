"""Contracts for Vault's token auth method (``/auth/token``).

See https://developer.hashicorp.com/vault/api-docs/auth/token
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import Field

from vaultspec.engine.contract import Contract, Opaque, RequestModel, ResponseModel
from vaultspec.models import HTTPMethod

_DOCS = "https://developer.hashicorp.com/vault/api-docs/auth/token"

# ---------------------------------------------------------------------------
# Path schemas
# ---------------------------------------------------------------------------


class RoleName(RequestModel):
    role_name: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class CreateTokenBody(RequestModel):
    """Parameters for the create-token family of endpoints."""

    id: str = None
    role_name: str = None
    policies: list[str] = None
    meta: dict[str, str] = None
    no_parent: bool = None
    no_default_policy: bool = None
    renewable: bool = True
    lease: str = None  # deprecated upstream in favour of ttl
    ttl: str = None
    type: str = None
    explicit_max_ttl: str = None
    display_name: str = "token"
    num_uses: int = None
    period: str = None
    entity_alias: str = None


class TokenBody(RequestModel):
    token: str


class AccessorBody(RequestModel):
    accessor: str


class RenewTokenBody(RequestModel):
    token: str
    increment: Union[int, str] = None


class RenewSelfBody(RequestModel):
    increment: Union[int, str] = None


class RenewAccessorBody(RequestModel):
    accessor: str
    increment: Union[int, str] = None


class RoleBody(RequestModel):
    """Token role definition. Vault fills server-side defaults for omitted fields."""

    allowed_policies: list[str] = None
    disallowed_policies: list[str] = None
    allowed_policies_glob: list[str] = None
    disallowed_policies_glob: list[str] = None
    orphan: bool = None
    renewable: bool = None
    path_suffix: str = None
    allowed_entity_aliases: list[str] = None
    token_bound_cidrs: list[str] = None
    token_explicit_max_ttl: Union[int, str] = None
    token_no_default_policy: bool = None
    token_num_uses: int = None
    token_period: Union[int, str] = None
    token_type: str = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TokenAuth(ResponseModel):
    client_token: str
    accessor: str
    policies: list[str]
    token_policies: list[str]
    metadata: Optional[dict[str, str]]
    lease_duration: int
    renewable: bool
    entity_id: str
    token_type: str
    orphan: bool
    num_uses: int


class AuthResponse(ResponseModel):
    """Envelope returned by endpoints that issue or renew a token."""

    request_id: str
    lease_id: Optional[str]
    renewable: bool
    lease_duration: int
    data: Opaque = None
    wrap_info: Opaque = None
    warnings: Optional[list[str]]
    auth: Optional[TokenAuth] = None


class KeyList(ResponseModel):
    keys: list[str]


class ListResponse(ResponseModel):
    """Envelope returned by ``LIST`` endpoints."""

    auth: Opaque = None
    warnings: Opaque = None
    wrap_info: Opaque = None
    data: KeyList
    lease_duration: int
    renewable: bool
    lease_id: str


class TokenLookupData(ResponseModel):
    accessor: str
    creation_time: int
    creation_ttl: int
    display_name: str
    entity_id: str
    expire_time: Optional[str] = None
    explicit_max_ttl: int
    id: str
    identity_policies: Optional[list[str]] = None
    issue_time: Optional[str] = None
    meta: Optional[dict[str, str]] = None
    num_uses: int
    orphan: bool
    path: str
    policies: list[str]
    renewable: Optional[bool] = None
    ttl: int
    type: Optional[str] = None


class TokenLookupResponse(ResponseModel):
    data: TokenLookupData


class RoleData(ResponseModel):
    name: str
    allowed_policies: list[str]
    disallowed_policies: list[str]
    allowed_policies_glob: list[str] = Field(default_factory=list)
    disallowed_policies_glob: list[str] = Field(default_factory=list)
    allowed_entity_aliases: Optional[list[str]] = None
    orphan: bool
    renewable: bool
    path_suffix: str
    token_bound_cidrs: list[str] = Field(default_factory=list)
    token_explicit_max_ttl: int = 0
    token_no_default_policy: bool = False
    token_num_uses: int = 0
    token_period: int = 0
    token_type: str


class RoleResponse(ResponseModel):
    data: RoleData


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------

ACCESSORS = Contract(
    method=HTTPMethod.LIST,
    path="/auth/token/accessors",
    response_schema=ListResponse,
    summary="List token accessors",
    docs_url=f"{_DOCS}#list-accessors",
)

CREATE = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/create",
    body_schema=CreateTokenBody,
    response_schema=AuthResponse,
    summary="Create a child token",
    docs_url=f"{_DOCS}#create-token",
)

CREATE_ORPHAN = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/create-orphan",
    body_schema=CreateTokenBody,
    response_schema=AuthResponse,
    summary="Create an orphan token",
    docs_url=f"{_DOCS}#create-token",
)

CREATE_WITH_ROLE = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/create/{{role_name}}",
    path_schema=RoleName,
    body_schema=CreateTokenBody,
    response_schema=AuthResponse,
    summary="Create a token against a token role",
    docs_url=f"{_DOCS}#create-token",
)

LOOKUP = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/lookup",
    body_schema=TokenBody,
    response_schema=TokenLookupResponse,
    summary="Look up a token",
    docs_url=f"{_DOCS}#lookup-a-token",
)

LOOKUP_SELF = Contract(
    method=HTTPMethod.GET,
    path="/auth/token/lookup-self",
    response_schema=TokenLookupResponse,
    summary="Look up the calling token",
    docs_url=f"{_DOCS}#lookup-a-token-self",
)

LOOKUP_ACCESSOR = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/lookup-accessor",
    body_schema=AccessorBody,
    response_schema=TokenLookupResponse,
    summary="Look up a token by accessor",
    docs_url=f"{_DOCS}#lookup-a-token-accessor",
)

RENEW = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/renew",
    body_schema=RenewTokenBody,
    response_schema=AuthResponse,
    summary="Renew a token",
    docs_url=f"{_DOCS}#renew-a-token",
)

RENEW_SELF = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/renew-self",
    body_schema=RenewSelfBody,
    body_required=False,
    response_schema=AuthResponse,
    summary="Renew the calling token",
    docs_url=f"{_DOCS}#renew-a-token-self",
)

RENEW_ACCESSOR = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/renew-accessor",
    body_schema=RenewAccessorBody,
    response_schema=AuthResponse,
    summary="Renew a token by accessor",
    docs_url=f"{_DOCS}#renew-a-token-accessor",
)

REVOKE = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/revoke",
    body_schema=TokenBody,
    summary="Revoke a token and all its children",
    docs_url=f"{_DOCS}#revoke-a-token",
)

REVOKE_SELF = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/revoke-self",
    summary="Revoke the calling token and all its children",
    docs_url=f"{_DOCS}#revoke-a-token-self",
)

REVOKE_ACCESSOR = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/revoke-accessor",
    body_schema=AccessorBody,
    summary="Revoke a token by accessor",
    docs_url=f"{_DOCS}#revoke-a-token-accessor",
)

REVOKE_ORPHAN = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/revoke-orphan",
    body_schema=TokenBody,
    summary="Revoke a token and orphan its children",
    docs_url=f"{_DOCS}#revoke-token-and-orphan-children",
)

ROLES = Contract(
    method=HTTPMethod.LIST,
    path="/auth/token/roles",
    response_schema=ListResponse,
    summary="List token roles",
    docs_url=f"{_DOCS}#list-token-roles",
)

READ_ROLE = Contract(
    method=HTTPMethod.GET,
    path="/auth/token/roles/{{role_name}}",
    path_schema=RoleName,
    response_schema=RoleResponse,
    summary="Read a token role",
    docs_url=f"{_DOCS}#read-token-role",
)

WRITE_ROLE = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/roles/{{role_name}}",
    path_schema=RoleName,
    body_schema=RoleBody,
    body_required=False,
    summary="Create or update a token role",
    docs_url=f"{_DOCS}#create-update-token-role",
)

DELETE_ROLE = Contract(
    method=HTTPMethod.DELETE,
    path="/auth/token/roles/{{role_name}}",
    path_schema=RoleName,
    summary="Delete a token role",
    docs_url=f"{_DOCS}#delete-token-role",
)

TIDY = Contract(
    method=HTTPMethod.POST,
    path="/auth/token/tidy",
    response_schema=Opaque,
    summary="Clean up token storage",
    docs_url=f"{_DOCS}#tidy-tokens",
)

CONTRACTS: dict[str, Contract] = {
    "accessors": ACCESSORS,
    "create": CREATE,
    "create_orphan": CREATE_ORPHAN,
    "create_with_role": CREATE_WITH_ROLE,
    "lookup": LOOKUP,
    "lookup_self": LOOKUP_SELF,
    "lookup_accessor": LOOKUP_ACCESSOR,
    "renew": RENEW,
    "renew_self": RENEW_SELF,
    "renew_accessor": RENEW_ACCESSOR,
    "revoke": REVOKE,
    "revoke_self": REVOKE_SELF,
    "revoke_accessor": REVOKE_ACCESSOR,
    "revoke_orphan": REVOKE_ORPHAN,
    "roles": ROLES,
    "read_role": READ_ROLE,
    "write_role": WRITE_ROLE,
    "delete_role": DELETE_ROLE,
    "tidy": TIDY,
}
