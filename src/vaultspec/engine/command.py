"""Compile a :class:`~vaultspec.engine.contract.Contract` into a callable operation.

This is the core algorithm of vaultspec. :func:`generate` binds a contract
to a transport and returns an :class:`Operation` (or :class:`AsyncOperation`
for coroutine transports). Each invocation runs the same pipeline:

1. Validate path parameters against ``path_schema``.
2. Substitute the validated, percent-encoded values into the URL template.
3. Validate the body against ``body_schema``, applying declared defaults.
4. Dispatch ``(verb, url, payload)`` through the transport.
5. Validate the response payload against ``response_schema``.

Input is always validated before any network activity, and output after it.
Failures of steps 1, 3, 4 and 5 are returned inside an
:class:`InvocationResult` as :class:`~vaultspec.exceptions.PathValidationError`,
:class:`~vaultspec.exceptions.BodyValidationError`,
:class:`~vaultspec.exceptions.TransportFailure` (or its
:class:`~vaultspec.exceptions.ServiceError` subclass) and
:class:`~vaultspec.exceptions.ResponseValidationError` respectively.
Template/schema mismatches are declaration defects and are raised as
:class:`~vaultspec.exceptions.ContractConfigurationError`, eagerly by
:func:`generate`.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union
from urllib.parse import quote

from pydantic import BaseModel

from vaultspec.engine.contract import Contract, placeholders, substitute
from vaultspec.engine.validation import Violation, dump_payload, validate
from vaultspec.exceptions import (
    BodyValidationError,
    ContractConfigurationError,
    InputValidationError,
    PathValidationError,
    ResponseValidationError,
    ServiceError,
    TransportFailure,
    VaultSpecError,
)
from vaultspec.models import HTTPMethod
from vaultspec.transport.base import AsyncTransport, RawResponse, Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvocationRequest:
    """Concrete input for one invocation.

    ``body=None`` means the body was omitted.
    """

    path_params: Optional[Mapping[str, Any]] = None
    body: Any = None


@dataclass(frozen=True)
class PreparedRequest:
    """Validated request ready for dispatch (the output of steps 1-3)."""

    method: HTTPMethod
    url: str
    payload: Any = None


@dataclass(frozen=True)
class InvocationResult:
    """Tagged outcome of one invocation.

    On success ``error`` is ``None`` and ``value`` holds the validated
    response (or the raw payload when no response schema is declared).
    On failure ``error`` holds the exception describing what went wrong and
    ``value`` is ``None``.
    """

    value: Any = None
    error: Optional[VaultSpecError] = None
    status: Optional[int] = None
    raw: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return ``value``, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value


def check_contract(contract: Contract) -> None:
    """Assert that template placeholders and path-schema fields match 1:1.

    Raises:
        ContractConfigurationError: On any mismatch, in either direction.
    """
    in_template = set(placeholders(contract.path))
    declared = set(contract.path_schema.model_fields) if contract.path_schema else set()

    missing = sorted(in_template - declared)
    unused = sorted(declared - in_template)
    if not missing and not unused:
        return

    problems = []
    if missing:
        problems.append(f"placeholders without a path-schema field: {', '.join(missing)}")
    if unused:
        problems.append(f"path-schema fields without a placeholder: {', '.join(unused)}")
    raise ContractConfigurationError(
        f"Contract {contract.method.value} {contract.path}: " + "; ".join(problems)
    )


def generate(
    contract: Contract,
    transport: Union[Transport, AsyncTransport],
) -> Union[Operation, AsyncOperation]:
    """Bind *contract* to *transport* and return an invocable operation.

    Args:
        contract: The operation declaration. It is read, never mutated.
        transport: Anything with a ``send(method, url, payload)`` method.
            When ``send`` is a coroutine function an :class:`AsyncOperation`
            is returned, otherwise an :class:`Operation`.

    Raises:
        ContractConfigurationError: If the URL template and the path schema
            disagree.
        TypeError: If *transport* has no callable ``send``.

    Example::

        op = generate(TOKEN_CREATE, HttpTransport(config))
        result = op.invoke(body={"ttl": "1h"})
    """
    send = getattr(transport, "send", None)
    if not callable(send):
        raise TypeError(f"{type(transport).__name__} has no callable send()")
    if inspect.iscoroutinefunction(send):
        return AsyncOperation(contract, transport)
    return Operation(contract, transport)


class _BaseOperation:
    """Steps shared by the sync and async operations (everything but dispatch)."""

    def __init__(self, contract: Contract, transport: Any) -> None:
        check_contract(contract)
        self._contract = contract
        self._transport = transport

    @property
    def contract(self) -> Contract:
        return self._contract

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._contract.method.value} {self._contract.path}>"

    # ------------------------------------------------------------------ #
    # Steps 1-3
    # ------------------------------------------------------------------ #

    def prepare(
        self,
        request: Optional[InvocationRequest] = None,
        *,
        path_params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> PreparedRequest:
        """Run validation and URL construction without dispatching.

        Raises:
            PathValidationError: If the path parameters are invalid.
            BodyValidationError: If the body is invalid or missing.
        """
        request = _coerce_request(request, path_params, body)
        url = self._build_url(request.path_params)
        payload = self._validate_body(request.body)
        return PreparedRequest(method=self._contract.method, url=url, payload=payload)

    def _build_url(self, path_params: Optional[Mapping[str, Any]]) -> str:
        contract = self._contract
        values: dict[str, str] = {}

        if contract.path_schema is None:
            if path_params:
                raise PathValidationError(
                    f"{contract.method.value} {contract.path} takes no path parameters",
                    [
                        Violation(field=str(name), message="Unexpected path parameter", kind="extra_forbidden")
                        for name in path_params
                    ],
                )
        else:
            data = path_params.model_dump() if isinstance(path_params, BaseModel) else dict(path_params or {})
            validated, violations = validate(contract.path_schema, data, root="path_params")
            if violations:
                raise PathValidationError(
                    _summary("Invalid path parameters", contract, violations), violations,
                )
            rendered = {
                name: str(dump_payload(getattr(validated, name)))
                for name in contract.path_schema.model_fields
            }
            # "." and ".." survive quoting and are collapsed by the HTTP layer.
            dots = [
                Violation(field=name, message="Path segment may not be '.' or '..'", kind="dot_segment")
                for name, text in rendered.items()
                if text in (".", "..")
            ]
            if dots:
                raise PathValidationError(_summary("Invalid path parameters", contract, dots), dots)
            values = {name: quote(text, safe="") for name, text in rendered.items()}

        url = substitute(contract.path, values)
        leftover = placeholders(url)
        if leftover:
            raise ContractConfigurationError(
                f"Contract {contract.method.value} {contract.path}: "
                f"unsubstituted placeholders: {', '.join(leftover)}"
            )
        return url

    def _validate_body(self, body: Any) -> Any:
        contract = self._contract

        if contract.body_schema is None:
            if body is not None:
                raise BodyValidationError(
                    f"{contract.method.value} {contract.path} takes no request body",
                    [Violation(field="body", message="Unexpected request body", kind="extra_forbidden")],
                )
            return None

        if body is None:
            if contract.body_required:
                violations = [Violation(field="body", message="Field required", kind="missing")]
                raise BodyValidationError(
                    _summary("Missing request body", contract, violations), violations,
                )
            return None

        validated, violations = validate(contract.body_schema, body, root="body", strict=True)
        if violations:
            raise BodyValidationError(
                _summary("Invalid request body", contract, violations), violations,
            )
        return dump_payload(validated)

    # ------------------------------------------------------------------ #
    # Step 5
    # ------------------------------------------------------------------ #

    def _finish(self, raw: RawResponse) -> InvocationResult:
        contract = self._contract
        logger.debug("%s %s -> %d", contract.method.value, contract.path, raw.status)

        if not raw.ok:
            return InvocationResult(error=ServiceError(raw.status, raw.payload), status=raw.status, raw=raw.payload)

        if contract.response_schema is None:
            return InvocationResult(value=raw.payload, status=raw.status, raw=raw.payload)

        value, violations = validate(contract.response_schema, raw.payload, root="response", strict=True)
        if violations:
            logger.debug(
                "Response for %s %s failed validation: %s",
                contract.method.value, contract.path, ", ".join(str(v) for v in violations),
            )
            error = ResponseValidationError(
                _summary("Response does not match schema", contract, violations),
                violations,
                status=raw.status,
                raw_payload=raw.payload,
            )
            return InvocationResult(error=error, status=raw.status, raw=raw.payload)

        return InvocationResult(value=value, status=raw.status, raw=raw.payload)


class Operation(_BaseOperation):
    """A contract bound to a blocking transport.

    Call :meth:`invoke` for a tagged :class:`InvocationResult`, or call the
    operation directly to get the value and have failures raised.
    """

    def invoke(
        self,
        request: Optional[InvocationRequest] = None,
        *,
        path_params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> InvocationResult:
        """Validate, dispatch once, and validate the reply.

        Raises:
            ContractConfigurationError: Only for declaration defects; every
                other failure is returned in the result.
        """
        try:
            prepared = self.prepare(request, path_params=path_params, body=body)
        except InputValidationError as exc:
            logger.debug("%s; nothing sent", exc)
            return InvocationResult(error=exc)

        logger.debug("Dispatching %s %s", prepared.method.value, prepared.url)
        try:
            raw = self._transport.send(prepared.method.value, prepared.url, prepared.payload)
        except TransportFailure as exc:
            return InvocationResult(error=exc)
        return self._finish(raw)

    def __call__(
        self,
        request: Optional[InvocationRequest] = None,
        *,
        path_params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        return self.invoke(request, path_params=path_params, body=body).unwrap()


class AsyncOperation(_BaseOperation):
    """A contract bound to a coroutine transport.

    Identical to :class:`Operation` except that :meth:`invoke` and
    ``__call__`` are coroutines. Cancellation of the pending ``send`` is
    propagated unchanged.
    """

    async def invoke(
        self,
        request: Optional[InvocationRequest] = None,
        *,
        path_params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> InvocationResult:
        try:
            prepared = self.prepare(request, path_params=path_params, body=body)
        except InputValidationError as exc:
            logger.debug("%s; nothing sent", exc)
            return InvocationResult(error=exc)

        logger.debug("Dispatching %s %s", prepared.method.value, prepared.url)
        try:
            raw = await self._transport.send(prepared.method.value, prepared.url, prepared.payload)
        except TransportFailure as exc:
            return InvocationResult(error=exc)
        return self._finish(raw)

    async def __call__(
        self,
        request: Optional[InvocationRequest] = None,
        *,
        path_params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        result = await self.invoke(request, path_params=path_params, body=body)
        return result.unwrap()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _coerce_request(
    request: Optional[InvocationRequest],
    path_params: Optional[Mapping[str, Any]],
    body: Any,
) -> InvocationRequest:
    if request is None:
        return InvocationRequest(path_params=path_params, body=body)
    if path_params is not None or body is not None:
        raise TypeError("Pass either an InvocationRequest or path_params/body, not both")
    return request


def _summary(prefix: str, contract: Contract, violations: list[Violation]) -> str:
    fields = ", ".join(v.field for v in violations)
    return f"{prefix} for {contract.method.value} {contract.path}: {fields}"
