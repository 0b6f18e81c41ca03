"""Schema contracts -- inert declarations of one remote operation.

A :class:`Contract` names an HTTP verb, a URL template with ``{{name}}``
placeholders, and up to three validators:

* ``path_schema`` -- a pydantic model whose fields are the placeholders.
* ``body_schema`` -- any type pydantic can validate (normally a
  :class:`RequestModel` subclass).
* ``response_schema`` -- any type pydantic can validate (normally a
  :class:`ResponseModel` subclass, or :data:`Opaque`).

Validator vocabulary, expressed with ordinary typing constructs:

=====================  ==============================================
required               ``name: str``
optional               ``ttl: str = None`` (omitted when unset, null rejected)
optional + nullable    ``expire_time: Optional[str] = None``
default                ``renewable: bool = True``
nullable               ``lease_id: Optional[str]`` (present, may be null)
nullable + default     ``auth: Optional[TokenAuth] = None``
union / array / record ``int | str``, ``list[str]``, ``dict[str, str]``
opaque passthrough     ``wrap_info: Opaque``
=====================  ==============================================

A contract performs no consistency checks of its own; the command generator
asserts that placeholders and path-schema fields match when it binds the
contract to a transport.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from vaultspec.models import HTTPMethod

Opaque = Any
"""Passthrough validator: accepts any well-formed value and keeps it verbatim."""

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


class RequestModel(BaseModel):
    """Base class for path and body validators.

    Unknown keys are rejected so a misspelled field is reported before any
    request is sent.
    """

    model_config = ConfigDict(extra="forbid")


class ResponseModel(BaseModel):
    """Base class for response validators.

    Unknown keys are kept (``model_extra``) so a validated payload never
    silently loses data the service returned.
    """

    model_config = ConfigDict(extra="allow")


class Contract(BaseModel):
    """Immutable description of one remote operation.

    Attributes:
        method: The HTTP verb.
        path: URL template relative to the API version root, e.g.
            ``/auth/token/roles/{{role_name}}``.
        path_schema: Validator for path parameters, or ``None``.
        body_schema: Validator for the request body, or ``None``.
        body_required: Whether callers must supply a body when
            ``body_schema`` is set.
        response_schema: Validator for the response payload, or ``None``
            to return the raw payload.
        summary: One-line description shown by ``vaultspec operations``.
        docs_url: Link to the upstream API documentation.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    method: HTTPMethod
    path: str
    path_schema: Optional[type[BaseModel]] = None
    body_schema: Optional[Any] = None
    body_required: bool = True
    response_schema: Optional[Any] = None
    summary: str = ""
    docs_url: Optional[str] = Field(default=None)

    @property
    def placeholders(self) -> list[str]:
        """Placeholder names in template order."""
        return placeholders(self.path)


def placeholders(template: str) -> list[str]:
    """Return the ``{{name}}`` placeholder names in *template*, in order.

    Example::

        >>> placeholders("/auth/token/roles/{{role_name}}")
        ['role_name']
    """
    return _PLACEHOLDER_RE.findall(template)


def substitute(template: str, values: dict[str, str]) -> str:
    """Replace each ``{{name}}`` in *template* with ``values[name]``.

    Values are inserted as given; callers encode them first. Placeholders
    without a value are left untouched so the caller can detect them with
    :func:`placeholders`.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        return values.get(name, match.group(0))

    return _PLACEHOLDER_RE.sub(_replace, template)
