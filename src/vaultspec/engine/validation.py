"""Validation helpers shared by the sync and async operations.

* :func:`validate` runs a validator and reports every violated field as a
  :class:`Violation` instead of raising pydantic's exception type.
* :func:`dump_payload` turns a validated body back into JSON-ready data:
  declared defaults are included, optional fields the caller never set are
  left out, and explicit nulls are kept.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError


@dataclass(frozen=True)
class Violation:
    """One violated constraint.

    Attributes:
        field: Dotted location of the offending value (``auth.policies.0``),
            or the container name when the whole value is at fault.
        message: Human-readable explanation from the validator.
        kind: Machine-readable error type (``missing``, ``string_type``, ...).
    """

    field: str
    message: str
    kind: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@lru_cache(maxsize=None)
def adapter_for(schema: Any) -> TypeAdapter:
    """Return a cached :class:`~pydantic.TypeAdapter` for *schema*."""
    return TypeAdapter(schema)


def violations_from(exc: PydanticValidationError, root: str = "") -> list[Violation]:
    """Convert a pydantic error into a list of :class:`Violation`.

    Args:
        exc: The pydantic validation error.
        root: Name used when an error has an empty location (the whole
            value was rejected).
    """
    result: list[Violation] = []
    for err in exc.errors(include_url=False):
        loc = ".".join(str(part) for part in err.get("loc", ()))
        result.append(
            Violation(field=loc or root, message=err["msg"], kind=err["type"])
        )
    return result


def validate(
    schema: Any, data: Any, root: str = "", strict: Optional[bool] = None,
) -> tuple[Any, list[Violation]]:
    """Validate *data* against *schema*.

    With *strict* set, values are not converted between types: ``"5"`` is not
    an ``int`` and ``"false"`` is not a ``bool``.

    Returns:
        ``(value, [])`` on success, ``(None, violations)`` on failure. Every
        violated field is reported, not just the first.
    """
    try:
        return adapter_for(schema).validate_python(data, strict=strict), []
    except PydanticValidationError as exc:
        return None, violations_from(exc, root)


def dump_payload(value: Any) -> Any:
    """Convert a validated value into JSON-ready data for dispatch."""
    if isinstance(value, BaseModel):
        out: dict[str, Any] = {}
        fields_set = value.model_fields_set
        for name, field in type(value).model_fields.items():
            if name not in fields_set and field.get_default(call_default_factory=True) is None:
                continue
            out[field.alias or name] = dump_payload(getattr(value, name))
        for key, extra in (value.model_extra or {}).items():
            out[key] = dump_payload(extra)
        return out
    if isinstance(value, dict):
        return {k: dump_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [dump_payload(v) for v in value]
    if isinstance(value, enum.Enum):
        return value.value
    return value
