"""Exception hierarchy for vaultspec.

All exceptions inherit from :class:`VaultSpecError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`vaultspec.exit_codes`.
Generated operations return most of these inside an
:class:`~vaultspec.engine.command.InvocationResult`; ``unwrap()`` re-raises
them, so every failure kind stays distinguishable by type at the catch site.

Subclass hierarchy::

    VaultSpecError (exit 1)
    +-- ContractConfigurationError (exit 8)
    +-- UnknownOperationError      (exit 2)
    +-- InputValidationError       (exit 2)
    |   +-- PathValidationError
    |   +-- BodyValidationError
    +-- TransportFailure           (exit 6)
    |   +-- ServiceError           (exit 5)
    +-- ResponseValidationError    (exit 9)
    +-- ConfigError                (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from vaultspec.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_CONTRACT_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_RESPONSE_INVALID,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    from vaultspec.engine.validation import Violation


class VaultSpecError(Exception):
    """Base exception for all vaultspec errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ContractConfigurationError(VaultSpecError):
    """Raised when a contract's URL template and path schema disagree.

    This is an authoring defect in a declaration, never a problem with
    caller input, so it is always raised rather than returned.
    """

    exit_code = EXIT_CONTRACT_ERROR


class UnknownOperationError(VaultSpecError):
    """Raised when a registry lookup names an operation that is not declared."""

    exit_code = EXIT_INVALID_USAGE


class InputValidationError(VaultSpecError):
    """Caller input failed a contract validator before anything was sent.

    Args:
        message: Summary line.
        violations: Every offending field, as reported by the validator.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, message: str, violations: list[Violation]):
        super().__init__(message)
        self.violations = list(violations)

    @property
    def fields(self) -> list[str]:
        """Dotted names of the offending fields, in report order."""
        return [v.field for v in self.violations]


class PathValidationError(InputValidationError):
    """Path parameters failed the contract's path schema."""


class BodyValidationError(InputValidationError):
    """The request body failed the contract's body schema."""


class TransportFailure(VaultSpecError):
    """Raised on network-level failures reported by the transport.

    The engine propagates these unchanged; retry policy belongs to the
    caller or the transport.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ServiceError(TransportFailure):
    """Vault answered, but with a non-success HTTP status.

    Args:
        status: The HTTP status code.
        payload: The decoded response body, if any.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, status: int, payload: Any = None):
        self.status = status
        self.payload = payload
        self.errors: list[str] = []
        if isinstance(payload, dict) and isinstance(payload.get("errors"), list):
            self.errors = [str(e) for e in payload["errors"]]
        detail = "; ".join(self.errors)
        message = f"HTTP {status}: {detail}" if detail else f"HTTP {status}"
        super().__init__(message)


class ResponseValidationError(VaultSpecError):
    """Vault's response payload does not match the declared response schema.

    The raw payload and status are kept so the caller can diagnose drift
    between the declaration and the live service.

    Args:
        message: Summary line.
        violations: Every offending field in the payload.
        status: The HTTP status code that accompanied the payload.
        raw_payload: The decoded payload exactly as received.
    """

    exit_code = EXIT_RESPONSE_INVALID

    def __init__(
        self,
        message: str,
        violations: list[Violation],
        status: int,
        raw_payload: Optional[Any] = None,
    ):
        super().__init__(message)
        self.violations = list(violations)
        self.status = status
        self.raw_payload = raw_payload

    @property
    def fields(self) -> list[str]:
        """Dotted names of the offending fields, in report order."""
        return [v.field for v in self.violations]


class ConfigError(VaultSpecError):
    """Raised for configuration problems (invalid JSON, bad token sources)."""

    exit_code = EXIT_GENERIC_FAILURE
