"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~vaultspec.exceptions.VaultSpecError` subclass.
Shell wrappers can inspect the exit code to tell "my input was malformed"
apart from "Vault is unreachable" without parsing stderr.

Example::

    $ vaultspec call token.lookup-accessor --body '{}'
    $ echo $?
    2   # EXIT_INVALID_USAGE -- the body failed validation
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments, an unknown operation, or input that failed validation."""

EXIT_SERVER_ERROR = 5
"""Vault answered with a non-success HTTP status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CONTRACT_ERROR = 8
"""An operation contract is internally inconsistent (template vs. path schema)."""

EXIT_RESPONSE_INVALID = 9
"""Vault returned a payload that does not match the declared response schema."""
