"""Command-generation engine -- turn contracts into validated operations.

Typical usage::

    from vaultspec.engine import generate
    from vaultspec.contracts import get_contract

    op = generate(get_contract("token.lookup"), transport)
    result = op.invoke(body={"token": "hvs.abc"})

Sub-modules:

* :mod:`~vaultspec.engine.contract` -- the inert :class:`Contract`
  declaration and the validator base classes.
* :mod:`~vaultspec.engine.validation` -- structured violations and payload
  dumping.
* :mod:`~vaultspec.engine.command` -- :func:`generate` and the
  validate/substitute/send/validate pipeline.
"""

from vaultspec.engine.command import (
    AsyncOperation,
    InvocationRequest,
    InvocationResult,
    Operation,
    PreparedRequest,
    generate,
)
from vaultspec.engine.contract import Contract, Opaque, RequestModel, ResponseModel
from vaultspec.engine.validation import Violation

__all__ = [
    "AsyncOperation",
    "Contract",
    "InvocationRequest",
    "InvocationResult",
    "Opaque",
    "Operation",
    "PreparedRequest",
    "RequestModel",
    "ResponseModel",
    "Violation",
    "generate",
]
