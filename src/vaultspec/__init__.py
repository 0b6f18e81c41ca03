"""vaultspec -- Typed Vault API client built from declarative endpoint contracts.

Every remote operation is described once as a
:class:`~vaultspec.engine.contract.Contract` (HTTP verb, URL template, and
pydantic validators for path parameters, request body, and response body).
The generic command generator turns a contract plus a transport into a
callable operation that validates input before any network activity and
validates output after it.

Typical workflow::

    from vaultspec import VaultClient

    with VaultClient() as client:
        result = client.token.create.invoke(body={"policies": ["default"]})
        if result.ok:
            print(result.value.auth.client_token)

Modules:
    engine: Contract representation and the command generator.
    transport: httpx-backed sync and async transports.
    contracts: The read-only registry of declared Vault operations.
    client: Client facade with one typed accessor per operation.
    models: Pydantic configuration models and the HTTP verb enum.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

from vaultspec.client import AsyncVaultClient, VaultClient  # noqa: E402

__all__ = ["VaultClient", "AsyncVaultClient", "__version__"]
