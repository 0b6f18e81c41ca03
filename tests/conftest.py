"""Shared test fixtures for vaultspec.

Provides stub transports that record every dispatch, canned Vault payloads,
isolated config directories, and output-state resets. These fixtures are
discovered by pytest automatically.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Optional

import pytest

from vaultspec.output import OutputManager, reset_output, set_output
from vaultspec.transport.base import RawResponse

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Stub transports
# ---------------------------------------------------------------------------


class StubTransport:
    """Blocking transport that records calls and replays queued replies.

    Each queued reply is either a :class:`RawResponse` or an exception to
    raise. When the queue is empty the last reply is repeated.
    """

    def __init__(self, *replies: Any) -> None:
        self.replies = list(replies) or [RawResponse(status=204)]
        self.calls: list[tuple[str, str, Any]] = []
        self.closed = False

    def send(self, method: str, url: str, payload: Optional[Any] = None) -> RawResponse:
        self.calls.append((method, url, copy.deepcopy(payload)))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def close(self) -> None:
        self.closed = True


class AsyncStubTransport(StubTransport):
    """Coroutine flavour of :class:`StubTransport`."""

    async def send(self, method: str, url: str, payload: Optional[Any] = None) -> RawResponse:  # type: ignore[override]
        return StubTransport.send(self, method, url, payload)


@pytest.fixture
def make_transport() -> type[StubTransport]:
    """Factory for recording blocking transports: ``make_transport(*replies)``."""
    return StubTransport


@pytest.fixture
def make_async_transport() -> type[AsyncStubTransport]:
    """Factory for recording coroutine transports."""
    return AsyncStubTransport


# ---------------------------------------------------------------------------
# Payload fixtures
# ---------------------------------------------------------------------------


def load_fixture(name: str) -> Any:
    """Load a JSON fixture file."""
    return json.loads((FIXTURES_DIR / name).read_text(encoding="utf-8"))


@pytest.fixture
def create_token_payload() -> dict[str, Any]:
    """Successful create-token reply with a null auth block."""
    return {
        "request_id": "r1",
        "lease_id": None,
        "renewable": False,
        "lease_duration": 0,
        "data": None,
        "wrap_info": None,
        "warnings": None,
        "auth": None,
    }


@pytest.fixture
def issued_token_payload() -> dict[str, Any]:
    """Create-token reply carrying a populated auth block."""
    return load_fixture("token_create.json")


@pytest.fixture
def lookup_payload() -> dict[str, Any]:
    return load_fixture("token_lookup.json")


# ---------------------------------------------------------------------------
# Output / config isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Install a quiet, colourless output manager and drop it afterwards.

    The OutputManager caches sys.stdout/sys.stderr at creation time; CliRunner
    swaps those streams, so a fresh manager is needed for every test.
    """
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at ``tmp_path`` and clears the Vault and
    vaultspec environment variables so tests never see the real user setup.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "VAULT_ADDR",
        "VAULT_TOKEN",
        "VAULT_NAMESPACE",
        "VAULT_SKIP_VERIFY",
        "VAULTSPEC_CONFIG",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("vaultspec.config._is_xdg_platform", lambda: True)
    return tmp_path
