"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for vaultspec:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.vaultspec/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Config file** -- a single :class:`~vaultspec.models.ClientConfig` JSON
  file (``config.json``), or the file named by ``$VAULTSPEC_CONFIG``.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags, the
  standard Vault environment variables, and the config file into the
  effective configuration.
* **Token resolution** -- :func:`resolve_token_source` reads a token from an
  ``env:`` or ``file:`` descriptor.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from vaultspec.exceptions import ConfigError
from vaultspec.models import ClientConfig

_APP_NAME = "vaultspec"
_CONFIG_FILENAME = "config.json"

_TRUTHY = {"1", "true", "yes", "on"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/vaultspec/`` (default ``~/.config/vaultspec/``).
    On macOS/Windows: ``~/.vaultspec/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/vaultspec/`` (default ``~/.local/share/vaultspec/``).
    On macOS/Windows: ``~/.vaultspec/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_path() -> Path:
    """Path of the active config file (``$VAULTSPEC_CONFIG`` wins)."""
    override = os.environ.get("VAULTSPEC_CONFIG")
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created next to *path* so that ``os.replace`` is
    an atomic rename on POSIX systems. On failure the temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Config file ---


def load_config() -> ClientConfig:
    """Load the config file.

    Returns:
        The deserialised :class:`~vaultspec.models.ClientConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = config_path()
    if not path.is_file():
        return ClientConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ClientConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: ClientConfig) -> Path:
    """Persist *config* atomically, never writing a literal token.

    Returns:
        The path written.
    """
    path = config_path()
    data = config.model_dump(mode="json", exclude={"token"})
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Precedence resolution ---


def resolve_config(
    cli_address: Optional[str] = None,
    cli_token: Optional[str] = None,
    cli_namespace: Optional[str] = None,
) -> ClientConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_address``, ``cli_token``, ``cli_namespace``)
        2. Environment variables (``VAULT_ADDR``, ``VAULT_TOKEN``,
           ``VAULT_NAMESPACE``, ``VAULT_SKIP_VERIFY``)
        3. Config file
        4. Defaults

    When no literal token results from 1-3, ``token_source`` is resolved.

    Raises:
        ConfigError: On an unreadable config file or token source.
    """
    config = load_config()
    updates: dict[str, object] = {}

    env_address = os.environ.get("VAULT_ADDR")
    env_token = os.environ.get("VAULT_TOKEN")
    env_namespace = os.environ.get("VAULT_NAMESPACE")

    address = cli_address or env_address
    if address:
        updates["address"] = address

    token = cli_token or env_token
    if token:
        updates["token"] = token

    namespace = cli_namespace or env_namespace
    if namespace:
        updates["namespace"] = namespace

    skip_verify = os.environ.get("VAULT_SKIP_VERIFY", "").strip().lower()
    if skip_verify in _TRUTHY:
        updates["request"] = config.request.model_copy(update={"verify_ssl": False})

    config = config.model_copy(update=updates)

    if not config.token and config.token_source:
        config = config.model_copy(update={"token": resolve_token_source(config.token_source)})

    return config


def resolve_token_source(source: str) -> str:
    """Resolve a token from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Token file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read token file {path}: {exc}") from exc

    raise ConfigError(f"Unknown token source format: {source}")
