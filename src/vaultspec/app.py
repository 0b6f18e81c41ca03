"""Typer application and CLI entry point for vaultspec.

The CLI is a thin shell over the client facade:

* ``vaultspec operations`` -- list every registered operation.
* ``vaultspec call NAME`` -- invoke one operation with ``--path key=value``
  parameters and a ``--body`` JSON document, printing the validated result.
* ``vaultspec config show|set`` -- inspect or edit the config file.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.
"""

from __future__ import annotations

import json
import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from vaultspec import __version__
from vaultspec.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE

app = typer.Typer(
    name="vaultspec",
    help="Typed Vault API client built from declarative operation contracts.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

config_app = typer.Typer(no_args_is_help=True)
app.add_typer(config_app, name="config", help="Configuration management.")

_SETTABLE_KEYS = {
    "address": ("address",),
    "api_version": ("api_version",),
    "namespace": ("namespace",),
    "token_source": ("token_source",),
    "timeout": ("request", "timeout"),
    "verify_ssl": ("request", "verify_ssl"),
    "max_retries": ("request", "max_retries"),
}


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"vaultspec {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show version and exit.",
    ),
    address: Optional[str] = typer.Option(
        None, "--address", "-a", help="Vault address (overrides VAULT_ADDR)."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", "-t", help="Vault token (overrides VAULT_TOKEN)."
    ),
    namespace: Optional[str] = typer.Option(
        None, "--namespace", "-N", help="Vault namespace (overrides VAULT_NAMESPACE)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Initialise output and stash connection overrides in ``ctx.obj``."""
    from vaultspec.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if verbose:
        _enable_debug_logging(no_color)

    ctx.ensure_object(dict)
    ctx.obj["address"] = address
    ctx.obj["token"] = token
    ctx.obj["namespace"] = namespace


def _enable_debug_logging(no_color: bool) -> None:
    """Route the ``vaultspec`` logger to stderr at DEBUG level."""
    logger = logging.getLogger("vaultspec")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True, no_color=no_color),
            show_time=False,
            show_path=False,
        )
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


# ------------------------------------------------------------------ #
# operations / call
# ------------------------------------------------------------------ #


@app.command("operations")
def list_operations() -> None:
    """List every registered operation."""
    from vaultspec.contracts import REGISTRY
    from vaultspec.output import get_output

    rows = [
        [name, contract.method.value, contract.path, contract.summary]
        for name, contract in sorted(REGISTRY.items())
    ]
    get_output().print_table(["Operation", "Method", "Path", "Summary"], rows, title="Operations")


@app.command("call")
def call_operation(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Operation name, e.g. token.lookup-self."),
    path: list[str] = typer.Option(
        [], "--path", "-P", help="Path parameter as key=value (repeatable)."
    ),
    body: Optional[str] = typer.Option(
        None, "--body", "-b", help="Request body as JSON, or @file to read it from a file."
    ),
) -> None:
    """Invoke one operation and print its validated result."""
    from vaultspec.client import VaultClient
    from vaultspec.config import resolve_config
    from vaultspec.exceptions import VaultSpecError
    from vaultspec.output import get_output

    output = get_output()
    obj = ctx.obj or {}

    try:
        path_params = _parse_path_params(path)
        parsed_body = _parse_body(body)
        config = resolve_config(
            cli_address=obj.get("address"),
            cli_token=obj.get("token"),
            cli_namespace=obj.get("namespace"),
        )
        with VaultClient(config) as client:
            operation = client.operation(name)
            result = operation.invoke(path_params=path_params or None, body=parsed_body)
    except VaultSpecError as exc:
        _report(exc)
        raise typer.Exit(code=exc.exit_code) from None

    if not result.ok:
        _report(result.error)
        raise typer.Exit(code=result.error.exit_code)

    output.info(f"HTTP {result.status}")
    output.format_result(result.value)


def _parse_path_params(pairs: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            from vaultspec.output import error

            error(f"Invalid --path value '{pair}'; expected key=value")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        params[key] = value
    return params


def _parse_body(body: Optional[str]) -> Any:  # noqa: ANN401
    """Parse ``--body`` as JSON; ``@path`` reads the JSON from a file."""
    if body is None:
        return None
    from vaultspec.output import error

    text = body
    if body.startswith("@"):
        try:
            with open(body[1:], encoding="utf-8") as f:
                text = f.read()
        except OSError as exc:
            error(f"Cannot read body file: {exc}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        error(f"--body is not valid JSON: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None


def _report(exc: Exception) -> None:
    """Print an error and, where available, its field violations."""
    from vaultspec.exceptions import ResponseValidationError
    from vaultspec.output import debug, error, info

    error(str(exc))
    for violation in getattr(exc, "violations", []):
        info(f"  {violation}")
    if isinstance(exc, ResponseValidationError):
        debug(f"Raw payload (HTTP {exc.status}): {json.dumps(exc.raw_payload, default=str)}")


# ------------------------------------------------------------------ #
# config
# ------------------------------------------------------------------ #


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Print the effective configuration (token masked)."""
    from vaultspec.config import config_path, resolve_config
    from vaultspec.exceptions import ConfigError
    from vaultspec.output import error, get_output, info, warning

    obj = ctx.obj or {}
    try:
        config = resolve_config(
            cli_address=obj.get("address"),
            cli_token=obj.get("token"),
            cli_namespace=obj.get("namespace"),
        )
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    data = config.model_dump(mode="json")
    if data.get("token"):
        data["token"] = data["token"][:4] + "****"
    else:
        warning("No token configured")
    info(f"Config file: {config_path()}")
    get_output().format_result(data)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help=f"One of: {', '.join(_SETTABLE_KEYS)}."),
    value: str = typer.Argument(..., help="New value."),
) -> None:
    """Set one key in the config file."""
    from vaultspec.config import load_config, save_config
    from vaultspec.exceptions import ConfigError
    from vaultspec.models import ClientConfig
    from vaultspec.output import error, success

    if key not in _SETTABLE_KEYS:
        error(f"Unknown key '{key}'. Choose from: {', '.join(_SETTABLE_KEYS)}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    try:
        data = load_config().model_dump(mode="json", exclude={"token"})
        target = data
        *parents, leaf = _SETTABLE_KEYS[key]
        for part in parents:
            target = target[part]
        target[leaf] = value
        path = save_config(ClientConfig.model_validate(data))
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    except ValueError as exc:
        error(f"Invalid value for {key}: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    success(f"Set {key} in {path}")


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from vaultspec.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``vaultspec`` console script.

    Unhandled :class:`~vaultspec.exceptions.VaultSpecError` instances cause
    a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from vaultspec.exceptions import VaultSpecError
        from vaultspec.output import error

        if isinstance(exc, VaultSpecError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
