"""Typer CLI for openreq.

Commands:

* ``operations`` -- list the document's operation catalog.
* ``parameters KEY`` -- show one operation's parameters and body media types.
* ``call KEY`` -- assemble one request and dispatch it.
* ``batch FILE`` -- run a JSON array of items sequentially.
* ``profile list|show|save`` -- manage saved profiles.

The document comes from ``--schema`` (URL, file, or ``-``), the environment,
``./openreq.json``, or a saved profile; see :func:`openreq.config.resolve_profile`.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import contextlib
import json
import signal
import sys
from pathlib import Path
from typing import Any, Iterator, Optional

import typer

from openreq import __version__
from openreq.exceptions import InvalidUsageError, OpenreqError
from openreq.exit_codes import EXIT_GENERIC_FAILURE
from openreq.models import BatchItem, OperationDefinition, ParameterType
from openreq.output import OutputFormat, OutputManager, get_output, set_output


app = typer.Typer(
    name="openreq",
    help="Call any OpenAPI/Swagger described API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"openreq {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show version and exit.",
    ),
    schema: Optional[str] = typer.Option(
        None, "--schema", "-s", help="Document URL, file path, or '-' for stdin."
    ),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Profile name to use."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override servers[0].url."),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Print requests without sending them."),
) -> None:
    """Initialise output and store shared options in ``ctx.obj``."""
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["schema"] = schema
    ctx.obj["profile"] = profile
    ctx.obj["base_url"] = base_url
    ctx.obj["dry_run"] = dry_run


@contextlib.contextmanager
def _handle_errors() -> Iterator[None]:
    """Print an :class:`OpenreqError` and exit with its code."""
    try:
        yield
    except OpenreqError as exc:
        get_output().error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _load(ctx: typer.Context):  # noqa: ANN202
    """Resolve the profile and load its document."""
    from openreq.config import resolve_profile
    from openreq.parser import load_from_settings

    obj = ctx.obj or {}
    profile = resolve_profile(
        cli_profile=obj.get("profile"),
        cli_schema=obj.get("schema"),
        cli_base_url=obj.get("base_url"),
    )
    get_output().debug(f"Using profile: {profile.name}")
    return load_from_settings(profile.schema_), profile


def parse_cli_value(raw: str, declared: Optional[ParameterType] = None) -> Any:
    """Convert a command-line value to the kind its parameter declares.

    A ``string`` parameter keeps the raw text, so ``123`` stays ``"123"``.
    Anything else is parsed as JSON when possible: ``7`` becomes an int,
    ``true`` a bool and ``[1,2]`` a list, while ``abc`` stays a string.
    """
    if declared is ParameterType.STRING:
        return raw
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        return raw


def parse_param_options(
    params: list[str], operation: Optional[OperationDefinition] = None
) -> dict[str, Any]:
    """Turn ``location|name=value`` options into an assembler value map.

    With *operation* given, each value is converted by its parameter's
    declared type (see :func:`parse_cli_value`).

    Raises:
        InvalidUsageError: If an option lacks ``=`` or the ``location|`` prefix.
    """
    declared = {param.key: param.type for param in operation.parameters} if operation else {}
    values: dict[str, Any] = {}
    for option in params:
        key, sep, raw = option.partition("=")
        key = key.strip()
        if not sep or "|" not in key:
            raise InvalidUsageError(
                f"Invalid --param '{option}': expected location|name=value"
            )
        values[key] = parse_cli_value(raw, declared.get(key))
    return values


def parse_header_options(headers: list[str]) -> dict[str, str]:
    """Turn ``Name: Value`` options into a header mapping."""
    result: dict[str, str] = {}
    for option in headers:
        name, sep, value = option.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid --header '{option}': expected Name: Value")
        result[name.strip()] = value.strip()
    return result


@app.command("operations")
def operations_command(ctx: typer.Context) -> None:
    """List every operation declared by the document."""
    from openreq.catalog import list_operations

    with _handle_errors():
        document, _ = _load(ctx)
        entries = list_operations(document)

    get_output().print_catalog(entries)


@app.command("parameters")
def parameters_command(
    ctx: typer.Context,
    operation: str = typer.Argument(..., help="Operation key, e.g. 'get|/pets/{id}'."),
) -> None:
    """Show the parameters and request-body media types of one operation."""
    from openreq.operations import get_operation, request_body_options

    with _handle_errors():
        document, _ = _load(ctx)
        definition = get_operation(document, operation)

    get_output().print_operation(definition, request_body_options(definition))


@app.command("call")
def call_command(
    ctx: typer.Context,
    operation: str = typer.Argument(..., help="Operation key, e.g. 'get|/pets/{id}'."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Parameter as location|name=value (repeatable)."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Custom header as 'Name: Value' (repeatable)."
    ),
    media_type: Optional[str] = typer.Option(None, "--media-type", "-m", help="Body media type."),
    body: Optional[str] = typer.Option(None, "--body", "-d", help="Body payload (JSON or text)."),
) -> None:
    """Assemble and send one request."""
    from openreq.assembler import build_request
    from openreq.auth import authenticate
    from openreq.client import HttpTransport
    from openreq.operations import get_operation

    with _handle_errors():
        document, profile = _load(ctx)
        definition = get_operation(document, operation)
        item = BatchItem(
            operation=operation,
            parameters=parse_param_options(param or [], definition),
            body_media_type=media_type,
            body=parse_cli_value(body) if body is not None else None,
            headers=parse_header_options(header or []),
        )
        request = build_request(document, item, base_url=profile.base_url)
        get_output().debug(f"{request.method} {request.url}")

        dry_run = bool((ctx.obj or {}).get("dry_run"))
        auth = None if dry_run else authenticate(profile.auth)
        with HttpTransport(profile.request, auth=auth, dry_run=dry_run) as transport:
            data = transport.send(request)

    get_output().format_response(data)


@app.command("batch")
def batch_command(
    ctx: typer.Context,
    items_file: str = typer.Argument(..., help="JSON file with an array of items, or '-'."),
    continue_on_fail: Optional[bool] = typer.Option(
        None, "--continue-on-fail/--fail-fast",
        help="Turn per-item failures into error results.",
    ),
) -> None:
    """Run a batch of items sequentially and print one result per item."""
    from openreq.auth import authenticate
    from openreq.client import HttpTransport
    from openreq.runner import run_batch

    with _handle_errors():
        items = _read_items(items_file)
        document, profile = _load(ctx)
        keep_going = profile.continue_on_fail if continue_on_fail is None else continue_on_fail

        dry_run = bool((ctx.obj or {}).get("dry_run"))
        auth = None if dry_run else authenticate(profile.auth)
        with HttpTransport(profile.request, auth=auth, dry_run=dry_run) as transport:
            results = run_batch(
                document,
                items,
                transport,
                continue_on_fail=keep_going,
                base_url=profile.base_url,
            )

    get_output().print_batch_results(results)


profile_app = typer.Typer(no_args_is_help=True)
app.add_typer(profile_app, name="profile", help="Manage saved profiles.")


@profile_app.command("list")
def profile_list() -> None:
    """List saved profile names."""
    from openreq.config import get_profiles_dir, list_profiles

    names = list_profiles()
    if not names:
        get_output().info(f"No profiles in {get_profiles_dir()}")
        return
    get_output().print_table(["Name"], [[name] for name in names], title="Profiles")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(..., help="Profile name.")) -> None:
    """Print one saved profile."""
    from openreq.config import load_profile

    with _handle_errors():
        profile = load_profile(name)

    get_output().format_response(profile.model_dump(mode="json", by_alias=True))


@profile_app.command("save")
def profile_save(
    name: str = typer.Argument(..., help="Profile name."),
    schema: str = typer.Option(..., "--schema", "-s", help="Document URL or file path."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override servers[0].url."),
    auth_type: str = typer.Option("none", "--auth-type", help="none, api_key, bearer or basic."),
    auth_name: Optional[str] = typer.Option(
        None, "--auth-name", help="api_key header or query name."
    ),
    auth_location: str = typer.Option(
        "header", "--auth-location", help="api_key location: header or query."
    ),
    auth_source: Optional[str] = typer.Option(
        None, "--auth-source", help="Credential source: env:VAR, file:PATH or value:TEXT."
    ),
    continue_on_fail: bool = typer.Option(
        False, "--continue-on-fail", help="Default batch failure policy for this profile."
    ),
) -> None:
    """Create or replace a saved profile.

    Example::

        openreq profile save pets -s https://pets.test/openapi.json \\
            --auth-type bearer --auth-source env:PETS_TOKEN
    """
    from openreq.config import save_profile
    from openreq.models import AuthConfig, Profile, SchemaSource

    profile = Profile(
        name=name,
        schema=SchemaSource(input="url", url=schema),
        base_url=base_url,
        auth=AuthConfig(
            type=auth_type, name=auth_name, location=auth_location, source=auth_source
        ),
        continue_on_fail=continue_on_fail,
    )
    with _handle_errors():
        location = save_profile(profile)

    get_output().info(f"Saved profile '{name}' to {location}")


def _read_items(source: str) -> list[Any]:
    try:
        text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidUsageError(f"Cannot read items file {source}: {exc}") from exc
    try:
        items = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"Items file {source} is not valid JSON: {exc}") from exc
    if not isinstance(items, list):
        raise InvalidUsageError(f"Items file {source} must contain a JSON array")
    return items


def _setup_signal_handlers() -> None:
    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """Console-script entry point.

    :class:`~openreq.exceptions.OpenreqError` escaping a command exits with
    its ``exit_code``; anything else exits with a generic failure.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except OpenreqError as exc:
        get_output().error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        get_output().error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
