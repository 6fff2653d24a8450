"""CareUnity CLI entrypoint.

Command-line interface for the CareUnity offline sync queue and caching
policy router.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import sqlite3
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import httpx

if TYPE_CHECKING:
    from careunity.adapters.http.httpx_transport import HttpxTransport
    from careunity.core.config.init_usecase import InitResponse
    from careunity.core.sync.sync_service import SyncQueueService
    from careunity.domain.config import CareUnityConfig

from careunity.core.config.init_usecase import CAREUNITY_DIR, DB_FILENAME
from careunity.core.errors import (
    CareUnityCliError,
    invalid_header_error,
    not_initialized_error,
)
from careunity.domain.entities import (
    CreateSyncOperation,
    ReplayResult,
    SyncOperation,
    SyncOperationStatus,
    UpdateSyncOperation,
)
from careunity.domain.exceptions import CareUnityDomainError
from careunity.domain.value_objects import HttpMethod
from careunity.version import __version__

STATUS_CHOICES = [status.value for status in SyncOperationStatus]
METHOD_CHOICES = [method.value for method in HttpMethod]


def handle_cli_errors(command_name: str):
    """Decorator to handle common CLI errors.

    Domain errors become CareUnityCliError with their hint, database errors
    get a hint about --db, and anything unexpected suggests --verbose (which
    also prints the traceback). CareUnityCliError and other click exceptions
    are re-raised to use their built-in formatting.

    Args:
        command_name: Name of the command for error messages.

    Returns:
        Decorated function with error handling.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except click.ClickException:
                raise
            except CareUnityDomainError as e:
                raise CareUnityCliError(e.message, hint=e.hint) from e
            except sqlite3.Error as e:
                raise CareUnityCliError(
                    f"Database error in {command_name}: {e}",
                    hint="Check that --db points to a database created by 'careunity init'",
                ) from e
            except Exception as e:
                ctx = click.get_current_context()
                if ctx.obj.get("verbose", False):
                    import traceback

                    traceback.print_exc()
                raise CareUnityCliError(
                    f"Unexpected error in {command_name}: {e}",
                    hint="Run with --verbose for more details",
                ) from e

        return wrapper

    return decorator


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_config(careunity_dir: Path) -> CareUnityConfig:
    """Load configuration for the given careunity directory.

    Args:
        careunity_dir: Path to the .careunity directory.

    Returns:
        CareUnityConfig with merged global and local settings.
    """
    from careunity.adapters.factory import ConfigFactory

    return ConfigFactory().create_config_provider().load(careunity_dir)


def _require_db(ctx: click.Context) -> Path:
    """Return the database path, or fail if it was never initialized."""
    db_path: Path = ctx.obj["db_path"]
    if not db_path.exists():
        not_initialized_error(db_path)
    return db_path


@contextmanager
def _queue_service(ctx: click.Context) -> Iterator[SyncQueueService]:
    """Open the sync queue for one command and close its connection after."""
    from careunity.adapters.factory import RepositoryFactory, ServiceFactory

    db_path = _require_db(ctx)
    config = _load_config(db_path.parent)
    repository = RepositoryFactory().create_sync_operation_repository(db_path)
    with repository:
        yield ServiceFactory(config).create_queue_service(repository)


def _create_transport(config: CareUnityConfig, base_url: str | None) -> HttpxTransport:
    """Create the transport used by 'queue replay'.

    Args:
        config: Loaded configuration.
        base_url: Override for [server] base_url.

    Returns:
        HttpxTransport; the caller closes it.
    """
    from careunity.adapters.factory import ServiceFactory

    return ServiceFactory(config).create_transport(base_url)


def _parse_headers(values: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated --header 'Name: value' options."""
    headers: dict[str, str] = {}
    for value in values:
        name, sep, header_value = value.partition(":")
        if not sep or not name.strip():
            invalid_header_error(value)
        headers[name.strip()] = header_value.strip()
    return headers


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def _format_operation_line(operation: SyncOperation) -> str:
    line = (
        f"{operation.id}  {operation.status.value:<10}  "
        f"{operation.method.value:<6}  {operation.url}"
    )
    if operation.retries:
        line += f"  (retries: {operation.retries})"
    if operation.error_message:
        line += f"\n    {operation.error_message}"
    return line


@click.group()
@click.version_option(version=__version__, prog_name="careunity")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-essential output.",
)
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"SQLite database (default: {CAREUNITY_DIR}/{DB_FILENAME}).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, db_path: Path | None) -> None:
    """CareUnity - offline sync queue and response caching.

    Records mutations made while offline, replays them to the server once
    it is reachable, and shows how outgoing requests are cached.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["db_path"] = db_path or Path(CAREUNITY_DIR) / DB_FILENAME
    _configure_logging(verbose)


def _report_init_results(response: InitResponse, quiet: bool) -> None:
    """Report init command results to user.

    Args:
        response: The successful InitResponse from the use case.
        quiet: If True, suppress detailed output.
    """
    assert response.careunity_dir is not None
    assert response.config_path is not None
    assert response.db_path is not None

    if response.was_reinitialized:
        click.echo(f"Reinitialized existing careunity directory at {response.careunity_dir}")
    else:
        click.echo(f"Initialized careunity at {response.careunity_dir}")

    if not quiet:
        click.echo(f"  ✓ Created {response.config_path.name}")
        click.echo(f"  ✓ Created {response.db_path.name}")
        click.echo("\nNext: Run 'careunity user add <username>' to register a user")


@cli.command()
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Reinitialize even if .careunity/ already exists.",
)
@click.option(
    "--base-url",
    type=str,
    default="http://localhost:5000",
    show_default=True,
    help="CareUnity server origin written to config.toml.",
)
@click.pass_context
@handle_cli_errors("init")
def init(ctx: click.Context, force: bool, base_url: str) -> None:
    """Initialize CareUnity in the current directory.

    Creates .careunity/ with config.toml and the careunity.db database.
    Existing data is kept when reinitializing with --force.
    """
    from careunity.adapters.factory import ConfigFactory
    from careunity.core.config.init_usecase import InitRequest, InitUseCase

    use_case = InitUseCase(db_initializer=ConfigFactory().create_db_initializer())
    response = use_case.execute(InitRequest(root=Path.cwd(), force=force, base_url=base_url))
    if not response.success:
        hint = (
            "Use 'careunity init --force' to reinitialize"
            if response.already_exists
            else "Check permissions and try again, or use --force to reinitialize"
        )
        raise CareUnityCliError(response.error or "Unknown error", hint=hint)

    _report_init_results(response, ctx.obj.get("quiet", False))


@cli.group()
def user() -> None:
    """Manage the users that own sync operations."""


@user.command(name="add")
@click.argument("username", type=str)
@click.pass_context
@handle_cli_errors("user add")
def user_add(ctx: click.Context, username: str) -> None:
    """Register USERNAME and print its id."""
    from careunity.adapters.factory import RepositoryFactory

    db_path = _require_db(ctx)
    with RepositoryFactory().create_user_repository(db_path) as users:
        user_id = users.add(username)

    if ctx.obj.get("quiet", False):
        click.echo(user_id)
    else:
        click.echo(f"Added user '{username}' with id {user_id}")


@cli.group()
def queue() -> None:
    """Record and replay deferred mutations.

    Every queue command is scoped to one user with --user-id; operations
    owned by another user behave as if they did not exist.
    """


def user_id_option(func):
    return click.option(
        "--user-id",
        "user_id",
        type=click.IntRange(min=1),
        required=True,
        help="Id of the user owning the operations.",
    )(func)


@queue.command(name="add")
@click.argument("url", type=str)
@click.option(
    "--method",
    "-m",
    type=click.Choice(METHOD_CHOICES, case_sensitive=False),
    required=True,
    help="HTTP method of the deferred request.",
)
@user_id_option
@click.option("--body", type=str, default=None, help="Serialized request body.")
@click.option(
    "--header",
    "-H",
    "headers",
    multiple=True,
    help="Request header as 'Name: value' (repeatable).",
)
@click.option("--entity-type", type=str, default=None, help="Linked domain object type.")
@click.option("--entity-id", type=str, default=None, help="Linked domain object id.")
@click.pass_context
@handle_cli_errors("queue add")
def queue_add(
    ctx: click.Context,
    url: str,
    method: str,
    user_id: int,
    body: str | None,
    headers: tuple[str, ...],
    entity_type: str | None,
    entity_id: str | None,
) -> None:
    """Record a request to URL for later delivery.

    Prints the {id, status} acknowledgement as JSON.
    """
    request = CreateSyncOperation(
        url=url,
        method=method,
        user_id=user_id,
        body=body,
        headers=_parse_headers(headers),
        entity_type=entity_type,
        entity_id=entity_id,
    )
    with _queue_service(ctx) as service:
        operation = service.create(request)
    _echo_json(operation.to_response().to_dict())


@queue.command(name="batch")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@user_id_option
@click.pass_context
@handle_cli_errors("queue batch")
def queue_batch(ctx: click.Context, file: Path, user_id: int) -> None:
    """Record every operation in FILE at once.

    FILE holds {"operations": [...]} in the camelCase wire form. Either all
    operations are stored or, if any is invalid, none is.
    """
    try:
        data = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise CareUnityCliError(f"Invalid JSON in {file}: {e}") from e

    if not isinstance(data, dict) or "operations" not in data:
        raise CareUnityCliError(
            f"{file} has no 'operations' list",
            hint='Expected {"operations": [{"url": ..., "method": ...}, ...]}',
        )

    with _queue_service(ctx) as service:
        responses = service.submit_batch(user_id, data["operations"])
    _echo_json([response.to_dict() for response in responses])


@queue.command(name="list")
@user_id_option
@click.option(
    "--status",
    type=click.Choice(STATUS_CHOICES),
    default=None,
    help="Only show operations in this status.",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results as JSON.",
)
@click.pass_context
@handle_cli_errors("queue list")
def queue_list(
    ctx: click.Context, user_id: int, status: str | None, json_output: bool
) -> None:
    """List a user's operations, newest first."""
    with _queue_service(ctx) as service:
        operations = service.list_operations(user_id, status)

    if json_output:
        _echo_json([operation.to_dict() for operation in operations])
        return

    if not operations:
        if not ctx.obj.get("quiet", False):
            click.echo("No sync operations", err=True)
        return
    for operation in operations:
        click.echo(_format_operation_line(operation))


@queue.command(name="show")
@click.argument("operation_id", metavar="ID", type=str)
@user_id_option
@click.pass_context
@handle_cli_errors("queue show")
def queue_show(ctx: click.Context, operation_id: str, user_id: int) -> None:
    """Print one operation as JSON."""
    with _queue_service(ctx) as service:
        operation = service.get(operation_id, user_id)
    _echo_json(operation.to_dict())


@queue.command(name="update")
@click.argument("operation_id", metavar="ID", type=str)
@user_id_option
@click.option(
    "--status",
    type=click.Choice(STATUS_CHOICES),
    required=True,
    help="New status.",
)
@click.option(
    "--error-message",
    type=str,
    default=None,
    help="Failure description (only with --status error).",
)
@click.option(
    "--retries",
    type=click.IntRange(min=0),
    default=None,
    help="Replacement retry count.",
)
@click.pass_context
@handle_cli_errors("queue update")
def queue_update(
    ctx: click.Context,
    operation_id: str,
    user_id: int,
    status: str,
    error_message: str | None,
    retries: int | None,
) -> None:
    """Change the status of an operation.

    Allowed changes: pending -> processing -> completed or error, and
    error -> pending.
    """
    update = UpdateSyncOperation(status=status, error_message=error_message, retries=retries)
    with _queue_service(ctx) as service:
        operation = service.update_status(operation_id, user_id, update)
    _echo_json(operation.to_dict())


@queue.command(name="delete")
@click.argument("operation_id", metavar="ID", type=str)
@user_id_option
@click.pass_context
@handle_cli_errors("queue delete")
def queue_delete(ctx: click.Context, operation_id: str, user_id: int) -> None:
    """Delete an operation."""
    with _queue_service(ctx) as service:
        service.delete(operation_id, user_id)
    if not ctx.obj.get("quiet", False):
        click.echo(f"Deleted {operation_id}")


@queue.command(name="status")
@user_id_option
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output the summary as JSON.",
)
@click.pass_context
@handle_cli_errors("queue status")
def queue_status(ctx: click.Context, user_id: int, json_output: bool) -> None:
    """Show pending and failed counts and the last sync time."""
    with _queue_service(ctx) as service:
        summary = service.status(user_id)

    if json_output:
        _echo_json(summary.to_dict())
        return

    click.echo(f"Pending: {summary.pending_count}")
    click.echo(f"Errors: {summary.error_count}")
    click.echo(f"Last sync: {summary.last_sync_time or 'never'}")


@queue.command(name="clear-completed")
@user_id_option
@click.pass_context
@handle_cli_errors("queue clear-completed")
def queue_clear_completed(ctx: click.Context, user_id: int) -> None:
    """Delete the user's completed operations."""
    with _queue_service(ctx) as service:
        deleted = service.clear_completed(user_id)
    if not ctx.obj.get("quiet", False):
        click.echo(f"Cleared {len(deleted)} completed operation(s)")


@queue.command(name="retry")
@user_id_option
@click.pass_context
@handle_cli_errors("queue retry")
def queue_retry(ctx: click.Context, user_id: int) -> None:
    """Move failed operations with retries left back to pending."""
    with _queue_service(ctx) as service:
        retried = service.retry_failed(user_id)
    if not ctx.obj.get("quiet", False):
        click.echo(f"Re-queued {len(retried)} failed operation(s)")


async def _run_replay(
    db_path: Path,
    config: CareUnityConfig,
    user_id: int,
    base_url: str | None,
    retry_failed: bool,
) -> ReplayResult:
    from careunity.adapters.factory import RepositoryFactory, ServiceFactory

    with RepositoryFactory().create_sync_operation_repository(db_path) as repository:
        async with _create_transport(config, base_url) as transport:
            engine = ServiceFactory(config).create_replay_engine(repository, transport)
            if retry_failed:
                return await engine.retry_and_replay(user_id)
            return await engine.replay_pending(user_id)


@queue.command(name="replay")
@user_id_option
@click.option(
    "--base-url",
    type=str,
    default=None,
    help="Server origin (default: [server] base_url from config).",
)
@click.option(
    "--retry-failed",
    is_flag=True,
    help="Re-queue failed operations with retries left before replaying.",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output the replay counts as JSON.",
)
@click.pass_context
@handle_cli_errors("queue replay")
def queue_replay(
    ctx: click.Context,
    user_id: int,
    base_url: str | None,
    retry_failed: bool,
    json_output: bool,
) -> None:
    """Deliver pending operations to the server, oldest first.

    Failed deliveries are recorded on the operation and do not stop the
    remaining ones.
    """
    db_path = _require_db(ctx)
    config = _load_config(db_path.parent)
    result = asyncio.run(_run_replay(db_path, config, user_id, base_url, retry_failed))

    if json_output:
        _echo_json(result.to_dict())
        return

    if result.total == 0:
        if not ctx.obj.get("quiet", False):
            click.echo("✓ Nothing to replay")
        return

    click.echo(
        f"Replayed {result.total} operation(s): "
        f"{result.processed} delivered, {result.failed} failed"
    )
    if result.failed and not ctx.obj.get("quiet", False):
        click.echo("Run 'careunity queue list --status error' to see failures", err=True)


@cli.group()
def cache() -> None:
    """Inspect the response caching policies."""


def _cache_config(ctx: click.Context) -> CareUnityConfig:
    return _load_config(ctx.obj["db_path"].parent)


@cache.command(name="routes")
@click.pass_context
@handle_cli_errors("cache routes")
def cache_routes(ctx: click.Context) -> None:
    """Print the caching policies in the order they are tried."""
    from careunity.core.caching.policies import default_policies

    policies = default_policies(_cache_config(ctx).cache)
    for index, policy in enumerate(policies, start=1):
        click.echo(
            f"{index}. {policy.name:<15} {policy.handler.value:<21} "
            f"{policy.cache_name:<24} {policy.url_pattern.pattern}"
        )
        if ctx.obj.get("quiet", False):
            continue
        details = []
        if policy.expiration.max_entries is not None:
            details.append(f"max {policy.expiration.max_entries} entries")
        if policy.expiration.max_age_seconds is not None:
            details.append(f"max age {policy.expiration.max_age_seconds}s")
        if policy.network_timeout_seconds is not None:
            details.append(f"network timeout {policy.network_timeout_seconds}s")
        click.echo(f"   {', '.join(details)}")


@cache.command(name="match")
@click.argument("url", type=str)
@click.option(
    "--method",
    "-m",
    type=click.Choice(METHOD_CHOICES, case_sensitive=False),
    default="GET",
    show_default=True,
    help="Request method.",
)
@click.pass_context
@handle_cli_errors("cache match")
def cache_match(ctx: click.Context, url: str, method: str) -> None:
    """Show which caching policy a request to URL falls under."""
    from careunity.core.caching.policies import default_policies
    from careunity.core.caching.router import match_policy

    try:
        path = httpx.URL(url).path
    except httpx.InvalidURL as e:
        raise CareUnityCliError(f"Invalid url '{url}': {e}") from e

    policy = match_policy(default_policies(_cache_config(ctx).cache), method.upper(), path)
    if policy is None:
        click.echo("No matching policy: request goes to the network")
        return
    click.echo(f"{policy.name}: {policy.handler.value} ({policy.cache_name})")


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
