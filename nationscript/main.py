"""Main entry point for the nationscript CLI.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import datetime
import logging
import sys
from typing import Any, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

from nationscript import __version__
from nationscript.core.command_handler import CommandHandler
from nationscript.core.endpoints import Endpoints
from nationscript.core.services.dump_service import DumpKind, DumpMode, DumpService
from nationscript.core.services.request_service import RequestService
from nationscript.infrastructure.cli.display import ConsoleDisplay
from nationscript.infrastructure.config.settings import (
    get_api_url,
    get_api_version,
    get_config,
    get_dump_directory,
    get_dump_url,
    get_rate_limit_policy,
    get_retry_policy,
    get_telegram_client_key,
    get_timeout,
    get_user_agent,
    load_configuration,
    use_rate_limit,
)
from nationscript.infrastructure.filesystem.dump_store import DumpStore
from nationscript.infrastructure.http.httpx_transport import HttpxTransport
from nationscript.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, resolve_level, setup_logging
from nationscript.infrastructure.resilience.api_retry import ApiRetryService
from nationscript.infrastructure.resilience.clock import SystemClock
from nationscript.infrastructure.resilience.rate_limiter import RateLimiter
from nationscript.infrastructure.resilience.telegram_limiter import TelegramRateLimiter

logger = logging.getLogger(__name__)

# Global option values collected by the callback before any command runs
_options: Dict[str, Any] = {'agent': None, 'no_rate_limit': False, 'verbose': False}
_dependencies: Optional[Dict[str, Any]] = None

# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    dependencies: Dict[str, Any] = {}

    # 1. Load Configuration First
    load_configuration()
    log_level = logging.DEBUG if _options['verbose'] else resolve_level(get_config('logging.level'))
    setup_logging(
        log_level=log_level,
        log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
        log_file=get_config('logging.file'),
    )
    logger.info("Configuration and logging initialized.")

    # 2. Infrastructure adapters
    dependencies['ui'] = ConsoleDisplay()
    clock = SystemClock()
    dependencies['rate_limiter'] = RateLimiter.from_policy(get_rate_limit_policy(), clock=clock)
    dependencies['telegram_limiter'] = TelegramRateLimiter(clock=clock)
    dependencies['api_retry_service'] = ApiRetryService.from_policy(get_retry_policy(), clock=clock)
    dependencies['transport'] = HttpxTransport(timeout=get_timeout())

    # 3. Core services
    dependencies['request_service'] = RequestService(
        transport=dependencies['transport'],
        user_agent=_options['agent'] or get_user_agent(),
        rate_limiter=dependencies['rate_limiter'],
        telegram_limiter=dependencies['telegram_limiter'],
        use_rate_limit=use_rate_limit() and not _options['no_rate_limit'],
    )
    dependencies['dump_service'] = DumpService(
        request_service=dependencies['request_service'],
        store=DumpStore(get_dump_directory()),
        dump_url=get_dump_url(),
    )

    # 4. Command Handler
    dependencies['command_handler'] = CommandHandler(
        request_service=dependencies['request_service'],
        dump_service=dependencies['dump_service'],
        endpoints=Endpoints(get_api_url(), get_api_version()),
        ui=dependencies['ui'],
        retry_service=dependencies['api_retry_service'],
        telegram_client_key=get_telegram_client_key(),
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies

def get_dependencies() -> Dict[str, Any]:
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies

def reset_dependencies() -> None:
    global _dependencies
    _dependencies = None

# --- Typer App Definition ---
app = typer.Typer(
    name="nationscript",
    help="nationscript: rate-limited client for the NationStates API.",
    add_completion=False,
)

# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, None]) -> None:
    """Runs an async command handler and releases the HTTP transport afterwards."""
    dependencies = get_dependencies()

    async def runner() -> None:
        try:
            await coro
        finally:
            await dependencies['transport'].aclose()

    try:
        asyncio.run(runner())
    finally:
        # The transport is closed, so a later command needs fresh dependencies
        reset_dependencies()

def _handler() -> CommandHandler:
    return get_dependencies()['command_handler']

# --- CLI Commands ---

ShardOption = Annotated[
    Optional[List[str]],
    typer.Option("--shard", "-q", help="Shard to request; repeat for several shards.")
]

@app.command()
def nation(
    name: Annotated[str, typer.Argument(help="Nation name.")],
    shard: ShardOption = None,
    password: Annotated[Optional[str], typer.Option(help="Password for private shards.", envvar="NATIONSCRIPT_PASSWORD")] = None,
    autologin: Annotated[Optional[str], typer.Option(help="Autologin token for private shards.")] = None,
):
    """Show a nation's shards."""
    run_async(_handler().handle_nation(name, shard or [], password=password, autologin=autologin))

@app.command()
def region(
    name: Annotated[str, typer.Argument(help="Region name.")],
    shard: ShardOption = None,
):
    """Show a region's shards."""
    run_async(_handler().handle_region(name, shard or []))

@app.command()
def world(shard: ShardOption = None):
    """Show world shards."""
    run_async(_handler().handle_world(shard or []))

@app.command()
def wa(
    council: Annotated[int, typer.Option("--council", "-c", help="1 = General Assembly, 2 = Security Council.")] = 1,
    shard: ShardOption = None,
):
    """Show World Assembly shards."""
    run_async(_handler().handle_wa(council, shard or []))

@app.command()
def card(
    card_id: Annotated[int, typer.Argument(help="Card ID (the nation's database ID).")],
    season: Annotated[int, typer.Option("--season", "-s", help="Card season.")] = 3,
    shard: ShardOption = None,
):
    """Show a trading card."""
    run_async(_handler().handle_card(card_id, season, shard or []))

@app.command()
def telegram(
    telegram_id: Annotated[str, typer.Argument(help="Telegram ID.")],
    secret_key: Annotated[str, typer.Argument(help="Telegram secret key.")],
    recipient: Annotated[str, typer.Argument(help="Recipient nation.")],
    recruitment: Annotated[bool, typer.Option("--recruitment", help="Send as a recruitment telegram.")] = False,
):
    """Send a telegram through the API."""
    run_async(_handler().handle_telegram(telegram_id, secret_key, recipient, recruitment))

@app.command()
def useragent():
    """Show the user agent as the API receives it."""
    run_async(_handler().handle_useragent())

@app.command()
def version():
    """Show the current API version."""
    run_async(_handler().handle_version())

@app.command()
def dump(
    kind: Annotated[str, typer.Argument(help="'nations' or 'regions'.")],
    mode: Annotated[DumpMode, typer.Option("--mode", "-m", help="How to obtain the dump.")] = DumpMode.DOWNLOAD_IF_CHANGED,
    region_name: Annotated[Optional[str], typer.Option("--region", "-r", help="Only keep nations of this region.")] = None,
    date: Annotated[Optional[datetime.datetime], typer.Option(formats=["%Y-%m-%d"], help="Read an archived dump.")] = None,
    limit: Annotated[int, typer.Option(help="Maximum number of names to show (0 = all).")] = 20,
):
    """Read a daily data dump."""
    kinds = {k.slug: k for k in DumpKind}
    if kind.lower() not in kinds:
        raise typer.BadParameter(f"Unknown dump '{kind}'. Choose one of: {', '.join(kinds)}.", param_hint="KIND")
    run_async(_handler().handle_dump(
        kinds[kind.lower()],
        mode,
        region=region_name,
        date=date.date() if date else None,
        limit=limit,
    ))

@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    agent: Annotated[Optional[str], typer.Option("--agent", "-a", help="User agent identifying you to the API admins.")] = None,
    no_rate_limit: Annotated[bool, typer.Option("--no-rate-limit", help="Disable the built-in rate limiting.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    show_version: Annotated[bool, typer.Option("--version", help="Show the nationscript version.")] = False,
):
    """Global options, applied before any command runs."""
    _options['agent'] = agent
    _options['no_rate_limit'] = no_rate_limit
    _options['verbose'] = verbose
    reset_dependencies()

    if show_version:
        typer.echo(f"nationscript {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    try:
        app()
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        sys.exit(130)

if __name__ == "__main__":
    cli_entry_point()
