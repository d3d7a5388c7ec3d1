"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), builds the matching
API request and delegates the work to the RequestService or DumpService,
through the ApiRetryService when one is configured. Results and errors are
rendered through the UserInterface.
"""

import datetime
import logging
from typing import Any, Callable, Coroutine, Optional, Sequence

from nationscript.core.endpoints import Endpoints
from nationscript.core.services.dump_service import DumpKind, DumpMode, DumpService, in_region
from nationscript.core.services.request_service import RequestService
from nationscript.domain.errors import NationScriptError
from nationscript.domain.interfaces.user_interface import UserInterface
from nationscript.domain.models.request import Credential
from nationscript.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        request_service: RequestService,
        dump_service: DumpService,
        endpoints: Endpoints,
        ui: UserInterface,
        retry_service: Optional[ApiRetryService] = None,
        telegram_client_key: Optional[str] = None,
    ):
        """Initializes the CommandHandler with required services."""
        self.request_service = request_service
        self.dump_service = dump_service
        self.endpoints = endpoints
        self.ui = ui
        self.retry_service = retry_service
        self.telegram_client_key = telegram_client_key

    async def _call(self, command: str, func: Callable[..., Coroutine[Any, Any, Any]], *args: Any) -> Optional[Any]:
        """Runs a service call and reports failures to the user.

        Returns the result, or None if the call failed.
        """
        try:
            if self.retry_service is not None:
                return await self.retry_service.execute_with_retry(func, *args, endpoint_name=command)
            return await func(*args)
        except NationScriptError as e:
            logger.error(f"{command} command failed: {e}")
            self.ui.display_error(f"{command} failed: {e}")
        except Exception as e:
            logger.error(f"Unexpected error in {command} command: {e}", exc_info=True)
            self.ui.display_error(f"{command} failed unexpectedly: {e}")
        return None

    async def handle_nation(self, name: str, shards: Sequence[str] = (),
                            password: Optional[str] = None, autologin: Optional[str] = None) -> None:
        """Handles the 'nation' command; a password or autologin token unlocks private shards."""
        logger.info(f"Handling 'nation' command for {name} (shards={list(shards)})")
        credential = None
        if password or autologin:
            try:
                credential = Credential(name, password=password, autologin=autologin)
            except ValueError as e:
                self.ui.display_error(f"Invalid login details: {e}")
                return
        request = self.endpoints.nation(name, shards, credential)
        result = await self._call('nation', self.request_service.fetch, request)
        if result is not None:
            self.ui.display_record(result, title=f"Nation: {name}")

    async def handle_region(self, name: str, shards: Sequence[str] = ()) -> None:
        logger.info(f"Handling 'region' command for {name} (shards={list(shards)})")
        result = await self._call('region', self.request_service.fetch, self.endpoints.region(name, shards))
        if result is not None:
            self.ui.display_record(result, title=f"Region: {name}")

    async def handle_world(self, shards: Sequence[str]) -> None:
        logger.info(f"Handling 'world' command (shards={list(shards)})")
        result = await self._call('world', self.request_service.fetch, self.endpoints.world(shards))
        if result is not None:
            self.ui.display_record(result, title="World")

    async def handle_wa(self, council: int, shards: Sequence[str] = ()) -> None:
        logger.info(f"Handling 'wa' command for council {council} (shards={list(shards)})")
        try:
            request = self.endpoints.wa(council, shards)
        except ValueError as e:
            self.ui.display_error(str(e))
            return
        result = await self._call('wa', self.request_service.fetch, request)
        if result is not None:
            self.ui.display_record(result, title=f"World Assembly ({'GA' if council == 1 else 'SC'})")

    async def handle_card(self, card_id: int, season: int, shards: Sequence[str] = ()) -> None:
        logger.info(f"Handling 'card' command for card {card_id}, season {season}")
        request = self.endpoints.card(card_id, season, shards)
        result = await self._call('card', self.request_service.fetch, request)
        if result is not None:
            self.ui.display_record(result, title=f"Card {card_id} (S{season})")

    async def handle_useragent(self) -> None:
        """Shows the user agent as the API receives it."""
        result = await self._call('useragent', self.request_service.echo_user_agent, self.endpoints.user_agent())
        if result is not None:
            self.ui.display_output(result)

    async def handle_version(self) -> None:
        result = await self._call('version', self.request_service.api_version, self.endpoints.api_version())
        if result is not None:
            self.ui.display_output(f"Current API version: {result}")

    async def handle_telegram(self, telegram_id: str, secret_key: str, recipient: str,
                              recruitment: bool = False) -> None:
        """Handles the 'telegram' command.

        Telegrams are never retried: a 429 or server error here may still have
        queued the telegram.
        """
        if not self.telegram_client_key:
            self.ui.display_error("No telegram client key configured (NATIONSCRIPT_TG_CLIENT or telegram.client_key).")
            return
        logger.info(f"Handling 'telegram' command: {telegram_id} to {recipient} (recruitment={recruitment})")
        request = self.endpoints.telegram(self.telegram_client_key, telegram_id, secret_key, recipient, recruitment)
        try:
            queued = await self.request_service.send_telegram(request)
        except NationScriptError as e:
            logger.error(f"telegram command failed: {e}")
            self.ui.display_error(f"telegram failed: {e}")
            return
        if queued:
            self.ui.display_info(f"Telegram {telegram_id} queued for {recipient}.")
        else:
            self.ui.display_warning(f"Telegram {telegram_id} to {recipient} was not queued.")

    async def handle_dump(self, kind: DumpKind, mode: DumpMode, region: Optional[str] = None,
                          date: Optional[datetime.date] = None, limit: int = 20) -> None:
        """Handles the 'dump' command.

        Reads a daily dump and shows the names of the kept items, optionally
        restricted to the nations residing in one region.
        """
        logger.info(f"Handling 'dump' command: {kind.slug}, mode={mode.value}, region={region}")
        if region and kind is not DumpKind.NATIONS:
            self.ui.display_warning("--region only filters the nations dump; ignoring it.")
            region = None
        predicate = in_region(region) if region else None
        try:
            items = await self.dump_service.read(kind, mode, predicate, date)
        except NationScriptError as e:
            logger.error(f"dump command failed: {e}")
            self.ui.display_error(f"dump failed: {e}")
            return
        self.ui.display_info(f"{len(items)} {kind.slug} kept from the dump.")
        names = [item.get('name', '?') if isinstance(item, dict) else str(item) for item in items]
        if names:
            shown = names if limit <= 0 else names[:limit]
            self.ui.display_record(shown, title=f"{kind.slug.capitalize()} ({len(shown)} of {len(names)})")
