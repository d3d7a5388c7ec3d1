import asyncio
import datetime

import pytest
from unittest.mock import AsyncMock, MagicMock

from nationscript.core.command_handler import CommandHandler
from nationscript.core.endpoints import Endpoints
from nationscript.core.services.dump_service import DumpKind, DumpMode, DumpService
from nationscript.core.services.request_service import RequestService
from nationscript.domain.errors import EntityNotFoundError, RatelimitError
from nationscript.domain.interfaces.user_interface import UserInterface
from nationscript.domain.models.common import CallClass
from nationscript.infrastructure.resilience.api_retry import ApiRetryService

@pytest.fixture
def mock_request_service():
    return MagicMock(spec=RequestService)

@pytest.fixture
def mock_dump_service():
    return MagicMock(spec=DumpService)

@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)

@pytest.fixture
def command_handler(mock_request_service, mock_dump_service, mock_ui):
    """Fixture to create CommandHandler with mocked services."""
    return CommandHandler(
        request_service=mock_request_service,
        dump_service=mock_dump_service,
        endpoints=Endpoints(api_url="https://example.test/api"),
        ui=mock_ui,
        telegram_client_key="client-key",
    )

def test_handle_nation(command_handler: CommandHandler, mock_request_service: MagicMock, mock_ui: MagicMock):
    """Test that handle_nation fetches the shards and displays the record."""
    mock_request_service.fetch.return_value = {'name': 'Testlandia'}

    asyncio.run(command_handler.handle_nation("Testlandia", ['name']))

    request = mock_request_service.fetch.await_args.args[0]
    assert request.get_argument('nation') == 'testlandia'
    assert request.shards == ['name']
    assert request.credential is None
    mock_ui.display_record.assert_called_once_with({'name': 'Testlandia'}, title="Nation: Testlandia")

def test_handle_nation_with_password(command_handler: CommandHandler, mock_request_service: MagicMock):
    mock_request_service.fetch.return_value = {}
    asyncio.run(command_handler.handle_nation("Testlandia", ['notices'], password="hunter2"))
    request = mock_request_service.fetch.await_args.args[0]
    assert request.credential.to_headers() == {'X-Password': 'hunter2'}

def test_handle_nation_not_found(command_handler: CommandHandler, mock_request_service: MagicMock, mock_ui: MagicMock):
    """Test that API errors are displayed instead of raised."""
    mock_request_service.fetch.side_effect = EntityNotFoundError()

    asyncio.run(command_handler.handle_nation("nowhere"))

    mock_ui.display_error.assert_called_once_with("nation failed: Requested entity does not exist")
    mock_ui.display_record.assert_not_called()

def test_unexpected_error_is_displayed(command_handler: CommandHandler, mock_request_service: MagicMock, mock_ui: MagicMock):
    mock_request_service.fetch.side_effect = RuntimeError("boom")
    asyncio.run(command_handler.handle_world(['numnations']))
    mock_ui.display_error.assert_called_once_with("world failed unexpectedly: boom")

def test_calls_go_through_retry_service(mock_request_service, mock_dump_service, mock_ui):
    retry_service = MagicMock(spec=ApiRetryService)
    retry_service.execute_with_retry = AsyncMock(return_value={'name': 'Region'})
    handler = CommandHandler(mock_request_service, mock_dump_service, Endpoints(), mock_ui, retry_service=retry_service)

    asyncio.run(handler.handle_region("The Pacific", ['name']))

    func, request = retry_service.execute_with_retry.await_args.args
    assert func is mock_request_service.fetch
    assert request.get_argument('region') == 'the_pacific'
    assert retry_service.execute_with_retry.await_args.kwargs == {'endpoint_name': 'region'}
    mock_ui.display_record.assert_called_once()

def test_handle_wa_invalid_council(command_handler: CommandHandler, mock_request_service: MagicMock, mock_ui: MagicMock):
    asyncio.run(command_handler.handle_wa(3))
    mock_ui.display_error.assert_called_once()
    mock_request_service.fetch.assert_not_awaited()

def test_handle_card(command_handler: CommandHandler, mock_request_service: MagicMock, mock_ui: MagicMock):
    mock_request_service.fetch.return_value = {'id': 1, 'season': 3}
    asyncio.run(command_handler.handle_card(1, 3, ['owners']))
    request = mock_request_service.fetch.await_args.args[0]
    assert request.shards == ['card', 'owners']
    assert request.get_argument('cardid') == '1'
    mock_ui.display_record.assert_called_once_with({'id': 1, 'season': 3}, title="Card 1 (S3)")

def test_handle_version(command_handler: CommandHandler, mock_request_service: MagicMock, mock_ui: MagicMock):
    mock_request_service.api_version.return_value = 12
    asyncio.run(command_handler.handle_version())
    mock_ui.display_output.assert_called_once_with("Current API version: 12")

def test_handle_useragent(command_handler: CommandHandler, mock_request_service: MagicMock, mock_ui: MagicMock):
    mock_request_service.echo_user_agent.return_value = "bot (using nationscript)"
    asyncio.run(command_handler.handle_useragent())
    mock_ui.display_output.assert_called_once_with("bot (using nationscript)")

# --- telegram ---

def test_handle_telegram_queued(command_handler: CommandHandler, mock_request_service: MagicMock, mock_ui: MagicMock):
    mock_request_service.send_telegram.return_value = True

    asyncio.run(command_handler.handle_telegram("123", "secret", "Testlandia", recruitment=True))

    request = mock_request_service.send_telegram.await_args.args[0]
    assert request.get_argument('client') == 'client-key'
    assert request.call_class is CallClass.RECRUITMENT
    mock_ui.display_info.assert_called_once_with("Telegram 123 queued for Testlandia.")

def test_handle_telegram_not_queued(command_handler: CommandHandler, mock_request_service: MagicMock, mock_ui: MagicMock):
    mock_request_service.send_telegram.return_value = False
    asyncio.run(command_handler.handle_telegram("123", "secret", "Testlandia"))
    mock_ui.display_warning.assert_called_once()

def test_handle_telegram_is_not_retried(mock_request_service, mock_dump_service, mock_ui):
    retry_service = MagicMock(spec=ApiRetryService)
    handler = CommandHandler(mock_request_service, mock_dump_service, Endpoints(), mock_ui,
                             retry_service=retry_service, telegram_client_key="key")
    mock_request_service.send_telegram.side_effect = RatelimitError(retry_after=30)

    asyncio.run(handler.handle_telegram("123", "secret", "Testlandia"))

    mock_request_service.send_telegram.assert_awaited_once()
    retry_service.execute_with_retry.assert_not_called()
    mock_ui.display_error.assert_called_once()

def test_handle_telegram_without_client_key(mock_request_service, mock_dump_service, mock_ui):
    handler = CommandHandler(mock_request_service, mock_dump_service, Endpoints(), mock_ui)
    asyncio.run(handler.handle_telegram("123", "secret", "Testlandia"))
    mock_ui.display_error.assert_called_once()
    mock_request_service.send_telegram.assert_not_awaited()

# --- dump ---

def test_handle_dump_with_region(command_handler: CommandHandler, mock_dump_service: MagicMock, mock_ui: MagicMock):
    """Test that handle_dump filters by region and lists the kept names."""
    mock_dump_service.read.return_value = [{'name': 'Testlandia'}, {'name': 'Other'}]
    date = datetime.date(2024, 5, 1)

    asyncio.run(command_handler.handle_dump(DumpKind.NATIONS, DumpMode.LOCAL, region="Testregionia", date=date, limit=1))

    kind, mode, predicate, passed_date = mock_dump_service.read.await_args.args
    assert (kind, mode, passed_date) == (DumpKind.NATIONS, DumpMode.LOCAL, date)
    assert predicate({'region': 'testregionia'})
    mock_ui.display_info.assert_called_once_with("2 nations kept from the dump.")
    mock_ui.display_record.assert_called_once_with(['Testlandia'], title="Nations (1 of 2)")

def test_handle_dump_region_filter_needs_nations(command_handler: CommandHandler, mock_dump_service: MagicMock, mock_ui: MagicMock):
    mock_dump_service.read.return_value = []

    asyncio.run(command_handler.handle_dump(DumpKind.REGIONS, DumpMode.LOCAL, region="Testregionia"))

    mock_ui.display_warning.assert_called_once()
    assert mock_dump_service.read.await_args.args[2] is None
    mock_ui.display_record.assert_not_called()
