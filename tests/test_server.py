"""Tests for the tool dispatcher and MCP wiring."""

from unittest.mock import MagicMock

import pytest
from mcp import types
from mcp.shared.memory import create_connected_server_and_client_session

import gcal_server
from gcal_server import TOOLS, call_tool, create_server, list_tools

TOOL_NAMES = [
    'list_events',
    'create_event',
    'update_event',
    'delete_event',
    'search_events',
    'list_calendars',
    'get_event',
]


def test_list_tools_returns_seven_string_schemas():
    tools = list_tools()

    assert [tool.name for tool in tools] == TOOL_NAMES
    for tool in tools:
        assert tool.inputSchema['type'] == 'object'
        for prop in tool.inputSchema['properties'].values():
            assert prop['type'] == 'string'


@pytest.mark.parametrize('name, required', [
    ('list_events', None),
    ('create_event', ['summary', 'start', 'end']),
    ('update_event', ['eventId']),
    ('delete_event', ['eventId']),
    ('search_events', ['query']),
    ('list_calendars', None),
    ('get_event', ['eventId']),
])
def test_required_parameters(name, required):
    tool = next(tool for tool in TOOLS if tool.name == name)
    assert tool.inputSchema.get('required') == required


def test_unknown_tool(client):
    result = call_tool('nonexistent_tool', {}, client)

    assert result.is_error is True
    assert 'Unknown tool: nonexistent_tool' in result.text


@pytest.mark.parametrize('name', TOOL_NAMES)
def test_known_tools_never_raise_on_empty_arguments(client, name):
    result = call_tool(name, {}, client)
    assert isinstance(result.text, str)


@pytest.mark.parametrize('name', TOOL_NAMES)
def test_client_exceptions_become_error_results(name):
    broken = MagicMock()
    getattr(broken, name).side_effect = RuntimeError('socket closed')

    result = call_tool(name, {'eventId': 'evt1', 'query': 'x', 'summary': 's', 'start': 's', 'end': 'e'}, broken)

    assert result.is_error is True
    assert result.text == '❌ Error: socket closed'


def test_validation_failure_sets_error_flag(client, fake_service):
    result = call_tool('search_events', {'query': ''}, client)

    assert result.is_error is True
    assert result.text == '❌ Error: query is required'
    assert fake_service.calls == []


def test_success_has_no_error_flag(client):
    result = call_tool('list_calendars', None, client)

    assert result.is_error is False
    assert result.text == '📅 No calendars found.'


def test_create_then_get_via_dispatcher(client):
    created = call_tool('create_event', {
        'summary': 'Team Sync',
        'start': '2025-11-27T14:00:00',
        'end': '2025-11-27T15:00:00',
    }, client)
    event_id = created.text.split('ID: ')[1].splitlines()[0]

    fetched = call_tool('get_event', {'eventId': event_id}, client)

    assert created.is_error is False
    assert 'Team Sync' in fetched.text
    assert 'Start: 2025-11-27T14:00:00' in fetched.text
    assert 'End: 2025-11-27T15:00:00' in fetched.text


def test_update_distinguishes_absent_from_empty(client, fake_service):
    fake_service.events_store['evt1'] = {
        'id': 'evt1',
        'summary': 'Retro',
        'description': 'Bring notes',
        'location': 'Room 2',
        'start': {'dateTime': '2025-11-27T14:00:00Z'},
        'end': {'dateTime': '2025-11-27T15:00:00Z'},
    }

    call_tool('update_event', {'eventId': 'evt1', 'description': ''}, client)

    body = fake_service.remote_calls('update')[0][1]['body']
    assert body['description'] == ''
    assert body['location'] == 'Room 2'


def test_default_client_is_built_from_environment(monkeypatch, credential_files):
    credentials_path, token_path = credential_files
    monkeypatch.setenv('GOOGLE_CALENDAR_CREDENTIALS_PATH', credentials_path)
    monkeypatch.setenv('GOOGLE_CALENDAR_TOKEN_PATH', token_path)
    monkeypatch.setattr(gcal_server, 'calendar_client', None)

    client = gcal_server.get_calendar_client()

    assert client is gcal_server.get_calendar_client()
    assert client.loader.credentials_path == credentials_path
    assert client.loader.token_path == token_path


@pytest.mark.anyio
async def test_mcp_handler_flags_errors(client):
    server = create_server(client)
    handler = server.request_handlers[types.CallToolRequest]

    result = await handler(types.CallToolRequest(
        method='tools/call',
        params=types.CallToolRequestParams(name='get_event', arguments={'eventId': '   '}),
    ))

    assert result.root.isError is True
    assert result.root.content[0].text == '❌ Error: eventId is required'


@pytest.mark.anyio
async def test_mcp_handler_returns_text(client):
    server = create_server(client)
    handler = server.request_handlers[types.CallToolRequest]

    result = await handler(types.CallToolRequest(
        method='tools/call',
        params=types.CallToolRequestParams(name='list_calendars', arguments={}),
    ))

    assert not result.root.isError
    assert result.root.content[0].text == '📅 No calendars found.'


@pytest.mark.anyio
async def test_session_reports_missing_required_argument(client, fake_service):
    async with create_connected_server_and_client_session(create_server(client)) as session:
        result = await session.call_tool('create_event', {})

    assert result.isError is True
    assert result.content[0].text == '❌ Error: summary is required'
    assert fake_service.calls == []


@pytest.mark.anyio
async def test_session_accepts_numeric_max_results(client, fake_service):
    async with create_connected_server_and_client_session(create_server(client)) as session:
        result = await session.call_tool('list_events', {'maxResults': 5})

    assert not result.isError
    assert result.content[0].text == '📅 No upcoming events found.'
    assert fake_service.remote_calls('list')[0][1]['maxResults'] == 5


def test_main_exits_when_files_are_missing(monkeypatch, tmp_path):
    monkeypatch.setenv('GOOGLE_CALENDAR_CREDENTIALS_PATH', str(tmp_path / 'credentials.json'))
    monkeypatch.setenv('GOOGLE_CALENDAR_TOKEN_PATH', str(tmp_path / 'token.json'))
    run = MagicMock()
    monkeypatch.setattr(gcal_server.anyio, 'run', run)

    with pytest.raises(SystemExit) as excinfo:
        gcal_server.main()

    assert excinfo.value.code == 1
    run.assert_not_called()
