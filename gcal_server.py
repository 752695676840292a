"""
Google Calendar MCP server.

Exposes seven Calendar operations as MCP tools over stdio.
"""

import logging
import sys
from typing import Any, Callable, Dict, List, Mapping, Optional

import anyio
import anyio.to_thread
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from gcal_clients.auth import CredentialLoader
from gcal_clients.calendar_client import CalendarClient, format_error, is_error_text
from gcal_clients.config import Settings
from gcal_clients.models import (
    CreateEventArgs,
    DeleteEventArgs,
    GetEventArgs,
    ListCalendarsArgs,
    ListEventsArgs,
    SearchEventsArgs,
    ToolResult,
    UpdateEventArgs,
)

logger = logging.getLogger('gcal_server')

SERVER_NAME = 'google-calendar'
SERVER_VERSION = '1.0.0'


def _string(description: str) -> Dict[str, str]:
    return {'type': 'string', 'description': description}


CALENDAR_ID_PROPERTY = _string('Calendar ID (default: primary)')

TOOLS: List[Tool] = [
    Tool(
        name='list_events',
        description='List upcoming calendar events',
        inputSchema={
            'type': 'object',
            'properties': {
                'maxResults': _string('Maximum number of events to return (default: 10)'),
                'calendarId': CALENDAR_ID_PROPERTY,
                'timeMin': _string('Start time (ISO 8601 format, optional)'),
                'timeMax': _string('End time (ISO 8601 format, optional)'),
            },
        },
    ),
    Tool(
        name='create_event',
        description='Create a new calendar event',
        inputSchema={
            'type': 'object',
            'properties': {
                'summary': _string('Event title/summary'),
                'start': _string('Start time (ISO 8601 format)'),
                'end': _string('End time (ISO 8601 format)'),
                'description': _string('Event description (optional)'),
                'location': _string('Event location (optional)'),
                'attendees': _string('Comma-separated list of attendee emails (optional)'),
                'calendarId': CALENDAR_ID_PROPERTY,
            },
            'required': ['summary', 'start', 'end'],
        },
    ),
    Tool(
        name='update_event',
        description='Update an existing calendar event',
        inputSchema={
            'type': 'object',
            'properties': {
                'eventId': _string('Event ID to update'),
                'summary': _string('New event title/summary (optional)'),
                'start': _string('New start time (ISO 8601 format, optional)'),
                'end': _string('New end time (ISO 8601 format, optional)'),
                'description': _string('New event description (optional)'),
                'location': _string('New event location (optional)'),
                'calendarId': CALENDAR_ID_PROPERTY,
            },
            'required': ['eventId'],
        },
    ),
    Tool(
        name='delete_event',
        description='Delete a calendar event',
        inputSchema={
            'type': 'object',
            'properties': {
                'eventId': _string('Event ID to delete'),
                'calendarId': CALENDAR_ID_PROPERTY,
            },
            'required': ['eventId'],
        },
    ),
    Tool(
        name='search_events',
        description='Search for events by keyword',
        inputSchema={
            'type': 'object',
            'properties': {
                'query': _string('Search query'),
                'maxResults': _string('Maximum number of results (default: 10)'),
                'calendarId': CALENDAR_ID_PROPERTY,
            },
            'required': ['query'],
        },
    ),
    Tool(
        name='list_calendars',
        description='List all available calendars',
        inputSchema={'type': 'object', 'properties': {}},
    ),
    Tool(
        name='get_event',
        description='Get detailed information about a specific event',
        inputSchema={
            'type': 'object',
            'properties': {
                'eventId': _string('Event ID'),
                'calendarId': CALENDAR_ID_PROPERTY,
            },
            'required': ['eventId'],
        },
    ),
]

# Tool name -> (argument record, client method name)
HANDLERS = {
    'list_events': (ListEventsArgs, 'list_events'),
    'create_event': (CreateEventArgs, 'create_event'),
    'update_event': (UpdateEventArgs, 'update_event'),
    'delete_event': (DeleteEventArgs, 'delete_event'),
    'search_events': (SearchEventsArgs, 'search_events'),
    'list_calendars': (ListCalendarsArgs, 'list_calendars'),
    'get_event': (GetEventArgs, 'get_event'),
}

# Initialize client
calendar_client: Optional[CalendarClient] = None


def get_calendar_client() -> CalendarClient:
    global calendar_client
    if calendar_client is None:
        settings = Settings.from_env()
        loader = CredentialLoader(settings.credentials_path, settings.token_path)
        calendar_client = CalendarClient(loader, http_timeout=settings.http_timeout)
    return calendar_client


def list_tools() -> List[Tool]:
    return TOOLS


def call_tool(name: str, arguments: Optional[Mapping[str, Any]] = None,
              client: Optional[CalendarClient] = None) -> ToolResult:
    """Run one tool call and return its text; never raises."""
    if name not in HANDLERS:
        logger.error('Unknown tool requested: %s', name)
        return ToolResult(text=format_error(f'Unknown tool: {name}'), is_error=True)

    args_type, method_name = HANDLERS[name]
    try:
        client = client or get_calendar_client()
        args = args_type.from_arguments(arguments or {})
        method: Callable[..., str] = getattr(client, method_name)
        text = method(args)
    except Exception as e:
        logger.exception('Error executing tool %s', name)
        return ToolResult(text=format_error(e), is_error=True)

    return ToolResult(text=text, is_error=is_error_text(text))


class ToolCallFailed(Exception):
    """Raised to the MCP SDK so the tool result is flagged with isError."""


def create_server(client: Optional[CalendarClient] = None) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)
    # One call at a time; the Google HTTP transport is not thread-safe.
    limiter = anyio.CapacityLimiter(1)

    @server.list_tools()
    async def handle_list_tools() -> List[Tool]:
        return list_tools()

    # Arguments are coerced and validated by call_tool, not by the SDK schema check.
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
        result = await anyio.to_thread.run_sync(
            lambda: call_tool(name, arguments, client), limiter=limiter
        )
        if result.is_error:
            raise ToolCallFailed(result.text)
        return [TextContent(type='text', text=result.text)]

    return server


async def run_server(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        logger.info('Google Calendar MCP server running on stdio')
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )
    logger.info('Starting Google Calendar MCP server...')

    loader = CredentialLoader(settings.credentials_path, settings.token_path)
    if loader.check_files():
        logger.error('Credentials or token file not found!')
        logger.error('Expected credentials at: %s', settings.credentials_path)
        logger.error('Expected token at: %s', settings.token_path)
        logger.error('Please run gcal-mcp-auth first.')
        sys.exit(1)

    client = CalendarClient(loader, http_timeout=settings.http_timeout)
    try:
        anyio.run(run_server, create_server(client))
    except Exception:
        logger.exception('Fatal error')
        sys.exit(1)


if __name__ == "__main__":
    main()
