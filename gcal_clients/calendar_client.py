"""
Calendar API client for the MCP server.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .auth import CredentialLoader
from .errors import CalendarToolError, RemoteCallError, ValidationError
from .models import (
    DEFAULT_CALENDAR_ID,
    DEFAULT_MAX_RESULTS,
    CalendarEvent,
    CalendarInfo,
    CreateEventArgs,
    DeleteEventArgs,
    GetEventArgs,
    ListCalendarsArgs,
    ListEventsArgs,
    SearchEventsArgs,
    UpdateEventArgs,
)

logger = logging.getLogger(__name__)

SUCCESS = '✅'
ERROR_PREFIX = '❌ Error: '
CALENDAR = '📅'
SEARCH = '🔍'
ITEM = '📍'


def format_error(error) -> str:
    return f'{ERROR_PREFIX}{error}'


def is_error_text(text: str) -> bool:
    return text.startswith(ERROR_PREFIX)


def validate_required(value: Optional[str], name: str) -> str:
    """Return the trimmed value, or raise if it is missing or blank."""
    if value is None or not value.strip():
        raise ValidationError(f'{name} is required')
    return value.strip()


def parse_max_results(value: Optional[str]) -> int:
    """Parse a result limit leniently, falling back to the default."""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_MAX_RESULTS
    return number if number > 0 else DEFAULT_MAX_RESULTS


def to_rfc3339(value: str, name: str) -> str:
    """Normalize an ISO 8601 timestamp to UTC; naive input is taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as error:
        raise ValidationError(f'{name} is not a valid ISO 8601 timestamp: {value}') from error
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def _timed(value: str, name: str) -> Dict[str, str]:
    return {'dateTime': to_rfc3339(value, name), 'timeZone': 'UTC'}


def _remote_message(error: Exception) -> str:
    if isinstance(error, HttpError):
        return getattr(error, 'reason', None) or str(error)
    return str(error)


class CalendarClient:
    def __init__(self, loader: CredentialLoader, http_timeout: float = 30.0, service=None):
        self.loader = loader
        self.http_timeout = http_timeout
        self.service = service
        self._service_lock = threading.Lock()

    def get_service(self):
        """Build the Calendar API service on first use."""
        if self.service is None:
            with self._service_lock:
                if self.service is None:
                    context = self.loader.get_client()
                    http = AuthorizedHttp(context.credentials, http=httplib2.Http(timeout=self.http_timeout))
                    self.service = build('calendar', 'v3', http=http, cache_discovery=False)
        return self.service

    def _execute(self, request) -> Dict[str, Any]:
        try:
            return request.execute() or {}
        except (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError) as error:
            raise RemoteCallError(_remote_message(error)) from error

    def list_events(self, args: ListEventsArgs) -> str:
        """List upcoming events, expanded to single instances."""
        logger.info('Listing events: max=%s, calendar=%s', args.max_results, args.calendar_id)
        try:
            params = {
                'calendarId': args.calendar_id or DEFAULT_CALENDAR_ID,
                'maxResults': parse_max_results(args.max_results),
                'singleEvents': True,
                'orderBy': 'startTime',
                'timeMin': to_rfc3339(args.time_min, 'timeMin') if args.time_min else _utc_now(),
            }
            if args.time_max:
                params['timeMax'] = to_rfc3339(args.time_max, 'timeMax')

            response = self._execute(self.get_service().events().list(**params))
            events = [CalendarEvent.from_api(item) for item in response.get('items', [])]
        except CalendarToolError as error:
            logger.error('Error listing events: %s', error)
            return format_error(error)

        if not events:
            return f'{CALENDAR} No upcoming events found.'

        result = f'{CALENDAR} Found {len(events)} event(s):\n\n'
        for event in events:
            result += f'{ITEM} {event.summary}\n'
            result += f'   ID: {event.id}\n'
            result += f'   Start: {event.start}\n'
            result += f'   End: {event.end}\n'
            if event.description:
                result += f'   Description: {event.description}\n'
            if event.location:
                result += f'   Location: {event.location}\n'
            if event.attendees:
                result += f"   Attendees: {', '.join(a.email for a in event.attendees)}\n"
            result += '\n'
        return result

    def create_event(self, args: CreateEventArgs) -> str:
        """Create a new timed event in UTC."""
        logger.info('Creating event: %s', args.summary)
        try:
            summary = validate_required(args.summary, 'summary')
            start = validate_required(args.start, 'start')
            end = validate_required(args.end, 'end')

            event_body = {
                'summary': summary,
                'start': _timed(start, 'start'),
                'end': _timed(end, 'end'),
            }
            if args.description:
                event_body['description'] = args.description
            if args.location:
                event_body['location'] = args.location
            if args.attendees:
                emails = [email.strip() for email in args.attendees.split(',')]
                event_body['attendees'] = [{'email': email} for email in emails if email]

            created = CalendarEvent.from_api(self._execute(self.get_service().events().insert(
                calendarId=args.calendar_id or DEFAULT_CALENDAR_ID,
                body=event_body,
            )))
        except CalendarToolError as error:
            logger.error('Error creating event: %s', error)
            return format_error(error)

        return (
            f'{SUCCESS} Event created successfully!\n\n'
            f'{ITEM} {created.summary}\n'
            f'   ID: {created.id}\n'
            f'   Start: {created.start}\n'
            f'   End: {created.end}\n'
            f'   Link: {created.html_link}'
        )

    def update_event(self, args: UpdateEventArgs) -> str:
        """Update an event, keeping every field the caller did not supply."""
        logger.info('Updating event: %s', args.event_id)
        try:
            event_id = validate_required(args.event_id, 'eventId')
            calendar_id = args.calendar_id or DEFAULT_CALENDAR_ID

            # Times are parsed before the fetch.
            new_start = _timed(args.start, 'start') if args.start.strip() else None
            new_end = _timed(args.end, 'end') if args.end.strip() else None

            service = self.get_service()
            event = self._execute(service.events().get(calendarId=calendar_id, eventId=event_id))

            if args.summary.strip():
                event['summary'] = args.summary
            if new_start is not None:
                event['start'] = new_start
            if new_end is not None:
                event['end'] = new_end
            if args.description is not None:
                event['description'] = args.description
            if args.location is not None:
                event['location'] = args.location

            updated = CalendarEvent.from_api(self._execute(service.events().update(
                calendarId=calendar_id,
                eventId=event_id,
                body=event,
            )))
        except CalendarToolError as error:
            logger.error('Error updating event: %s', error)
            return format_error(error)

        return (
            f'{SUCCESS} Event updated successfully!\n\n'
            f'{ITEM} {updated.summary}\n'
            f'   ID: {updated.id}\n'
            f'   Start: {updated.start}\n'
            f'   End: {updated.end}'
        )

    def delete_event(self, args: DeleteEventArgs) -> str:
        logger.info('Deleting event: %s', args.event_id)
        try:
            event_id = validate_required(args.event_id, 'eventId')
            self._execute(self.get_service().events().delete(
                calendarId=args.calendar_id or DEFAULT_CALENDAR_ID,
                eventId=event_id,
            ))
        except CalendarToolError as error:
            logger.error('Error deleting event: %s', error)
            return format_error(error)

        return f'{SUCCESS} Event deleted successfully!\n   Event ID: {event_id}'

    def search_events(self, args: SearchEventsArgs) -> str:
        """Free-text search across a calendar's events."""
        logger.info('Searching events: %s', args.query)
        try:
            query = validate_required(args.query, 'query')
            response = self._execute(self.get_service().events().list(
                calendarId=args.calendar_id or DEFAULT_CALENDAR_ID,
                q=query,
                maxResults=parse_max_results(args.max_results),
                singleEvents=True,
                orderBy='startTime',
            ))
            events = [CalendarEvent.from_api(item) for item in response.get('items', [])]
        except CalendarToolError as error:
            logger.error('Error searching events: %s', error)
            return format_error(error)

        if not events:
            return f'{SEARCH} No events found matching: "{query}"'

        result = f'{SEARCH} Found {len(events)} event(s) matching "{query}":\n\n'
        for event in events:
            result += f'{ITEM} {event.summary}\n'
            result += f'   ID: {event.id}\n'
            result += f'   Start: {event.start}\n'
            if event.description:
                result += f'   Description: {event.description}\n'
            result += '\n'
        return result

    def list_calendars(self, args: Optional[ListCalendarsArgs] = None) -> str:
        """Get list of user's calendars."""
        logger.info('Listing calendars')
        try:
            response = self._execute(self.get_service().calendarList().list())
            calendars: List[CalendarInfo] = [CalendarInfo.from_api(item) for item in response.get('items', [])]
        except CalendarToolError as error:
            logger.error('Error listing calendars: %s', error)
            return format_error(error)

        if not calendars:
            return f'{CALENDAR} No calendars found.'

        result = f'{CALENDAR} Found {len(calendars)} calendar(s):\n\n'
        for calendar in calendars:
            result += f'{ITEM} {calendar.summary}\n'
            result += f'   ID: {calendar.id}\n'
            if calendar.description:
                result += f'   Description: {calendar.description}\n'
            result += f"   Primary: {'Yes' if calendar.primary else 'No'}\n"
            result += f'   Access: {calendar.access_role}\n'
            result += '\n'
        return result

    def get_event(self, args: GetEventArgs) -> str:
        logger.info('Getting event: %s', args.event_id)
        try:
            event_id = validate_required(args.event_id, 'eventId')
            event = CalendarEvent.from_api(self._execute(self.get_service().events().get(
                calendarId=args.calendar_id or DEFAULT_CALENDAR_ID,
                eventId=event_id,
            )))
        except CalendarToolError as error:
            logger.error('Error getting event: %s', error)
            return format_error(error)

        result = f'{ITEM} {event.summary}\n\n'
        result += f'ID: {event.id}\n'
        result += f'Start: {event.start}\n'
        result += f'End: {event.end}\n'
        result += f'Status: {event.status}\n'
        if event.description:
            result += f'Description: {event.description}\n'
        if event.location:
            result += f'Location: {event.location}\n'

        if event.attendees:
            result += '\nAttendees:\n'
            for attendee in event.attendees:
                result += f'  - {attendee.email} ({attendee.response_status or "no response"})\n'

        if event.entry_points:
            result += '\nConference:\n'
            for entry in event.entry_points:
                result += f'  - {entry.entry_point_type}: {entry.uri}\n'

        result += f'\nLink: {event.html_link}'
        return result
