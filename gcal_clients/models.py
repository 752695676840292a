"""
Data models for Calendar entities and tool arguments.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from google.oauth2.credentials import Credentials

DEFAULT_CALENDAR_ID = 'primary'
DEFAULT_MAX_RESULTS = 10


@dataclass
class AuthContext:
    client_id: str
    client_secret: str
    redirect_uri: str
    credentials: Credentials


@dataclass
class ToolResult:
    text: str
    is_error: bool = False


@dataclass
class Attendee:
    email: str
    response_status: str = ''


@dataclass
class ConferenceEntryPoint:
    entry_point_type: str
    uri: str


@dataclass
class CalendarEvent:
    id: str
    summary: str
    start: str
    end: str
    description: str = ''
    location: str = ''
    status: str = ''
    html_link: str = ''
    attendees: List[Attendee] = field(default_factory=list)
    entry_points: List[ConferenceEntryPoint] = field(default_factory=list)

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'CalendarEvent':
        """Build an event from a Calendar API `events` resource."""
        start = item.get('start') or {}
        end = item.get('end') or {}
        conference = item.get('conferenceData') or {}
        return cls(
            id=item.get('id', ''),
            summary=item.get('summary') or 'Untitled Event',
            start=start.get('dateTime') or start.get('date') or '',
            end=end.get('dateTime') or end.get('date') or '',
            description=item.get('description', ''),
            location=item.get('location', ''),
            status=item.get('status', ''),
            html_link=item.get('htmlLink', ''),
            attendees=[
                Attendee(email=a.get('email', ''), response_status=a.get('responseStatus', ''))
                for a in item.get('attendees', [])
            ],
            entry_points=[
                ConferenceEntryPoint(entry_point_type=e.get('entryPointType', ''), uri=e.get('uri', ''))
                for e in conference.get('entryPoints', [])
            ],
        )


@dataclass
class CalendarInfo:
    id: str
    summary: str
    description: str
    primary: bool
    access_role: str

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> 'CalendarInfo':
        return cls(
            id=item.get('id', ''),
            summary=item.get('summary') or 'Untitled Calendar',
            description=item.get('description', ''),
            primary=bool(item.get('primary', False)),
            access_role=item.get('accessRole', ''),
        )


# Tool argument records. Every value arrives as text; an absent key falls back
# to the empty string or the listed default.

def _text(arguments: Mapping[str, Any], key: str, default: str = '') -> str:
    value = arguments.get(key)
    if value is None or value == '':
        return default
    return str(value)


def _optional_text(arguments: Mapping[str, Any], key: str) -> Optional[str]:
    if key not in arguments or arguments[key] is None:
        return None
    return str(arguments[key])


@dataclass
class ListEventsArgs:
    max_results: str = str(DEFAULT_MAX_RESULTS)
    calendar_id: str = DEFAULT_CALENDAR_ID
    time_min: str = ''
    time_max: str = ''

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> 'ListEventsArgs':
        return cls(
            max_results=_text(arguments, 'maxResults', str(DEFAULT_MAX_RESULTS)),
            calendar_id=_text(arguments, 'calendarId', DEFAULT_CALENDAR_ID),
            time_min=_text(arguments, 'timeMin'),
            time_max=_text(arguments, 'timeMax'),
        )


@dataclass
class CreateEventArgs:
    summary: str = ''
    start: str = ''
    end: str = ''
    description: str = ''
    location: str = ''
    attendees: str = ''
    calendar_id: str = DEFAULT_CALENDAR_ID

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> 'CreateEventArgs':
        return cls(
            summary=_text(arguments, 'summary'),
            start=_text(arguments, 'start'),
            end=_text(arguments, 'end'),
            description=_text(arguments, 'description'),
            location=_text(arguments, 'location'),
            attendees=_text(arguments, 'attendees'),
            calendar_id=_text(arguments, 'calendarId', DEFAULT_CALENDAR_ID),
        )


@dataclass
class UpdateEventArgs:
    event_id: str = ''
    summary: str = ''
    start: str = ''
    end: str = ''
    # None keeps the stored value; any string, including '', replaces it.
    description: Optional[str] = None
    location: Optional[str] = None
    calendar_id: str = DEFAULT_CALENDAR_ID

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> 'UpdateEventArgs':
        return cls(
            event_id=_text(arguments, 'eventId'),
            summary=_text(arguments, 'summary'),
            start=_text(arguments, 'start'),
            end=_text(arguments, 'end'),
            description=_optional_text(arguments, 'description'),
            location=_optional_text(arguments, 'location'),
            calendar_id=_text(arguments, 'calendarId', DEFAULT_CALENDAR_ID),
        )


@dataclass
class DeleteEventArgs:
    event_id: str = ''
    calendar_id: str = DEFAULT_CALENDAR_ID

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> 'DeleteEventArgs':
        return cls(
            event_id=_text(arguments, 'eventId'),
            calendar_id=_text(arguments, 'calendarId', DEFAULT_CALENDAR_ID),
        )


@dataclass
class SearchEventsArgs:
    query: str = ''
    max_results: str = str(DEFAULT_MAX_RESULTS)
    calendar_id: str = DEFAULT_CALENDAR_ID

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> 'SearchEventsArgs':
        return cls(
            query=_text(arguments, 'query'),
            max_results=_text(arguments, 'maxResults', str(DEFAULT_MAX_RESULTS)),
            calendar_id=_text(arguments, 'calendarId', DEFAULT_CALENDAR_ID),
        )


@dataclass
class ListCalendarsArgs:
    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> 'ListCalendarsArgs':
        return cls()


@dataclass
class GetEventArgs:
    event_id: str = ''
    calendar_id: str = DEFAULT_CALENDAR_ID

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> 'GetEventArgs':
        return cls(
            event_id=_text(arguments, 'eventId'),
            calendar_id=_text(arguments, 'calendarId', DEFAULT_CALENDAR_ID),
        )
