"""
Shared fixtures: an in-memory stand-in for the Calendar API service.
"""

import copy
import json

import httplib2
import pytest
from googleapiclient.errors import HttpError

from gcal_clients.calendar_client import CalendarClient


def not_found(event_id):
    resp = httplib2.Response({'status': 404})
    resp.reason = 'Not Found'
    content = json.dumps({'error': {'code': 404, 'message': 'Not Found'}}).encode()
    return HttpError(resp, content, uri=f'https://www.googleapis.com/calendar/v3/events/{event_id}')


class FakeRequest:
    def __init__(self, action):
        self._action = action

    def execute(self):
        return self._action()


class FakeEvents:
    def __init__(self, service):
        self.service = service

    def list(self, **kwargs):
        self.service.calls.append(('list', kwargs))

        def run():
            items = list(self.service.events_store.values())
            query = kwargs.get('q')
            if query:
                items = [e for e in items if query.lower() in e.get('summary', '').lower()]
            return {'items': copy.deepcopy(items[:kwargs.get('maxResults', 250)])}

        return FakeRequest(run)

    def insert(self, calendarId, body):
        self.service.calls.append(('insert', {'calendarId': calendarId, 'body': copy.deepcopy(body)}))

        def run():
            self.service.counter += 1
            event_id = f'evt{self.service.counter}'
            stored = copy.deepcopy(body)
            stored['start'] = {'dateTime': body['start']['dateTime'], 'timeZone': 'UTC'}
            stored['end'] = {'dateTime': body['end']['dateTime'], 'timeZone': 'UTC'}
            stored.update({
                'id': event_id,
                'status': 'confirmed',
                'htmlLink': f'https://www.google.com/calendar/event?eid={event_id}',
            })
            self.service.events_store[event_id] = stored
            return copy.deepcopy(stored)

        return FakeRequest(run)

    def get(self, calendarId, eventId):
        self.service.calls.append(('get', {'calendarId': calendarId, 'eventId': eventId}))

        def run():
            if eventId not in self.service.events_store:
                raise not_found(eventId)
            return copy.deepcopy(self.service.events_store[eventId])

        return FakeRequest(run)

    def update(self, calendarId, eventId, body):
        self.service.calls.append(('update', {'calendarId': calendarId, 'eventId': eventId, 'body': copy.deepcopy(body)}))

        def run():
            if eventId not in self.service.events_store:
                raise not_found(eventId)
            self.service.events_store[eventId] = copy.deepcopy(body)
            return copy.deepcopy(body)

        return FakeRequest(run)

    def delete(self, calendarId, eventId):
        self.service.calls.append(('delete', {'calendarId': calendarId, 'eventId': eventId}))

        def run():
            if eventId not in self.service.events_store:
                raise not_found(eventId)
            del self.service.events_store[eventId]
            return ''

        return FakeRequest(run)


class FakeCalendarList:
    def __init__(self, service):
        self.service = service

    def list(self):
        self.service.calls.append(('calendarList', {}))
        return FakeRequest(lambda: {'items': copy.deepcopy(self.service.calendars)})


class FakeCalendarService:
    def __init__(self):
        self.events_store = {}
        self.calendars = []
        self.calls = []
        self.counter = 0

    def events(self):
        return FakeEvents(self)

    def calendarList(self):
        return FakeCalendarList(self)

    def remote_calls(self, kind=None):
        return [call for call in self.calls if kind is None or call[0] == kind]


@pytest.fixture
def fake_service():
    return FakeCalendarService()


@pytest.fixture
def client(fake_service):
    return CalendarClient(loader=None, service=fake_service)


@pytest.fixture
def credential_files(tmp_path):
    credentials_path = tmp_path / 'credentials.json'
    token_path = tmp_path / 'token.json'
    credentials_path.write_text(json.dumps({
        'installed': {
            'client_id': 'test-client-id.apps.googleusercontent.com',
            'client_secret': 'test-client-secret',
            'redirect_uris': ['http://localhost'],
            'token_uri': 'https://oauth2.googleapis.com/token',
        }
    }))
    token_path.write_text(json.dumps({
        'type': 'authorized_user',
        'client_id': 'test-client-id.apps.googleusercontent.com',
        'client_secret': 'test-client-secret',
        'refresh_token': 'test-refresh-token',
        'access_token': 'test-access-token',
        'expiry_date': 1764252000000,
    }))
    return str(credentials_path), str(token_path)
