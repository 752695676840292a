"""
OAuth2 credential loading for the Calendar client.
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from google.oauth2.credentials import Credentials

from .errors import AuthInitError
from .models import AuthContext

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URI = 'https://oauth2.googleapis.com/token'

AUTH_INIT_MESSAGE = (
    'Failed to initialize Google Calendar authentication. '
    'Make sure credentials and token files are properly set up.'
)


class CredentialLoader:
    """Loads the client and token documents once and caches the result."""

    def __init__(self, credentials_path: str, token_path: str):
        self.credentials_path = credentials_path
        self.token_path = token_path
        self._context: Optional[AuthContext] = None
        self._lock = threading.Lock()

    def check_files(self) -> List[str]:
        """Return the configured paths that do not exist."""
        return [path for path in (self.credentials_path, self.token_path) if not os.path.exists(path)]

    def get_client(self) -> AuthContext:
        """Return the cached auth context, loading it on first use."""
        if self._context is not None:
            return self._context

        with self._lock:
            # Another thread may have finished loading while we waited.
            if self._context is None:
                self._context = self._load()
        return self._context

    def _load(self) -> AuthContext:
        try:
            client_doc = _read_json(self.credentials_path)
            token_doc = _read_json(self.token_path)

            client_info = client_doc.get('installed') or client_doc.get('web')
            if not isinstance(client_info, dict):
                raise ValueError(f"{self.credentials_path} has no 'installed' or 'web' section")

            client_id = client_info['client_id']
            client_secret = client_info['client_secret']
            redirect_uri = client_info['redirect_uris'][0]

            access_token = token_doc.get('access_token')
            refresh_token = token_doc.get('refresh_token')
            if not access_token and not refresh_token:
                raise ValueError(f'{self.token_path} has neither an access token nor a refresh token')

            credentials = Credentials(
                token=access_token,
                refresh_token=refresh_token,
                token_uri=client_info.get('token_uri', DEFAULT_TOKEN_URI),
                client_id=client_id,
                client_secret=client_secret,
                expiry=_expiry_from_millis(token_doc.get('expiry_date')),
            )
        except (OSError, OverflowError, ValueError, KeyError, IndexError, TypeError) as error:
            logger.error('Failed to initialize auth: %s', error, exc_info=True)
            raise AuthInitError(AUTH_INIT_MESSAGE) from error

        logger.info('Google Calendar authentication initialized')
        return AuthContext(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            credentials=credentials,
        )


def _read_json(path: str) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as handle:
        document = json.load(handle)
    if not isinstance(document, dict):
        raise ValueError(f'{path} does not contain a JSON object')
    return document


def _expiry_from_millis(value) -> Optional[datetime]:
    """Convert an epoch-milliseconds expiry to the naive UTC datetime google-auth uses."""
    if value in (None, ''):
        return None
    expiry = datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    return expiry.replace(tzinfo=None)
