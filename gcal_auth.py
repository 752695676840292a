"""
Google Calendar OAuth2 setup.

Runs the installed-app flow once and writes the token file the server reads.
"""

import json
import os
import sys
from datetime import timezone
from typing import Any, Dict

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from gcal_clients.config import Settings

SCOPES = ['https://www.googleapis.com/auth/calendar']

SETUP_STEPS = """
Please follow these steps:
1. Go to https://console.cloud.google.com/
2. Create a new project or select an existing one
3. Enable the Google Calendar API
4. Create OAuth 2.0 credentials (Desktop app)
5. Download the credentials JSON file
6. Save it at the path above, or point GOOGLE_CALENDAR_CREDENTIALS_PATH at it
"""


def token_document(creds: Credentials) -> Dict[str, Any]:
    """Serialize credentials in the token file layout the server loads."""
    expiry_date = None
    if creds.expiry is not None:
        # google-auth keeps expiry as naive UTC
        expiry_date = int(creds.expiry.replace(tzinfo=timezone.utc).timestamp() * 1000)
    return {
        'type': 'authorized_user',
        'client_id': creds.client_id,
        'client_secret': creds.client_secret,
        'refresh_token': creds.refresh_token,
        'access_token': creds.token,
        'expiry_date': expiry_date,
    }


def authenticate(credentials_path: str, token_path: str, port: int = 0) -> Dict[str, Any]:
    """Run the browser flow and save the resulting token."""
    flow = InstalledAppFlow.from_client_secrets_file(credentials_path, SCOPES)
    creds = flow.run_local_server(port=port, timeout_seconds=300)

    document = token_document(creds)
    directory = os.path.dirname(token_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(token_path, 'w', encoding='utf-8') as token:
        json.dump(document, token, indent=2)
    return document


def main() -> None:
    settings = Settings.from_env()
    print('🔐 Google Calendar OAuth2 Authentication Setup\n')

    if not os.path.exists(settings.credentials_path):
        print(f'❌ Error: credentials.json not found at {settings.credentials_path}', file=sys.stderr)
        print(SETUP_STEPS, file=sys.stderr)
        sys.exit(1)

    print(f'✅ Found credentials file at: {settings.credentials_path}')
    print('\nStarting OAuth2 flow...')
    print('This will open a browser window for you to authorize the application.\n')

    try:
        authenticate(settings.credentials_path, settings.token_path)
    except Exception as e:
        print(f'\n❌ Authentication failed: {e}', file=sys.stderr)
        sys.exit(1)

    print('\n✅ Authentication successful!')
    print(f'Token saved to: {settings.token_path}')
    print('\nYou can now start the MCP server with: gcal-mcp-server')


if __name__ == "__main__":
    main()
