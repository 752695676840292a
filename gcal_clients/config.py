"""
Environment-driven settings for the Calendar MCP server.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_CREDENTIALS_PATH = '/app/credentials/credentials.json'
DEFAULT_TOKEN_PATH = '/app/credentials/token.json'
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = 'INFO'


@dataclass
class Settings:
    credentials_path: str = DEFAULT_CREDENTIALS_PATH
    token_path: str = DEFAULT_TOKEN_PATH
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> 'Settings':
        """Read settings from the environment, after an optional .env file."""
        if load_env_file:
            load_dotenv()

        return cls(
            credentials_path=os.getenv('GOOGLE_CALENDAR_CREDENTIALS_PATH') or DEFAULT_CREDENTIALS_PATH,
            token_path=os.getenv('GOOGLE_CALENDAR_TOKEN_PATH') or DEFAULT_TOKEN_PATH,
            http_timeout=_parse_timeout(os.getenv('GOOGLE_CALENDAR_HTTP_TIMEOUT')),
            log_level=(os.getenv('GOOGLE_CALENDAR_LOG_LEVEL') or DEFAULT_LOG_LEVEL).upper(),
        )


def _parse_timeout(raw) -> float:
    try:
        timeout = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_HTTP_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_HTTP_TIMEOUT
