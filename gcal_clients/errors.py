"""
Error types raised inside the Calendar client.
"""


class CalendarToolError(Exception):
    """Base class for failures reported back to the tool caller."""


class ValidationError(CalendarToolError):
    """A required argument is missing, blank or malformed."""


class AuthInitError(CalendarToolError):
    """The credential or token document could not be loaded."""


class RemoteCallError(CalendarToolError):
    """The Calendar API rejected or could not complete a request."""
