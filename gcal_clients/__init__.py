"""
Google Calendar client used by the MCP server.
"""
