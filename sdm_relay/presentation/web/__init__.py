"""
Web presentation layer for the relay.

Architectural Intent:
- Receives the monitoring tool's problem notifications over HTTP
- Uses Python stdlib only (http.server + asyncio)
"""
