"""
Relay Web Listener

Architectural Intent:
- Lightweight web server built entirely on Python stdlib (http.server + asyncio).
- Receives problem notifications from the monitoring tool's webhook and
  hands them to the ticket lifecycle engine.
- Stays a thin presentation adapter: parsing and response encoding only.

API Surface:
    POST /sdm     -> sync a problem (JSON body: {"ProblemID", "State", ...})
    GET  /health  -> liveness probe

Threading Model:
    ThreadingHTTPServer handles every request on its own thread; each handler
    runs the async use case with asyncio.run, so a slow Service Desk only
    blocks the request that is waiting on it.  The server itself runs in a
    daemon thread so callers can start and stop it from async code.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from http import HTTPStatus
from http.server import ThreadingHTTPServer, BaseHTTPRequestHandler
from typing import Any, Optional

from sdm_relay.application.dtos.sync_dtos import SyncOutcome, SyncStatus
from sdm_relay.application.use_cases.sync_problem import SyncProblem
from sdm_relay.domain.entities.problem_event import ProblemEvent

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    SyncStatus.INVALID: HTTPStatus.BAD_REQUEST,
    SyncStatus.FAILED: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class RelayRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the relay.

    Attributes on the *server* instance (set by RelayWebApp):
        sync_problem:  SyncProblem -- the lifecycle engine
    """

    # Silence per-request log lines from BaseHTTPRequestHandler
    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug("web: %s", format % args)

    def _log_request(self) -> None:
        logger.info(
            "IP: %s, Method: %s, URL: %s, Content-Length: %s",
            self.client_address[0],
            self.command,
            self.path,
            self.headers.get("Content-Length", 0),
        )

    # ---- routing -----------------------------------------------------------

    def do_GET(self) -> None:  # noqa: N802
        self._log_request()
        if self.path == "/health":
            self._send_json({"status": "ok"})
        else:
            self._send_json({"error": "not found"}, HTTPStatus.NOT_FOUND)

    def do_POST(self) -> None:  # noqa: N802
        self._log_request()
        if self.path == "/sdm":
            self._handle_sdm()
        else:
            self._send_json({"error": "not found"}, HTTPStatus.NOT_FOUND)

    # ---- endpoint implementations ------------------------------------------

    def _read_problem(self) -> ProblemEvent:
        content_length = int(self.headers.get("Content-Length", 0))
        raw = self.rfile.read(content_length) if content_length > 0 else b""
        return ProblemEvent.from_payload(json.loads(raw))

    def _handle_sdm(self) -> None:
        """Sync one problem notification with the Service Desk."""
        try:
            event = self._read_problem()
        except ValueError as e:
            # covers JSONDecodeError, UnicodeDecodeError and InvalidProblemError
            message = f"Could not parse the problem from the request body: {e}"
            logger.error(message)
            self._send_outcome(SyncOutcome.invalid(message))
            return

        sync_problem: SyncProblem = self.server.sync_problem  # type: ignore[attr-defined]
        try:
            outcome = asyncio.run(sync_problem.execute(event))
        except Exception as exc:
            logger.exception("Unexpected error syncing problem %s", event.problem_id)
            self._send_outcome(SyncOutcome.failed(f"Unexpected error: {exc}"))
            return

        self._send_outcome(outcome)

    # ---- helpers -----------------------------------------------------------

    def _send_outcome(self, outcome: SyncOutcome) -> None:
        self._send_json(
            outcome.to_dict(), _STATUS_CODES.get(outcome.status, HTTPStatus.OK)
        )

    def _send_json(self, data: Any, status: HTTPStatus = HTTPStatus.OK) -> None:
        """Serialize *data* as JSON and send it as the HTTP response."""
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


class RelayWebApp:
    """Web listener for problem notifications.

    Usage::

        app = RelayWebApp(sync_problem=container.sync_problem)
        app.start("0.0.0.0", 8080)
        # ... later ...
        app.stop()
    """

    def __init__(self, sync_problem: SyncProblem) -> None:
        self.sync_problem = sync_problem
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        if self._server is None:
            raise RuntimeError("server is not running")
        return self._server.server_address[1]

    def start(self, host: str = "0.0.0.0", port: int = 8080) -> None:
        """Start the listener in a background thread."""
        self._server = ThreadingHTTPServer((host, port), RelayRequestHandler)
        self._server.daemon_threads = True
        # Attach application state to the server so handlers can access it.
        self._server.sync_problem = self.sync_problem  # type: ignore[attr-defined]

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            daemon=True,
            name="sdm-relay-web",
        )
        self._thread.start()
        logger.info("Server started at %s:%d", host, self.port)

    def wait(self) -> None:
        """Block until the listener thread exits."""
        # short joins keep the main thread responsive to Ctrl+C
        while self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=0.5)

    def stop(self) -> None:
        """Shut down the listener gracefully."""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            logger.info("Server stopped")
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
