"""Integration test: HTTP notification -> lifecycle engine -> stub desk -> JSON store.

Wires the real composition root with an injected stub Service Desk and
drives it through the web listener.
"""

import json
import urllib.error
import urllib.request

import pytest

from sdm_relay.composition_root import create_container
from sdm_relay.infrastructure.config import RelayConfig, RetryConfig, StoreConfig
from sdm_relay.presentation.web.app import RelayWebApp


@pytest.fixture()
def relay(tmp_path, make_desk):
    desk = make_desk()
    config = RelayConfig(
        store=StoreConfig(path=str(tmp_path / "problems.json")),
        retry=RetryConfig(max_attempts=3),
    )
    container = create_container(config, service_desk=desk)
    app = RelayWebApp(sync_problem=container.sync_problem)
    app.start("127.0.0.1", 0)
    yield container, desk, f"http://127.0.0.1:{app.port}/sdm"
    app.stop()


def _post(url: str, payload: dict) -> tuple[int, dict]:
    req = urllib.request.Request(
        url, data=json.dumps(payload).encode(), method="POST",
        headers={"Content-Type": "application/json"},
    )
    try:
        with urllib.request.urlopen(req, timeout=10) as resp:
            return resp.status, json.loads(resp.read())
    except urllib.error.HTTPError as e:
        return e.code, json.loads(e.read())


def _problem(state: str) -> dict:
    return {
        "ProblemID": "-5473523411429572470",
        "State": state,
        "ProblemTitle": "Disk full",
        "ProblemDetailsText": "disk at 95%",
    }


class TestLifecycleFlow:
    def test_open_duplicate_close_reopen(self, relay):
        container, desk, url = relay

        assert _post(url, _problem("OPEN")) == (200, {
            "error": False,
            "message": "Opened ticket: INC000001",
            "status": "opened",
            "ticket": "INC000001",
            "attempts": 1,
        })

        status, body = _post(url, _problem("OPEN"))
        assert (status, body["status"]) == (200, "duplicate")

        status, body = _post(url, _problem("RESOLVED"))
        assert (status, body["message"]) == (200, "Closed ticket: INC000001")
        assert desk.get_request("cr:400001")["status"] == "RE"

        status, body = _post(url, _problem("OPEN"))
        assert body["message"] == "Opened ticket: INC000002"

        record = container.store.lookup("-5473523411429572470")
        assert record.ticket.number == "INC000002"
        assert [t.number for t in record.history] == ["INC000001"]

    def test_metrics_follow_lifecycle(self, relay):
        container, _, url = relay
        _post(url, _problem("OPEN"))
        _post(url, _problem("RESOLVED"))

        names = [m["name"] for m in container.telemetry.buffered_metrics]
        assert "sdm_relay.ticket.opened" in names
        assert "sdm_relay.ticket.closed" in names
