"""Tests for SyncOutcome DTO."""

from sdm_relay.application.dtos.sync_dtos import SyncOutcome, SyncStatus


class TestSyncOutcome:
    def test_opened(self):
        outcome = SyncOutcome.opened("INC001", 2)
        assert outcome.status is SyncStatus.OPENED
        assert outcome.message == "Opened ticket: INC001"
        assert not outcome.error

    def test_closed_to_dict(self):
        assert SyncOutcome.closed("INC001", 1).to_dict() == {
            "error": False,
            "message": "Closed ticket: INC001",
            "status": "closed",
            "ticket": "INC001",
            "attempts": 1,
        }

    def test_duplicate_is_not_error(self):
        outcome = SyncOutcome.duplicate("INC001")
        assert outcome.message == "Ticket already open: INC001"
        assert not outcome.error
        assert "attempts" not in outcome.to_dict()

    def test_ignored_has_no_ticket(self):
        data = SyncOutcome.ignored("nothing to do").to_dict()
        assert data == {"error": False, "message": "nothing to do", "status": "ignored"}

    def test_failed_is_error(self):
        outcome = SyncOutcome.failed("boom", attempts=3)
        assert outcome.error
        assert outcome.to_dict()["attempts"] == 3

    def test_invalid_is_error(self):
        assert SyncOutcome.invalid("bad body").error
