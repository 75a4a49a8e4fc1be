"""Tests for TicketTemplate attribute builders."""

import pytest
from sdm_relay.domain.value_objects.ticket_template import TicketTemplate


class TestCreateAttributes:
    def test_exact_order_and_constants(self):
        template = TicketTemplate()
        attrs = template.create_attributes(
            customer_handle="cnt:ABC",
            description="disk at 95%",
            summary="Dynatrace - Disk full (Problem ID: P1, State: OPEN)",
        )
        assert attrs == (
            ("customer", "cnt:ABC"),
            ("category", "pcat:400373"),
            ("description", "disk at 95%"),
            ("summary", "Dynatrace - Disk full (Problem ID: P1, State: OPEN)"),
            ("urgency", "2"),
            ("impact", "4"),
            ("group", "5FA1B7BE4CFA2E4C9B19E115AE49A642"),
            ("type", "crt:182"),
        )

    def test_event_category_overrides_default(self):
        template = TicketTemplate()
        attrs = dict(template.create_attributes("h", "d", "s", category="400999"))
        assert attrs["category"] == "pcat:400999"

    def test_prefixed_category_kept(self):
        assert TicketTemplate().category("pcat:123") == "pcat:123"

    def test_blank_category_uses_default(self):
        assert TicketTemplate(default_category="777").category("  ") == "pcat:777"


class TestCloseAttributes:
    def test_with_root_cause(self):
        template = TicketTemplate(root_cause="rc:5001")
        assert template.close_attributes() == (
            ("status", "RE"),
            ("rootcause", "rc:5001"),
        )

    def test_without_root_cause(self):
        assert TicketTemplate().close_attributes() == (("status", "RE"),)


class TestValidation:
    def test_empty_operator_rejected(self):
        with pytest.raises(ValueError, match="operator_userid"):
            TicketTemplate(operator_userid="")

    def test_empty_default_category_rejected(self):
        with pytest.raises(ValueError, match="default_category"):
            TicketTemplate(default_category="")
