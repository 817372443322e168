"""
Unit tests for the MCP-facing IS Lead functions.

Tests:
- Create/get/update/search summaries
- Last contact date stamping
- Phase and statistics reports
- Every failure returned as an error message
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import json
import pytest
from unittest.mock import Mock, patch

from is_leads import lead_functions
from is_leads.aggregation import compute_stats, group_by_phase
from is_leads.errors import NotFoundError, RemoteError
from is_leads.models import IsLead


@pytest.fixture
def client():
    """Create a mock CRM client."""
    return Mock()


@pytest.fixture(autouse=True)
def fixed_today():
    with patch('is_leads.lead_functions.today_iso', return_value="2024-05-01"):
        yield


class TestCreateIsLead:
    """Tests for create_is_lead."""

    def test_create_summary(self, client):
        """Test creating a lead with details."""
        client.create_lead.return_value = IsLead(
            id="abc-123",
            name="ABC Coffee",
            country="USA",
            lead_source="INSTAGRAM",
            customer_needs="matcha latte",
            quantity=50,
            price_range_min=3000,
        )

        result = lead_functions.create_is_lead(
            client,
            name="ABC Coffee",
            country="USA",
            lead_source="INSTAGRAM",
            customer_needs="matcha latte",
            quantity=50,
            price_range_min=3000,
        )

        assert result == (
            "IS Lead created: ABC Coffee (ID: abc-123)\n"
            "- Country: USA\n"
            "- Source: INSTAGRAM\n"
            "- Needs: matcha latte\n"
            "- Quantity: 50kg\n"
            "- Price range: 3000 - ? JPY/kg"
        )

    def test_create_defaults_phase_and_stamps_date(self, client):
        """Test that phase defaults and today is sent as last contact date."""
        client.create_lead.return_value = IsLead(id="1", name="XYZ Tea House")

        lead_functions.create_is_lead(client, name="XYZ Tea House")

        lead_input = client.create_lead.call_args[0][0]
        assert lead_input.phase == "VALID_REPLY"
        assert lead_input.last_contact_date == "2024-05-01"

    def test_create_without_name_never_calls_crm(self, client):
        """Test that validation fails before any request."""
        result = lead_functions.create_is_lead(client, name="")

        assert result.startswith("Error creating IS Lead: ")
        client.create_lead.assert_not_called()

    def test_create_remote_error(self, client):
        """Test that CRM failures come back as text."""
        client.create_lead.side_effect = RemoteError("HTTP 400: bad field")

        result = lead_functions.create_is_lead(client, name="ABC")

        assert result == "Error creating IS Lead: HTTP 400: bad field"


class TestGetIsLead:
    """Tests for get_is_lead."""

    def test_get_returns_json(self, client):
        client.get_lead.return_value = IsLead(id="abc", name="ABC Coffee", country="Japan")

        result = lead_functions.get_is_lead(client, "abc")

        assert json.loads(result) == {
            "id": "abc", "name": "ABC Coffee", "phase": "VALID_REPLY", "country": "Japan"
        }
        client.get_lead.assert_called_once_with("abc")

    def test_get_not_found(self, client):
        """Test that a missing lead is reported, not raised."""
        client.get_lead.side_effect = NotFoundError("IS Lead not found: isLeads/nope")

        result = lead_functions.get_is_lead(client, "nope")

        assert result == "Error retrieving IS Lead: IS Lead not found: isLeads/nope"


class TestUpdateIsLead:
    """Tests for update_is_lead."""

    def test_mark_lost_with_reason(self, client):
        """Test moving a lead to LOST with a reason."""
        client.update_lead.return_value = IsLead(id="abc", name="ABC Coffee", phase="LOST")

        result = lead_functions.update_is_lead(
            client, "abc", phase="LOST", lost_reason="Price mismatch"
        )

        assert result == "IS Lead updated: ABC Coffee\n- Phase: LOST\n- Lost reason: Price mismatch"
        update = client.update_lead.call_args[0][0]
        assert update.to_payload() == {
            "phase": "LOST",
            "lostReason": "Price mismatch",
            "lastContactDate": "2024-05-01",
        }

    def test_explicit_last_contact_date(self, client):
        """Test that an explicit date is not overwritten."""
        client.update_lead.return_value = IsLead(id="abc", name="ABC Coffee", quantity=100)

        result = lead_functions.update_is_lead(
            client, "abc", quantity=100, last_contact_date="2024-04-28"
        )

        assert result == "IS Lead updated: ABC Coffee\n- Quantity: 100kg"
        update = client.update_lead.call_args[0][0]
        assert update.last_contact_date == "2024-04-28"

    def test_nothing_to_update(self, client):
        """Test that an update with no fields is rejected."""
        result = lead_functions.update_is_lead(client, "abc", memo="")

        assert result == "Error updating IS Lead: No fields to update"
        client.update_lead.assert_not_called()

    def test_invalid_phase(self, client):
        result = lead_functions.update_is_lead(client, "abc", phase="WON")

        assert result.startswith("Error updating IS Lead: Invalid phase")
        client.update_lead.assert_not_called()


class TestSearchIsLeads:
    """Tests for search_is_leads."""

    def test_no_results(self, client):
        client.search_leads.return_value = []

        result = lead_functions.search_is_leads(client, country="Germany")

        assert result == "No IS Leads found matching the criteria."

    def test_listing(self, client):
        """Test the search listing layout."""
        client.search_leads.return_value = [
            IsLead(id="1", name="ABC Coffee", phase="VALID_REPLY", country="USA",
                   lead_source="INSTAGRAM", customer_needs="latte", quantity=50),
            IsLead(id="2", name="XYZ Tea", phase="LOST"),
        ]

        result = lead_functions.search_is_leads(client, lead_source="INSTAGRAM")

        assert result.startswith("Found 2 IS Leads:\n\n")
        assert "- ABC Coffee [VALID_REPLY] (USA) via INSTAGRAM\n  ID: 1\n  Needs: latte\n  Qty: 50kg\n\n" in result
        assert "- XYZ Tea [LOST]\n  ID: 2\n\n" in result

    def test_search_input_passed(self, client):
        """Test that filters and paging reach the client."""
        client.search_leads.return_value = []

        lead_functions.search_is_leads(client, query="tea", phase="on_hold", limit=5, offset=10)

        search = client.search_leads.call_args[0][0]
        assert search.query == "tea"
        assert search.phase == "ON_HOLD"
        assert search.limit == 5
        assert search.offset == 10

    def test_search_error(self, client):
        client.search_leads.side_effect = RemoteError("Authentication failed. Check your Twenty API key.")

        result = lead_functions.search_is_leads(client)

        assert result == "Error searching IS Leads: Authentication failed. Check your Twenty API key."


class TestReports:
    """Tests for list_is_leads_by_phase and get_is_lead_stats."""

    def test_list_by_phase(self, client):
        client.list_leads_by_phase.return_value = group_by_phase([
            IsLead(id="1", name="ABC Coffee", country="USA"),
            IsLead(id="2", name="XYZ Tea", phase="CONVERTED"),
        ])

        result = lead_functions.list_is_leads_by_phase(client)

        assert result.startswith("IS Leads by Phase (Total: 2)\n" + "=" * 40 + "\n\n")
        assert "## Valid Reply (Active): 1\n  - ABC Coffee (USA)\n" in result
        assert "## Converted (Won): 1\n  - XYZ Tea\n" in result
        assert "## On Hold (Pending): 0\n" in result

    def test_list_by_phase_unexpected_error(self, client):
        """Test that any failure is converted to text."""
        client.list_leads_by_phase.side_effect = RuntimeError("boom")

        result = lead_functions.list_is_leads_by_phase(client)

        assert result == "Error listing IS Leads by phase: boom"

    def test_stats_with_period(self, client):
        client.get_lead_stats.return_value = compute_stats(
            [IsLead(id="1", name="A", last_contact_date="2024-01-15")],
            "2024-01-10", "2024-01-31"
        )

        result = lead_functions.get_is_lead_stats(client, "2024-01-10", "2024-01-31")

        client.get_lead_stats.assert_called_once_with("2024-01-10", "2024-01-31")
        assert "Period: 2024-01-10 to 2024-01-31" in result
        assert "Total Leads: 1" in result

    def test_stats_blank_dates_mean_unbounded(self, client):
        client.get_lead_stats.return_value = compute_stats([])

        lead_functions.get_is_lead_stats(client, "", None)

        client.get_lead_stats.assert_called_once_with(None, None)

    def test_stats_invalid_date(self, client):
        """Test that a malformed date is rejected before fetching."""
        result = lead_functions.get_is_lead_stats(client, "01/10/2024")

        assert result.startswith("Error getting IS Lead stats: Invalid startDate")
        client.get_lead_stats.assert_not_called()

    def test_stats_reversed_range(self, client):
        result = lead_functions.get_is_lead_stats(client, "2024-02-01", "2024-01-01")

        assert "must be before end date" in result
        client.get_lead_stats.assert_not_called()
