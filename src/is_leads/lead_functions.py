"""
MCP-ready IS Lead functions.

Each function takes the CRM client explicitly, performs one unit of work and
returns plain text. Failures never escape: they come back as
"Error <doing something>: <message>".
"""

import logging
from typing import Optional

from .date_utils import today_iso, validate_period
from .errors import IsLeadError, ValidationError
from .formatting import (
    format_created,
    format_lead_json,
    format_leads_by_phase,
    format_search_results,
    format_stats,
    format_updated,
)
from .models import CreateIsLeadInput, SearchIsLeadsInput, UpdateIsLeadInput

logger = logging.getLogger(__name__)


def _error_text(purpose: str, error: Exception) -> str:
    message = str(error) or type(error).__name__
    if isinstance(error, IsLeadError):
        logger.error("%s: %s", purpose, message)
    else:
        logger.exception("%s: unexpected failure", purpose)
    return f"Error {purpose}: {message}"


def create_is_lead(
    client,
    name: str,
    country: Optional[str] = None,
    industry: Optional[str] = None,
    lead_source: Optional[str] = None,
    instagram_account: Optional[str] = None,
    customer_needs: Optional[str] = None,
    quantity: Optional[float] = None,
    price_range_min: Optional[float] = None,
    price_range_max: Optional[float] = None,
    expected_revenue: Optional[float] = None,
    phase: Optional[str] = None,
    memo: Optional[str] = None,
    first_approach_date: Optional[str] = None,
    first_approach_message: Optional[str] = None,
) -> str:
    """
    Create an IS Lead. Phase defaults to VALID_REPLY and the last contact
    date is set to today.
    """
    try:
        lead_input = CreateIsLeadInput(
            name=name,
            phase=phase,
            country=country,
            industry=industry,
            lead_source=lead_source,
            instagram_account=instagram_account,
            customer_needs=customer_needs,
            quantity=quantity,
            price_range_min=price_range_min,
            price_range_max=price_range_max,
            expected_revenue=expected_revenue,
            first_approach_date=first_approach_date,
            first_approach_message=first_approach_message,
            memo=memo,
            last_contact_date=today_iso(),
        )
        lead = client.create_lead(lead_input)
        return format_created(lead)
    except Exception as e:
        return _error_text("creating IS Lead", e)


def get_is_lead(client, lead_id: str) -> str:
    """Get an IS Lead by id, as JSON."""
    try:
        if not lead_id or not lead_id.strip():
            raise ValidationError("id is required")
        lead = client.get_lead(lead_id.strip())
        return format_lead_json(lead)
    except Exception as e:
        return _error_text("retrieving IS Lead", e)


def update_is_lead(
    client,
    lead_id: str,
    name: Optional[str] = None,
    phase: Optional[str] = None,
    country: Optional[str] = None,
    industry: Optional[str] = None,
    lead_source: Optional[str] = None,
    instagram_account: Optional[str] = None,
    customer_needs: Optional[str] = None,
    quantity: Optional[float] = None,
    price_range_min: Optional[float] = None,
    price_range_max: Optional[float] = None,
    expected_revenue: Optional[float] = None,
    first_approach_date: Optional[str] = None,
    first_approach_message: Optional[str] = None,
    lost_reason: Optional[str] = None,
    last_contact_date: Optional[str] = None,
    memo: Optional[str] = None,
) -> str:
    """
    Update only the provided fields of an IS Lead.

    If anything changes and no last contact date is given, it is set to today.
    """
    try:
        update = UpdateIsLeadInput(
            id=lead_id,
            name=name,
            phase=phase,
            country=country,
            industry=industry,
            lead_source=lead_source,
            instagram_account=instagram_account,
            customer_needs=customer_needs,
            quantity=quantity,
            price_range_min=price_range_min,
            price_range_max=price_range_max,
            expected_revenue=expected_revenue,
            first_approach_date=first_approach_date,
            first_approach_message=first_approach_message,
            lost_reason=lost_reason,
            last_contact_date=last_contact_date,
            memo=memo,
        )
        if not update.has_changes():
            raise ValidationError("No fields to update")

        lead = client.update_lead(update.with_last_contact_date(today_iso()))
        return format_updated(
            lead,
            phase=update.phase,
            lost_reason=update.lost_reason,
            quantity=update.quantity,
        )
    except Exception as e:
        return _error_text("updating IS Lead", e)


def search_is_leads(
    client,
    query: Optional[str] = None,
    phase: Optional[str] = None,
    lead_source: Optional[str] = None,
    country: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> str:
    """Search IS Leads by name, phase, source or country."""
    try:
        search = SearchIsLeadsInput(
            query=query,
            phase=phase,
            lead_source=lead_source,
            country=country,
            limit=limit,
            offset=offset,
        )
        leads = client.search_leads(search)
        return format_search_results(leads)
    except Exception as e:
        return _error_text("searching IS Leads", e)


def list_is_leads_by_phase(client) -> str:
    """All IS Leads grouped by phase."""
    try:
        return format_leads_by_phase(client.list_leads_by_phase())
    except Exception as e:
        return _error_text("listing IS Leads by phase", e)


def get_is_lead_stats(
    client,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> str:
    """Statistics by phase, source, country and lost reason."""
    try:
        start_date, end_date = validate_period(start_date, end_date)
        stats = client.get_lead_stats(start_date, end_date)
        return format_stats(stats)
    except Exception as e:
        return _error_text("getting IS Lead stats", e)
