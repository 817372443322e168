"""
Plain-text rendering for IS Lead tool results.
"""

import json
from typing import List, Optional

from .aggregation import IsLeadStats, LeadsByPhase, rank_counts
from .models import PHASE_LABELS, PHASE_ORDER, IsLead

CURRENCY = "JPY"
PREVIEW_SIZE = 10
TOP_COUNTRIES = 10
RULE = "=" * 40


def _number(value) -> str:
    """Render 50.0 as 50, keep 12.5 as is."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_created(lead: IsLead) -> str:
    summary = f"IS Lead created: {lead.name} (ID: {lead.id})"
    if lead.country:
        summary += f"\n- Country: {lead.country}"
    if lead.lead_source:
        summary += f"\n- Source: {lead.lead_source}"
    if lead.customer_needs:
        summary += f"\n- Needs: {lead.customer_needs}"
    if lead.quantity:
        summary += f"\n- Quantity: {_number(lead.quantity)}kg"
    if lead.price_range_min or lead.price_range_max:
        low = _number(lead.price_range_min) if lead.price_range_min else "?"
        high = _number(lead.price_range_max) if lead.price_range_max else "?"
        summary += f"\n- Price range: {low} - {high} {CURRENCY}/kg"
    return summary


def format_updated(
    lead: IsLead,
    phase: Optional[str] = None,
    lost_reason: Optional[str] = None,
    quantity: Optional[float] = None
) -> str:
    """Summarize an update. Only the arguments the caller supplied are echoed."""
    summary = f"IS Lead updated: {lead.name}"
    if phase:
        summary += f"\n- Phase: {lead.phase}"
    if lost_reason:
        summary += f"\n- Lost reason: {lost_reason}"
    if quantity:
        summary += f"\n- Quantity: {_number(quantity)}kg"
    return summary


def format_lead_json(lead: IsLead) -> str:
    return json.dumps(lead.to_dict(), indent=2, ensure_ascii=False)


def format_search_results(leads: List[IsLead]) -> str:
    if not leads:
        return "No IS Leads found matching the criteria."

    result = f"Found {len(leads)} IS Leads:\n\n"
    for lead in leads:
        result += f"- {lead.name}"
        if lead.phase:
            result += f" [{lead.phase}]"
        if lead.country:
            result += f" ({lead.country})"
        if lead.lead_source:
            result += f" via {lead.lead_source}"
        result += f"\n  ID: {lead.id}"
        if lead.customer_needs:
            result += f"\n  Needs: {lead.customer_needs}"
        if lead.quantity:
            result += f"\n  Qty: {_number(lead.quantity)}kg"
        result += "\n\n"
    return result


def _preview_line(lead: IsLead) -> str:
    line = f"  - {lead.name}"
    if lead.country:
        line += f" ({lead.country})"
    return line + "\n"


def format_leads_by_phase(by_phase: LeadsByPhase) -> str:
    """
    Render the grouped report.

    Each phase shows its first PREVIEW_SIZE leads followed by an explicit
    "... and N more" line when the group is larger.
    """
    result = f"IS Leads by Phase (Total: {by_phase.total_count})\n"
    result += RULE + "\n\n"

    for phase in PHASE_ORDER:
        leads = by_phase[phase]
        result += f"## {PHASE_LABELS[phase]}: {len(leads)}\n"
        for lead in leads[:PREVIEW_SIZE]:
            result += _preview_line(lead)
        if len(leads) > PREVIEW_SIZE:
            result += f"  ... and {len(leads) - PREVIEW_SIZE} more\n"
        result += "\n"

    if by_phase.unrecognized:
        phases = sorted({str(lead.phase or "missing") for lead in by_phase.unrecognized})
        result += (
            f"## Unrecognized phase: {len(by_phase.unrecognized)} "
            f"({', '.join(phases)})\n"
        )

    return result


def format_stats(stats: IsLeadStats) -> str:
    result = "IS Lead Statistics\n"
    result += RULE + "\n"

    if stats.period:
        start = stats.period.get("start_date") or "Beginning"
        end = stats.period.get("end_date") or "Now"
        result += f"Period: {start} to {end}\n"
    result += f"Total Leads: {stats.total_leads}\n\n"

    result += "## By Phase:\n"
    result += f"  - Valid Reply: {stats.by_phase['VALID_REPLY']}\n"
    result += f"  - On Hold: {stats.by_phase['ON_HOLD']}\n"
    result += f"  - Converted: {stats.by_phase['CONVERTED']}\n"
    result += f"  - Lost: {stats.by_phase['LOST']}\n\n"

    if stats.by_source:
        result += "## By Source:\n"
        for source, count in stats.by_source.items():
            result += f"  - {source}: {count}\n"
        result += "\n"

    if stats.by_country:
        result += f"## By Country (Top {TOP_COUNTRIES}):\n"
        for country, count in rank_counts(stats.by_country, limit=TOP_COUNTRIES):
            result += f"  - {country}: {count}\n"
        result += "\n"

    if stats.lost_reasons:
        result += "## Lost Reasons:\n"
        for reason, count in rank_counts(stats.lost_reasons):
            result += f"  - {reason}: {count}\n"

    if stats.unrecognized_phase:
        result += f"\nNote: {stats.unrecognized_phase} lead(s) with an unrecognized phase were not counted.\n"

    return result
