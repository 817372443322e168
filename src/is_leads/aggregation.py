"""
Phase grouping and statistics over a snapshot of IS Leads.

Both entry points are pure: they never touch the network and never mutate
their input. Fetching the snapshot is the CRM client's job.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .date_utils import in_period
from .models import PHASE_ORDER, IsLead, is_known_phase

logger = logging.getLogger(__name__)


@dataclass
class LeadsByPhase:
    """Leads bucketed by phase, in PHASE_ORDER."""

    groups: Dict[str, List[IsLead]]
    total_count: int
    unrecognized: List[IsLead] = field(default_factory=list)

    def __getitem__(self, phase) -> List[IsLead]:
        return self.groups[getattr(phase, "value", phase)]

    def counts(self) -> Dict[str, int]:
        return {phase: len(leads) for phase, leads in self.groups.items()}


@dataclass
class IsLeadStats:
    """Counts by phase, source, country and lost reason."""

    total_leads: int
    by_phase: Dict[str, int]
    by_source: Dict[str, int]
    by_country: Dict[str, int]
    lost_reasons: Dict[str, int]
    period: Optional[Dict[str, Optional[str]]] = None
    unrecognized_phase: int = 0


def _empty_phase_map(factory):
    return {phase.value: factory() for phase in PHASE_ORDER}


def group_by_phase(leads: Iterable[IsLead]) -> LeadsByPhase:
    """
    Group leads by phase.

    Input order is preserved inside each group. Leads whose phase is not one
    of the known values stay out of every group but still count towards
    total_count; they are returned in `unrecognized`.

    Args:
        leads: Leads in any order

    Returns:
        LeadsByPhase with one list per phase
    """
    groups = _empty_phase_map(list)
    unrecognized = []
    total = 0

    for lead in leads:
        total += 1
        if is_known_phase(lead.phase):
            groups[lead.phase].append(lead)
        else:
            unrecognized.append(lead)

    if unrecognized:
        logger.warning(
            "%d IS Lead(s) have an unrecognized phase: %s",
            len(unrecognized),
            ", ".join(sorted({str(lead.phase or "missing") for lead in unrecognized}))
        )

    return LeadsByPhase(groups=groups, total_count=total, unrecognized=unrecognized)


def compute_stats(
    leads: Iterable[IsLead],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> IsLeadStats:
    """
    Summarize leads by phase, source, country and lost reason.

    When either date bound is given, only leads whose last_contact_date falls
    inside the inclusive range are counted; leads without the date are then
    skipped. Dates are compared as YYYY-MM-DD strings.

    Leads with an unrecognized phase are counted in `unrecognized_phase`
    only, so by_phase always sums to total_leads.

    Args:
        leads: Leads to summarize
        start_date: Inclusive lower bound (YYYY-MM-DD), or None
        end_date: Inclusive upper bound (YYYY-MM-DD), or None

    Returns:
        IsLeadStats. Source, country and reason maps keep first-seen order
        and never contain zero counts.
    """
    by_phase = _empty_phase_map(int)
    by_source = Counter()
    by_country = Counter()
    lost_reasons = Counter()
    total = 0
    unrecognized = 0

    for lead in leads:
        if not in_period(lead.last_contact_date, start_date, end_date):
            continue
        if not is_known_phase(lead.phase):
            unrecognized += 1
            continue

        total += 1
        by_phase[lead.phase] += 1
        if lead.lead_source:
            by_source[lead.lead_source] += 1
        if lead.country:
            by_country[lead.country] += 1
        if lead.lost_reason:
            lost_reasons[lead.lost_reason] += 1

    if unrecognized:
        logger.warning("Skipped %d IS Lead(s) with an unrecognized phase in stats", unrecognized)

    period = None
    if start_date or end_date:
        period = {"start_date": start_date, "end_date": end_date}

    return IsLeadStats(
        total_leads=total,
        by_phase=by_phase,
        by_source=dict(by_source),
        by_country=dict(by_country),
        lost_reasons=dict(lost_reasons),
        period=period,
        unrecognized_phase=unrecognized,
    )


def rank_counts(counts: Dict[str, int], limit: Optional[int] = None) -> List[Tuple[str, int]]:
    """
    Sort (key, count) pairs by count descending.

    The sort is stable, so ties keep the mapping's first-seen order.
    """
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked
