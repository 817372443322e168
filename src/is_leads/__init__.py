"""IS Lead Management Module for MCP Server.

This module provides IS Lead (Inside Sales Lead) tools backed by Twenty CRM:
create, fetch, update and search leads, plus phase grouping and statistics.
"""

from .lead_functions import (
    # CRUD tools
    create_is_lead,
    get_is_lead,
    update_is_lead,
    search_is_leads,
    # Reporting tools
    list_is_leads_by_phase,
    get_is_lead_stats,
)

__all__ = [
    # CRUD tools
    "create_is_lead",
    "get_is_lead",
    "update_is_lead",
    "search_is_leads",
    # Reporting tools
    "list_is_leads_by_phase",
    "get_is_lead_stats",
]
