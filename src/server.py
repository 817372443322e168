#!/usr/bin/env python3
"""IS Lead Tracker MCP Server."""

import sys
from pathlib import Path

# Add the src directory to Python path so imports work when launched from Claude Desktop
sys.path.insert(0, str(Path(__file__).parent))

import logging
import asyncio
from typing import Optional

from mcp.server.fastmcp import FastMCP

from config import Config
from twenty_client import TwentyClient
from is_leads import (
    create_is_lead, get_is_lead, update_is_lead, search_is_leads,
    list_is_leads_by_phase, get_is_lead_stats
)


logger = logging.getLogger(__name__)


def create_client(config: Config) -> TwentyClient:
    """Build the Twenty CRM client from configuration."""
    errors = config.validate()
    if errors:
        error_msg = "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
        logger.error(error_msg)
        raise ValueError(error_msg)

    return TwentyClient(
        config.twenty_api_key,
        base_url=config.twenty_api_url,
        object_name=config.twenty_is_lead_object,
        max_requests_per_minute=config.max_requests_per_minute
    )


def create_server(config: Config, client) -> FastMCP:
    """
    Create the MCP server and register the IS Lead tools.

    The client is captured by each tool; nothing is stored at module level.

    Args:
        config: Server configuration
        client: CRM client (TwentyClient or anything with the same methods)

    Returns:
        FastMCP instance ready to run
    """
    mcp = FastMCP(config.server_name)

    @mcp.tool(name="create_is_lead")
    async def create_is_lead_tool(
        name: str,
        country: Optional[str] = None,
        industry: Optional[str] = None,
        leadSource: Optional[str] = None,
        instagramAccount: Optional[str] = None,
        customerNeeds: Optional[str] = None,
        quantity: Optional[float] = None,
        priceRangeMin: Optional[float] = None,
        priceRangeMax: Optional[float] = None,
        expectedRevenue: Optional[float] = None,
        phase: Optional[str] = None,
        memo: Optional[str] = None,
        firstApproachDate: Optional[str] = None,
        firstApproachMessage: Optional[str] = None
    ) -> str:
        """
        Create a new IS Lead (Inside Sales Lead) in Twenty CRM.

        Use this to register new leads from Instagram, Email, HP, or Alibaba.
        Example: "ABC Coffee, USA, from Instagram. Matcha latte, 50kg/month"

        Args:
            name: Company/Customer name (required)
            country: Country (Japan, USA, UK, Germany, France, Thailand, Singapore, Australia, Canada, UAE, Other)
            industry: Industry type (Retailer, Cafe/Restaurant, Manufacturer, Distributor, Other)
            leadSource: Lead source: INSTAGRAM, EMAIL, HP, or ALIBABA
            instagramAccount: Instagram account (e.g., @example)
            customerNeeds: Customer needs (e.g., matcha latte, ceremonial grade)
            quantity: Desired quantity in kg
            priceRangeMin: Minimum price range (JPY/kg)
            priceRangeMax: Maximum price range (JPY/kg)
            expectedRevenue: Expected revenue (JPY)
            phase: Lead phase (default: VALID_REPLY)
            memo: Additional notes
            firstApproachDate: First approach date (YYYY-MM-DD)
            firstApproachMessage: First approach message sent to the lead

        Returns:
            Summary of the created lead
        """
        return await asyncio.to_thread(
            create_is_lead,
            client,
            name,
            country=country,
            industry=industry,
            lead_source=leadSource,
            instagram_account=instagramAccount,
            customer_needs=customerNeeds,
            quantity=quantity,
            price_range_min=priceRangeMin,
            price_range_max=priceRangeMax,
            expected_revenue=expectedRevenue,
            phase=phase,
            memo=memo,
            first_approach_date=firstApproachDate,
            first_approach_message=firstApproachMessage
        )

    @mcp.tool(name="get_is_lead")
    async def get_is_lead_tool(id: str) -> str:
        """
        Get an IS Lead by ID from Twenty CRM.

        Args:
            id: IS Lead ID to retrieve

        Returns:
            JSON string with the lead record
        """
        return await asyncio.to_thread(get_is_lead, client, id)

    @mcp.tool(name="update_is_lead")
    async def update_is_lead_tool(
        id: str,
        name: Optional[str] = None,
        phase: Optional[str] = None,
        country: Optional[str] = None,
        industry: Optional[str] = None,
        leadSource: Optional[str] = None,
        instagramAccount: Optional[str] = None,
        customerNeeds: Optional[str] = None,
        quantity: Optional[float] = None,
        priceRangeMin: Optional[float] = None,
        priceRangeMax: Optional[float] = None,
        expectedRevenue: Optional[float] = None,
        firstApproachDate: Optional[str] = None,
        firstApproachMessage: Optional[str] = None,
        lostReason: Optional[str] = None,
        lastContactDate: Optional[str] = None,
        memo: Optional[str] = None
    ) -> str:
        """
        Update an existing IS Lead in Twenty CRM.

        Use this to change phase, update contact info, or record lost reasons.
        Only the fields you pass are changed. The last contact date is set to
        today unless you pass one.

        Args:
            id: IS Lead ID to update (required)
            name: Company/Customer name
            phase: Lead phase: VALID_REPLY, LOST, ON_HOLD, CONVERTED
            country: Country (Japan, USA, UK, Germany, France, Thailand, Singapore, Australia, Canada, UAE, Other)
            industry: Industry type (Retailer, Cafe/Restaurant, Manufacturer, Distributor, Other)
            leadSource: Lead source
            instagramAccount: Instagram account
            customerNeeds: Customer needs
            quantity: Desired quantity in kg
            priceRangeMin: Minimum price range (JPY/kg)
            priceRangeMax: Maximum price range (JPY/kg)
            expectedRevenue: Expected revenue (JPY)
            firstApproachDate: First approach date (YYYY-MM-DD)
            firstApproachMessage: First approach message
            lostReason: Reason for losing the lead (use when phase is LOST)
            lastContactDate: Last contact date (YYYY-MM-DD)
            memo: Additional notes

        Returns:
            Summary of the update
        """
        return await asyncio.to_thread(
            update_is_lead,
            client,
            id,
            name=name,
            phase=phase,
            country=country,
            industry=industry,
            lead_source=leadSource,
            instagram_account=instagramAccount,
            customer_needs=customerNeeds,
            quantity=quantity,
            price_range_min=priceRangeMin,
            price_range_max=priceRangeMax,
            expected_revenue=expectedRevenue,
            first_approach_date=firstApproachDate,
            first_approach_message=firstApproachMessage,
            lost_reason=lostReason,
            last_contact_date=lastContactDate,
            memo=memo
        )

    @mcp.tool(name="search_is_leads")
    async def search_is_leads_tool(
        query: Optional[str] = None,
        phase: Optional[str] = None,
        leadSource: Optional[str] = None,
        country: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> str:
        """
        Search for IS Leads in Twenty CRM. Filter by phase, source, country, or search by name.

        Args:
            query: Search query (searches by name)
            phase: Filter by phase: VALID_REPLY, LOST, ON_HOLD, CONVERTED
            leadSource: Filter by source: INSTAGRAM, EMAIL, HP, ALIBABA
            country: Filter by country
            limit: Maximum number of results (default: 20)
            offset: Number of results to skip, for paging (default: 0)

        Returns:
            Listing of matching leads
        """
        return await asyncio.to_thread(
            search_is_leads,
            client,
            query=query,
            phase=phase,
            lead_source=leadSource,
            country=country,
            limit=limit,
            offset=offset
        )

    @mcp.tool(name="list_is_leads_by_phase")
    async def list_is_leads_by_phase_tool() -> str:
        """
        List all IS Leads grouped by phase.

        Shows count and names for each phase (VALID_REPLY, ON_HOLD, CONVERTED, LOST).

        Returns:
            Grouped report
        """
        return await asyncio.to_thread(list_is_leads_by_phase, client)

    @mcp.tool(name="get_is_lead_stats")
    async def get_is_lead_stats_tool(
        startDate: Optional[str] = None,
        endDate: Optional[str] = None
    ) -> str:
        """
        Get statistics for IS Leads.

        Shows counts by phase, source, country, and lost reasons. Dates filter
        on the last contact date and are inclusive.

        Args:
            startDate: Start date for filtering (YYYY-MM-DD)
            endDate: End date for filtering (YYYY-MM-DD)

        Returns:
            Statistics report
        """
        return await asyncio.to_thread(get_is_lead_stats, client, startDate, endDate)

    logger.info("Registered IS Lead tools on %s", config.server_name)
    return mcp


def main():
    """Main entry point for MCP server."""
    config = Config.from_env()
    config.setup_logging()

    try:
        logger.info("Starting IS Lead Tracker MCP Server...")

        client = create_client(config)
        mcp = create_server(config, client)

        logger.info("MCP server ready")
        mcp.run()

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error("Server error: %s", str(e))
        raise


if __name__ == "__main__":
    main()
