"""Twenty CRM REST client for IS Lead records, with error handling and rate limiting."""

import time
import logging
import requests
from typing import Any, Callable, Dict, List, Optional
from collections import deque

from is_leads.aggregation import IsLeadStats, LeadsByPhase, compute_stats, group_by_phase
from is_leads.errors import NotFoundError, RemoteError
from is_leads.models import CreateIsLeadInput, IsLead, SearchIsLeadsInput, UpdateIsLeadInput


logger = logging.getLogger(__name__)

# Twenty caps REST list responses at 60 records per page
PAGE_SIZE = 60


class RateLimiter:
    """
    Sliding window rate limiter for Twenty API calls.

    Every HTTP attempt takes a slot, retries included, so a run of 429/5xx
    retries stays inside the workspace quota.
    """

    def __init__(
        self,
        max_requests_per_minute: int = 100,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests_per_minute: Maximum API requests per window
            window: Window length in seconds
            clock: Monotonic time source
            sleep: Sleep function
        """
        self.max_requests = max_requests_per_minute
        self.window = window
        self.clock = clock
        self.sleep = sleep
        self.requests = deque()

    def _prune(self, now: float):
        while self.requests and self.requests[0] <= now - self.window:
            self.requests.popleft()

    def acquire(self) -> float:
        """
        Take a request slot, sleeping until one frees up.

        Returns:
            Seconds spent waiting (0.0 when a slot was free)
        """
        now = self.clock()
        self._prune(now)

        waited = 0.0
        if len(self.requests) >= self.max_requests:
            wait_time = (self.requests[0] + self.window) - now
            if wait_time > 0:
                logger.warning("Twenty rate limit reached. Waiting %.2f seconds...", wait_time)
                self.sleep(wait_time)
                waited = wait_time
                now = self.clock()
                self._prune(now)

        self.requests.append(now)
        return waited


def _quote(value: str) -> str:
    return '"' + str(value).replace('"', '\\"') + '"'


def build_filter(conditions: List[str]) -> Optional[str]:
    """Combine Twenty filter conditions with and(...)."""
    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return f"and({','.join(conditions)})"


class TwentyClient:
    """Wrapper for the Twenty CRM REST API, scoped to the IS Lead object."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.twenty.com",
        object_name: str = "isLeads",
        max_requests_per_minute: int = 100
    ):
        """
        Initialize Twenty API client.

        Args:
            api_key: Twenty API key
            base_url: Twenty server URL (without /rest)
            object_name: Plural API name of the IS Lead custom object
            max_requests_per_minute: Maximum API requests per minute
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.object_name = object_name
        self.rate_limiter = RateLimiter(max_requests_per_minute)
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json'
        })

    def _execute_with_retry(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        max_retries: int = 3
    ) -> Dict[str, Any]:
        """
        Execute Twenty API request with retry logic.

        Args:
            method: HTTP method (GET, POST, PATCH)
            endpoint: Path below /rest
            params: Query parameters
            json_data: JSON body data
            max_retries: Maximum number of retry attempts

        Returns:
            API response as dictionary

        Raises:
            NotFoundError: If the record does not exist
            RemoteError: If the request fails after retries
        """
        url = f"{self.base_url}/rest/{endpoint}"

        for attempt in range(max_retries):
            self.rate_limiter.acquire()
            try:
                response = self.session.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_data,
                    timeout=30
                )

                if response.status_code in (200, 201):
                    try:
                        return response.json()
                    except ValueError:
                        raise RemoteError(f"Invalid JSON response from {endpoint}")

                elif response.status_code == 401:
                    logger.error("Authentication error: Invalid API key")
                    raise RemoteError("Authentication failed. Check your Twenty API key.")

                elif response.status_code == 404:
                    logger.error("Resource not found: %s", url)
                    raise NotFoundError(f"IS Lead not found: {endpoint}")

                elif response.status_code == 429:
                    wait_time = 2 ** attempt
                    logger.warning(
                        "Rate limit error (attempt %d/%d). Waiting %d seconds...",
                        attempt + 1,
                        max_retries,
                        wait_time
                    )
                    time.sleep(wait_time)
                    continue

                elif response.status_code >= 500:
                    if attempt < max_retries - 1:
                        wait_time = 2 ** attempt
                        logger.warning(
                            "Server error (attempt %d/%d). Waiting %d seconds...",
                            attempt + 1,
                            max_retries,
                            wait_time
                        )
                        time.sleep(wait_time)
                        continue
                    else:
                        logger.error("Server error after %d attempts", max_retries)
                        raise RemoteError(f"Server error: {response.status_code}")

                else:
                    logger.error("HTTP error %d: %s", response.status_code, response.text)
                    raise RemoteError(f"HTTP {response.status_code}: {response.text}")

            except requests.exceptions.Timeout:
                if attempt < max_retries - 1:
                    logger.warning("Request timeout (attempt %d/%d)", attempt + 1, max_retries)
                    continue
                else:
                    logger.error("Request timeout after %d attempts", max_retries)
                    raise RemoteError(f"Request to {endpoint} timed out")

            except requests.exceptions.RequestException as e:
                logger.error("Request exception: %s", str(e))
                raise RemoteError(str(e))

        raise RemoteError(f"Request to {endpoint} failed after {max_retries} attempts")

    @staticmethod
    def _unwrap_record(response: Dict[str, Any]) -> Dict[str, Any]:
        """Pull the record out of {"data": {"<operation>": {...}}}.

        A record key that is present but null means the id does not exist.
        """
        data = response.get('data')
        if isinstance(data, dict):
            for value in data.values():
                if isinstance(value, dict):
                    return value
            if data and all(value is None for value in data.values()):
                raise NotFoundError(f"IS Lead not found: {', '.join(data)} is empty")
        raise RemoteError("Unexpected response shape: no record in response")

    @staticmethod
    def _unwrap_records(response: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Pull the list out of {"data": {"<object>": [...]}}."""
        data = response.get('data')
        if isinstance(data, dict):
            for value in data.values():
                if isinstance(value, list):
                    return value
        raise RemoteError("Unexpected response shape: no records in response")

    def _list_records(
        self,
        filter_expr: Optional[str] = None,
        max_records: Optional[int] = None,
        order_by: str = "createdAt[DescNullsLast]"
    ) -> List[IsLead]:
        """
        Fetch records page by page using cursor pagination.

        Args:
            filter_expr: Twenty filter expression
            max_records: Stop after this many records (None = all)
            order_by: Twenty order_by expression

        Returns:
            List of IsLead
        """
        leads = []
        cursor = None

        while True:
            page_size = PAGE_SIZE
            if max_records is not None:
                page_size = min(PAGE_SIZE, max_records - len(leads))

            params = {'limit': page_size, 'order_by': order_by}
            if filter_expr:
                params['filter'] = filter_expr
            if cursor:
                params['starting_after'] = cursor

            response = self._execute_with_retry('GET', self.object_name, params=params)
            leads.extend(IsLead.from_dict(record) for record in self._unwrap_records(response))

            page_info = response.get('pageInfo') or {}
            cursor = page_info.get('endCursor')
            if not page_info.get('hasNextPage') or not cursor:
                break
            if max_records is not None and len(leads) >= max_records:
                break

        return leads

    def create_lead(self, lead_input: CreateIsLeadInput) -> IsLead:
        """
        Create an IS Lead.

        Raises:
            RemoteError: If the CRM rejects the request
        """
        response = self._execute_with_retry(
            'POST', self.object_name, json_data=lead_input.to_payload()
        )
        lead = IsLead.from_dict(self._unwrap_record(response))
        logger.info("Created IS Lead %s (%s)", lead.id, lead.name)
        return lead

    def get_lead(self, lead_id: str) -> IsLead:
        """
        Get an IS Lead by id.

        Raises:
            NotFoundError: If no lead has this id
        """
        response = self._execute_with_retry('GET', f"{self.object_name}/{lead_id}")
        lead = IsLead.from_dict(self._unwrap_record(response))
        logger.info("Retrieved IS Lead %s", lead.id)
        return lead

    def update_lead(self, update: UpdateIsLeadInput) -> IsLead:
        """
        Apply a partial update. Only provided fields are sent.

        Raises:
            NotFoundError: If no lead has this id
            RemoteError: If the CRM rejects the request
        """
        response = self._execute_with_retry(
            'PATCH', f"{self.object_name}/{update.id}", json_data=update.to_payload()
        )
        lead = IsLead.from_dict(self._unwrap_record(response))
        logger.info("Updated IS Lead %s: %s", lead.id, ", ".join(update.changes()))
        return lead

    def search_leads(self, search: SearchIsLeadsInput) -> List[IsLead]:
        """
        Search IS Leads.

        Twenty paginates with cursors, so the offset is applied client-side.
        """
        conditions = []
        if search.query:
            conditions.append(f"name[ilike]:{_quote('%' + search.query + '%')}")
        if search.phase:
            conditions.append(f"phase[eq]:{search.phase}")
        if search.lead_source:
            conditions.append(f"leadSource[eq]:{search.lead_source}")
        if search.country:
            conditions.append(f"country[eq]:{_quote(search.country)}")

        leads = self._list_records(
            filter_expr=build_filter(conditions),
            max_records=search.offset + search.limit
        )
        leads = leads[search.offset:search.offset + search.limit]

        logger.info("Search (%s) returned %d IS Leads", ", ".join(search.filters()) or "all", len(leads))
        return leads

    def fetch_all_leads(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> List[IsLead]:
        """
        Fetch every IS Lead, optionally bounded by lastContactDate (inclusive).
        """
        conditions = []
        if start_date:
            conditions.append(f"lastContactDate[gte]:{_quote(start_date)}")
        if end_date:
            conditions.append(f"lastContactDate[lte]:{_quote(end_date)}")

        leads = self._list_records(filter_expr=build_filter(conditions))
        logger.info("Fetched %d IS Leads", len(leads))
        return leads

    def list_leads_by_phase(self) -> LeadsByPhase:
        """Fetch all leads and group them by phase."""
        return group_by_phase(self.fetch_all_leads())

    def get_lead_stats(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> IsLeadStats:
        """Fetch leads in the period and summarize them."""
        leads = self.fetch_all_leads(start_date, end_date)
        return compute_stats(leads, start_date, end_date)
