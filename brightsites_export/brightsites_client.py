"""
BrightSites API Client — Retrying requests and pagination against the REST API.

This module is responsible for all HTTP communication with a BrightSites store.
Every call is a GET against:

    https://{subdomain}.{host}/api/{version}{path}?token={token}&...

Authentication is the store's API token, passed as the "token" query
parameter on every request. The StoreConfig given to the client is the only
source of credentials.

Request execution:
    request_json() performs one logical request. A transport failure or a
    non-2xx status is retried a fixed number of times (default 2 extra
    attempts) with a constant delay (default 0.5 s). When every attempt fails
    it raises RequestError.

Pagination:
    fetch_all_pages() walks page=1,2,... with per_page fixed to the page size
    and stops on the first short or empty page. A RequestError mid-walk ends
    pagination and the records gathered so far are returned; a batch export
    keeps going when one collection is only partly readable.

Response shapes:
    Collection endpoints answer either with a bare JSON array or with an
    object that wraps the array (see extract_records()).

Pipeline context:
    Used by the report service to list orders (Step 2) and by the order
    enricher to load each order's detail, line items and shipments (Step 3).
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from config import DEFAULT_SETTINGS

from .exceptions import RequestError
from .stores import StoreConfig

logger = logging.getLogger(__name__)

# Envelope keys that BrightSites uses for collection arrays, in lookup order.
RECORD_ENVELOPE_KEYS = ("orders", "items", "data", "results")


def extract_records(body: Any) -> List[Any]:
    """Normalize a collection response body into a flat list of records.

    Accepted shapes, in order:
      1. A bare JSON array.
      2. An object with an array under "orders", "items", "data" or "results".
      3. An object with any other array-valued property; the first one in the
         body's key order is used.

    Anything else yields an empty list.
    """
    if isinstance(body, list):
        return body
    if not isinstance(body, dict):
        return []

    for key in RECORD_ENVELOPE_KEYS:
        if isinstance(body.get(key), list):
            return body[key]

    # Ambiguous when a body carries several arrays; relies on dict ordering.
    for value in body.values():
        if isinstance(value, list):
            return value
    return []


def build_query(params: Dict[str, Any]) -> Dict[str, str]:
    """Drop unset parameters and stringify the rest."""
    return {
        key: str(value)
        for key, value in params.items()
        if value is not None and value != ""
    }


class BrightSitesClient:
    """Async client for one BrightSites store.

    The client does not own its httpx.AsyncClient when one is passed in, so a
    report run can share a single connection pool across every order and
    tests can inject an httpx.MockTransport.

    Attributes:
        store: The store credentials used for every call.
        base_url: https://{subdomain}.{host}/api/{version}
        retries: Extra attempts after the first failed one.
        retry_delay: Seconds to wait between attempts (constant).
        page_size: Default per_page for fetch_all_pages().
    """

    def __init__(
        self,
        store: StoreConfig,
        http: Optional[httpx.AsyncClient] = None,
        host: str = DEFAULT_SETTINGS["BRIGHTSITES_HOST"],
        api_version: str = DEFAULT_SETTINGS["BRIGHTSITES_API_VERSION"],
        retries: int = DEFAULT_SETTINGS["REQUEST_RETRIES"],
        retry_delay: float = DEFAULT_SETTINGS["REQUEST_RETRY_DELAY"],
        page_size: int = DEFAULT_SETTINGS["PAGE_SIZE"],
        timeout: float = DEFAULT_SETTINGS["REQUEST_TIMEOUT"],
    ):
        self.store = store
        self.base_url = f"https://{store.subdomain}.{host}/api/{api_version}"
        self.retries = max(0, int(retries))
        self.retry_delay = retry_delay
        self.page_size = page_size
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "BrightSitesClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Request execution
    # ------------------------------------------------------------------

    async def request_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
    ) -> Any:
        """Perform one request with bounded retry and return the JSON body.

        The store token is always added to the query string.

        Args:
            path: Resource path below the API base (e.g. "/orders/12").
            params: Extra query parameters; None and "" values are dropped.
            method: HTTP method.

        Returns:
            The decoded JSON body.

        Raises:
            RequestError: If every attempt failed, or a 2xx body is not JSON.
        """
        url = f"{self.base_url}{path}"
        query = build_query({**(params or {}), "token": self.store.token})
        attempts = self.retries + 1
        last_error: Optional[RequestError] = None

        for attempt in range(1, attempts + 1):
            logger.debug("%s %s (attempt %d/%d)", method, url, attempt, attempts)
            try:
                response = await self._http.request(method, url, params=query)
            except httpx.HTTPError as e:
                last_error = RequestError(str(e) or e.__class__.__name__, url=url)
            else:
                if response.is_success:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise RequestError(
                            f"Invalid JSON from {url}: {e}",
                            status_code=response.status_code,
                            url=url,
                        ) from e
                last_error = RequestError(
                    f"HTTP {response.status_code} {response.reason_phrase} - {response.text}",
                    status_code=response.status_code,
                    url=url,
                )

            logger.warning(
                "Request to %s failed (attempt %d/%d): %s", url, attempt, attempts, last_error
            )
            if attempt < attempts:
                await asyncio.sleep(self.retry_delay)

        raise last_error

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    async def fetch_all_pages(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        page_size: Optional[int] = None,
    ) -> List[Any]:
        """Fetch every page of a collection resource.

        Stops when a page is empty or shorter than page_size. If a page cannot
        be fetched after all retries, the records collected from earlier pages
        are returned.

        Args:
            path: Collection path (e.g. "/orders").
            params: Resource filters; page/per_page/token are added here.
            page_size: per_page value (defaults to the client's page_size).

        Returns:
            All records in page order.
        """
        page_size = page_size or self.page_size
        records: List[Any] = []
        page = 1

        while True:
            query = {**(params or {}), "page": page, "per_page": page_size}
            try:
                body = await self.request_json(path, query)
            except RequestError as e:
                logger.warning(
                    "Stopping pagination of %s at page %d after %d record(s): %s",
                    path, page, len(records), e,
                )
                break

            batch = extract_records(body)
            if not batch:
                break
            records.extend(batch)
            if len(batch) < page_size:
                break
            page += 1

        logger.debug("Fetched %d record(s) from %s in %d page(s)", len(records), path, page)
        return records

    # ------------------------------------------------------------------
    # Resource loaders
    # ------------------------------------------------------------------

    async def list_orders(self, params: Optional[Dict[str, Any]] = None) -> List[Dict]:
        """GET /orders, all pages, with status/date filters."""
        return await self.fetch_all_pages("/orders", params)

    async def load_order(self, order_id: Any) -> Dict[str, Any]:
        """GET /orders/{id} — the full "show order" record.

        Returns:
            The order mapping, or {} when order_id is empty or the body is not
            an object.

        Raises:
            RequestError: If the order cannot be loaded after all retries.
        """
        if not order_id:
            return {}
        body = await self.request_json(f"/orders/{order_id}")
        return body if isinstance(body, dict) else {}

    async def load_line_items(self, order_id: Any) -> List[Dict]:
        """GET /orders/{id}/line_items, all pages."""
        if not order_id:
            return []
        return await self.fetch_all_pages(f"/orders/{order_id}/line_items")

    async def load_shipments(self, order_id: Any) -> List[Dict]:
        """GET /orders/{id}/shipments, all pages."""
        if not order_id:
            return []
        return await self.fetch_all_pages(f"/orders/{order_id}/shipments")
