"""
Report Service — The request-level entry point of the exporter.

A report request names a configured store and optional filters:

    {
      "storeKey": "acme",                 required
      "reportType": "Needed Excel",       detailed (default) or any summary type
      "dateFilterType": "created_at",     timestamp field for the range filter
      "status": "shipped",                optional order status filter
      "start": "2024-01-01",              range start (used only with end)
      "end": "2024-01-31"                 range end (used only with start)
    }

and the response is:

    {
      "columns": [...34 column names...],
      "rows": [[...34 strings...], ...],
      "meta": {"orders": N, "rows": M, "debug": {...}, "failed_orders": [...]}
    }

Pipeline:
  Step 1: resolve the store (ConfigurationError -> 400)
  Step 2: list orders with status / date filters (all pages)
  Step 3: enrich every order (detailed reports only)
  Step 4: reconcile and assemble rows

handle_run() wraps run_report() with the status mapping used by the HTTP API
and the CLI: 200 on success, 400 for client errors, 500 with the error
message for anything unexpected.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
from dotenv import load_dotenv

from config import DEFAULT_SETTINGS, DETAILED_REPORT_TYPE, STORES_ENV_VAR

from .aliases import ORDER_NUMBER_KEYS, resolve_first
from .brightsites_client import BrightSitesClient
from .enrichment import EnrichmentFailure, OrderEnricher, order_reference
from .exceptions import ConfigurationError, InvalidRequestError, RequestError
from .reconciler import FieldReconciler
from .row_assembler import ALL_COLUMNS, RowAssembler
from .stores import StoreConfig, describe_stores, get_store, parse_stores

logger = logging.getLogger(__name__)

DEBUG_ORDER_KEYS = (
    "customer",
    "customer_email",
    "billing",
    "billing_address",
    "billing_contact",
    "shipping",
    "shipping_address",
    "shipping_contact",
)


def _env_flag(name: str) -> bool:
    return os.getenv(name, str(DEFAULT_SETTINGS[name])).lower() == "true"


def _env_number(name: str, cast: Callable[[str], Any]) -> Any:
    raw = os.getenv(name, "")
    if not raw:
        return DEFAULT_SETTINGS[name]
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, DEFAULT_SETTINGS[name])
        return DEFAULT_SETTINGS[name]


def to_iso_utc(value: Any) -> str:
    """Render a date/time input as UTC ISO-8601 with milliseconds and "Z".

    Accepts datetimes, ISO strings (date-only or full, with or without an
    offset) and epoch milliseconds. Naive values are taken as UTC.

    Raises:
        InvalidRequestError: If the value cannot be read as a date.
    """
    try:
        if isinstance(value, datetime):
            moment = value
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        else:
            text = str(value).strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            moment = datetime.fromisoformat(text)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise InvalidRequestError(f"Invalid date value: {value!r}") from e

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"


def build_order_params(
    status: Any = None,
    date_filter_type: str = DEFAULT_SETTINGS["DATE_FILTER_TYPE"],
    start: Any = None,
    end: Any = None,
) -> Dict[str, str]:
    """Query filters for GET /orders.

    The date range is applied only when both start and end are given, as
    {date_filter_type}_from / {date_filter_type}_to.
    """
    params = {}
    if status:
        params["status"] = str(status)
    if start and end:
        params[f"{date_filter_type}_from"] = to_iso_utc(start)
        params[f"{date_filter_type}_to"] = to_iso_utc(end)
    return params


def build_debug_snapshot(order: Dict[str, Any], detail: Optional[Dict[str, Any]] = None) -> Dict:
    """Compact view of the first order's identity and address objects.

    Helps operators see which address shapes a store actually sends. The
    detail record is preferred when it could be loaded.
    """
    source = detail or order
    fields = {"order_id": resolve_first((source, order), ORDER_NUMBER_KEYS)}
    for key in DEBUG_ORDER_KEYS:
        fields[key] = source.get(key)
    return {"sampleOrderKeys": list(source.keys()), "sampleOrderFields": fields}


class ReportService:
    """Runs export reports for the configured stores.

    Attributes:
        stores: Configured stores by key.
        report_type / date_filter_type: Defaults for requests that omit them.
        concurrency: Enrichment worker pool size.
        cross_role_fallback: Passed to every FieldReconciler.
        http_factory: Builds the httpx.AsyncClient shared by one report run.
    """

    def __init__(
        self,
        stores: Dict[str, StoreConfig],
        host: str = DEFAULT_SETTINGS["BRIGHTSITES_HOST"],
        api_version: str = DEFAULT_SETTINGS["BRIGHTSITES_API_VERSION"],
        page_size: int = DEFAULT_SETTINGS["PAGE_SIZE"],
        concurrency: int = DEFAULT_SETTINGS["CONCURRENCY"],
        retries: int = DEFAULT_SETTINGS["REQUEST_RETRIES"],
        retry_delay: float = DEFAULT_SETTINGS["REQUEST_RETRY_DELAY"],
        timeout: float = DEFAULT_SETTINGS["REQUEST_TIMEOUT"],
        cross_role_fallback: bool = DEFAULT_SETTINGS["CROSS_ROLE_CONTACT_FALLBACK"],
        report_type: str = DEFAULT_SETTINGS["REPORT_TYPE"],
        date_filter_type: str = DEFAULT_SETTINGS["DATE_FILTER_TYPE"],
        http_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ):
        self.stores = stores
        self.host = host
        self.api_version = api_version
        self.page_size = page_size
        self.concurrency = concurrency
        self.retries = retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.cross_role_fallback = cross_role_fallback
        self.report_type = report_type
        self.date_filter_type = date_filter_type
        self.http_factory = http_factory or (lambda: httpx.AsyncClient(timeout=self.timeout))

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "ReportService":
        """Build a service from environment variables (optionally loading a .env file).

        Args:
            env_file: Path to a .env file; loaded with python-dotenv when it exists.
            **overrides: Constructor arguments that take precedence over the env.
        """
        if env_file and Path(env_file).exists():
            load_dotenv(env_file)

        settings = dict(
            stores=parse_stores(os.getenv(STORES_ENV_VAR, "")),
            host=os.getenv("BRIGHTSITES_HOST", DEFAULT_SETTINGS["BRIGHTSITES_HOST"]),
            api_version=os.getenv("BRIGHTSITES_API_VERSION", DEFAULT_SETTINGS["BRIGHTSITES_API_VERSION"]),
            page_size=_env_number("PAGE_SIZE", int),
            concurrency=_env_number("CONCURRENCY", int),
            retries=_env_number("REQUEST_RETRIES", int),
            retry_delay=_env_number("REQUEST_RETRY_DELAY", float),
            timeout=_env_number("REQUEST_TIMEOUT", float),
            cross_role_fallback=_env_flag("CROSS_ROLE_CONTACT_FALLBACK"),
            report_type=os.getenv("REPORT_TYPE", DEFAULT_SETTINGS["REPORT_TYPE"]),
            date_filter_type=os.getenv("DATE_FILTER_TYPE", DEFAULT_SETTINGS["DATE_FILTER_TYPE"]),
        )
        settings.update(overrides)
        return cls(**settings)

    def list_stores(self) -> List[Dict[str, str]]:
        """Configured stores as [{key, label, subdomain}]."""
        return describe_stores(self.stores)

    def make_client(self, store: StoreConfig, http: httpx.AsyncClient) -> BrightSitesClient:
        return BrightSitesClient(
            store,
            http=http,
            host=self.host,
            api_version=self.api_version,
            retries=self.retries,
            retry_delay=self.retry_delay,
            page_size=self.page_size,
        )

    async def run_report(self, payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Run one report request end to end.

        Raises:
            ConfigurationError: storeKey missing or unknown.
            InvalidRequestError: start/end cannot be parsed.
        """
        payload = payload if isinstance(payload, dict) else {}

        store = get_store(self.stores, payload.get("storeKey"))
        report_type = payload.get("reportType") or self.report_type
        date_filter_type = payload.get("dateFilterType") or self.date_filter_type
        params = build_order_params(
            payload.get("status"), date_filter_type, payload.get("start"), payload.get("end")
        )

        logger.info(
            "Running '%s' report for store %s with filters %s", report_type, store.key, params
        )
        assembler = RowAssembler(FieldReconciler(self.cross_role_fallback))
        failures: List[EnrichmentFailure] = []

        async with self.http_factory() as http:
            client = self.make_client(store, http)
            orders = await client.list_orders(params)
            debug = await self._debug_snapshot(client, orders)

            if report_type == DETAILED_REPORT_TYPE:
                enriched = await OrderEnricher(client, self.concurrency).enrich(orders)
                failures = [e for e in enriched if isinstance(e, EnrichmentFailure)]
                rows = assembler.detailed_rows(enriched)
            else:
                rows = assembler.summary_rows(orders)

        meta: Dict[str, Any] = {"orders": len(orders), "rows": len(rows)}
        if debug:
            meta["debug"] = debug
        if failures:
            meta["failed_orders"] = [{"order": f.order_ref, "error": f.error} for f in failures]

        logger.info("Report complete: %d order(s), %d row(s)", len(orders), len(rows))
        return {"columns": list(ALL_COLUMNS), "rows": rows, "meta": meta}

    async def handle_run(self, payload: Optional[Dict[str, Any]]) -> Tuple[int, Dict[str, Any]]:
        """run_report() mapped to (status_code, body)."""
        try:
            return 200, await self.run_report(payload)
        except (ConfigurationError, InvalidRequestError) as e:
            return 400, {"error": str(e)}
        except Exception as e:
            logger.exception("Error running report")
            return 500, {"error": str(e)}

    async def _debug_snapshot(self, client: BrightSitesClient, orders: List[Dict]) -> Optional[Dict]:
        if not orders or not isinstance(orders[0], dict):
            return None
        first = orders[0]
        try:
            detail = await client.load_order(order_reference(first))
        except RequestError as e:
            logger.debug("Debug snapshot falls back to the list record: %s", e)
            detail = None
        return build_debug_snapshot(first, detail)
