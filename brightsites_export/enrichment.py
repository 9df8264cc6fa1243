"""
Order Enrichment — Loads detail, line items and shipments for every order.

The /orders list endpoint returns a compact snapshot of each order. Building
line-item rows needs three more calls per order:

    GET /orders/{id}              full "show order" record
    GET /orders/{id}/line_items   all pages
    GET /orders/{id}/shipments    all pages

The three calls for one order run concurrently. Orders themselves are
processed by a fixed pool of asyncio workers (default 5), so at most that many
orders have requests in flight at once.

Merge rule:
    The detail record is laid over the snapshot: detail keys win, keys only
    present in the snapshot are kept.

Failure isolation:
    If any call for an order raises, that order's slot holds an
    EnrichmentFailure instead of an EnrichedOrder and the other orders carry
    on. Line-item and shipment pagination already degrade to partial lists, so
    in practice a failure comes from the detail fetch.

Pipeline context:
    Used in Step 3 of the report pipeline. Output feeds the row assembler.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from config import DEFAULT_SETTINGS

from .aliases import ORDER_REFERENCE_KEYS, resolve
from .brightsites_client import BrightSitesClient

logger = logging.getLogger(__name__)


@dataclass
class EnrichedOrder:
    """An order merged with its detail record, plus its line items and shipments."""

    order: Dict[str, Any]
    line_items: List[Dict[str, Any]] = field(default_factory=list)
    shipments: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class EnrichmentFailure:
    """Marker left in the slot of an order whose enrichment raised."""

    index: int
    order_ref: str
    error: str


EnrichmentResult = Union[EnrichedOrder, EnrichmentFailure]


async def run_pool(
    items: Sequence[Any],
    worker: Callable[[Any, int], Awaitable[Any]],
    concurrency: int = DEFAULT_SETTINGS["CONCURRENCY"],
    on_error: Optional[Callable[[Any, int, BaseException], Any]] = None,
) -> List[Any]:
    """Run ``worker`` over ``items`` with at most ``concurrency`` in flight.

    A fixed set of worker coroutines pull the next index from a shared
    counter. Results are stored by index, so the output order matches the
    input order regardless of completion order.

    Args:
        items: Inputs to process.
        worker: Coroutine function called as worker(item, index).
        concurrency: Number of logical workers.
        on_error: Builds the slot value when worker raises; defaults to
            storing the exception itself.

    Returns:
        One result per item.
    """
    results: List[Any] = [None] * len(items)
    next_index = 0

    async def runner() -> None:
        nonlocal next_index
        while next_index < len(items):
            index = next_index
            next_index += 1
            try:
                results[index] = await worker(items[index], index)
            except Exception as e:
                results[index] = on_error(items[index], index, e) if on_error else e

    workers = max(1, min(int(concurrency), len(items)))
    await asyncio.gather(*(runner() for _ in range(workers)))
    return results


def order_reference(order: Any) -> Any:
    """The identifier used in /orders/{id} paths."""
    return resolve(order, ORDER_REFERENCE_KEYS)


class OrderEnricher:
    """Loads the full data set for each order through a BrightSitesClient.

    Attributes:
        client: Client bound to the store being exported.
        concurrency: Worker pool size.
    """

    def __init__(
        self,
        client: BrightSitesClient,
        concurrency: int = DEFAULT_SETTINGS["CONCURRENCY"],
    ):
        self.client = client
        self.concurrency = concurrency

    async def enrich_one(self, order: Dict[str, Any], index: int = 0) -> EnrichedOrder:
        """Load detail, line items and shipments for one order concurrently.

        All three loads finish before this returns or raises, so a failed
        order never leaves requests in flight behind its worker.
        """
        ref = order_reference(order)
        outcomes = await asyncio.gather(
            self.client.load_order(ref),
            self.client.load_line_items(ref),
            self.client.load_shipments(ref),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        detail, line_items, shipments = outcomes
        merged = {**order, **(detail or {})}
        return EnrichedOrder(order=merged, line_items=line_items, shipments=shipments)

    async def enrich(self, orders: Sequence[Dict[str, Any]]) -> List[EnrichmentResult]:
        """Enrich every order; failed orders become EnrichmentFailure markers."""

        def failure(order: Dict[str, Any], index: int, error: BaseException) -> EnrichmentFailure:
            ref = order_reference(order)
            logger.warning("Enrichment failed for order %s: %s", ref, error)
            return EnrichmentFailure(index=index, order_ref=str(ref or ""), error=str(error))

        results = await run_pool(orders, self.enrich_one, self.concurrency, on_error=failure)

        failed = sum(1 for r in results if isinstance(r, EnrichmentFailure))
        logger.info("Enriched %d order(s), %d failed", len(results) - failed, failed)
        return results
