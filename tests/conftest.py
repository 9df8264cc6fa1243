"""Shared fixtures: an in-memory BrightSites API served through httpx.MockTransport."""

import re

import httpx
import pytest

from brightsites_export.stores import StoreConfig


API_PREFIX = "/api/v2.6.1"


class FakeStoreAPI:
    """Answers BrightSites REST paths from in-memory data and records each request.

    Attributes:
        orders: The /orders collection (paginated by page/per_page).
        details: order id -> "show order" body.
        line_items / shipments: order id -> collection.
        failing: Paths (below the API prefix) that always answer 500.
        requests: Every httpx.Request received, in order.
    """

    def __init__(self, orders=None, details=None, line_items=None, shipments=None):
        self.orders = orders or []
        self.details = details or {}
        self.line_items = line_items or {}
        self.shipments = shipments or {}
        self.failing = set()
        self.requests = []

    def paths(self):
        return [r.url.path[len(API_PREFIX):] for r in self.requests]

    def _page(self, records, request):
        page = int(request.url.params.get("page", "1"))
        per_page = int(request.url.params.get("per_page", "200"))
        return records[(page - 1) * per_page: page * per_page]

    def handler(self, request):
        self.requests.append(request)
        path = request.url.path[len(API_PREFIX):]
        if path in self.failing:
            return httpx.Response(500, text="boom")

        if path == "/orders":
            return httpx.Response(200, json={"orders": self._page(self.orders, request)})

        match = re.fullmatch(r"/orders/([^/]+)(/line_items|/shipments)?", path)
        if not match:
            return httpx.Response(404, text="not found")
        order_id, sub = match.groups()
        if sub == "/line_items":
            return httpx.Response(200, json=self._page(self.line_items.get(order_id, []), request))
        if sub == "/shipments":
            return httpx.Response(
                200, json={"shipments": self._page(self.shipments.get(order_id, []), request)}
            )
        if order_id not in self.details:
            return httpx.Response(404, text="order not found")
        return httpx.Response(200, json=self.details[order_id])

    def http(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def store():
    return StoreConfig(key="acme", subdomain="acme", token="tok-1", label="Acme Store")


@pytest.fixture
def fake_api():
    return FakeStoreAPI()
