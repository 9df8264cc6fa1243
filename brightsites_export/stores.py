"""
Store Registry — Parses the configured BrightSites stores.

Each store is one BrightSites tenant, addressed by its subdomain and
authenticated with a query-string API token. Stores are configured through the
BRIGHTSITES_STORES environment variable as a JSON object keyed by store key:

    {
      "acme":   {"subdomain": "acme", "token": "abc123", "label": "Acme Store"},
      "globex": {"subdomain": "globex"}
    }

An entry without a token uses its map key as the token. An entry without a
label is listed under its key.

The resulting StoreConfig is passed explicitly to every client call; nothing
in the exporter reads credentials from module-level state.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreConfig:
    """Credentials and display data for one BrightSites store."""

    key: str
    subdomain: str
    token: str
    label: str = ""

    @property
    def display_label(self) -> str:
        return self.label or self.key


def parse_stores(raw: Optional[str]) -> Dict[str, StoreConfig]:
    """Parse the BRIGHTSITES_STORES JSON into StoreConfig objects.

    Invalid JSON, or JSON that is not an object, logs a warning and yields no
    stores rather than failing: an exporter with no stores still starts and
    reports the problem when a run is requested.

    Args:
        raw: The raw JSON string (None or empty means "no stores").

    Returns:
        A dict of store key -> StoreConfig, in configuration order.
    """
    if not raw:
        return {}

    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("BRIGHTSITES_STORES is not valid JSON; no stores configured")
        return {}

    if not isinstance(parsed, dict):
        logger.warning("BRIGHTSITES_STORES must be a JSON object; no stores configured")
        return {}

    stores = {}
    for key, entry in parsed.items():
        entry = entry if isinstance(entry, dict) else {}
        stores[key] = StoreConfig(
            key=key,
            subdomain=str(entry.get("subdomain") or ""),
            token=str(entry.get("token") or key),
            label=str(entry.get("label") or ""),
        )
    return stores


def get_store(stores: Dict[str, StoreConfig], store_key: Any) -> StoreConfig:
    """Look up a store by key.

    Raises:
        ConfigurationError: If store_key is empty or not configured.
    """
    if not store_key:
        raise ConfigurationError(
            "storeKey is required. Call GET /api/stores to list available stores "
            "and include storeKey in the request body."
        )
    store = stores.get(str(store_key))
    if store is None:
        raise ConfigurationError(
            f"storeKey '{store_key}' not found. Available stores: {', '.join(stores)}"
        )
    return store


def describe_stores(stores: Dict[str, StoreConfig]) -> List[Dict[str, str]]:
    """Public listing of configured stores (never includes tokens)."""
    return [
        {"key": store.key, "label": store.display_label, "subdomain": store.subdomain}
        for store in stores.values()
    ]
