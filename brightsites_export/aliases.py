"""
Alias Resolution — Named key-alias lists and the first-match accessors.

BrightSites records are loosely shaped: the same logical field can arrive under
several key names depending on the endpoint (list vs. show order), the store's
configuration and the age of the record. Every logical field the exporter
reads is therefore described by an ordered tuple of candidate keys, and read
with resolve(), which returns the first usable value or None.

Resolution rules:
  - Keys are tried in tuple order; the first match wins.
  - None, blank strings and empty containers never match.
  - resolve() only accepts scalars, so an embedded object stored under an
    alias such as "address" does not leak into a text column.
  - resolve_value() also accepts lists and mappings (product options,
    personalizations); resolve_object() accepts mappings only.

Absence is represented by None throughout the reconciler; as_text() is the
single place where a resolved value becomes a string.
"""

import json
from typing import Any, Iterable, Mapping, Optional, Sequence

# ---------------------------------------------------------------------------
# Order-level aliases
# ---------------------------------------------------------------------------

ORDER_NUMBER_KEYS = ("order_id", "id")
ORDER_REFERENCE_KEYS = ("id", "order_id", "orderNumber", "number")
PLACED_AT_KEYS = ("placed_at", "created_at")
STATUS_KEYS = ("status",)
CUSTOMER_NAME_KEYS = ("customer_name", "customer", "customer_full_name", "customerDisplayName")
CUSTOMER_EMAIL_KEYS = ("customer_email",)
CUSTOMER_FALLBACK_EMAIL_KEYS = ("customer",)
CUSTOMER_PHONE_KEYS = ("customer_phone",)
ORDER_SHIPPING_TOTAL_KEYS = ("shipping_total",)
ORDER_SHIPPING_METHOD_KEYS = ("shipping_method",)

# ---------------------------------------------------------------------------
# Line-item aliases
# ---------------------------------------------------------------------------

LINE_ITEM_ID_KEYS = ("id",)
QUANTITY_KEYS = ("quantity",)
PRODUCT_NAME_KEYS = ("name", "product_name")
PRODUCT_OPTIONS_KEYS = ("options_text", "product_options", "options")
PERSONALIZATION_KEYS = (
    "product_personalizations",
    "personalizations",
    "personalization",
    "product_personalization",
)
PERSONALIZATION_LIST_KEYS = ("personalizations", "product_personalizations")

OPTION_NAME_KEYS = ("option_name", "name")
OPTION_VALUE_KEYS = ("sub_option_name", "value", "sub")
OPTION_MARKER_KEYS = ("option_name", "sub_option_name")

PERSONALIZATION_TITLE_KEYS = ("title", "name")
ATTRIBUTE_KEY_KEYS = ("key", "name")
ATTRIBUTE_VALUE_KEYS = ("value", "val")
PRICE_TYPE_KEYS = ("modifier_type", "type")
PRICE_AMOUNT_KEYS = ("amount", "value")

# ---------------------------------------------------------------------------
# Shipment aliases
# ---------------------------------------------------------------------------

TRACKING_NUMBER_KEYS = ("tracking_number", "tracking")
LANDED_COST_KEYS = ("landed_cost", "shipping_cost")
SHIPPING_METHOD_KEYS = ("shipping_method",)
SHIP_DATE_KEYS = ("ship_date", "shipped_at")
SHIPMENT_ADDRESS_KEYS = ("shipping_address", "address", "to_address", "recipient")
RECIPIENT_NAME_KEYS = ("name", "recipient_name", "to_name", "recipient", "full_name")

# ---------------------------------------------------------------------------
# Address / contact aliases (shared by billing and shipping)
# ---------------------------------------------------------------------------

FIRST_NAME_KEYS = ("first_name", "first", "firstName", "firstname")
LAST_NAME_KEYS = ("last_name", "last", "lastName", "lastname")
COMPANY_KEYS = ("company", "business", "org")
ADDRESS1_KEYS = ("first_address", "address1", "firstAddress", "address", "street1")
ADDRESS2_KEYS = ("second_address", "address2", "secondAddress", "address_line_2", "street2")
CITY_KEYS = ("city", "town")
STATE_KEYS = ("state", "province", "region")
ZIP_KEYS = ("zip", "postcode", "postal_code", "postal")
COUNTRY_KEYS = ("country", "country_name")
EMAIL_KEYS = ("email", "contact_email")
PHONE_KEYS = ("phone", "telephone", "contact_phone")

# Keys whose presence marks an address object as carrying its own contact data.
CONTACT_MARKER_KEYS = FIRST_NAME_KEYS + LAST_NAME_KEYS + EMAIL_KEYS + PHONE_KEYS


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def resolve(source: Any, keys: Sequence[str]) -> Optional[Any]:
    """Return the first non-empty scalar found under any of ``keys``.

    Args:
        source: A mapping (anything else resolves to None).
        keys: Candidate key names, most preferred first.

    Returns:
        The raw value (str, int, float or bool), or None when no key matches.
    """
    if not isinstance(source, Mapping):
        return None
    for key in keys:
        value = source.get(key)
        if isinstance(value, (Mapping, list, tuple)) or _is_empty(value):
            continue
        return value
    return None


def resolve_value(source: Any, keys: Sequence[str]) -> Optional[Any]:
    """Like resolve(), but lists and mappings are acceptable matches too."""
    if not isinstance(source, Mapping):
        return None
    for key in keys:
        value = source.get(key)
        if not _is_empty(value):
            return value
    return None


def resolve_object(source: Any, keys: Sequence[str]) -> Optional[Mapping]:
    """Return the first mapping found under any of ``keys``, even an empty one."""
    if not isinstance(source, Mapping):
        return None
    for key in keys:
        value = source.get(key)
        if isinstance(value, Mapping):
            return value
    return None


def resolve_first(sources: Iterable[Any], keys: Sequence[str]) -> Optional[Any]:
    """Apply resolve() to each source in turn and return the first hit."""
    for source in sources:
        value = resolve(source, keys)
        if value is not None:
            return value
    return None


def has_any(source: Any, keys: Sequence[str]) -> bool:
    return resolve(source, keys) is not None


def as_text(value: Any) -> Optional[str]:
    """Convert a resolved value to its cell text, keeping None for absence.

    Integral floats lose their ".0" and booleans are lowercased, matching how
    the upstream JSON renders them.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)
