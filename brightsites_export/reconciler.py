"""
Field Reconciler — Maps merged BrightSites records onto the export fields.

This module sits between order enrichment (Step 3) and row assembly (Step 4).
It takes one merged order, one of its line items and the order's shipments
and derives every exported value: tracking numbers, shipping cost / method /
date, product text, and the billing and shipping address data.

Upstream data is inconsistent, so every field is resolved through an ordered
fallback chain of alias lists (see aliases.py). Nothing here raises: a field
that cannot be resolved stays None and becomes an empty cell later.

Key behaviors:

  Representative shipment
      The first shipment whose line_item_ids / line_items reference the line
      item (ids compared as strings); else the first shipment; else none. It
      supplies landed cost, ship method, ship date and the shipment address.

  Tracking
      Distinct tracking numbers of the shipments that reference the line item,
      in first-seen order, joined with "; ". When no shipment references it,
      every distinct tracking number on the order is used instead.

  Address resolution
      Per role (billing / shipping / auto):
        contact  = supplied object if it carries name/email/phone fields,
                   else {role}_contact, else the other role's contact
        address  = supplied object -> {role}_address (or the other role's)
                   -> representative shipment address (shipping only)
        name     = "first last" -> order customer name -> shipment recipient
      The cross-role steps are controlled by cross_role_fallback: stores often
      fill in only one contact object and use it for both roles.

The same ResolvedAddress feeds both the "Billing Info" / "Shipping Info" blob
columns and the twenty structured address columns.
"""

import json
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .aliases import (
    ADDRESS1_KEYS,
    ADDRESS2_KEYS,
    ATTRIBUTE_KEY_KEYS,
    ATTRIBUTE_VALUE_KEYS,
    CITY_KEYS,
    COMPANY_KEYS,
    CONTACT_MARKER_KEYS,
    COUNTRY_KEYS,
    CUSTOMER_EMAIL_KEYS,
    CUSTOMER_FALLBACK_EMAIL_KEYS,
    CUSTOMER_NAME_KEYS,
    CUSTOMER_PHONE_KEYS,
    EMAIL_KEYS,
    FIRST_NAME_KEYS,
    LANDED_COST_KEYS,
    LAST_NAME_KEYS,
    LINE_ITEM_ID_KEYS,
    OPTION_MARKER_KEYS,
    OPTION_NAME_KEYS,
    OPTION_VALUE_KEYS,
    ORDER_NUMBER_KEYS,
    ORDER_SHIPPING_METHOD_KEYS,
    ORDER_SHIPPING_TOTAL_KEYS,
    PERSONALIZATION_KEYS,
    PERSONALIZATION_LIST_KEYS,
    PERSONALIZATION_TITLE_KEYS,
    PHONE_KEYS,
    PLACED_AT_KEYS,
    PRICE_AMOUNT_KEYS,
    PRICE_TYPE_KEYS,
    PRODUCT_NAME_KEYS,
    PRODUCT_OPTIONS_KEYS,
    QUANTITY_KEYS,
    RECIPIENT_NAME_KEYS,
    SHIP_DATE_KEYS,
    SHIPMENT_ADDRESS_KEYS,
    SHIPPING_METHOD_KEYS,
    STATE_KEYS,
    STATUS_KEYS,
    TRACKING_NUMBER_KEYS,
    ZIP_KEYS,
    as_text,
    has_any,
    resolve,
    resolve_first,
    resolve_object,
    resolve_value,
)

BILLING = "billing"
SHIPPING = "shipping"
AUTO = "auto"

BLOB_SEPARATOR = " | "
TRACKING_SEPARATOR = "; "
OPTIONS_SEPARATOR = "; "
PERSONALIZATION_SEPARATOR = " ; "


def join_non_empty(parts: Iterable[Any], sep: str = BLOB_SEPARATOR) -> Optional[str]:
    """Join the non-blank parts with ``sep``; None when nothing is left."""
    texts = [as_text(p) for p in parts]
    kept = [t for t in texts if t is not None and t.strip()]
    return sep.join(kept) if kept else None


def first_present(*values: Any) -> Optional[Any]:
    """The first value that is not None (0 and False count as present)."""
    for value in values:
        if value is not None:
            return value
    return None


# ---------------------------------------------------------------------------
# Shipments
# ---------------------------------------------------------------------------


def shipment_line_item_ids(shipment: Any) -> List[str]:
    """Line-item ids a shipment references, as strings.

    Shipments list them either as "line_item_ids" or as embedded "line_items"
    (objects carrying an id, or bare ids).
    """
    if not isinstance(shipment, Mapping):
        return []
    ids = []
    direct = shipment.get("line_item_ids")
    embedded = shipment.get("line_items")
    for value in direct if isinstance(direct, list) else []:
        if value is not None:
            ids.append(str(as_text(value)))
    for item in embedded if isinstance(embedded, list) else []:
        value = resolve(item, LINE_ITEM_ID_KEYS) if isinstance(item, Mapping) else item
        if value is not None:
            ids.append(str(as_text(value)))
    return ids


def references_line_item(shipment: Any, line_item_id: Any) -> bool:
    if line_item_id is None or line_item_id == "":
        return False
    return as_text(line_item_id) in shipment_line_item_ids(shipment)


def select_representative_shipment(shipments: List[Dict], line_item_id: Any) -> Optional[Dict]:
    """Pick the shipment that supplies cost, method and date for a line item."""
    for shipment in shipments or []:
        if references_line_item(shipment, line_item_id):
            return shipment
    for shipment in shipments or []:
        if isinstance(shipment, Mapping):
            return shipment
    return None


def _distinct_tracking(shipments: Iterable[Any]) -> List[str]:
    seen: List[str] = []
    for shipment in shipments:
        number = as_text(resolve(shipment, TRACKING_NUMBER_KEYS))
        if number and number not in seen:
            seen.append(number)
    return seen


def tracking_for_line_item(shipments: List[Dict], line_item_id: Any) -> str:
    """Tracking numbers for a line item, joined with "; ".

    Uses the shipments that reference the line item; when none do, falls back
    to every tracking number on the order. Empty string when there are no
    tracking numbers at all.
    """
    shipments = shipments or []
    linked = [s for s in shipments if references_line_item(s, line_item_id)]
    numbers = _distinct_tracking(linked)
    if not numbers:
        numbers = _distinct_tracking(shipments)
    return TRACKING_SEPARATOR.join(numbers)


# ---------------------------------------------------------------------------
# Product text
# ---------------------------------------------------------------------------


def _format_option(option: Any) -> Optional[str]:
    if option is None:
        return None
    if isinstance(option, str):
        return option
    if isinstance(option, Mapping):
        if has_any(option, OPTION_MARKER_KEYS):
            return join_non_empty(
                [resolve(option, OPTION_NAME_KEYS), resolve(option, OPTION_VALUE_KEYS)], ": "
            )
        return json.dumps(option, separators=(",", ":"), default=str, ensure_ascii=False)
    return as_text(option)


def format_product_options(options: Any) -> Optional[str]:
    """Render product options as text.

    Strings pass through. Lists are rendered entry by entry ("Size: L" for
    option objects, compact JSON for other objects) and joined with "; ".
    Mappings become "key: value" pairs joined with "; ".
    """
    if options is None or options == "":
        return None
    if isinstance(options, str):
        return options
    if isinstance(options, list):
        return join_non_empty([_format_option(o) for o in options], OPTIONS_SEPARATOR)
    if isinstance(options, Mapping):
        pairs = [f"{key}: {as_text(value) or ''}" for key, value in options.items()]
        return OPTIONS_SEPARATOR.join(pairs) or None
    return as_text(options)


def _format_attribute(attribute: Any) -> Optional[str]:
    if isinstance(attribute, str):
        return attribute
    return join_non_empty(
        [resolve(attribute, ATTRIBUTE_KEY_KEYS), resolve(attribute, ATTRIBUTE_VALUE_KEYS)], ": "
    )


def _format_personalization_item(item: Any) -> Optional[str]:
    if isinstance(item, str):
        return item or None
    if not isinstance(item, Mapping):
        return None

    title = resolve(item, PERSONALIZATION_TITLE_KEYS)

    attributes = None
    if isinstance(item.get("attributes"), list):
        attributes = join_non_empty([_format_attribute(a) for a in item["attributes"]], ", ")

    price = None
    modifier = item.get("price_modifier")
    if isinstance(modifier, Mapping):
        price = join_non_empty(
            [resolve(modifier, PRICE_TYPE_KEYS), resolve(modifier, PRICE_AMOUNT_KEYS)], ""
        )

    return join_non_empty([
        title,
        f"Attributes: {attributes}" if attributes else None,
        f"Price: {price}" if price else None,
    ])


def format_personalization(personalization: Any) -> Optional[str]:
    """Render product personalization as text.

    Each structured item becomes "title | Attributes: k: v, ... | Price: {type}{amount}"
    with empty segments left out; items are joined with " ; ".
    """
    if personalization is None or personalization == "":
        return None
    if isinstance(personalization, str):
        return personalization
    items = personalization
    if isinstance(personalization, Mapping):
        items = resolve_value(personalization, PERSONALIZATION_LIST_KEYS)
    if not isinstance(items, list):
        return None
    return join_non_empty(
        [_format_personalization_item(i) for i in items], PERSONALIZATION_SEPARATOR
    )


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


@dataclass
class ResolvedAddress:
    """Structured billing or shipping data; None marks an unresolved field."""

    name: Optional[str] = None
    company: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    def values(self) -> List[Optional[str]]:
        """Field values in structured-column order."""
        return [getattr(self, f.name) for f in fields(self)]

    def to_blob(self) -> str:
        """Render as "name | company | a1 a2 | city, state zip | country | email | phone"."""
        state_zip = join_non_empty([self.state, self.zip_code], " ")
        return join_non_empty([
            self.name,
            self.company,
            join_non_empty([self.address1, self.address2], " "),
            join_non_empty([self.city, state_zip], ", "),
            self.country,
            self.email,
            self.phone,
        ]) or ""


def merged_role_source(order: Mapping, role: str) -> Dict[str, Any]:
    """Merge {role}, {role}_address and {role}_contact into one mapping.

    Later objects win, but a blank value never overwrites a filled one.
    """
    merged: Dict[str, Any] = {}
    for key in (role, f"{role}_address", f"{role}_contact"):
        obj = order.get(key) if isinstance(order, Mapping) else None
        if not isinstance(obj, Mapping):
            continue
        for name, value in obj.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                merged.setdefault(name, value)
            else:
                merged[name] = value
    return merged


@dataclass
class ReconciledFields:
    """Every exported value for one row, before conversion to cells."""

    order_number: Optional[str] = None
    placed: Optional[str] = None
    status: Optional[str] = None
    line_item_id: Optional[str] = None
    tracking: Optional[str] = None
    landed_cost: Optional[str] = None
    ship_method: Optional[str] = None
    ship_date: Optional[str] = None
    personalization: Optional[str] = None
    quantity: Optional[str] = None
    product_name: Optional[str] = None
    product_options: Optional[str] = None
    billing: ResolvedAddress = field(default_factory=ResolvedAddress)
    shipping: ResolvedAddress = field(default_factory=ResolvedAddress)


class FieldReconciler:
    """Derives export fields from merged orders, line items and shipments.

    Attributes:
        cross_role_fallback: Let one role borrow the other role's contact and
            address objects when its own are missing.
    """

    def __init__(self, cross_role_fallback: bool = True):
        self.cross_role_fallback = cross_role_fallback

    def _order_object(self, order: Mapping, role: str, suffix: str) -> Optional[Mapping]:
        """The order's {role}_{suffix} object, falling back to the other role."""
        primary = BILLING if role == BILLING else SHIPPING
        other = SHIPPING if primary == BILLING else BILLING
        obj = resolve_object(order, (f"{primary}_{suffix}",))
        if obj is None and (self.cross_role_fallback or role == AUTO):
            obj = resolve_object(order, (f"{other}_{suffix}",))
        return obj

    def resolve_address(
        self,
        role: str,
        supplied: Optional[Mapping],
        order: Mapping,
        shipment: Optional[Mapping] = None,
    ) -> ResolvedAddress:
        """Resolve the ten structured fields for one role.

        Args:
            role: BILLING, SHIPPING or AUTO.
            supplied: The explicit address object (may carry contact fields).
            order: The merged order.
            shipment: Representative shipment; only used for SHIPPING.

        Returns:
            A ResolvedAddress with None for every field that could not be found.
        """
        supplied = supplied if isinstance(supplied, Mapping) else {}
        order = order if isinstance(order, Mapping) else {}

        if has_any(supplied, CONTACT_MARKER_KEYS):
            contact = supplied
        else:
            contact = self._order_object(order, role, "contact") or {}
        order_address = self._order_object(order, role, "address") or {}

        shipment_address: Mapping = {}
        if role == SHIPPING and isinstance(shipment, Mapping):
            shipment_address = resolve_object(shipment, SHIPMENT_ADDRESS_KEYS) or {}

        address_sources = (supplied, order_address, shipment_address)

        def pick(keys) -> Optional[str]:
            return as_text(resolve_first(address_sources, keys))

        first = as_text(resolve_first((supplied, contact), FIRST_NAME_KEYS))
        last = as_text(resolve_first((supplied, contact), LAST_NAME_KEYS))
        name = f"{(first or '').strip()} {(last or '').strip()}".strip() or None
        if name is None:
            name = as_text(resolve(order, CUSTOMER_NAME_KEYS))
        if name is None:
            name = as_text(resolve(shipment_address, RECIPIENT_NAME_KEYS))

        email = as_text(first_present(
            resolve_first((supplied, contact), EMAIL_KEYS),
            resolve(order, CUSTOMER_EMAIL_KEYS),
            resolve(order, CUSTOMER_FALLBACK_EMAIL_KEYS),
            resolve(shipment_address, EMAIL_KEYS),
        ))
        phone = as_text(first_present(
            resolve_first((supplied, contact), PHONE_KEYS),
            resolve(order, CUSTOMER_PHONE_KEYS),
        ))

        return ResolvedAddress(
            name=name.strip() if name else None,
            company=pick(COMPANY_KEYS),
            address1=pick(ADDRESS1_KEYS),
            address2=pick(ADDRESS2_KEYS),
            city=pick(CITY_KEYS),
            state=pick(STATE_KEYS),
            zip_code=pick(ZIP_KEYS),
            country=pick(COUNTRY_KEYS),
            email=email,
            phone=phone,
        )

    def compose_address_blob(
        self,
        supplied: Optional[Mapping],
        order: Mapping,
        role: str = AUTO,
        shipment: Optional[Mapping] = None,
    ) -> str:
        """Resolve an address and render it as a single " | "-joined string."""
        return self.resolve_address(role, supplied, order, shipment).to_blob()

    def _order_fields(self, order: Mapping) -> ReconciledFields:
        return ReconciledFields(
            order_number=as_text(resolve(order, ORDER_NUMBER_KEYS)),
            placed=as_text(resolve(order, PLACED_AT_KEYS)),
            status=as_text(resolve(order, STATUS_KEYS)),
        )

    def reconcile_line_item(
        self,
        order: Mapping,
        line_item: Mapping,
        shipments: List[Dict],
    ) -> ReconciledFields:
        """All fields for one (order, line item) row of the detailed report."""
        shipments = [s for s in shipments or [] if isinstance(s, Mapping)]
        line_item = line_item if isinstance(line_item, Mapping) else {}
        line_item_id = resolve(line_item, LINE_ITEM_ID_KEYS)
        representative = select_representative_shipment(shipments, line_item_id)

        result = self._order_fields(order)
        result.line_item_id = as_text(line_item_id)
        result.tracking = tracking_for_line_item(shipments, line_item_id) or None
        result.landed_cost = as_text(first_present(
            resolve(representative, LANDED_COST_KEYS),
            resolve(order, ORDER_SHIPPING_TOTAL_KEYS),
        ))
        result.ship_method = as_text(first_present(
            resolve(representative, SHIPPING_METHOD_KEYS),
            resolve(order, ORDER_SHIPPING_METHOD_KEYS),
        ))
        result.ship_date = as_text(resolve(representative, SHIP_DATE_KEYS))
        result.personalization = format_personalization(
            resolve_value(line_item, PERSONALIZATION_KEYS)
        )
        result.quantity = as_text(resolve(line_item, QUANTITY_KEYS))
        result.product_name = as_text(resolve(line_item, PRODUCT_NAME_KEYS))
        result.product_options = format_product_options(
            resolve_value(line_item, PRODUCT_OPTIONS_KEYS)
        )
        result.billing = self.resolve_address(BILLING, merged_role_source(order, BILLING), order)
        result.shipping = self.resolve_address(
            SHIPPING, merged_role_source(order, SHIPPING), order, representative
        )
        return result

    def reconcile_order(self, order: Mapping) -> ReconciledFields:
        """Order-level fields for one row of a summary report."""
        result = self._order_fields(order)
        result.landed_cost = as_text(resolve(order, ORDER_SHIPPING_TOTAL_KEYS))
        result.ship_method = as_text(resolve(order, ORDER_SHIPPING_METHOD_KEYS))
        result.billing = self.resolve_address(BILLING, merged_role_source(order, BILLING), order)
        result.shipping = self.resolve_address(SHIPPING, merged_role_source(order, SHIPPING), order)
        return result
