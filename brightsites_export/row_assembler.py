"""
Row Assembler — Builds output rows in the fixed 34-column export schema.

The export always has the same columns in the same order: the 14 report
columns the store operators asked for (the "Landded" spelling is part of the
contract and must not be corrected), followed by 10 structured billing and
10 structured shipping columns.

Two report modes:

  Detailed ("Needed Excel")
      One row per (order, line item). Orders without line items, and orders
      whose enrichment failed, produce no rows.

  Summary (any other report type)
      One row per order snapshot. Line-item and shipment columns are blank;
      order-level shipping total/method and the address columns are filled.

Cell conversion happens here and only here: every ReconciledFields value that
is still None becomes "", so a row always holds exactly 34 strings.

Pipeline context:
    Used in Step 4 of the report pipeline. Input is the EnrichedOrder list
    (detailed) or the raw order list (summary); output goes to the report
    response and the CSV writer.
"""

from typing import Any, Dict, List, Optional, Sequence

from .enrichment import EnrichedOrder, EnrichmentResult
from .reconciler import FieldReconciler, ReconciledFields

COLUMNS = [
    "Order #", "Placed", "Order Status", "Line Item ID", "Tracking #",
    "Shipping Landded Cost", "Ship Method", "Ship Date",
    "Product Personalization", "Quantity", "Product Name", "Product Options",
    "Billing Info", "Shipping Info",
]

STRUCTURED_COLUMNS = [
    "Billing Name", "Billing Company", "Billing Address1", "Billing Address2",
    "Billing City", "Billing State", "Billing Zip", "Billing Country",
    "Billing Email", "Billing Phone",
    "Shipping Name", "Shipping Company", "Shipping Address1", "Shipping Address2",
    "Shipping City", "Shipping State", "Shipping Zip", "Shipping Country",
    "Shipping Email", "Shipping Phone",
]

ALL_COLUMNS = COLUMNS + STRUCTURED_COLUMNS


def to_cell(value: Optional[str]) -> str:
    return "" if value is None else value


def fields_to_row(result: ReconciledFields) -> List[str]:
    """Lay out reconciled fields in ALL_COLUMNS order."""
    values = [
        result.order_number,
        result.placed,
        result.status,
        result.line_item_id,
        result.tracking,
        result.landed_cost,
        result.ship_method,
        result.ship_date,
        result.personalization,
        result.quantity,
        result.product_name,
        result.product_options,
        result.billing.to_blob(),
        result.shipping.to_blob(),
    ]
    values.extend(result.billing.values())
    values.extend(result.shipping.values())
    return [to_cell(v) for v in values]


class RowAssembler:
    """Turns reconciled records into export rows.

    Attributes:
        reconciler: The FieldReconciler used for every row.
    """

    def __init__(self, reconciler: Optional[FieldReconciler] = None):
        self.reconciler = reconciler or FieldReconciler()

    @property
    def columns(self) -> List[str]:
        return list(ALL_COLUMNS)

    def detailed_rows(self, enriched: Sequence[EnrichmentResult]) -> List[List[str]]:
        """One row per line item of every successfully enriched order."""
        rows = []
        for entry in enriched:
            if not isinstance(entry, EnrichedOrder):
                continue
            for line_item in entry.line_items or []:
                result = self.reconciler.reconcile_line_item(
                    entry.order, line_item, entry.shipments
                )
                rows.append(fields_to_row(result))
        return rows

    def summary_rows(self, orders: Sequence[Dict[str, Any]]) -> List[List[str]]:
        """One row per order with the line-item columns left blank."""
        return [fields_to_row(self.reconciler.reconcile_order(order)) for order in orders]
