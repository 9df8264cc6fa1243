"""Tests for brightsites_export.row_assembler."""

from brightsites_export.enrichment import EnrichedOrder, EnrichmentFailure
from brightsites_export.row_assembler import (
    ALL_COLUMNS,
    COLUMNS,
    STRUCTURED_COLUMNS,
    RowAssembler,
)


_ORDER = {
    "order_id": "BS-1",
    "id": 1,
    "status": "shipped",
    "shipping_total": 9.5,
    "billing_address": {"first_name": "Jo", "zip": "10001"},
}


def test_column_layout():
    assert len(COLUMNS) == 14
    assert len(STRUCTURED_COLUMNS) == 20
    assert len(ALL_COLUMNS) == 34
    assert ALL_COLUMNS[5] == "Shipping Landded Cost"
    assert ALL_COLUMNS[12:14] == ["Billing Info", "Shipping Info"]
    assert RowAssembler().columns == ALL_COLUMNS


def test_detailed_rows_one_per_line_item():
    enriched = [
        EnrichedOrder(order=_ORDER, line_items=[{"id": 10}, {"id": 11}], shipments=[]),
        EnrichedOrder(order={"id": 2}, line_items=[], shipments=[]),
        EnrichmentFailure(index=2, order_ref="3", error="HTTP 500"),
    ]
    rows = RowAssembler().detailed_rows(enriched)

    assert len(rows) == 2
    assert [row[3] for row in rows] == ["10", "11"]
    assert all(len(row) == 34 for row in rows)
    assert all(isinstance(cell, str) for row in rows for cell in row)


def test_detailed_row_cells():
    [row] = RowAssembler().detailed_rows([EnrichedOrder(order=_ORDER, line_items=[{"id": 10}])])
    by_column = dict(zip(ALL_COLUMNS, row))

    assert by_column["Order #"] == "BS-1"
    assert by_column["Shipping Landded Cost"] == "9.5"
    assert by_column["Tracking #"] == ""
    assert by_column["Billing Info"] == "Jo | 10001"
    assert by_column["Billing Name"] == "Jo"
    assert by_column["Billing Zip"] == "10001"
    # No shipping objects: the billing address is borrowed, the name is not.
    assert by_column["Shipping Name"] == ""
    assert by_column["Shipping Info"] == "10001"


def test_summary_rows_blank_line_item_columns():
    [row] = RowAssembler().summary_rows([_ORDER])
    by_column = dict(zip(ALL_COLUMNS, row))

    assert len(row) == 34
    assert by_column["Order #"] == "BS-1"
    assert by_column["Order Status"] == "shipped"
    for column in ("Line Item ID", "Tracking #", "Ship Date", "Quantity", "Product Name"):
        assert by_column[column] == ""
    assert by_column["Billing Info"] == "Jo | 10001"
