"""
BrightSites order export — Fetch, reconcile and export order line items.

This package contains the modules that implement the export pipeline. Each
module handles one concern:

  aliases.py             Key-alias lists and first-match resolution
  brightsites_client.py  Retrying HTTP requests and pagination (Step 2)
  enrichment.py          Per-order detail / line items / shipments (Step 3)
  reconciler.py          Field reconciliation into export values (Step 4)
  row_assembler.py       34-column row layout, detailed and summary (Step 4)
  report_service.py      Request-level entry point: run_report / list_stores
  orchestrator.py        CLI batch pipeline with saved output
  output_manager.py      Timestamped output folders, CSV and JSON writers
  server.py              FastAPI endpoints /api/run and /api/stores
  stores.py              BRIGHTSITES_STORES parsing
  exceptions.py          RequestError, ConfigurationError, InvalidRequestError
"""

from .brightsites_client import BrightSitesClient, extract_records
from .enrichment import EnrichedOrder, EnrichmentFailure, OrderEnricher, run_pool
from .exceptions import (
    BrightSitesExportError,
    ConfigurationError,
    InvalidRequestError,
    RequestError,
)
from .orchestrator import ExportOrchestrator
from .output_manager import OutputManager
from .reconciler import (
    FieldReconciler,
    ResolvedAddress,
    format_personalization,
    format_product_options,
    select_representative_shipment,
    tracking_for_line_item,
)
from .report_service import ReportService
from .row_assembler import ALL_COLUMNS, COLUMNS, STRUCTURED_COLUMNS, RowAssembler
from .stores import StoreConfig, parse_stores
