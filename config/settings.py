"""
Settings — Default configuration values for the BrightSites order exporter.

This module provides the DEFAULT_SETTINGS dict that the report service and the
export orchestrator use as fallback values when environment variables are not
set. The actual configuration is loaded from .env at runtime; these defaults
make the exporter work out of the box against the v2.6.1 BrightSites API.

Configuration precedence (highest to lowest):
  1. CLI flags (--store, --report-type, --debug, ...)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  PROVIDER_NAME               Label used in output folder naming
  BRIGHTSITES_HOST            Platform host; the store subdomain is prepended
  BRIGHTSITES_API_VERSION     API version segment of the base URL
  PAGE_SIZE                   per_page value for every paginated request
  CONCURRENCY                 How many orders are enriched at the same time
  REQUEST_RETRIES             Extra attempts after a failed request (2 = 3 total)
  REQUEST_RETRY_DELAY         Constant delay between attempts, in seconds
  REQUEST_TIMEOUT             Per-request timeout, in seconds
  CROSS_ROLE_CONTACT_FALLBACK Let billing borrow the shipping contact and vice versa
  REPORT_TYPE                 Default report type ("Needed Excel" = one row per line item)
  DATE_FILTER_TYPE            Default timestamp field for the start/end filter
  OUTPUT_DIR                  Where to write export output (default: ./output)
  OUTPUT_RETENTION_DAYS       How many days to keep old output folders (0 = keep forever)
  SAVE_JSON                   Whether to write the report as JSON next to the CSV
  DEBUG                       Whether to print verbose output
  PORT                        Port used by `run.py --serve`

Run selection for the CLI (overridden by the matching flags):
  STORE_KEY                   Store to export (--store)
  ORDER_STATUS                Order status filter (--status)
  START_DATE / END_DATE       Date range; used only when both are set (--start / --end)

Stores are configured separately through BRIGHTSITES_STORES, a JSON object:
  {"acme": {"subdomain": "acme", "token": "...", "label": "Acme Store"}}
"""

PROVIDER_NAME = "BrightSites_Orders"

DETAILED_REPORT_TYPE = "Needed Excel"

STORES_ENV_VAR = "BRIGHTSITES_STORES"

DEFAULT_SETTINGS = {
    "PROVIDER_NAME": PROVIDER_NAME,
    "BRIGHTSITES_HOST": "mybrightsites.com",
    "BRIGHTSITES_API_VERSION": "v2.6.1",
    "PAGE_SIZE": 200,
    "CONCURRENCY": 5,
    "REQUEST_RETRIES": 2,
    "REQUEST_RETRY_DELAY": 0.5,
    "REQUEST_TIMEOUT": 30.0,
    "CROSS_ROLE_CONTACT_FALLBACK": True,
    "REPORT_TYPE": DETAILED_REPORT_TYPE,
    "DATE_FILTER_TYPE": "created_at",
    "OUTPUT_DIR": "./output",
    "OUTPUT_RETENTION_DAYS": 30,
    "SAVE_JSON": True,
    "DEBUG": False,
    "PORT": 3000,
}
