#!/usr/bin/env python3
"""
BrightSites Order Exporter — Entry Point.

This is the main script operators run to export orders from a BrightSites
store. It reads configuration from a .env file, runs the export pipeline and
saves the report as CSV (and JSON) in a timestamped output folder.

The export pipeline (managed by ExportOrchestrator) performs 3 steps:
  1. Resolve the selected store from BRIGHTSITES_STORES
  2. Fetch all orders, enrich each one with its detail, line items and
     shipments, and reconcile them into 34-column rows
  3. Save report.csv / report.json / export_results.json

Usage:
    python run.py --store acme                          # Detailed export
    python run.py --store acme --report-type Summary    # One row per order
    python run.py --store acme --start 2024-01-01 --end 2024-01-31
    python run.py --list-stores                         # Show configured stores
    python run.py --serve --port 3000                   # Start the HTTP API
    python run.py --debug                               # Verbose output
    python run.py --version                             # Show version
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from config import DEFAULT_SETTINGS

from brightsites_export import ExportOrchestrator

# Read version from the repo-root VERSION file (e.g., "0.1.0").
VERSION_FILE = Path(__file__).resolve().parent / "VERSION"
VERSION = VERSION_FILE.read_text().strip() if VERSION_FILE.exists() else "unknown"


def serve(env_file: str, port: int) -> None:
    """Run the FastAPI app with uvicorn."""
    import uvicorn

    from brightsites_export.server import create_app

    print(f"Server listening on http://localhost:{port}")
    uvicorn.run(create_app(env_file=env_file), host="0.0.0.0", port=port)


def main():
    """Parse CLI arguments and run the export pipeline."""
    parser = argparse.ArgumentParser(
        description="BrightSites Order Exporter - Export order line items to CSV"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--store", "-s", help="Store key from BRIGHTSITES_STORES")
    parser.add_argument("--report-type", help="'Needed Excel' (default) or a summary report type")
    parser.add_argument("--date-filter", help="Timestamp field for --start/--end (default: created_at)")
    parser.add_argument("--status", help="Only export orders with this status")
    parser.add_argument("--start", help="Range start (ISO date/time); needs --end")
    parser.add_argument("--end", help="Range end (ISO date/time); needs --start")
    parser.add_argument("--list-stores", action="store_true", help="List configured stores and exit")
    parser.add_argument("--serve", action="store_true", help="Start the HTTP API instead of exporting")
    parser.add_argument("--port", type=int, help="Port for --serve")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")

    args = parser.parse_args()

    if args.version:
        print(f"brightsites-order-export {VERSION}")
        sys.exit(0)

    # Enable debug logging for the exporter modules if --debug flag is set
    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(name)s - %(levelname)s - %(message)s'
        )
        # httpx logs full request URLs, which carry the store token
        logging.getLogger('httpx').setLevel(logging.WARNING)
        logging.getLogger('httpcore').setLevel(logging.WARNING)
    else:
        logging.basicConfig(level=logging.WARNING, format='%(levelname)s - %(message)s')

    if args.serve:
        port = args.port or int(os.getenv("PORT", str(DEFAULT_SETTINGS["PORT"])))
        serve(args.env, port)
        return

    # Initialize the orchestrator (loads .env and builds internal config)
    orchestrator = ExportOrchestrator(env_file=args.env)

    if args.list_stores:
        stores = orchestrator.service.list_stores()
        if not stores:
            print("No stores configured (set BRIGHTSITES_STORES)")
        for store in stores:
            print(f"  {store['key']}: {store['label']} ({store['subdomain']})")
        sys.exit(0)

    # Apply CLI overrides on top of .env values
    if args.store:
        orchestrator.store_key = args.store
    if args.report_type:
        orchestrator.report_type = args.report_type
    if args.date_filter:
        orchestrator.date_filter_type = args.date_filter
    if args.status:
        orchestrator.status = args.status
    if args.start:
        orchestrator.start = args.start
    if args.end:
        orchestrator.end = args.end
    if args.debug:
        orchestrator.debug = True

    # Print header
    print(f"\n{'='*60}")
    print(f"BRIGHTSITES ORDER EXPORTER v{VERSION}")
    print("="*60)
    print(f"Store: {orchestrator.store_key or '(not set)'}")
    print(f"Report: {orchestrator.report_type}")
    if orchestrator.start and orchestrator.end:
        print(f"Range: {orchestrator.date_filter_type} {orchestrator.start} .. {orchestrator.end}")

    # Validate required configuration before proceeding
    if not orchestrator.validate_config():
        sys.exit(1)

    # Cleanup old output folders based on retention policy
    if orchestrator.output_manager.retention_days > 0:
        deleted = orchestrator.output_manager.cleanup_old_folders(orchestrator.debug)
        if deleted > 0:
            print(f"Cleaned up {deleted} old output folder(s)")

    results = orchestrator.run()

    orchestrator.print_summary(results)

    # Exit with error code if the export failed
    if not results.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
