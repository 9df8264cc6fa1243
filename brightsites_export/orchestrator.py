"""
Export Orchestrator — Batch pipeline for one BrightSites order export.

This module ties the report service to the output folder for command-line
runs. It executes a sequential 3-step workflow:

  Step 1: RESOLVE STORE
      Looks up the requested store key in BRIGHTSITES_STORES.

  Step 2: FETCH & RECONCILE
      Runs the report through ReportService: lists orders (all pages),
      enriches each order with its detail, line items and shipments
      (detailed reports), and reconciles everything into 34-column rows.

  Step 3: SAVE OUTPUT
      Writes report.csv (and report.json when SAVE_JSON is on) into a
      timestamped output directory.

Configuration:
    All settings are loaded from environment variables (typically via .env file).
    Required: BRIGHTSITES_STORES and a store key (STORE_KEY or --store).
    See config/settings.py for defaults.

Typical usage:
    orchestrator = ExportOrchestrator(env_file="./.env")
    orchestrator.store_key = "acme"
    if orchestrator.validate_config():
        results = orchestrator.run()
        orchestrator.print_summary(results)
"""

import asyncio
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from config import DEFAULT_SETTINGS

from .output_manager import OutputManager
from .report_service import ReportService


class ExportOrchestrator:
    """Orchestrates a BrightSites order export run.

    Attributes:
        service: ReportService built from the environment.
        store_key: Which configured store to export.
        report_type: "Needed Excel" for line-item rows, anything else for a summary.
        date_filter_type: Timestamp field for the start/end range.
        status / start / end: Optional order filters.
        save_json: Whether to write report.json next to report.csv.
        debug: Whether to enable verbose output.
        output_manager: Handles timestamped output directories and retention cleanup.
    """

    def __init__(self, env_file: str = "./.env"):
        """Initialize the orchestrator by loading configuration from environment.

        Args:
            env_file: Path to a .env file. If the file exists, it is loaded via
                      python-dotenv. Otherwise, falls back to system environment.
        """
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            print(f"Loaded configuration from: {env_file}")
        else:
            print(f"Warning: {env_file} not found, using defaults/environment")

        self.service = ReportService.from_env()

        # Report selection
        self.store_key = os.getenv("STORE_KEY", "")
        self.report_type = self.service.report_type
        self.date_filter_type = self.service.date_filter_type
        self.status = os.getenv("ORDER_STATUS", "")
        self.start = os.getenv("START_DATE", "")
        self.end = os.getenv("END_DATE", "")

        # Provider name, used only for naming the output folder
        self.provider_name = os.getenv("PROVIDER_NAME", DEFAULT_SETTINGS["PROVIDER_NAME"])

        # Output directory and how many days to keep old runs
        output_dir = os.getenv("OUTPUT_DIR", DEFAULT_SETTINGS["OUTPUT_DIR"])
        retention_days = int(os.getenv("OUTPUT_RETENTION_DAYS", str(DEFAULT_SETTINGS["OUTPUT_RETENTION_DAYS"])))

        # Processing options
        self.save_json = os.getenv("SAVE_JSON", str(DEFAULT_SETTINGS["SAVE_JSON"])).lower() == "true"
        self.debug = os.getenv("DEBUG", str(DEFAULT_SETTINGS["DEBUG"])).lower() == "true"

        self.output_manager = OutputManager(output_dir, self.provider_name, retention_days)

    def validate_config(self) -> bool:
        """Validate that a usable store is selected.

        Checks:
            - BRIGHTSITES_STORES defines at least one store
            - A store key is set and names a configured store
            - The selected store has a subdomain

        Returns:
            True if the configuration is usable, False otherwise.
            Prints specific error messages for each problem.
        """
        errors = []
        stores = self.service.stores
        if not stores:
            errors.append("BRIGHTSITES_STORES is required (JSON object of stores)")
        if not self.store_key:
            errors.append("A store key is required (STORE_KEY or --store)")
        elif stores and self.store_key not in stores:
            errors.append(
                f"Store '{self.store_key}' not found. Available stores: {', '.join(stores)}"
            )
        elif stores and not stores[self.store_key].subdomain:
            errors.append(f"Store '{self.store_key}' has no subdomain")

        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    def build_request(self) -> Dict[str, Any]:
        """The report request payload for the current settings."""
        return {
            "storeKey": self.store_key,
            "reportType": self.report_type,
            "dateFilterType": self.date_filter_type,
            "status": self.status or None,
            "start": self.start or None,
            "end": self.end or None,
        }

    def run(self) -> Dict[str, Any]:
        """Execute the 3-step export pipeline.

        Returns:
            A dict containing:
                - started_at/completed_at: ISO timestamps
                - config: Store key, report type and filters
                - success: True if all steps completed without error
                - summary: Order / row / failed-order counts
                - csv_path / json_path: Saved report files
                - error: Error message (if success=False)
        """
        request = self.build_request()
        results = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "exporter": "brightsites-orders",
            "config": {k: v for k, v in request.items() if v},
            "success": False,
        }

        try:
            # Step 1: Resolve the store
            print(f"\n{'='*60}")
            print("STEP 1: RESOLVE STORE")
            print("="*60)
            store = self.service.stores.get(self.store_key)
            label = store.display_label if store else self.store_key
            print(f"  Store: {label}")

            # Step 2: Fetch orders, enrich and reconcile
            print(f"\n{'='*60}")
            print("STEP 2: FETCH & RECONCILE")
            print("="*60)
            status_code, report = asyncio.run(self.service.handle_run(request))
            if status_code != 200:
                raise RuntimeError(report.get("error", f"report failed with status {status_code}"))

            meta = report["meta"]
            failed = meta.get("failed_orders", [])
            print(f"  Orders: {meta['orders']}")
            print(f"  Rows: {meta['rows']}")
            if failed:
                print(f"  Failed orders: {len(failed)}")
                if self.debug:
                    for failure in failed:
                        print(f"    {failure['order']}: {failure['error']}")

            # Step 3: Save output to timestamped directory
            print(f"\n{'='*60}")
            print("STEP 3: SAVE OUTPUT")
            print("="*60)
            self.output_manager.create_timestamped_dir(self.store_key)

            csv_path = self.output_manager.write_csv("report.csv", report["columns"], report["rows"])
            results["csv_path"] = csv_path
            print(f"  Saved CSV: {csv_path}")

            if self.save_json:
                json_path = self.output_manager.write_json("report.json", report)
                results["json_path"] = json_path
                print(f"  Saved JSON: {json_path}")

            results["success"] = True
            results["summary"] = {
                "store": label,
                "orders": meta["orders"],
                "rows": meta["rows"],
                "failed_orders": len(failed),
            }

        except Exception as e:
            results["error"] = str(e)
            print(f"\n  ERROR: {e}")
            if self.debug:
                import traceback
                traceback.print_exc()

        results["completed_at"] = datetime.now(timezone.utc).isoformat()

        # Save run metadata alongside the report
        if self.output_manager.current_dir:
            results_path = self.output_manager.write_json("export_results.json", results)
            print(f"\n  Results saved to: {results_path}")

        return results

    def print_summary(self, results: Dict):
        """Print a human-readable execution summary.

        Args:
            results: The dict returned by run().
        """
        print(f"\n{'='*60}")
        print("EXPORT COMPLETE")
        print("="*60)
        print(f"Status: {'SUCCESS' if results.get('success') else 'FAILED'}")

        summary = results.get("summary", {})
        if summary:
            print(f"Store: {summary.get('store', 'N/A')}")
            print(f"Orders: {summary.get('orders', 0)}")
            print(f"Rows: {summary.get('rows', 0)}")
            if summary.get("failed_orders"):
                print(f"Failed orders: {summary['failed_orders']}")

        if results.get("error"):
            print(f"Error: {results['error']}")
