"""
Output Manager — Timestamped export folders, retention cleanup and writers.

Each export run creates a folder under the base output directory with the
format: YYYYMMDD_HHMM_{provider_name}_{store_key} (e.g.
"20260220_1430_BrightSites_Orders_acme").

Inside each folder, the orchestrator saves:
  - report.csv:          The 34-column export, header row first
  - report.json:         The same report as {columns, rows, meta} (SAVE_JSON)
  - export_results.json: Run metadata, counts, errors

The retention policy deletes folders older than OUTPUT_RETENTION_DAYS at the
start of each run (before creating a new folder). Set retention_days=0 to keep
all output indefinitely.

Pipeline context:
    The orchestrator creates the timestamped directory in Step 3 (Save Output)
    and writes files through write_csv() / write_json(). Cleanup runs at the
    start of each export (in run.py).
"""

import csv
import json
import os
import re
import shutil
from datetime import datetime, timedelta
from typing import Any, Optional, Sequence


class OutputManager:
    """Manages output directories with timestamping and retention policies.

    Attributes:
        base_dir: Root output directory (default: ./output).
        provider_name: Used in folder naming (sanitized to alphanumeric + hyphens).
        retention_days: Delete folders older than this many days (0 = keep forever).
        current_dir: Path to the current run's output directory (None until created).
    """

    def __init__(self, base_dir: str, provider_name: str, retention_days: int = 30):
        self.base_dir = base_dir
        self.provider_name = provider_name
        self.retention_days = retention_days
        self.current_dir = None
        self._run_timestamp = datetime.now()

    def create_timestamped_dir(self, suffix: Optional[str] = None) -> str:
        """Create a timestamped output directory for the current run.

        Format: {base_dir}/YYYYMMDD_HHMM_{provider_name}[_{suffix}]

        Returns:
            The full path to the created directory.
        """
        timestamp = self._run_timestamp.strftime("%Y%m%d_%H%M")
        label = f"{self.provider_name}_{suffix}" if suffix else self.provider_name
        safe_label = "".join(
            c if c.isalnum() or c in '-_' else '_'
            for c in label
        )
        folder_name = f"{timestamp}_{safe_label}"
        self.current_dir = os.path.join(self.base_dir, folder_name)
        os.makedirs(self.current_dir, exist_ok=True)
        return self.current_dir

    def cleanup_old_folders(self, debug: bool = False) -> int:
        """Remove output folders older than retention_days.

        Scans the base directory for folders matching the YYYYMMDD_HHMM_* pattern,
        parses the timestamp, and deletes folders that are older than the cutoff.

        Returns:
            The number of folders deleted.
        """
        if self.retention_days <= 0:
            return 0

        if not os.path.exists(self.base_dir):
            return 0

        deleted_count = 0
        cutoff_date = datetime.now() - timedelta(days=self.retention_days)
        pattern = re.compile(r'^(\d{8})_(\d{4})_.*$')

        for folder_name in os.listdir(self.base_dir):
            folder_path = os.path.join(self.base_dir, folder_name)

            if not os.path.isdir(folder_path):
                continue

            match = pattern.match(folder_name)
            if not match:
                continue

            try:
                folder_datetime = datetime.strptime(
                    f"{match.group(1)}_{match.group(2)}", "%Y%m%d_%H%M"
                )
                if folder_datetime < cutoff_date:
                    shutil.rmtree(folder_path)
                    deleted_count += 1
                    if debug:
                        print(f"  Deleted old output folder: {folder_name}")

            except (ValueError, OSError) as e:
                if debug:
                    print(f"  Warning: Could not process folder {folder_name}: {e}")
                continue

        return deleted_count

    def get_output_path(self, filename: str) -> str:
        """Get the full path for a file in the current output directory.

        Raises:
            RuntimeError: If create_timestamped_dir() has not been called yet.
        """
        if not self.current_dir:
            raise RuntimeError("Output directory not created. Call create_timestamped_dir() first.")
        return os.path.join(self.current_dir, filename)

    def write_csv(self, filename: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
        """Write a header row plus data rows as UTF-8 CSV; returns the path."""
        path = self.get_output_path(filename)
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(columns)
            writer.writerows(rows)
        return path

    def write_json(self, filename: str, data: Any) -> str:
        """Write data as indented JSON; returns the path."""
        path = self.get_output_path(filename)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)
        return path

