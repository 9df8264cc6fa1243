"""Tests for brightsites_export.output_manager."""

import csv
import json
import os

import pytest

from brightsites_export.output_manager import OutputManager


def test_create_timestamped_dir(tmp_path):
    manager = OutputManager(str(tmp_path), "BrightSites_Orders")
    path = manager.create_timestamped_dir("acme store")

    assert os.path.isdir(path)
    assert os.path.basename(path).endswith("_BrightSites_Orders_acme_store")


def test_get_output_path_requires_dir(tmp_path):
    manager = OutputManager(str(tmp_path), "BrightSites_Orders")
    with pytest.raises(RuntimeError):
        manager.get_output_path("report.csv")


def test_write_csv_and_json(tmp_path):
    manager = OutputManager(str(tmp_path), "BrightSites_Orders")
    manager.create_timestamped_dir()

    csv_path = manager.write_csv("report.csv", ["A", "B"], [["1", "x, y"], ["2", ""]])
    with open(csv_path, newline="", encoding="utf-8") as f:
        assert list(csv.reader(f)) == [["A", "B"], ["1", "x, y"], ["2", ""]]

    json_path = manager.write_json("report.json", {"rows": 2})
    with open(json_path, encoding="utf-8") as f:
        assert json.load(f) == {"rows": 2}


def test_cleanup_old_folders(tmp_path):
    (tmp_path / "20000101_0000_BrightSites_Orders_acme").mkdir()
    (tmp_path / "notes").mkdir()
    manager = OutputManager(str(tmp_path), "BrightSites_Orders", retention_days=30)
    current = manager.create_timestamped_dir("acme")

    assert manager.cleanup_old_folders() == 1
    assert sorted(os.listdir(tmp_path)) == sorted([os.path.basename(current), "notes"])


def test_cleanup_disabled(tmp_path):
    (tmp_path / "20000101_0000_BrightSites_Orders").mkdir()
    manager = OutputManager(str(tmp_path), "BrightSites_Orders", retention_days=0)
    assert manager.cleanup_old_folders() == 0
