"""Tests for the run.py entry point."""

import logging
import os
from unittest.mock import patch

import pytest

import run


def test_debug_keeps_http_client_logs_quiet():
    argv = ["run.py", "--debug", "--list-stores", "--env", "/nonexistent/.env"]
    env = {"BRIGHTSITES_STORES": '{"acme": {"subdomain": "acme", "token": "secret"}}'}

    with patch.dict(os.environ, env, clear=True), patch("sys.argv", argv):
        with pytest.raises(SystemExit) as exc_info:
            run.main()

    assert exc_info.value.code == 0
    assert logging.getLogger("httpx").getEffectiveLevel() >= logging.WARNING
    assert logging.getLogger("httpcore").getEffectiveLevel() >= logging.WARNING
