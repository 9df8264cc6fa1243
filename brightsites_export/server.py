"""
FastAPI server exposing the report service.

Endpoints:
    POST /api/run     body: {storeKey, reportType, dateFilterType, status, start, end}
                      200 -> {columns, rows, meta}; 400/500 -> {error}
    GET  /api/stores  -> [{key, label, subdomain}]

The browser UI that calls these endpoints is not part of this package.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI
from fastapi.responses import JSONResponse

from .report_service import ReportService

logger = logging.getLogger(__name__)


def create_app(service: Optional[ReportService] = None, env_file: str = "./.env") -> FastAPI:
    """Build the API app around a ReportService (built from the env when omitted)."""
    service = service or ReportService.from_env(env_file)
    app = FastAPI(title="BrightSites Order Export")

    @app.post("/api/run")
    async def run_report(payload: Optional[Dict[str, Any]] = Body(default=None)) -> JSONResponse:
        status_code, body = await service.handle_run(payload or {})
        return JSONResponse(status_code=status_code, content=body)

    @app.get("/api/stores")
    def list_stores() -> List[Dict[str, str]]:
        return service.list_stores()

    logger.info("API ready with %d configured store(s)", len(service.stores))
    return app


__all__ = ["create_app"]
