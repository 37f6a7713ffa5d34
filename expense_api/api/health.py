"""Health check endpoint."""

import time
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from expense_api import __version__
from expense_api.database import Database, get_database

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(
    request: Request,
    database: Annotated[Database, Depends(get_database)],
):
    """Report service and database status. 503 when the database is unreachable."""
    database_healthy = database.ping()
    settings = request.app.state.settings
    body = {
        "status": "healthy" if database_healthy else "unhealthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": settings.environment,
        "version": __version__,
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "services": {"database": "healthy" if database_healthy else "unhealthy"},
    }
    return JSONResponse(status_code=200 if database_healthy else 503, content=body)
