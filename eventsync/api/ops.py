# ==============================================================================
# Operator HTTP API
# ==============================================================================
"""
FastAPI endpoints for triggering jobs by hand and reading pipeline status.

Handlers are plain ``def`` functions; FastAPI runs them in its threadpool,
so a long sync does not block the event loop.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from eventsync.core.errors import CapabilityMissing, JobAlreadyRunning, WarehouseSyncError
from eventsync.scheduler import MaintenanceScheduler
from eventsync.service import MaintenanceService

logger = logging.getLogger(__name__)

CACHE_STRATEGY = "7-day rolling cache"
CACHE_DESCRIPTION = (
    "JSON files contain the last 7 days for fast access. "
    "Historical data is read from the durable store."
)


def create_app(service: MaintenanceService, scheduler: MaintenanceScheduler | None = None) -> FastAPI:
    """
    Build the operator API.

    Args:
        service: Service backing every endpoint
        scheduler: Started with the app and stopped on shutdown, if given
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if scheduler is not None:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.shutdown()
            service.close()

    app = FastAPI(title="eventsync operator API", version="1.0.0", lifespan=lifespan)

    @app.exception_handler(JobAlreadyRunning)
    async def _already_running(request, exc: JobAlreadyRunning):
        return JSONResponse(status_code=409, content={"success": False, "error": str(exc)})

    @app.get("/health")
    def health():
        result = service.health()
        status_code = 200 if result["durable_store"] else 503
        return JSONResponse(status_code=status_code, content=result)

    @app.post("/api/analytics/sync")
    def trigger_sync():
        logger.info("Manual sync triggered")
        return service.run_sync().model_dump()

    @app.get("/api/analytics/sync/status")
    def sync_status():
        status = service.sync_status().to_json_dict()
        status["running"] = service.guards["sync"].is_running
        return status

    @app.post("/api/analytics/cleanup-cache")
    def cleanup_cache():
        logger.info("Manual cache cleanup triggered")
        stats = service.run_retention()
        return {"success": True, "message": "JSON cache cleanup completed", "stats": stats}

    @app.get("/api/analytics/cache-stats")
    def cache_stats():
        return {
            "success": True,
            "stats": service.retention_stats(),
            "strategy": CACHE_STRATEGY,
            "description": CACHE_DESCRIPTION,
        }

    @app.post("/api/analytics/warehouse-sync")
    def warehouse_sync(date: str | None = Query(default=None, description="YYYY-MM-DD, default yesterday")):
        try:
            result = service.run_warehouse_sync(date)
        except CapabilityMissing as e:
            raise HTTPException(status_code=501, detail=str(e)) from e
        except ValueError as e:
            raise HTTPException(status_code=422, detail=f"Invalid date: {date}") from e
        except WarehouseSyncError as e:
            return JSONResponse(
                status_code=502,
                content={"success": False, "error": str(e), "stage": e.stage, "sync_date": e.sync_date},
            )
        return {"success": True, **result.model_dump()}

    @app.get("/api/analytics/geo/stats")
    def geo_stats():
        return {"success": True, "stats": service.geo_stats()}

    return app
