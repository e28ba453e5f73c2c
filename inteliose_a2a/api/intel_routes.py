"""
Dashboard and health routes
"""
from typing import Any, Dict

from fastapi import APIRouter, Query

from ..core.executor import RequestExecutor
from ..models import utc_now

SERVICE_NAME = "inteliose-server"

def create_intel_router(executor: RequestExecutor) -> APIRouter:
    """
    Create router for the activity feed, the stats widget and the health check

    Args:
        executor: The request executor

    Returns:
        FastAPI router
    """
    router = APIRouter()

    @router.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "service": SERVICE_NAME, "timestamp": utc_now()}

    @router.get("/intel/a2a/stats")
    async def stats() -> Dict[str, Any]:
        """Task counters by state"""
        return (await executor.get_stats()).model_dump()

    @router.get("/intel/a2a/tasks")
    async def recent_tasks(limit: int = Query(20, ge=1, le=100)) -> Dict[str, Any]:
        """Most recent tasks for the activity feed"""
        tasks = await executor.recent_tasks(limit)
        return {"tasks": [task.to_wire() for task in tasks]}

    return router
