"""
# Health Route

`GET /api/health` is the liveness probe. It always answers 200 while the process is serving
and reports database reachability alongside.
"""

from fastapi import APIRouter, Request

from tech_blog_api.models.common import utcnow

router = APIRouter(tags=["system"])


@router.get("/health")
async def health(request: Request):
    """
    Report liveness and database reachability.

    Returns:
        Dict: `{status: "OK", message, timestamp, database: "connected" | "disconnected"}`.
    """
    db_manager = getattr(request.app.state, "db_manager", None)
    connected = db_manager is not None and await db_manager.health_check()
    return {
        "status": "OK",
        "message": "Tech Blog API is running",
        "timestamp": utcnow().isoformat(),
        "database": "connected" if connected else "disconnected",
    }
