"""
Health check router with database connectivity verification.
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from ratings_api.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic health check - always returns OK."""
    return {"status": "ok"}


@router.get("/api/health")
def api_health_check(request: Request, db: Session = Depends(get_db)):
    """
    Checks database connectivity and reports the age of the IP blacklist
    snapshot. Returns 503 if the database is unreachable.
    """
    health_status = {
        "status": "ok",
        "services": {}
    }
    is_healthy = True

    try:
        db.execute(text("SELECT 1"))
        health_status["services"]["database"] = {"status": "ok"}
    except Exception as e:
        health_status["services"]["database"] = {"status": "error", "message": str(e)}
        is_healthy = False

    blacklist = getattr(request.app.state, "ip_blacklist", None)
    if blacklist is not None:
        refreshed_at = blacklist.refreshed_at
        health_status["services"]["ip_blacklist"] = {
            "status": "ok" if refreshed_at else "pending",
            "refreshed_at": refreshed_at.isoformat() if refreshed_at else None,
            "size": len(blacklist),
        }

    if not is_healthy:
        health_status["status"] = "unhealthy"
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=health_status
        )

    return health_status
