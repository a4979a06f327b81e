# routers/health.py

from fastapi import APIRouter

from core.config import settings
from core.supabase_client import ping_supabase

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/db", summary="Portal tables reachability")
async def health_db():
    """
    No auth. Reports each table the access checks read from.
    """
    result = ping_supabase()
    return {
        "service": "Supabase",
        "status": result["status"],
        "details": result,
    }


@router.get("/app", summary="Process liveness")
async def health_app():
    return {"service": settings.PROJECT_NAME, "env": settings.ENV, "status": "ok"}
