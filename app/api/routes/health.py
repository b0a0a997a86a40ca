"""
Health check endpoints.
"""

from fastapi import APIRouter

from app.api.deps import StoreDep

router = APIRouter()


@router.get("/")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "message": "Movie Lists is running"}


@router.get("/ready")
async def readiness_check(store: StoreDep):
    """
    Readiness check - verify the document store answers.
    Used by orchestration systems (K8s, Docker, etc.)
    """
    checks = {
        "api": "ready",
        "document_store": "ready" if await store.ping() else "unavailable",
    }

    all_ready = all(v == "ready" for v in checks.values())

    return {
        "status": "ready" if all_ready else "not_ready",
        "checks": checks,
    }
