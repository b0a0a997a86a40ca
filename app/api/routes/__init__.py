"""
Router aggregating all route modules.
"""

from fastapi import APIRouter

from app.api.routes import health, auth, users, movies

router = APIRouter()

# Include all route modules
router.include_router(health.router, prefix="/health", tags=["Health"])
router.include_router(auth.router, tags=["Authentication"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(movies.router, prefix="/movies", tags=["Movies"])
