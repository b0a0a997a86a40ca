"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from app.config import settings
from app.api.routes import router as app_router
from app.api.views import render
from app.core.exceptions import LoginRequiredError, MovieListsError
from app.core.tmdb import create_tmdb_client
from app.db.couch import create_couch_client

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    app.state.store = create_couch_client(settings)
    app.state.tmdb = create_tmdb_client(settings)

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.store.aclose()
    await app.state.tmdb.aclose()


async def login_required_handler(request: Request, exc: LoginRequiredError):
    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)


async def app_error_handler(request: Request, exc: MovieListsError):
    """Render the error page with the error's own status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc}")
    return render(
        request,
        "error.html",
        {"message": exc.user_message, "statusCode": exc.status_code},
        status_code=exc.status_code,
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Curate movie lists, share them with friends and browse public lists.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # LoginRequiredError is a MovieListsError; the more specific handler wins
    app.add_exception_handler(LoginRequiredError, login_required_handler)
    app.add_exception_handler(MovieListsError, app_error_handler)

    app.include_router(app_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
