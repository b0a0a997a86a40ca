"""
Movie metadata client for The Movie Database (TMDB) API.
"""

import logging
from typing import Optional

import httpx

from app.config import Settings, get_settings
from app.core.exceptions import NotFoundError, UpstreamError
from app.models.schemas import MovieDetails, MovieSearchPage

logger = logging.getLogger(__name__)


class TMDBClient:
    """
    Look up movies by id and search the catalog.

    Usage:
        client = TMDBClient(httpx.AsyncClient(base_url=...), api_key)
        movie = await client.get_movie("603")
        movie.poster, movie.voteAverage
    """

    def __init__(self, http: httpx.AsyncClient, api_key: str):
        self.http = http
        self.api_key = api_key

    async def _get(self, path: str, params: dict | None = None) -> dict:
        if not self.api_key:
            raise UpstreamError("TMDB_API_KEY is not set.", status_code=503)
        params = dict(params or {})
        params["api_key"] = self.api_key
        try:
            resp = await self.http.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"TMDB request {path} failed: {e}")
            raise UpstreamError(f"TMDB request {path} failed: {e}") from e
        if resp.status_code == 404:
            raise NotFoundError(f"Movie not found: {path}", "Movie not found!")
        if resp.status_code >= 400:
            logger.warning(f"TMDB answered {resp.status_code} for {path}")
            raise UpstreamError(
                f"TMDB answered {resp.status_code} for {path}",
                status_code=resp.status_code,
            )
        return resp.json()

    async def get_movie(self, movie_id: str) -> MovieDetails:
        """Fetch poster path and rating (plus display fields) for one movie."""
        data = await self._get(f"/movie/{movie_id}")
        return _to_movie(data)

    async def search_movies(self, query: str, page: int = 1) -> MovieSearchPage:
        data = await self._get("/search/movie", {"query": query, "page": page})
        return MovieSearchPage(
            results=[_to_movie(item) for item in data.get("results", [])],
            page=data.get("page", page),
            totalPages=data.get("total_pages", 0),
        )

    async def aclose(self) -> None:
        await self.http.aclose()


def _to_movie(data: dict) -> MovieDetails:
    return MovieDetails(
        id=str(data["id"]),
        title=data.get("title") or data.get("original_title") or "",
        overview=data.get("overview") or "",
        releaseDate=data.get("release_date") or None,
        poster=data.get("poster_path"),
        voteAverage=data.get("vote_average"),
    )


def create_tmdb_client(settings: Optional[Settings] = None) -> TMDBClient:
    settings = settings or get_settings()
    http = httpx.AsyncClient(base_url=settings.tmdb_base_url, timeout=settings.http_timeout)
    return TMDBClient(http, settings.tmdb_api_key)
