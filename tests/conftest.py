"""
Shared test fixtures and configuration for pytest.
"""

import copy
import json
import os
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["COUCHDB_URL"] = "http://couch.test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["TMDB_API_KEY"] = "test-tmdb-key"

import httpx
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_movie_client, get_store
from app.config import settings
from app.core import auth
from app.core.auth import create_session_token
from app.core.exceptions import NotFoundError
from app.db.couch import CouchClient
from app.main import app
from app.models.schemas import MovieDetails, MovieSearchPage
from app.services.comment_repository import CommentRepository
from app.services.list_repository import ListRepository
from app.services.user_repository import UserRepository

# Minimum bcrypt cost for tests
auth.pwd_context.update(bcrypt__rounds=4)


class FakeCouch:
    """
    In-memory emulation of the CouchDB endpoints used by the app.

    Supports document GET/PUT/POST/DELETE with revision checks,
    ``_all_docs`` (GET scan and POST keys with limit/skip),
    ``_bulk_docs``, ``_find`` with equality selectors and database creation.
    ``_find`` returns at most 25 documents unless the query sets ``limit``
    and pages with a numeric ``bookmark``, as CouchDB does.
    ``failures`` maps ``(method, path)`` to a status code to answer with.
    """

    FIND_DEFAULT_LIMIT = 25

    def __init__(self, databases=("users", "lists", "comments")):
        self.dbs: dict[str, dict[str, dict]] = {name: {} for name in databases}
        self.requests: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], int] = {}

    # ============ Test helpers ============

    def doc(self, db: str, doc_id: str) -> dict | None:
        return copy.deepcopy(self.dbs[db].get(doc_id))

    def writes(self, db: str | None = None) -> list[tuple[str, str]]:
        """Requests that changed state, optionally limited to one database."""
        changed = []
        for method, path in self.requests:
            if method == "GET" or path.endswith(("/_all_docs", "/_find")):
                continue
            if db is None or path.startswith(f"/{db}"):
                changed.append((method, path))
        return changed

    # ============ Transport ============

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))
        if (request.method, path) in self.failures:
            return httpx.Response(
                self.failures[(request.method, path)],
                json={"error": "injected", "reason": "injected failure"},
            )

        parts = [p for p in path.split("/") if p]
        if not parts:
            return httpx.Response(200, json={"couchdb": "Welcome"})

        db_name = parts[0]
        if len(parts) == 1 and request.method == "PUT":
            if db_name in self.dbs:
                return httpx.Response(412, json={"error": "file_exists"})
            self.dbs[db_name] = {}
            return httpx.Response(201, json={"ok": True})
        if db_name not in self.dbs:
            return httpx.Response(404, json={"error": "not_found", "reason": "Database does not exist."})
        db = self.dbs[db_name]

        if len(parts) == 1 and request.method == "POST":
            doc = json.loads(request.content)
            doc["_id"] = uuid4().hex
            return self._save(db, doc)

        target = parts[1]
        if target == "_all_docs":
            return self._all_docs(db, request)
        if target == "_bulk_docs":
            docs = json.loads(request.content)["docs"]
            results = []
            for doc in docs:
                response = self._save(db, doc)
                body = json.loads(response.content)
                if response.status_code == 201:
                    results.append({"ok": True, "id": body["id"], "rev": body["rev"]})
                else:
                    results.append({"id": doc.get("_id"), "error": body["error"], "reason": body["reason"]})
            return httpx.Response(201, json=results)
        if target == "_find":
            query = json.loads(request.content)
            selector = query["selector"]
            matches = [
                copy.deepcopy(d) for d in db.values()
                if all(d.get(k) == v for k, v in selector.items())
            ]
            start = int(query.get("bookmark") or 0)
            batch = matches[start:start + query.get("limit", self.FIND_DEFAULT_LIMIT)]
            return httpx.Response(200, json={"docs": batch, "bookmark": str(start + len(batch))})

        doc_id = target
        if request.method == "GET":
            if doc_id not in db:
                return httpx.Response(404, json={"error": "not_found", "reason": "missing"})
            return httpx.Response(200, json=copy.deepcopy(db[doc_id]))
        if request.method == "PUT":
            doc = json.loads(request.content)
            doc["_id"] = doc_id
            return self._save(db, doc)
        if request.method == "DELETE":
            if doc_id not in db:
                return httpx.Response(404, json={"error": "not_found", "reason": "missing"})
            if request.url.params.get("rev") != db[doc_id]["_rev"]:
                return httpx.Response(409, json={"error": "conflict", "reason": "Document update conflict."})
            del db[doc_id]
            return httpx.Response(200, json={"ok": True, "id": doc_id})
        return httpx.Response(405, json={"error": "method_not_allowed", "reason": request.method})

    def _save(self, db: dict, doc: dict) -> httpx.Response:
        doc_id = doc["_id"]
        current = db.get(doc_id)
        current_rev = current["_rev"] if current else None
        if doc.get("_rev") != current_rev:
            return httpx.Response(409, json={"error": "conflict", "reason": "Document update conflict."})
        generation = int(current_rev.split("-")[0]) + 1 if current_rev else 1
        stored = copy.deepcopy(doc)
        stored["_rev"] = f"{generation}-{uuid4().hex[:12]}"
        db[doc_id] = stored
        return httpx.Response(201, json={"ok": True, "id": doc_id, "rev": stored["_rev"]})

    def _all_docs(self, db: dict, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            keys = json.loads(request.content)["keys"]
            rows = []
            for key in keys:
                if key in db:
                    rows.append({"id": key, "key": key, "value": {"rev": db[key]["_rev"]}, "doc": copy.deepcopy(db[key])})
                else:
                    rows.append({"key": key, "error": "not_found"})
        else:
            rows = [
                {"id": k, "key": k, "value": {"rev": d["_rev"]}, "doc": copy.deepcopy(d)}
                for k, d in sorted(db.items())
            ]
        skip = int(request.url.params.get("skip", 0))
        limit = request.url.params.get("limit")
        rows = rows[skip:]
        if limit is not None:
            rows = rows[:int(limit)]
        return httpx.Response(200, json={"total_rows": len(db), "offset": skip, "rows": rows})


# ============ Store Fixtures ============

@pytest.fixture
def couch() -> FakeCouch:
    """Fresh in-memory document store."""
    return FakeCouch()


@pytest.fixture
async def store(couch) -> AsyncGenerator[CouchClient, None]:
    """CouchClient wired to the in-memory store."""
    client = CouchClient(
        httpx.AsyncClient(transport=httpx.MockTransport(couch.handler), base_url="http://couch.test")
    )
    yield client
    await client.aclose()


@pytest.fixture
def mock_movies():
    """Movie catalog mock. Movie "404" does not exist."""

    def lookup(movie_id: str) -> MovieDetails:
        if movie_id == "404":
            raise NotFoundError("Movie not found: /movie/404", "Movie not found!")
        return MovieDetails(
            id=movie_id,
            title=f"Movie {movie_id}",
            poster=f"/poster-{movie_id}.jpg",
            voteAverage=7.5,
        )

    movies = AsyncMock()
    movies.get_movie = AsyncMock(side_effect=lookup)
    movies.search_movies = AsyncMock(
        return_value=MovieSearchPage(
            results=[MovieDetails(id="603", title="The Matrix", releaseDate="1999-03-30")],
            page=1,
            totalPages=1,
        )
    )
    return movies


# ============ Repository Fixtures ============

@pytest.fixture
def user_repo(store) -> UserRepository:
    return UserRepository(store)


@pytest.fixture
def list_repo(store, user_repo, mock_movies) -> ListRepository:
    return ListRepository(store, user_repo, mock_movies)


@pytest.fixture
def comment_repo(store, user_repo) -> CommentRepository:
    return CommentRepository(store, user_repo)


# ============ User Fixtures ============

@pytest.fixture
async def alice(user_repo):
    return await user_repo.create("alice", "alicepassword", "Alice Liddell", "alice@example.com")


@pytest.fixture
async def bob(user_repo):
    return await user_repo.create("bob", "bobpassword", "Bob Builder", "bob@example.com")


@pytest.fixture
async def carol(user_repo):
    return await user_repo.create("carol", "carolpassword", "Carol Danvers", "carol@example.com")


# ============ API Fixtures ============

@pytest.fixture
async def test_client(store, mock_movies) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with the store and the movie catalog overridden."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_movie_client] = lambda: mock_movies

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def login(test_client):
    """Put a session cookie for ``user`` on the test client."""

    def _login(user):
        test_client.cookies.set(settings.session_cookie_name, create_session_token(user.username))
        return test_client

    return _login
