"""
Async client for the CouchDB HTTP API.

Each collection (``users``, ``lists``, ``comments``) is a CouchDB database.
Status codes are translated into application errors here so the
repositories only deal with documents:

- 404 -> NotFoundError
- 409 -> ConflictError (duplicate id or stale ``_rev``)
- any other status >= 400, or a transport failure -> UpstreamError
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx

from app.config import Settings, get_settings
from app.core.exceptions import ConflictError, NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

# Documents requested per _find round trip
FIND_BATCH_SIZE = 100


@dataclass
class BulkResult:
    """Outcome of one document in a ``_bulk_docs`` write."""

    id: str
    rev: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CouchClient:
    """Entry point to a CouchDB server."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    def collection(self, name: str, label: str = "Document") -> "Collection":
        """
        Get a handle on one database.

        Args:
            name: Database name
            label: Noun used in not-found messages ("List", "User", ...)
        """
        return Collection(self, name, label)

    async def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"Document store unreachable: {method} {path}: {e}")
            raise UpstreamError(f"{method} {path} failed: {e}", status_code=502) from e

    async def ping(self) -> bool:
        """Return True when the server answers its welcome endpoint."""
        try:
            response = await self.request("GET", "/")
        except UpstreamError:
            return False
        return response.status_code == 200

    async def create_database(self, name: str) -> bool:
        """Create a database. Returns False when it already exists."""
        response = await self.request("PUT", f"/{name}")
        if response.status_code == 412:
            return False
        _raise_for_status(response, f"create database {name}")
        return True

    async def aclose(self) -> None:
        await self.http.aclose()


class Collection:
    """Document operations on a single CouchDB database."""

    def __init__(self, client: CouchClient, name: str, label: str = "Document"):
        self.client = client
        self.name = name
        self.label = label

    def _doc_path(self, doc_id: str) -> str:
        return f"/{self.name}/{quote(doc_id, safe='')}"

    async def get(self, doc_id: str) -> dict:
        """Fetch one document. Raises NotFoundError when absent."""
        response = await self.client.request("GET", self._doc_path(doc_id))
        if response.status_code == 404:
            raise NotFoundError(f"{self.label} not found!")
        _raise_for_status(response, f"get {self.name}/{doc_id}")
        return response.json()

    async def get_many(
        self,
        keys: list[str],
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> list[dict]:
        """
        Batch fetch documents by id through ``_all_docs``.

        ``limit``/``skip`` are applied by the store over the requested keys.
        Rows for missing or deleted documents are dropped; the remaining
        documents keep the store's row order.
        """
        params: dict[str, Any] = {"include_docs": "true"}
        if limit is not None:
            params["limit"] = limit
        if skip is not None:
            params["skip"] = skip
        response = await self.client.request(
            "POST", f"/{self.name}/_all_docs", params=params, json={"keys": list(keys)}
        )
        _raise_for_status(response, f"batch get {self.name}")
        return [row["doc"] for row in response.json().get("rows", []) if row.get("doc")]

    async def all_docs(self) -> list[dict]:
        """Fetch every document of the database, design documents excluded."""
        response = await self.client.request(
            "GET", f"/{self.name}/_all_docs", params={"include_docs": "true"}
        )
        _raise_for_status(response, f"scan {self.name}")
        return [
            row["doc"]
            for row in response.json().get("rows", [])
            if row.get("doc") and not row["id"].startswith("_design/")
        ]

    async def put(self, doc: dict) -> dict:
        """
        Create or update a document under its ``_id``.

        Updates must carry the current ``_rev``. Returns ``{"id", "rev"}``.
        """
        response = await self.client.request("PUT", self._doc_path(doc["_id"]), json=doc)
        _raise_for_status(response, f"put {self.name}/{doc['_id']}")
        body = response.json()
        return {"id": body["id"], "rev": body["rev"]}

    async def post(self, doc: dict) -> dict:
        """Create a document with a store assigned id. Returns ``{"id", "rev"}``."""
        response = await self.client.request("POST", f"/{self.name}", json=doc)
        _raise_for_status(response, f"post {self.name}")
        body = response.json()
        return {"id": body["id"], "rev": body["rev"]}

    async def delete(self, doc_id: str, rev: str) -> None:
        response = await self.client.request(
            "DELETE", self._doc_path(doc_id), params={"rev": rev}
        )
        if response.status_code == 404:
            raise NotFoundError(f"{self.label} not found!")
        _raise_for_status(response, f"delete {self.name}/{doc_id}")

    async def bulk_docs(self, docs: list[dict]) -> list[BulkResult]:
        """Write many documents in one request and report each outcome."""
        response = await self.client.request(
            "POST", f"/{self.name}/_bulk_docs", json={"docs": docs}
        )
        _raise_for_status(response, f"bulk write {self.name}")
        return [
            BulkResult(id=item.get("id", ""), rev=item.get("rev"), error=item.get("error"))
            for item in response.json()
        ]

    async def find(
        self,
        selector: dict,
        limit: Optional[int] = None,
        batch_size: int = FIND_BATCH_SIZE,
    ) -> list[dict]:
        """
        Run a Mango query and return the matching documents.

        Without ``limit`` every match is returned: the query is repeated
        with the store's ``bookmark`` until a batch comes back short.
        CouchDB caps a query without ``limit`` at 25 documents, so a limit
        is always sent.
        """
        if limit is not None:
            return (await self._find_batch(selector, limit))["docs"]

        docs: list[dict] = []
        bookmark = None
        while True:
            body = await self._find_batch(selector, batch_size, bookmark)
            batch = body["docs"]
            docs.extend(batch)
            bookmark = body.get("bookmark")
            if len(batch) < batch_size or not bookmark:
                return docs

    async def _find_batch(
        self,
        selector: dict,
        limit: int,
        bookmark: Optional[str] = None,
    ) -> dict:
        query: dict[str, Any] = {"selector": selector, "limit": limit}
        if bookmark:
            query["bookmark"] = bookmark
        response = await self.client.request("POST", f"/{self.name}/_find", json=query)
        _raise_for_status(response, f"find in {self.name}")
        body = response.json()
        body.setdefault("docs", [])
        return body


def _raise_for_status(response: httpx.Response, action: str) -> None:
    status = response.status_code
    if status < 400:
        return
    if status == 404:
        raise NotFoundError(f"{action}: not found")
    if status == 409:
        raise ConflictError(f"{action}: conflict ({_reason(response)})")
    logger.warning(f"Document store error on {action}: {status} {_reason(response)}")
    raise UpstreamError(f"{action} failed with status {status}", status_code=status)


def _reason(response: httpx.Response) -> str:
    try:
        body = response.json()
    except json.JSONDecodeError:
        return response.text
    if isinstance(body, dict):
        return body.get("reason") or body.get("error") or ""
    return ""


def create_couch_client(settings: Optional[Settings] = None) -> CouchClient:
    """Build a CouchClient from settings."""
    settings = settings or get_settings()
    auth = None
    if settings.couchdb_user:
        auth = (settings.couchdb_user, settings.couchdb_password)
    http = httpx.AsyncClient(
        base_url=settings.couchdb_url,
        timeout=settings.http_timeout,
        auth=auth,
    )
    return CouchClient(http)
