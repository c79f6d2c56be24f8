"""Shared pytest fixtures for videovote tests."""

import json
import sys
from pathlib import Path
from typing import Any, Callable, Union

import httpx
import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from services.api_client import ApiClient  # noqa: E402
from services.author_enrichment import AuthorEnrichment  # noqa: E402
from services.session_store import SessionStore  # noqa: E402
from services.video_gateway import VideoGateway  # noqa: E402
from services.vote_reconciler import VoteReconciler  # noqa: E402
from utils.session_storage import IDENTITY_SLOT, TOKEN_SLOT, MemorySessionStorage  # noqa: E402

API_URL = "http://backend.test"

Reply = Union[tuple, Callable[[httpx.Request], httpx.Response]]


class FakeBackend:
    """Route table for httpx.MockTransport that records every request.

    Routes map ``(method, path)`` (path without the /api/v1 prefix) to either
    ``(status, body)`` or a callable returning an ``httpx.Response``.
    Unknown routes answer 404.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Reply] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method.upper(), path)] = (status, body)

    def add_handler(self, method: str, path: str, handler: Callable) -> None:
        self.routes[(method.upper(), path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v1")
        reply = self.routes.get((request.method, path))
        if reply is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(reply):
            return reply(request)
        status, body = reply
        if body is None:
            return httpx.Response(status)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method.upper() and r.url.path.removeprefix("/api/v1") == path
        ]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def storage() -> MemorySessionStorage:
    return MemorySessionStorage()


@pytest.fixture
def signed_in_storage() -> MemorySessionStorage:
    return MemorySessionStorage(
        {TOKEN_SLOT: "tok-123", IDENTITY_SLOT: json.dumps({"email": "ana@example.com"})}
    )


@pytest.fixture
def api(backend) -> ApiClient:
    # MockTransport holds no sockets, so the client is left unclosed
    return ApiClient(API_URL, transport=backend.transport)


@pytest.fixture
def session_store(api, storage) -> SessionStore:
    return SessionStore(api, storage)


@pytest.fixture
def signed_in_store(api, signed_in_storage) -> SessionStore:
    store = SessionStore(api, signed_in_storage)
    store.restore_from_storage()
    return store


@pytest.fixture
def gateway(api, signed_in_store) -> VideoGateway:
    return VideoGateway(api, signed_in_store)


@pytest.fixture
def anonymous_gateway(api, session_store) -> VideoGateway:
    return VideoGateway(api, session_store)


@pytest.fixture
def enrichment(gateway) -> AuthorEnrichment:
    return AuthorEnrichment(gateway)


@pytest.fixture
def reconciler(gateway) -> VoteReconciler:
    return VoteReconciler(gateway)


@pytest.fixture
def sample_videos_payload() -> list[dict]:
    """Public video list as the backend sends it."""
    return [
        {"id": 1, "user_id": 7, "title": "Dunk", "status": "processed", "votes": 3},
        {"id": 2, "user_id": 7, "title": "Crossover", "status": "processed", "votes": 0},
        {"id": 3, "user_id": 7, "title": "Three pointer", "status": "processed", "votes": 5},
    ]
