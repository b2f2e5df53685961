"""Test fixtures and utilities."""

import base64
from collections.abc import AsyncGenerator
from typing import Any
from uuid import UUID, uuid4

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from popsigner.client import errors as client_errors
from popsigner.client.http import Client
from popsigner.models import BatchSignEntry, BatchSignRequestItem, Key, SignResponse

ZERO_PUBKEY_HEX = "00" * 33
ZERO_PUBKEY_ADDRESS = "celestia1988uvdmz2kncg50wkjcjnmvw4nl69lh0rrwhkh"
SIGNATURE = bytes(range(64))
API_KEY = "psk_test_key"


def make_key(name: str, public_key: str = ZERO_PUBKEY_HEX, key_id: UUID | None = None) -> Key:
    return Key(id=key_id or uuid4(), name=name, public_key=public_key)


class FakeBackend:
    """In-memory SigningBackend that records every call."""

    def __init__(self, keys: list[Key] | None = None) -> None:
        self.keys = list(keys or [])
        self.calls: list[tuple[Any, ...]] = []
        self.signature = SIGNATURE
        self.sign_error: Exception | None = None
        self.list_error: Exception | None = None
        # Number of successful list calls before list_error is raised.
        self.list_succeeds = 0
        self.batch_entries: list[BatchSignEntry] | None = None
        self.batch_error: Exception | None = None
        self.verify_result = True

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def get_key(self, key_id: UUID) -> Key:
        self.calls.append(("get_key", key_id))
        for key in self.keys:
            if key.id == key_id:
                return key
        raise client_errors.KeyNotFoundError(f"no key {key_id}")

    async def list_keys(self, namespace_id: UUID | None = None) -> list[Key]:
        self.calls.append(("list_keys", namespace_id))
        if self.list_error is not None and self.count("list_keys") > self.list_succeeds:
            raise self.list_error
        return list(self.keys)

    async def remote_sign(self, key_id: UUID, data: bytes, prehashed: bool) -> SignResponse:
        self.calls.append(("remote_sign", key_id, data, prehashed))
        if self.sign_error is not None:
            raise self.sign_error
        return SignResponse(key_id=key_id, signature=self.signature, public_key=ZERO_PUBKEY_HEX)

    async def remote_sign_batch(self, items: list[BatchSignRequestItem]) -> list[BatchSignEntry]:
        self.calls.append(("remote_sign_batch", items))
        if self.batch_error is not None:
            raise self.batch_error
        if self.batch_entries is not None:
            return self.batch_entries
        encoded = base64.b64encode(self.signature).decode()
        return [
            BatchSignEntry(key_id=item.key_id, signature=encoded, public_key=ZERO_PUBKEY_HEX)
            for item in items
        ]

    async def remote_verify(
        self, key_id: UUID, data: bytes, signature: bytes, prehashed: bool
    ) -> bool:
        self.calls.append(("remote_verify", key_id, data, signature, prehashed))
        return self.verify_result


@pytest.fixture
def key() -> Key:
    """A key whose public key is 33 zero bytes."""
    return make_key("validator")


@pytest.fixture
def backend(key: Key) -> FakeBackend:
    """A fake backend holding ``key`` plus one other key."""
    return FakeBackend([key, make_key("sequencer")])


class MockCustodian:
    """Scripted custodian API served by aiohttp's TestServer.

    ``routes`` maps ``(method, path)`` to ``(status, json body)``; every
    received request is recorded in ``requests``.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, Any]] = {}
        self.requests: list[dict[str, Any]] = []

    def add(self, method: str, path: str, body: Any, status: int = 200) -> None:
        self.routes[(method, path)] = (status, body)

    async def handle(self, request: web.Request) -> web.Response:
        raw = await request.read()
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "headers": dict(request.headers),
                "body": raw,
            }
        )
        route = self.routes.get((request.method, request.path))
        if route is None:
            return web.json_response({"error": {"code": "not_found", "message": "no route"}}, status=404)
        status, body = route
        if isinstance(body, (bytes, str)):
            return web.Response(status=status, body=body, content_type="application/json")
        return web.json_response(body, status=status)

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self.handle)
        return app


@pytest.fixture
async def custodian() -> AsyncGenerator[tuple[MockCustodian, str], None]:
    """Start a mock custodian; yields it with its base URL."""
    mock = MockCustodian()
    server = TestServer(mock.build_app())
    await server.start_server()
    yield mock, str(server.make_url("")).rstrip("/")
    await server.close()


@pytest.fixture
async def api_client(
    custodian: tuple[MockCustodian, str],
) -> AsyncGenerator[Client, None]:
    """A Client pointed at the mock custodian."""
    _, base_url = custodian
    async with Client(API_KEY, base_url=base_url) as client:
        yield client
