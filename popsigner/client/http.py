"""aiohttp transport for the custodian control-plane API."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, TypeVar
from uuid import UUID

import aiohttp
import msgspec

from popsigner.models import (
    BatchSignEntry,
    BatchSignRequestItem,
    Envelope,
    ErrorEnvelope,
    Key,
    SignResponse,
)

from .audit import AuditClient
from .errors import (
    APIError,
    ClientError,
    InvalidRequestError,
    KeyNotFoundError,
    NamespaceNotFoundError,
    OrgNotFoundError,
    QuotaExceededError,
    RateLimitedError,
    RemoteSigningError,
    ResponseDecodeError,
    TransportError,
    UnauthorizedError,
)
from .keys import KeysClient
from .orgs import OrgsClient
from .sign import SignClient

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BASE_URL = "https://api.popsigner.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "popsigner-python/0.1.0"

_ERROR_CODES: dict[str, type[ClientError]] = {
    "quota_exceeded": QuotaExceededError,
    "key_not_found": KeyNotFoundError,
    "namespace_not_found": NamespaceNotFoundError,
    "org_not_found": OrgNotFoundError,
    "organization_not_found": OrgNotFoundError,
    "invalid_request": InvalidRequestError,
    "validation_error": InvalidRequestError,
    "signing_failed": RemoteSigningError,
}


def parse_error(status: int, body: bytes, path: str) -> ClientError:
    """Build the client error for a non-2xx response.

    Args:
        status: HTTP status code
        body: Raw response body
        path: Request path, used to recognise missing keys

    Returns:
        The matching ClientError subclass instance

    """
    if status == 401:
        return UnauthorizedError()
    if status == 429:
        return RateLimitedError()

    try:
        error = msgspec.json.decode(body, type=ErrorEnvelope).error
    except msgspec.DecodeError:
        if status == 404 and path.startswith("/v1/keys"):
            return KeyNotFoundError(f"no key at {path}")
        return APIError("unknown", "Unknown error", status)

    error_type = _ERROR_CODES.get(error.code)
    if error_type is None and status == 404 and path.startswith("/v1/keys"):
        error_type = KeyNotFoundError
    if error_type is None:
        return APIError(error.code, error.message, status)

    result = error_type(error.message)
    result.status = status
    return result


class Client:
    """Async client for the custodian API.

    The underlying ``aiohttp.ClientSession`` is created on first use and
    owned by the client unless one is passed in. Use ``async with`` or call
    :meth:`close` when done.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._user_agent = user_agent or DEFAULT_USER_AGENT
        self._session = session
        self._owns_session = session is None

        self.keys = KeysClient(self)
        self.signing = SignClient(self)
        self.orgs = OrgsClient(self)
        self.audit = AuditClient(self)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "User-Agent": self._user_agent,
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        response_type: Any = None,
        *,
        body: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and decode the ``data`` envelope into ``response_type``.

        Args:
            method: HTTP method
            path: API path starting with ``/``
            response_type: Type of the ``data`` field, or None to ignore the body
            body: msgspec-encodable request body
            params: Query string parameters

        Returns:
            The decoded ``data`` value, or None when ``response_type`` is None

        Raises:
            TransportError: If the request could not be completed
            ResponseDecodeError: If a successful body does not match ``response_type``
            ClientError: For any non-2xx response (see :func:`parse_error`)

        """
        url = f"{self._base_url}{path}"
        payload = msgspec.json.encode(body) if body is not None else None
        session = self._get_session()

        try:
            async with session.request(
                method, url, data=payload, params=params, headers=self._headers()
            ) as response:
                status = response.status
                raw = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"{method} {path} failed: {e!r}")
            raise TransportError(f"{method} {path}: {e!r}") from e

        if status >= 400:
            error = parse_error(status, raw, path)
            logger.debug(f"{method} {path} -> {status}: {error}")
            raise error

        if response_type is None:
            return None

        try:
            return msgspec.json.decode(raw, type=Envelope[response_type]).data
        except msgspec.DecodeError as e:
            raise ResponseDecodeError(f"invalid response from {path}: {e}") from e

    async def get(self, path: str, response_type: type[T], params: dict[str, str] | None = None) -> T:
        result: T = await self.request("GET", path, response_type, params=params)
        return result

    async def post(self, path: str, body: Any, response_type: type[T]) -> T:
        result: T = await self.request("POST", path, response_type, body=body)
        return result

    async def delete(self, path: str) -> None:
        await self.request("DELETE", path)

    # SigningBackend

    async def get_key(self, key_id: UUID) -> Key:
        return await self.keys.get(key_id)

    async def list_keys(self, namespace_id: UUID | None = None) -> list[Key]:
        return await self.keys.list(namespace_id)

    async def remote_sign(self, key_id: UUID, data: bytes, prehashed: bool) -> SignResponse:
        return await self.signing.sign(key_id, data, prehashed)

    async def remote_sign_batch(self, items: list[BatchSignRequestItem]) -> list[BatchSignEntry]:
        return await self.signing.sign_batch(items)

    async def remote_verify(
        self, key_id: UUID, data: bytes, signature: bytes, prehashed: bool
    ) -> bool:
        return await self.signing.verify(key_id, data, signature, prehashed)
