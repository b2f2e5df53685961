"""Celestia integration: runtime selection between signing-only and node-client modes.

``mode = "signer"`` yields a plain :class:`~popsigner.signer.RemoteSigner`.
``mode = "client"`` wraps it in :class:`CelestiaClient`, which is itself a
:class:`~popsigner.signer.Signer` and additionally talks to a Celestia node
over JSON-RPC for read-only queries.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import aiohttp
import msgspec

from .client.http import Client
from .errors import ConfigError, DecodeError, InvalidInputError, NetworkError, RpcError
from .signer import RemoteSigner, Signer

if TYPE_CHECKING:
    from types import TracebackType

    from .config import Config
    from .types import Address

logger = logging.getLogger(__name__)

NAMESPACE_V0_MAX_ID_LENGTH = 10


@dataclass(frozen=True, slots=True)
class Namespace:
    """A blob namespace (version byte + id)."""

    version: int
    id: bytes

    @classmethod
    def v0(cls, namespace_id: bytes) -> Namespace:
        if len(namespace_id) > NAMESPACE_V0_MAX_ID_LENGTH:
            raise InvalidInputError(
                f"namespace ID too long: {len(namespace_id)} bytes "
                f"(max {NAMESPACE_V0_MAX_ID_LENGTH})"
            )
        return cls(version=0, id=bytes(namespace_id))


@dataclass(frozen=True, slots=True)
class Header:
    height: int
    hash: str
    time: str


class RpcErrorBody(msgspec.Struct):
    code: int = 0
    message: str = ""


class RpcResponse(msgspec.Struct):
    id: int | None = None
    result: Any = None
    error: RpcErrorBody | None = None


class CelestiaClient(Signer):
    """Signer plus read-only Celestia node access.

    Identity and signing are delegated to the wrapped signer, so a
    CelestiaClient can be passed anywhere a Signer is expected.
    """

    def __init__(
        self,
        signer: Signer,
        rpc_url: str,
        *,
        auth_token: str | None = None,
        timeout: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        if not rpc_url:
            raise ConfigError("RPC URL not configured")
        self._signer = signer
        self._rpc_url = rpc_url
        self._auth_token = auth_token
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._ids = itertools.count(1)

    @property
    def signer(self) -> Signer:
        return self._signer

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    @property
    def public_key(self) -> bytes:
        return self._signer.public_key

    @property
    def address(self) -> Address:
        return self._signer.address

    async def sign(self, message: bytes) -> bytes:
        return await self._signer.sign(message)

    async def sign_digest(self, digest: bytes) -> bytes:
        return await self._signer.sign_digest(digest)

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> CelestiaClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def call(self, method: str, params: list[Any]) -> Any:
        """Issue one JSON-RPC 2.0 call against the node.

        Raises:
            NetworkError: If the node could not be reached
            RpcError: On an HTTP error status or a JSON-RPC error object
            DecodeError: If the response is not a JSON-RPC response

        """
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
            self._owns_session = True

        headers = {"Content-Type": "application/json"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

        try:
            async with self._session.post(
                self._rpc_url, data=msgspec.json.encode(payload), headers=headers
            ) as response:
                status = response.status
                raw = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"{method}: {e!r}") from e

        if status >= 400:
            raise RpcError(f"{method}: HTTP {status}")

        try:
            decoded = msgspec.json.decode(raw, type=RpcResponse)
        except msgspec.DecodeError as e:
            raise DecodeError(f"{method}: invalid JSON-RPC response: {e}") from e

        if decoded.error is not None:
            raise RpcError(f"{method}: [{decoded.error.code}] {decoded.error.message}")
        return decoded.result

    async def network_head(self) -> Header:
        """Latest header known to the node."""
        result = await self.call("header.NetworkHead", [])
        try:
            header = result["header"]
            block_hash = result.get("commit", {}).get("block_id", {}).get("hash", "")
            return Header(height=int(header["height"]), hash=block_hash, time=header.get("time", ""))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(f"unexpected header shape: {e!r}") from e

    async def balance(self, address: str | None = None) -> int:
        """Spendable balance (in utia) of ``address``, defaulting to the signer's own."""
        result = await self.call("state.BalanceForAddress", [address or self.address])
        try:
            return int(result["amount"])
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"unexpected balance shape: {e!r}") from e

    def __repr__(self) -> str:
        return f"CelestiaClient(rpc_url={self._rpc_url!r}, signer={self._signer!r})"


async def create_signer(config: Config, client: Client | None = None) -> Signer:
    """Build the signer selected by ``config.mode``.

    Args:
        config: Validated configuration; ``config.key`` must be set
        client: Custodian client to use instead of one built from ``config``

    Returns:
        A RemoteSigner, or a CelestiaClient wrapping one in ``client`` mode

    Raises:
        ConfigError: If no key is configured, or client mode has no RPC URL
        SignerError: If key resolution fails

    """
    if not config.key:
        raise ConfigError("a key name or id is required")

    rpc_url = config.rpc_url if config.mode == "client" else None
    if config.mode == "client" and not rpc_url:
        raise ConfigError("RPC URL not configured")

    if client is None:
        client = Client(
            config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            user_agent=config.user_agent,
        )

    signer = await RemoteSigner.create(client, config.key)
    if not rpc_url:
        return signer

    logger.info(f"Using Celestia node at {rpc_url}")
    return CelestiaClient(
        signer,
        rpc_url,
        auth_token=config.rpc_auth_token,
        timeout=config.timeout,
    )
