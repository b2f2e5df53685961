"""Signer capability and the custodian-backed implementation."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
from uuid import UUID

from .address import derive_address, public_key_from_hex
from .errors import (
    DecodeError,
    InvalidInputError,
    KeyNotFoundError,
    SignerError,
    translate_client_error,
)
from .metrics import SIGNING_DURATION_SECONDS, SIGNING_ERRORS_TOTAL, SIGNING_REQUESTS_TOTAL
from .types import Address, PublicKeyHex

if TYPE_CHECKING:
    from .client.base import SigningBackend
    from .models import Key

logger = logging.getLogger(__name__)

DIGEST_LENGTH = 32
SIGNATURE_LENGTH = 64


class Signer(ABC):
    """Produces signatures without exposing key material.

    Identity (public key and address) is fixed when the signer is built;
    signing is asynchronous and may fail with any :class:`SignerError`.
    """

    @property
    @abstractmethod
    def public_key(self) -> bytes:
        """33-byte compressed public key."""

    @property
    @abstractmethod
    def address(self) -> Address:
        """Bech32 address derived from :attr:`public_key`."""

    @property
    def public_key_hex(self) -> PublicKeyHex:
        return PublicKeyHex(self.public_key.hex())

    @abstractmethod
    async def sign(self, message: bytes) -> bytes:
        """Sign a raw message; the custodian hashes it before signing."""

    @abstractmethod
    async def sign_digest(self, digest: bytes) -> bytes:
        """Sign a 32-byte pre-hashed digest."""


def validate_digest(digest: bytes) -> None:
    if len(digest) != DIGEST_LENGTH:
        raise InvalidInputError(f"digest must be {DIGEST_LENGTH} bytes, got {len(digest)}")


class RemoteSigner(Signer):
    """Signer backed by a key held in the remote custodian.

    Build instances with :meth:`create`; the constructor only stores
    already-resolved identity.
    """

    def __init__(
        self,
        backend: SigningBackend,
        key_id: UUID,
        key_name: str,
        public_key: bytes,
    ) -> None:
        self._backend = backend
        self._key_id = key_id
        self._key_name = key_name
        self._public_key = public_key
        self._address = Address(derive_address(public_key))

    @classmethod
    async def create(cls, backend: SigningBackend, key_name_or_id: str | UUID) -> RemoteSigner:
        """Resolve a key by identifier or name and build a signer for it.

        Args:
            backend: The custodian collaborator
            key_name_or_id: Key UUID, or the display name of the key

        Returns:
            A ready-to-use RemoteSigner

        Raises:
            KeyNotFoundError: If no key matches
            DecodeError: If the reported public key is not valid hex
            InvalidInputError: If the reported public key is not 33 bytes
            SignerError: Any other translated collaborator failure

        """
        key = await resolve_key(backend, key_name_or_id)
        public_key = public_key_from_hex(key.public_key)
        signer = cls(backend, key.id, key.name, public_key)
        logger.info(f"Resolved signing key {key.name} ({key.id}) -> {signer.address}")
        return signer

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def address(self) -> Address:
        return self._address

    @property
    def key_id(self) -> UUID:
        return self._key_id

    @property
    def key_name(self) -> str:
        return self._key_name

    @property
    def backend(self) -> SigningBackend:
        return self._backend

    async def sign(self, message: bytes) -> bytes:
        return await self._remote_sign(message, prehashed=False, operation="sign")

    async def sign_digest(self, digest: bytes) -> bytes:
        validate_digest(digest)
        return await self._remote_sign(digest, prehashed=True, operation="sign_digest")

    async def verify(self, message: bytes, signature: bytes, prehashed: bool = False) -> bool:
        """Ask the custodian whether ``signature`` is valid for ``message``."""
        if prehashed:
            validate_digest(message)
        try:
            return await self._backend.remote_verify(self._key_id, message, signature, prehashed)
        except Exception as e:
            raise translate_client_error(e) from e

    async def _remote_sign(self, data: bytes, *, prehashed: bool, operation: str) -> bytes:
        SIGNING_REQUESTS_TOTAL.labels(operation=operation).inc()
        start_time = time.perf_counter()

        try:
            response = await self._backend.remote_sign(self._key_id, data, prehashed)
        except Exception as e:
            error = translate_client_error(e)
            SIGNING_ERRORS_TOTAL.labels(error_type=error.kind.value).inc()
            raise error from e

        SIGNING_DURATION_SECONDS.labels(operation=operation).observe(
            time.perf_counter() - start_time
        )

        if len(response.signature) != SIGNATURE_LENGTH:
            SIGNING_ERRORS_TOTAL.labels(error_type="decode").inc()
            raise DecodeError(
                f"signature must be {SIGNATURE_LENGTH} bytes, got {len(response.signature)}"
            )

        logger.debug(f"Signed {len(data)} bytes with key {str(self._key_id)[:8]}...")
        return response.signature

    def __repr__(self) -> str:
        return (
            f"RemoteSigner(key_name={self._key_name!r}, key_id={self._key_id}, "
            f"address={self._address!r})"
        )


def _parse_key_id(value: str | UUID) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(value)
    except ValueError:
        return None


async def _available_key_names(backend: SigningBackend) -> list[str]:
    """Best-effort listing used only to enrich a key-not-found message."""
    try:
        keys = await backend.list_keys()
    except Exception as e:  # noqa: BLE001
        logger.debug(f"Could not list keys for error message: {e!r}")
        return []
    return [key.name for key in keys]


async def resolve_key(backend: SigningBackend, key_name_or_id: str | UUID) -> Key:
    """Find a key by UUID (direct lookup) or by exact name (listing).

    Raises:
        KeyNotFoundError: If nothing matches; the message lists available names
        SignerError: Any other translated collaborator failure

    """
    key_id = _parse_key_id(key_name_or_id)

    try:
        if key_id is not None:
            return await backend.get_key(key_id)
        keys = await backend.list_keys()
    except Exception as e:
        raise translate_client_error(e) from e

    for key in keys:
        if key.name == key_name_or_id:
            return key

    available = await _available_key_names(backend)
    raise KeyNotFoundError(f"key '{key_name_or_id}' not found (available: {available})")


__all__ = [
    "DIGEST_LENGTH",
    "SIGNATURE_LENGTH",
    "RemoteSigner",
    "Signer",
    "SignerError",
    "resolve_key",
]
