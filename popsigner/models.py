"""Data classes and wire structs for popsigner.

Structs mirror the custodian API payloads and are decoded with msgspec;
``SignResponse``, ``BatchSignature`` and ``BatchSignResult`` are the values
handed back to callers.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar
from uuid import UUID

import msgspec

T = TypeVar("T")


class Envelope(msgspec.Struct, Generic[T]):
    """Successful response wrapper: ``{"data": ...}``."""

    data: T


class ErrorBody(msgspec.Struct):
    code: str = "unknown"
    message: str = "Unknown error"


class ErrorEnvelope(msgspec.Struct):
    """Error response wrapper: ``{"error": {"code": ..., "message": ...}}``."""

    error: ErrorBody


class Key(msgspec.Struct, frozen=True):
    """A key held by the custodian.

    Attributes:
        id: Stable key identifier
        name: Display name, unique within a namespace
        public_key: Hex-encoded compressed public key
        namespace_id: Namespace the key belongs to
        address: Address as reported by the custodian
        algorithm: Key algorithm
        exportable: Whether the custodian allows exporting the key
        metadata: Free-form labels
        created_at: RFC 3339 creation timestamp

    """

    id: UUID
    name: str
    public_key: str
    namespace_id: UUID | None = None
    address: str = ""
    algorithm: str = "secp256k1"
    exportable: bool = False
    metadata: dict[str, str] | None = None
    created_at: str = ""


class SignRequestBody(msgspec.Struct):
    data: str
    prehashed: bool = False


class SignResponseBody(msgspec.Struct):
    signature: str
    public_key: str = ""


class VerifyRequestBody(msgspec.Struct):
    data: str
    signature: str
    prehashed: bool = False


class VerifyResponseBody(msgspec.Struct):
    valid: bool


class BatchSignRequestItem(msgspec.Struct):
    """One transport-encoded batch entry (``data`` is base64)."""

    key_id: UUID
    data: str
    prehashed: bool = False


class BatchSignRequestBody(msgspec.Struct):
    requests: list[BatchSignRequestItem]


class BatchSignEntry(msgspec.Struct):
    """One batch response entry: a signature or an error marker."""

    key_id: UUID
    signature: str = ""
    public_key: str = ""
    error: str | None = None


class BatchSignResponseBody(msgspec.Struct):
    signatures: list[BatchSignEntry]


class Organization(msgspec.Struct, frozen=True):
    id: UUID
    name: str
    slug: str = ""
    plan: str = ""
    created_at: str = ""


class Namespace(msgspec.Struct, frozen=True):
    id: UUID
    name: str
    org_id: UUID | None = None
    created_at: str = ""


class AuditLog(msgspec.Struct, frozen=True):
    id: UUID
    event: str
    actor_type: str = ""
    actor_id: UUID | None = None
    resource_type: str | None = None
    resource_id: UUID | None = None
    metadata: Any = None
    created_at: str = ""


class PaginatedResponse(msgspec.Struct, Generic[T]):
    items: list[T]
    total: int = 0
    offset: int = 0
    limit: int = 0


@dataclass(frozen=True, slots=True)
class SignResponse:
    """Result of a single remote signing call."""

    key_id: UUID
    signature: bytes
    public_key: str


@dataclass(frozen=True, slots=True)
class BatchSignItem:
    """A (key, message) pair to sign as part of a batch.

    Attributes:
        key_id: Identifier of the key to sign with
        data: Message bytes (a 32-byte digest when ``prehashed``)
        prehashed: Whether ``data`` is already a digest

    """

    key_id: UUID
    data: bytes
    prehashed: bool = False


@dataclass(frozen=True, slots=True)
class BatchSignature:
    """A successful batch entry."""

    key_id: UUID
    signature: bytes
    public_key: str


@dataclass(slots=True)
class BatchSignResult:
    """Successes of a batch plus failure accounting.

    Behaves as a sequence of :class:`BatchSignature`; compare ``len(result)``
    with ``result.total`` (or the number of submitted items) to detect
    partial failure.
    """

    signatures: list[BatchSignature] = field(default_factory=list)
    failed: int = 0
    total: int = 0

    def __len__(self) -> int:
        return len(self.signatures)

    def __iter__(self) -> Iterator[BatchSignature]:
        return iter(self.signatures)

    def __getitem__(self, index: int) -> BatchSignature:
        return self.signatures[index]

    @property
    def is_partial(self) -> bool:
        return self.failed > 0

    def by_key_id(self) -> dict[UUID, BatchSignature]:
        """Re-index the successes by key identifier."""
        return {sig.key_id: sig for sig in self.signatures}
