"""Celestia address derivation from compressed secp256k1 public keys."""

import binascii
import hashlib

from Crypto.Hash import RIPEMD160

from . import bech32
from .errors import DecodeError, InvalidInputError

CELESTIA_HRP = "celestia"

COMPRESSED_PUBKEY_LENGTH = 33


def validate_public_key(public_key: bytes) -> None:
    """Raise InvalidInputError unless ``public_key`` is a 33-byte compressed key."""
    if len(public_key) != COMPRESSED_PUBKEY_LENGTH:
        raise InvalidInputError(
            f"invalid public key length: expected {COMPRESSED_PUBKEY_LENGTH} bytes, "
            f"got {len(public_key)}"
        )


def hash160(data: bytes) -> bytes:
    """RIPEMD-160 of the SHA-256 digest of ``data``."""
    sha_digest = hashlib.sha256(data).digest()
    return RIPEMD160.new(sha_digest).digest()


def derive_address(public_key: bytes, hrp: str = CELESTIA_HRP) -> str:
    """Derive the bech32 account address for a compressed public key.

    Args:
        public_key: 33-byte compressed public key
        hrp: Address prefix, ``celestia`` unless overridden

    Returns:
        The address string, e.g. ``celestia1...`` (47 characters)

    Raises:
        InvalidInputError: If the key is not 33 bytes

    """
    validate_public_key(public_key)
    return bech32.encode(hrp, hash160(public_key))


def public_key_from_hex(value: str) -> bytes:
    """Decode a hex public key as reported by the custodian.

    Raises:
        DecodeError: If ``value`` is not valid hex
        InvalidInputError: If the decoded key is not 33 bytes

    """
    try:
        public_key = bytes.fromhex(value.removeprefix("0x"))
    except (ValueError, binascii.Error) as e:
        raise DecodeError(f"failed to decode public key: {e}") from e
    validate_public_key(public_key)
    return public_key
