"""Type definitions for popsigner.

This module contains type aliases and NewType definitions for domain-specific
types to improve type safety and code readability.
"""

from typing import NewType

PublicKeyHex = NewType("PublicKeyHex", str)
"""Hex-encoded compressed secp256k1 public key (66 characters, no 0x prefix)."""

PayloadB64 = NewType("PayloadB64", str)
"""Base64-encoded message payload as carried on the wire."""

Address = NewType("Address", str)
"""Bech32 account address, e.g. ``celestia1...``."""
