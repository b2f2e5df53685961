"""HTTP client for the custodian API.

This package provides the transport collaborator used by signers:
- http: the aiohttp-based Client and error parsing
- keys, sign, orgs, audit: endpoint groups exposed as Client attributes
- base: the SigningBackend protocol the signing core depends on
"""

from .base import SigningBackend
from .errors import ClientError
from .http import DEFAULT_BASE_URL, Client

__all__ = [
    "DEFAULT_BASE_URL",
    "Client",
    "ClientError",
    "SigningBackend",
]
