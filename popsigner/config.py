"""Configuration management using msgspec Struct."""

import argparse
import os
from collections.abc import Sequence

import msgspec

from .client.http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS

MODES = ("signer", "client")


class Config(msgspec.Struct, frozen=True):
    """Application configuration using msgspec Struct."""

    # Custodian API
    api_key: str
    key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    user_agent: str | None = None

    # Logging
    log_level: str = "INFO"

    # Backend selection: "signer" (signing only) or "client" (signing + node RPC)
    mode: str = "signer"
    rpc_url: str | None = None
    rpc_auth_token: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.api_key:
            raise ValueError("api_key is required")

        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {self.base_url}")

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got {self.log_level}")

        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {self.mode}")

        if self.mode == "client" and not self.rpc_url:
            raise ValueError("rpc_url must be provided when mode is 'client'")

    @property
    def normalized_log_level(self) -> str:
        """Return normalized uppercase log level."""
        return self.log_level.upper()

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from POPSIGNER_* environment variables."""
        return _convert(_env_dict())


def _env_dict() -> dict[str, object]:
    config_dict: dict[str, object] = {
        "api_key": os.getenv("POPSIGNER_API_KEY", ""),
        "key": os.getenv("POPSIGNER_KEY"),
        "base_url": os.getenv("POPSIGNER_BASE_URL", DEFAULT_BASE_URL),
        "timeout": float(os.getenv("POPSIGNER_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS))),
        "log_level": os.getenv("POPSIGNER_LOG_LEVEL", "INFO"),
        "mode": os.getenv("POPSIGNER_MODE", "signer"),
        "rpc_url": os.getenv("POPSIGNER_RPC_URL"),
        "rpc_auth_token": os.getenv("POPSIGNER_RPC_AUTH_TOKEN"),
    }
    return config_dict


def _convert(config_dict: dict[str, object]) -> Config:
    try:
        return msgspec.convert(config_dict, Config)
    except msgspec.ValidationError as e:
        raise ValueError(f"Configuration validation error: {e}")


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the shared connection options on ``parser``.

    Every option defaults to None so that unset flags fall back to the
    environment in :func:`config_from_args`.
    """
    parser.add_argument("--api-key", default=None, help="API key (env: POPSIGNER_API_KEY)")
    parser.add_argument(
        "-k", "--key", default=None, help="Key name or UUID to sign with (env: POPSIGNER_KEY)"
    )
    parser.add_argument("--base-url", default=None, help="Custodian API base URL")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--mode", choices=MODES, default=None, help="Signer backend mode")
    parser.add_argument("--rpc-url", default=None, help="Celestia node JSON-RPC URL")
    parser.add_argument("--rpc-auth-token", default=None, help="Celestia node auth token")


def config_from_args(args: argparse.Namespace) -> Config:
    """Merge parsed CLI arguments over the environment and validate."""
    config_dict = _env_dict()
    for name in (
        "api_key",
        "key",
        "base_url",
        "timeout",
        "log_level",
        "mode",
        "rpc_url",
        "rpc_auth_token",
    ):
        value = getattr(args, name, None)
        if value is not None:
            config_dict[name] = value
    return _convert(config_dict)


def get_config(argv: Sequence[str] | None = None) -> Config:
    """Parse command line arguments and return configuration."""
    parser = argparse.ArgumentParser(
        description="popsigner - remote signing client",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    add_config_arguments(parser)
    args = parser.parse_args(argv)
    return config_from_args(args)
