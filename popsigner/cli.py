"""CLI entry point for popsigner."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

import msgspec

from .celestia import CelestiaClient, create_signer
from .client.http import Client
from .config import Config, add_config_arguments, config_from_args
from .errors import InvalidInputError, SignerError, translate_client_error
from .signer import RemoteSigner

logger = logging.getLogger(__name__)


def setup_logging(log_level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="popsigner",
        description="popsigner - remote signing client",
    )
    add_config_arguments(parser)
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("address", help="Print the name, id, address and public key of the key")

    sign = subparsers.add_parser("sign", help="Sign a message or a 32-byte digest")
    payload = sign.add_mutually_exclusive_group(required=True)
    payload.add_argument("--message", help="UTF-8 message to sign")
    payload.add_argument("--digest", help="Hex-encoded 32-byte digest to sign")

    subparsers.add_parser("keys", help="List keys visible to the API key")
    return parser


def _emit(data: dict[str, str] | list[dict[str, str]], as_json: bool) -> None:
    if as_json:
        print(msgspec.json.encode(data).decode())
        return
    rows = data if isinstance(data, list) else [data]
    for row in rows:
        print("  ".join(f"{name}={value}" for name, value in row.items()))


async def _run(args: argparse.Namespace, config: Config) -> None:
    client = Client(
        config.api_key,
        base_url=config.base_url,
        timeout=config.timeout,
        user_agent=config.user_agent,
    )
    async with client:
        if args.command == "keys":
            try:
                keys = await client.list_keys()
            except Exception as e:
                raise translate_client_error(e) from e
            _emit(
                [{"id": str(key.id), "name": key.name, "public_key": key.public_key} for key in keys],
                args.json,
            )
            return

        signer = await create_signer(config, client)

        if args.command == "address":
            remote = signer.signer if isinstance(signer, CelestiaClient) else signer
            if not isinstance(remote, RemoteSigner):
                raise SignerError(f"cannot describe key of {type(remote).__name__}")
            _emit(
                {
                    "name": remote.key_name,
                    "id": str(remote.key_id),
                    "address": signer.address,
                    "public_key": signer.public_key_hex,
                },
                args.json,
            )
            return

        if args.digest is not None:
            try:
                digest = bytes.fromhex(args.digest.removeprefix("0x"))
            except ValueError as e:
                raise InvalidInputError(f"digest is not valid hex: {e}") from e
            signature = await signer.sign_digest(digest)
        else:
            signature = await signer.sign(args.message.encode())

        _emit(
            {
                "address": signer.address,
                "signature": signature.hex(),
            },
            args.json,
        )


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.normalized_log_level)

    try:
        asyncio.run(_run(args, config))
    except KeyboardInterrupt:
        return 130
    except SignerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception:
        logger.exception("Unexpected error")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
