"""Command-line entry point: ``jwtmint custom|rs|keygen``."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TextIO

from jwtmint.core.errors import JWTMintError
from jwtmint.core.logs import configure_logging
from jwtmint.core.settings import DEFAULT_CONFIG_FILE, MintSettings, load_settings
from jwtmint.crypto.keys import generate_rsa_keypair, pem_to_jwk_entry
from jwtmint.crypto.types import JWKSResponse
from jwtmint.tokens.custom import handle_custom_token
from jwtmint.tokens.resource_server import handle_rs_token

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1

GREEN = "\033[32;1m"
RED = "\033[31;1m"
RESET = "\033[0m"


def _paint(stream: TextIO, color: str, text: str) -> str:
    if stream.isatty():
        return f"{color}{text}{RESET}"
    return text


def _print_token(label: str, token: str) -> None:
    print(f"{label}:\n{_paint(sys.stdout, GREEN, token)}")


def _print_error(exc: Exception) -> None:
    print(_paint(sys.stderr, RED, str(exc)), file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jwtmint",
        description="Mint RS256 JWTs for local testing of JWT authentication.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    custom = sub.add_parser("custom", help="sign a token from configured claims")
    custom.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="JSON config")
    custom.add_argument("--private-key-file", help="PEM private key to sign with")
    custom.add_argument("--jwk-file", help="local JWK set, overrides the endpoint")
    custom.add_argument("--well-known-endpoint", help="URL serving the JWK set")
    custom.add_argument("--strict", action="store_true", help="also check exp/nbf/iat")
    custom.add_argument("--debug", action="store_true", help="dump JWKS and token")

    rs = sub.add_parser("rs", help="fetch a token via the password grant")
    rs.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="JSON config")
    rs.add_argument(
        "--setup-rs",
        action="store_true",
        help="create the resource server and client grant first",
    )
    rs.add_argument("--debug", action="store_true", help="dump API responses")

    keygen = sub.add_parser("keygen", help="write an RSA key and matching JWK set")
    keygen.add_argument("--out-dir", default=".", help="directory for the files")
    keygen.add_argument("--kid", help="key id (default: a UUIDv7)")
    return parser


def _settings_from_args(args: argparse.Namespace) -> MintSettings:
    overrides: dict = {"debug": args.debug or None}
    if args.command == "custom":
        overrides["strict_verify"] = args.strict or None
        overrides["custom"] = {
            "private_key_file_path": args.private_key_file,
            "jwk_local_file": args.jwk_file,
            "well_known_endpoint": args.well_known_endpoint,
        }
    elif args.command == "rs":
        overrides["rs"] = {"setup_rs": args.setup_rs or None}
    return load_settings(args.config, **overrides)


def _run_keygen(out_dir: Path, kid: str | None) -> None:
    keypair = generate_rsa_keypair(kid)
    out_dir.mkdir(parents=True, exist_ok=True)
    private_path = out_dir / "private_key.pem"
    jwks_path = out_dir / "jwks.json"
    private_path.write_text(keypair.private_key_pem)
    private_path.chmod(0o600)
    jwks = JWKSResponse(keys=[pem_to_jwk_entry(keypair.public_key_pem, keypair.kid)])
    jwks_path.write_text(json.dumps(jwks.model_dump(exclude_none=True), indent=2))
    print(f"kid: {keypair.kid}")
    print(f"private key: {private_path}")
    print(f"JWK set: {jwks_path}")


def main(argv: list[str] | None = None) -> int:
    """Run one command and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(getattr(args, "debug", False))

    try:
        if args.command == "keygen":
            _run_keygen(Path(args.out_dir), args.kid)
            return EXIT_OK

        settings = _settings_from_args(args)
        if args.command == "custom":
            result = handle_custom_token(settings)
            _print_token("ACCESS TOKEN", result.token)
        else:
            response = handle_rs_token(settings)
            _print_token("ACCESS TOKEN", response.access_token)
    except JWTMintError as exc:
        logger.debug("%s failed", args.command, exc_info=True)
        _print_error(exc)
        return EXIT_FAILURE
    except OSError as exc:
        _print_error(exc)
        return EXIT_FAILURE
    return EXIT_OK


def run() -> None:
    sys.exit(main())
