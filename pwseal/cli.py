from __future__ import annotations

import argparse
import getpass as _getpass
import logging
import sys
from typing import List, Optional

from pwseal.constants import (
    ALPHABET_STANDARD,
    ALPHABET_URLSAFE,
    DEFAULT_FORMAT_VERSION,
    FLAG_COMPRESSED,
    MAX_COMPRESSION_LEVEL,
    MIN_COMPRESSION_LEVEL,
)
from pwseal.envelope import FORMATS, Envelope, EnvelopeCodec
from pwseal.errors import PwsealError


def _read_input(path: Optional[str]) -> bytes:
    if path is None or path == "-":
        return sys.stdin.buffer.read()
    with open(path, "rb") as fh:
        return fh.read()


def _write_output(path: Optional[str], data: bytes) -> None:
    if path is None or path == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    with open(path, "wb") as fh:
        fh.write(data)


def _resolve_password(password: Optional[str], *, confirm: bool) -> str:
    """Return ``password`` or prompt for it on the terminal.

    Args:
        password: Value passed on the command line, if any.
        confirm: Ask twice and require both entries to match.
    """
    if password is not None:
        return password
    pw = _getpass.getpass("Password: ")
    if confirm and _getpass.getpass("Confirm password: ") != pw:
        raise ValueError("passwords do not match")
    return pw


def cmd_seal(
    input_path: Optional[str],
    output_path: Optional[str],
    *,
    password: Optional[str] = None,
    level: Optional[int] = None,
    alphabet: str = ALPHABET_STANDARD,
    format_version: int = DEFAULT_FORMAT_VERSION,
) -> bool:
    codec = EnvelopeCodec(alphabet=alphabet, format_version=format_version)
    data = _read_input(input_path)
    pw = _resolve_password(password, confirm=True)
    text = codec.encode(pw, data, compression_level=level)
    _write_output(output_path, (text + "\n").encode("ascii"))
    return True


def cmd_open(
    input_path: Optional[str],
    output_path: Optional[str],
    *,
    password: Optional[str] = None,
    alphabet: str = ALPHABET_STANDARD,
) -> bool:
    codec = EnvelopeCodec(alphabet=alphabet)
    text = _read_input(input_path).decode("ascii", errors="replace").strip()
    pw = _resolve_password(password, confirm=False)
    _write_output(output_path, codec.decode(pw, text))
    return True


def cmd_info(input_path: Optional[str], *, alphabet: str = ALPHABET_STANDARD) -> bool:
    """Print the unauthenticated header fields of an envelope."""
    codec = EnvelopeCodec(alphabet=alphabet)
    text = _read_input(input_path).decode("ascii", errors="replace").strip()
    env = Envelope.from_bytes(codec.transport.decode(text))
    params = FORMATS[env.format_version].kdf_params
    print(f"Format version: {env.format_version}")
    print(f"KDF: {params.algorithm} (salt {params.salt_size} bytes)")
    print(f"Compressed: {'yes' if env.flags & FLAG_COMPRESSED else 'no'}")
    print(f"Ciphertext: {len(env.ciphertext)} bytes (including tag)")
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="pwseal",
        description="Password-sealed envelope tool",
        epilog="Envelopes are Base64 text; the alphabet is not recorded and must match on open.",
    )
    ap.add_argument("--verbose", "-v", action="store_true", help="Log pipeline details to stderr")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_seal = sub.add_parser("seal", help="Encrypt data into an envelope")
    ap_seal.add_argument("input", nargs="?", help="Input file (default: stdin)")
    ap_seal.add_argument("--output", "-o", help="Output file (default: stdout)")
    ap_seal.add_argument("--password", help="Encryption password (prompted if omitted)")
    ap_seal.add_argument(
        "--level",
        type=int,
        help=f"Compression effort {MIN_COMPRESSION_LEVEL}-{MAX_COMPRESSION_LEVEL}; omit to store uncompressed",
    )
    ap_seal.add_argument("--urlsafe", action="store_true", help="Use the URL-safe Base64 alphabet")
    ap_seal.add_argument(
        "--format-version",
        type=int,
        choices=sorted(FORMATS),
        default=DEFAULT_FORMAT_VERSION,
        help=f"Envelope format to write (default {DEFAULT_FORMAT_VERSION})",
    )

    ap_open = sub.add_parser("open", help="Decrypt an envelope")
    ap_open.add_argument("input", nargs="?", help="Envelope file (default: stdin)")
    ap_open.add_argument("--output", "-o", help="Output file (default: stdout)")
    ap_open.add_argument("--password", help="Password (prompted if omitted)")
    ap_open.add_argument("--urlsafe", action="store_true", help="Envelope uses the URL-safe Base64 alphabet")

    ap_info = sub.add_parser("info", help="Show envelope header without decrypting")
    ap_info.add_argument("input", nargs="?", help="Envelope file (default: stdin)")
    ap_info.add_argument("--urlsafe", action="store_true", help="Envelope uses the URL-safe Base64 alphabet")

    args = ap.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(name)s: %(message)s")
    alphabet = ALPHABET_URLSAFE if args.urlsafe else ALPHABET_STANDARD
    try:
        if args.cmd == "seal":
            cmd_seal(
                args.input,
                args.output,
                password=args.password,
                level=args.level,
                alphabet=alphabet,
                format_version=args.format_version,
            )
        elif args.cmd == "open":
            cmd_open(args.input, args.output, password=args.password, alphabet=alphabet)
        elif args.cmd == "info":
            cmd_info(args.input, alphabet=alphabet)
        else:
            raise RuntimeError("Unknown command")
    except PwsealError as e:
        print(f"Error ({e.reason}): {e}", file=sys.stderr)
        sys.exit(2)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
