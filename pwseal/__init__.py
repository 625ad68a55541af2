"""
pwseal: password-sealed, self-describing envelopes for byte payloads.

Features:

- scrypt (format 1) or Argon2id (format 2) key derivation from a password.
- XChaCha20-Poly1305 authenticated encryption; the version/flags header is
  bound to the ciphertext as associated data.
- Optional zstd compression, kept only when it actually shrinks the payload.
- Base64 text output in the standard or URL-safe alphabet.

The module-level functions use a process-wide default codec. Code that needs
its own configuration (another alphabet or format version) should construct an
:class:`EnvelopeCodec` directly instead of calling
:func:`set_transport_alphabet`.
"""

from __future__ import annotations

from typing import Union

from .constants import ALPHABET_STANDARD, ALPHABET_URLSAFE, FORMAT_V1, FORMAT_V2
from .envelope import Envelope, EnvelopeCodec
from .errors import (
    AuthenticationFailed,
    DecodingError,
    DecompressionFailed,
    EncodingError,
    InvalidParameter,
    InvalidText,
    KeyDerivationFailed,
    MalformedTransport,
    PwsealError,
    RandomnessUnavailable,
    Truncated,
    UnsupportedFormat,
)

__version__ = "1.2.0"

_default_codec = EnvelopeCodec()


def set_transport_alphabet(alphabet: str) -> None:
    """Switch the alphabet used by the module-level functions.

    Affects every later call in the process; envelopes carry no record of the
    alphabet they were written with.
    """
    global _default_codec
    _default_codec = EnvelopeCodec(alphabet=alphabet, format_version=_default_codec.format_version)


def get_transport_alphabet() -> str:
    return _default_codec.alphabet


def encrypt(password: str, data: Union[bytes, str]) -> str:
    """Seal ``data`` (text is UTF-8 encoded) without compression."""
    return _default_codec.encode(password, data)


def encrypt_with_compression(password: str, data: Union[bytes, str], level: int) -> str:
    """Seal ``data``, zstd-compressing it first when that makes it smaller.

    ``level`` runs from 1 (fastest) to 19 (smallest).
    """
    return _default_codec.encode(password, data, compression_level=level)


def decrypt(password: str, text: str) -> str:
    return _default_codec.decode_text(password, text)


def decrypt_bytes(password: str, text: str) -> bytes:
    return _default_codec.decode(password, text)


__all__ = [
    "ALPHABET_STANDARD",
    "ALPHABET_URLSAFE",
    "FORMAT_V1",
    "FORMAT_V2",
    "Envelope",
    "EnvelopeCodec",
    "encrypt",
    "encrypt_with_compression",
    "decrypt",
    "decrypt_bytes",
    "set_transport_alphabet",
    "get_transport_alphabet",
    "PwsealError",
    "EncodingError",
    "DecodingError",
    "InvalidParameter",
    "RandomnessUnavailable",
    "KeyDerivationFailed",
    "MalformedTransport",
    "Truncated",
    "UnsupportedFormat",
    "AuthenticationFailed",
    "DecompressionFailed",
    "InvalidText",
]
