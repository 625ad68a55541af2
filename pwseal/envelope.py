"""Envelope layout and the encode/decode pipeline.

Binary layout (before transport encoding)::

    offset 0      format version (1 byte)
    offset 1      flags (1 byte; bit0 = payload compressed)
    offset 2      random block (24 bytes): KDF salt prefix, full XChaCha nonce
    offset 26     XChaCha20-Poly1305 ciphertext followed by the 16-byte tag

The two header bytes are the AEAD associated data, so neither the version
nor the compression flag can be altered without failing authentication.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from . import aead, compression, kdf, rng
from .constants import (
    ALPHABET_STANDARD,
    DEFAULT_FORMAT_VERSION,
    FLAG_COMPRESSED,
    FORMAT_V1,
    FORMAT_V2,
    HEADER_SIZE,
    KNOWN_FLAGS,
    MAX_DECOMPRESSED_SIZE,
    MIN_ENVELOPE_SIZE,
    NONCE_SIZE,
)
from .errors import InvalidParameter, InvalidText, Truncated, UnsupportedFormat
from .transport import TransportCodec


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormatSpec:
    version: int
    kdf_params: kdf.KdfParams


# One entry per version; KDF costs never change without a new version byte.
FORMATS: Dict[int, FormatSpec] = {
    FORMAT_V1: FormatSpec(FORMAT_V1, kdf.SCRYPT_PARAMS),
    FORMAT_V2: FormatSpec(FORMAT_V2, kdf.ARGON2ID_PARAMS),
}


def format_spec(version: int) -> FormatSpec:
    try:
        return FORMATS[version]
    except KeyError:
        raise UnsupportedFormat(f"unsupported envelope format version: {version}") from None


@dataclass(frozen=True)
class Envelope:
    format_version: int
    flags: int
    nonce: bytes
    ciphertext: bytes

    @property
    def header(self) -> bytes:
        return bytes([self.format_version, self.flags])

    @property
    def compressed(self) -> bool:
        return bool(self.flags & FLAG_COMPRESSED)

    @property
    def salt(self) -> bytes:
        return self.nonce[: format_spec(self.format_version).kdf_params.salt_size]

    def to_bytes(self) -> bytes:
        return self.header + self.nonce + self.ciphertext

    @classmethod
    def from_bytes(cls, data: bytes) -> "Envelope":
        """Split raw envelope bytes into their fields.

        Only the length and the version byte are checked here; everything else
        is left to authentication.
        """
        if len(data) < MIN_ENVELOPE_SIZE:
            raise Truncated(f"envelope too short: {len(data)} bytes (minimum {MIN_ENVELOPE_SIZE})")
        version = data[0]
        format_spec(version)
        return cls(
            format_version=version,
            flags=data[1],
            nonce=bytes(data[HEADER_SIZE : HEADER_SIZE + NONCE_SIZE]),
            ciphertext=bytes(data[HEADER_SIZE + NONCE_SIZE :]),
        )


class EnvelopeCodec:
    """Password-based envelope encoder/decoder.

    Instances hold only immutable configuration and may be shared across
    threads.

    Args:
        alphabet: transport alphabet, ``"standard"`` or ``"urlsafe"``.
        format_version: version written by :meth:`encode`. Decoding accepts
            every supported version regardless of this setting.
        max_decompressed_size: largest payload :meth:`decode` will inflate a
            compressed envelope to; larger ones fail with ``DecompressionFailed``.
    """

    def __init__(
        self,
        alphabet: str = ALPHABET_STANDARD,
        format_version: int = DEFAULT_FORMAT_VERSION,
        max_decompressed_size: int = MAX_DECOMPRESSED_SIZE,
    ):
        if format_version not in FORMATS:
            raise InvalidParameter(f"unsupported format version: {format_version}")
        if max_decompressed_size < 0:
            raise InvalidParameter("max_decompressed_size must not be negative")
        self.transport = TransportCodec(alphabet)
        self.format_version = format_version
        self.max_decompressed_size = max_decompressed_size

    @property
    def alphabet(self) -> str:
        return self.transport.alphabet

    def encode(self, password: str, plaintext: Union[bytes, str], compression_level: Optional[int] = None) -> str:
        if isinstance(plaintext, str):
            try:
                plaintext = plaintext.encode("utf-8")
            except UnicodeError as exc:
                raise InvalidParameter("plaintext text cannot be encoded as UTF-8") from exc
        if compression_level is not None:
            compression.validate_level(compression_level)
        spec = FORMATS[self.format_version]

        nonce = rng.random_bytes(NONCE_SIZE)
        salt = nonce[: spec.kdf_params.salt_size]
        key = kdf.derive_key(password, salt, spec.kdf_params)
        try:
            payload, compressed = compression.maybe_compress(plaintext, compression_level)
            flags = FLAG_COMPRESSED if compressed else 0
            header = bytes([spec.version, flags])
            ciphertext = aead.seal(key, nonce, header, payload)
        finally:
            kdf.wipe(key)

        envelope = Envelope(spec.version, flags, nonce, ciphertext)
        logger.debug(
            "sealed v%d envelope: %d plaintext bytes, compressed=%s, %d ciphertext bytes",
            spec.version,
            len(plaintext),
            compressed,
            len(ciphertext),
        )
        return self.transport.encode(envelope.to_bytes())

    def decode(self, password: str, text: str) -> bytes:
        envelope = Envelope.from_bytes(self.transport.decode(text))
        spec = FORMATS[envelope.format_version]

        key = kdf.derive_key(password, envelope.salt, spec.kdf_params)
        try:
            payload = aead.open_(key, envelope.nonce, envelope.header, envelope.ciphertext)
        finally:
            kdf.wipe(key)

        if envelope.flags & ~KNOWN_FLAGS:
            raise UnsupportedFormat(f"unknown envelope flags: 0x{envelope.flags:02x}")
        if envelope.compressed:
            payload = compression.decompress(payload, max_output_size=self.max_decompressed_size)
        logger.debug(
            "opened v%d envelope: compressed=%s, %d plaintext bytes",
            envelope.format_version,
            envelope.compressed,
            len(payload),
        )
        return payload

    def decode_text(self, password: str, text: str) -> str:
        payload = self.decode(password, text)
        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidText("decrypted payload is not valid UTF-8") from exc
