"""XChaCha20-Poly1305 sealing and opening.

PyCryptodomex switches ``ChaCha20_Poly1305`` to the extended construction
(HChaCha20 subkey, libsodium compatible) when handed a 24-byte nonce. The
16-byte tag is appended to the ciphertext on seal and split off on open.
"""

from __future__ import annotations

from Cryptodome.Cipher import ChaCha20_Poly1305

from .constants import KEY_SIZE, NONCE_SIZE, TAG_SIZE
from .errors import AuthenticationFailed, EncodingError


def _new_cipher(key, nonce: bytes):
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be {KEY_SIZE} bytes for XChaCha20-Poly1305")
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"Nonce must be {NONCE_SIZE} bytes for XChaCha20-Poly1305")
    return ChaCha20_Poly1305.new(key=key, nonce=nonce)


def seal(key, nonce: bytes, associated_data: bytes, plaintext: bytes) -> bytes:
    """Encrypt and authenticate ``plaintext``; returns ciphertext || tag."""
    try:
        cipher = _new_cipher(key, nonce)
    except ValueError as exc:
        raise EncodingError(f"AEAD setup failed: {exc}") from exc
    cipher.update(associated_data)
    ciphertext, tag = cipher.encrypt_and_digest(plaintext)
    return ciphertext + tag


def open_(key, nonce: bytes, associated_data: bytes, ciphertext: bytes) -> bytes:
    """Verify and decrypt ciphertext || tag.

    Raises:
        AuthenticationFailed: the tag does not match, or the input is too short
            to hold one.
    """
    if len(ciphertext) < TAG_SIZE:
        raise AuthenticationFailed("ciphertext shorter than authentication tag")
    try:
        cipher = _new_cipher(key, nonce)
        cipher.update(associated_data)
        return cipher.decrypt_and_verify(ciphertext[:-TAG_SIZE], ciphertext[-TAG_SIZE:])
    except ValueError as exc:
        raise AuthenticationFailed("authentication failed") from exc
