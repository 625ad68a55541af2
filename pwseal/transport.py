from __future__ import annotations

import base64
import binascii

from .constants import ALPHABET_STANDARD, ALPHABET_URLSAFE
from .errors import InvalidParameter, MalformedTransport


_ALTCHARS = {
    ALPHABET_STANDARD: b"+/",
    ALPHABET_URLSAFE: b"-_",
}


class TransportCodec:
    """Padded Base64 over the standard or URL-safe alphabet.

    The alphabet is not recorded in the envelope; both sides must agree on it.
    """

    def __init__(self, alphabet: str = ALPHABET_STANDARD):
        if alphabet not in _ALTCHARS:
            raise InvalidParameter(f"unknown transport alphabet: {alphabet!r}")
        self.alphabet = alphabet
        self._altchars = _ALTCHARS[alphabet]

    def encode(self, data: bytes) -> str:
        return base64.b64encode(data, altchars=self._altchars).decode("ascii")

    def decode(self, text: str) -> bytes:
        try:
            raw = text.encode("ascii") if isinstance(text, str) else bytes(text)
        except (UnicodeEncodeError, TypeError) as exc:
            raise MalformedTransport("envelope text is not ASCII") from exc
        # b64decode maps altchars onto "+/" before validating, so characters of
        # the other alphabet would slip through unnoticed.
        foreign = b"-_" if self.alphabet == ALPHABET_STANDARD else b"+/"
        if any(c in foreign for c in raw):
            raise MalformedTransport(f"character outside the {self.alphabet} alphabet")
        try:
            return base64.b64decode(raw, altchars=self._altchars, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise MalformedTransport(f"invalid base64: {exc}") from exc

    def __repr__(self) -> str:
        return f"TransportCodec({self.alphabet!r})"


STANDARD = TransportCodec(ALPHABET_STANDARD)
URLSAFE = TransportCodec(ALPHABET_URLSAFE)
