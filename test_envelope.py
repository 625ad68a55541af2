from __future__ import annotations

import base64
import concurrent.futures as _fut
import os
import unittest
from unittest import mock

import pwseal
from pwseal import aead, kdf
from pwseal.constants import (
    ALPHABET_STANDARD,
    ALPHABET_URLSAFE,
    FLAG_COMPRESSED,
    FORMAT_V1,
    FORMAT_V2,
    HEADER_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
)
from pwseal.envelope import FORMATS, Envelope, EnvelopeCodec
from pwseal.errors import (
    AuthenticationFailed,
    DecodingError,
    DecompressionFailed,
    EncodingError,
    InvalidParameter,
    InvalidText,
    KeyDerivationFailed,
    MalformedTransport,
    RandomnessUnavailable,
    Truncated,
    UnsupportedFormat,
)


PASSWORD = "1234567890"
PHRASE = "Let us go then, you and I, when the evening is spread out against the sky. "


def _raw(text: str) -> bytes:
    return base64.b64decode(text)


def _text(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _forge(password: str, version: int, flags: int, payload: bytes) -> str:
    """Build a correctly authenticated envelope with arbitrary header and payload."""
    nonce = os.urandom(NONCE_SIZE)
    params = FORMATS[version].kdf_params
    key = kdf.derive_key(password, nonce[: params.salt_size], params)
    header = bytes([version, flags])
    return _text(header + nonce + aead.seal(key, nonce, header, payload))


class RoundTripTests(unittest.TestCase):
    def setUp(self):
        self.codec = EnvelopeCodec()

    def test_hello_world(self):
        sealed = pwseal.encrypt("hello", "world")
        self.assertEqual(pwseal.decrypt("hello", sealed), "world")

    def test_unicode(self):
        sealed = pwseal.encrypt("你好", "世界")
        self.assertEqual(pwseal.decrypt("你好", sealed), "世界")

    def test_sizes_with_and_without_compression(self):
        for data in (b"", b"\x00", os.urandom(1), os.urandom(8192), PHRASE.encode() * 200):
            for level in (None, 1, 19):
                with self.subTest(size=len(data), level=level):
                    sealed = self.codec.encode(PASSWORD, data, compression_level=level)
                    self.assertEqual(self.codec.decode(PASSWORD, sealed), data)

    def test_random_buffer_every_level(self):
        data = os.urandom(5000)
        for level in range(1, 20):
            with self.subTest(level=level):
                sealed = pwseal.encrypt_with_compression(PASSWORD, data, level)
                self.assertEqual(pwseal.decrypt_bytes(PASSWORD, sealed), data)

    def test_compressible_text_every_level(self):
        data = PHRASE * 50
        for level in range(1, 20):
            with self.subTest(level=level):
                sealed = pwseal.encrypt_with_compression(PASSWORD, data, level)
                self.assertEqual(_raw(sealed)[1], FLAG_COMPRESSED)
                self.assertEqual(pwseal.decrypt(PASSWORD, sealed), data)

    def test_format_v2_round_trip(self):
        codec = EnvelopeCodec(format_version=FORMAT_V2)
        sealed = codec.encode(PASSWORD, PHRASE * 30, compression_level=5)
        self.assertEqual(_raw(sealed)[0], FORMAT_V2)
        # any codec opens any supported version
        self.assertEqual(EnvelopeCodec().decode_text(PASSWORD, sealed), PHRASE * 30)

    def test_fresh_random_block_per_call(self):
        a = _raw(self.codec.encode(PASSWORD, b"same"))
        b = _raw(self.codec.encode(PASSWORD, b"same"))
        self.assertNotEqual(a[HEADER_SIZE : HEADER_SIZE + NONCE_SIZE], b[HEADER_SIZE : HEADER_SIZE + NONCE_SIZE])
        self.assertNotEqual(a, b)

    def test_layout(self):
        data = b"layout check"
        raw = _raw(self.codec.encode(PASSWORD, data))
        self.assertEqual(raw[0], FORMAT_V1)
        self.assertEqual(raw[1], 0)
        self.assertEqual(len(raw), HEADER_SIZE + NONCE_SIZE + len(data) + TAG_SIZE)
        env = Envelope.from_bytes(raw)
        self.assertEqual(env.salt, env.nonce[:8])
        self.assertEqual(env.to_bytes(), raw)


class CompatibilityTests(unittest.TestCase):
    def test_fixed_envelope_from_reference_implementation(self):
        sealed = "AQGz4+KJeOgLKeMRESeZcRiAB4RGO7p4gN3Bf9zVkKqZUsLZM69jaU3EAN7q+jnCpHhmYCnD1N3I4A=="
        self.assertEqual(pwseal.decrypt(PASSWORD, sealed), "0" * 96)


class RejectionTests(unittest.TestCase):
    def setUp(self):
        self.codec = EnvelopeCodec()

    def test_wrong_password(self):
        for data in (b"", b"world", os.urandom(3000)):
            sealed = self.codec.encode("right", data, compression_level=3)
            with self.assertRaises(AuthenticationFailed) as ctx:
                self.codec.decode("wrong", sealed)
            self.assertEqual(ctx.exception.reason, "AuthenticationFailed")

    def test_every_single_byte_tamper_is_detected(self):
        for level in (None, 19):
            raw = _raw(self.codec.encode(PASSWORD, PHRASE * 3, compression_level=level))
            for i in range(1, len(raw)):
                tampered = bytearray(raw)
                tampered[i] ^= 0x01
                with self.subTest(level=level, offset=i):
                    with self.assertRaises(AuthenticationFailed):
                        self.codec.decode(PASSWORD, _text(bytes(tampered)))

    def test_flags_flip_is_detected(self):
        raw = bytearray(_raw(self.codec.encode(PASSWORD, PHRASE * 40, compression_level=19)))
        self.assertEqual(raw[1], FLAG_COMPRESSED)
        raw[1] = 0
        with self.assertRaises(AuthenticationFailed):
            self.codec.decode(PASSWORD, _text(bytes(raw)))

    def test_version_downgrade_is_detected(self):
        raw = bytearray(_raw(EnvelopeCodec(format_version=FORMAT_V2).encode(PASSWORD, b"data")))
        raw[0] = FORMAT_V1
        with self.assertRaises(AuthenticationFailed):
            self.codec.decode(PASSWORD, _text(bytes(raw)))

    def test_unknown_version_rejected_before_key_derivation(self):
        raw = bytearray(_raw(self.codec.encode(PASSWORD, b"data")))
        for version in (0, 3, 0xFF):
            raw[0] = version
            with self.subTest(version=version):
                with mock.patch("pwseal.kdf.derive_key") as derive:
                    with self.assertRaises(UnsupportedFormat):
                        self.codec.decode(PASSWORD, _text(bytes(raw)))
                    derive.assert_not_called()

    def test_truncated_rejected_before_aead(self):
        raw = _raw(self.codec.encode(PASSWORD, b"data"))
        for cut in (0, 1, HEADER_SIZE, HEADER_SIZE + NONCE_SIZE - 1):
            with self.subTest(length=cut):
                with mock.patch("pwseal.kdf.derive_key") as derive, mock.patch("pwseal.aead.open_") as open_:
                    with self.assertRaises(Truncated):
                        self.codec.decode(PASSWORD, _text(raw[:cut]))
                    derive.assert_not_called()
                    open_.assert_not_called()

    def test_truncated_ciphertext_fails_authentication(self):
        raw = _raw(self.codec.encode(PASSWORD, b"some data"))
        for cut in (HEADER_SIZE + NONCE_SIZE, HEADER_SIZE + NONCE_SIZE + 5, len(raw) - 1):
            with self.subTest(length=cut):
                with self.assertRaises(AuthenticationFailed):
                    self.codec.decode(PASSWORD, _text(raw[:cut]))

    def test_malformed_transport(self):
        for text in ("not base64!", "AQG", "AQ==AQ==", "é"):
            with self.subTest(text=text):
                with self.assertRaises(MalformedTransport):
                    self.codec.decode(PASSWORD, text)

    def test_unknown_flag_bits_rejected_after_authentication(self):
        sealed = _forge(PASSWORD, FORMAT_V1, 0x02, b"payload")
        with self.assertRaises(UnsupportedFormat):
            self.codec.decode(PASSWORD, sealed)

    def test_corrupt_compressed_payload(self):
        sealed = _forge(PASSWORD, FORMAT_V1, FLAG_COMPRESSED, b"definitely not a zstd frame")
        with self.assertRaises(DecompressionFailed):
            self.codec.decode(PASSWORD, sealed)

    def test_unencodable_password_on_decode(self):
        sealed = self.codec.encode(PASSWORD, b"data")
        with self.assertRaises(KeyDerivationFailed) as ctx:
            self.codec.decode("\ud800", sealed)
        self.assertIsInstance(ctx.exception, DecodingError)

    def test_oversized_compressed_payload(self):
        sealed = self.codec.encode(PASSWORD, b"\x00" * 100_000, compression_level=19)
        small = EnvelopeCodec(max_decompressed_size=50_000)
        with self.assertRaises(DecompressionFailed):
            small.decode(PASSWORD, sealed)
        self.assertEqual(EnvelopeCodec(max_decompressed_size=100_000).decode(PASSWORD, sealed), b"\x00" * 100_000)

    def test_non_utf8_payload_through_text_api(self):
        sealed = self.codec.encode(PASSWORD, b"\xff\xfe\xfd")
        with self.assertRaises(InvalidText):
            self.codec.decode_text(PASSWORD, sealed)
        self.assertEqual(self.codec.decode(PASSWORD, sealed), b"\xff\xfe\xfd")

    def test_all_decode_failures_share_a_base(self):
        for cls in (MalformedTransport, Truncated, UnsupportedFormat, AuthenticationFailed, DecompressionFailed):
            self.assertTrue(issubclass(cls, DecodingError))
        self.assertTrue(issubclass(KeyDerivationFailed, DecodingError))
        self.assertTrue(issubclass(KeyDerivationFailed, EncodingError))


class EncodeFailureTests(unittest.TestCase):
    def test_level_out_of_range(self):
        for level in (0, 20, -1, True, "5", 2.0):
            with self.subTest(level=level):
                with self.assertRaises(InvalidParameter):
                    pwseal.encrypt_with_compression(PASSWORD, b"data", level)

    def test_invalid_level_consumes_no_randomness(self):
        with mock.patch("pwseal.rng.random_bytes") as rb:
            with self.assertRaises(InvalidParameter):
                EnvelopeCodec().encode(PASSWORD, b"data", compression_level=25)
            rb.assert_not_called()

    def test_randomness_unavailable(self):
        with mock.patch("pwseal.rng.os.urandom", side_effect=NotImplementedError("no entropy source")):
            with self.assertRaises(RandomnessUnavailable):
                pwseal.encrypt(PASSWORD, b"data")

    def test_key_derivation_failure(self):
        with mock.patch("pwseal.kdf._scrypt", side_effect=MemoryError):
            with self.assertRaises(KeyDerivationFailed):
                pwseal.encrypt(PASSWORD, b"data")

    def test_unencodable_password(self):
        with self.assertRaises(KeyDerivationFailed) as ctx:
            pwseal.encrypt("\ud800", b"x")
        self.assertIsInstance(ctx.exception, EncodingError)

    def test_unencodable_plaintext(self):
        with self.assertRaises(InvalidParameter):
            pwseal.encrypt(PASSWORD, "\udcff")
        with self.assertRaises(InvalidParameter):
            pwseal.encrypt_with_compression(PASSWORD, "ok \ud800", 5)

    def test_unknown_format_version_for_writing(self):
        with self.assertRaises(InvalidParameter):
            EnvelopeCodec(format_version=9)


class SizeTests(unittest.TestCase):
    def setUp(self):
        self.codec = EnvelopeCodec()

    def test_incompressible_data_is_not_expanded(self):
        data = os.urandom(5000)
        plain = self.codec.encode(PASSWORD, data)
        for level in (1, 7, 19):
            with self.subTest(level=level):
                packed = self.codec.encode(PASSWORD, data, compression_level=level)
                self.assertLessEqual(len(packed), len(plain))
                self.assertEqual(_raw(packed)[1], 0)

    def test_never_larger_than_overhead_plus_plaintext(self):
        for data in (b"", b"x", os.urandom(777)):
            raw = _raw(self.codec.encode(PASSWORD, data, compression_level=19))
            self.assertLessEqual(len(raw), HEADER_SIZE + NONCE_SIZE + TAG_SIZE + len(data))

    def test_redundant_text_shrinks(self):
        data = PHRASE * 30
        self.assertGreaterEqual(len(data), 1000)
        plain = self.codec.encode(PASSWORD, data)
        packed = self.codec.encode(PASSWORD, data, compression_level=19)
        self.assertLess(len(packed), len(plain))
        self.assertLess(len(packed), len(data))


class TransportAlphabetTests(unittest.TestCase):
    def test_urlsafe_codec(self):
        data = os.urandom(4096)
        codec = EnvelopeCodec(alphabet=ALPHABET_URLSAFE)
        sealed = codec.encode(PASSWORD, data)
        self.assertNotIn("+", sealed)
        self.assertNotIn("/", sealed)
        self.assertEqual(codec.decode(PASSWORD, sealed), data)

    def test_process_wide_setting(self):
        pwseal.set_transport_alphabet(ALPHABET_URLSAFE)
        try:
            self.assertEqual(pwseal.get_transport_alphabet(), ALPHABET_URLSAFE)
            data = PHRASE * 40
            sealed = pwseal.encrypt_with_compression(PASSWORD, data, 19)
            self.assertEqual(pwseal.decrypt(PASSWORD, sealed), data)
            self.assertLess(len(sealed), len(data))
        finally:
            pwseal.set_transport_alphabet(ALPHABET_STANDARD)
        self.assertEqual(pwseal.get_transport_alphabet(), ALPHABET_STANDARD)

    def test_unknown_alphabet(self):
        with self.assertRaises(InvalidParameter):
            EnvelopeCodec(alphabet="base32")


class ConcurrencyTests(unittest.TestCase):
    def test_parallel_encode_decode(self):
        codec = EnvelopeCodec()
        inputs = [(PHRASE * (i + 1)).encode() + os.urandom(i * 64) for i in range(24)]

        def _round_trip(data: bytes) -> bytes:
            return codec.decode(PASSWORD, codec.encode(PASSWORD, data, compression_level=19))

        with _fut.ThreadPoolExecutor(max_workers=8) as ex:
            results = list(ex.map(_round_trip, inputs))
        self.assertEqual(results, inputs)


if __name__ == "__main__":
    unittest.main()
