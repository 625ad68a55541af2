from __future__ import annotations

import logging
from typing import Optional, Tuple

import zstandard

from .constants import (
    DECOMPRESS_INPUT_CHUNK,
    MAX_DECOMPRESSED_SIZE,
    MAX_COMPRESSION_LEVEL,
    MIN_COMPRESSION_LEVEL,
    TIER_BEST,
    TIER_BETTER,
    TIER_DEFAULT,
    TIER_FASTEST,
    TIER_ZSTD_LEVELS,
)
from .errors import DecompressionFailed, EncodingError, InvalidParameter


logger = logging.getLogger(__name__)


def validate_level(level) -> int:
    # bool is an int subclass; True is not a compression level
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidParameter(f"compression level must be an int, got {type(level).__name__}")
    if level < MIN_COMPRESSION_LEVEL or level > MAX_COMPRESSION_LEVEL:
        raise InvalidParameter(
            f"compression level must be between {MIN_COMPRESSION_LEVEL} and {MAX_COMPRESSION_LEVEL}"
        )
    return level


def level_to_tier(level: int) -> str:
    """Bucket the 1..19 effort scale into one of four compressor tiers."""
    validate_level(level)
    if level < 3:
        return TIER_FASTEST
    if level < 7:
        return TIER_DEFAULT
    if level < 11:
        return TIER_BETTER
    return TIER_BEST


def compress(data: bytes, level: int) -> bytes:
    tier = level_to_tier(level)
    # A compressor per call; zstd contexts are not safe to share across threads.
    cctx = zstandard.ZstdCompressor(level=TIER_ZSTD_LEVELS[tier], write_checksum=True)
    try:
        return cctx.compress(data)
    except zstandard.ZstdError as exc:
        raise EncodingError(f"zstd compression failed: {exc}") from exc


def decompress(data: bytes, max_output_size: int = MAX_DECOMPRESSED_SIZE) -> bytes:
    """Decompress exactly one complete zstd frame.

    Frames without a recorded content size are accepted. A truncated frame,
    trailing bytes after the frame, or output larger than ``max_output_size``
    fail closed.
    """
    dobj = zstandard.ZstdDecompressor().decompressobj()
    out = bytearray()
    try:
        for start in range(0, len(data), DECOMPRESS_INPUT_CHUNK):
            if dobj.eof:
                raise DecompressionFailed("unexpected data after zstd frame")
            out += dobj.decompress(data[start : start + DECOMPRESS_INPUT_CHUNK])
            if len(out) > max_output_size:
                raise DecompressionFailed(f"decompressed payload exceeds {max_output_size} bytes")
    except zstandard.ZstdError as exc:
        raise DecompressionFailed(f"zstd decompression failed: {exc}") from exc
    if not dobj.eof:
        raise DecompressionFailed("zstd frame is incomplete")
    if dobj.unused_data:
        raise DecompressionFailed("unexpected data after zstd frame")
    return bytes(out)


def select_payload(original: bytes, compressed: Optional[bytes]) -> Tuple[bytes, bool]:
    """Pick what gets encrypted: ``(payload, is_compressed)``.

    Compressed output is used only when it is strictly smaller than the input.
    """
    if compressed is not None and len(compressed) < len(original):
        return compressed, True
    return original, False


def maybe_compress(data: bytes, level: Optional[int]) -> Tuple[bytes, bool]:
    if level is None:
        return data, False
    payload, used = select_payload(data, compress(data, level))
    logger.debug(
        "compression level %d (%s): %d -> %d bytes, %s",
        level,
        level_to_tier(level),
        len(data),
        len(payload),
        "kept" if used else "discarded",
    )
    return payload, used
