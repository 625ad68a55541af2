# Format versions
FORMAT_V1 = 1  # scrypt KDF, 8-byte salt
FORMAT_V2 = 2  # Argon2id KDF, 16-byte salt

DEFAULT_FORMAT_VERSION = FORMAT_V1

# Header flags
FLAG_COMPRESSED = 1 << 0
KNOWN_FLAGS = FLAG_COMPRESSED

HEADER_SIZE = 2    # version + flags
NONCE_SIZE = 24    # XChaCha20-Poly1305
TAG_SIZE = 16      # Poly1305
KEY_SIZE = 32

MIN_ENVELOPE_SIZE = HEADER_SIZE + NONCE_SIZE


# scrypt parameters for FORMAT_V1
SCRYPT_SALT_SIZE = 8
SCRYPT_N = 1024
SCRYPT_R = 8
SCRYPT_P = 1

# Argon2id parameters for FORMAT_V2 (OWASP minimum profile)
ARGON_SALT_SIZE = 16
ARGON_TIME_COST = 2
ARGON_MEMORY_COST_KIB = 19 * 1024
ARGON_PARALLELISM = 1


# Public compression effort scale
MIN_COMPRESSION_LEVEL = 1
MAX_COMPRESSION_LEVEL = 19

# Compression tiers and the zstd level each one runs at
TIER_FASTEST = "fastest"
TIER_DEFAULT = "default"
TIER_BETTER = "better"
TIER_BEST = "best"

TIER_ZSTD_LEVELS = {
    TIER_FASTEST: 1,
    TIER_DEFAULT: 3,
    TIER_BETTER: 7,
    TIER_BEST: 11,
}

# Upper bound on inflated payloads. Compressed input is fed in small pieces so
# the bound is enforced while the frame is inflated, not after.
MAX_DECOMPRESSED_SIZE = 1 << 30  # 1 GiB
DECOMPRESS_INPUT_CHUNK = 1024


# Transport alphabets
ALPHABET_STANDARD = "standard"
ALPHABET_URLSAFE = "urlsafe"
