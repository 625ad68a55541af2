from __future__ import annotations

import logging
from dataclasses import dataclass

from argon2.exceptions import HashingError
from argon2.low_level import Type as _ArgonType, hash_secret_raw as _argon_hash
from Cryptodome.Protocol.KDF import scrypt as _scrypt

from .constants import (
    ARGON_MEMORY_COST_KIB,
    ARGON_PARALLELISM,
    ARGON_SALT_SIZE,
    ARGON_TIME_COST,
    KEY_SIZE,
    SCRYPT_N,
    SCRYPT_P,
    SCRYPT_R,
    SCRYPT_SALT_SIZE,
)
from .errors import KeyDerivationFailed


logger = logging.getLogger(__name__)

KDF_SCRYPT = "scrypt"
KDF_ARGON2ID = "argon2id"


@dataclass(frozen=True)
class KdfParams:
    algorithm: str
    salt_size: int
    key_size: int = KEY_SIZE
    # scrypt
    n: int = 0
    r: int = 0
    p: int = 0
    # argon2id
    time_cost: int = 0
    memory_cost_kib: int = 0
    parallelism: int = 0


SCRYPT_PARAMS = KdfParams(
    algorithm=KDF_SCRYPT,
    salt_size=SCRYPT_SALT_SIZE,
    n=SCRYPT_N,
    r=SCRYPT_R,
    p=SCRYPT_P,
)

ARGON2ID_PARAMS = KdfParams(
    algorithm=KDF_ARGON2ID,
    salt_size=ARGON_SALT_SIZE,
    time_cost=ARGON_TIME_COST,
    memory_cost_kib=ARGON_MEMORY_COST_KIB,
    parallelism=ARGON_PARALLELISM,
)


def derive_key(password: str, salt: bytes, params: KdfParams) -> bytearray:
    """Derive a symmetric key from ``password`` and ``salt``.

    The result is a mutable buffer so callers can :func:`wipe` it once the
    AEAD step is done.

    Raises:
        KeyDerivationFailed: on resource exhaustion, a rejected parameter, or a
            password that cannot be encoded as UTF-8.
    """
    if len(salt) != params.salt_size:
        raise KeyDerivationFailed(f"salt must be {params.salt_size} bytes, got {len(salt)}")
    logger.debug("deriving %d-byte key with %s", params.key_size, params.algorithm)
    try:
        secret = password.encode("utf-8")
        if params.algorithm == KDF_SCRYPT:
            raw = _scrypt(secret, salt, params.key_size, params.n, params.r, params.p)
        elif params.algorithm == KDF_ARGON2ID:
            raw = _argon_hash(
                secret,
                salt,
                time_cost=params.time_cost,
                memory_cost=params.memory_cost_kib,
                parallelism=params.parallelism,
                hash_len=params.key_size,
                type=_ArgonType.ID,
            )
        else:
            raise KeyDerivationFailed(f"unsupported KDF: {params.algorithm}")
    except (HashingError, MemoryError, UnicodeError, ValueError) as exc:
        raise KeyDerivationFailed(f"{params.algorithm} key derivation failed: {exc}") from exc
    return bytearray(raw)


def wipe(buf: bytearray) -> None:
    """Zero a key buffer in place."""
    for i in range(len(buf)):
        buf[i] = 0
