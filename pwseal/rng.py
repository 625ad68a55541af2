from __future__ import annotations

import os

from .errors import RandomnessUnavailable


def random_bytes(size: int) -> bytes:
    """Return ``size`` bytes from the operating system CSPRNG."""
    try:
        return os.urandom(size)
    except (OSError, NotImplementedError) as exc:
        raise RandomnessUnavailable(f"system randomness unavailable: {exc}") from exc
