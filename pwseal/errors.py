class PwsealError(Exception):
    """Base class for pwseal errors."""

    reason = "Error"


class EncodingError(PwsealError):
    """Raised when an envelope cannot be produced."""

    reason = "EncodingFailed"


class DecodingError(PwsealError):
    """Raised when an envelope cannot be opened.

    ``reason`` names the failing stage; callers should only consider a retry
    (for example re-prompting for a password) on ``AuthenticationFailed``.
    """

    reason = "DecodingFailed"


# Encode path
class InvalidParameter(EncodingError, ValueError):
    reason = "InvalidParameter"


class RandomnessUnavailable(EncodingError):
    reason = "RandomnessUnavailable"


# Either path
class KeyDerivationFailed(EncodingError, DecodingError):
    reason = "KeyDerivationFailed"


# Decode path
class MalformedTransport(DecodingError):
    reason = "MalformedTransport"


class Truncated(DecodingError):
    reason = "Truncated"


class UnsupportedFormat(DecodingError):
    reason = "UnsupportedFormat"


class AuthenticationFailed(DecodingError):
    """Wrong password or tampered data. The two are deliberately not told apart."""

    reason = "AuthenticationFailed"


class DecompressionFailed(DecodingError):
    reason = "DecompressionFailed"


class InvalidText(DecodingError):
    reason = "InvalidText"
