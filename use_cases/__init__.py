"""Application layer contracts shared by the sign-in flows."""

from .errors import AuthError, DecodeError, DeliveryError, StorageCorruptionError, VerificationMismatch
from .session_models import AuthState, AuthView, IdentityClaim, OtpChallenge, Session, is_signed_in

__all__ = [
    "AuthError",
    "AuthState",
    "AuthView",
    "DecodeError",
    "DeliveryError",
    "IdentityClaim",
    "OtpChallenge",
    "Session",
    "StorageCorruptionError",
    "VerificationMismatch",
    "is_signed_in",
]
