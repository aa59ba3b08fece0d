"""Error taxonomy of the sign-in flow."""


class AuthError(Exception):
    """Base class for every failure the sign-in flow can surface."""


class DecodeError(AuthError):
    """Federated token is malformed. Not retriable: sign in again."""


class DeliveryError(AuthError):
    """Passcode email was not accepted by the provider. Retriable by resending."""


class VerificationMismatch(AuthError):
    """Entered passcode does not match. The pending challenge survives."""


class StorageCorruptionError(AuthError):
    """Persisted session record is unreadable. Never shown to the user."""
