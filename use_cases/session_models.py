"""Session DTOs shared across application layers."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from use_cases.errors import StorageCorruptionError


class AuthState(str, Enum):
    SIGNED_OUT = "SIGNED_OUT"
    AUTHENTICATING_FEDERATED = "AUTHENTICATING_FEDERATED"
    AWAITING_OTP = "AWAITING_OTP"
    SIGNED_IN = "SIGNED_IN"


@dataclass(frozen=True)
class IdentityClaim:
    """Identity extracted from a federated credential."""

    subject_id: str
    display_name: str
    email: str
    avatar_url: str


@dataclass(frozen=True)
class OtpChallenge:
    target_email: str
    display_name: str
    code: str
    issued_at: datetime


@dataclass(frozen=True)
class Session:
    id: str
    name: str
    email: str
    avatar_url: str

    @classmethod
    def from_claim(cls, claim: IdentityClaim) -> "Session":
        return cls(
            id=claim.subject_id,
            name=claim.display_name,
            email=claim.email,
            avatar_url=claim.avatar_url,
        )

    def to_record(self) -> Dict[str, str]:
        """Serialize to the persisted record shape (`picture` holds the avatar)."""
        return {"id": self.id, "name": self.name, "email": self.email, "picture": self.avatar_url}

    @classmethod
    def from_record(cls, record: Any) -> "Session":
        if not isinstance(record, dict):
            raise StorageCorruptionError("Session record is not an object")
        values = {}
        for key in ("id", "name", "email", "picture"):
            value = record.get(key)
            if not isinstance(value, str):
                raise StorageCorruptionError(f"Session record field '{key}' is missing or not a string")
            values[key] = value
        return cls(id=values["id"], name=values["name"], email=values["email"], avatar_url=values["picture"])


@dataclass(frozen=True)
class AuthView:
    """What the UI may read about the current sign-in state. Never carries the passcode."""

    state: AuthState
    session: Optional[Session] = None
    pending_email: Optional[str] = None
    pending_name: Optional[str] = None
    can_verify: bool = False
    error: Optional[str] = None


def is_signed_in(view: AuthView) -> bool:
    return view.state == AuthState.SIGNED_IN and view.session is not None
