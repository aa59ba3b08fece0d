"""Authentication flow orchestration (application layer)."""

from dataclasses import dataclass
from typing import Literal, Optional

from use_cases.session_models import is_signed_in
from utils import session_manager

AuthFlowStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class AuthFlowResult:
    """Result contract for auth flow orchestration."""

    status: AuthFlowStatus
    reason: str
    session_id: Optional[str] = None


def ensure_authenticated_session() -> AuthFlowResult:
    """Run auth-gate orchestration and return a control-flow status."""
    session_manager.init_session_state()
    manager = session_manager.check_and_restore_session()
    session_manager.consume_credential_from_query()

    view = manager.snapshot()
    if not is_signed_in(view):
        return AuthFlowResult(status="STOP", reason="auth_required")
    return AuthFlowResult(status="CONTINUE", reason="authenticated", session_id=view.session.id)
