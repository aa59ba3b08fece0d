import logging
import time
from typing import Callable, Optional
from urllib.parse import quote

import streamlit as st

import auth
from infrastructure.identity.google_identity import CREDENTIAL_QUERY_PARAM
from infrastructure.repositories.sqlite_audit_repository import AuditAction
from services import credential_decoder
from services.otp_service import OtpGenerator
from use_cases.errors import AuthError, DecodeError, DeliveryError, VerificationMismatch
from use_cases.session_models import AuthState, AuthView, OtpChallenge, Session

log = logging.getLogger(__name__)

"""
SESSION STATE CONTRACT

Keys in st.session_state owned by this module:

auth_manager: SessionManager | None
    the sign-in state machine of this browser session
    default: None

auth_restored: bool
    the persisted session has been looked up once for this browser session
    default: False
"""


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionManager:
    """
    Sign-in state machine. The only owner of the in-memory Session.

    SIGNED_OUT -> AUTHENTICATING_FEDERATED -> SIGNED_IN | SIGNED_OUT
    SIGNED_OUT -> AWAITING_OTP -> SIGNED_IN
    SIGNED_IN  -> SIGNED_OUT

    Every user action clears `error` first; a failure leaves exactly one error
    in the slot and a stable state behind.
    """

    def __init__(
        self,
        store,
        otp: OtpGenerator,
        delivery,
        identity=None,
        audit=None,
        decoder: Callable = credential_decoder.decode,
        avatar_url_template: str = auth.DEFAULT_AVATAR_URL,
        now_ms: Callable[[], int] = _now_ms,
    ):
        self._store = store
        self._otp = otp
        self._delivery = delivery
        self._identity = identity
        self._audit = audit
        self._decode = decoder
        self._avatar_url_template = avatar_url_template
        self._now_ms = now_ms

        self.state = AuthState.SIGNED_OUT
        self.session: Optional[Session] = None
        self.error: Optional[AuthError] = None
        self._challenge: Optional[OtpChallenge] = None
        self._otp_request: Optional[tuple] = None

    # --- helpers ---

    def _audit_event(self, action, target_id=None, metadata=None, result="success"):
        if self._audit is None:
            return
        self._audit.log_action(
            action,
            target_type="session",
            actor_id=self.session.id if self.session else None,
            target_id=target_id,
            metadata=metadata,
            result=result,
        )

    def _commit(self, session: Session, method: str):
        self._otp.discard()
        self._challenge = None
        self._otp_request = None
        self.session = session
        self.state = AuthState.SIGNED_IN
        self._store.save(session)
        log.info(f"Signed in {session.email} via {method}")
        self._audit_event(AuditAction.LOGIN_SUCCESS, target_id=session.id, metadata={"method": method})

    def _reset_otp(self):
        self._otp.discard()
        self._challenge = None
        self._otp_request = None

    def _placeholder_avatar(self, name: str) -> str:
        return self._avatar_url_template.format(name=quote(name))

    @property
    def pending_challenge(self) -> Optional[OtpChallenge]:
        return self._challenge

    @property
    def can_verify(self) -> bool:
        return self.state == AuthState.AWAITING_OTP and self._otp.is_pending(self._challenge)

    # --- transitions ---

    def restore(self) -> AuthState:
        """Startup: trust a persisted session as-is, or drop an unreadable one."""
        self.session = None
        self.state = AuthState.SIGNED_OUT
        raw = self._store.load_raw()
        if raw is None:
            return self.state

        session = self._store.decode_record(raw)
        if session is None:
            self._store.clear()
            self._audit_event(AuditAction.SESSION_CORRUPT, result="cleared")
            return self.state

        self.session = session
        self.state = AuthState.SIGNED_IN
        self._audit_event(AuditAction.SESSION_RESTORED, target_id=session.id)
        return self.state

    def handle_credential(self, raw_token: str) -> bool:
        self.error = None
        self._reset_otp()
        self.state = AuthState.AUTHENTICATING_FEDERATED
        try:
            claim = self._decode(raw_token)
        except DecodeError as e:
            log.warning(f"Rejected federated credential: {e}")
            self.error = DecodeError("Failed to process login response")
            self.state = AuthState.SIGNED_IN if self.session else AuthState.SIGNED_OUT
            self._audit_event(AuditAction.LOGIN_FAIL, metadata={"method": "google", "reason": "decode_error"},
                              result="deny")
            return False

        self._commit(Session.from_claim(claim), method="google")
        return True

    def request_otp(self, email: str, display_name: str) -> bool:
        self.error = None
        if self.state == AuthState.SIGNED_IN:
            self.error = AuthError("Already signed in. Sign out first.")
            return False
        self._otp_request = (email, display_name)
        challenge = self._otp.issue(email, display_name)
        self._challenge = challenge
        self.state = AuthState.AWAITING_OTP

        delivered, message = self._delivery.send_code(email, display_name, challenge.code)

        if not self._otp.is_pending(challenge):
            # A newer challenge was issued while this one was in flight.
            log.info(f"Ignoring delivery result for superseded challenge to {email}")
            return False

        if not delivered:
            self._otp.discard()
            self._challenge = None
            self.error = DeliveryError(f"Could not send the passcode: {message}")
            self._audit_event(AuditAction.OTP_DELIVERY_FAILED, target_id=email,
                              metadata={"error_message": message}, result="fail")
            return False

        self._audit_event(AuditAction.OTP_ISSUED, target_id=email)
        return True

    def resend_otp(self) -> bool:
        if self.state == AuthState.SIGNED_IN:
            self.error = AuthError("Already signed in. Sign out first.")
            return False
        if self._otp_request is None:
            self.error = None
            return False
        email, display_name = self._otp_request
        return self.request_otp(email, display_name)

    def submit_code(self, candidate: str) -> bool:
        self.error = None
        if self.state != AuthState.AWAITING_OTP:
            self.error = VerificationMismatch("No passcode is pending. Request a new one.")
            return False

        challenge = self._challenge
        if not self._otp.verify(candidate, challenge):
            self.error = VerificationMismatch("Invalid passcode. Please try again.")
            self._audit_event(AuditAction.LOGIN_FAIL, target_id=challenge.target_email if challenge else None,
                              metadata={"method": "email", "reason": "mismatch"}, result="deny")
            return False

        session = Session(
            id=f"email-{self._now_ms()}",
            name=challenge.display_name,
            email=challenge.target_email,
            avatar_url=self._placeholder_avatar(challenge.display_name),
        )
        self._commit(session, method="email")
        return True

    def cancel_otp(self):
        self.error = None
        self._reset_otp()
        if self.state == AuthState.AWAITING_OTP:
            self.state = AuthState.SIGNED_OUT

    def sign_out(self):
        self.error = None
        previous = self.session
        was_signed_in = previous is not None
        self._reset_otp()
        self.session = None
        self.state = AuthState.SIGNED_OUT
        if was_signed_in:
            self._store.clear()
            log.info(f"Signed out {previous.email}")
            if self._audit is not None:
                self._audit.log_action(AuditAction.LOGOUT, target_type="session",
                                       actor_id=previous.id)
            if self._identity is not None:
                self._identity.disable_auto_select()

    def snapshot(self) -> AuthView:
        request = self._otp_request or (None, None)
        return AuthView(
            state=self.state,
            session=self.session,
            pending_email=request[0] if self.state == AuthState.AWAITING_OTP else None,
            pending_name=request[1] if self.state == AuthState.AWAITING_OTP else None,
            can_verify=self.can_verify,
            error=str(self.error) if self.error else None,
        )


def build_session_manager() -> SessionManager:
    cfg = auth.load_config()
    return SessionManager(
        store=auth.get_session_store(),
        otp=OtpGenerator(ttl_seconds=cfg.otp_ttl_seconds, max_attempts=cfg.otp_max_attempts),
        delivery=auth.get_email_provider(),
        identity=auth.get_identity_provider(),
        audit=auth.get_audit_repo(),
        avatar_url_template=cfg.avatar_placeholder_url,
    )


def init_session_state():
    if "auth_manager" not in st.session_state:
        st.session_state.auth_manager = None
    if "auth_restored" not in st.session_state:
        st.session_state.auth_restored = False


def get_session_manager() -> SessionManager:
    init_session_state()
    if st.session_state.auth_manager is None:
        st.session_state.auth_manager = build_session_manager()
    return st.session_state.auth_manager


def check_and_restore_session():
    manager = get_session_manager()
    if not st.session_state.auth_restored:
        manager.restore()
        st.session_state.auth_restored = True
    return manager


def consume_credential_from_query() -> bool:
    """Hands a credential delivered by the Google button to the state machine, once."""
    token = st.query_params.get(CREDENTIAL_QUERY_PARAM)
    if not token:
        return False
    del st.query_params[CREDENTIAL_QUERY_PARAM]
    return get_session_manager().handle_credential(token)


def logout():
    get_session_manager().sign_out()
    st.rerun()
