from infrastructure.repositories.sqlite_session_store import SQLiteSessionStore
from infrastructure.repositories.sqlite_audit_repository import SQLiteAuditRepository
from infrastructure.messaging.email_provider import EmailProvider
from infrastructure.identity.google_identity import GoogleIdentityProvider
from use_cases.errors import AuthError, DecodeError, DeliveryError, StorageCorruptionError, VerificationMismatch  # noqa: F401
from dataclasses import dataclass
from typing import Optional
import os
import streamlit as st

SESSION_DB = "session.db"
DEFAULT_AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=random"


def get_secret(key):
    try:
        return st.secrets.get(key)
    except FileNotFoundError:
        return None


def _setting(key, default=None):
    value = get_secret(key) or os.getenv(key)
    return value if value else default


def _optional_int(key) -> Optional[int]:
    raw = _setting(key)
    if raw is None:
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


@dataclass(frozen=True)
class AuthConfig:
    google_client_id: str
    emailjs_service_id: str
    emailjs_template_id: str
    emailjs_public_key: str
    session_db: str
    avatar_placeholder_url: str
    otp_ttl_seconds: Optional[int] = None
    otp_max_attempts: Optional[int] = None


def load_config() -> AuthConfig:
    return AuthConfig(
        google_client_id=_setting("GOOGLE_CLIENT_ID", ""),
        emailjs_service_id=_setting("EMAILJS_SERVICE_ID", ""),
        emailjs_template_id=_setting("EMAILJS_TEMPLATE_ID", ""),
        emailjs_public_key=_setting("EMAILJS_PUBLIC_KEY", ""),
        session_db=_setting("SESSION_DB", SESSION_DB),
        avatar_placeholder_url=_setting("AVATAR_PLACEHOLDER_URL", DEFAULT_AVATAR_URL),
        otp_ttl_seconds=_optional_int("OTP_TTL_SECONDS"),
        otp_max_attempts=_optional_int("OTP_MAX_ATTEMPTS"),
    )


_session_store = None
_audit_repo = None


def get_session_store() -> SQLiteSessionStore:
    global _session_store
    db_path = load_config().session_db
    if _session_store is None or _session_store.db_path != db_path:
        _session_store = SQLiteSessionStore(db_path)
    return _session_store


def get_audit_repo() -> SQLiteAuditRepository:
    global _audit_repo
    db_path = load_config().session_db
    if _audit_repo is None or _audit_repo.db_path != db_path:
        _audit_repo = SQLiteAuditRepository(db_path)
    return _audit_repo


def get_email_provider() -> EmailProvider:
    cfg = load_config()
    return EmailProvider(
        service_id=cfg.emailjs_service_id,
        template_id=cfg.emailjs_template_id,
        public_key=cfg.emailjs_public_key,
    )


def get_identity_provider() -> GoogleIdentityProvider:
    return GoogleIdentityProvider(client_id=load_config().google_client_id)


def init_auth_db():
    get_session_store().init_db()
    get_audit_repo().init_audit_db()
