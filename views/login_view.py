import streamlit as st
import auth
from use_cases.session_models import AuthState
from utils import session_manager


def _render_error(view):
    if view.error:
        st.error(view.error)


def _render_otp_request(manager):
    with st.form("otp_request_form", clear_on_submit=False):
        email = st.text_input("Email")
        name = st.text_input("Name")
        submitted = st.form_submit_button("Send passcode")
        if submitted:
            if not email.strip() or not name.strip():
                st.error("Enter your email and name.")
            elif "@" not in email:
                st.error("Enter a valid email address.")
            else:
                with st.spinner("Sending passcode..."):
                    manager.request_otp(email.strip(), name.strip())
                st.rerun()


def _render_otp_verify(manager, view):
    if view.can_verify:
        st.info(f"We sent a 6-digit passcode to {view.pending_email}.")
        with st.form("otp_verify_form", clear_on_submit=True):
            code = st.text_input("Passcode", max_chars=6)
            submitted = st.form_submit_button("Verify")
            if submitted:
                manager.submit_code(code)
                st.rerun()
    else:
        st.warning(f"The passcode for {view.pending_email} was not sent.")

    col_resend, col_cancel = st.columns(2)
    with col_resend:
        if st.button("Resend passcode"):
            with st.spinner("Sending passcode..."):
                manager.resend_otp()
            st.rerun()
    with col_cancel:
        if st.button("Use another method"):
            manager.cancel_otp()
            st.rerun()


def render_auth_screen():
    manager = session_manager.get_session_manager()
    view = manager.snapshot()

    st.title("Welcome")
    st.caption("Sign in to continue to your account")
    _render_error(view)

    if view.state == AuthState.AWAITING_OTP:
        _render_otp_verify(manager, view)
        return

    tab_google, tab_email = st.tabs(["Google", "Email passcode"])
    with tab_google:
        if not auth.get_identity_provider().render_button():
            st.info("Google Sign-In is not configured.")
    with tab_email:
        _render_otp_request(manager)
