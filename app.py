import streamlit as st
from datetime import datetime

from infrastructure.observability import setup_observability
setup_observability()

from use_cases import auth_flow, bootstrap
from utils import session_manager
from views import login_view, welcome_view

st.set_page_config(page_title="Sign in", layout="centered")

# Health Check (Basic load-balancer heartbeat)
if st.query_params.get("health") == "1":
    st.write({"status": "ok", "version": "1.0", "uptime": datetime.utcnow().isoformat()})
    st.stop()

startup_result = bootstrap.run_startup()
if startup_result.status == "STOP":
    st.stop()

auth_result = auth_flow.ensure_authenticated_session()
if auth_result.status == "STOP":
    login_view.render_auth_screen()
    st.stop()

welcome_view.render_welcome(session_manager.get_session_manager().session)
