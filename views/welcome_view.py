import streamlit as st
from utils import session_manager


def render_welcome(session):
    col_avatar, col_info = st.columns([1, 4])
    with col_avatar:
        if session.avatar_url:
            st.image(session.avatar_url, width=96)
    with col_info:
        st.title(f"Welcome, {session.name}!")
        st.write(session.email)

    if st.button("Sign Out"):
        session_manager.logout()
