"""
YSA Christmas Party 2025 registration
Public intake form plus admin/viewer dashboard
"""
import logging
import streamlit as st

from ysa_registration.config import configure_logging
from ysa_registration.services.auth_service import is_authenticated
from ysa_registration.ui.admin_dashboard import render_admin_dashboard
from ysa_registration.ui.login_page import render_login_page
from ysa_registration.ui.registration_page import render_registration_page
from ysa_registration.ui.styles import inject_base_styles

logger = logging.getLogger(__name__)

VIEW_REGISTRATION = "registration"
VIEW_LOGIN = "login"
VIEW_DASHBOARD = "dashboard"


st.set_page_config(
    page_title="YSA Christmas Party 2025",
    page_icon="🎄",
    layout="wide",
    initial_sidebar_state="collapsed"
)


def initialize_session_state():
    """Default view, with ?view=admin opening the login form directly."""
    if "current_view" not in st.session_state:
        st.session_state.current_view = VIEW_REGISTRATION
        if st.query_params.get("view") == "admin":
            st.session_state.current_view = VIEW_LOGIN


def render_navigation():
    _, nav_col = st.columns([5, 1], gap="small")
    with nav_col:
        if st.session_state.current_view == VIEW_REGISTRATION:
            if st.button("🔐 Admin", width="stretch", key="nav_admin"):
                st.session_state.current_view = VIEW_DASHBOARD if is_authenticated() else VIEW_LOGIN
                st.rerun()


def render_current_view():
    """Render the view named in session state."""
    view = st.session_state.current_view

    try:
        if view == VIEW_REGISTRATION:
            render_registration_page()

        elif view == VIEW_LOGIN:
            render_login_page()

        elif view == VIEW_DASHBOARD:
            if is_authenticated():
                render_admin_dashboard()
            else:
                st.session_state.current_view = VIEW_LOGIN
                st.rerun()

        else:
            st.error(f"Unknown view: {view}")
            if st.button("Back to registration"):
                st.session_state.current_view = VIEW_REGISTRATION
                st.rerun()

    except Exception as e:
        # Error boundary
        logger.exception("Unhandled exception while rendering view")
        st.error("Something went wrong, please try again later")

        with st.expander("🔍 Details"):
            st.code(str(e))

        if st.button("Back to registration"):
            st.session_state.current_view = VIEW_REGISTRATION
            st.rerun()


def main():
    configure_logging()
    initialize_session_state()
    inject_base_styles()
    render_navigation()
    render_current_view()


if __name__ == "__main__":
    main()
