"""Dashboard login form."""
import streamlit as st

from ysa_registration.services.auth_service import login
from ysa_registration.ui.styles import html_block


def _back_to_registration() -> None:
    st.session_state["current_view"] = "registration"


def render_login_page() -> None:
    st.markdown(
        html_block(
            """
            <div class="dashboard-header">
                <p class="dashboard-title">ចូលប្រើប្រាស់ប្រព័ន្ធ</p>
                <span class="dashboard-subtitle">Admin / Viewer login</span>
            </div>
            """
        ),
        unsafe_allow_html=True,
    )

    with st.form(key="login_form"):
        username = st.text_input("ឈ្មោះគណនី")
        password = st.text_input("លេខសម្ងាត់", type="password")
        submitted = st.form_submit_button("ចូល", type="primary", width="stretch")

    if submitted:
        success, message = login(username.strip(), password)
        if success:
            st.session_state["current_view"] = "dashboard"
            st.rerun()
        st.error(f"❌ {message}")

    st.button("← ត្រឡប់ទៅទំព័រចុះឈ្មោះ", key="login_back", width="stretch", on_click=_back_to_registration)
