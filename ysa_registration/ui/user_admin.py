"""System user management tab (admin only)."""
import streamlit as st

from ysa_registration.models.system_user import Role
from ysa_registration.services.user_service import create_user, delete_user, list_users

FEEDBACK_KEY = "user_admin_feedback"
ROLE_LABELS = {Role.ADMIN: "Admin (full access)", Role.VIEWER: "Viewer (read only)"}


def _show_feedback() -> None:
    feedback = st.session_state.pop(FEEDBACK_KEY, None)
    if not feedback:
        return
    if feedback["success"]:
        st.success(f"✅ {feedback['message']}")
    else:
        st.error(f"❌ {feedback['message']}")


def _render_create_form() -> None:
    with st.form(key="user_admin_create", clear_on_submit=True):
        st.markdown("#### ➕ New user")
        col1, col2, col3 = st.columns(3, gap="small")
        with col1:
            username = st.text_input("Username")
        with col2:
            password = st.text_input("Password", type="password")
        with col3:
            role = st.selectbox("Role", list(ROLE_LABELS.keys()), format_func=lambda r: ROLE_LABELS[r])

        submitted = st.form_submit_button("Create", type="primary", width="stretch")

    if submitted:
        success, message = create_user(username, password, role)
        st.session_state[FEEDBACK_KEY] = {"success": success, "message": message}
        st.rerun()


def render_user_admin() -> None:
    """List stored users with delete buttons, plus a create form."""
    _show_feedback()
    _render_create_form()

    users = list_users()
    st.markdown(f"#### 👥 Users ({len(users)})")
    if not users:
        st.info("No stored users yet. Master accounts are configured in the environment.")
        return

    for user in users:
        with st.container(border=True):
            col1, col2, col3 = st.columns([4, 3, 1], gap="small")
            col1.markdown(f"**{user.username}**")
            col2.caption(ROLE_LABELS[user.role])
            with col3:
                if st.button("🗑️", key=f"user_delete_{user.id}", width="stretch"):
                    success, message = delete_user(user.id)
                    st.session_state[FEEDBACK_KEY] = {"success": success, "message": message}
                    st.rerun()
