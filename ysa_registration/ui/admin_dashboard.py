"""Registration dashboard for admins and viewers."""
import html
from dataclasses import replace
from datetime import date
from typing import List, Optional, Tuple

import streamlit as st

from ysa_registration.models.filters import FilterState, Page
from ysa_registration.models.locations import (
    GENDERS,
    PAYMENT_OTHER,
    PAYMENT_STATUSES,
    T_SHIRT_SIZES,
    get_stakes,
    get_wards,
)
from ysa_registration.models.registration import Registration
from ysa_registration.services.auth_service import (
    SESSION_FEED_KEY,
    SESSION_USERNAME_KEY,
    is_admin,
    logout,
)
from ysa_registration.services.export_service import (
    export_filename,
    registrations_to_csv_bytes,
)
from ysa_registration.services.query_service import (
    apply_filters,
    display_number,
    paginate,
    summarize,
)
from ysa_registration.services.registration_feed import RegistrationFeed
from ysa_registration.services.registration_service import (
    delete_registration,
    toggle_paid,
    update_registration,
)
from ysa_registration.services.stores import get_stores
from ysa_registration.ui.styles import html_block
from ysa_registration.ui.user_admin import render_user_admin
from ysa_registration.utils.date_utils import parse_date, to_khmer_numerals

DIALOG_DECORATOR = getattr(st, "dialog", None) or getattr(st, "experimental_dialog", None)

FILTER_STATE_KEY = "dashboard_filters"
EDIT_TARGET_KEY = "dashboard_edit_target"
DELETE_TARGET_KEY = "dashboard_delete_target"
FEEDBACK_KEY = "dashboard_feedback"

ALL_OPTION = ""
PAID_OPTIONS = {"all": None, "paid": True, "unpaid": False}
PAID_LABELS = {"all": "ទាំងអស់", "paid": "បានបង់", "unpaid": "មិនទាន់បង់"}


def get_feed() -> RegistrationFeed:
    """Session's live feed, started on first use and kept until logout."""
    feed = st.session_state.get(SESSION_FEED_KEY)
    if feed is None:
        stores = get_stores()
        feed = RegistrationFeed(stores.remote, stores.cache, stores.registrations_collection)
        feed.start()
        st.session_state[SESSION_FEED_KEY] = feed
    return feed


def get_filter_state() -> FilterState:
    state = st.session_state.get(FILTER_STATE_KEY)
    if state is None:
        state = FilterState()
        st.session_state[FILTER_STATE_KEY] = state
    return state


def _set_filter_state(state: FilterState) -> None:
    st.session_state[FILTER_STATE_KEY] = state


def _set_feedback(success: bool, message: str) -> None:
    st.session_state[FEEDBACK_KEY] = {"success": success, "message": message}


def _on_search_change() -> None:
    _set_filter_state(get_filter_state().with_search(st.session_state.get("filter_search", "")))


def _on_gender_change() -> None:
    _set_filter_state(get_filter_state().with_gender(st.session_state.get("filter_gender", "")))


def _on_size_change() -> None:
    _set_filter_state(get_filter_state().with_t_shirt_size(st.session_state.get("filter_size", "")))


def _on_stake_change() -> None:
    _set_filter_state(get_filter_state().with_stake(st.session_state.get("filter_stake", "")))
    st.session_state["filter_ward"] = ALL_OPTION


def _on_ward_change() -> None:
    _set_filter_state(get_filter_state().with_ward(st.session_state.get("filter_ward", "")))


def _on_paid_change() -> None:
    choice = st.session_state.get("filter_paid", "all")
    _set_filter_state(get_filter_state().with_paid(PAID_OPTIONS[choice]))


def _go_to_page(page: int) -> None:
    _set_filter_state(get_filter_state().with_page(page))


def _on_logout() -> None:
    logout()
    for key in (FILTER_STATE_KEY, EDIT_TARGET_KEY, DELETE_TARGET_KEY, FEEDBACK_KEY):
        st.session_state.pop(key, None)
    st.session_state["current_view"] = "registration"


def find_registration(registrations: List[Registration], record_id: Optional[str]) -> Optional[Registration]:
    for registration in registrations:
        if registration.id == record_id:
            return registration
    return None


def header_subtitle(username: str, admin: bool) -> str:
    """Escaped "user · role" line for the dashboard header."""
    role_label = "Admin" if admin else "Viewer"
    return f"{html.escape(username)} · {role_label}"


def pagination_caption(page: Page) -> str:
    return (
        f"{to_khmer_numerals(page.first_number)}-{to_khmer_numerals(page.last_number)} "
        f"/ {to_khmer_numerals(page.total_items)} នាក់ · "
        f"ទំព័រ {to_khmer_numerals(page.page)} / {to_khmer_numerals(page.total_pages)}"
    )


def _render_header(summary: dict, feed: RegistrationFeed) -> None:
    subtitle = header_subtitle(st.session_state.get(SESSION_USERNAME_KEY, ""), is_admin())

    col1, col2, col3 = st.columns([6, 1, 1], gap="small")
    with col1:
        st.markdown(
            html_block(
                f"""
                <div class="dashboard-header">
                    <p class="dashboard-title">បញ្ជីឈ្មោះអ្នកចុះឈ្មោះ YSA 2025</p>
                    <span class="dashboard-subtitle">{subtitle}</span>
                </div>
                """
            ),
            unsafe_allow_html=True,
        )
    with col2:
        if st.button("🔄 Refresh", key="dashboard_refresh", width="stretch"):
            st.rerun()
    with col3:
        st.button("🚪 Logout", key="dashboard_logout", width="stretch", on_click=_on_logout)

    if feed.is_degraded:
        st.warning("⚠️ Database unavailable: showing registrations saved on this device")
    if feed.error:
        st.error(f"❌ {feed.error}")

    metrics = st.columns(2 + len(PAYMENT_STATUSES))
    metrics[0].metric("សរុប", to_khmer_numerals(summary["total"]))
    metrics[1].metric("បានបង់", to_khmer_numerals(summary["paid"]))
    for column, (status, label) in zip(metrics[2:], PAYMENT_STATUSES.items()):
        column.metric(label, to_khmer_numerals(summary.get(status, 0)))


def _render_filters(state: FilterState) -> None:
    st.text_input(
        "🔍 ស្វែងរក (ឈ្មោះ ឬ លេខទូរស័ព្ទ)",
        key="filter_search",
        on_change=_on_search_change,
    )

    col1, col2, col3, col4, col5 = st.columns(5, gap="small")
    with col1:
        st.selectbox(
            "ភេទ", [ALL_OPTION] + GENDERS,
            format_func=lambda v: v or "ទាំងអស់",
            key="filter_gender", on_change=_on_gender_change,
        )
    with col2:
        st.selectbox(
            "ទំហំអាវ", [ALL_OPTION] + T_SHIRT_SIZES,
            format_func=lambda v: v or "ទាំងអស់",
            key="filter_size", on_change=_on_size_change,
        )
    with col3:
        st.selectbox(
            "ស្តេក", [ALL_OPTION] + get_stakes(),
            format_func=lambda v: v or "ទាំងអស់",
            key="filter_stake", on_change=_on_stake_change,
        )
    with col4:
        st.selectbox(
            "វួដ", [ALL_OPTION] + get_wards(state.stake),
            format_func=lambda v: v or "ទាំងអស់",
            key="filter_ward", on_change=_on_ward_change,
            disabled=not state.stake,
        )
    with col5:
        st.selectbox(
            "ការបង់ប្រាក់", list(PAID_OPTIONS.keys()),
            format_func=lambda v: PAID_LABELS[v],
            key="filter_paid", on_change=_on_paid_change,
        )


def _render_row(registration: Registration, number: int, admin: bool) -> None:
    with st.container(border=True):
        cols = st.columns([1, 4, 3, 3, 2, 3], gap="small")
        cols[0].markdown(f"**{to_khmer_numerals(number)}**")
        cols[1].markdown(f"**{registration.full_name}**  \n{registration.english_name}")
        cols[2].markdown(f"{registration.phone_number}  \n{registration.gender} · {registration.t_shirt_size}")
        cols[3].markdown(f"{registration.stake}  \n{registration.ward}")

        payment_label = PAYMENT_STATUSES.get(registration.payment_status, registration.payment_status)
        if registration.payment_status == PAYMENT_OTHER and registration.other_reason:
            payment_label = f"{payment_label}: {registration.other_reason}"
        cols[4].caption(payment_label)

        with cols[5]:
            if admin:
                paid_label = "✅ បានបង់" if registration.is_paid else "⬜ មិនទាន់បង់"
                if st.button(paid_label, key=f"paid_{registration.id}", width="stretch"):
                    success, message = toggle_paid(registration)
                    _set_feedback(success, message)
                    st.rerun()
                edit_col, delete_col = st.columns(2, gap="small")
                with edit_col:
                    if st.button("✏️", key=f"edit_{registration.id}", width="stretch"):
                        _close_edit_form(registration)
                        st.session_state[EDIT_TARGET_KEY] = registration.id
                        st.rerun()
                with delete_col:
                    if st.button("🗑️", key=f"delete_{registration.id}", width="stretch"):
                        st.session_state[DELETE_TARGET_KEY] = registration.id
                        st.rerun()
            else:
                st.markdown("✅ បានបង់" if registration.is_paid else "⬜ មិនទាន់បង់")


def _render_pagination(page: Page) -> None:
    col1, col2, col3 = st.columns([1, 3, 1], gap="small")
    with col1:
        st.button(
            "◀", key="page_prev", width="stretch",
            disabled=not page.has_previous,
            on_click=_go_to_page, args=(page.page - 1,),
        )
    with col2:
        st.caption(pagination_caption(page))
    with col3:
        st.button(
            "▶", key="page_next", width="stretch",
            disabled=not page.has_next,
            on_click=_go_to_page, args=(page.page + 1,),
        )


def _stored_dob(registration: Registration, min_year: int, max_year: int) -> Optional[date]:
    """Stored dob as a date, None when it is missing or outside the picker range."""
    try:
        dob = parse_date(registration.dob)
    except ValueError:
        return None
    return dob if min_year <= dob.year <= max_year else None


def _edit_location_keys(registration: Registration) -> Tuple[str, str]:
    prefix = f"edit_{registration.id}"
    return f"{prefix}_stake", f"{prefix}_ward"


def init_edit_location(registration: Registration) -> None:
    """Seed the edit dialog's stake and ward selections from the stored record."""
    stake_key, ward_key = _edit_location_keys(registration)
    if stake_key in st.session_state:
        return
    stake = registration.stake if registration.stake in get_stakes() else None
    st.session_state[stake_key] = stake
    st.session_state[ward_key] = registration.ward if registration.ward in get_wards(stake or "") else None


def _on_edit_stake_change(ward_key: str) -> None:
    st.session_state[ward_key] = None


def _close_edit_form(registration: Registration) -> None:
    st.session_state.pop(EDIT_TARGET_KEY, None)
    for key in _edit_location_keys(registration):
        st.session_state.pop(key, None)


def _render_edit_form(registration: Registration) -> None:
    """Edit every user-facing field; id and timestamp are carried over."""
    settings = get_stores().settings
    prefix = f"edit_{registration.id}"
    stake_key, ward_key = _edit_location_keys(registration)
    init_edit_location(registration)

    # Outside the form so the ward options follow the chosen stake
    st.selectbox(
        "ស្តេក ឬ មណ្ឌល*", get_stakes(),
        key=stake_key,
        on_change=_on_edit_stake_change, args=(ward_key,),
    )
    stake = st.session_state.get(stake_key) or ""

    with st.form(key=f"{prefix}_form"):
        full_name = st.text_input("ឈ្មោះពេញ (ភាសាខ្មែរ)*", value=registration.full_name)
        english_name = st.text_input("ឈ្មោះពេញ (ភាសាអង់គ្លេស)*", value=registration.english_name)
        dob = st.date_input(
            "ថ្ងៃខែឆ្នាំកំណើត*",
            value=_stored_dob(registration, settings.dob_min_year, settings.dob_max_year),
            min_value=date(settings.dob_min_year, 1, 1),
            max_value=date(settings.dob_max_year, 12, 31),
        )
        gender = st.selectbox(
            "ភេទ*", GENDERS,
            index=GENDERS.index(registration.gender) if registration.gender in GENDERS else None,
        )
        t_shirt_size = st.selectbox(
            "ទំហំអាវ*", T_SHIRT_SIZES,
            index=T_SHIRT_SIZES.index(registration.t_shirt_size) if registration.t_shirt_size in T_SHIRT_SIZES else None,
        )
        phone_number = st.text_input("លេខទូរស័ព្ទ*", value=registration.phone_number)
        ward = st.selectbox("វួដ ឬ សាខា*", get_wards(stake), key=ward_key, disabled=not stake)
        record_number = st.text_input("លេខកូដសមាជិក", value=registration.record_number)
        statuses = list(PAYMENT_STATUSES.keys())
        payment_status = st.radio(
            "ការបង់ប្រាក់*", statuses,
            index=statuses.index(registration.payment_status) if registration.payment_status in statuses else None,
            format_func=lambda key: PAYMENT_STATUSES[key],
        )
        other_reason = st.text_input("មូលហេតុផ្សេងៗ", value=registration.other_reason)
        media_consent = st.checkbox("យល់ព្រមឱ្យថតរូប/វីដេអូ*", value=registration.media_consent)

        col1, col2 = st.columns(2, gap="small")
        with col1:
            submitted = st.form_submit_button("💾 Save", type="primary", width="stretch")
        with col2:
            cancelled = st.form_submit_button("Cancel", width="stretch")

    if cancelled:
        _close_edit_form(registration)
        st.rerun()

    if submitted:
        edited = build_edited_registration(
            registration,
            full_name=full_name,
            english_name=english_name,
            dob=dob.isoformat() if isinstance(dob, date) else "",
            gender=gender or "",
            t_shirt_size=t_shirt_size or "",
            phone_number=phone_number,
            stake=stake,
            ward=ward or "",
            record_number=record_number,
            payment_status=payment_status or "",
            other_reason=other_reason,
            media_consent=media_consent,
        )
        success, message = update_registration(edited)
        if success:
            _close_edit_form(registration)
            _set_feedback(True, message)
            st.rerun()
        st.error(f"❌ {message}")


def build_edited_registration(registration: Registration, **changes) -> Registration:
    """Copy of the record with edited fields; a ward outside the new stake is dropped."""
    edited = replace(registration, **changes)
    if edited.ward and edited.ward not in get_wards(edited.stake):
        edited = replace(edited, ward="")
    return edited


def _render_delete_confirmation(registration: Registration) -> None:
    st.warning(f"Delete {registration.full_name} ({registration.english_name})? This cannot be undone.")
    col1, col2 = st.columns(2, gap="small")
    with col1:
        if st.button("🗑️ Delete", key="confirm_delete", type="primary", width="stretch"):
            success, message = delete_registration(registration.id)
            st.session_state.pop(DELETE_TARGET_KEY, None)
            _set_feedback(success, message)
            st.rerun()
    with col2:
        if st.button("Cancel", key="cancel_delete", width="stretch"):
            st.session_state.pop(DELETE_TARGET_KEY, None)
            st.rerun()


def _render_dialogs(registrations: List[Registration]) -> None:
    """Edit or delete dialog for the selected row, inline when dialogs are unavailable."""
    edit_target = find_registration(registrations, st.session_state.get(EDIT_TARGET_KEY))
    delete_target = find_registration(registrations, st.session_state.get(DELETE_TARGET_KEY))

    if edit_target is None:
        st.session_state.pop(EDIT_TARGET_KEY, None)
    if delete_target is None:
        st.session_state.pop(DELETE_TARGET_KEY, None)

    if edit_target is not None:
        if DIALOG_DECORATOR:
            @DIALOG_DECORATOR("កែប្រែព័ត៌មាន")
            def _edit_dialog():
                _render_edit_form(edit_target)

            _edit_dialog()
        else:
            with st.expander("✏️ កែប្រែព័ត៌មាន", expanded=True):
                _render_edit_form(edit_target)
    elif delete_target is not None:
        if DIALOG_DECORATOR:
            @DIALOG_DECORATOR("លុបការចុះឈ្មោះ")
            def _delete_dialog():
                _render_delete_confirmation(delete_target)

            _delete_dialog()
        else:
            _render_delete_confirmation(delete_target)


def _render_registrations() -> None:
    feed = get_feed()
    registrations = feed.snapshot()
    state = get_filter_state()
    admin = is_admin()

    filtered = apply_filters(registrations, state)
    page = paginate(filtered, state.page, get_stores().settings.page_size)

    _render_header(summarize(registrations), feed)

    feedback = st.session_state.pop(FEEDBACK_KEY, None)
    if feedback:
        if feedback["success"]:
            st.success(f"✅ {feedback['message']}")
        else:
            st.error(f"❌ {feedback['message']}")

    _render_filters(state)

    st.download_button(
        "📥 Export CSV",
        data=registrations_to_csv_bytes(filtered),
        file_name=export_filename(date.today().isoformat()),
        mime="text/csv",
        key="dashboard_export",
        disabled=not filtered,
    )

    if not page.items:
        st.info("No registrations match the current filters" if state.is_filtered() else "No registrations yet")
    for offset, registration in enumerate(page.items):
        _render_row(registration, display_number(page.total_items, page.start_index + offset), admin)

    _render_pagination(page)

    if admin:
        _render_dialogs(registrations)


def render_admin_dashboard() -> None:
    """Dashboard view; the users tab is shown to admins only."""
    if is_admin():
        registrations_tab, users_tab = st.tabs(["📋 Registrations", "👥 Users"])
        with registrations_tab:
            _render_registrations()
        with users_tab:
            render_user_admin()
    else:
        _render_registrations()
