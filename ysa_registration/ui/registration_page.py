"""Public registration page."""
import logging
from datetime import date
from typing import Any, Dict, Optional

import streamlit as st

from ysa_registration.models.locations import (
    GENDERS,
    PAYMENT_OTHER,
    PAYMENT_STATUSES,
    T_SHIRT_SIZES,
    get_stakes,
    get_wards,
)
from ysa_registration.services.intake_gate import GateStatus, check_registration_open
from ysa_registration.services.registration_service import submit_registration
from ysa_registration.services.stores import get_stores
from ysa_registration.ui.styles import html_block
from ysa_registration.utils.date_utils import to_khmer_numerals
from ysa_registration.utils.validation import (
    filter_khmer_input,
    filter_phone_input,
    format_record_number,
)

logger = logging.getLogger(__name__)

GATE_STATUS_KEY = "intake_gate_status"
SUBMITTED_KEY = "registration_submitted"
FEEDBACK_KEY = "registration_feedback"

KEY_FULL_NAME = "reg_full_name"
KEY_FULL_NAME_PREVIOUS = "reg_full_name_previous"
KEY_ENGLISH_NAME = "reg_english_name"
KEY_DOB = "reg_dob"
KEY_GENDER = "reg_gender"
KEY_T_SHIRT = "reg_t_shirt_size"
KEY_PHONE = "reg_phone_number"
KEY_STAKE = "reg_stake"
KEY_WARD = "reg_ward"
KEY_RECORD_NUMBER = "reg_record_number"
KEY_MEDIA_CONSENT = "reg_media_consent"
KEY_PAYMENT = "reg_payment_status"
KEY_OTHER_REASON = "reg_other_reason"

FORM_KEYS = [
    KEY_FULL_NAME, KEY_FULL_NAME_PREVIOUS, KEY_ENGLISH_NAME, KEY_DOB,
    KEY_GENDER, KEY_T_SHIRT, KEY_PHONE, KEY_STAKE, KEY_WARD,
    KEY_RECORD_NUMBER, KEY_MEDIA_CONSENT, KEY_PAYMENT, KEY_OTHER_REASON,
]


def _on_full_name_change() -> None:
    """Reject the edit when it introduces non-Khmer characters."""
    previous = st.session_state.get(KEY_FULL_NAME_PREVIOUS, "")
    filtered = filter_khmer_input(previous, st.session_state.get(KEY_FULL_NAME, ""))
    st.session_state[KEY_FULL_NAME] = filtered
    st.session_state[KEY_FULL_NAME_PREVIOUS] = filtered


def _on_phone_change() -> None:
    st.session_state[KEY_PHONE] = filter_phone_input(st.session_state.get(KEY_PHONE, ""))


def _on_record_number_change() -> None:
    st.session_state[KEY_RECORD_NUMBER] = format_record_number(
        st.session_state.get(KEY_RECORD_NUMBER, "")
    )


def _on_stake_change() -> None:
    st.session_state[KEY_WARD] = ""


def _reset_form() -> None:
    for key in FORM_KEYS:
        st.session_state.pop(key, None)
    st.session_state.pop(GATE_STATUS_KEY, None)
    st.session_state[SUBMITTED_KEY] = False


def get_gate_status() -> GateStatus:
    """Capacity check, evaluated once per page load and kept for the session."""
    status = st.session_state.get(GATE_STATUS_KEY)
    if status is None:
        stores = get_stores()
        status = check_registration_open(
            stores.remote,
            stores.cache,
            stores.registrations_collection,
            stores.settings.capacity,
        )
        st.session_state[GATE_STATUS_KEY] = status
    return status


def collect_form() -> Dict[str, Any]:
    """Current widget values keyed by Registration attribute names."""
    dob = st.session_state.get(KEY_DOB)
    return {
        "full_name": st.session_state.get(KEY_FULL_NAME, ""),
        "english_name": st.session_state.get(KEY_ENGLISH_NAME, ""),
        "dob": dob.isoformat() if isinstance(dob, date) else "",
        "gender": st.session_state.get(KEY_GENDER) or "",
        "t_shirt_size": st.session_state.get(KEY_T_SHIRT) or "",
        "phone_number": st.session_state.get(KEY_PHONE, ""),
        "stake": st.session_state.get(KEY_STAKE) or "",
        "ward": st.session_state.get(KEY_WARD) or "",
        "record_number": st.session_state.get(KEY_RECORD_NUMBER, ""),
        "media_consent": bool(st.session_state.get(KEY_MEDIA_CONSENT, False)),
        "payment_status": st.session_state.get(KEY_PAYMENT) or "",
        "other_reason": st.session_state.get(KEY_OTHER_REASON, ""),
    }


def remaining_places_text(status: GateStatus) -> Optional[str]:
    """Places-left note, None when the count is unknown."""
    if status.remaining is None:
        return None
    return f"🎟️ នៅសល់ {to_khmer_numerals(status.remaining)} / {to_khmer_numerals(status.capacity)} កន្លែង"


def _render_hero() -> None:
    st.markdown(
        html_block(
            """
            <div class="hero">
                <span class="hero-badge">🎁 Christmas Party 2025</span>
                <div class="hero-title">ដំណើរកម្សាន្តយុវមជ្ឈិមវ័យនៅលីវទូទាំងប្រទេស</div>
                <div class="hero-highlight">ទៅកាន់ វីគិរីរម្យ</div>
                <div>ប្រចាំឆ្នាំ ២០២៥</div>
            </div>
            """
        ),
        unsafe_allow_html=True,
    )


def _render_closed(status: GateStatus) -> None:
    st.markdown(
        html_block(
            f"""
            <div class="closed-card">
                <div class="success-title">ការចុះឈ្មោះបានបិទ</div>
                <p>Registration is closed: all {to_khmer_numerals(status.capacity)} places have been taken.</p>
            </div>
            """
        ),
        unsafe_allow_html=True,
    )


def _render_success() -> None:
    st.markdown(
        html_block(
            """
            <div class="success-card">
                <div class="success-title">សូមអបអរសាទរ!</div>
                <p>ការចុះឈ្មោះរបស់អ្នកទទួលបានជោគជ័យ។ ព័ត៌មាននេះនឹងត្រូវបានពិនិត្យដោយក្រុមការងារ YSA Cambodia 2025។</p>
                <p><b>សូមកុំភ្លេចទាក់ទងអ្នកតំណាងដើម្បីបង់ប្រាក់ ២០,០០០ រៀល។</b></p>
            </div>
            """
        ),
        unsafe_allow_html=True,
    )
    st.button("ចុះឈ្មោះម្នាក់ទៀត", type="primary", width="stretch", on_click=_reset_form)


def _render_form() -> None:
    settings = get_stores().settings

    st.markdown("### 👤 ព័ត៌មានផ្ទាល់ខ្លួន")
    col1, col2 = st.columns(2, gap="small")
    with col1:
        st.text_input(
            "ឈ្មោះពេញ (ភាសាខ្មែរ)*",
            key=KEY_FULL_NAME,
            on_change=_on_full_name_change,
            help="អនុញ្ញាតតែអក្សរខ្មែរប៉ុណ្ណោះ",
        )
    with col2:
        st.text_input("ឈ្មោះពេញ (ភាសាអង់គ្លេស)*", key=KEY_ENGLISH_NAME)

    col1, col2 = st.columns(2, gap="small")
    with col1:
        st.date_input(
            "ថ្ងៃខែឆ្នាំកំណើត*",
            value=None,
            min_value=date(settings.dob_min_year, 1, 1),
            max_value=date(settings.dob_max_year, 12, 31),
            key=KEY_DOB,
        )
    with col2:
        st.selectbox("ភេទ*", GENDERS, index=None, placeholder="ជ្រើសរើសភេទ", key=KEY_GENDER)

    col1, col2 = st.columns(2, gap="small")
    with col1:
        st.selectbox(
            "ទំហំអាវ (T-Shirt Size)*",
            T_SHIRT_SIZES,
            index=None,
            placeholder="ជ្រើសរើសទំហំ",
            key=KEY_T_SHIRT,
        )
    with col2:
        st.text_input(
            "លេខទូរស័ព្ទ*",
            key=KEY_PHONE,
            on_change=_on_phone_change,
            placeholder="012 345 678",
        )

    st.markdown("### 📍 ព័ត៌មានសាសនាចក្រ")
    col1, col2 = st.columns(2, gap="small")
    with col1:
        st.selectbox(
            "ស្តេក ឬ មណ្ឌល*",
            [""] + get_stakes(),
            format_func=lambda s: s or "ជ្រើសរើសស្តេក/មណ្ឌល",
            key=KEY_STAKE,
            on_change=_on_stake_change,
        )
    with col2:
        stake = st.session_state.get(KEY_STAKE) or ""
        st.selectbox(
            "វួដ ឬ សាខា*",
            [""] + get_wards(stake),
            format_func=lambda w: w or "ជ្រើសរើសវួដ/សាខា",
            key=KEY_WARD,
            disabled=not stake,
        )

    st.text_input(
        "លេខកូដសមាជិក (Membership Record Number)",
        key=KEY_RECORD_NUMBER,
        on_change=_on_record_number_change,
        placeholder="XXX-XXXX-XXXX",
    )

    st.markdown("### 💳 ការបង់ប្រាក់ ២០,០០០ រៀល")
    st.radio(
        "ការបង់ប្រាក់*",
        list(PAYMENT_STATUSES.keys()),
        index=None,
        format_func=lambda key: PAYMENT_STATUSES[key],
        key=KEY_PAYMENT,
        label_visibility="collapsed",
    )
    if st.session_state.get(KEY_PAYMENT) == PAYMENT_OTHER:
        st.text_input("សូមបញ្ជាក់មូលហេតុ*", key=KEY_OTHER_REASON)

    st.checkbox("📸 ខ្ញុំយល់ព្រមឱ្យថតរូប/វីដេអូ*", key=KEY_MEDIA_CONSENT)

    feedback = st.session_state.pop(FEEDBACK_KEY, None)
    if feedback:
        st.error(f"❌ {feedback}")

    if st.button("ចុះឈ្មោះ", type="primary", width="stretch", key="reg_submit"):
        with st.spinner("កំពុងរក្សាទុក..."):
            result = submit_registration(collect_form())

        if result.success:
            st.session_state[SUBMITTED_KEY] = True
        else:
            logger.info(f"Submission rejected at {result.stage} stage")
            st.session_state[FEEDBACK_KEY] = result.message
            if result.stage == "closed":
                st.session_state.pop(GATE_STATUS_KEY, None)
        st.rerun()


def render_registration_page() -> None:
    """Render the closed state, the success screen, or the form."""
    _render_hero()

    if st.session_state.get(SUBMITTED_KEY):
        _render_success()
        return

    status = get_gate_status()
    if not status.is_open:
        _render_closed(status)
        return

    remaining = remaining_places_text(status)
    if remaining:
        st.caption(remaining)
    _render_form()
