"""Tests for registration page state helpers."""
from datetime import date
from unittest.mock import patch

import pytest

from ysa_registration.services.intake_gate import GateStatus
from ysa_registration.ui import registration_page as page


@pytest.fixture
def session():
    with patch.object(page, "st") as mock_st:
        mock_st.session_state = {}
        yield mock_st.session_state


class TestLiveFilters:
    """Widget callbacks rewrite the typed value in place."""

    def test_khmer_name_rejects_latin_keystroke(self, session):
        session[page.KEY_FULL_NAME_PREVIOUS] = "សុខ"
        session[page.KEY_FULL_NAME] = "សុខx"

        page._on_full_name_change()

        assert session[page.KEY_FULL_NAME] == "សុខ"

    def test_khmer_name_accepts_khmer(self, session):
        session[page.KEY_FULL_NAME] = "សុខ"
        page._on_full_name_change()

        assert session[page.KEY_FULL_NAME_PREVIOUS] == "សុខ"

    def test_phone_filter(self, session):
        session[page.KEY_PHONE] = "012-345 abc"
        page._on_phone_change()

        assert session[page.KEY_PHONE] == "012345 "

    def test_record_number_formatter(self, session):
        session[page.KEY_RECORD_NUMBER] = "0001234a"
        page._on_record_number_change()

        assert session[page.KEY_RECORD_NUMBER] == "000-1234-A"

    def test_stake_change_clears_ward(self, session):
        session[page.KEY_WARD] = "វួដទួលទំពូង"
        page._on_stake_change()

        assert session[page.KEY_WARD] == ""


class TestCollectForm:
    def test_collects_values(self, session):
        session.update({
            page.KEY_FULL_NAME: "សុខ",
            page.KEY_DOB: date(2000, 5, 17),
            page.KEY_GENDER: None,
            page.KEY_MEDIA_CONSENT: True,
        })

        form = page.collect_form()

        assert form["full_name"] == "សុខ"
        assert form["dob"] == "2000-05-17"
        assert form["gender"] == ""
        assert form["media_consent"] is True
        assert form["record_number"] == ""

    def test_missing_dob_is_empty(self, session):
        assert page.collect_form()["dob"] == ""


class TestSessionState:
    def test_reset_form_clears_inputs(self, session):
        session.update({page.KEY_FULL_NAME: "សុខ", page.SUBMITTED_KEY: True, page.GATE_STATUS_KEY: "cached"})
        page._reset_form()

        assert page.KEY_FULL_NAME not in session
        assert page.GATE_STATUS_KEY not in session
        assert session[page.SUBMITTED_KEY] is False

    def test_gate_evaluated_once_per_session(self, session, stores, remote):
        first = page.get_gate_status()
        for i in range(stores.settings.capacity):
            remote.add(stores.registrations_collection, {"fullName": f"n{i}"})

        assert page.get_gate_status() is first
        assert first == GateStatus(is_open=True, count=0, capacity=stores.settings.capacity)


class TestRemainingPlaces:
    def test_shows_places_left(self):
        text = page.remaining_places_text(GateStatus(is_open=True, count=3, capacity=5))

        assert "២ / ៥" in text

    def test_unknown_count_shows_nothing(self):
        status = GateStatus(is_open=True, count=None, capacity=5, degraded=True)

        assert page.remaining_places_text(status) is None
