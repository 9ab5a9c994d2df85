"""Unit tests for CSV export."""
import pytest

from ysa_registration.models.registration import Registration
from ysa_registration.services.export_service import (
    EXPORT_COLUMNS,
    export_filename,
    export_rows,
    registrations_from_csv_bytes,
    registrations_to_csv_bytes,
)


@pytest.fixture
def registrations():
    return [
        Registration(
            full_name="សុខ សុភា", english_name="Sok Sophea", dob="2000-05-17", gender="ស្រី",
            t_shirt_size="M", phone_number="012345678", stake="ស្តេកខាងត្បូង", ward="វួដទួលទំពូង",
            record_number="000-1234-567A", media_consent=True, payment_status="other",
            other_reason="Will pay, later", is_paid=True,
            timestamp="2025-11-02T08:00:00+00:00", id="doc2",
        ),
        Registration(
            full_name="ចាន់ ដារា", english_name="Chan Dara", dob="1999-01-01", gender="ប្រុស",
            t_shirt_size="L", phone_number="098765432", stake="ស្តេកខាងជើង", ward="វួដទឹកថ្លា",
            media_consent=True, payment_status="agree",
            timestamp="2025-11-01T08:00:00+00:00", id="local_1700000000000",
        ),
    ]


class TestExportRows:
    def test_numbers_count_backwards(self, registrations):
        rows = export_rows(registrations)

        assert [row["No"] for row in rows] == [2, 1]
        assert rows[0]["id"] == "doc2"
        assert rows[0]["fullName"] == "សុខ សុភា"


class TestCsv:
    """Test the CSV download contents."""

    def test_starts_with_bom(self, registrations):
        data = registrations_to_csv_bytes(registrations)
        assert data.startswith(b"\xef\xbb\xbf")

    def test_header_row(self, registrations):
        header = registrations_to_csv_bytes(registrations).decode("utf-8-sig").splitlines()[0]
        assert header.split(",") == EXPORT_COLUMNS

    def test_round_trip_preserves_records(self, registrations):
        """Exported data parses back into equal records, ids included."""
        restored = registrations_from_csv_bytes(registrations_to_csv_bytes(registrations))

        assert restored == registrations
        assert [r.id for r in restored] == ["doc2", "local_1700000000000"]
        assert restored[0].phone_number == "012345678"
        assert restored[0].is_paid is True

    def test_only_given_records_are_exported(self, registrations):
        restored = registrations_from_csv_bytes(registrations_to_csv_bytes(registrations[1:]))
        assert [r.id for r in restored] == ["local_1700000000000"]

    def test_empty_export_has_header_only(self):
        data = registrations_to_csv_bytes([])
        assert data.decode("utf-8-sig").strip().split(",") == EXPORT_COLUMNS

    def test_filename(self):
        assert export_filename("2025-11-20") == "ysa_registrations_2025-11-20.csv"
