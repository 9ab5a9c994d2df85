"""Plain-data and CSV export of the filtered registration list."""
import io
from typing import Any, Dict, List, Sequence

import pandas as pd

from ysa_registration.models.registration import FIELD_KEYS, Registration

NUMBER_COLUMN = "No"
ID_COLUMN = "id"
EXPORT_COLUMNS = [NUMBER_COLUMN, ID_COLUMN] + list(FIELD_KEYS.values())

# Excel only detects UTF-8 with a byte order mark
CSV_ENCODING = "utf-8-sig"


def export_rows(registrations: Sequence[Registration]) -> List[Dict[str, Any]]:
    """
    Currently filtered, ordered list as plain dicts.

    The "No" column counts backwards like the dashboard; it is display
    only and not part of the record.
    """
    total = len(registrations)
    rows = []
    for index, registration in enumerate(registrations):
        row = {NUMBER_COLUMN: total - index, ID_COLUMN: registration.id}
        row.update(registration.to_dict())
        rows.append(row)
    return rows


def registrations_to_csv_bytes(registrations: Sequence[Registration]) -> bytes:
    df = pd.DataFrame(export_rows(registrations), columns=EXPORT_COLUMNS)
    return df.to_csv(index=False).encode(CSV_ENCODING)


def registrations_from_csv_bytes(data: bytes) -> List[Registration]:
    """
    Read an exported CSV back into registrations.

    Every column is read as text so phone numbers keep their leading zero;
    empty cells become empty strings.
    """
    df = pd.read_csv(
        io.BytesIO(data),
        encoding=CSV_ENCODING,
        dtype=str,
        keep_default_na=False,
    )

    registrations = []
    for row in df.to_dict(orient="records"):
        row.pop(NUMBER_COLUMN, None)
        record_id = row.pop(ID_COLUMN, "") or None
        if not row.get("timestamp"):
            row["timestamp"] = None
        registrations.append(Registration.from_dict(row, record_id))
    return registrations


def export_filename(today: str) -> str:
    return f"ysa_registrations_{today}.csv"
