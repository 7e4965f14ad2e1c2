from io import BytesIO

import pandas as pd
import pytest

COLUMNS = ["Grade", "Subject", "On Level", "Below Level"]


@pytest.fixture
def xlsx_bytes():
    """Build an in-memory .xlsx whose first sheet holds ``rows``."""
    def build(rows, columns=COLUMNS, extra_sheets=None):
        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            pd.DataFrame(rows, columns=columns).to_excel(writer, sheet_name="Levels", index=False)
            for name, sheet_rows in (extra_sheets or {}).items():
                pd.DataFrame(sheet_rows, columns=columns).to_excel(writer, sheet_name=name, index=False)
        return buffer.getvalue()
    return build


@pytest.fixture
def sample_rows():
    return [
        ["3", "Math", 8, 2],
        ["4", "Math", 5, 5],
        ["3", "Reading", 6, 4],
        ["4", "Reading", 9, 1],
        ["3", "Science", 3, 7],
        ["4", "Science", 7, 3],
        ["3", "Writing", 2, 8],
    ]
