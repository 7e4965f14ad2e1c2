"""
Student Level Data Loader - Spreadsheet Edition

Reads an uploaded workbook (first sheet only) and turns it into typed
records ready for the grade x subject analysis.

Expected sheet structure:
- Row 0: Column headers (Grade, Subject, On Level, Below Level)
- Rows 1+: One row per grade-subject combination with student counts
"""

import logging
import math
from io import BytesIO
from pathlib import Path
from typing import Any, List
from dataclasses import dataclass

import numpy as np
import pandas as pd

from config import (
    BELOW_LEVEL_COLUMN,
    GRADE_COLUMN,
    ON_LEVEL_COLUMN,
    REQUIRED_COLUMNS,
    SUBJECT_COLUMN,
)

logger = logging.getLogger(__name__)


class DashboardError(Exception):
    """Base class for failures that leave the dashboard in its prior state."""


class IngestionError(DashboardError):
    """The upload could not be read or lacks the required columns."""


@dataclass(frozen=True)
class Record:
    """One spreadsheet row."""
    grade: str
    subject: str
    on_level: int = 0
    below_level: int = 0


# ==================== CELL COERCION ====================

def normalize_label(value: Any) -> str:
    """
    Normalize a Grade/Subject cell to a label string.

    Handles variations like:
    - 3.0 -> "3"   (Excel stores whole numbers as floats)
    - " Math " -> "Math"
    - None / NaN -> ""
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value).strip()


def coerce_count(value: Any) -> int:
    """
    Coerce an On Level / Below Level cell to a student count.

    Missing, blank, non-numeric, non-finite and negative values count as 0.
    Fractional counts are truncated.
    """
    if value is None or isinstance(value, bool):
        return 0

    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (ValueError, TypeError):
        return 0

    if not math.isfinite(number) or number < 0:
        return 0
    return int(number)


# ==================== WORKBOOK READING ====================

def read_first_sheet(data: bytes, filename: str) -> pd.DataFrame:
    """
    Read the first worksheet of an uploaded file into a DataFrame.

    The reader is picked from the file extension; unknown extensions are
    left to pandas to sniff as Excel. Every cell is read as an object so
    labels like "03" survive untouched.
    """
    if not data:
        raise IngestionError(f"'{filename}' is empty.")

    suffix = Path(filename).suffix.lower().lstrip(".")
    buffer = BytesIO(data)

    try:
        if suffix == "csv":
            df = pd.read_csv(buffer, dtype=object, encoding="utf-8")
        elif suffix in ("xlsx", "xlsm"):
            df = pd.read_excel(buffer, sheet_name=0, dtype=object, engine="openpyxl")
        elif suffix == "xls":
            df = pd.read_excel(buffer, sheet_name=0, dtype=object, engine="xlrd")
        else:
            df = pd.read_excel(buffer, sheet_name=0, dtype=object)
    except Exception as exc:
        raise IngestionError(f"Could not read '{filename}': {exc}") from exc

    # Clean column names
    df.columns = [str(col).strip() for col in df.columns]

    duplicated = df.columns[df.columns.duplicated()].unique().tolist()
    if duplicated:
        raise IngestionError(f"Duplicate columns: {', '.join(duplicated)}")

    logger.info("Read %s: %d rows, columns %s", filename, len(df), list(df.columns))
    return df


def check_required_columns(df: pd.DataFrame) -> None:
    """
    Reject sheets without Grade and Subject.

    A column counts as present only if the header exists and, when the
    sheet has data, the first row carries a value for it.
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]

    if not missing and len(df) > 0:
        first_row = df.iloc[0]
        missing = [col for col in REQUIRED_COLUMNS if not normalize_label(first_row[col])]

    if missing:
        raise IngestionError(f"Missing required columns: {', '.join(missing)}")


def frame_to_records(df: pd.DataFrame) -> List[Record]:
    """Convert a checked sheet into records, skipping rows without a grade or subject."""
    records = []
    skipped = 0

    for _, row in df.iterrows():
        grade = normalize_label(row[GRADE_COLUMN])
        subject = normalize_label(row[SUBJECT_COLUMN])

        if not grade or not subject:
            skipped += 1
            continue

        records.append(Record(
            grade=grade,
            subject=subject,
            on_level=coerce_count(row.get(ON_LEVEL_COLUMN, 0)),
            below_level=coerce_count(row.get(BELOW_LEVEL_COLUMN, 0))
        ))

    if skipped:
        logger.warning("Skipped %d rows without a %s or %s", skipped, GRADE_COLUMN, SUBJECT_COLUMN)

    return records


def load_records(data: bytes, filename: str) -> List[Record]:
    """
    Load an uploaded workbook into records.

    This is the main entry point for data loading.

    Args:
        data: Raw bytes of the uploaded file
        filename: Original file name, used to pick the reader

    Returns:
        One Record per usable row, in sheet order

    Raises:
        IngestionError: The file is unreadable or lacks Grade/Subject
    """
    df = read_first_sheet(data, filename)
    check_required_columns(df)
    records = frame_to_records(df)
    logger.info("Loaded %d records from %s", len(records), filename)
    return records
