"""
Shared utilities for spreadsheet ingestion: date normalisation, text
cleaning, merged-cell aware reads and label search.
"""

import logging
import re
import unicodedata
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

EXCEL_EPOCH = date(1899, 12, 30)


def normalise_date(val: Any) -> date | None:
    """Convert an Excel serial number, datetime or date string to a date.

    Strings are read day-first: separators '-' and '.' are treated as '/',
    and a three-part value is taken as DD/MM/YYYY when day and month are in
    range (two-digit years are read as 20YY). Anything else goes through a
    generic parse. Returns None for empty or unparseable values.
    """
    if val is None or val is pd.NaT or isinstance(val, bool):
        return None
    if isinstance(val, pd.Timestamp):
        return None if pd.isna(val) else val.date()
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if isinstance(val, (int, float)):
        if pd.isna(val) or val == 0:
            return None
        try:
            return EXCEL_EPOCH + timedelta(days=int(val))
        except (ValueError, OverflowError):
            logger.warning("Could not convert serial number %s to date", val)
            return None
    if not isinstance(val, str):
        logger.warning("Unsupported date value type: %r", val)
        return None

    raw = val.strip()
    if not raw or raw.lower() in ("nat", "nan", "none"):
        return None

    cleaned = re.sub(r"[-.]", "/", raw.split()[0])
    parts = cleaned.split("/")
    if len(parts) == 3 and all(p.isdigit() for p in parts):
        d, m, y = (int(p) for p in parts)
        if 0 < d <= 31 and 0 < m <= 12:
            if y < 100:
                y += 2000
            try:
                return date(y, m, d)
            except ValueError:
                pass

    ts = pd.to_datetime(raw, errors="coerce", dayfirst=True)
    if pd.isna(ts):
        logger.warning("Could not parse date value: %s", val)
        return None
    return ts.date()


def cell_text(val: Any) -> str:
    """Render a cell value as trimmed text.

    Whole floats lose their trailing '.0' (RNC numbers are often stored as
    numbers). None and NaN become ''.
    """
    if val is None:
        return ""
    if isinstance(val, float):
        if pd.isna(val):
            return ""
        if val.is_integer():
            return str(int(val))
    if isinstance(val, (datetime, date)):
        return val.isoformat()
    return str(val).strip()


def strip_accents(text: str) -> str:
    """Lower-case, trim and drop diacritics ('Extrusão' -> 'extrusao')."""
    s = unicodedata.normalize("NFD", str(text))
    s = "".join(c for c in s if not unicodedata.combining(c))
    return s.lower().strip()


def collapse_spaces(text: str) -> str:
    """Trim, collapse internal whitespace and lower-case."""
    return re.sub(r"\s+", " ", str(text).strip()).lower()


# ---------------------------------------------------------------------------
# openpyxl worksheet helpers
# ---------------------------------------------------------------------------

def read_cell(sheet, coordinate: str, default: Any = "") -> Any:
    """Raw value of a cell, or `default` when the cell is empty."""
    try:
        value = sheet[coordinate].value
    except (ValueError, IndexError):
        logger.warning("Invalid cell coordinate %s", coordinate)
        return default
    return default if value is None else value


def merged_value(sheet, coordinate: str) -> str:
    """Text of a cell, resolving merged ranges to their top-left value."""
    value = read_cell(sheet, coordinate, None)
    if value not in (None, ""):
        return cell_text(value)

    for cell_range in sheet.merged_cells.ranges:
        if coordinate in cell_range:
            top_left = sheet.cell(row=cell_range.min_row, column=cell_range.min_col).value
            return cell_text(top_left)
    return ""


def value_right_of_label(
    sheet,
    label: str,
    max_rows: int = 50,
    max_cols: int = 30,
) -> str:
    """Find a label cell and return the text of its right-hand neighbour.

    The label comparison is exact after trimming, collapsing whitespace and
    lower-casing. Only the top `max_rows` rows and first `max_cols` columns
    are scanned. Returns '' when the label is not found.
    """
    target = collapse_spaces(label)
    last_row = min(sheet.max_row, max_rows)
    last_col = min(sheet.max_column, max_cols)

    for row in sheet.iter_rows(min_row=1, max_row=last_row, max_col=last_col):
        for cell in row:
            if cell.value in (None, ""):
                continue
            if collapse_spaces(cell.value) == target:
                neighbour = sheet.cell(row=cell.row, column=cell.column + 1)
                return merged_value(sheet, neighbour.coordinate)
    return ""
