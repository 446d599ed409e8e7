"""
Parser for the tabular layout: one RNC per row on the first worksheet,
column headers in row 1.

Column names vary between exports, so each field is read from the first
non-empty column among its aliases (config.TABLE_COLUMNS).
"""

import logging
from typing import Any

import pandas as pd

from ..config import NO_CAUSE, NO_NUMBER, NO_RESPONSIBLE, TABLE_COLUMNS
from ..models import RNCRecord
from .normalise import (
    days_to_close,
    derive_status,
    normalise_sector,
    normalise_supplier,
    normalise_type,
)
from .utils import cell_text, normalise_date

logger = logging.getLogger(__name__)


def sheet_to_frame(ws) -> pd.DataFrame:
    """Read a worksheet into a DataFrame using row 1 as the header.

    Blank header cells get positional names (``col_3``) and fully blank rows
    are dropped.
    """
    rows = list(ws.iter_rows(values_only=True))
    if not rows:
        return pd.DataFrame()

    header = []
    for i, name in enumerate(rows[0]):
        text = cell_text(name)
        header.append(text if text else f"col_{i}")

    df = pd.DataFrame(rows[1:], columns=header, dtype=object)
    df = df.dropna(how="all")
    return df


def _pick(row: pd.Series, field: str) -> Any:
    """First non-empty value among the aliases of `field`, or None."""
    for column in TABLE_COLUMNS[field]:
        if column not in row.index:
            continue
        value = row[column]
        if isinstance(value, pd.Series):
            # Repeated header: take the first non-empty occurrence
            value = next((v for v in value if cell_text(v)), None)
        if value is None or (isinstance(value, float) and pd.isna(value)):
            continue
        if isinstance(value, str) and not value.strip():
            continue
        if value == 0:
            continue
        return value
    return None


def _pick_text(row: pd.Series, field: str, default: str = "") -> str:
    value = _pick(row, field)
    return cell_text(value) if value is not None else default


def parse_table_layout(wb) -> list[RNCRecord]:
    """Extract one RNC record per data row of the first worksheet.

    Assumptions
    -----------
    - Row 1 holds the column headers.
    - A row needs at least a number or a description; rows with neither
      are skipped.
    - Status is closed when a close date exists or the Status column
      mentions 'fech'.

    Returns
    -------
    List of RNCRecord in sheet order (duplicates are kept; the caller
    deduplicates).
    """
    if not wb.sheetnames:
        logger.warning("Workbook has no worksheets")
        return []

    ws = wb[wb.sheetnames[0]]
    df = sheet_to_frame(ws)
    if df.empty:
        logger.warning("Sheet '%s' has no data rows", ws.title)
        return []

    records = []
    skipped = 0
    for _, row in df.iterrows():
        number = _pick_text(row, "number", NO_NUMBER)
        description = _pick_text(row, "description")

        if number == NO_NUMBER and not description:
            skipped += 1
            continue

        open_date = normalise_date(_pick(row, "open_date"))
        close_date = normalise_date(_pick(row, "close_date"))
        status = derive_status(close_date, _pick_text(row, "status"))

        rnc_type = normalise_type(_pick_text(row, "type"))

        records.append(RNCRecord(
            number=number,
            description=description,
            sector=normalise_sector(_pick_text(row, "sector")),
            type=rnc_type,
            status=status,
            open_date=open_date,
            close_date=close_date,
            responsible=_pick_text(row, "responsible", NO_RESPONSIBLE),
            cause=_pick_text(row, "cause", NO_CAUSE),
            action=_pick_text(row, "action"),
            supplier=normalise_supplier(_pick_text(row, "supplier"), rnc_type),
            deadline=normalise_date(_pick(row, "deadline")),
            product=_pick_text(row, "product"),
            batch=_pick_text(row, "batch"),
            days=days_to_close(status, open_date, close_date),
        ))

    if skipped:
        logger.info("Skipped %d rows without number or description", skipped)
    logger.info("Parsed %d table rows from sheet '%s'", len(records), ws.title)
    return records
