"""
Parser for the single-RNC form layout (one workbook = one record).

The QUALIPAPEL form places fields at fixed cells, with a label search for
the RNC number and responsible person because those two drift between
template revisions. A separate 'CAUSA&EFEITO' sheet may hold the root cause.
"""

import logging
import re
from datetime import date

from ..config import (
    CAUSE_EFFECT_SHEET,
    CLOSE_DATE_CELLS,
    CLOSE_DATE_TEXT_CELLS,
    FORM_CELLS,
    FORM_LABEL_SEARCH_COLS,
    FORM_LABEL_SEARCH_ROWS,
    FORM_LABELS,
    FORM_SHEET_KEYWORDS,
    NO_CAUSE,
    NO_DESCRIPTION,
    NO_NUMBER,
    NO_RESPONSIBLE,
)
from ..models import RNCRecord
from .normalise import (
    days_to_close,
    derive_status,
    normalise_sector,
    normalise_supplier,
    normalise_type,
)
from .utils import cell_text, merged_value, normalise_date, read_cell, value_right_of_label

logger = logging.getLogger(__name__)


def find_form_sheet(wb):
    """Pick the form worksheet: first name matching a form keyword, else the last sheet."""
    for name in wb.sheetnames:
        lower = name.lower()
        if any(k in lower for k in FORM_SHEET_KEYWORDS):
            return wb[name]

    if not wb.sheetnames:
        return None
    logger.info("No form-like sheet name found, using last sheet '%s'", wb.sheetnames[-1])
    return wb[wb.sheetnames[-1]]


def find_closing_date(ws) -> date | None:
    """Locate the closing date on the form.

    Priority
    --------
    1. B78 / B77 holding text such as 'Data: 12/03/2024'.
    2. I78 (closing signature block).
    3. H65, I77, I79.
    """
    for coord in CLOSE_DATE_TEXT_CELLS:
        raw = read_cell(ws, coord, None)
        if isinstance(raw, str) and "data" in raw.lower():
            extracted = re.sub(r"data:?", "", raw, count=1, flags=re.IGNORECASE).strip()
            parsed = normalise_date(extracted) if extracted else None
            if parsed is not None:
                return parsed

    for coord in CLOSE_DATE_CELLS:
        parsed = normalise_date(read_cell(ws, coord, None))
        if parsed is not None:
            return parsed

    return None


def _first_non_empty(ws, label: str, fallbacks: list[str]) -> str:
    value = value_right_of_label(
        ws, label, max_rows=FORM_LABEL_SEARCH_ROWS, max_cols=FORM_LABEL_SEARCH_COLS
    )
    for coord in fallbacks:
        if value:
            break
        value = merged_value(ws, coord)
    return value.strip()


def parse_form_layout(wb) -> list[RNCRecord]:
    """Extract one RNC record from a form-layout workbook.

    Parameters
    ----------
    wb : openpyxl Workbook (loaded with data_only=True).

    Returns
    -------
    A one-element list, or an empty list when the form carries no number,
    no description and no opening date.
    """
    ws = find_form_sheet(wb)
    if ws is None:
        logger.warning("Workbook has no worksheets")
        return []

    number = _first_non_empty(ws, FORM_LABELS["number"], FORM_CELLS["number_fallbacks"]) or NO_NUMBER
    responsible = (
        _first_non_empty(ws, FORM_LABELS["responsible"], FORM_CELLS["responsible_fallbacks"])
        or NO_RESPONSIBLE
    )
    logger.debug("Form parser -> RNC: %s, responsible: %r", number, responsible)

    raw_type = cell_text(read_cell(ws, FORM_CELLS["type"], "Não informado"))
    raw_sector = cell_text(read_cell(ws, FORM_CELLS["sector"]))
    raw_supplier = cell_text(read_cell(ws, FORM_CELLS["supplier"]))

    open_date = normalise_date(read_cell(ws, FORM_CELLS["open_date"], None))
    close_date = find_closing_date(ws)
    status = derive_status(close_date)

    description = cell_text(read_cell(ws, FORM_CELLS["description"])) or NO_DESCRIPTION
    action = cell_text(read_cell(ws, FORM_CELLS["action"]))

    rnc_type = normalise_type(raw_type)

    cause = cell_text(read_cell(ws, FORM_CELLS["cause"]))
    if not cause and CAUSE_EFFECT_SHEET in wb.sheetnames:
        cause = cell_text(read_cell(wb[CAUSE_EFFECT_SHEET], FORM_CELLS["cause_effect_cause"]))

    if number == NO_NUMBER and description == NO_DESCRIPTION and open_date is None:
        logger.info("Empty form in sheet '%s', no record extracted", ws.title)
        return []

    record = RNCRecord(
        number=number,
        description=description,
        sector=normalise_sector(raw_sector),
        type=rnc_type,
        status=status,
        open_date=open_date,
        close_date=close_date,
        responsible=responsible,
        cause=cause or NO_CAUSE,
        action=action,
        supplier=normalise_supplier(raw_supplier, rnc_type),
        deadline=None,
        product=cell_text(read_cell(ws, FORM_CELLS["product"])),
        batch=cell_text(read_cell(ws, FORM_CELLS["batch"])),
        days=days_to_close(status, open_date, close_date),
    )
    return [record]
