"""
Record-list transforms: batch cleaning, last-write-wins merge, manual
entry, and the global dashboard filters.
"""

import logging
from datetime import date

from .config import MONTH_NAMES, NO_CAUSE, NO_DESCRIPTION, NO_NUMBER, NO_RESPONSIBLE
from .loaders.normalise import (
    days_to_close,
    derive_status,
    normalise_sector,
    normalise_supplier,
    normalise_type,
)
from .models import RNCRecord

logger = logging.getLogger(__name__)


def clean_batch(records: list[RNCRecord]) -> list[RNCRecord]:
    """Drop records without a business number and deduplicate by number.

    Within the batch the later record wins, but it keeps the position of
    the first occurrence.
    """
    by_number: dict[str, RNCRecord] = {}
    dropped = 0
    for rec in records:
        if rec is None or not rec.number or rec.number == NO_NUMBER:
            dropped += 1
            continue
        by_number[rec.number] = rec

    if dropped:
        logger.info("Dropped %d records without a valid number", dropped)
    duplicates = len(records) - dropped - len(by_number)
    if duplicates:
        logger.info("Collapsed %d duplicate numbers within batch", duplicates)
    return list(by_number.values())


def merge_records(
    existing: list[RNCRecord],
    incoming: list[RNCRecord],
) -> list[RNCRecord]:
    """Union of two record lists keyed by number; incoming replaces existing.

    Order: existing records keep their position (replaced in place), new
    numbers are appended in incoming order.
    """
    merged: dict[str, RNCRecord] = {r.number: r for r in existing}
    for rec in incoming:
        merged[rec.number] = rec
    return list(merged.values())


def build_manual_record(
    number: str,
    description: str = "",
    sector: str = "",
    rnc_type: str = "",
    open_date: date | None = None,
    close_date: date | None = None,
    deadline: date | None = None,
    responsible: str = "",
    cause: str = "",
    action: str = "",
    supplier: str = "",
    product: str = "",
    batch: str = "",
) -> RNCRecord:
    """Build a normalised record from manually entered fields.

    Applies the same sector/type/supplier/status rules as the spreadsheet
    parsers so manual and imported records are indistinguishable.
    """
    number = str(number or "").strip() or NO_NUMBER
    normalised_type = normalise_type(rnc_type)
    status = derive_status(close_date)

    return RNCRecord(
        number=number,
        description=description.strip() or NO_DESCRIPTION,
        sector=normalise_sector(sector),
        type=normalised_type,
        status=status,
        open_date=open_date,
        close_date=close_date,
        responsible=responsible.strip() or NO_RESPONSIBLE,
        cause=cause.strip() or NO_CAUSE,
        action=action.strip(),
        supplier=normalise_supplier(supplier, normalised_type),
        deadline=deadline,
        product=product.strip(),
        batch=batch.strip(),
        days=days_to_close(status, open_date, close_date),
    )


# ---------------------------------------------------------------------------
# Global filters
# ---------------------------------------------------------------------------

def month_name(d: date | None) -> str | None:
    """Portuguese month name of a date ('Março'), or None."""
    if d is None:
        return None
    return MONTH_NAMES[d.month - 1]


def filter_options(records: list[RNCRecord]) -> dict[str, list[str]]:
    """Distinct values for the filter dropdowns.

    Returns
    -------
    {"months": [...calendar order...], "sectors": [...sorted...],
     "types": [...sorted...], "responsibles": [...sorted...]}
    """
    months = {month_name(r.open_date) for r in records if r.open_date is not None}
    return {
        "months": [m for m in MONTH_NAMES if m in months],
        "sectors": sorted({r.sector for r in records if r.sector}),
        "types": sorted({r.type for r in records if r.type}),
        "responsibles": sorted({r.responsible for r in records if r.responsible}),
    }


def apply_filters(
    records: list[RNCRecord],
    month: str | None = None,
    sector: str | None = None,
    rnc_type: str | None = None,
    responsible: str | None = None,
) -> list[RNCRecord]:
    """Keep records matching every non-empty filter.

    The month filter compares the opening month name regardless of year;
    records without an opening date never match a month filter.
    """
    result = []
    for r in records:
        if month and month_name(r.open_date) != month:
            continue
        if sector and r.sector != sector:
            continue
        if rnc_type and r.type != rnc_type:
            continue
        if responsible and r.responsible != responsible:
            continue
        result.append(r)
    return result
