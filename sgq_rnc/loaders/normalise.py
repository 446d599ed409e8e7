"""
Field normalisation rules shared by both spreadsheet layouts.

Pure functions: raw cell text in, canonical value out.
"""

import logging
from datetime import date

from ..config import (
    APPROVED_SECTORS,
    DEFAULT_TYPE,
    SUPPLIER_PLACEHOLDERS,
    TYPE_KEYWORDS,
    UNDEFINED_SECTOR,
    UNIDENTIFIED_SUPPLIER,
)
from .utils import strip_accents
from ..models import STATUS_CLOSED, STATUS_OPEN, TYPE_SUPPLIER

logger = logging.getLogger(__name__)

_SECTOR_KEYS = [(strip_accents(s), s) for s in APPROVED_SECTORS]


def normalise_sector(raw: str) -> str:
    """Map a free-text sector onto the approved sector list.

    Matching ignores accents and case and accepts containment in either
    direction ('Setor Extrusão' -> 'Extrusão'). The first approved sector
    that matches wins; anything else is 'Indefinido'.
    """
    if not raw or not str(raw).strip():
        return UNDEFINED_SECTOR

    clean = strip_accents(raw)
    for key, sector in _SECTOR_KEYS:
        if key in clean or clean in key:
            return sector

    logger.debug("Unmatched sector: %s", raw)
    return UNDEFINED_SECTOR


def normalise_type(raw: str) -> str:
    """Classify the RNC type from its raw label.

    'reclamação' -> customer complaint, 'devolução' -> customer return,
    'fornecedor' -> supplier; everything else is internal.
    """
    lower = str(raw or "").lower()
    for keyword, rnc_type in TYPE_KEYWORDS:
        if keyword in lower:
            return rnc_type
    return DEFAULT_TYPE


def normalise_supplier(raw: str, rnc_type: str) -> str:
    """Supplier name for supplier RNCs, '' for every other type.

    Blank values and placeholders such as 'N/A' or 'não se aplica' become
    'Não Identificado'.
    """
    if TYPE_SUPPLIER.lower() not in str(rnc_type).lower():
        return ""

    clean = str(raw or "").strip()
    if not clean or clean.lower() in SUPPLIER_PLACEHOLDERS:
        return UNIDENTIFIED_SUPPLIER
    return clean


def derive_status(close_date: date | None, raw_status: str = "") -> str:
    """Closed when a close date exists or the raw status says 'fech...'."""
    if close_date is not None:
        return STATUS_CLOSED
    if "fech" in str(raw_status or "").lower():
        return STATUS_CLOSED
    return STATUS_OPEN


def days_to_close(
    status: str,
    open_date: date | None,
    close_date: date | None,
) -> int | None:
    """Whole days between opening and closing, for closed RNCs only."""
    if status != STATUS_CLOSED or open_date is None or close_date is None:
        return None
    return (close_date - open_date).days
