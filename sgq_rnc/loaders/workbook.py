"""
Workbook entry points: open an RNC spreadsheet, detect its layout and
dispatch to the form or table parser.
"""

import io
import logging
from pathlib import Path
from typing import BinaryIO

import openpyxl

from ..config import (
    FORM_DETECTION_KEYWORDS,
    TABLE_HEADER_KEYWORDS,
    TABLE_HEADER_MIN_MATCHES,
)
from ..exceptions import WorkbookReadError
from ..models import RNCRecord
from .form_layout import parse_form_layout
from .table_layout import parse_table_layout
from .utils import cell_text

logger = logging.getLogger(__name__)

LAYOUT_FORM = "form"
LAYOUT_TABLE = "table"


def open_workbook(source: str | Path | bytes | BinaryIO, name: str | None = None):
    """Open an .xlsx/.xlsm workbook from a path, raw bytes or a file object.

    Raises WorkbookReadError when openpyxl cannot read the content.
    """
    label = name or (str(source) if isinstance(source, (str, Path)) else "<upload>")
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        return openpyxl.load_workbook(source, data_only=True)
    except Exception as exc:
        logger.exception("Failed to open workbook: %s", label)
        raise WorkbookReadError(f"Could not read workbook {label}: {exc}") from exc


def detect_layout(wb) -> str:
    """Decide between the form and table layouts.

    1. A sheet named like 'Formulário' / 'Folha de RNC' -> form.
    2. First row of the first sheet mentions at least two table headers
       (número, descrição, setor, status, data) -> table.
    3. Otherwise -> form.
    """
    for sheet_name in wb.sheetnames:
        lower = sheet_name.lower()
        if any(k in lower for k in FORM_DETECTION_KEYWORDS):
            return LAYOUT_FORM

    if wb.sheetnames:
        first = wb[wb.sheetnames[0]]
        header_row = next(first.iter_rows(min_row=1, max_row=1, values_only=True), ())
        header = " ".join(cell_text(v) for v in header_row).lower()
        matches = sum(1 for k in TABLE_HEADER_KEYWORDS if k in header)
        if matches >= TABLE_HEADER_MIN_MATCHES:
            return LAYOUT_TABLE

    return LAYOUT_FORM


def parse_workbook(
    source: str | Path | bytes | BinaryIO,
    name: str | None = None,
) -> list[RNCRecord]:
    """Parse an RNC workbook into records, whatever its layout."""
    wb = open_workbook(source, name)
    try:
        layout = detect_layout(wb)
        if layout == LAYOUT_TABLE:
            records = parse_table_layout(wb)
        else:
            records = parse_form_layout(wb)
    finally:
        wb.close()

    label = name or (str(source) if isinstance(source, (str, Path)) else "<upload>")
    logger.info("Loaded %d RNC records from %s [%s layout]", len(records), label, layout)
    return records


def parse_excel_file(path: str | Path) -> list[RNCRecord]:
    """Parse a workbook on disk."""
    return parse_workbook(Path(path), name=Path(path).name)


def parse_files(sources: list) -> tuple[list[RNCRecord], dict[str, str]]:
    """Parse several workbooks, collecting per-file failures.

    Parameters
    ----------
    sources : paths, or (name, bytes) pairs as handed over by an uploader.

    Returns
    -------
    (records, errors) where errors maps file name -> message.
    """
    records: list[RNCRecord] = []
    errors: dict[str, str] = {}

    for source in sources:
        if isinstance(source, tuple):
            name, content = source
        else:
            name, content = Path(source).name, Path(source)
        try:
            records.extend(parse_workbook(content, name=name))
        except WorkbookReadError as exc:
            errors[name] = str(exc)
        except Exception as exc:
            logger.exception("Failed to parse workbook %s", name)
            errors[name] = f"Could not parse workbook {name}: {exc}"

    return records, errors
