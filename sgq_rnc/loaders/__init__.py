"""Spreadsheet loaders for RNC workbooks (form and table layouts)."""

from .form_layout import parse_form_layout
from .table_layout import parse_table_layout
from .utils import normalise_date
from .workbook import detect_layout, parse_excel_file, parse_files, parse_workbook

__all__ = [
    "parse_form_layout",
    "parse_table_layout",
    "normalise_date",
    "detect_layout",
    "parse_excel_file",
    "parse_files",
    "parse_workbook",
]
