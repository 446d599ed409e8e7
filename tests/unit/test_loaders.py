"""Tests for spreadsheet loading: dates, field normalisation and both layouts."""

from datetime import date, datetime

import openpyxl
import pandas as pd
import pytest

from sgq_rnc.exceptions import WorkbookReadError
from sgq_rnc.loaders import (
    detect_layout,
    normalise_date,
    parse_excel_file,
    parse_files,
    parse_workbook,
)
from sgq_rnc.loaders.form_layout import find_closing_date, parse_form_layout
from sgq_rnc.loaders.normalise import (
    days_to_close,
    derive_status,
    normalise_sector,
    normalise_supplier,
    normalise_type,
)
from sgq_rnc.loaders.utils import cell_text, merged_value, value_right_of_label
from sgq_rnc.loaders.workbook import LAYOUT_FORM, LAYOUT_TABLE


class TestNormaliseDate:
    """Tests for normalise_date."""

    def test_day_first_string(self):
        """Slash dates are read day-first."""
        assert normalise_date("05/02/2024") == date(2024, 2, 5)

    def test_two_digit_year(self):
        """Two-digit years land in the 2000s."""
        assert normalise_date("05/02/24") == date(2024, 2, 5)

    def test_dash_and_dot_separators(self):
        """'-' and '.' are accepted as separators."""
        assert normalise_date("05-02-2024") == date(2024, 2, 5)
        assert normalise_date("05.02.2024") == date(2024, 2, 5)

    def test_time_suffix_ignored(self):
        """Only the first whitespace-separated token is read as DD/MM/YYYY."""
        assert normalise_date("15/03/2024 14:30") == date(2024, 3, 15)

    def test_excel_serial(self):
        """Excel serial numbers count from 1899-12-30."""
        assert normalise_date(45000) == date(2023, 3, 15)
        assert normalise_date(45000.0) == date(2023, 3, 15)

    def test_datetime_values(self):
        """datetime, date and Timestamp inputs are reduced to a date."""
        assert normalise_date(datetime(2024, 3, 1, 10, 0)) == date(2024, 3, 1)
        assert normalise_date(date(2024, 3, 1)) == date(2024, 3, 1)
        assert normalise_date(pd.Timestamp("2024-03-01")) == date(2024, 3, 1)

    @pytest.mark.parametrize("value", [None, "", "   ", 0, float("nan"), pd.NaT, True, "não é data"])
    def test_empty_or_invalid(self, value):
        """Empty, zero and unparseable values give None."""
        assert normalise_date(value) is None


class TestNormalisationRules:
    """Tests for sector, type, supplier and status rules."""

    def test_sector_accent_and_case_insensitive(self):
        assert normalise_sector("EXTRUSAO") == "Extrusão"
        assert normalise_sector("logística") == "Logística"

    def test_sector_containment(self):
        """Either side may contain the other."""
        assert normalise_sector("Setor de Impressão 2") == "Impressão"

    def test_sector_unknown(self):
        assert normalise_sector("Refeitório") == "Indefinido"
        assert normalise_sector("") == "Indefinido"

    def test_type_keywords(self):
        assert normalise_type("Reclamação de Cliente") == "Cliente - Reclamação"
        assert normalise_type("DEVOLUÇÃO") == "Cliente - Devolução"
        assert normalise_type("RNC de Fornecedor") == "Fornecedor"
        assert normalise_type("Processo") == "Interna"
        assert normalise_type(None) == "Interna"

    def test_supplier_only_for_supplier_type(self):
        assert normalise_supplier("Plastik", "Interna") == ""
        assert normalise_supplier("Plastik", "Fornecedor") == "Plastik"

    def test_supplier_placeholders(self):
        """Blank and placeholder supplier names become 'Não Identificado'."""
        for raw in ("", "N/A", "Não se aplica", "-"):
            assert normalise_supplier(raw, "Fornecedor") == "Não Identificado"

    def test_status(self):
        assert derive_status(date(2024, 1, 1)) == "Fechada"
        assert derive_status(None, "Fechado") == "Fechada"
        assert derive_status(None, "Em andamento") == "Aberta"

    def test_days_to_close(self):
        assert days_to_close("Fechada", date(2024, 1, 1), date(2024, 1, 11)) == 10
        assert days_to_close("Aberta", date(2024, 1, 1), None) is None
        assert days_to_close("Fechada", None, date(2024, 1, 11)) is None


class TestSheetHelpers:
    """Tests for cell helpers."""

    def test_cell_text_drops_float_suffix(self):
        assert cell_text(45.0) == "45"
        assert cell_text(None) == ""
        assert cell_text("  abc ") == "abc"

    def test_merged_value_reads_top_left(self):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws["A1"] = "Mesclado"
        ws.merge_cells("A1:C1")
        assert merged_value(ws, "B1") == "Mesclado"
        assert merged_value(ws, "D1") == ""

    def test_value_right_of_label_normalises_spaces(self):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws["B2"] = "  Responsável-N/C:  "
        ws["C2"] = "Maria"
        assert value_right_of_label(ws, "responsável-n/c:") == "Maria"
        assert value_right_of_label(ws, "Outro rótulo") == ""


class TestFormLayout:
    """Tests for the single-RNC form parser."""

    def test_parses_all_fields(self, form_workbook_path):
        records = parse_excel_file(form_workbook_path)

        assert len(records) == 1
        rec = records[0]
        assert rec.number == "045/2024"
        assert rec.id == "045/2024"
        assert rec.type == "Fornecedor"
        assert rec.sector == "Extrusão"
        assert rec.supplier == "Plastik Ltda"
        assert rec.responsible == "Maria Souza"
        assert rec.open_date == date(2024, 3, 1)
        assert rec.close_date == date(2024, 3, 15)
        assert rec.status == "Fechada"
        assert rec.days == 14
        assert rec.product == "Sacola 40x50"
        assert rec.batch == "L-778"
        assert rec.action == "Devolver lote ao fornecedor"

    def test_cause_falls_back_to_cause_effect_sheet(self, form_workbook_path):
        rec = parse_excel_file(form_workbook_path)[0]
        assert rec.cause == "Máquina do fornecedor desregulada"

    def test_number_fallback_cell(self):
        """Without the label, the number comes from the fallback cells."""
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Formulário"
        ws["G4"] = "077"
        ws["D15"] = "Risco na bobina"
        rec = parse_form_layout(wb)[0]
        assert rec.number == "077"
        assert rec.responsible == "Não atribuído"
        assert rec.cause == "Não especificado"
        assert rec.status == "Aberta"
        assert rec.sector == "Indefinido"

    def test_empty_form_yields_nothing(self):
        wb = openpyxl.Workbook()
        wb.active.title = "Formulário"
        assert parse_form_layout(wb) == []

    def test_closing_date_priority(self):
        """Text cell B78 wins over the signature date cells."""
        wb = openpyxl.Workbook()
        ws = wb.active
        ws["B78"] = "Data: 10/04/2024"
        ws["I78"] = datetime(2024, 5, 1)
        assert find_closing_date(ws) == date(2024, 4, 10)

        ws["B78"] = "Assinatura"
        assert find_closing_date(ws) == date(2024, 5, 1)

    def test_closing_date_secondary_cells(self):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws["I77"] = "20/06/2024"
        assert find_closing_date(ws) == date(2024, 6, 20)


class TestTableLayout:
    """Tests for the tabular parser."""

    def test_parses_rows(self, table_workbook_path):
        records = parse_excel_file(table_workbook_path)
        assert [r.number for r in records] == ["101", "102", "103"]

    def test_closed_row(self, table_workbook_path):
        rec = parse_excel_file(table_workbook_path)[0]
        assert rec.sector == "Impressão"
        assert rec.status == "Fechada"
        assert rec.days == 10
        assert rec.deadline == date(2024, 1, 31)
        assert rec.cause == "Método de trabalho"

    def test_supplier_row(self, table_workbook_path):
        rec = parse_excel_file(table_workbook_path)[1]
        assert rec.type == "Fornecedor"
        assert rec.supplier == "Não Identificado"
        assert rec.open_date == date(2024, 2, 5)
        assert rec.status == "Aberta"

    def test_status_column_closes_without_date(self, table_workbook_path):
        rec = parse_excel_file(table_workbook_path)[2]
        assert rec.type == "Cliente - Reclamação"
        assert rec.status == "Fechada"
        assert rec.close_date is None
        assert rec.days is None
        assert rec.responsible == "Não atribuído"


class TestWorkbookDispatch:
    """Tests for layout detection and multi-file parsing."""

    def test_detect_layout(self, form_workbook_path, table_workbook_path):
        assert detect_layout(openpyxl.load_workbook(form_workbook_path)) == LAYOUT_FORM
        assert detect_layout(openpyxl.load_workbook(table_workbook_path)) == LAYOUT_TABLE

    def test_detect_layout_defaults_to_form(self):
        wb = openpyxl.Workbook()
        wb.active["A1"] = "Qualquer coisa"
        assert detect_layout(wb) == LAYOUT_FORM

    def test_parse_workbook_from_bytes(self, table_workbook_path):
        records = parse_workbook(table_workbook_path.read_bytes(), name="upload.xlsx")
        assert len(records) == 3

    def test_unreadable_workbook_raises(self):
        with pytest.raises(WorkbookReadError):
            parse_workbook(b"not a workbook", name="broken.xlsx")

    def test_parse_files_collects_errors(self, form_workbook_path, table_workbook_path):
        """A bad file is reported and the good ones are still parsed."""
        records, errors = parse_files([
            form_workbook_path,
            ("broken.xlsx", b"garbage"),
            ("table.xlsx", table_workbook_path.read_bytes()),
        ])
        assert len(records) == 4
        assert list(errors) == ["broken.xlsx"]
