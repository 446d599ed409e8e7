"""Pytest configuration and fixtures."""
from datetime import date, datetime
from unittest.mock import MagicMock

import openpyxl
import pytest

from sgq_rnc.models import (
    STATUS_CLOSED,
    STATUS_OPEN,
    TYPE_CUSTOMER_COMPLAINT,
    TYPE_INTERNAL,
    TYPE_SUPPLIER,
    RNCRecord,
)


@pytest.fixture(autouse=True)
def no_firestore_env(monkeypatch):
    """Keep tests independent of any Firestore settings in the shell."""
    monkeypatch.delenv("SGQ_FIREBASE_PROJECT_ID", raising=False)
    monkeypatch.delenv("SGQ_FIREBASE_CREDENTIALS", raising=False)


@pytest.fixture
def sample_records():
    """Five records covering every type of closure the KPIs distinguish."""
    return [
        RNCRecord(
            number="001", description="Impressão borrada", sector="Impressão",
            type=TYPE_INTERNAL, status=STATUS_CLOSED,
            open_date=date(2024, 1, 10), close_date=date(2024, 1, 20),
            deadline=date(2024, 1, 31), days=10,
            responsible="João", cause="Falha de Método",
        ),
        RNCRecord(
            number="002", description="Material contaminado", sector="Almoxarifado",
            type=TYPE_SUPPLIER, status=STATUS_OPEN,
            open_date=date(2024, 2, 5), supplier="Plastik Ltda",
            responsible="Ana", cause="Matéria-prima fora de especificação",
        ),
        RNCRecord(
            number="003", description="Lote com gramatura baixa", sector="Compras",
            type=TYPE_SUPPLIER, status=STATUS_CLOSED,
            open_date=date(2024, 2, 1), close_date=date(2024, 2, 20),
            deadline=date(2024, 2, 10), days=19, supplier="Plastik Ltda",
            responsible="Ana", cause="Matéria-prima fora de especificação",
        ),
        RNCRecord(
            number="004", description="Cliente reclamou da medida", sector="Controle de Qualidade",
            type=TYPE_CUSTOMER_COMPLAINT, status=STATUS_CLOSED,
            open_date=date(2023, 3, 1), close_date=date(2023, 3, 5), days=4,
            responsible="Carlos", cause="Erro de Medição",
        ),
        RNCRecord(
            number="005", description="Sem data de abertura", sector="Impressão",
            type=TYPE_INTERNAL, status=STATUS_OPEN,
            responsible="João", cause="Não especificado",
        ),
    ]


@pytest.fixture
def form_workbook_path(tmp_path):
    """A filled-in single-RNC form with a separate cause-and-effect sheet."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Formulário RNC"

    ws["G5"] = "N° de Registro RNC -"
    ws["H5"] = "045/2024"
    ws["J5"] = "RNC de Fornecedor"
    ws["H7"] = datetime(2024, 3, 1)
    ws["H8"] = "Setor Extrusão"
    ws["G9"] = "Responsável-N/C:"
    ws["H9"] = "Maria Souza"
    ws["D9"] = "Plastik Ltda"
    ws["C11"] = "Sacola 40x50"
    ws["C13"] = "L-778"
    ws["D15"] = "Bobina com espessura fora do padrão"
    ws["D17"] = "Devolver lote ao fornecedor"
    ws["B78"] = "Data: 15/03/2024"

    cause = wb.create_sheet("CAUSA&EFEITO")
    cause["B25"] = "Máquina do fornecedor desregulada"

    path = tmp_path / "rnc_045.xlsx"
    wb.save(path)
    return path


@pytest.fixture
def table_workbook_path(tmp_path):
    """A tabular export with one RNC per row and a blank-ish row."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "RNCs"
    ws.append([
        "Número", "Descrição", "Data", "Data Fechamento", "Status", "Setor",
        "Tipo", "Fornecedor", "Responsável", "Causa", "Prazo",
    ])
    ws.append([
        101, "Impressão borrada", datetime(2024, 1, 10), datetime(2024, 1, 20),
        "Fechada", "impressao", "Interna", None, "João", "Método de trabalho",
        datetime(2024, 1, 31),
    ])
    ws.append([
        "102", "Material contaminado", "05/02/24", None, "Aberta", "Almoxarifado",
        "Fornecedor", "N/A", "Ana", "Matéria-prima", None,
    ])
    ws.append([None, None, None, None, None, "Logística", None, None, None, None, None])
    ws.append([
        "103", "Reclamação de cliente", "15/03/2024", None, "Fechado",
        "Controle de Qualidade", "Reclamação de Cliente", None, None, None, None,
    ])

    path = tmp_path / "rnc_table.xlsx"
    wb.save(path)
    return path


@pytest.fixture
def mock_firestore_client():
    """Mock Firestore client; batch() always returns the same batch mock."""
    client = MagicMock()
    client.batch.return_value = MagicMock()
    return client


@pytest.fixture
def mock_repository():
    """Mock cloud repository that accepts every write."""
    repo = MagicMock()
    repo.upsert_many.side_effect = lambda records: len(records)
    repo.delete_all.return_value = 0
    repo.fetch_all.return_value = []
    repo.subscribe.return_value = MagicMock()
    return repo
