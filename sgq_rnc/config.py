"""
Configuration: normalization tables, spreadsheet cell coordinates, store
settings.

The form-layout coordinates follow the QUALIPAPEL RNC form. Adjust
FORM_CELLS if the template moves.
"""

import os
from pathlib import Path
from zoneinfo import ZoneInfo

from .exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent.parent

CACHE_PATH = Path(os.getenv("SGQ_CACHE_PATH", DATA_DIR / ".cache" / "saved_rncs.json"))

# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
COMPANY_NAME = "QUALIPAPEL"
APP_TITLE = "SGQ–RNC"

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------
APPROVED_SECTORS = [
    "Impressão",
    "Corte e Solda",
    "Picote",
    "Logística",
    "Extrusão",
    "Recuperadora",
    "Almoxarifado",
    "Compras",
    "Controle de Qualidade",
    "Clicheria",
    "Sacoleiras",
]
UNDEFINED_SECTOR = "Indefinido"

# Ordered: first keyword hit decides the type
TYPE_KEYWORDS: list[tuple[str, str]] = [
    ("reclamação", "Cliente - Reclamação"),
    ("devolução", "Cliente - Devolução"),
    ("fornecedor", "Fornecedor"),
]
DEFAULT_TYPE = "Interna"

SUPPLIER_PLACEHOLDERS = {"não se aplica", "nao se aplica", "n/a", "-", "x", "xxx"}
UNIDENTIFIED_SUPPLIER = "Não Identificado"

NO_NUMBER = "S/N"
NO_DESCRIPTION = "Sem descrição"
NO_RESPONSIBLE = "Não atribuído"
NO_CAUSE = "Não especificado"

MONTH_NAMES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]
MONTH_ABBREVIATIONS = [
    "Jan", "Fev", "Mar", "Abr", "Mai", "Jun",
    "Jul", "Ago", "Set", "Out", "Nov", "Dez",
]

ISHIKAWA_CATEGORIES = [
    "Método",
    "Mão de Obra",
    "Máquina",
    "Matéria-prima",
    "Medição",
    "Meio Ambiente",
    "Outros",
]
ISHIKAWA_COLORS: dict[str, str] = {
    "Método": "#22c55e",
    "Mão de Obra": "#3b82f6",
    "Máquina": "#fbbf24",
    "Matéria-prima": "#f97316",
    "Medição": "#a855f7",
    "Meio Ambiente": "#16a34a",
    "Outros": "#888888",
}

# ---------------------------------------------------------------------------
# Workbook format detection
# ---------------------------------------------------------------------------
FORM_DETECTION_KEYWORDS = ["formulário", "formulario", "folha de rnc"]
FORM_SHEET_KEYWORDS = ["formulário", "formulario", "form", "rnc", "qualipapel"]
TABLE_HEADER_KEYWORDS = ["número", "numero", "descrição", "setor", "status", "data"]
TABLE_HEADER_MIN_MATCHES = 2

CAUSE_EFFECT_SHEET = "CAUSA&EFEITO"

# ---------------------------------------------------------------------------
# Form layout: cell coordinates
# ---------------------------------------------------------------------------
FORM_LABEL_SEARCH_ROWS = 50
FORM_LABEL_SEARCH_COLS = 30

FORM_LABELS = {
    "number": "N° de Registro RNC -",
    "responsible": "Responsável-N/C:",
}

FORM_CELLS = {
    "number_fallbacks": ["H5", "G4"],
    "responsible_fallbacks": ["H9", "G8"],
    "type": "J5",
    "sector": "H8",
    "supplier": "D9",
    "open_date": "H7",
    "description": "D15",
    "action": "D17",
    "product": "C11",
    "batch": "C13",
    "cause": "C26",
    "cause_effect_cause": "B25",
}

# Closing date lookup, highest priority first
CLOSE_DATE_TEXT_CELLS = ["B78", "B77"]
CLOSE_DATE_CELLS = ["I78", "H65", "I77", "I79"]

# ---------------------------------------------------------------------------
# Table layout: column aliases (first non-empty wins)
# ---------------------------------------------------------------------------
TABLE_COLUMNS: dict[str, list[str]] = {
    "number": ["Número", "Numero", "RNC"],
    "description": ["Descrição", "Descricao", "Defeito"],
    "open_date": ["Data", "Data Abertura", "Abertura"],
    "close_date": ["Data Fechamento", "Fechamento", "Encerramento"],
    "status": ["Status"],
    "sector": ["Setor", "Área"],
    "type": ["Tipo", "Classificação"],
    "supplier": ["Fornecedor"],
    "responsible": ["Responsável", "Responsavel"],
    "cause": ["Causa", "Causa Raiz"],
    "action": ["Ação", "Acao", "Disposição"],
    "deadline": ["Prazo"],
    "product": ["Produto"],
    "batch": ["Lote"],
}

# ---------------------------------------------------------------------------
# Cloud document store
# ---------------------------------------------------------------------------
COLLECTION_NAME = os.getenv("SGQ_RNC_COLLECTION", "qpl_rncs")

# Firestore batches cap at 500 writes
BATCH_SIZE = 450

# Calendar dates are stored as local midnight in this zone, matching the
# web client that shares the collection
TIMEZONE = ZoneInfo(os.getenv("SGQ_TIMEZONE", "America/Sao_Paulo"))

FIRESTORE_ENV_VARS = {
    "project_id": "SGQ_FIREBASE_PROJECT_ID",
    "credentials": "SGQ_FIREBASE_CREDENTIALS",
}


def get_firestore_settings(overrides: dict | None = None) -> dict:
    """Resolve Firestore settings from overrides, then the environment.

    Returns a dict with ``project_id``, ``credentials`` (path to a service
    account JSON, may be empty) and ``collection``.

    Raises ConfigurationError when no project id is available.
    """
    overrides = overrides or {}
    settings = {}
    for key, env_var in FIRESTORE_ENV_VARS.items():
        value = overrides.get(key) or os.getenv(env_var, "")
        settings[key] = str(value).strip()
    settings["collection"] = overrides.get("collection") or COLLECTION_NAME

    if not settings["project_id"]:
        raise ConfigurationError(
            "Missing Firestore configuration: set "
            f"{FIRESTORE_ENV_VARS['project_id']}"
        )
    return settings
