"""
Dashboard-ready output functions.

These are the entry points for the Streamlit front end, one per view.
Each takes the already-filtered record list and returns plain dicts or
DataFrames suitable for rendering cards, charts, and tables.
"""

import logging
from datetime import date

import pandas as pd

from .config import ISHIKAWA_COLORS
from .kpis import (
    classify_ishikawa,
    compute_kpis,
    days_open,
    effectiveness,
    ishikawa_distribution,
    monthly_evolution,
    sector_distribution,
    status_distribution,
    supplier_ranking,
    top_causes,
    type_distribution,
)
from .models import TYPE_INTERNAL, TYPE_SUPPLIER, RNCRecord, records_to_frame

logger = logging.getLogger(__name__)

VIEWS = {
    "general": "Visão Geral",
    "internal": "Processos Internos",
    "suppliers": "Fornecedores",
    "efficacy": "Eficácia & Indicadores",
    "monthly": "Painel Mensal",
    "deviation": "Desvios por Processo",
    "table": "Registros",
}


def get_strategic_overview(records: list[RNCRecord]) -> dict:
    """General view: headline KPIs, monthly evolution, type/status mix, top sectors."""
    return {
        "kpis": compute_kpis(records),
        "monthly": monthly_evolution(records),
        "types": type_distribution(records),
        "statuses": status_distribution(records),
        "top_sectors": sector_distribution(records, top=5),
    }


def get_internal_overview(records: list[RNCRecord]) -> dict:
    """Internal-process view: KPIs and sector ranking for 'Interna' RNCs."""
    internal = [r for r in records if r.type == TYPE_INTERNAL]
    return {
        "count": len(internal),
        "kpis": compute_kpis(internal),
        "sectors": sector_distribution(internal),
    }


def get_supplier_overview(records: list[RNCRecord]) -> dict:
    """Supplier view: KPIs, top-10 suppliers and top-6 causes for 'Fornecedor' RNCs."""
    supplier = [r for r in records if r.type == TYPE_SUPPLIER]
    return {
        "count": len(supplier),
        "kpis": compute_kpis(supplier),
        "suppliers": supplier_ranking(supplier),
        "causes": top_causes(supplier),
    }


def get_efficacy_overview(records: list[RNCRecord]) -> dict:
    """Effectiveness view: closed RNCs split by deadline compliance."""
    stats = effectiveness(records)
    chart = [
        {"name": "Efetivas", "value": stats["effective"], "color": "#00d46a"},
        {"name": "Não Efetivas", "value": stats["not_effective"], "color": "#ef4444"},
    ]
    stats["chart"] = [c for c in chart if c["value"] > 0]
    return stats


def get_monthly_overview(records: list[RNCRecord]) -> pd.DataFrame:
    """Monthly panel: one row per calendar month.

    Returns
    -------
    DataFrame with columns: month, count
    """
    return pd.DataFrame(monthly_evolution(records), columns=["month", "count"])


def get_deviation_overview(
    records: list[RNCRecord],
    today: date | None = None,
) -> dict:
    """Process-deviation view: KPIs, Ishikawa breakdown and occurrence table.

    Returns
    -------
    Dict with:
        kpis        -> total, closed, efficiency (rounded int %), avg_days
        ishikawa    -> [{"name", "value", "color"}] non-empty 6M categories
        top_occurrences -> first five records with their category
        table       -> DataFrame sorted by opening date, newest first, with
                       a 'days' column (elapsed days for open RNCs)
    """
    kpis = compute_kpis(records)
    summary = {
        "total": kpis["total"],
        "closed": kpis["closed"],
        "efficiency": round(kpis["efficiency"]),
        "avg_days": kpis["avg_close_time"],
    }

    ishikawa = [
        {**item, "color": ISHIKAWA_COLORS.get(item["name"], "#888888")}
        for item in ishikawa_distribution(records)
    ]

    occurrences = []
    for r in records[:5]:
        category = classify_ishikawa(r.cause)
        occurrences.append({
            "id": r.id,
            "number": r.number,
            "category": category,
            "description": r.description,
            "color": ISHIKAWA_COLORS.get(category, "#888888"),
        })

    ordered = sorted(records, key=lambda r: r.open_date or date.min, reverse=True)
    rows = [
        {
            "number": r.number,
            "open_date": r.open_date,
            "sector": r.sector,
            "category": classify_ishikawa(r.cause),
            "description": r.description,
            "status": r.status,
            "days": days_open(r, today),
        }
        for r in ordered
    ]
    table = pd.DataFrame(
        rows,
        columns=["number", "open_date", "sector", "category", "description", "status", "days"],
    )

    return {
        "kpis": summary,
        "ishikawa": ishikawa,
        "top_occurrences": occurrences,
        "table": table,
    }


def get_records_table(records: list[RNCRecord]) -> pd.DataFrame:
    """Full record table, newest opening date first."""
    df = records_to_frame(records)
    if df.empty:
        return df
    return df.sort_values("open_date", ascending=False, na_position="last").reset_index(drop=True)
