"""
KPI computation functions — pure functions with no side effects.

Provides closure KPIs, monthly evolution, categorical distributions,
effectiveness against deadline, and Ishikawa (6M) cause classification.
"""

import logging
from collections import Counter
from datetime import date

from .config import (
    ISHIKAWA_CATEGORIES,
    MONTH_ABBREVIATIONS,
    NO_CAUSE,
    UNDEFINED_SECTOR,
    UNIDENTIFIED_SUPPLIER,
)
from .models import RNC_TYPES, STATUS_CLOSED, TYPE_INTERNAL, RNCRecord

logger = logging.getLogger(__name__)


def compute_kpis(records: list[RNCRecord]) -> dict:
    """Return headline closure KPIs.

    Logic
    -----
    - total: number of records
    - closed: status 'Fechada'; open = total - closed
    - efficiency: closed / total * 100 (0 when empty)
    - avg_close_time: mean of ``days`` over closed records that have one
    """
    total = len(records)
    closed_records = [r for r in records if r.status == STATUS_CLOSED]
    closed = len(closed_records)
    with_days = [r.days for r in closed_records if r.days is not None]

    return {
        "total": total,
        "open": total - closed,
        "closed": closed,
        "efficiency": (closed / total * 100) if total else 0.0,
        "avg_close_time": (sum(with_days) / len(with_days)) if with_days else 0.0,
    }


def monthly_evolution(records: list[RNCRecord]) -> list[dict]:
    """Count RNCs per opening month, Jan..Dez, years pooled.

    Returns
    -------
    Twelve dicts ``{"month": "Jan", "count": n}`` in calendar order.
    """
    counts = Counter(r.open_date.month for r in records if r.open_date is not None)
    return [
        {"month": abbr, "count": counts.get(i + 1, 0)}
        for i, abbr in enumerate(MONTH_ABBREVIATIONS)
    ]


def type_distribution(records: list[RNCRecord]) -> list[dict]:
    """Count per RNC type over the four canonical types.

    Unknown types are counted as 'Interna'. Zero buckets are dropped.
    """
    stats = {t: 0 for t in RNC_TYPES}
    for r in records:
        key = r.type if r.type in stats else TYPE_INTERNAL
        stats[key] += 1
    return [{"name": k, "value": v} for k, v in stats.items() if v > 0]


def status_distribution(records: list[RNCRecord]) -> list[dict]:
    """Count per status, in first-seen order."""
    counts = Counter(r.status or "Desconhecido" for r in records)
    return [{"name": k, "value": v} for k, v in counts.items()]


def sector_distribution(records: list[RNCRecord], top: int | None = None) -> list[dict]:
    """Count per sector, descending; optionally only the `top` sectors."""
    counts = Counter(r.sector or UNDEFINED_SECTOR for r in records)
    ranked = [{"name": k, "value": v} for k, v in counts.most_common()]
    return ranked[:top] if top else ranked


def supplier_ranking(records: list[RNCRecord], top: int = 10) -> list[dict]:
    """Count per supplier, descending, top `top`.

    Names of two characters or fewer are grouped as 'Não Identificado'.
    """
    counts = Counter(
        r.supplier if r.supplier and len(r.supplier) > 2 else UNIDENTIFIED_SUPPLIER
        for r in records
    )
    return [{"name": k, "value": v} for k, v in counts.most_common(top)]


def top_causes(records: list[RNCRecord], top: int = 6) -> list[dict]:
    """Most frequent root causes with their share of all records.

    Returns
    -------
    List of ``{"label", "count", "percentage"}``; percentage is a rounded
    integer 0-100.
    """
    counts = Counter(r.cause or NO_CAUSE for r in records)
    total = len(records) or 1
    return [
        {"label": k, "count": v, "percentage": round(v / total * 100)}
        for k, v in counts.most_common(top)
    ]


def effectiveness(records: list[RNCRecord]) -> dict:
    """Split closed RNCs into effective and not effective.

    A closed RNC is effective when it was closed on or before its deadline,
    or when it has no deadline to compare against.
    """
    closed = [r for r in records if r.status == STATUS_CLOSED]
    effective = 0
    for r in closed:
        if r.deadline is not None and r.close_date is not None:
            if r.close_date <= r.deadline:
                effective += 1
        else:
            effective += 1

    not_effective = len(closed) - effective
    rate = (effective / len(closed) * 100) if closed else 0.0
    return {
        "total": len(records),
        "closed": len(closed),
        "effective": effective,
        "not_effective": not_effective,
        "effectiveness_rate": rate,
    }


def classify_ishikawa(cause: str) -> str:
    """Map a root-cause text onto a 6M category by substring, else 'Outros'."""
    lower = str(cause or "").lower()
    for category in ISHIKAWA_CATEGORIES:
        if category == "Outros":
            continue
        if category.lower() in lower:
            return category
    return "Outros"


def ishikawa_distribution(records: list[RNCRecord]) -> list[dict]:
    """Count per 6M category in canonical order, zero buckets dropped."""
    counts = Counter(classify_ishikawa(r.cause) for r in records)
    return [
        {"name": c, "value": counts[c]}
        for c in ISHIKAWA_CATEGORIES
        if counts.get(c, 0) > 0
    ]


def days_open(record: RNCRecord, today: date | None = None) -> int:
    """Elapsed days for a record.

    Closed records with a day-count use it; otherwise whole calendar days
    since opening (as of `today`), so an RNC opened yesterday is 1 day old
    and one opened today is 0. This is the same count ``days`` uses for
    closed records. 0 when there is no opening date.
    """
    if record.status == STATUS_CLOSED and record.days is not None:
        return record.days
    if record.open_date is not None:
        today = today or date.today()
        return (today - record.open_date).days
    return 0
