"""
The non-conformance record and its vocabularies.

A record is identified by its business number (``id == number``). Dates are
``datetime.date`` or None; ``created_at``/``updated_at`` are set by the
cloud store and may be None for records that never left the local cache.
"""

import logging
from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

STATUS_OPEN = "Aberta"
STATUS_CLOSED = "Fechada"
STATUS_LATE = "Atrasada"

TYPE_INTERNAL = "Interna"
TYPE_SUPPLIER = "Fornecedor"
TYPE_CUSTOMER_COMPLAINT = "Cliente - Reclamação"
TYPE_CUSTOMER_RETURN = "Cliente - Devolução"

RNC_TYPES = [
    TYPE_INTERNAL,
    TYPE_SUPPLIER,
    TYPE_CUSTOMER_COMPLAINT,
    TYPE_CUSTOMER_RETURN,
]

DATE_FIELDS = ("open_date", "close_date", "deadline")
TIMESTAMP_FIELDS = ("created_at", "updated_at")


@dataclass
class RNCRecord:
    number: str
    description: str = ""
    sector: str = ""
    type: str = TYPE_INTERNAL
    status: str = STATUS_OPEN
    open_date: date | None = None
    close_date: date | None = None
    responsible: str = ""
    cause: str = ""
    action: str = ""
    supplier: str = ""
    deadline: date | None = None
    product: str = ""
    batch: str = ""
    days: int | None = None
    id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self):
        self.number = str(self.number).strip()
        if not self.id:
            self.id = self.number

    @property
    def is_closed(self) -> bool:
        return self.status == STATUS_CLOSED

    def to_dict(self) -> dict:
        """Plain dict with ISO-formatted dates, suitable for JSON."""
        data = asdict(self)
        for name in DATE_FIELDS + TIMESTAMP_FIELDS:
            value = data[name]
            data[name] = value.isoformat() if value is not None else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RNCRecord":
        """Rebuild a record from ``to_dict`` output or a store document.

        Unknown keys are ignored so older cache files keep loading.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        kwargs["number"] = str(data.get("number") or data.get("id") or "")

        for name in DATE_FIELDS:
            kwargs[name] = _coerce_date(kwargs.get(name))
        for name in TIMESTAMP_FIELDS:
            kwargs[name] = _coerce_datetime(kwargs.get(name))

        days = kwargs.get("days")
        kwargs["days"] = int(days) if isinstance(days, (int, float)) and not pd.isna(days) else None

        for name in ("number", "description", "sector", "type", "status",
                     "responsible", "cause", "action", "supplier", "product",
                     "batch", "id"):
            if kwargs.get(name) is None:
                kwargs.pop(name, None)
            elif name in kwargs:
                kwargs[name] = str(kwargs[name])

        return cls(**kwargs)


def _coerce_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        logger.warning("Could not read stored date: %s", value)
        return None


def _coerce_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        logger.warning("Could not read stored timestamp: %s", value)
        return None


RECORD_COLUMNS = [
    "id", "number", "description", "sector", "type", "status",
    "open_date", "close_date", "deadline", "days",
    "responsible", "cause", "action", "supplier", "product", "batch",
]


def records_to_frame(records: list[RNCRecord]) -> pd.DataFrame:
    """Canonical DataFrame view of a record list.

    Returns
    -------
    DataFrame with RECORD_COLUMNS; date columns are datetime64, ``days`` is
    a nullable integer.
    """
    if not records:
        return pd.DataFrame(columns=RECORD_COLUMNS)

    df = pd.DataFrame([asdict(r) for r in records])[RECORD_COLUMNS]
    for col in DATE_FIELDS:
        df[col] = pd.to_datetime(df[col], errors="coerce")
    df["days"] = df["days"].astype("Int64")
    return df
