import csv
import io
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence, Tuple

from pydantic import BaseModel

# (field, header) pairs in export order
EXPORT_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("id", "ID"),
    ("accession", "Accession"),
    ("name", "Name"),
    ("organism", "Organism"),
    ("domain_header", "Domain"),
    ("length", "Length"),
    ("sequence", "Sequence"),
)


def _value(record, field: str) -> str:
    if isinstance(record, BaseModel):
        value = getattr(record, field, None)
    else:
        value = record.get(field)
    return "" if value is None else str(value)


def to_csv(records: Iterable, columns: Sequence[Tuple[str, str]] = EXPORT_COLUMNS) -> str:
    """RFC 4180 CSV: fields with commas, quotes or newlines are quoted"""
    records = list(records)
    if not records:
        return ""

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow([header for _, header in columns])
    for record in records:
        writer.writerow([_value(record, field) for field, _ in columns])
    return buffer.getvalue()


def export_filename(prefix: str = "protein-data-export", now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{prefix}-{now.strftime('%Y-%m-%dT%H-%M-%S')}.csv"
