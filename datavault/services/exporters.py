"""Serialization of export documents.

Column orders are fixed contracts consumed outside the service:
changing them breaks downstream importers.
"""

import csv
import io
import json
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from datavault.database.types import as_utc

# Tabular projection of personal data items
DATA_EXPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "category",
    "fieldName",
    "fieldValue",
    "purpose",
    "source",
    "dataController",
    "collectedAt",
    "retentionDays",
    "isActive",
)

# Tabular projection of audit entries
AUDIT_EXPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "action",
    "entityType",
    "entityId",
    "ipAddress",
    "userAgent",
    "timestamp",
)


def format_timestamp(value: datetime | None) -> str | None:
    """ISO-8601 UTC rendering with millisecond precision and a ``Z`` suffix."""
    if value is None:
        return None
    return as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_json(document: Mapping[str, Any]) -> str:
    """Serialize a structured export document."""
    return json.dumps(document, ensure_ascii=False, indent=2)


def to_csv(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """Serialize records to CSV with a header row.

    Args:
        rows: Records keyed by column name; extra keys are ignored.
        columns: Column order.

    Returns:
        CSV document.
    """
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(columns), extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({column: _cell(row.get(column)) for column in columns})
    return buffer.getvalue()


def _cell(value: Any) -> Any:
    """Render one CSV cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value
