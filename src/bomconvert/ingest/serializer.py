"""Write component sequences back out as XLSX, CSV or JSON.

These are pure format transforms: nothing is validated here. Column order is
the key order of the first record.
"""

from __future__ import annotations

import io
import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Union

import openpyxl
from openpyxl.styles import Font
from openpyxl.utils.exceptions import IllegalCharacterError

from bomconvert.config import DEFAULT_EXPORT_SHEET
from bomconvert.errors import SerializationError
from bomconvert.models import ENRICHMENT_FIELDS, Component, ExportFormat

logger = logging.getLogger(__name__)

RecordLike = Union[Mapping[str, Any], Component]

_CSV_SPECIALS = (",", '"', "\n", "\r")


def _records(records: Iterable[RecordLike]) -> List[Dict[str, Any]]:
    """Materialize records; components share every enrichment column any of them set."""

    items = list(records)
    enriched = [
        name
        for name in ENRICHMENT_FIELDS
        if any(isinstance(item, Component) and getattr(item, name) is not None for item in items)
    ]
    return [
        item.to_record(include=enriched) if isinstance(item, Component) else dict(item)
        for item in items
    ]


def _scalar(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str)
    return value


# ---------------------------------------------------------------------------
# Spreadsheet
# ---------------------------------------------------------------------------
def _append_row(sheet: Any, values: List[Any]) -> None:
    sheet.append(values)
    # Text starting with "=" stays text rather than becoming a formula.
    for cell in sheet[sheet.max_row]:
        if isinstance(cell.value, str) and cell.value.startswith("="):
            cell.data_type = "s"


def to_xlsx(records: Iterable[RecordLike], sheet_name: str = DEFAULT_EXPORT_SHEET) -> bytes:
    """Build a one-sheet workbook and return its bytes.

    An empty sequence yields a valid workbook holding one empty sheet.
    """

    rows = _records(records)
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    try:
        sheet.title = sheet_name
        if rows:
            headers = list(rows[0].keys())
            _append_row(sheet, headers)
            for cell in sheet[1]:
                cell.font = Font(bold=True)
            for row in rows:
                _append_row(sheet, [_scalar(row.get(header)) for header in headers])
        buffer = io.BytesIO()
        workbook.save(buffer)
    except (ValueError, IllegalCharacterError) as exc:
        raise SerializationError(f"Excel export error: {exc}") from exc
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------
def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(_scalar(value))
    if any(special in text for special in _CSV_SPECIALS):
        return '"' + text.replace('"', '""') + '"'
    return text


def to_csv(records: Iterable[RecordLike]) -> str:
    """Render records as CSV text; an empty sequence yields ``""``."""

    rows = _records(records)
    if not rows:
        return ""
    headers = list(rows[0].keys())
    lines = [",".join(_csv_cell(header) for header in headers)]
    for row in rows:
        lines.append(",".join(_csv_cell(row.get(header)) for header in headers))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------
def to_json(records: Iterable[RecordLike]) -> str:
    return json.dumps(_records(records), indent=2, ensure_ascii=False, default=str)


def serialize(
    records: Iterable[RecordLike],
    fmt: Union[str, ExportFormat],
    *,
    sheet_name: str = DEFAULT_EXPORT_SHEET,
) -> Union[bytes, str]:
    """Serialize ``records`` in ``fmt``: bytes for xlsx, text otherwise."""

    try:
        export_format = ExportFormat(fmt.lower() if isinstance(fmt, str) else fmt)
    except ValueError:
        raise SerializationError(f"Unsupported export format: {fmt}") from None

    logger.debug("Serializing records as %s", export_format.value)
    if export_format is ExportFormat.XLSX:
        return to_xlsx(records, sheet_name=sheet_name)
    if export_format is ExportFormat.CSV:
        return to_csv(records)
    return to_json(records)
