"""Decoders that turn BOM files into ordered raw row mappings.

Every decoder returns ``List[RawRow]``: one ``dict`` per data line, keyed by
the header text of the file, in input order. Values are left loosely typed
(strings, numbers, booleans); coercion is the normalizer's job.

Excel files contribute their first worksheet only. Legacy ``.xls`` workbooks
are read with xlrd, everything else with openpyxl.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

import openpyxl
import xlrd

from bomconvert.errors import DecodeError
from bomconvert.ingest.detector import detect_format, file_extension
from bomconvert.models import BOMFormat

logger = logging.getLogger(__name__)

RawRow = Dict[str, Any]
PathLike = Union[str, Path]

_CSV_ENCODINGS = ("utf-8-sig", "latin-1")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------
def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _header_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def header_names(cells: Sequence[Any], width: Optional[int] = None) -> List[str]:
    """Turn a header row into unique column names.

    Blank header cells are named ``Column<n>`` after their 1-based position and
    repeated names get a ``_<k>`` suffix, so every column has a distinct key.
    """

    width = len(cells) if width is None else max(width, len(cells))
    names: List[str] = []
    seen: Dict[str, int] = {}
    for idx in range(width):
        name = _header_text(cells[idx]) if idx < len(cells) else ""
        if not name:
            name = f"Column{idx + 1}"
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 0
        names.append(name)
    return names


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def _grid_to_rows(grid: List[List[Any]]) -> List[RawRow]:
    """Build rows from a sheet grid whose first row is the header."""

    if not grid:
        return []
    header_cells, body = grid[0], grid[1:]
    width = max(len(row) for row in grid)
    names = header_names(header_cells, width)

    # Unnamed columns are kept only when some data row uses them.
    columns = []
    for idx, name in enumerate(names):
        named = idx < len(header_cells) and not _is_blank(header_cells[idx])
        if named or any(idx < len(row) and not _is_blank(row[idx]) for row in body):
            columns.append((idx, name))

    rows: List[RawRow] = []
    for row in body:
        if all(_is_blank(cell) for cell in row):
            continue
        rows.append(
            {name: _cell_value(row[idx] if idx < len(row) else None) for idx, name in columns}
        )
    return rows


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------
def _read_xlsx_grid(path: Path) -> List[List[Any]]:
    workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _xls_cell(cell: "xlrd.sheet.Cell", datemode: int) -> Any:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_NUMBER and float(cell.value).is_integer():
        return int(cell.value)
    return cell.value


def _read_xls_grid(path: Path) -> List[List[Any]]:
    book = xlrd.open_workbook(str(path), on_demand=True)
    try:
        sheet = book.sheet_by_index(0)
        return [
            [_xls_cell(cell, book.datemode) for cell in sheet.row(idx)]
            for idx in range(sheet.nrows)
        ]
    finally:
        book.release_resources()


def decode_excel(path: PathLike) -> List[RawRow]:
    """Decode the first worksheet of an ``.xlsx``/``.xls`` workbook.

    Later sheets are ignored. Cells missing from a row come back as ``""`` so
    every row carries the full header set.
    """

    path = Path(path)
    reader: Callable[[Path], List[List[Any]]]
    reader = _read_xls_grid if file_extension(path) == "xls" else _read_xlsx_grid
    try:
        grid = reader(path)
    except Exception as exc:
        raise DecodeError(f"Excel parsing error: {exc}", path=str(path), cause=exc) from exc

    rows = _grid_to_rows(grid)
    logger.debug("Decoded %d rows from workbook %s", len(rows), path.name)
    return rows


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------
def _csv_rows(lines: Iterable[List[str]]) -> List[RawRow]:
    iterator = iter(lines)
    header: Optional[List[str]] = None
    for record in iterator:
        if record:
            header = record
            break
    if header is None:
        return []

    names = header_names(header)
    rows: List[RawRow] = []
    for record in iterator:
        if not record:
            continue
        if len(record) > len(names):
            names = header_names(header, len(record))
        rows.append({name: record[idx] if idx < len(record) else "" for idx, name in enumerate(names)})

    # Columns discovered late are back-filled so all rows share one key set.
    for row in rows:
        for name in names:
            row.setdefault(name, "")
    return rows


def decode_csv(path: PathLike) -> List[RawRow]:
    """Stream a CSV file whose first line is the header.

    Quoted fields may contain the delimiter. Any failure while reading aborts
    the whole decode; no partial result is returned.
    """

    path = Path(path)
    last_error: Optional[UnicodeDecodeError] = None
    for encoding in _CSV_ENCODINGS:
        try:
            with path.open("r", encoding=encoding, newline="") as handle:
                rows = _csv_rows(csv.reader(handle))
        except UnicodeDecodeError as exc:
            last_error = exc
            continue
        except (OSError, csv.Error) as exc:
            raise DecodeError(f"CSV parsing error: {exc}", path=str(path), cause=exc) from exc
        logger.debug("Decoded %d rows from %s (%s)", len(rows), path.name, encoding)
        return rows

    raise DecodeError(
        f"CSV parsing error: {last_error}", path=str(path), cause=last_error
    ) from last_error


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------
def decode_json(path: PathLike) -> List[RawRow]:
    """Decode a JSON file holding a top-level array of flat objects."""

    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"JSON parsing error: {exc}", path=str(path), cause=exc) from exc

    if not isinstance(data, list):
        raise DecodeError(
            "JSON parsing error: JSON must contain an array of components", path=str(path)
        )

    rows: List[RawRow] = []
    for idx, element in enumerate(data, start=1):
        if not isinstance(element, dict):
            raise DecodeError(
                f"JSON parsing error: element {idx} is a {type(element).__name__}, expected an object",
                path=str(path),
            )
        rows.append(dict(element))
    return rows


_DECODERS: Dict[BOMFormat, Callable[[PathLike], List[RawRow]]] = {
    BOMFormat.EXCEL: decode_excel,
    BOMFormat.CSV: decode_csv,
    BOMFormat.JSON: decode_json,
}


def decoder_for(fmt: BOMFormat) -> Callable[[PathLike], List[RawRow]]:
    return _DECODERS[fmt]


def decode(path: PathLike, mimetype: Optional[str] = None) -> List[RawRow]:
    """Detect the format of ``path`` and decode it into raw rows."""

    return decoder_for(detect_format(path, mimetype))(path)
