"""Structural validation of decoded BOM rows.

Errors block conversion; warnings are informational. Row numbers in messages
are 1-based positions in the decoded sequence (the header is not counted).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence, Set, Union

from bomconvert.ingest.fields import is_missing, lookup, missing_required, parse_number
from bomconvert.ingest.normalizer import normalize_rows
from bomconvert.models import Component, ValidationReport

logger = logging.getLogger(__name__)

EMPTY_BOM_ERROR = "BOM data is empty"

# A missing description column is reported row by row as a warning, so only
# these fields are checked at header level.
SCHEMA_REQUIRED_FIELDS = ("partNo", "quantity")

RowLike = Union[Mapping[str, Any], Component]


def _as_mapping(row: RowLike) -> Mapping[str, Any]:
    if isinstance(row, Component):
        return row.to_record()
    return row


def _check_row(row: Mapping[str, Any], row_number: int, errors: List[str], warnings: List[str]) -> None:
    if is_missing(lookup(row, "partNo")):
        errors.append(f"Row {row_number}: Missing part number")

    if is_missing(lookup(row, "description")):
        warnings.append(f"Row {row_number}: Missing description")

    quantity = lookup(row, "quantity")
    if is_missing(quantity):
        warnings.append(f"Row {row_number}: Missing quantity")
    else:
        number = parse_number(quantity)
        if number is None or number < 0:
            errors.append(f"Row {row_number}: Invalid quantity value")


def hierarchy_warnings(components: Sequence[Component]) -> List[str]:
    """Warn about rows whose parent part does not exist at a shallower level.

    Rows at level 1 and rows without a parent reference are not checked. The
    check is opt-in and never produces errors: whether an unresolved parent
    should block conversion is still undecided.
    """

    levels_by_part: Dict[str, Set[int]] = {}
    for component in components:
        if component.part_no:
            levels_by_part.setdefault(component.part_no, set()).add(component.level)

    warnings: List[str] = []
    for row_number, component in enumerate(components, start=1):
        parent = component.parent_part_no
        if component.level <= 1 or not parent:
            continue
        if not any(level < component.level for level in levels_by_part.get(parent, ())):
            warnings.append(
                f"Row {row_number}: Parent part {parent} not found at a shallower level"
            )
    return warnings


def validate_bom(rows: Sequence[RowLike], *, check_hierarchy: bool = False) -> ValidationReport:
    """Validate decoded rows (or normalized components).

    Args:
        rows: Raw row mappings as produced by a decoder, or components.
        check_hierarchy: Also warn about parent references that do not
            resolve. Off by default.

    Returns:
        A :class:`ValidationReport`; ``valid`` is true iff there are no errors.
    """

    if not rows:
        return ValidationReport(valid=False, errors=[EMPTY_BOM_ERROR], warnings=[], total_rows=0)

    mappings = [_as_mapping(row) for row in rows]
    errors: List[str] = []
    warnings: List[str] = []

    for field in missing_required(mappings[0].keys(), SCHEMA_REQUIRED_FIELDS):
        errors.append(f"Missing required field: {field}")

    for row_number, row in enumerate(mappings, start=1):
        _check_row(row, row_number, errors, warnings)

    if check_hierarchy:
        warnings.extend(hierarchy_warnings(normalize_rows(mappings)))

    report = ValidationReport(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        total_rows=len(mappings),
    )
    logger.debug(
        "Validated %d rows: %d errors, %d warnings",
        report.total_rows,
        len(report.errors),
        len(report.warnings),
    )
    return report
