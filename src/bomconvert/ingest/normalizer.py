"""Turn decoded raw rows into canonical :class:`Component` records."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Union

from bomconvert.ingest.fields import coerce_fields, reconcile
from bomconvert.models import Component

logger = logging.getLogger(__name__)

RowLike = Union[Mapping[str, Any], Component]


def normalize_row(row: RowLike) -> Component:
    """Normalize one row.

    Recognized columns are renamed and coerced; every other column is carried
    over verbatim as a passthrough field. Passing a :class:`Component` (or its
    ``to_record()``) returns an equal component.
    """

    if isinstance(row, Component):
        row = row.to_record()
    canonical, passthrough = reconcile(row)
    return Component.model_validate({**coerce_fields(canonical), **passthrough})


def normalize_rows(rows: Iterable[RowLike]) -> List[Component]:
    """Normalize rows in order; position carries hierarchy meaning."""

    components = [normalize_row(row) for row in rows]
    logger.debug("Normalized %d rows", len(components))
    return components
