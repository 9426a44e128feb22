"""Column-name reconciliation and per-field coercion.

Source BOMs name their columns in many ways (``Part Number``, ``part_no``,
``PartNo``, ``P/N`` ...). This module owns the data that maps them onto the
canonical component fields:

- ``FIELD_ALIASES``: canonical field -> ordered recognized aliases. Matching is
  exact after :func:`normalize_key`; adding a synonym is a table edit.
- ``FIELD_SPECS``: canonical field -> coercion function and default, applied
  uniformly by the normalizer.
- ``FIELD_STEMS``: substrings used by the validator's looser header-level
  presence test.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

# ---------------------------------------------------------------------------
# Alias table: canonical field -> recognized spellings
# ---------------------------------------------------------------------------
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "partNo": (
        "partNo", "partNumber", "part_no", "part_number", "Part No.", "part",
        "pn", "p/n", "itemNo", "itemNumber",
    ),
    "description": (
        "description", "desc", "name", "partDescription", "partName",
        "itemDescription",
    ),
    "quantity": ("quantity", "qty", "amount", "quantityPer", "qtyPer"),
    "unit": ("unit", "uom", "unitOfMeasure"),
    "material": ("material", "mat", "materialType"),
    "level": ("level", "lvl", "bomLevel", "indentLevel"),
    "parentPartNo": (
        "parentPartNo", "parent", "parent_part_no", "parentPartNumber",
        "parentPn", "parentPart",
    ),
    # Enrichment fields are recognized by their own names only, so an
    # exported mBOM reads back losslessly.
    "workCenter": ("workCenter",),
    "operation": ("operation",),
    "supplier": ("supplier",),
    "cost": ("cost",),
    "leadTime": ("leadTime",),
    "category": ("category",),
    "notes": ("notes",),
}

REQUIRED_FIELDS: Tuple[str, ...] = ("partNo", "description", "quantity")

FIELD_STEMS: Dict[str, Tuple[str, ...]] = {
    "partNo": ("partno", "partnumber"),
    "description": ("description", "desc"),
    "quantity": ("quantity", "qty"),
}

_KEY_SEPARATORS = re.compile(r"[\s_\-.]+")
_THOUSANDS = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$")


def normalize_key(name: str) -> str:
    """Lowercase ``name`` and drop whitespace, underscores, hyphens and dots."""

    return _KEY_SEPARATORS.sub("", str(name)).lower()


# Reverse lookup: normalized alias -> canonical field
_ALIAS_LOOKUP: Dict[str, str] = {}
for _canonical, _aliases in FIELD_ALIASES.items():
    for _alias in (_canonical, *_aliases):
        _ALIAS_LOOKUP.setdefault(normalize_key(_alias), _canonical)


def canonical_field(name: str) -> Optional[str]:
    """Return the canonical field ``name`` stands for, if any."""

    return _ALIAS_LOOKUP.get(normalize_key(name))


def resolve(header_names: Iterable[str]) -> Dict[str, str]:
    """Map every recognized raw header to its canonical field.

    Unrecognized headers are absent from the result. Several headers may map
    to the same canonical field.
    """

    mapping: Dict[str, str] = {}
    for raw in header_names:
        canonical = canonical_field(raw)
        if canonical is not None:
            mapping[raw] = canonical
    return mapping


def has_field_stem(field: str, header_names: Iterable[str]) -> bool:
    """Loose presence test over a header row.

    A field is present when some header contains one of its stems after key
    normalization, or spells one of its aliases exactly.
    """

    stems = FIELD_STEMS.get(field, (normalize_key(field),))
    for name in header_names:
        header = normalize_key(name)
        if any(stem in header for stem in stems) or _ALIAS_LOOKUP.get(header) == field:
            return True
    return False


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------
def is_missing(value: Any) -> bool:
    """True for values that count as absent: None or blank text."""

    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(value: Any) -> Optional[float]:
    """Parse a finite number from a cell, or return None.

    Accepts numeric cells and numeric text with comma thousands separators.
    A comma anywhere else (``"1,5"``) makes the value unparseable.
    Booleans are not numbers here.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if _THOUSANDS.match(text):
            text = text.replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Spreadsheets hand back part numbers like 1001 as 1001.0
        return str(int(value))
    return str(value).strip()


def coerce_non_negative(value: Any) -> Optional[float]:
    number = parse_number(value)
    if number is None or number < 0:
        return None
    return number


def coerce_level(value: Any) -> Optional[int]:
    number = parse_number(value)
    if number is None:
        return None
    level = int(number)
    return level if level >= 1 else None


def coerce_optional_text(value: Any) -> Optional[str]:
    text = coerce_text(value)
    return text or None


@dataclass(frozen=True)
class FieldSpec:
    """How one canonical field is coerced and what it defaults to.

    ``coerce`` returns None when the value is unusable; the default is then
    applied. Blank values never reach ``coerce``.
    """

    name: str
    coerce: Callable[[Any], Any]
    default: Any

    def apply(self, value: Any) -> Any:
        if is_missing(value):
            return self.default
        coerced = self.coerce(value)
        if coerced is None or coerced == "":
            return self.default
        return coerced


FIELD_SPECS: Dict[str, FieldSpec] = {
    "partNo": FieldSpec("partNo", coerce_text, ""),
    "description": FieldSpec("description", coerce_text, ""),
    "quantity": FieldSpec("quantity", coerce_non_negative, 1.0),
    "unit": FieldSpec("unit", coerce_text, "EA"),
    "material": FieldSpec("material", coerce_text, ""),
    "level": FieldSpec("level", coerce_level, 1),
    "parentPartNo": FieldSpec("parentPartNo", coerce_text, ""),
    "workCenter": FieldSpec("workCenter", coerce_optional_text, None),
    "operation": FieldSpec("operation", coerce_optional_text, None),
    "supplier": FieldSpec("supplier", coerce_optional_text, None),
    "cost": FieldSpec("cost", coerce_non_negative, None),
    "leadTime": FieldSpec("leadTime", coerce_non_negative, None),
    "category": FieldSpec("category", coerce_optional_text, None),
    "notes": FieldSpec("notes", coerce_optional_text, None),
}


def lookup(row: Mapping[str, Any], field: str) -> Any:
    """Return the first non-blank value for ``field`` under any spelling.

    Returns None when no key spells ``field`` or every such value is blank.
    """

    for key, value in row.items():
        if canonical_field(key) == field and not is_missing(value):
            return value
    return None


def reconcile(row: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Split a raw row into canonical values and passthrough columns.

    Canonical values are returned uncoerced. When several keys spell the same
    field the first non-blank value in row order wins; every such key is
    consumed either way.
    """

    canonical: Dict[str, Any] = {}
    passthrough: Dict[str, Any] = {}
    for key, value in row.items():
        field = canonical_field(key)
        if field is None:
            passthrough[key] = value
        elif field not in canonical or is_missing(canonical[field]):
            canonical[field] = value
    return canonical, passthrough


def coerce_fields(canonical: Mapping[str, Any]) -> Dict[str, Any]:
    """Apply every field spec, filling defaults for absent fields."""

    return {name: spec.apply(canonical.get(name)) for name, spec in FIELD_SPECS.items()}


def missing_required(
    header_names: Iterable[str], fields: Iterable[str] = REQUIRED_FIELDS
) -> List[str]:
    """Fields that no header satisfies under the stem test, in order."""

    headers = list(header_names)
    return [field for field in fields if not has_field_stem(field, headers)]
