"""File ingestion: detect, decode, reconcile, normalize, validate, serialize."""

from bomconvert.ingest.decoders import RawRow, decode, decode_csv, decode_excel, decode_json
from bomconvert.ingest.detector import detect_format
from bomconvert.ingest.fields import FIELD_ALIASES, FIELD_SPECS, resolve
from bomconvert.ingest.normalizer import normalize_row, normalize_rows
from bomconvert.ingest.serializer import serialize, to_csv, to_json, to_xlsx
from bomconvert.ingest.validator import validate_bom

__all__ = [
    "FIELD_ALIASES",
    "FIELD_SPECS",
    "RawRow",
    "decode",
    "decode_csv",
    "decode_excel",
    "decode_json",
    "detect_format",
    "normalize_row",
    "normalize_rows",
    "resolve",
    "serialize",
    "to_csv",
    "to_json",
    "to_xlsx",
    "validate_bom",
]
