"""bomconvert: eBOM ingestion, normalization and mBOM conversion."""

from bomconvert.ingest import decode, normalize_rows, serialize, validate_bom
from bomconvert.models import Component, ConversionOptions, ValidationReport
from bomconvert.pipeline import convert_bom, export_bom, load_bom

__version__ = "0.1.0"

__all__ = [
    "Component",
    "ConversionOptions",
    "ValidationReport",
    "convert_bom",
    "decode",
    "export_bom",
    "load_bom",
    "normalize_rows",
    "serialize",
    "validate_bom",
    "__version__",
]
