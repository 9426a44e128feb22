"""Canonical data model for BOM ingestion and eBOM to mBOM conversion.

Python attributes are snake_case; records exchanged with files and with the
conversion engine use the camelCase aliases (``partNo``, ``parentPartNo`` ...).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# Fields populated only by the conversion engine.
ENRICHMENT_FIELDS = (
    "work_center",
    "operation",
    "supplier",
    "cost",
    "lead_time",
    "category",
    "notes",
)


class BOMFormat(str, Enum):
    """Input decoders, selected from the file extension."""

    EXCEL = "excel"
    CSV = "csv"
    JSON = "json"


class ExportFormat(str, Enum):
    """Output formats supported by the serializer."""

    XLSX = "xlsx"
    CSV = "csv"
    JSON = "json"


class Component(BaseModel):
    """A single normalized BOM line.

    Unrecognized source columns are kept as pydantic extras under their
    original names so that nothing read from the file is lost.
    """

    part_no: str = Field(default="", alias="partNo")
    description: str = ""
    quantity: float = Field(default=1.0, ge=0)
    unit: str = "EA"
    material: str = ""
    level: int = Field(default=1, ge=1)
    parent_part_no: str = Field(default="", alias="parentPartNo")

    work_center: Optional[str] = Field(default=None, alias="workCenter")
    operation: Optional[str] = None
    supplier: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    lead_time: Optional[float] = Field(default=None, ge=0, alias="leadTime")
    category: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @property
    def passthrough(self) -> Dict[str, Any]:
        """Source columns that matched no canonical field."""
        return dict(self.model_extra or {})

    @property
    def is_enriched(self) -> bool:
        return any(getattr(self, name) is not None for name in ENRICHMENT_FIELDS)

    def to_record(self, include: Iterable[str] = ()) -> Dict[str, Any]:
        """Return the ordered export mapping for this component.

        Canonical fields come first, then enrichment fields that are set,
        then passthrough columns in their original order. Enrichment fields
        named in ``include`` are emitted as None when unset, so a batch of
        records can share one column layout.
        """

        keep = set(include)
        record: Dict[str, Any] = {}
        for name, info in type(self).model_fields.items():
            value = getattr(self, name)
            if name in ENRICHMENT_FIELDS and value is None and name not in keep:
                continue
            record[info.alias or name] = value
        record.update(self.passthrough)
        return record


class ValidationReport(BaseModel):
    """Outcome of structural BOM validation. Warnings never affect ``valid``."""

    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    total_rows: int = Field(default=0, ge=0, alias="totalRows")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ConversionOptions(BaseModel):
    """Switches forwarded to the conversion engine."""

    cost_estimation: bool = True
    supplier_mapping: bool = True
    routing: bool = True
    lead_time_optimization: bool = True
    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)

    model_config = ConfigDict(extra="forbid")

    def to_wire(self) -> Dict[str, Any]:
        return {
            "include_cost_estimation": self.cost_estimation,
            "include_supplier_mapping": self.supplier_mapping,
            "include_routing": self.routing,
            "optimize_lead_time": self.lead_time_optimization,
            "confidence_threshold": self.confidence_threshold,
        }


class ConversionPayload(BaseModel):
    """Outbound request for one eBOM conversion."""

    components: List[Component]
    options: ConversionOptions = Field(default_factory=ConversionOptions)

    model_config = ConfigDict(extra="forbid")

    def to_wire(self) -> Dict[str, Any]:
        return {
            "ebom_data": [component.to_record() for component in self.components],
            "options": self.options.to_wire(),
        }


class ComponentError(BaseModel):
    """Per-component failure reported by the conversion engine."""

    part_no: Optional[str] = None
    component_id: Optional[str] = None
    error_type: Optional[str] = None
    error_message: str

    model_config = ConfigDict(extra="forbid")


class ConversionResult(BaseModel):
    """Inbound response for one eBOM conversion."""

    components: List[Component] = Field(default_factory=list)
    confidence: float = 0.0
    success_count: int = Field(default=0, ge=0)
    fail_count: int = Field(default=0, ge=0)
    errors: List[ComponentError] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class IngestResult(BaseModel):
    """Decoded rows, their validation report and the normalized eBOM."""

    format: BOMFormat
    rows: List[Dict[str, Any]]
    components: List[Component]
    report: ValidationReport

    model_config = ConfigDict(extra="forbid")


class ConversionOutcome(BaseModel):
    """Everything produced by one end-to-end conversion job."""

    input_format: BOMFormat
    ebom: List[Component]
    mbom: List[Component]
    report: ValidationReport
    confidence: float
    success_count: int
    fail_count: int
    errors: List[ComponentError] = Field(default_factory=list)
    status: Literal["success", "partial", "failed"]
    processing_time_ms: float

    model_config = ConfigDict(extra="forbid")
