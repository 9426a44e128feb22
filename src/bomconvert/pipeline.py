"""End-to-end BOM jobs: load, convert, export.

Each job runs under its own run id so that decode, validation, conversion
and merge events can be correlated in the logs.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Sequence, Union

from bomconvert.analytics import conversion_status
from bomconvert.config import PipelineConfig
from bomconvert.engine.client import ConversionEngine
from bomconvert.engine.merge import merge_conversion
from bomconvert.errors import BOMValidationError
from bomconvert.ingest.decoders import decoder_for
from bomconvert.ingest.detector import detect_format
from bomconvert.ingest.normalizer import normalize_rows
from bomconvert.ingest.serializer import RecordLike, serialize
from bomconvert.ingest.validator import validate_bom
from bomconvert.models import (
    ConversionOptions,
    ConversionOutcome,
    ConversionPayload,
    ExportFormat,
    IngestResult,
)
from bomconvert.observability import current_run_id, log_event, run_scope

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _ingest(path: PathLike, mimetype: Optional[str], config: PipelineConfig) -> IngestResult:
    fmt = detect_format(path, mimetype)
    rows = decoder_for(fmt)(path)
    log_event("bom.decoded", path=str(path), format=fmt.value, rows=len(rows))

    report = validate_bom(rows, check_hierarchy=config.resolved_check_hierarchy)
    log_event(
        "bom.validated",
        valid=report.valid,
        errors=len(report.errors),
        warnings=len(report.warnings),
    )

    components = normalize_rows(rows)
    return IngestResult(format=fmt, rows=rows, components=components, report=report)


def load_bom(
    path: PathLike,
    mimetype: Optional[str] = None,
    *,
    config: Optional[PipelineConfig] = None,
) -> IngestResult:
    """Detect, decode, validate and normalize one BOM file.

    Validation runs over the raw rows so that messages refer to what the file
    actually contained. The eBOM is normalized even when the report is
    invalid; callers decide whether to proceed.

    Raises:
        UnsupportedFormatError: unknown file extension.
        DecodeError: the file content could not be decoded.
    """

    config = config or PipelineConfig()
    if current_run_id() is not None:
        return _ingest(path, mimetype, config)
    with run_scope():
        return _ingest(path, mimetype, config)


def convert_bom(
    path: PathLike,
    engine: ConversionEngine,
    options: Optional[ConversionOptions] = None,
    *,
    mimetype: Optional[str] = None,
    config: Optional[PipelineConfig] = None,
) -> ConversionOutcome:
    """Run one eBOM to mBOM conversion job.

    The eBOM is left untouched; the mBOM is built from copies enriched with
    the engine's manufacturing data.

    Raises:
        BOMValidationError: the file failed validation; nothing was sent.
        AIEngineError: the engine call failed.
    """

    with run_scope() as run_id:
        started = time.perf_counter()
        ingested = load_bom(path, mimetype, config=config)
        if not ingested.report.valid:
            log_event("bom.rejected", errors=ingested.report.errors)
            raise BOMValidationError(ingested.report)

        payload = ConversionPayload(
            components=ingested.components, options=options or ConversionOptions()
        )
        log_event("conversion.submitted", components=len(payload.components))
        result = engine.submit_conversion(payload)

        mbom = merge_conversion(ingested.components, result)
        status = conversion_status(result.success_count, result.fail_count)
        elapsed_ms = (time.perf_counter() - started) * 1000
        log_event(
            "conversion.merged",
            status=status,
            mbom_components=len(mbom),
            confidence=result.confidence,
            processing_time_ms=round(elapsed_ms, 1),
        )
        logger.info("Conversion %s finished with status %s", run_id, status)

        return ConversionOutcome(
            input_format=ingested.format,
            ebom=ingested.components,
            mbom=mbom,
            report=ingested.report,
            confidence=result.confidence,
            success_count=result.success_count,
            fail_count=result.fail_count,
            errors=result.errors,
            status=status,
            processing_time_ms=elapsed_ms,
        )


def export_bom(
    components: Sequence[RecordLike],
    fmt: Union[str, ExportFormat],
    *,
    config: Optional[PipelineConfig] = None,
) -> Union[bytes, str]:
    """Serialize components using the configured sheet name."""

    config = config or PipelineConfig()
    return serialize(components, fmt, sheet_name=config.resolved_sheet_name)
