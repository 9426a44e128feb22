"""Command-line interface for bomconvert."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Union

import click

from ..analytics import success_rate, summarize_mbom
from ..config import AIEngineConfig, PipelineConfig
from ..engine.client import AIEngineClient
from ..errors import BOMConvertError, BOMValidationError
from ..models import ConversionOptions, ExportFormat
from ..pipeline import convert_bom, export_bom, load_bom

FORMAT_CHOICES = [fmt.value for fmt in ExportFormat]


def _export_format(fmt: Optional[str], output: Optional[Path]) -> str:
    if fmt:
        return fmt
    if output is not None and output.suffix.lstrip(".").lower() in FORMAT_CHOICES:
        return output.suffix.lstrip(".").lower()
    return ExportFormat.CSV.value


def _write_output(data: Union[bytes, str], output: Optional[Path]) -> None:
    if output is None:
        if isinstance(data, bytes):
            raise click.UsageError("xlsx output needs --output")
        click.echo(data)
        return
    if isinstance(data, bytes):
        output.write_bytes(data)
    else:
        output.write_text(data, encoding="utf-8")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """eBOM ingestion and mBOM conversion tools."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mimetype", default=None, help="Advertised content type of FILE.")
@click.option(
    "--check-hierarchy/--no-check-hierarchy",
    default=None,
    help="Warn about parent references that do not resolve.",
)
def validate(file: Path, mimetype: Optional[str], check_hierarchy: Optional[bool]) -> None:
    """Validate FILE and print the report as JSON."""

    try:
        ingested = load_bom(file, mimetype, config=PipelineConfig(check_hierarchy=check_hierarchy))
    except BOMConvertError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(json.dumps(ingested.report.model_dump(by_alias=True), indent=2))
    if not ingested.report.valid:
        sys.exit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--format", "fmt", type=click.Choice(FORMAT_CHOICES), default=None)
@click.option("--sheet-name", default=None, help="Worksheet title for xlsx output.")
def normalize(file: Path, output: Optional[Path], fmt: Optional[str], sheet_name: Optional[str]) -> None:
    """Write the normalized eBOM of FILE."""

    config = PipelineConfig(sheet_name=sheet_name)
    try:
        ingested = load_bom(file, config=config)
        data = export_bom(ingested.components, _export_format(fmt, output), config=config)
    except BOMConvertError as exc:
        raise click.ClickException(str(exc)) from exc

    for warning in ingested.report.warnings:
        click.echo(f"warning: {warning}", err=True)
    _write_output(data, output)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), required=True)
@click.option("--format", "fmt", type=click.Choice(FORMAT_CHOICES), default=None)
@click.option("--engine-url", default=None, help="Base URL of the conversion engine.")
@click.option("--timeout", type=float, default=None, help="Engine timeout in seconds.")
@click.option("--no-cost-estimation", is_flag=True, help="Skip cost estimation.")
@click.option("--no-supplier-mapping", is_flag=True, help="Skip supplier mapping.")
@click.option("--no-routing", is_flag=True, help="Skip routing generation.")
@click.option("--no-lead-time-optimization", is_flag=True, help="Skip lead time optimization.")
@click.option(
    "--confidence-threshold",
    type=click.FloatRange(0.0, 1.0),
    default=0.7,
    show_default=True,
)
def convert(
    file: Path,
    output: Path,
    fmt: Optional[str],
    engine_url: Optional[str],
    timeout: Optional[float],
    no_cost_estimation: bool,
    no_supplier_mapping: bool,
    no_routing: bool,
    no_lead_time_optimization: bool,
    confidence_threshold: float,
) -> None:
    """Convert the eBOM in FILE to an mBOM written to OUTPUT."""

    options = ConversionOptions(
        cost_estimation=not no_cost_estimation,
        supplier_mapping=not no_supplier_mapping,
        routing=not no_routing,
        lead_time_optimization=not no_lead_time_optimization,
        confidence_threshold=confidence_threshold,
    )
    client = AIEngineClient(AIEngineConfig(base_url=engine_url, timeout=timeout))
    config = PipelineConfig()
    try:
        outcome = convert_bom(file, client, options, config=config)
        data = export_bom(outcome.mbom, _export_format(fmt, output), config=config)
    except BOMValidationError as exc:
        for error in exc.report.errors:
            click.echo(f"error: {error}", err=True)
        raise click.ClickException(str(exc)) from exc
    except BOMConvertError as exc:
        raise click.ClickException(str(exc)) from exc

    _write_output(data, output)
    summary = {
        "status": outcome.status,
        "confidence": outcome.confidence,
        "successCount": outcome.success_count,
        "failCount": outcome.fail_count,
        "successRate": success_rate(len(outcome.ebom), outcome.success_count),
        "processingTimeMs": round(outcome.processing_time_ms, 1),
        "warnings": outcome.report.warnings,
        "errors": [error.model_dump() for error in outcome.errors],
        "analytics": summarize_mbom(outcome.mbom).model_dump(),
        "output": str(output),
    }
    click.echo(json.dumps(summary, indent=2))


@cli.command()
@click.option("--engine-url", default=None, help="Base URL of the conversion engine.")
def health(engine_url: Optional[str]) -> None:
    """Check whether the conversion engine is reachable."""

    client = AIEngineClient(AIEngineConfig(base_url=engine_url))
    healthy = client.health()
    click.echo(json.dumps({"engine": client.base_url, "healthy": healthy}))
    if not healthy:
        sys.exit(1)


if __name__ == "__main__":
    cli()
