"""End-to-end tests for load, convert and export jobs."""

from __future__ import annotations

import io
import logging

import openpyxl
import pytest

from bomconvert.config import PipelineConfig
from bomconvert.errors import BOMValidationError, UnsupportedFormatError
from bomconvert.models import BOMFormat, ConversionOptions
from bomconvert.pipeline import convert_bom, export_bom, load_bom


# =====================================================================
# load_bom
# =====================================================================
class TestLoadBom:
    def test_csv_file(self, fixtures_dir):
        ingested = load_bom(fixtures_dir / "ebom_basic.csv")

        assert ingested.format is BOMFormat.CSV
        assert ingested.report.valid is True
        assert ingested.report.total_rows == 4
        assert len(ingested.rows) == 4
        assert ingested.components[3].part_no == "SCR-M6"
        assert ingested.components[3].level == 3
        assert ingested.components[1].passthrough == {"Vendor Code": "V-17"}

    def test_invalid_file_still_normalized(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_text("Part Number,Description,Qty\n,Nut,lots\n", encoding="utf-8")

        ingested = load_bom(path)

        assert ingested.report.valid is False
        assert ingested.report.errors == ["Row 1: Missing part number", "Row 1: Invalid quantity value"]
        assert ingested.components[0].quantity == 1.0

    def test_hierarchy_check_from_config(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_text(
            "partNo,description,quantity,level,parentPartNo\nA,Top,1,1,\nB,Child,1,2,MISSING\n",
            encoding="utf-8",
        )

        assert load_bom(path).report.warnings == []
        report = load_bom(path, config=PipelineConfig(check_hierarchy=True)).report
        assert report.warnings == ["Row 2: Parent part MISSING not found at a shallower level"]

    def test_hierarchy_check_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "bom.json"
        path.write_text(
            '[{"partNo": "B", "description": "Child", "quantity": 1, "level": 2, "parentPartNo": "A"}]',
            encoding="utf-8",
        )
        monkeypatch.setenv("BOMCONVERT_CHECK_HIERARCHY", "yes")

        assert len(load_bom(path).report.warnings) == 1

    def test_unsupported_format_propagates(self, tmp_path):
        path = tmp_path / "bom.pdf"
        path.write_bytes(b"%PDF-1.7")
        with pytest.raises(UnsupportedFormatError):
            load_bom(path)


# =====================================================================
# convert_bom
# =====================================================================
class TestConvertBom:
    def test_successful_conversion(self, make_xlsx, stub_engine):
        path = make_xlsx(
            [
                ["Part Number", "Desc", "Qty", "Level", "Parent"],
                ["FRM-1", "Frame", 1, 1, None],
                ["WHL-2", "Wheel", 4, 2, "FRM-1"],
            ]
        )

        outcome = convert_bom(path, stub_engine, ConversionOptions(confidence_threshold=0.9))

        assert outcome.status == "success"
        assert outcome.input_format is BOMFormat.EXCEL
        assert (outcome.success_count, outcome.fail_count) == (2, 0)
        assert outcome.confidence == 0.88
        assert outcome.processing_time_ms >= 0
        assert [c.work_center for c in outcome.mbom] == ["WC-ASSY", "WC-ASSY"]
        assert all(not c.is_enriched for c in outcome.ebom)
        assert stub_engine.payloads[0].options.confidence_threshold == 0.9

    def test_partial_and_failed_status(self, fixtures_dir, make_engine):
        partial = convert_bom(fixtures_dir / "ebom_basic.csv", make_engine(fail_count=1))
        assert partial.status == "partial"

        failed = convert_bom(fixtures_dir / "ebom_basic.csv", make_engine(success_count=0, fail_count=4))
        assert failed.status == "failed"

    def test_unmatched_rows_kept_in_mbom(self, fixtures_dir, make_engine):
        outcome = convert_bom(fixtures_dir / "ebom_basic.csv", make_engine(skip=2))

        assert [c.part_no for c in outcome.mbom] == [c.part_no for c in outcome.ebom]
        assert not outcome.mbom[0].is_enriched
        assert outcome.mbom[3].supplier == "Acme Supply"

    def test_invalid_bom_is_never_sent(self, tmp_path, stub_engine):
        path = tmp_path / "bom.json"
        path.write_text('[{"description": "No part number", "quantity": 1}]', encoding="utf-8")

        with pytest.raises(BOMValidationError) as excinfo:
            convert_bom(path, stub_engine)

        assert excinfo.value.report.valid is False
        assert "Missing required field: partNo" in str(excinfo.value)
        assert stub_engine.payloads == []

    def test_run_events_logged(self, fixtures_dir, stub_engine, caplog):
        with caplog.at_level(logging.INFO, logger="bomconvert.observability"):
            convert_bom(fixtures_dir / "ebom_basic.csv", stub_engine)

        messages = [record.getMessage() for record in caplog.records if record.name == "bomconvert.observability"]
        assert messages == ["bom.decoded", "bom.validated", "conversion.submitted", "conversion.merged"]
        run_ids = {record.payload["run_id"] for record in caplog.records if hasattr(record, "payload")}
        assert len(run_ids) == 1 and None not in run_ids


# =====================================================================
# export_bom
# =====================================================================
class TestExportBom:
    def test_sheet_name_from_config(self, fixtures_dir):
        components = load_bom(fixtures_dir / "ebom_basic.csv").components
        data = export_bom(components, "xlsx", config=PipelineConfig(sheet_name="Routing"))

        workbook = openpyxl.load_workbook(io.BytesIO(data))
        assert workbook.sheetnames == ["Routing"]
        assert workbook["Routing"].max_row == 5

    def test_sheet_name_from_env(self, monkeypatch):
        monkeypatch.setenv("BOMCONVERT_EXPORT_SHEET", "Plant 7")
        data = export_bom([], "xlsx")
        assert openpyxl.load_workbook(io.BytesIO(data)).sheetnames == ["Plant 7"]

    def test_partially_enriched_mbom_keeps_engine_columns(self, fixtures_dir, make_engine, tmp_path):
        outcome = convert_bom(fixtures_dir / "ebom_basic.csv", make_engine(skip=1))
        assert not outcome.mbom[0].is_enriched

        out = tmp_path / "mbom.csv"
        out.write_text(export_bom(outcome.mbom, "csv"), encoding="utf-8")
        assert out.read_text(encoding="utf-8").splitlines()[0] == (
            "partNo,description,quantity,unit,material,level,parentPartNo,"
            "workCenter,supplier,cost,leadTime,Vendor Code"
        )

        reloaded = load_bom(out).components
        assert reloaded[0].supplier is None
        assert reloaded[1].supplier == "Acme Supply"
        assert reloaded[3].cost == 2.5
        assert reloaded[3].passthrough == {"Vendor Code": ""}

    def test_text_formats(self, fixtures_dir):
        components = load_bom(fixtures_dir / "ebom_basic.csv").components
        assert export_bom(components, "csv").startswith("partNo,description,quantity")
        assert export_bom([], "csv") == ""
