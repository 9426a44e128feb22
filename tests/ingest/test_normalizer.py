from __future__ import annotations

from bomconvert.ingest.decoders import decode_json
from bomconvert.ingest.normalizer import normalize_row, normalize_rows
from bomconvert.models import Component


class TestNormalizeRow:
    def test_defaults_for_absent_fields(self):
        component = normalize_row({"pn": "A-1"})

        assert component.part_no == "A-1"
        assert component.description == ""
        assert component.quantity == 1.0
        assert component.unit == "EA"
        assert component.level == 1
        assert component.parent_part_no == ""
        assert not component.is_enriched

    def test_passthrough_columns_kept_verbatim(self):
        component = normalize_row({"Part Number": "A-1", "Vendor Code": "V9", "Qty": "3"})

        assert component.passthrough == {"Vendor Code": "V9"}
        record = component.to_record()
        assert list(record)[-1] == "Vendor Code"
        assert record["quantity"] == 3.0

    def test_enrichment_columns_recognized(self):
        component = normalize_row({"partNo": "A", "workCenter": "WC-1", "cost": "4.50", "leadTime": ""})

        assert component.work_center == "WC-1"
        assert component.cost == 4.5
        assert component.lead_time is None
        assert "leadTime" not in component.to_record()

    def test_component_input_is_returned_equal(self):
        original = Component(partNo="B-2", description="Bracket", quantity=2, level=2, parentPartNo="A")
        assert normalize_row(original) == original


class TestIdempotency:
    def test_normalizing_twice_changes_nothing(self, fixtures_dir):
        rows = decode_json(fixtures_dir / "ebom_components.json")

        once = normalize_rows(rows)
        twice = normalize_rows(once)

        assert [c.to_record() for c in twice] == [c.to_record() for c in once]

    def test_order_and_hierarchy_preserved(self, fixtures_dir):
        components = normalize_rows(decode_json(fixtures_dir / "ebom_components.json"))

        assert [c.part_no for c in components] == ["PCB-01", "IC-555", "R-10K"]
        assert components[1].parent_part_no == "PCB-01"
        assert components[2].parent_part_no == "PCB-01"
        assert components[2].unit == "PC"
        assert components[2].quantity == 25.0
        assert components[0].passthrough == {"revision": "C"}
