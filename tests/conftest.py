from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

import openpyxl
import pytest

from bomconvert.models import ConversionPayload, ConversionResult

FIXTURES_DIR = Path(__file__).parent / "ingest" / "fixtures"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "BOMCONVERT_AI_ENGINE_URL",
        "BOMCONVERT_AI_ENGINE_TIMEOUT",
        "BOMCONVERT_CHECK_HIERARCHY",
        "BOMCONVERT_EXPORT_SHEET",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def make_xlsx(tmp_path) -> Callable[..., Path]:
    """Write a workbook whose first sheet holds ``rows``; extra sheets follow."""

    def _make(
        rows: Sequence[Sequence[Any]],
        name: str = "bom.xlsx",
        extra_sheets: Optional[dict] = None,
    ) -> Path:
        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.title = "eBOM"
        for row in rows:
            sheet.append(list(row))
        for title, extra_rows in (extra_sheets or {}).items():
            extra = workbook.create_sheet(title)
            for row in extra_rows:
                extra.append(list(row))
        path = tmp_path / name
        workbook.save(path)
        return path

    return _make


class StubEngine:
    """In-process stand-in for the conversion engine."""

    def __init__(self, fail_count: int = 0, success_count: Optional[int] = None, skip: int = 0):
        self.fail_count = fail_count
        self.success_count = success_count
        self.skip = skip
        self.payloads: List[ConversionPayload] = []

    def submit_conversion(self, payload: ConversionPayload) -> ConversionResult:
        self.payloads.append(payload)
        enriched = [
            component.model_copy(
                update={"work_center": "WC-ASSY", "supplier": "Acme Supply", "cost": 2.5, "lead_time": 10}
            )
            for component in payload.components[self.skip:]
        ]
        success = len(enriched) - self.fail_count if self.success_count is None else self.success_count
        return ConversionResult(
            components=enriched,
            confidence=0.88,
            success_count=max(success, 0),
            fail_count=self.fail_count,
        )


@pytest.fixture
def stub_engine() -> StubEngine:
    return StubEngine()


@pytest.fixture
def make_engine() -> Callable[..., StubEngine]:
    return StubEngine
