"""HTTP client for the external eBOM to mBOM conversion engine.

The pipeline only depends on the narrow :class:`ConversionEngine` protocol;
:class:`AIEngineClient` is the production implementation speaking JSON over
HTTP. There is no retry here: timeouts and connection failures surface as
typed errors and the caller owns any retry or backoff decision.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Protocol

import requests  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bomconvert.config import AIEngineConfig
from bomconvert.errors import AIEngineError, AIEngineTimeoutError, AIEngineUnavailableError
from bomconvert.ingest.normalizer import normalize_rows
from bomconvert.models import (
    Component,
    ComponentError,
    ConversionPayload,
    ConversionResult,
)

logger = logging.getLogger(__name__)


class ConversionEngine(Protocol):
    """Anything that can turn an eBOM payload into a conversion result."""

    def submit_conversion(self, payload: ConversionPayload) -> ConversionResult:
        ...


# ---------------------------------------------------------------------------
# Response models for the single-purpose enrichment endpoints
# ---------------------------------------------------------------------------
class ClassificationResp(BaseModel):
    category: Optional[str] = None
    work_center: Optional[str] = None
    confidence: Optional[float] = None

    model_config = ConfigDict(extra="ignore")


class CostEstimateResp(BaseModel):
    estimates: List[Dict[str, Any]] = Field(default_factory=list)
    total_cost: float = 0.0

    model_config = ConfigDict(extra="ignore")


class SupplierResp(BaseModel):
    suppliers: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class RoutingResp(BaseModel):
    routing: List[Dict[str, Any]] = Field(default_factory=list)
    savings: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------------
# Wire parsing
# ---------------------------------------------------------------------------
def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def parse_component_error(raw: Any) -> ComponentError:
    """Build a :class:`ComponentError` from a string or a loose mapping."""

    if not isinstance(raw, Mapping):
        return ComponentError(error_message=str(raw))

    def _text(*keys: str) -> Optional[str]:
        value = _first(raw, *keys)
        return None if value is None else str(value)

    return ComponentError(
        part_no=_text("partNo", "part_no"),
        component_id=_text("componentId", "component_id"),
        error_type=_text("errorType", "error_type", "type"),
        error_message=_text("errorMessage", "error_message", "message", "error") or "Unknown error",
    )


def parse_conversion(data: Mapping[str, Any], submitted: int) -> ConversionResult:
    """Interpret a ``/api/convert`` response body.

    Returned components go through the same normalizer as uploaded files, so
    snake_case or camelCase keys from the engine both land on canonical
    fields. Missing counts default to "everything submitted succeeded".

    Raises:
        AIEngineError: the body does not carry a list of component objects.
    """

    raw_components = _first(data, "mbom_data", "components")
    if raw_components is None:
        raw_components = []
    if not isinstance(raw_components, list) or not all(
        isinstance(item, Mapping) for item in raw_components
    ):
        raise AIEngineError("AI Engine error: malformed mbom_data in conversion response")

    success_count = _first(data, "successful_count", "successCount")
    fail_count = _first(data, "failed_count", "failCount")
    raw_errors = data.get("errors") or []
    if not isinstance(raw_errors, list):
        raw_errors = [raw_errors]
    try:
        return ConversionResult(
            components=normalize_rows(raw_components),
            confidence=float(data.get("confidence") or 0.0),
            success_count=submitted if success_count is None else int(success_count),
            fail_count=0 if fail_count is None else int(fail_count),
            errors=[parse_component_error(item) for item in raw_errors],
        )
    except (TypeError, ValueError) as exc:
        raise AIEngineError(f"AI Engine error: malformed conversion response ({exc})") from exc


def _parse_response(model: type, data: Dict[str, Any]) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise AIEngineError(f"AI Engine error: unexpected response shape ({exc.error_count()} problems)") from exc


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping):
        detail = _first(body, "message", "detail", "error")
        if detail is not None:
            return str(detail)
    return response.text.strip() or f"HTTP {response.status_code}"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class AIEngineClient:
    """Synchronous client for the conversion engine REST API."""

    def __init__(self, cfg: Optional[AIEngineConfig] = None, session: Optional[requests.Session] = None):
        self.cfg = cfg or AIEngineConfig()
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self.cfg.resolved_base_url

    @property
    def timeout(self) -> float:
        return self.cfg.resolved_timeout

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        logger.info("AI Engine Request: %s %s", method, path)
        try:
            response = self._session.request(
                method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
            )
        except requests.Timeout as exc:
            logger.error("AI Engine Request Error: %s", exc)
            raise AIEngineTimeoutError() from exc
        except requests.ConnectionError as exc:
            logger.error("AI Engine Request Error: %s", exc)
            raise AIEngineUnavailableError() from exc
        except requests.RequestException as exc:
            logger.error("AI Engine Request Error: %s", exc)
            raise AIEngineError(f"AI Engine error: {exc}") from exc

        logger.info("AI Engine Response: %s %s", response.status_code, path)
        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.error("AI Engine Response Error: %s %s", response.status_code, detail)
            raise AIEngineError(f"AI Engine error: {detail}", status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise AIEngineError(
                "AI Engine error: response is not valid JSON", status_code=response.status_code
            ) from exc
        if not isinstance(body, dict):
            raise AIEngineError(
                "AI Engine error: expected a JSON object", status_code=response.status_code
            )
        return body

    def health(self) -> bool:
        """Return True when the engine answers ``GET /health`` with 200."""

        try:
            response = self._session.request(
                "GET", f"{self.base_url}/health", timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.error("AI Engine health check failed: %s", exc)
            return False
        return response.status_code == 200

    def submit_conversion(self, payload: ConversionPayload) -> ConversionResult:
        """Send one eBOM for conversion and parse the enriched result."""

        started = time.perf_counter()
        logger.info("Converting BOM with %d components", len(payload.components))
        data = self._request("POST", "/api/convert", json=payload.to_wire())
        result = parse_conversion(data, submitted=len(payload.components))
        logger.info(
            "BOM conversion completed in %.0fms (confidence=%.2f, failed=%d)",
            (time.perf_counter() - started) * 1000,
            result.confidence,
            result.fail_count,
        )
        return result

    def classify(self, component: Component) -> ClassificationResp:
        """Classify a single component (category, work center)."""

        data = self._request("POST", "/api/classify", json={"component": component.to_record()})
        return _parse_response(ClassificationResp, data)

    def estimate_cost(self, components: List[Component]) -> CostEstimateResp:
        data = self._request(
            "POST",
            "/api/estimate-cost",
            json={"components": [component.to_record() for component in components]},
        )
        return _parse_response(CostEstimateResp, data)

    def supplier_recommendations(self, component: Component) -> SupplierResp:
        data = self._request("POST", "/api/suppliers", json={"component": component.to_record()})
        return _parse_response(SupplierResp, data)

    def optimize_routing(self, components: List[Component]) -> RoutingResp:
        data = self._request(
            "POST",
            "/api/optimize-routing",
            json={"components": [component.to_record() for component in components]},
        )
        return _parse_response(RoutingResp, data)

    def stats(self) -> Dict[str, Any]:
        """Fetch engine-side statistics."""

        return self._request("GET", "/api/stats")
