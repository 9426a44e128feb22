"""Summary figures for a converted mBOM and for a conversion job."""

from __future__ import annotations

from typing import List, Sequence

from pydantic import BaseModel, ConfigDict

from bomconvert.models import Component


class BOMAnalytics(BaseModel):
    """Roll-up of an mBOM's manufacturing data."""

    total_parts: int = 0
    total_cost: float = 0.0
    average_lead_time: float = 0.0
    unique_suppliers: int = 0

    model_config = ConfigDict(extra="forbid")


def summarize_mbom(components: Sequence[Component]) -> BOMAnalytics:
    """Compute part count, extended cost, mean lead time and supplier count.

    Components without a cost contribute nothing to ``total_cost``; those
    without a lead time are left out of the average.
    """

    if not components:
        return BOMAnalytics()

    total_cost = 0.0
    lead_times: List[float] = []
    suppliers = set()
    for component in components:
        if component.cost is not None:
            total_cost += component.cost * (component.quantity or 1.0)
        if component.lead_time is not None:
            lead_times.append(component.lead_time)
        if component.supplier:
            suppliers.add(component.supplier)

    return BOMAnalytics(
        total_parts=len(components),
        total_cost=round(total_cost, 2),
        average_lead_time=round(sum(lead_times) / len(lead_times), 2) if lead_times else 0.0,
        unique_suppliers=len(suppliers),
    )


def conversion_status(success_count: int, fail_count: int) -> str:
    """Classify a job as ``success``, ``partial`` or ``failed``."""

    if success_count <= 0:
        return "failed"
    if fail_count > 0:
        return "partial"
    return "success"


def success_rate(total: int, successful: int) -> float:
    """Percentage of components converted successfully."""

    if total <= 0:
        return 0.0
    return successful / total * 100
