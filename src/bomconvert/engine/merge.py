"""Build the mBOM by enriching copies of eBOM components.

Engine components are matched to eBOM components on ``(partNo, level)``.
Repeated keys (the same part in several branches) pair up in order of
appearance. The eBOM sequence itself is never modified.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import Deque, Dict, List, Sequence, Set, Tuple

from bomconvert.models import ENRICHMENT_FIELDS, Component, ConversionResult

logger = logging.getLogger(__name__)

MatchKey = Tuple[str, int]


def match_key(component: Component) -> MatchKey:
    return component.part_no, component.level


def enrich(base: Component, source: Component) -> Component:
    """Return a copy of ``base`` carrying ``source``'s enrichment fields."""

    update = {
        name: getattr(source, name)
        for name in ENRICHMENT_FIELDS
        if getattr(source, name) is not None
    }
    return base.model_copy(update=update, deep=True)


def merge_conversion(ebom: Sequence[Component], result: ConversionResult) -> List[Component]:
    """Merge an engine result onto the eBOM, preserving eBOM order.

    eBOM components with no engine counterpart are copied unchanged. Engine
    components that match no eBOM row are appended at the end in the order
    the engine returned them.
    """

    pending: Dict[MatchKey, Deque[int]] = defaultdict(deque)
    for idx, component in enumerate(result.components):
        pending[match_key(component)].append(idx)

    consumed: Set[int] = set()
    mbom: List[Component] = []
    for component in ebom:
        queue = pending.get(match_key(component))
        if queue:
            idx = queue.popleft()
            consumed.add(idx)
            mbom.append(enrich(component, result.components[idx]))
        else:
            mbom.append(component.model_copy(deep=True))

    extras = [
        component.model_copy(deep=True)
        for idx, component in enumerate(result.components)
        if idx not in consumed
    ]
    if extras:
        logger.info("Engine returned %d components not present in the eBOM", len(extras))
    unmatched = len(ebom) - len(consumed)
    if unmatched:
        logger.warning("%d eBOM components received no enrichment", unmatched)
    return mbom + extras
