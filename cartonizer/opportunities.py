# cartonizer/opportunities.py
"""
Box catalog opportunity analysis.

Replays a batch of orders twice, once against the stocked catalog and once
against the stocked catalog plus candidate boxes (for example a supplier
catalog), and reports the candidates that would have won orders with a
meaningful gain in space utilization or cost.

Candidate boxes are evaluated as if they were on hand, whatever their
`in_stock` value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Sequence

from .config import DEFAULT_PARAMETERS
from .diagnostics import DiagnosticsSink, resolve_sink
from .engine import CartonizationEngine
from .models import Box, BoxOpportunity, CartonizationParameters, Item

# A candidate is kept above this mean utilization gain (points) or with savings.
MIN_EFFICIENCY_GAIN = 5.0
REASON_GAIN_THRESHOLD = 10.0
BASE_CONFIDENCE = 60.0
GAIN_CONFIDENCE_WEIGHT = 2.0
SAVINGS_CONFIDENCE_BONUS = 20.0
MAX_REASONS = 3
MAX_OPPORTUNITIES = 5


@dataclass
class _Tally:
    order_ids: List[str] = field(default_factory=list)
    current_cost: float = 0.0
    candidate_cost: float = 0.0
    efficiency_gain: float = 0.0
    reasoning: List[str] = field(default_factory=list)


def impact_score(opportunity: BoxOpportunity) -> float:
    return (
        opportunity.potential_orders * 0.3
        + opportunity.projected_savings * 0.4
        + opportunity.efficiency_gain * 0.3
    )


def rank_opportunities(
    opportunities: Sequence[BoxOpportunity], limit: int = MAX_OPPORTUNITIES
) -> List[BoxOpportunity]:
    """Highest impact first; equal scores keep their input order."""
    return sorted(opportunities, key=impact_score, reverse=True)[:limit]


def analyze_box_opportunities(
    orders: Mapping[str, Sequence[Item]],
    stocked_boxes: Sequence[Box],
    candidate_boxes: Sequence[Box],
    params: Optional[CartonizationParameters] = None,
    sink: Optional[DiagnosticsSink] = None,
) -> List[BoxOpportunity]:
    """
    Compare today's recommendation of every order (keyed by order id) with
    the recommendation once `candidate_boxes` are added. Orders that cannot
    ship today, or that still go in a stocked box, are not counted.

    Returns at most five opportunities, best first.
    """
    sink = resolve_sink(sink)
    params = params or DEFAULT_PARAMETERS

    candidates = [replace(b, in_stock=max(1, b.in_stock)) for b in candidate_boxes]
    candidate_ids = {b.id for b in candidates}

    current_engine = CartonizationEngine.create(stocked_boxes, params)
    catalog_engine = CartonizationEngine.create(list(stocked_boxes) + candidates, params)

    tallies: Dict[str, _Tally] = {}
    boxes_by_id: Dict[str, Box] = {}

    for order_id, items in orders.items():
        if not items:
            continue
        current = current_engine.calculate_optimal_box(items, sink=sink)
        proposed = catalog_engine.calculate_optimal_box(items, sink=sink)
        if current is None or proposed is None:
            continue
        box = proposed.recommended_box
        if box.id not in candidate_ids:
            continue

        boxes_by_id[box.id] = box
        tally = tallies.setdefault(box.id, _Tally())
        tally.order_ids.append(order_id)
        tally.current_cost += current.recommended_box.cost
        tally.candidate_cost += box.cost

        gain = proposed.utilization - current.utilization
        if gain <= 0:
            continue
        tally.efficiency_gain += gain
        if gain > REASON_GAIN_THRESHOLD:
            tally.reasoning.append(f"{gain:.1f}% better space utilization")
        if box.cost < current.recommended_box.cost:
            tally.reasoning.append(
                f"${current.recommended_box.cost - box.cost:.2f} cost savings per order"
            )
        if proposed.confidence > current.confidence:
            tally.reasoning.append(
                f"{proposed.confidence - current.confidence:.0f} points higher confidence"
            )

    opportunities: List[BoxOpportunity] = []
    for box_id, tally in tallies.items():
        mean_gain = tally.efficiency_gain / len(tally.order_ids)
        savings = tally.current_cost - tally.candidate_cost
        if mean_gain <= MIN_EFFICIENCY_GAIN and savings <= 0:
            continue
        confidence = BASE_CONFIDENCE + mean_gain * GAIN_CONFIDENCE_WEIGHT
        if savings > 0:
            confidence += SAVINGS_CONFIDENCE_BONUS
        opportunities.append(
            BoxOpportunity(
                box=boxes_by_id[box_id],
                order_ids=list(tally.order_ids),
                current_cost=tally.current_cost,
                projected_savings=max(0.0, savings),
                efficiency_gain=mean_gain,
                confidence=min(100.0, confidence),
                reasoning=list(dict.fromkeys(tally.reasoning))[:MAX_REASONS],
            )
        )

    ranked = rank_opportunities(opportunities)
    sink.emit(
        logging.INFO,
        f"Box opportunity analysis: {len(ranked)} of {len(candidates)} candidate boxes recommended",
        orders=len(orders),
    )
    return ranked


__all__ = [
    "impact_score",
    "rank_opportunities",
    "analyze_box_opportunities",
]
