# cartonizer/scoring.py
"""Scoring helpers shared by the single-box selector and the splitter."""

from __future__ import annotations

from typing import Sequence, Tuple

from .models import Box, CartonizationParameters, Item


def dimensional_weight(box: Box, factor: float) -> float:
    """Billable dimensional weight of a box: L * W * H / factor."""
    return (box.length * box.width * box.height) / factor


def items_metrics(items: Sequence[Item]) -> Tuple[float, float]:
    """Return (total_weight, total_volume) counting quantities."""
    total_weight = sum(it.weight * it.quantity for it in items)
    total_volume = sum(it.length * it.width * it.height * it.quantity for it in items)
    return total_weight, total_volume


def calculate_confidence(
    utilization: float,
    total_weight: float,
    box: Box,
    packing_efficiency: float,
) -> float:
    """
    Confidence score (0-100) of shipping `total_weight` in `box` at the given
    utilization (percent) and packing efficiency (0-1).
    """
    confidence = 0.0

    # Utilization band, optimal around 75-85%
    if 75 <= utilization <= 85:
        confidence += 40
    elif 65 <= utilization < 95:
        confidence += 30
    elif utilization >= 50:
        confidence += 20
    else:
        confidence += 10

    # Weight margin
    if total_weight <= box.max_weight * 0.8:
        confidence += 20
    else:
        confidence += 10

    # Cost efficiency: inverse of cost per cubic inch
    if box.cost <= 0:
        confidence += 20
    else:
        cost_per_cubic_inch = box.cost / box.volume
        confidence += min(20.0, (1 / cost_per_cubic_inch) * 10)

    if packing_efficiency > 0.9:
        confidence += 10
    elif packing_efficiency > 0.8:
        confidence += 5

    return max(0.0, min(100.0, confidence))


def optimization_rule(params: CartonizationParameters) -> str:
    """Label of the optimization mode the parameters ask for."""
    if params.optimize_for_cost:
        return "Cost Optimization Rule"
    if params.optimize_for_space:
        return "Space Optimization Rule"
    return "Balanced Optimization Rule"


__all__ = [
    "dimensional_weight",
    "items_metrics",
    "calculate_confidence",
    "optimization_rule",
]
