# cartonizer/selector.py
"""
Single-container selection.

Every box that can carry the order weight is packed (smallest first), scored,
and ranked with the business rules below. The winner is returned together
with up to three alternatives and the ordered list of rules that produced
the decision, so the recommendation can be audited afterwards.

Ranking rules, in order:
1. weight capacity filter (box max weight and package weight cap)
2. smallest-first ordering and a size-rank confidence bonus
3. 3D packing validation
4. oversized (<30% utilization) and invalid (>=100%) boxes are dropped
5. utilization, then confidence, then volume (with tie bands)
6. minimum viable utilization of 60%
7. fallback to the smallest fitting box when rules 4-6 leave nothing

If the caller asks for it, or no single box works, the multi-package
splitter is consulted as well.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import cmp_to_key
from typing import List, Optional, Sequence

from .config import DEFAULT_PARAMETERS
from .diagnostics import DiagnosticsSink, resolve_sink
from .models import (
    Box,
    BoxAlternative,
    CartonizationParameters,
    CartonizationResult,
    Item,
    MultiPackageCartonizationResult,
    PackingResult,
)
from .packing import pack
from .scoring import calculate_confidence, dimensional_weight, items_metrics, optimization_rule
from .splitter import split_and_pack

OVERSIZED_UTILIZATION = 30.0
MAX_UTILIZATION = 100.0
MIN_VIABLE_UTILIZATION = 60.0
UTILIZATION_TIE_BAND = 2.0
CONFIDENCE_TIE_BAND = 5.0
SIZE_BONUS_START = 15
SIZE_BONUS_STEP = 3
FALLBACK_PENALTY = 20
FALLBACK_CONFIDENCE_FLOOR = 60
# A single box at or above this confidence wins over a multi-package plan.
SINGLE_BOX_PREFERENCE = 75
MAX_ALTERNATIVES = 3

FALLBACK_RULE = "Fallback: smallest fitting box"


@dataclass
class BoxAnalysis:
    """Packing outcome and score of one candidate box."""

    box: Box
    rank: int
    packing_result: PackingResult
    utilization: float
    dimensional_weight: float
    confidence: float

    @property
    def fits(self) -> bool:
        return self.packing_result.success

    def as_alternative(self) -> BoxAlternative:
        return BoxAlternative(
            box=self.box,
            utilization=self.utilization,
            cost=self.box.cost,
            confidence=self.confidence,
        )


def size_bonus(rank: int) -> int:
    """Confidence bonus for the rank-th smallest candidate (0-based)."""
    return max(0, SIZE_BONUS_START - SIZE_BONUS_STEP * rank)


def analyze_boxes(
    items: Sequence[Item],
    boxes: Sequence[Box],
    total_weight: float,
    params: CartonizationParameters,
    sink: Optional[DiagnosticsSink] = None,
) -> List[BoxAnalysis]:
    """Pack and score every box; `boxes` must already be sorted by volume."""
    analyses: List[BoxAnalysis] = []
    for rank, box in enumerate(boxes):
        result = pack(items, box, sink)
        utilization = result.used_volume / box.volume * 100 if result.success else 0.0
        confidence = calculate_confidence(
            utilization, total_weight, box, result.packing_efficiency
        )
        if result.success:
            confidence = min(100.0, confidence + size_bonus(rank))
        analyses.append(
            BoxAnalysis(
                box=box,
                rank=rank,
                packing_result=result,
                utilization=utilization,
                dimensional_weight=dimensional_weight(box, params.dimensional_weight_factor),
                confidence=confidence,
            )
        )
    return analyses


def _compare(a: BoxAnalysis, b: BoxAnalysis) -> int:
    if abs(a.utilization - b.utilization) > UTILIZATION_TIE_BAND:
        return -1 if a.utilization > b.utilization else 1
    if abs(a.confidence - b.confidence) > CONFIDENCE_TIE_BAND:
        return -1 if a.confidence > b.confidence else 1
    if a.box.volume != b.box.volume:
        return -1 if a.box.volume < b.box.volume else 1
    return 0


def rank_analyses(fitting: Sequence[BoxAnalysis]) -> List[BoxAnalysis]:
    """
    Drop oversized and physically invalid boxes, then order the rest best
    first. Equal entries keep their smallest-first order.
    """
    plausible = [
        a
        for a in fitting
        if OVERSIZED_UTILIZATION <= a.utilization < MAX_UTILIZATION
    ]
    return sorted(plausible, key=cmp_to_key(_compare))


def fallback_confidence(confidence: float) -> float:
    """Penalty for a fallback pick; it never raises a score."""
    return min(confidence, max(FALLBACK_CONFIDENCE_FLOOR, confidence - FALLBACK_PENALTY))


def choose_single_box(
    items: Sequence[Item],
    catalog: Sequence[Box],
    params: CartonizationParameters,
    sink: Optional[DiagnosticsSink] = None,
    started: Optional[float] = None,
) -> Optional[CartonizationResult]:
    """
    Single-box recommendation over an in-stock catalog, without the
    multi-package fallback. Returns None when no box can take the order.
    """
    sink = resolve_sink(sink)
    started = time.perf_counter() if started is None else started

    total_weight, total_volume = items_metrics(items)

    suitable = [
        b
        for b in catalog
        if b.max_weight >= total_weight and total_weight <= params.max_package_weight
    ]
    if not suitable:
        sink.emit(
            logging.INFO,
            "No box can carry the order weight",
            total_weight=total_weight,
            max_package_weight=params.max_package_weight,
        )
        return None

    rules: List[str] = ["Weight Capacity Filter", "Smallest-First Box Ordering"]
    ordered = sorted(suitable, key=lambda b: b.volume)

    analyses = analyze_boxes(items, ordered, total_weight, params, sink)
    fitting = [a for a in analyses if a.fits]
    rules.append("3D Bin Packing Validation")
    if not fitting:
        sink.emit(logging.INFO, "Items do not fit in any single box", boxes=len(ordered))
        return None
    rules.append("Size Preference Bonus")

    ranked = rank_analyses(fitting)
    rules.append(f"Oversized Box Filter (<{OVERSIZED_UTILIZATION:g}% utilization)")
    rules.append("Utilization Ranking")

    viable = [a for a in ranked if a.utilization >= MIN_VIABLE_UTILIZATION]
    rules.append(f"Minimum Viable Utilization ({MIN_VIABLE_UTILIZATION:g}%)")
    rules.append(f"Fill Rate Threshold ({params.fill_rate_threshold:g}%)")
    rules.append(optimization_rule(params))

    if viable:
        chosen = viable[0]
        confidence = chosen.confidence
        alternatives = [a.as_alternative() for a in viable[1 : 1 + MAX_ALTERNATIVES]]
    else:
        chosen = fitting[0]
        confidence = fallback_confidence(chosen.confidence)
        alternatives = [a.as_alternative() for a in fitting[1 : 1 + MAX_ALTERNATIVES]]
        rules.append(FALLBACK_RULE)
        sink.emit(
            logging.INFO,
            FALLBACK_RULE,
            box_id=chosen.box.id,
            utilization=round(chosen.utilization, 1),
        )

    largest = max(suitable, key=lambda b: b.volume)
    savings = max(0.0, largest.cost - chosen.box.cost)

    rules.append("Dimensional Weight Calculation")
    rules.append("Item Fit Validation")

    return CartonizationResult(
        recommended_box=chosen.box,
        utilization=chosen.utilization,
        items_fit=True,
        total_weight=total_weight,
        total_volume=total_volume,
        dimensional_weight=chosen.dimensional_weight,
        savings=savings,
        confidence=confidence,
        alternatives=alternatives,
        rules_applied=rules,
        processing_time=(time.perf_counter() - started) * 1000,
    )


def single_box_alternatives(
    single: Optional[CartonizationResult], exclude_box_id: str
) -> List[BoxAlternative]:
    """
    Single boxes that still take the whole order: the outvoted single-box
    pick first, then its own alternatives.
    """
    if single is None:
        return []
    candidates = [
        BoxAlternative(
            box=single.recommended_box,
            utilization=single.utilization,
            cost=single.recommended_box.cost,
            confidence=single.confidence,
        )
    ] + list(single.alternatives)
    return [alt for alt in candidates if alt.box.id != exclude_box_id][:MAX_ALTERNATIVES]


def from_multi_package(
    multi: MultiPackageCartonizationResult,
    total_weight: float,
    total_volume: float,
    extra_rules: Sequence[str] = (),
    processing_time: float = 0.0,
    alternatives: Sequence[BoxAlternative] = (),
) -> CartonizationResult:
    """
    Recommended-box view of a multi-package plan: the first package's box
    stands in as the recommendation, items_fit is False because the order
    does not fit in that box alone. `alternatives` are single boxes that do
    take the whole order, when the single-box pass found any.
    """
    first = multi.packages[0]
    return CartonizationResult(
        recommended_box=first.box,
        utilization=first.utilization,
        items_fit=False,
        total_weight=total_weight,
        total_volume=total_volume,
        dimensional_weight=first.dimensional_weight,
        savings=0.0,
        confidence=multi.confidence,
        alternatives=list(alternatives),
        rules_applied=list(multi.rules_applied) + list(extra_rules),
        processing_time=processing_time,
        multi_package_result=multi,
    )


def select_single_box(
    items: Sequence[Item],
    boxes: Sequence[Box],
    params: Optional[CartonizationParameters] = None,
    enable_multi_package: bool = False,
    objective: str = "balanced",
    sink: Optional[DiagnosticsSink] = None,
) -> Optional[CartonizationResult]:
    """
    Recommend a container for `items` from the `boxes` catalog.

    Out-of-stock boxes are ignored. When `enable_multi_package` is set or no
    single box works, the multi-package splitter runs with `objective`; a
    single-box answer is kept over a multi-package one only at confidence
    >= 75.

    Returns None when nothing in the catalog can ship the order.
    """
    sink = resolve_sink(sink)
    params = params or DEFAULT_PARAMETERS
    started = time.perf_counter()

    catalog = [b for b in boxes if b.in_stock > 0]
    if not items or not catalog:
        return None

    single = choose_single_box(items, catalog, params, sink, started)
    if single is not None and not enable_multi_package:
        return single

    multi = split_and_pack(items, catalog, params, objective, sink)
    elapsed = (time.perf_counter() - started) * 1000

    if multi is None:
        if single is not None:
            single.processing_time = elapsed
        return single

    if single is not None and single.confidence >= SINGLE_BOX_PREFERENCE:
        single.multi_package_result = multi
        single.rules_applied.append("Multi-Package Comparison")
        single.processing_time = elapsed
        return single

    total_weight, total_volume = items_metrics(items)
    extra = ["Multi-Package Recommendation"]
    if single is not None:
        extra.insert(0, f"Single Box Confidence Below {SINGLE_BOX_PREFERENCE}")
    return from_multi_package(
        multi,
        total_weight,
        total_volume,
        extra,
        elapsed,
        alternatives=single_box_alternatives(single, multi.packages[0].box.id),
    )


# ----------------------------
# Summary helpers
# ----------------------------


def format_cartonization_summary(result: CartonizationResult) -> str:
    """Human-friendly multi-line summary of a recommendation."""
    box = result.recommended_box
    lines = [
        f"Recommended box: {box.name} ({box.length}x{box.width}x{box.height})",
        f" Utilization: {result.utilization:.1f}%",
        f" Confidence: {result.confidence:.0f}",
        f" Total weight: {result.total_weight:.2f} lbs",
        f" Dimensional weight: {result.dimensional_weight:.2f} lbs",
        f" Savings: ${result.savings:.2f}",
    ]
    if result.alternatives:
        lines.append(" Alternatives:")
        for alt in result.alternatives:
            lines.append(
                f" - {alt.box.name}: {alt.utilization:.1f}% utilization, "
                f"${alt.cost:.2f}, confidence {alt.confidence:.0f}"
            )
    multi = result.multi_package_result
    if multi is not None and not result.items_fit:
        lines.append(
            f" Multi-package plan: {multi.total_packages} packages "
            f"({multi.splitting_strategy} strategy, ${multi.total_cost:.2f})"
        )
        for number, pkg in enumerate(multi.packages, start=1):
            units = sum(it.quantity for it in pkg.assigned_items)
            lines.append(f" - Package {number}: {pkg.box.name}, {units} units")
    lines.append(" Rules applied:")
    lines.extend(f" - {rule}" for rule in result.rules_applied)
    return "\n".join(lines)


def print_cartonization_summary(result: Optional[CartonizationResult]) -> None:
    """
    Print a human-friendly cartonization summary to stdout.
    """
    if result is None:
        print("No viable packaging found for these items.")
        return
    print(format_cartonization_summary(result))


__all__ = [
    "FALLBACK_RULE",
    "BoxAnalysis",
    "size_bonus",
    "analyze_boxes",
    "rank_analyses",
    "fallback_confidence",
    "choose_single_box",
    "single_box_alternatives",
    "from_multi_package",
    "select_single_box",
    "format_cartonization_summary",
    "print_cartonization_summary",
]
