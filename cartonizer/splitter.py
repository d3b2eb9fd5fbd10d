# cartonizer/splitter.py
"""
Multi-package splitting.

When no single container can take an order (too heavy, too bulky) the items
are partitioned into groups, each group gets the smallest box the packer
accepts, and the partitionings are compared by an optimization objective.

Five partitioning strategies compete:
- weight: greedy fill up to the package weight cap, heaviest lines first
- volume: greedy fill up to 80% of the median catalog box volume
- category: one group per item category
- fragility: one group per fragility tier
- hybrid: high-fragility items weight-split apart from everything else

The module also carries the helpers used when an operator edits a proposed
multi-package solution by hand (replace_package, add_manual_package).
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from functools import cmp_to_key
from math import ceil
from typing import Dict, List, Optional, Sequence

from .config import DEFAULT_PARAMETERS
from .diagnostics import DiagnosticsSink, resolve_sink
from .models import (
    OBJECTIVES,
    Box,
    CartonizationParameters,
    Item,
    MultiPackageCartonizationResult,
    PackageRecommendation,
    PackingResult,
)
from .packing import pack
from .scoring import calculate_confidence, dimensional_weight, items_metrics

STRATEGIES = ("weight", "volume", "category", "fragility", "hybrid")

VOLUME_TARGET_SHARE = 0.8
# Used only when the catalog is empty.
DEFAULT_TARGET_VOLUME = 1000.0
# Cost differences up to this many dollars count as a tie for minimize_cost.
COST_TIE_BAND = 5.0
MAX_ALTERNATIVES = 3

OBJECTIVE_RULES: Dict[str, str] = {
    "minimize_packages": "Minimize Package Count Objective",
    "minimize_cost": "Minimize Total Cost Objective",
    "balanced": "Balanced Optimization Objective",
}

# ----------------------------
# Splitting strategies
# ----------------------------


def split_by_weight(items: Sequence[Item], max_weight: float) -> List[List[Item]]:
    """
    Heaviest lines first, accumulate until the next line would break
    `max_weight`. A line that is over the cap on its own and has several
    units is cut into quantity-limited copies.
    """
    groups: List[List[Item]] = []
    current: List[Item] = []
    current_weight = 0.0

    for item in sorted(items, key=lambda it: it.total_weight, reverse=True):
        item_weight = item.total_weight

        if current_weight + item_weight <= max_weight:
            current.append(item)
            current_weight += item_weight
            continue

        if current:
            groups.append(current)
            current = []
            current_weight = 0.0

        if item_weight > max_weight and item.quantity > 1:
            per_package = max(1, int(max_weight // item.weight))
            remaining = item.quantity
            while remaining > 0:
                qty = min(per_package, remaining)
                groups.append([replace(item, quantity=qty)])
                remaining -= qty
        else:
            current = [item]
            current_weight = item_weight

    if current:
        groups.append(current)

    return groups


def target_group_volume(boxes: Sequence[Box]) -> float:
    """80% of the volume of the median box (ascending by volume)."""
    if not boxes:
        return DEFAULT_TARGET_VOLUME * VOLUME_TARGET_SHARE
    ordered = sorted(boxes, key=lambda b: b.volume)
    return ordered[len(ordered) // 2].volume * VOLUME_TARGET_SHARE


def split_by_volume(items: Sequence[Item], boxes: Sequence[Box]) -> List[List[Item]]:
    target = target_group_volume(boxes)
    groups: List[List[Item]] = []
    current: List[Item] = []
    current_volume = 0.0

    for item in items:
        item_volume = item.total_volume
        if current_volume + item_volume <= target:
            current.append(item)
            current_volume += item_volume
        else:
            if current:
                groups.append(current)
            current = [item]
            current_volume = item_volume

    if current:
        groups.append(current)

    return groups


def _group_by(items: Sequence[Item], key, default: str) -> List[List[Item]]:
    grouped: Dict[str, List[Item]] = {}
    for item in items:
        grouped.setdefault(key(item) or default, []).append(item)
    return list(grouped.values())


def split_by_category(items: Sequence[Item]) -> List[List[Item]]:
    return _group_by(items, lambda it: it.category, "general")


def split_by_fragility(items: Sequence[Item]) -> List[List[Item]]:
    return _group_by(items, lambda it: it.fragility, "low")


def split_by_hybrid(items: Sequence[Item], max_weight: float) -> List[List[Item]]:
    fragile = [it for it in items if it.fragility == "high"]
    others = [it for it in items if it.fragility != "high"]

    groups: List[List[Item]] = []
    if fragile:
        groups.extend(split_by_weight(fragile, max_weight))
    if others:
        groups.extend(split_by_weight(others, max_weight))
    return groups


def split_items(
    items: Sequence[Item],
    strategy: str,
    boxes: Sequence[Box],
    params: CartonizationParameters,
) -> List[List[Item]]:
    if strategy == "weight":
        return split_by_weight(items, params.max_package_weight)
    if strategy == "volume":
        return split_by_volume(items, boxes)
    if strategy == "category":
        return split_by_category(items)
    if strategy == "fragility":
        return split_by_fragility(items)
    if strategy == "hybrid":
        return split_by_hybrid(items, params.max_package_weight)
    raise ValueError(f"Unknown splitting strategy {strategy!r}. Valid: {list(STRATEGIES)}")


def bisect_group(group: Sequence[Item]) -> List[List[Item]]:
    """Split a group in two by list order (first half gets the extra line)."""
    midpoint = ceil(len(group) / 2)
    return [list(group[:midpoint]), list(group[midpoint:])]


# ----------------------------
# Per-group box selection
# ----------------------------


def build_package(
    items: Sequence[Item],
    box: Box,
    params: CartonizationParameters = DEFAULT_PARAMETERS,
    packing_result: Optional[PackingResult] = None,
    sink: Optional[DiagnosticsSink] = None,
) -> PackageRecommendation:
    """
    Score `items` shipped in `box`. The packer is run unless a result for the
    same pair is supplied. When the packer fails, utilization falls back to
    the raw volume ratio so a hand-made assignment can still be reviewed.
    """
    if packing_result is None:
        packing_result = pack(items, box, sink)

    weight, volume = items_metrics(items)
    if packing_result.success:
        utilization = packing_result.used_volume / box.volume * 100
    else:
        utilization = min(100.0, volume / box.volume * 100)

    return PackageRecommendation(
        box=box,
        assigned_items=list(items),
        utilization=utilization,
        package_weight=weight,
        package_volume=volume,
        dimensional_weight=dimensional_weight(box, params.dimensional_weight_factor),
        confidence=calculate_confidence(
            utilization, weight, box, packing_result.packing_efficiency
        ),
        packing_result=packing_result,
    )


def find_box_for_group(
    group: Sequence[Item],
    boxes: Sequence[Box],
    params: CartonizationParameters,
    sink: Optional[DiagnosticsSink] = None,
) -> Optional[PackageRecommendation]:
    """Smallest box (by volume) that carries the group weight and packs it."""
    sink = resolve_sink(sink)
    group_weight, group_volume = items_metrics(group)

    candidates = sorted(
        (b for b in boxes if b.max_weight >= group_weight), key=lambda b: b.volume
    )
    for box in candidates:
        result = pack(group, box, sink)
        if result.success:
            package = build_package(group, box, params, packing_result=result)
            sink.emit(
                logging.DEBUG,
                f"Group of {len(group)} lines goes in {box.name}",
                box_id=box.id,
                utilization=round(package.utilization, 1),
            )
            return package

    sink.emit(
        logging.DEBUG,
        "No box fits group",
        lines=len(group),
        weight=group_weight,
        volume=group_volume,
    )
    return None


# ----------------------------
# Strategy evaluation
# ----------------------------


def summarize_packages(
    packages: List[PackageRecommendation],
    strategy: str,
    objective: str,
    rules_applied: List[str],
    processing_time: float = 0.0,
) -> MultiPackageCartonizationResult:
    confidence = (
        round(sum(p.confidence for p in packages) / len(packages)) if packages else 0
    )
    return MultiPackageCartonizationResult(
        packages=packages,
        total_packages=len(packages),
        total_weight=sum(p.package_weight for p in packages),
        total_volume=sum(p.package_volume for p in packages),
        total_cost=sum(p.box.cost for p in packages),
        splitting_strategy=strategy,
        optimization_objective=objective,
        confidence=confidence,
        alternatives=[],
        rules_applied=rules_applied,
        processing_time=processing_time,
    )


def pack_with_strategy(
    items: Sequence[Item],
    strategy: str,
    boxes: Sequence[Box],
    params: CartonizationParameters,
    objective: str,
    sink: Optional[DiagnosticsSink] = None,
    started: Optional[float] = None,
) -> Optional[MultiPackageCartonizationResult]:
    """
    Partition `items` with `strategy` and box every group. A group no box can
    take is bisected once; if either half still fails the strategy fails.
    """
    sink = resolve_sink(sink)
    started = time.perf_counter() if started is None else started

    groups = split_items(items, strategy, boxes, params)
    if not groups:
        return None

    rules = [f"{strategy.capitalize()} Splitting Strategy"]
    packages: List[PackageRecommendation] = []

    for index, group in enumerate(groups, start=1):
        package = find_box_for_group(group, boxes, params, sink)
        if package is not None:
            packages.append(package)
            continue

        if len(group) <= 1:
            sink.emit(
                logging.INFO,
                f"Strategy {strategy} failed: group {index} cannot be packed",
            )
            return None

        for half in bisect_group(group):
            sub_package = find_box_for_group(half, boxes, params, sink)
            if sub_package is None:
                sink.emit(
                    logging.INFO,
                    f"Strategy {strategy} failed: group {index} cannot be packed after subdivision",
                )
                return None
            packages.append(sub_package)
        if "Automatic Group Subdivision" not in rules:
            rules.append("Automatic Group Subdivision")

    if not packages:
        return None

    rules.append(OBJECTIVE_RULES[objective])
    return summarize_packages(
        packages,
        strategy,
        objective,
        rules,
        processing_time=(time.perf_counter() - started) * 1000,
    )


# ----------------------------
# Objective-based selection
# ----------------------------


def balanced_score(result: MultiPackageCartonizationResult) -> float:
    return (
        result.confidence * 0.4
        + (10 - result.total_packages) * 5
        + (100 - result.total_cost) * 0.3
    )


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def rank_results(
    results: Sequence[MultiPackageCartonizationResult], objective: str
) -> List[MultiPackageCartonizationResult]:
    """
    Order successful strategies best first. Ties keep strategy order
    (weight, volume, category, fragility, hybrid).
    """

    def compare(a: MultiPackageCartonizationResult, b: MultiPackageCartonizationResult) -> int:
        if objective == "minimize_packages":
            if a.total_packages != b.total_packages:
                return a.total_packages - b.total_packages
            return _sign(a.total_cost - b.total_cost)
        if objective == "minimize_cost":
            if abs(a.total_cost - b.total_cost) > COST_TIE_BAND:
                return _sign(a.total_cost - b.total_cost)
            return a.total_packages - b.total_packages
        return _sign(balanced_score(b) - balanced_score(a))

    return sorted(results, key=cmp_to_key(compare))


def split_and_pack(
    items: Sequence[Item],
    boxes: Sequence[Box],
    params: Optional[CartonizationParameters] = None,
    objective: str = "minimize_packages",
    sink: Optional[DiagnosticsSink] = None,
) -> Optional[MultiPackageCartonizationResult]:
    """
    Run every splitting strategy and return the best full solution for
    `objective`, with up to three runner-up solutions as alternatives.

    Returns None when the item list or the in-stock catalog is empty, or when
    no strategy can box every group (the order cannot ship with the current
    catalog and weight limits).
    """
    if objective not in OBJECTIVES:
        raise ValueError(f"Unknown optimization objective {objective!r}. Valid: {list(OBJECTIVES)}")

    sink = resolve_sink(sink)
    params = params or DEFAULT_PARAMETERS
    started = time.perf_counter()

    catalog = [b for b in boxes if b.in_stock > 0]
    if not items or not catalog:
        return None

    sink.emit(
        logging.INFO,
        f"Multi-package cartonization for {len(items)} lines",
        objective=objective,
        boxes=len(catalog),
    )

    results: List[MultiPackageCartonizationResult] = []
    for strategy in STRATEGIES:
        result = pack_with_strategy(items, strategy, catalog, params, objective, sink, started)
        if result is not None:
            results.append(result)

    if not results:
        sink.emit(logging.INFO, "No viable multi-package solution found")
        return None

    ranked = rank_results(results, objective)
    best = ranked[0]
    best.alternatives = ranked[1 : 1 + MAX_ALTERNATIVES]
    best.processing_time = (time.perf_counter() - started) * 1000

    sink.emit(
        logging.INFO,
        f"Multi-package solution: {best.total_packages} packages using {best.splitting_strategy} strategy",
        total_cost=best.total_cost,
        confidence=best.confidence,
    )
    return best


# ----------------------------
# Manual editing helpers
# ----------------------------


def replace_package(
    result: MultiPackageCartonizationResult,
    index: int,
    package: PackageRecommendation,
) -> MultiPackageCartonizationResult:
    """Return a copy of `result` with package `index` swapped and totals recomputed."""
    if not 0 <= index < len(result.packages):
        raise IndexError(f"Package index {index} out of range")
    packages = list(result.packages)
    packages[index] = package
    rules = list(result.rules_applied)
    if "Manual Package Edit" not in rules:
        rules.append("Manual Package Edit")
    return _with_packages(result, packages, rules)


def add_manual_package(
    result: MultiPackageCartonizationResult,
    boxes: Sequence[Box],
    params: CartonizationParameters = DEFAULT_PARAMETERS,
) -> MultiPackageCartonizationResult:
    """Append an empty package in the smallest in-stock box."""
    catalog = sorted((b for b in boxes if b.in_stock > 0), key=lambda b: b.volume)
    if not catalog:
        raise ValueError("No boxes available for a new package")
    packages = list(result.packages) + [build_package([], catalog[0], params)]
    rules = list(result.rules_applied) + ["Manual Package Addition"]
    return _with_packages(result, packages, rules)


def _with_packages(
    result: MultiPackageCartonizationResult,
    packages: List[PackageRecommendation],
    rules: List[str],
) -> MultiPackageCartonizationResult:
    summary = summarize_packages(
        packages,
        result.splitting_strategy,
        result.optimization_objective,
        rules,
        processing_time=result.processing_time,
    )
    summary.alternatives = list(result.alternatives)
    return summary


__all__ = [
    "STRATEGIES",
    "split_by_weight",
    "split_by_volume",
    "split_by_category",
    "split_by_fragility",
    "split_by_hybrid",
    "split_items",
    "bisect_group",
    "build_package",
    "find_box_for_group",
    "pack_with_strategy",
    "rank_results",
    "split_and_pack",
    "replace_package",
    "add_manual_package",
]
