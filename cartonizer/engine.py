# cartonizer/engine.py
"""
Immutable engine wrapper: an in-stock box catalog plus parameters, fixed at
construction. Safe to share between callers; every call works on its own
scratch state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from .config import DEFAULT_PARAMETERS, build_parameters
from .diagnostics import DiagnosticsSink
from .models import (
    Box,
    CartonizationParameters,
    CartonizationResult,
    Item,
    MultiPackageCartonizationResult,
)
from .selector import select_single_box
from .splitter import split_and_pack


@dataclass(frozen=True)
class Scenario:
    """
    A what-if run. Destination, carrier and service level are carried into
    the rules trail for the record; they do not change the box decision.
    """

    items: List[Item]
    destination: Optional[str] = None
    carrier: Optional[str] = None
    service_level: Optional[str] = None


@dataclass(frozen=True)
class CartonizationEngine:
    boxes: Tuple[Box, ...]
    parameters: CartonizationParameters = field(default=DEFAULT_PARAMETERS)

    def __post_init__(self) -> None:
        object.__setattr__(self, "boxes", tuple(b for b in self.boxes if b.in_stock > 0))

    @classmethod
    def create(
        cls,
        boxes: Sequence[Box],
        parameters: Union[CartonizationParameters, Mapping[str, Any], None] = None,
    ) -> "CartonizationEngine":
        """Build an engine from a catalog and full or partial parameters."""
        if isinstance(parameters, CartonizationParameters):
            params = parameters
        else:
            params = build_parameters(parameters)
        return cls(boxes=tuple(boxes), parameters=params)

    def calculate_optimal_box(
        self,
        items: Sequence[Item],
        enable_multi_package: bool = False,
        objective: str = "balanced",
        sink: Optional[DiagnosticsSink] = None,
    ) -> Optional[CartonizationResult]:
        return select_single_box(
            items,
            self.boxes,
            self.parameters,
            enable_multi_package=enable_multi_package,
            objective=objective,
            sink=sink,
        )

    def calculate_multi_package(
        self,
        items: Sequence[Item],
        objective: str = "minimize_packages",
        sink: Optional[DiagnosticsSink] = None,
    ) -> Optional[MultiPackageCartonizationResult]:
        return split_and_pack(items, self.boxes, self.parameters, objective, sink)

    def run_scenario(
        self, scenario: Scenario, sink: Optional[DiagnosticsSink] = None
    ) -> Optional[CartonizationResult]:
        result = self.calculate_optimal_box(scenario.items, sink=sink)
        if result is None:
            return None
        for label, value in (
            ("Destination", scenario.destination),
            ("Carrier", scenario.carrier),
            ("Service Level", scenario.service_level),
        ):
            if value:
                result.rules_applied.append(f"Scenario {label}: {value}")
        return result


__all__ = ["CartonizationEngine", "Scenario"]
