# cartonizer/models.py
"""
Core datamodels for cartonizer.

This module provides:
- Dataclass-based core models used by the packer, the selector and the
  splitter (geometry + shipping attributes, no framework dependencies).
- Pydantic models used for API input/output (serialization & validation).
- Small conversion helpers between dataclasses and pydantic models.

Units follow the shipping conventions of the box catalog: inches for
dimensions, pounds for weights, dollars for costs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

Fragility = Literal["low", "medium", "high"]
ContainerType = Literal["box", "poly_bag", "envelope", "tube", "custom"]
Objective = Literal["minimize_packages", "minimize_cost", "balanced"]

FRAGILITY_TIERS: Tuple[str, ...] = ("low", "medium", "high")
CONTAINER_TYPES: Tuple[str, ...] = ("box", "poly_bag", "envelope", "tube", "custom")
OBJECTIVES: Tuple[str, ...] = ("minimize_packages", "minimize_cost", "balanced")

# ----------------------------
# Dataclass core models
# ----------------------------


@dataclass
class Item:
    """
    Item to ship. 'quantity' can be > 1 (it is expanded by the packer).

    Attributes:
    - id, name: identifiers of the order line
    - length, width, height: dimensions in inches
    - weight: unit weight in pounds
    - quantity: number of identical units
    - fragility: optional tier used by the multi-package splitter
    - category: optional grouping key used by the multi-package splitter
    """

    id: str
    name: str
    length: float
    width: float
    height: float
    weight: float
    quantity: int = 1
    fragility: Optional[Fragility] = None
    category: Optional[str] = None

    def __post_init__(self) -> None:
        for attr in ("length", "width", "height", "weight"):
            if getattr(self, attr) <= 0:
                raise ValueError(f"Item {self.id!r}: {attr} must be positive")
        if self.quantity < 1:
            raise ValueError(f"Item {self.id!r}: quantity must be >= 1")
        if self.fragility is not None and self.fragility not in FRAGILITY_TIERS:
            raise ValueError(f"Item {self.id!r}: unknown fragility {self.fragility!r}")

    @property
    def volume(self) -> float:
        """Unit volume (length * width * height)."""
        return self.length * self.width * self.height

    @property
    def total_weight(self) -> float:
        return self.weight * self.quantity

    @property
    def total_volume(self) -> float:
        return self.volume * self.quantity


@dataclass
class Box:
    """
    Shipping container from the catalog.

    in_stock: units on hand; only boxes with in_stock > 0 are candidates.
    cost: material cost of one container.
    """

    id: str
    name: str
    length: float
    width: float
    height: float
    max_weight: float
    cost: float
    in_stock: int
    container_type: ContainerType = "box"
    sku: Optional[str] = None

    def __post_init__(self) -> None:
        for attr in ("length", "width", "height", "max_weight"):
            if getattr(self, attr) <= 0:
                raise ValueError(f"Box {self.id!r}: {attr} must be positive")
        if self.cost < 0:
            raise ValueError(f"Box {self.id!r}: cost cannot be negative")
        if self.in_stock < 0:
            raise ValueError(f"Box {self.id!r}: in_stock cannot be negative")
        if self.container_type not in CONTAINER_TYPES:
            raise ValueError(
                f"Box {self.id!r}: unknown container_type {self.container_type!r}"
            )

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height

    @property
    def sorted_dimensions(self) -> Tuple[float, float, float]:
        """Dimensions sorted descending, independent of how the box is listed."""
        a, b, c = sorted((self.length, self.width, self.height), reverse=True)
        return a, b, c


@dataclass(frozen=True)
class CartonizationParameters:
    """
    Tuning knobs of one engine run. Immutable once built.

    - fill_rate_threshold: target fill rate in percent (recorded as a rule)
    - max_package_weight: weight cap of a single package in pounds
    - dimensional_weight_factor: carrier divisor (cubic inches per pound)
    - packing_efficiency: packing efficiency target in percent
    """

    fill_rate_threshold: float = 75.0
    max_package_weight: float = 50.0
    dimensional_weight_factor: float = 139.0
    packing_efficiency: float = 85.0
    allow_partial_fill: bool = True
    optimize_for_cost: bool = True
    optimize_for_space: bool = False

    def __post_init__(self) -> None:
        if self.max_package_weight <= 0:
            raise ValueError("max_package_weight must be positive")
        if self.dimensional_weight_factor <= 0:
            raise ValueError("dimensional_weight_factor must be positive")


@dataclass
class PackedItem:
    """
    Unit item placed inside a box.

    - position: (x, y, z) of the item's minimum corner
    - length, width, height: dimensions in the chosen orientation
    - rotated: False only for the item's native orientation
    """

    item: Item
    position: Tuple[float, float, float]
    length: float
    width: float
    height: float
    rotated: bool = False

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height


@dataclass
class FreeSpace:
    """Axis-aligned empty region of a box, used only while packing."""

    x: float
    y: float
    z: float
    length: float
    width: float
    height: float

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height

    def fits(self, dims: Tuple[float, float, float]) -> bool:
        l, w, h = dims
        return l <= self.length and w <= self.width and h <= self.height


@dataclass
class PackingResult:
    """Outcome of one packing attempt of a list of items into one box."""

    success: bool
    packed_items: List[PackedItem] = field(default_factory=list)
    used_volume: float = 0.0
    packing_efficiency: float = 0.0
    failure_reason: Optional[str] = None


@dataclass
class BoxAlternative:
    box: Box
    utilization: float
    cost: float
    confidence: float


@dataclass
class PackageRecommendation:
    """A box with the items assigned to it (one package of a shipment)."""

    box: Box
    assigned_items: List[Item]
    utilization: float
    package_weight: float
    package_volume: float
    dimensional_weight: float
    confidence: float
    packing_result: PackingResult


@dataclass
class MultiPackageCartonizationResult:
    packages: List[PackageRecommendation]
    total_packages: int
    total_weight: float
    total_volume: float
    total_cost: float
    splitting_strategy: str
    optimization_objective: str
    confidence: float
    alternatives: List["MultiPackageCartonizationResult"] = field(default_factory=list)
    rules_applied: List[str] = field(default_factory=list)
    processing_time: float = 0.0


@dataclass
class CartonizationResult:
    """
    Recommended-box view of a cartonization run.

    items_fit is True when every item fits in recommended_box; a result built
    from a multi-package solution carries items_fit=False and the full
    solution in multi_package_result.
    """

    recommended_box: Box
    utilization: float
    items_fit: bool
    total_weight: float
    total_volume: float
    dimensional_weight: float
    savings: float
    confidence: float
    alternatives: List[BoxAlternative] = field(default_factory=list)
    rules_applied: List[str] = field(default_factory=list)
    processing_time: float = 0.0
    multi_package_result: Optional[MultiPackageCartonizationResult] = None


@dataclass
class BoxOpportunity:
    """
    A box not yet stocked that would have won past orders.

    - order_ids: orders for which the box would have been recommended
    - current_cost: summed cost of the boxes those orders use today
    - projected_savings: current_cost minus the box's summed cost, floored at 0
    - efficiency_gain: mean utilization gain in percentage points
    - reasoning: up to three distinct reasons, first seen first
    """

    box: Box
    order_ids: List[str]
    current_cost: float
    projected_savings: float
    efficiency_gain: float
    confidence: float
    reasoning: List[str] = field(default_factory=list)

    @property
    def potential_orders(self) -> int:
        return len(self.order_ids)


# ----------------------------
# Pydantic models for API surface
# ----------------------------

# Input models (Create / Request)


class ItemCreate(BaseModel):
    id: str = Field(..., description="Unique id of the order line / SKU")
    name: str = Field(..., description="Human readable item name")
    length: float = Field(..., gt=0, description="Length in inches")
    width: float = Field(..., gt=0, description="Width in inches")
    height: float = Field(..., gt=0, description="Height in inches")
    weight: float = Field(..., gt=0, description="Unit weight in pounds")
    quantity: int = Field(1, ge=1, description="Number of identical units")
    fragility: Optional[Fragility] = Field(None)
    category: Optional[str] = Field(None)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "SKU-123",
                "name": "Ceramic mug",
                "length": 5.0,
                "width": 4.0,
                "height": 4.5,
                "weight": 0.9,
                "quantity": 2,
                "fragility": "high",
                "category": "kitchen",
            }
        }
    )


class BoxCreate(BaseModel):
    id: str = Field(..., description="Unique id of the box in the catalog")
    name: str = Field(...)
    length: float = Field(..., gt=0)
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    max_weight: float = Field(..., gt=0)
    cost: float = Field(..., ge=0)
    in_stock: int = Field(..., ge=0)
    container_type: ContainerType = Field("box")
    sku: Optional[str] = Field(None)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "BOX-M",
                "name": "Medium Box 12x10x8",
                "length": 12.0,
                "width": 10.0,
                "height": 8.0,
                "max_weight": 50.0,
                "cost": 1.25,
                "in_stock": 40,
                "container_type": "box",
                "sku": "BX-12108",
            }
        }
    )


class ParametersCreate(BaseModel):
    """Partial parameter overrides; unset fields keep the engine defaults."""

    fill_rate_threshold: Optional[float] = Field(None, ge=0, le=100)
    max_package_weight: Optional[float] = Field(None, gt=0)
    dimensional_weight_factor: Optional[float] = Field(None, gt=0)
    packing_efficiency: Optional[float] = Field(None, ge=0, le=100)
    allow_partial_fill: Optional[bool] = Field(None)
    optimize_for_cost: Optional[bool] = Field(None)
    optimize_for_space: Optional[bool] = Field(None)


# Output models (Read / Response)


class BoxRead(BaseModel):
    id: str
    name: str
    length: float
    width: float
    height: float
    max_weight: float
    cost: float
    in_stock: int
    container_type: str
    sku: Optional[str]


class PackedItemRead(BaseModel):
    item_id: str
    item_name: str
    position: Tuple[float, float, float]
    length: float
    width: float
    height: float
    rotated: bool


class PackingResultRead(BaseModel):
    success: bool
    packed_items: List[PackedItemRead]
    used_volume: float
    packing_efficiency: float
    failure_reason: Optional[str] = None


class BoxAlternativeRead(BaseModel):
    box: BoxRead
    utilization: float
    cost: float
    confidence: float


class PackageRecommendationRead(BaseModel):
    box: BoxRead
    assigned_items: List[ItemCreate]
    utilization: float
    package_weight: float
    package_volume: float
    dimensional_weight: float
    confidence: float
    packing_result: PackingResultRead


class MultiPackageResultRead(BaseModel):
    packages: List[PackageRecommendationRead]
    total_packages: int
    total_weight: float
    total_volume: float
    total_cost: float
    splitting_strategy: str
    optimization_objective: str
    confidence: float
    alternatives: List["MultiPackageResultRead"] = Field(default_factory=list)
    rules_applied: List[str]
    processing_time: float


class CartonizationResultRead(BaseModel):
    recommended_box: BoxRead
    utilization: float
    items_fit: bool
    total_weight: float
    total_volume: float
    dimensional_weight: float
    savings: float
    confidence: float
    alternatives: List[BoxAlternativeRead]
    rules_applied: List[str]
    processing_time: float
    multi_package_result: Optional[MultiPackageResultRead] = None


# ----------------------------
# Conversion helpers
# ----------------------------


def itemcreate_to_dataclass(ic: ItemCreate) -> Item:
    """Convert ItemCreate (pydantic) to Item dataclass."""
    return Item(
        id=ic.id,
        name=ic.name,
        length=ic.length,
        width=ic.width,
        height=ic.height,
        weight=ic.weight,
        quantity=ic.quantity,
        fragility=ic.fragility,
        category=ic.category,
    )


def boxcreate_to_dataclass(bc: BoxCreate) -> Box:
    """Convert BoxCreate (pydantic) to Box dataclass."""
    return Box(
        id=bc.id,
        name=bc.name,
        length=bc.length,
        width=bc.width,
        height=bc.height,
        max_weight=bc.max_weight,
        cost=bc.cost,
        in_stock=bc.in_stock,
        container_type=bc.container_type,
        sku=bc.sku,
    )


def item_to_create(item: Item) -> ItemCreate:
    return ItemCreate(
        id=item.id,
        name=item.name,
        length=item.length,
        width=item.width,
        height=item.height,
        weight=item.weight,
        quantity=item.quantity,
        fragility=item.fragility,
        category=item.category,
    )


def box_to_read(box: Box) -> BoxRead:
    """Convert dataclass Box to Pydantic BoxRead."""
    return BoxRead(
        id=box.id,
        name=box.name,
        length=box.length,
        width=box.width,
        height=box.height,
        max_weight=box.max_weight,
        cost=box.cost,
        in_stock=box.in_stock,
        container_type=box.container_type,
        sku=box.sku,
    )


def packing_result_from_dataclass(pr: PackingResult) -> PackingResultRead:
    return PackingResultRead(
        success=pr.success,
        packed_items=[
            PackedItemRead(
                item_id=p.item.id,
                item_name=p.item.name,
                position=p.position,
                length=p.length,
                width=p.width,
                height=p.height,
                rotated=p.rotated,
            )
            for p in pr.packed_items
        ],
        used_volume=pr.used_volume,
        packing_efficiency=pr.packing_efficiency,
        failure_reason=pr.failure_reason,
    )


def package_from_dataclass(pkg: PackageRecommendation) -> PackageRecommendationRead:
    return PackageRecommendationRead(
        box=box_to_read(pkg.box),
        assigned_items=[item_to_create(it) for it in pkg.assigned_items],
        utilization=pkg.utilization,
        package_weight=pkg.package_weight,
        package_volume=pkg.package_volume,
        dimensional_weight=pkg.dimensional_weight,
        confidence=pkg.confidence,
        packing_result=packing_result_from_dataclass(pkg.packing_result),
    )


def multi_package_from_dataclass(
    mp: MultiPackageCartonizationResult,
) -> MultiPackageResultRead:
    """Convert a multi-package result (and its alternatives) to the API model."""
    return MultiPackageResultRead(
        packages=[package_from_dataclass(p) for p in mp.packages],
        total_packages=mp.total_packages,
        total_weight=mp.total_weight,
        total_volume=mp.total_volume,
        total_cost=mp.total_cost,
        splitting_strategy=mp.splitting_strategy,
        optimization_objective=mp.optimization_objective,
        confidence=mp.confidence,
        alternatives=[multi_package_from_dataclass(a) for a in mp.alternatives],
        rules_applied=list(mp.rules_applied),
        processing_time=mp.processing_time,
    )


def cartonization_from_dataclass(cr: CartonizationResult) -> CartonizationResultRead:
    """Convert a CartonizationResult dataclass to the API response model."""
    return CartonizationResultRead(
        recommended_box=box_to_read(cr.recommended_box),
        utilization=cr.utilization,
        items_fit=cr.items_fit,
        total_weight=cr.total_weight,
        total_volume=cr.total_volume,
        dimensional_weight=cr.dimensional_weight,
        savings=cr.savings,
        confidence=cr.confidence,
        alternatives=[
            BoxAlternativeRead(
                box=box_to_read(alt.box),
                utilization=alt.utilization,
                cost=alt.cost,
                confidence=alt.confidence,
            )
            for alt in cr.alternatives
        ],
        rules_applied=list(cr.rules_applied),
        processing_time=cr.processing_time,
        multi_package_result=(
            multi_package_from_dataclass(cr.multi_package_result)
            if cr.multi_package_result is not None
            else None
        ),
    )


MultiPackageResultRead.model_rebuild()
CartonizationResultRead.model_rebuild()

# Expose minimal public API from this module
__all__ = [
    "Item",
    "Box",
    "CartonizationParameters",
    "PackedItem",
    "FreeSpace",
    "PackingResult",
    "BoxAlternative",
    "PackageRecommendation",
    "CartonizationResult",
    "MultiPackageCartonizationResult",
    "BoxOpportunity",
    "ItemCreate",
    "BoxCreate",
    "ParametersCreate",
    "BoxRead",
    "CartonizationResultRead",
    "MultiPackageResultRead",
    "itemcreate_to_dataclass",
    "boxcreate_to_dataclass",
    "cartonization_from_dataclass",
    "multi_package_from_dataclass",
]
