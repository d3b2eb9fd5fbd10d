# cartonizer/packing.py
"""
Geometric packer: can these items go into this box?

This module provides:
- cheap feasibility pre-checks (any-orientation fit, longest-dimension
  margin warning, volume reality check)
- a largest-first greedy placement with guillotine space splitting and a
  6-orientation search per free space: pack
- FreeSpaceArena, the index-based list of free regions used while packing

It is a heuristic: exact 3D bin packing is NP-hard, and a box rejected here
might still be packable by hand. Inputs are never mutated.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from .diagnostics import DiagnosticsSink, resolve_sink
from .models import Box, FreeSpace, Item, PackedItem, PackingResult

Dims = Tuple[float, float, float]

# Share of a box volume that real-world packing reaches at best.
PRACTICAL_PACKING_FACTOR = 0.75
# Items longer than this share of the box's longest side are flagged.
LONGEST_DIMENSION_MARGIN = 0.95

# ----------------------------
# Geometry helpers
# ----------------------------


def orientations_of(item: Item) -> List[Tuple[Dims, bool]]:
    """
    Return the 6 axis-aligned orientations (l, w, h) of an item together with
    a `rotated` flag. Order is fixed (LWH, LHW, WLH, WHL, HLW, HWL) and
    duplicates are kept so the search order never depends on item shape.
    """
    L, W, H = item.length, item.width, item.height
    return [
        ((L, W, H), False),
        ((L, H, W), True),
        ((W, L, H), True),
        ((W, H, L), True),
        ((H, L, W), True),
        ((H, W, L), True),
    ]


def expand_items(items: Sequence[Item]) -> List[Item]:
    """
    Expand items with quantity > 1 into unit items. Expanded copies keep the
    line id and name, which is what the packed-item report shows.
    """
    expanded: List[Item] = []
    for it in items:
        for _ in range(it.quantity):
            expanded.append(
                Item(
                    id=it.id,
                    name=it.name,
                    length=it.length,
                    width=it.width,
                    height=it.height,
                    weight=it.weight,
                    quantity=1,
                    fragility=it.fragility,
                    category=it.category,
                )
            )
    return expanded


def split_space(space: FreeSpace, dims: Dims) -> List[FreeSpace]:
    """
    Guillotine split of `space` after placing an item of oriented `dims` at
    its origin. Returns up to three children sorted ascending by volume:
    right (rest of the length), behind (rest of the width) and above (rest
    of the height).
    """
    l, w, h = dims
    children: List[FreeSpace] = []

    if l < space.length:
        children.append(
            FreeSpace(
                x=space.x + l,
                y=space.y,
                z=space.z,
                length=space.length - l,
                width=space.width,
                height=space.height,
            )
        )
    if w < space.width:
        children.append(
            FreeSpace(
                x=space.x,
                y=space.y + w,
                z=space.z,
                length=l,
                width=space.width - w,
                height=space.height,
            )
        )
    if h < space.height:
        children.append(
            FreeSpace(
                x=space.x,
                y=space.y,
                z=space.z + h,
                length=l,
                width=w,
                height=space.height - h,
            )
        )

    return sorted(children, key=lambda s: s.volume)


class FreeSpaceArena:
    """
    Ordered free regions of one box, addressed by index.

    The scan order is the list order: children of a consumed space take its
    slot, so small leftovers next to recent placements are tried first.
    """

    def __init__(self, box: Box) -> None:
        self.spaces: List[FreeSpace] = [
            FreeSpace(0.0, 0.0, 0.0, box.length, box.width, box.height)
        ]

    def __len__(self) -> int:
        return len(self.spaces)

    def __getitem__(self, index: int) -> FreeSpace:
        return self.spaces[index]

    def remove(self, index: int) -> FreeSpace:
        return self.spaces.pop(index)

    def insert(self, index: int, spaces: Sequence[FreeSpace]) -> None:
        self.spaces[index:index] = list(spaces)

    def first_fit(self, item: Item) -> Optional[Tuple[int, Dims, bool]]:
        """
        Find the first space (in arena order) accepting any orientation of
        `item`. Returns (space_index, oriented_dims, rotated) or None.
        """
        oris = orientations_of(item)
        for index, space in enumerate(self.spaces):
            for dims, rotated in oris:
                if space.fits(dims):
                    return index, dims, rotated
        return None

    def place(self, item: Item) -> Optional[PackedItem]:
        """
        Place `item` in the first fitting space and split that space.
        Returns the PackedItem, or None if no space accepts the item.
        """
        found = self.first_fit(item)
        if found is None:
            return None
        index, dims, rotated = found
        space = self.remove(index)
        self.insert(index, split_space(space, dims))
        l, w, h = dims
        return PackedItem(
            item=item,
            position=(space.x, space.y, space.z),
            length=l,
            width=w,
            height=h,
            rotated=rotated,
        )


# ----------------------------
# Pre-checks
# ----------------------------


def item_fits_any_orientation(item: Item, box: Box) -> bool:
    """
    Compare sorted item dimensions with sorted box dimensions. If this fails
    no rotation can ever make the item fit.
    """
    item_dims = sorted((item.length, item.width, item.height), reverse=True)
    return all(i <= b for i, b in zip(item_dims, box.sorted_dimensions))


def expected_utilization(items: Sequence[Item], box: Box) -> float:
    """
    Theoretical volume ratio divided by the practical packing factor. Values
    above 1.0 mean the items cannot be packed in practice.
    """
    total_volume = sum(it.total_volume for it in items)
    return (total_volume / box.volume) / PRACTICAL_PACKING_FACTOR


def _failure(reason: str) -> PackingResult:
    return PackingResult(
        success=False,
        packed_items=[],
        used_volume=0.0,
        packing_efficiency=0.0,
        failure_reason=reason,
    )


def precheck(
    items: Sequence[Item], box: Box, sink: Optional[DiagnosticsSink] = None
) -> Optional[str]:
    """
    Run the cheap rejection checks. Returns a failure reason, or None when
    the expensive placement is worth running.
    """
    sink = resolve_sink(sink)
    longest_box_side = box.sorted_dimensions[0]

    for it in items:
        if not item_fits_any_orientation(it, box):
            return (
                f"Item {it.name} ({it.length}x{it.width}x{it.height}) exceeds "
                f"box {box.name} ({box.length}x{box.width}x{box.height}) in every orientation"
            )
        longest_item_side = max(it.length, it.width, it.height)
        if longest_item_side > longest_box_side * LONGEST_DIMENSION_MARGIN:
            sink.emit(
                logging.WARNING,
                f"Item {it.name} uses more than 95% of the longest side of box {box.name}",
                item_id=it.id,
                box_id=box.id,
                item_longest=longest_item_side,
                box_longest=longest_box_side,
            )

    expected = expected_utilization(items, box)
    if expected > 1.0:
        return (
            f"Expected utilization {expected * 100:.1f}% in box {box.name} exceeds "
            f"100% after the {PRACTICAL_PACKING_FACTOR:.0%} practical packing factor"
        )
    return None


# ----------------------------
# Packer
# ----------------------------


def pack(
    items: Sequence[Item], box: Box, sink: Optional[DiagnosticsSink] = None
) -> PackingResult:
    """
    Try to place every unit of `items` into `box`.

    Unit items are placed largest volume first, each into the first free
    space that accepts one of its 6 orientations. There is no backtracking:
    one unplaceable unit fails the whole box.
    """
    sink = resolve_sink(sink)

    reason = precheck(items, box, sink)
    if reason is not None:
        sink.emit(logging.DEBUG, "Pre-check rejected box", box_id=box.id, reason=reason)
        return _failure(reason)

    units = sorted(expand_items(items), key=lambda it: it.volume, reverse=True)
    arena = FreeSpaceArena(box)
    packed: List[PackedItem] = []

    sink.emit(
        logging.DEBUG,
        f"Packing {len(units)} units into box {box.name}",
        box_id=box.id,
        box_dims=(box.length, box.width, box.height),
    )

    for unit in units:
        placed = arena.place(unit)
        if placed is None:
            reason = (
                f"Could not place item {unit.name} "
                f"({unit.length}x{unit.width}x{unit.height}) in box {box.name}"
            )
            sink.emit(logging.DEBUG, reason, box_id=box.id, item_id=unit.id)
            return _failure(reason)
        packed.append(placed)

    used_volume = sum(p.volume for p in packed)
    efficiency = used_volume / box.volume

    sink.emit(
        logging.DEBUG,
        f"Packed all {len(packed)} units into box {box.name}",
        box_id=box.id,
        used_volume=used_volume,
        packing_efficiency=round(efficiency, 4),
    )

    return PackingResult(
        success=True,
        packed_items=packed,
        used_volume=used_volume,
        packing_efficiency=efficiency,
    )


__all__ = [
    "PRACTICAL_PACKING_FACTOR",
    "LONGEST_DIMENSION_MARGIN",
    "orientations_of",
    "expand_items",
    "split_space",
    "FreeSpaceArena",
    "item_fits_any_orientation",
    "expected_utilization",
    "precheck",
    "pack",
]
