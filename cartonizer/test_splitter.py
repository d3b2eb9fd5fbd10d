"""
Tests for multi-package splitting, objective ranking and manual edits.
"""

import pytest

from cartonizer import models as m
from cartonizer import splitter
from cartonizer.config import build_parameters
from cartonizer.diagnostics import RecordingSink


def make_item(item_id, length, width, height, weight, quantity=1, fragility=None, category=None):
    return m.Item(
        id=item_id,
        name=item_id,
        length=length,
        width=width,
        height=height,
        weight=weight,
        quantity=quantity,
        fragility=fragility,
        category=category,
    )


def make_box(box_id, length, width, height, max_weight=50.0, cost=1.0, in_stock=10):
    return m.Box(
        id=box_id,
        name=f"Box {box_id}",
        length=length,
        width=width,
        height=height,
        max_weight=max_weight,
        cost=cost,
        in_stock=in_stock,
    )


def make_result(strategy, packages, cost, confidence):
    return m.MultiPackageCartonizationResult(
        packages=[],
        total_packages=packages,
        total_weight=0.0,
        total_volume=0.0,
        total_cost=cost,
        splitting_strategy=strategy,
        optimization_objective="balanced",
        confidence=confidence,
    )


def mixed_order():
    return [
        make_item("book", 8.0, 6.0, 2.0, 2.0, quantity=3, category="media"),
        make_item("mug", 5.0, 4.0, 4.0, 1.0, quantity=2, fragility="high", category="kitchen"),
        make_item("lamp", 12.0, 8.0, 8.0, 6.0, category="home"),
    ]


def mixed_catalog():
    return [
        make_box("S", 10.0, 8.0, 6.0, cost=0.8),
        make_box("M", 14.0, 12.0, 10.0, cost=1.5),
        make_box("L", 20.0, 16.0, 14.0, cost=2.5),
    ]


# ----------------------------
# Strategies
# ----------------------------


def test_split_by_weight_cuts_heavy_lines_by_quantity():
    heavy = make_item("heavy", 2.0, 2.0, 2.0, 20.0, quantity=5)
    light = make_item("light", 1.0, 1.0, 1.0, 5.0)

    groups = splitter.split_by_weight([light, heavy], 50.0)

    assert [[it.id for it in g] for g in groups] == [["heavy"], ["heavy"], ["heavy"], ["light"]]
    assert [g[0].quantity for g in groups[:3]] == [2, 2, 1]
    # the input line is left untouched
    assert heavy.quantity == 5


def test_split_by_weight_single_unit_over_the_cap_gets_its_own_package():
    groups = splitter.split_by_weight([make_item("anvil", 2.0, 2.0, 2.0, 60.0, quantity=2)], 50.0)

    assert len(groups) == 2
    assert all(g[0].quantity == 1 for g in groups)


def test_split_by_weight_accumulates_heaviest_first():
    items = [
        make_item("c", 1.0, 1.0, 1.0, 15.0),
        make_item("a", 1.0, 1.0, 1.0, 20.0),
        make_item("b", 1.0, 1.0, 1.0, 20.0),
    ]

    groups = splitter.split_by_weight(items, 50.0)

    assert [[it.id for it in g] for g in groups] == [["a", "b"], ["c"]]


def test_split_by_volume_targets_median_box():
    boxes = [
        make_box("tiny", 5.0, 5.0, 4.0),
        make_box("mid", 10.0, 10.0, 10.0),
        make_box("big", 10.0, 20.0, 25.0),
    ]
    assert splitter.target_group_volume(boxes) == 800.0
    assert splitter.target_group_volume([]) == 800.0

    items = [
        make_item("a", 10.0, 10.0, 5.0, 1.0),  # 500
        make_item("b", 10.0, 10.0, 2.0, 1.0),  # 200
        make_item("c", 10.0, 10.0, 3.0, 1.0),  # 300
    ]

    groups = splitter.split_by_volume(items, boxes)

    assert [[it.id for it in g] for g in groups] == [["a", "b"], ["c"]]


def test_category_and_fragility_groups_use_defaults():
    items = [
        make_item("a", 1.0, 1.0, 1.0, 1.0, category="toys"),
        make_item("b", 1.0, 1.0, 1.0, 1.0),
        make_item("c", 1.0, 1.0, 1.0, 1.0, category="toys", fragility="medium"),
        make_item("d", 1.0, 1.0, 1.0, 1.0, fragility="low"),
    ]

    by_category = splitter.split_by_category(items)
    by_fragility = splitter.split_by_fragility(items)

    assert [[it.id for it in g] for g in by_category] == [["a", "c"], ["b", "d"]]
    assert [[it.id for it in g] for g in by_fragility] == [["a", "b", "d"], ["c"]]


def test_hybrid_keeps_fragile_items_apart():
    groups = splitter.split_by_hybrid(mixed_order(), 50.0)

    assert [[it.id for it in g] for g in groups] == [["mug"], ["book", "lamp"]]


def test_split_items_rejects_unknown_strategy():
    with pytest.raises(ValueError):
        splitter.split_items([], "random", [], build_parameters())


def test_bisect_group_gives_extra_line_to_first_half():
    group = [make_item(str(n), 1.0, 1.0, 1.0, 1.0) for n in range(3)]
    halves = splitter.bisect_group(group)
    assert [[it.id for it in h] for h in halves] == [["0", "1"], ["2"]]


# ----------------------------
# Packages and strategies
# ----------------------------


def test_find_box_for_group_takes_smallest_box_that_packs():
    group = [make_item("lamp", 12.0, 8.0, 8.0, 6.0)]

    package = splitter.find_box_for_group(group, mixed_catalog(), build_parameters())

    assert package is not None
    assert package.box.id == "M"
    assert package.packing_result.success
    assert package.package_weight == 6.0
    assert package.package_volume == 768.0


def test_find_box_for_group_respects_box_weight_limit():
    group = [make_item("brick", 2.0, 2.0, 2.0, 60.0)]
    assert splitter.find_box_for_group(group, mixed_catalog(), build_parameters()) is None


def test_build_package_falls_back_to_volume_ratio_when_packing_fails():
    box = make_box("S", 10.0, 8.0, 6.0)
    package = splitter.build_package([make_item("lamp", 12.0, 8.0, 8.0, 6.0)], box)

    assert not package.packing_result.success
    assert package.utilization == 100.0


def test_oversized_group_is_bisected_once():
    items = [
        make_item("x", 4.0, 4.0, 4.0, 30.0),
        make_item("y", 4.0, 4.0, 4.0, 30.0),
    ]
    boxes = [make_box("B", 10.0, 10.0, 10.0, max_weight=40.0)]

    result = splitter.pack_with_strategy(
        items, "category", boxes, build_parameters(), "minimize_packages"
    )

    assert result is not None
    assert result.total_packages == 2
    assert "Automatic Group Subdivision" in result.rules_applied
    assert result.rules_applied[0] == "Category Splitting Strategy"
    assert result.rules_applied[-1] == "Minimize Package Count Objective"


def test_strategy_fails_when_a_half_still_does_not_fit():
    """
    90 lb in one category, 40 lb boxes: the 2-line first half (60 lb) still
    fails and is not split again, although every single line would ship.
    """
    sink = RecordingSink()
    items = [make_item(name, 4.0, 4.0, 4.0, 30.0) for name in ("x", "y", "z")]
    boxes = [make_box("B", 10.0, 10.0, 10.0, max_weight=40.0)]

    result = splitter.pack_with_strategy(
        items, "category", boxes, build_parameters(), "minimize_packages", sink=sink
    )

    assert result is None
    assert any("after subdivision" in msg for msg in sink.messages())
    for item in items:
        assert splitter.find_box_for_group([item], boxes, build_parameters()) is not None


def test_single_line_group_that_fits_nowhere_fails_the_strategy():
    sink = RecordingSink()
    items = [make_item("pole", 40.0, 2.0, 2.0, 5.0)]

    result = splitter.pack_with_strategy(
        items, "weight", mixed_catalog(), build_parameters(), "balanced", sink=sink
    )

    assert result is None
    assert any("failed" in msg for msg in sink.messages())


# ----------------------------
# Objective ranking
# ----------------------------


@pytest.mark.parametrize(
    "objective, expected",
    [
        ("minimize_packages", ["category", "weight", "volume"]),
        ("minimize_cost", ["weight", "category", "volume"]),
        ("balanced", ["weight", "category", "volume"]),
    ],
)
def test_rank_results_per_objective(objective, expected):
    results = [
        make_result("weight", 2, 10.0, 80),
        make_result("volume", 3, 6.0, 70),
        make_result("category", 2, 8.0, 60),
    ]

    ranked = splitter.rank_results(results, objective)

    assert [r.splitting_strategy for r in ranked] == expected


def test_minimize_cost_orders_by_cost_outside_the_tie_band():
    results = [
        make_result("weight", 1, 20.0, 80),
        make_result("volume", 3, 10.0, 70),
    ]

    ranked = splitter.rank_results(results, "minimize_cost")

    assert [r.splitting_strategy for r in ranked] == ["volume", "weight"]
    # the same pair under minimize_packages keeps the single package first
    ranked = splitter.rank_results(results, "minimize_packages")
    assert [r.splitting_strategy for r in ranked] == ["weight", "volume"]


def test_balanced_score():
    # 80*0.4 + (10-2)*5 + (100-10)*0.3
    assert splitter.balanced_score(make_result("weight", 2, 10.0, 80)) == pytest.approx(99.0)


# ----------------------------
# split_and_pack
# ----------------------------


def test_split_and_pack_mixed_order():
    items = mixed_order()
    result = splitter.split_and_pack(items, mixed_catalog())

    assert result is not None
    assert result.optimization_objective == "minimize_packages"
    assert result.total_packages == len(result.packages) >= 1
    assert result.total_cost == pytest.approx(sum(p.box.cost for p in result.packages))
    assert result.total_weight == pytest.approx(sum(p.package_weight for p in result.packages))
    assert result.total_weight == pytest.approx(14.0)
    units = sum(it.quantity for p in result.packages for it in p.assigned_items)
    assert units == 6
    assert len(result.alternatives) <= 3
    assert all(alt is not result for alt in result.alternatives)
    assert all(
        alt.total_packages >= result.total_packages for alt in result.alternatives
    )
    for package in result.packages:
        assert package.packing_result.success
        assert 0.0 <= package.confidence <= 100.0


def test_split_and_pack_ignores_out_of_stock_boxes():
    items = [make_item("lamp", 12.0, 8.0, 8.0, 6.0)]
    boxes = mixed_catalog()
    boxes[1].in_stock = 0

    result = splitter.split_and_pack(items, boxes)

    assert result is not None
    assert {p.box.id for p in result.packages} == {"L"}


def test_split_and_pack_returns_none_when_nothing_ships():
    assert splitter.split_and_pack([], mixed_catalog()) is None
    heavy = [make_item("anvil", 2.0, 2.0, 2.0, 60.0)]
    assert splitter.split_and_pack(heavy, mixed_catalog()) is None


def test_split_and_pack_rejects_unknown_objective():
    with pytest.raises(ValueError):
        splitter.split_and_pack(mixed_order(), mixed_catalog(), objective="fastest")


def test_split_and_pack_respects_package_weight_cap():
    items = [make_item("tile", 6.0, 6.0, 1.0, 12.0, quantity=6)]
    params = build_parameters({"max_package_weight": 30})

    result = splitter.split_and_pack(items, mixed_catalog(), params)

    assert result is not None
    assert result.splitting_strategy == "weight"
    assert result.total_packages == 3
    assert all(p.package_weight <= 30 for p in result.packages)


# ----------------------------
# Manual edits
# ----------------------------


def test_replace_package_recomputes_totals():
    result = splitter.split_and_pack([make_item("lamp", 12.0, 8.0, 8.0, 6.0)], mixed_catalog())
    assert result is not None
    bigger = splitter.build_package(result.packages[0].assigned_items, mixed_catalog()[2])

    edited = splitter.replace_package(result, 0, bigger)

    assert edited is not result
    assert edited.packages[0].box.id == "L"
    assert edited.total_cost == 2.5
    assert edited.rules_applied[-1] == "Manual Package Edit"
    assert result.packages[0].box.id == "M"

    with pytest.raises(IndexError):
        splitter.replace_package(result, 5, bigger)


def test_add_manual_package_uses_smallest_in_stock_box():
    result = splitter.split_and_pack([make_item("lamp", 12.0, 8.0, 8.0, 6.0)], mixed_catalog())
    assert result is not None
    boxes = mixed_catalog()
    boxes[0].in_stock = 0

    edited = splitter.add_manual_package(result, boxes)

    assert edited.total_packages == result.total_packages + 1
    assert edited.packages[-1].box.id == "M"
    assert edited.packages[-1].assigned_items == []
    assert edited.total_cost == pytest.approx(result.total_cost + 1.5)
    assert edited.rules_applied[-1] == "Manual Package Addition"

    with pytest.raises(ValueError):
        splitter.add_manual_package(result, [make_box("Z", 1.0, 1.0, 1.0, in_stock=0)])
