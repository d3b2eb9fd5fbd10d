"""
Tests for scoring helpers and parameter configuration.
"""

import pytest

from cartonizer import models as m
from cartonizer import scoring
from cartonizer.config import DEFAULT_PARAMETERS, build_parameters


def make_box(length=10.0, width=10.0, height=10.0, max_weight=50.0, cost=1.0):
    return m.Box(
        id="BX",
        name="Box",
        length=length,
        width=width,
        height=height,
        max_weight=max_weight,
        cost=cost,
        in_stock=1,
    )


def test_dimensional_weight_is_volume_over_factor():
    box = make_box(12.0, 10.0, 8.0)
    assert scoring.dimensional_weight(box, 139) == (12.0 * 10.0 * 8.0) / 139
    assert scoring.dimensional_weight(box, 166) == 960.0 / 166


@pytest.mark.parametrize(
    "utilization, weight, efficiency, expected",
    [
        (80.0, 10.0, 0.95, 90.0),  # optimal band, light, very efficient
        (75.0, 10.0, 0.0, 80.0),  # band lower edge is inclusive
        (85.0, 10.0, 0.0, 80.0),  # band upper edge is inclusive
        (70.0, 10.0, 0.85, 75.0),  # secondary band, efficiency > 0.8
        (94.0, 45.0, 0.5, 60.0),  # secondary band, heavy
        (95.0, 45.0, 0.5, 50.0),  # >= 95 drops to the >= 50 band
        (50.0, 10.0, 0.5, 60.0),
        (40.0, 10.0, 0.0, 50.0),
    ],
)
def test_confidence_bands(utilization, weight, efficiency, expected):
    # 1000 in3 for $1 -> cost efficiency capped at 20
    box = make_box()
    assert scoring.calculate_confidence(utilization, weight, box, efficiency) == expected


def test_confidence_cost_efficiency_is_proportional_below_cap():
    # 1 in3 for $1 -> 1 / (1/1) * 10 = 10 points
    box = make_box(1.0, 1.0, 1.0, cost=1.0)
    assert scoring.calculate_confidence(80.0, 0.5, box, 0.0) == 70.0


def test_confidence_free_box_gets_full_cost_points():
    box = make_box(cost=0.0)
    assert scoring.calculate_confidence(80.0, 1.0, box, 0.0) == 80.0


def test_confidence_stays_within_bounds():
    box = make_box()
    for util in (0.0, 30.0, 65.0, 80.0, 99.0, 100.0):
        for eff in (0.0, 0.85, 0.95, 1.0):
            score = scoring.calculate_confidence(util, 1.0, box, eff)
            assert 0.0 <= score <= 100.0


def test_items_metrics_counts_quantities():
    items = [
        m.Item(id="a", name="a", length=2, width=3, height=4, weight=1.5, quantity=2),
        m.Item(id="b", name="b", length=1, width=1, height=1, weight=4.0),
    ]
    assert scoring.items_metrics(items) == (7.0, 49.0)


def test_optimization_rule_follows_flags():
    assert scoring.optimization_rule(DEFAULT_PARAMETERS) == "Cost Optimization Rule"
    space = build_parameters({"optimize_for_cost": False, "optimize_for_space": True})
    assert scoring.optimization_rule(space) == "Space Optimization Rule"
    neither = build_parameters({"optimize_for_cost": False})
    assert scoring.optimization_rule(neither) == "Balanced Optimization Rule"


def test_default_parameters():
    assert DEFAULT_PARAMETERS.fill_rate_threshold == 75
    assert DEFAULT_PARAMETERS.max_package_weight == 50
    assert DEFAULT_PARAMETERS.dimensional_weight_factor == 139
    assert DEFAULT_PARAMETERS.packing_efficiency == 85


def test_build_parameters_merges_and_ignores_none():
    params = build_parameters({"max_package_weight": 70, "fill_rate_threshold": None})
    assert params.max_package_weight == 70
    assert params.fill_rate_threshold == DEFAULT_PARAMETERS.fill_rate_threshold
    assert build_parameters(None) is DEFAULT_PARAMETERS


def test_build_parameters_rejects_unknown_keys():
    with pytest.raises(ValueError):
        build_parameters({"max_weight": 10})


def test_parameters_are_immutable():
    with pytest.raises(Exception):
        DEFAULT_PARAMETERS.max_package_weight = 10  # type: ignore[misc]


def test_model_validation_rejects_bad_dimensions():
    with pytest.raises(ValueError):
        m.Item(id="x", name="x", length=0, width=1, height=1, weight=1)
    with pytest.raises(ValueError):
        m.Item(id="x", name="x", length=1, width=1, height=1, weight=1, quantity=0)
    with pytest.raises(ValueError):
        make_box(max_weight=0)
    with pytest.raises(ValueError):
        m.Box(
            id="b", name="b", length=1, width=1, height=1,
            max_weight=1, cost=1, in_stock=1, container_type="crate",
        )
