from cartonizer import CartonizationEngine, Scenario
from cartonizer.models import Box, Item
from cartonizer.selector import print_cartonization_summary


def print_package_plan(multi):
    if multi is None:
        print("No multi-package plan.")
        return
    print(f"Strategy: {multi.splitting_strategy} ({multi.optimization_objective})")
    print(f"Total packages: {multi.total_packages}")
    print(f"Estimated packaging cost: {multi.total_cost:.2f}\n")
    for number, pkg in enumerate(multi.packages, start=1):
        units = ", ".join(f"{it.name} x{it.quantity}" for it in pkg.assigned_items)
        print(f"  #{number} {pkg.box.name} ({pkg.utilization:.1f}%): {units}")
    for alt in multi.alternatives:
        print(
            f"  alt: {alt.splitting_strategy} -> {alt.total_packages} packages, "
            f"${alt.total_cost:.2f}"
        )


if __name__ == "__main__":
    boxes = [
        Box("BOX-S", "Small 10x8x6", 10, 8, 6, max_weight=30, cost=0.8, in_stock=50),
        Box("BOX-M", "Medium 12x10x8", 12, 10, 8, max_weight=50, cost=1.0, in_stock=40),
        Box("BOX-L", "Large 20x16x12", 20, 16, 12, max_weight=50, cost=2.5, in_stock=10),
        Box("BOX-XL", "Heavy Duty 14x14x14", 14, 14, 14, max_weight=70, cost=3.0, in_stock=5),
        # Box("BOX-XXL", "Pallet box 40x30x30", 40, 30, 30, max_weight=150, cost=9.0, in_stock=0),
    ]

    engine = CartonizationEngine.create(boxes, {"max_package_weight": 50})

    # Example A: one item, single box
    items = [
        Item("CableSep", "Cable separator", 10, 8, 6, weight=5),
    ]

    # Example B: heavy order, multi-package (uncomment to test)
    # items = [
    #     Item("Anvil", "Anvil", 12, 12, 12, weight=60, quantity=3),
    # ]

    result = engine.run_scenario(Scenario(items=items, carrier="UPS", service_level="Ground"))
    print_cartonization_summary(result)
    print()

    print_package_plan(engine.calculate_multi_package(items, objective="minimize_cost"))
