"""
cartonizer package

Box selection ("cartonization") for outgoing shipments: given the items of an
order and the box catalog, pick the box (or set of boxes) to ship in.

The package exposes a small, stable surface:
- __version__ / get_version()
- select_single_box(): single-container recommendation (optionally falling
  back to multi-package splitting)
- split_and_pack(): multi-package splitting across the catalog
- CartonizationEngine: immutable catalog + parameters wrapper
- analyze_box_opportunities(): unstocked boxes that would have won past orders

The HTTP layer lives in `cartonizer.api` and is not imported here to keep
import-time side-effects (logging setup, FastAPI) out of library users.
"""

from typing import Final

from .engine import CartonizationEngine, Scenario
from .opportunities import analyze_box_opportunities
from .selector import select_single_box
from .splitter import split_and_pack

__all__ = [
    "__version__",
    "get_version",
    "CartonizationEngine",
    "Scenario",
    "analyze_box_opportunities",
    "select_single_box",
    "split_and_pack",
]

__version__: Final[str] = "0.1.0"


def get_version() -> str:
    """
    Return the package version.
    """
    return __version__
