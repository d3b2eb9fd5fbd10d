"""
FastAPI application exposing the cartonization engine.

This module provides a small HTTP surface on top of the pure-Python core in
`cartonizer`; it owns request validation and response shaping only.

Endpoints:
- GET /
- GET /health
- POST /cartonize                -> single-box recommendation (optionally multi-package)
- POST /cartonize/multi-package  -> multi-package splitting

Notes:
- Request/response models are the Pydantic models in `cartonizer.models`.
- The computational core works on dataclasses and never raises for an order
  that cannot ship; that case is mapped to HTTP 422 here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__ as PACKAGE_VERSION
from .config import build_parameters
from .models import (
    OBJECTIVES,
    Box,
    BoxCreate,
    CartonizationParameters,
    Item,
    CartonizationResultRead,
    ItemCreate,
    MultiPackageResultRead,
    Objective,
    ParametersCreate,
    boxcreate_to_dataclass,
    cartonization_from_dataclass,
    itemcreate_to_dataclass,
    multi_package_from_dataclass,
)
from .selector import select_single_box
from .splitter import split_and_pack

logger = logging.getLogger("cartonizer.api")
logging.basicConfig(level=logging.INFO)

NO_SOLUTION_DETAIL = "No viable packaging found for these items with the current box catalog."

app = FastAPI(
    title="cartonizer - box selection",
    version=PACKAGE_VERSION,
    description="API wrapper around the cartonization (box selection) engine.",
)

# Allow cross-origin calls for common dev scenarios (adjust origins in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------
# Health & info endpoints
# ---------------------------


@app.get("/", summary="Service info")
async def root() -> Dict[str, Any]:
    """
    Basic service information and version.
    """
    return {"service": "cartonizer", "version": PACKAGE_VERSION, "objectives": list(OBJECTIVES)}


@app.get("/health", summary="Health check")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


# ---------------------------
# Helpers
# ---------------------------


def _convert_inputs(
    items: List[ItemCreate],
    boxes: List[BoxCreate],
    parameters: Optional[ParametersCreate],
) -> Tuple[List[Item], List[Box], CartonizationParameters]:
    if not items:
        raise HTTPException(status_code=400, detail="`items` must be a non-empty list.")
    if not boxes:
        raise HTTPException(status_code=400, detail="`boxes` must be a non-empty list.")

    overrides = parameters.model_dump(exclude_none=True) if parameters is not None else None
    try:
        params = build_parameters(overrides)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return (
        [itemcreate_to_dataclass(it) for it in items],
        [boxcreate_to_dataclass(bx) for bx in boxes],
        params,
    )


# ---------------------------
# Cartonization endpoints
# ---------------------------


@app.post(
    "/cartonize",
    response_model=CartonizationResultRead,
    summary="Recommend a shipping box for a list of items",
)
async def cartonize(
    items: List[ItemCreate] = Body(...),
    boxes: List[BoxCreate] = Body(...),
    parameters: Optional[ParametersCreate] = Body(None),
    enable_multi_package: bool = Body(False),
    objective: Objective = Body("balanced"),
) -> CartonizationResultRead:
    """
    Single-box recommendation.

    Request:
    - items: order lines (ItemCreate); `quantity` may be > 1.
    - boxes: box catalog (BoxCreate); out-of-stock boxes are ignored.
    - parameters: optional partial parameter overrides.
    - enable_multi_package: also evaluate multi-package plans.
    - objective: objective used for multi-package plans.

    Response:
    - CartonizationResultRead, with `multi_package_result` when a
      multi-package plan was evaluated.
    """
    dc_items, dc_boxes, params = _convert_inputs(items, boxes, parameters)

    logger.info(
        "cartonize called: %d items, %d boxes, multi_package=%s, objective=%s",
        len(dc_items),
        len(dc_boxes),
        enable_multi_package,
        objective,
    )

    result = select_single_box(
        dc_items,
        dc_boxes,
        params,
        enable_multi_package=enable_multi_package,
        objective=objective,
    )
    if result is None:
        raise HTTPException(status_code=422, detail=NO_SOLUTION_DETAIL)

    return cartonization_from_dataclass(result)


@app.post(
    "/cartonize/multi-package",
    response_model=MultiPackageResultRead,
    summary="Split items across several packages",
)
async def cartonize_multi_package(
    items: List[ItemCreate] = Body(...),
    boxes: List[BoxCreate] = Body(...),
    parameters: Optional[ParametersCreate] = Body(None),
    objective: Objective = Body("minimize_packages"),
) -> MultiPackageResultRead:
    dc_items, dc_boxes, params = _convert_inputs(items, boxes, parameters)

    logger.info(
        "cartonize_multi_package called: %d items, %d boxes, objective=%s",
        len(dc_items),
        len(dc_boxes),
        objective,
    )

    result = split_and_pack(dc_items, dc_boxes, params, objective)
    if result is None:
        raise HTTPException(status_code=422, detail=NO_SOLUTION_DETAIL)

    return multi_package_from_dataclass(result)


# ---------------------------
# Exception handlers & utilities
# ---------------------------


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Ensure JSON responses for unexpected errors.
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
