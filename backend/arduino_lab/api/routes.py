import base64
import binascii
import logging
from functools import lru_cache
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from arduino_lab import config
from arduino_lab.api.serializers import serialize_component, serialize_components
from arduino_lab.catalog import random_tip
from arduino_lab.inference.config import get_llm_client, resolve_vision_model
from arduino_lab.ir.errors import ApiKeyNotFoundError, UnknownComponentError, ValidationError
from arduino_lab.pipeline.controller import AssistantController, StageOutcome
from arduino_lab.schemas import (
    AcceptScanResponse,
    CatalogPageResponse,
    ComponentView,
    DetectRequest,
    InstructionsResponse,
    InventoryPageResponse,
    ProjectsResponse,
    ScanResponse,
    SelectProjectResponse,
    StepImageResponse,
    TipResponse,
)
from arduino_lab.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_BY_LEVEL = {
    "encoding": 422,
    "precondition": 409,
    "not_found": 404,
    "transport": 502,
    "parse": 502,
}


# ============================
# Session
# ============================

@lru_cache(maxsize=1)
def get_controller() -> AssistantController:
    """One session per process, like the headset app."""
    try:
        client = get_llm_client()
    except ApiKeyNotFoundError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    controller = AssistantController(
        client=client,
        vision_model=resolve_vision_model(config.OPENAI_VISION_MODEL),
        image_model=config.OPENAI_IMAGE_MODEL,
    )
    controller.context.inventory.reset()

    logger.info("Session started (vision model %s)", controller.vision_model)
    return controller


def raise_for_errors(errors: List[ValidationError]):
    first = errors[0]
    raise HTTPException(
        status_code=STATUS_BY_LEVEL.get(first.level, 500),
        detail=[
            {"level": e.level, "message": e.message, "stage": e.object_id}
            for e in errors
        ],
    )


def raise_for_outcome(outcome: StageOutcome):
    if not outcome.ok:
        raise_for_errors(outcome.errors)


def decode_image(image_base64: str) -> bytes:
    data = image_base64.strip()
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"image_base64 is not valid base64: {e}") from e


# ============================
# Health
# ============================

@router.get("/health")
def health():
    return {"status": "ok"}


# ============================
# Inventory
# ============================

@router.get("/inventory", response_model=InventoryPageResponse)
def get_inventory(
    page: int = Query(0, ge=0),
    include_zero: bool = False,
    controller: AssistantController = Depends(get_controller),
):
    inventory = controller.context.inventory
    items = inventory.all() if include_zero else inventory.non_zero()
    current = paginate(items, page, config.INVENTORY_PAGE_SIZE)

    return InventoryPageResponse(
        page=current.page,
        total_pages=current.total_pages,
        label=current.label,
        has_previous=current.has_previous,
        has_next=current.has_next,
        components=serialize_components(current.items),
        can_suggest_projects=inventory.can_suggest_projects(),
    )


@router.post("/inventory/reset")
def reset_inventory(controller: AssistantController = Depends(get_controller)):
    controller.context.inventory.reset()
    return {"status": "reset"}


@router.post("/inventory/{item}/increment", response_model=ComponentView)
def increment_component(item: str, controller: AssistantController = Depends(get_controller)):
    try:
        return serialize_component(controller.context.inventory.increment(item))
    except UnknownComponentError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.post("/inventory/{item}/decrement", response_model=ComponentView)
def decrement_component(item: str, controller: AssistantController = Depends(get_controller)):
    try:
        return serialize_component(controller.context.inventory.decrement(item))
    except UnknownComponentError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


# ============================
# Scan
# ============================

@router.post("/components/detect", response_model=ScanResponse)
def detect_components(
    request: DetectRequest,
    controller: AssistantController = Depends(get_controller),
):
    outcome = controller.scan_components(decode_image(request.image_base64))
    raise_for_outcome(outcome)

    return ScanResponse(
        status=outcome.status,
        current=outcome.current,
        components=serialize_components(outcome.items),
    )


@router.post("/components/detect/accept", response_model=AcceptScanResponse)
def accept_detected(controller: AssistantController = Depends(get_controller)):
    added = controller.add_detected_to_inventory()
    return AcceptScanResponse(added=serialize_components(added))


# ============================
# Projects
# ============================

@router.post("/projects/suggest", response_model=ProjectsResponse)
def suggest_projects(controller: AssistantController = Depends(get_controller)):
    outcome = controller.suggest_projects()
    raise_for_outcome(outcome)

    return ProjectsResponse(
        status=outcome.status,
        current=outcome.current,
        projects=outcome.items,
    )


@router.post("/projects/{index}/select", response_model=SelectProjectResponse)
def select_project(index: int, controller: AssistantController = Depends(get_controller)):
    result = controller.select_project(index)
    if not result.is_valid:
        raise_for_errors(result.errors)

    return SelectProjectResponse(
        project=controller.context.selected_project,
        inventory=serialize_components(controller.context.inventory.non_zero()),
    )


@router.get("/projects/catalog", response_model=CatalogPageResponse)
def get_catalog(
    page: int = Query(0, ge=0),
    controller: AssistantController = Depends(get_controller),
):
    current = paginate(controller.catalog.projects, page, config.INVENTORY_PAGE_SIZE)

    return CatalogPageResponse(
        page=current.page,
        total_pages=current.total_pages,
        label=current.label,
        has_previous=current.has_previous,
        has_next=current.has_next,
        start_index=current.page * config.INVENTORY_PAGE_SIZE,
        projects=current.items,
    )


@router.post("/projects/catalog/{index}/select", response_model=SelectProjectResponse)
def select_catalog_project(index: int, controller: AssistantController = Depends(get_controller)):
    result = controller.select_catalog_project(index)
    if not result.is_valid:
        raise_for_errors(result.errors)

    return SelectProjectResponse(
        project=controller.context.selected_project,
        inventory=serialize_components(controller.context.inventory.non_zero()),
    )


# ============================
# Instructions
# ============================

@router.post("/instructions", response_model=InstructionsResponse)
def generate_instructions(controller: AssistantController = Depends(get_controller)):
    outcome = controller.generate_instructions()
    raise_for_outcome(outcome)

    return InstructionsResponse(
        status=outcome.status,
        current=outcome.current,
        project_title=outcome.title,
        steps=outcome.items,
    )


@router.post("/instructions/{step}/image", response_model=StepImageResponse)
def illustrate_step(step: int, controller: AssistantController = Depends(get_controller)):
    outcome = controller.illustrate_step(step)
    raise_for_outcome(outcome)

    return StepImageResponse(
        step=step,
        current=outcome.current,
        image_base64=base64.b64encode(outcome.items[0]).decode("ascii"),
    )


# ============================
# Tips
# ============================

@router.get("/tips/random", response_model=TipResponse)
def get_random_tip():
    tip = random_tip()
    if tip is None:
        raise HTTPException(status_code=404, detail="No tips available")
    return TipResponse(text=tip.text, category=tip.category)
