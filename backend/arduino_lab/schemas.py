from pydantic import BaseModel
from typing import Optional, List

from arduino_lab.ir.instructions import InstructionStep
from arduino_lab.ir.project import Project


class DetectRequest(BaseModel):
    image_base64: str  # JPEG/PNG camera frame, plain base64 or a data URL


class ComponentView(BaseModel):
    item: str
    display_name: str
    quantity: int
    value: Optional[int] = None


class InventoryPageResponse(BaseModel):
    page: int  # zero-based
    total_pages: int
    label: str
    has_previous: bool
    has_next: bool
    components: List[ComponentView]
    can_suggest_projects: bool


class ScanResponse(BaseModel):
    status: str  # ok | no_results
    current: bool = True
    components: List[ComponentView] = []


class AcceptScanResponse(BaseModel):
    added: List[ComponentView]


class ProjectsResponse(BaseModel):
    status: str
    current: bool = True
    projects: List[Project] = []


class SelectProjectResponse(BaseModel):
    project: Project
    inventory: List[ComponentView]


class InstructionsResponse(BaseModel):
    status: str
    current: bool = True
    project_title: str
    steps: List[InstructionStep] = []


class StepImageResponse(BaseModel):
    step: int
    current: bool = True
    image_base64: str  # PNG


class CatalogPageResponse(BaseModel):
    page: int  # zero-based
    total_pages: int
    label: str
    has_previous: bool
    has_next: bool
    start_index: int  # catalog index of the first project on this page
    projects: List[Project]


class TipResponse(BaseModel):
    text: str
    category: Optional[str] = None
