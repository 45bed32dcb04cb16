import logging
import threading
from dataclasses import dataclass, field
from typing import Any, List, Optional

from arduino_lab.catalog import load_catalog
from arduino_lab.inference.base import LLMClient
from arduino_lab.ir.components import Component
from arduino_lab.ir.errors import (
    ImageEncodingError,
    LabAssistantError,
    ResponseParseError,
    TransportError,
    ValidationError,
)
from arduino_lab.ir.project import Project, ProjectList
from arduino_lab.ir.validation import ValidationResult
from arduino_lab.pipeline.context import SessionContext
from arduino_lab.pipeline.detection_stage import ComponentDetectionStage
from arduino_lab.pipeline.events import RequestTracker, ResponseEvent, ResponseNotifier
from arduino_lab.pipeline.illustration_stage import StepIllustrationStage
from arduino_lab.pipeline.instruction_stage import InstructionStage
from arduino_lab.pipeline.stage import PipelineStage
from arduino_lab.pipeline.suggestion_stage import ProjectSuggestionStage

logger = logging.getLogger(__name__)

OK = "ok"
NO_RESULTS = "no_results"
FAILED = "failed"


@dataclass
class StageOutcome:
    stage: str
    status: str
    items: List[Any] = field(default_factory=list)
    errors: List[ValidationError] = field(default_factory=list)
    current: bool = True  # False when a newer request superseded this one
    title: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != FAILED


def error_from_exception(exc: LabAssistantError, object_id: str) -> ValidationError:
    if isinstance(exc, ImageEncodingError):
        level = "encoding"
        message = str(exc)
    elif isinstance(exc, TransportError):
        level = "transport"
        message = f"{exc}: {exc.body}" if exc.body else str(exc)
    elif isinstance(exc, ResponseParseError):
        level = "parse"
        message = "; ".join([str(exc), *exc.problems])
    else:
        level = "error"
        message = str(exc)

    return ValidationError(level=level, message=message, object_id=object_id)


class AssistantController:
    """
    Runs one stage per call against the session context.

    Exactly one request per call, no retries. When two calls of the
    same kind overlap, only the newest one updates the context and
    reaches subscribers; the older caller still gets its own outcome.
    """

    def __init__(
        self,
        client: LLMClient,
        vision_model: str,
        image_model: str,
        context: Optional[SessionContext] = None,
        notifier: Optional[ResponseNotifier] = None,
        catalog: Optional[ProjectList] = None,
    ):
        self.client = client
        self.vision_model = vision_model
        self.image_model = image_model
        self.context = context or SessionContext()
        self.notifier = notifier or ResponseNotifier()
        self.catalog = catalog if catalog is not None else load_catalog()
        self.tracker = RequestTracker()
        self._apply_lock = threading.Lock()

    # ----------------------------
    # Stage execution
    # ----------------------------

    def run_stage(self, stage: PipelineStage) -> StageOutcome:
        check = stage.check(self.context)
        if not check.is_valid:
            return self._fail(stage, check.errors)

        ticket = self.tracker.begin(stage.ticket_key)
        logger.info("Running %s (ticket %d)", stage.name, ticket)

        try:
            output = stage.execute(self.context)
        except LabAssistantError as e:
            error = error_from_exception(e, stage.name)
            if not self.tracker.is_current(stage.ticket_key, ticket):
                logger.warning(
                    "Ignoring failure of stale %s request (ticket %d): %s", stage.name, ticket, e
                )
                return StageOutcome(
                    stage=stage.name, status=FAILED, errors=[error], current=False
                )
            logger.error("%s failed: %s", stage.name, e)
            return self._fail(stage, [error])

        status = NO_RESULTS if output.no_results else OK

        with self._apply_lock:
            current = self.tracker.is_current(stage.ticket_key, ticket)
            if current:
                stage.apply(self.context, output)

        if not current:
            logger.warning(
                "Dropping stale %s response (ticket %d)", stage.name, ticket
            )
        else:
            if output.no_results:
                logger.info("%s returned no results", stage.name)
            self.notifier.publish(
                ResponseEvent(
                    channel=stage.channel,
                    ticket=ticket,
                    raw=output.raw,
                    items=list(output.items),
                )
            )

        return StageOutcome(
            stage=stage.name,
            status=status,
            items=list(output.items),
            current=current,
            title=output.title,
        )

    def _fail(self, stage: PipelineStage, errors: List[ValidationError]) -> StageOutcome:
        for error in errors:
            self.context.add_error(error)
        return StageOutcome(stage=stage.name, status=FAILED, errors=list(errors))

    # ----------------------------
    # Scan
    # ----------------------------

    def scan_components(self, image: bytes) -> StageOutcome:
        return self.run_stage(
            ComponentDetectionStage(self.client, self.vision_model, image)
        )

    def add_detected_to_inventory(self) -> List[Component]:
        detected = list(self.context.detected_components)
        self.context.inventory.merge(detected)
        self.context.detected_components = []
        logger.info("Added %d scanned components to inventory", len(detected))
        return detected

    # ----------------------------
    # Projects
    # ----------------------------

    def suggest_projects(self) -> StageOutcome:
        return self.run_stage(ProjectSuggestionStage(self.client, self.vision_model))

    def select_project(self, index: int) -> ValidationResult:
        """
        Choose a suggestion. The inventory becomes the project's parts list.
        """
        return self._select(self.context.project_suggestions, index, "select_project")

    def select_catalog_project(self, index: int) -> ValidationResult:
        """Same as select_project, but from the built-in catalog. No request is sent."""
        return self._select(self.catalog.projects, index, "select_catalog_project")

    def _select(self, projects: List[Project], index: int, object_id: str) -> ValidationResult:
        with self._apply_lock:
            if not 0 <= index < len(projects):
                return ValidationResult.single(
                    "not_found",
                    f"Project index {index} is out of range ({len(projects)} projects)",
                    object_id,
                )

            project = projects[index]
            self.context.selected_project = project
            self.context.inventory.replace(project.components)
            self.context.instructions = []
            self.context.step_images.clear()

        logger.info("Selected project %r", project.title)
        return ValidationResult.success()

    # ----------------------------
    # Instructions
    # ----------------------------

    def generate_instructions(self) -> StageOutcome:
        return self.run_stage(InstructionStage(self.client, self.vision_model))

    def illustrate_step(self, step_index: int) -> StageOutcome:
        return self.run_stage(
            StepIllustrationStage(self.client, self.image_model, step_index)
        )
