from arduino_lab.inventory import MIN_COMPONENTS_FOR_SUGGESTIONS
from arduino_lab.ir.validation import ValidationResult
from arduino_lab.llm.parser import parse_projects_response
from arduino_lab.llm.prompts import project_generation_prompt
from arduino_lab.llm.request_builder import PROJECTS_MAX_TOKENS, build_text_request
from arduino_lab.pipeline import events
from arduino_lab.pipeline.context import SessionContext
from arduino_lab.pipeline.stage import PipelineStage, StageOutput


class ProjectSuggestionStage(PipelineStage):
    name = "project_suggestion"
    channel = events.PROJECTS

    def check(self, context: SessionContext) -> ValidationResult:
        if not context.inventory.can_suggest_projects():
            return ValidationResult.single(
                "precondition",
                f"Add at least {MIN_COMPONENTS_FOR_SUGGESTIONS} different "
                "components to get project suggestions.",
                self.name,
            )
        return ValidationResult.success()

    def execute(self, context: SessionContext) -> StageOutput:
        payload = build_text_request(
            project_generation_prompt(context.inventory.compound_string()),
            model=self.model,
            max_tokens=PROJECTS_MAX_TOKENS,
        )

        raw = self.client.complete(payload)
        parsed = parse_projects_response(raw)

        return StageOutput(items=parsed.items, raw=raw)

    def apply(self, context: SessionContext, output: StageOutput) -> None:
        context.project_suggestions = list(output.items)
        context.selected_project = None
