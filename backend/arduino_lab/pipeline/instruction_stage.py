from arduino_lab.ir.validation import ValidationResult
from arduino_lab.llm.parser import parse_instructions_response
from arduino_lab.llm.prompts import instruction_generation_prompt
from arduino_lab.llm.request_builder import INSTRUCTIONS_MAX_TOKENS, build_text_request
from arduino_lab.pipeline import events
from arduino_lab.pipeline.context import SessionContext
from arduino_lab.pipeline.stage import PipelineStage, StageOutput


class InstructionStage(PipelineStage):
    """
    Builds the step-by-step guide for the selected project.
    Steps keep the order the model returned them in.
    """

    name = "instructions"
    channel = events.INSTRUCTIONS

    def check(self, context: SessionContext) -> ValidationResult:
        if context.selected_project is None:
            return ValidationResult.single(
                "precondition", "No project selected", self.name
            )
        return ValidationResult.success()

    def execute(self, context: SessionContext) -> StageOutput:
        project = context.selected_project

        payload = build_text_request(
            instruction_generation_prompt(
                title=project.title,
                description=project.description,
                components=context.inventory.compound_string(),
            ),
            model=self.model,
            max_tokens=INSTRUCTIONS_MAX_TOKENS,
        )

        raw = self.client.complete(payload)
        parsed = parse_instructions_response(raw)

        return StageOutput(items=parsed.items, raw=raw, title=project.title)

    def apply(self, context: SessionContext, output: StageOutput) -> None:
        context.instructions = list(output.items)
        context.step_images.clear()
