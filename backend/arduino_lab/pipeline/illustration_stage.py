from arduino_lab.inference.base import LLMClient
from arduino_lab.ir.validation import ValidationResult
from arduino_lab.llm.parser import extract_image_bytes
from arduino_lab.llm.request_builder import build_image_generation_request
from arduino_lab.pipeline import events
from arduino_lab.pipeline.context import SessionContext
from arduino_lab.pipeline.stage import PipelineStage, StageOutput


class StepIllustrationStage(PipelineStage):
    """
    Draws the picture described by one step's image_prompt.
    """

    name = "step_illustration"
    channel = events.IMAGES

    def __init__(self, client: LLMClient, model: str, step_index: int):
        super().__init__(client, model)
        self.step_index = step_index

    def check(self, context: SessionContext) -> ValidationResult:
        if not context.instructions:
            return ValidationResult.single(
                "precondition", "No instructions generated yet", self.name
            )
        if not 0 <= self.step_index < len(context.instructions):
            return ValidationResult.single(
                "not_found",
                f"Step index {self.step_index} is out of range "
                f"(0..{len(context.instructions) - 1})",
                self.name,
            )
        return ValidationResult.success()

    def execute(self, context: SessionContext) -> StageOutput:
        step = context.instructions[self.step_index]

        payload = build_image_generation_request(step.image_prompt, model=self.model)

        raw = self.client.generate_image(payload)
        image = extract_image_bytes(raw)

        return StageOutput(items=[image], raw=raw)

    def apply(self, context: SessionContext, output: StageOutput) -> None:
        context.step_images[self.step_index] = output.items[0]

    @property
    def ticket_key(self) -> str:
        # each step has its own picture
        return f"{self.channel}:{self.step_index}"
