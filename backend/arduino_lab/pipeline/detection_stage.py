from arduino_lab.inference.base import LLMClient
from arduino_lab.ir.validation import ValidationResult
from arduino_lab.llm.parser import parse_components_response
from arduino_lab.llm.prompts import component_detection_prompt
from arduino_lab.llm.request_builder import DETECTION_MAX_TOKENS, build_vision_request
from arduino_lab.pipeline import events
from arduino_lab.pipeline.context import SessionContext
from arduino_lab.pipeline.stage import PipelineStage, StageOutput


class ComponentDetectionStage(PipelineStage):
    """
    Counts the Arduino components visible in one camera frame.
    """

    name = "component_detection"
    channel = events.COMPONENTS

    def __init__(self, client: LLMClient, model: str, image: bytes):
        super().__init__(client, model)
        self.image = image

    def check(self, context: SessionContext) -> ValidationResult:
        if not self.image:
            return ValidationResult.single("encoding", "No image supplied", self.name)
        return ValidationResult.success()

    def execute(self, context: SessionContext) -> StageOutput:
        # encoding errors surface here, before anything is sent
        payload = build_vision_request(
            component_detection_prompt(),
            self.image,
            model=self.model,
            max_tokens=DETECTION_MAX_TOKENS,
        )

        raw = self.client.complete(payload)
        parsed = parse_components_response(raw)

        return StageOutput(items=parsed.items, raw=raw)

    def apply(self, context: SessionContext, output: StageOutput) -> None:
        context.detected_components = list(output.items)
