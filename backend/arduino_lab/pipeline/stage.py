from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional

from arduino_lab.inference.base import LLMClient
from arduino_lab.ir.validation import ValidationResult
from arduino_lab.pipeline.context import SessionContext


@dataclass
class StageOutput:
    items: List[Any] = field(default_factory=list)
    raw: Optional[str] = None
    title: Optional[str] = None  # e.g. the project the instructions were built for

    @property
    def no_results(self) -> bool:
        return not self.items


class PipelineStage(ABC):
    name: str
    channel: str

    def __init__(self, client: LLMClient, model: str):
        self.client = client
        self.model = model

    def check(self, context: SessionContext) -> ValidationResult:
        """Preconditions. Runs before any request is built."""
        return ValidationResult.success()

    @abstractmethod
    def execute(self, context: SessionContext) -> StageOutput:
        """
        Must:
        - read from context, NEVER write to it
        - send at most one request
        - raise LabAssistantError subclasses on failure
        """
        pass

    @abstractmethod
    def apply(self, context: SessionContext, output: StageOutput) -> None:
        """Write a current (non-stale) output into the context."""
        pass

    @property
    def ticket_key(self) -> str:
        """Requests sharing a key supersede each other."""
        return self.channel
