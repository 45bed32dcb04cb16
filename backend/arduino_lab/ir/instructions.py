from pydantic import BaseModel, Field
from typing import Optional


class CodeSnippet(BaseModel):
    language: str
    snippet: str


class InstructionStep(BaseModel):
    step: int = Field(strict=True)
    text: str
    code: Optional[CodeSnippet] = None  # null when the step needs no code
    image_prompt: str
