import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from arduino_lab.ir.components import Component
from arduino_lab.ir.errors import ResponseParseError
from arduino_lab.ir.instructions import InstructionStep
from arduino_lab.ir.project import Project
from arduino_lab.utils.json_extract import extract_json

T = TypeVar("T", bound=BaseModel)


@dataclass
class ParsedResponse(Generic[T]):
    items: List[T] = field(default_factory=list)

    @property
    def no_results(self) -> bool:
        return not self.items

    def __len__(self) -> int:
        return len(self.items)


# ============================================================
# OUTER ENVELOPE (LLM TRUST BOUNDARY)
# ============================================================

def _load_envelope(raw: str) -> Dict[str, Any]:
    try:
        envelope = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise ResponseParseError(f"Response body is not valid JSON: {e}") from e

    if not isinstance(envelope, dict):
        raise ResponseParseError("Response body is not a JSON object")
    return envelope


def extract_message_content(raw: str) -> str:
    """
    Pull choices[0].message.content out of a chat-completion response.
    """
    envelope = _load_envelope(raw)

    try:
        content = envelope["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ResponseParseError("Response has no choices[0].message.content") from e

    if not isinstance(content, str) or not content.strip():
        raise ResponseParseError("Model content is empty or missing")

    return content


def extract_image_bytes(raw: str) -> bytes:
    """
    Decode data[0].b64_json from an image-generation response.
    """
    envelope = _load_envelope(raw)

    try:
        encoded = envelope["data"][0]["b64_json"]
    except (KeyError, IndexError, TypeError) as e:
        raise ResponseParseError("Response has no data[0].b64_json") from e

    if not isinstance(encoded, str) or not encoded:
        raise ResponseParseError("Image payload is empty")

    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ResponseParseError(f"Image payload is not valid base64: {e}") from e


# ============================================================
# INNER PAYLOAD
# ============================================================

def _describe(exc: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    )


def parse_payload(content: str, key: str, model: Type[T]) -> ParsedResponse[T]:
    """
    Parse fenced or unfenced model content and validate every entry
    under `key`. A missing, null or empty array is "no results".
    Any invalid entry rejects the whole payload.
    """
    data = extract_json(content)

    entries = data.get(key)
    if entries is None:
        return ParsedResponse()

    if not isinstance(entries, list):
        raise ResponseParseError(
            f"'{key}' must be an array, got {type(entries).__name__}"
        )

    items: List[T] = []
    problems: List[str] = []

    for index, entry in enumerate(entries):
        try:
            items.append(model.model_validate(entry))
        except PydanticValidationError as e:
            problems.append(f"{key}[{index}] {_describe(e)}")

    if problems:
        raise ResponseParseError(
            f"Rejected {len(problems)} malformed '{key}' entr"
            f"{'y' if len(problems) == 1 else 'ies'}",
            problems=problems,
        )

    return ParsedResponse(items=items)


# ============================================================
# SCHEMA PARSERS
# ============================================================

def parse_components(content: str) -> ParsedResponse[Component]:
    return parse_payload(content, "components", Component)


def parse_projects(content: str) -> ParsedResponse[Project]:
    return parse_payload(content, "projects", Project)


def parse_instructions(content: str) -> ParsedResponse[InstructionStep]:
    return parse_payload(content, "instructions", InstructionStep)


def parse_components_response(raw: str) -> ParsedResponse[Component]:
    return parse_components(extract_message_content(raw))


def parse_projects_response(raw: str) -> ParsedResponse[Project]:
    return parse_projects(extract_message_content(raw))


def parse_instructions_response(raw: str) -> ParsedResponse[InstructionStep]:
    return parse_instructions(extract_message_content(raw))
