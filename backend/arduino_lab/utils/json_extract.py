import json
import re
from typing import Any, Dict

from arduino_lab.ir.errors import ResponseParseError

_OPENING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\r?\n?")
_CLOSING_FENCE = re.compile(r"\r?\n?[ \t]*```$")
_FENCED_BLOCK = re.compile(r"```[\w+-]*[ \t]*\r?\n(.*?)```", re.DOTALL)
_FIRST_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def strip_markdown_fences(text: str) -> str:
    """
    Remove a leading ```lang fence and a trailing ``` fence.
    Unfenced text only has its surrounding whitespace trimmed.
    """
    cleaned = text.strip()
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def extract_json(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of model output.

    Strategy:
    1. Strip fences and try json.loads (fast path)
    2. Fallback to a fenced block buried in prose
    3. Fallback to the first {...} span

    Raises ResponseParseError when nothing parses to an object.
    """
    if not isinstance(text, str) or not text.strip():
        raise ResponseParseError("Model content is empty")

    candidates = [strip_markdown_fences(text)]

    block = _FENCED_BLOCK.search(text)
    if block:
        candidates.append(block.group(1).strip())

    match = _FIRST_OBJECT.search(text)
    if match:
        candidates.append(match.group(0))

    last_error = None
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = e
            continue

        if not isinstance(data, dict):
            raise ResponseParseError(
                f"Expected a JSON object, got {type(data).__name__}"
            )
        return data

    raise ResponseParseError(f"Model content is not valid JSON: {last_error}")
