import base64
import copy
import io
import json
from typing import Any, Dict, Optional

from PIL import Image

from arduino_lab.ir.errors import ImageEncodingError


# Token budgets per call
DETECTION_MAX_TOKENS = 500
PROJECTS_MAX_TOKENS = 1000
INSTRUCTIONS_MAX_TOKENS = 15000

SCAN_IMAGE_SIZE = (512, 512)
JPEG_QUALITY = 90
GENERATED_IMAGE_SIZE = "1024x1024"

DATA_URL_PREFIX = "data:image/jpeg;base64,"


# ============================================================
# TEXT ESCAPING
# ============================================================

def escape_json_string(text: str) -> str:
    """
    Quote `text` as a JSON string literal.
    Quotes, backslashes, newlines and other control characters are escaped,
    and so is everything outside ASCII (lone surrogates included).
    """
    return json.dumps(text)


# ============================================================
# IMAGE ENCODING
# ============================================================

def encode_image(image_bytes: bytes) -> str:
    """
    Decode a camera frame, resize it to the scan size and return it
    as base64 JPEG. Raises ImageEncodingError before anything is sent.
    """
    if not image_bytes:
        raise ImageEncodingError("Image is empty")

    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            resized = img.convert("RGB").resize(SCAN_IMAGE_SIZE)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageEncodingError(f"Could not decode image: {e}") from e

    buffer = io.BytesIO()
    try:
        resized.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    except (OSError, ValueError) as e:
        raise ImageEncodingError(f"Could not encode image as JPEG: {e}") from e

    return base64.b64encode(buffer.getvalue()).decode("ascii")


# ============================================================
# CHAT COMPLETION PAYLOADS
# ============================================================

def _chat_request(model: str, max_tokens: int, content: Any) -> Dict[str, Any]:
    return {
        "model": model,
        "max_tokens": max_tokens,
        "messages": [
            {
                "role": "user",
                "content": content,
            }
        ],
    }


def build_text_request(prompt: str, model: str, max_tokens: int) -> Dict[str, Any]:
    return _chat_request(model, max_tokens, prompt)


def build_vision_request(
    prompt: str,
    image_bytes: bytes,
    model: str,
    max_tokens: int = DETECTION_MAX_TOKENS,
) -> Dict[str, Any]:
    """
    Single user message whose content mixes a text block and an
    image-data-URL block.
    """
    encoded = encode_image(image_bytes)

    return _chat_request(
        model,
        max_tokens,
        [
            {"type": "text", "text": prompt},
            {
                "type": "image_url",
                "image_url": {"url": DATA_URL_PREFIX + encoded},
            },
        ],
    )


def build_chat_request(
    prompt: str,
    model: str,
    max_tokens: int,
    image_bytes: Optional[bytes] = None,
) -> Dict[str, Any]:
    if image_bytes is None:
        return build_text_request(prompt, model, max_tokens)
    return build_vision_request(prompt, image_bytes, model, max_tokens)


def build_image_generation_request(
    prompt: str,
    model: str,
    size: str = GENERATED_IMAGE_SIZE,
) -> Dict[str, Any]:
    return {
        "model": model,
        "prompt": prompt,
        "size": size,
    }


# ============================================================
# SERIALIZATION
# ============================================================

def serialize_request(payload: Dict[str, Any]) -> str:
    """ASCII-only JSON, so the UTF-8 body can always be encoded."""
    return json.dumps(payload)


def redact_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of `payload` with inline image data shortened, for logging."""
    redacted = copy.deepcopy(payload)

    for message in redacted.get("messages", []):
        content = message.get("content")
        if not isinstance(content, list):
            continue
        for block in content:
            url = block.get("image_url", {}).get("url", "")
            if url.startswith(DATA_URL_PREFIX):
                size = len(url) - len(DATA_URL_PREFIX)
                block["image_url"]["url"] = f"{DATA_URL_PREFIX}<{size} chars>"

    return redacted
