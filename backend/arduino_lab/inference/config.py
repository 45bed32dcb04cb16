import logging
import os
from enum import Enum
from pathlib import Path

from arduino_lab import config
from arduino_lab.ir.errors import ApiKeyNotFoundError
from .openai_client import OpenAIClient

logger = logging.getLogger(__name__)


class VisionModel(str, Enum):
    """Supported OpenAI vision-capable models."""

    GPT_4O = "gpt-4o"
    GPT_4_1_MINI = "gpt-4.1-mini"

    @property
    def model_string(self) -> str:
        return {
            VisionModel.GPT_4O: "chatgpt-4o-latest",
            VisionModel.GPT_4_1_MINI: "gpt-4.1-mini",
        }[self]


def resolve_vision_model(name: str) -> str:
    try:
        return VisionModel(name).model_string
    except ValueError:
        # unknown aliases are sent as-is
        logger.warning("Unknown vision model alias %r, using it verbatim", name)
        return name


def load_api_key(key_file: str = config.OPENAI_API_KEY_FILE) -> str:
    """
    OPENAI_API_KEY wins; otherwise read the local secret file.
    """
    key = os.getenv("OPENAI_API_KEY", "").strip()
    if key:
        return key

    path = Path(key_file)
    if not path.is_file():
        logger.error("API key file not found: %s", path)
        raise ApiKeyNotFoundError(
            f"Set OPENAI_API_KEY or create the key file {path}"
        )

    key = path.read_text(encoding="utf-8").strip()
    if not key:
        raise ApiKeyNotFoundError(f"API key file {path} is empty")
    return key.splitlines()[0].strip()


def get_llm_client() -> OpenAIClient:
    return OpenAIClient(
        base_url=config.OPENAI_BASE_URL,
        api_key=load_api_key(),
        timeout=config.OPENAI_TIMEOUT,
    )
