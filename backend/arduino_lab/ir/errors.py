from dataclasses import dataclass
from typing import List, Optional


@dataclass
class ValidationError:
    level: str
    message: str
    object_id: str


# ============================================================
# EXCEPTIONS
# ============================================================

class LabAssistantError(Exception):
    """Base class for every error raised by the assistant backend."""


class ApiKeyNotFoundError(LabAssistantError):
    pass


class ImageEncodingError(LabAssistantError):
    """The camera frame could not be turned into a base64 JPEG."""


class TransportError(LabAssistantError):
    """
    A request to the model API did not succeed.

    `body` keeps the raw upstream response (if any) for diagnostics.
    `status_code` is None when no HTTP response was received at all.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ResponseParseError(LabAssistantError):
    def __init__(self, message: str, problems: Optional[List[str]] = None):
        super().__init__(message)
        self.problems = problems or []


class UnknownComponentError(LabAssistantError):
    def __init__(self, item: str):
        super().__init__(f"Unknown component identifier: {item!r}")
        self.item = item
