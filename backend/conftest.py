import io
import json
from collections import deque

import pytest
from PIL import Image


def make_chat_response(content: str) -> str:
    return json.dumps(
        {
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ],
        }
    )


class FakeClient:
    """Stands in for OpenAIClient: replays queued raw bodies or raises queued errors."""

    def __init__(self):
        self.responses = deque()
        self.payloads = []
        self.before_return = None

    def queue(self, body_or_error):
        self.responses.append(body_or_error)
        return self

    def _next(self, payload):
        self.payloads.append(payload)
        item = self.responses.popleft()
        if self.before_return:
            self.before_return()
        if isinstance(item, Exception):
            raise item
        return item

    def complete(self, payload):
        return self._next(payload)

    def generate_image(self, payload):
        return self._next(payload)


@pytest.fixture
def chat_response():
    return make_chat_response


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGBA", (64, 48), (200, 30, 30, 255)).save(buffer, format="PNG")
    return buffer.getvalue()
