import json
import logging
from typing import Any, Dict, Optional

import requests

from arduino_lab.inference.base import LLMClient
from arduino_lab.ir.errors import TransportError
from arduino_lab.llm.request_builder import redact_payload, serialize_request

logger = logging.getLogger(__name__)


class OpenAIClient(LLMClient):
    """
    One POST per call, bearer auth, buffered response.
    No retries: a failed call surfaces as TransportError with the raw body.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: Optional[float] = 300,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def complete(self, payload: Dict[str, Any]) -> str:
        return self._post("/chat/completions", payload)

    def generate_image(self, payload: Dict[str, Any]) -> str:
        return self._post("/images/generations", payload)

    def _post(self, path: str, payload: Dict[str, Any]) -> str:
        url = f"{self.base_url}{path}"

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("POST %s payload: %s", url, json.dumps(redact_payload(payload)))

        try:
            response = self.session.post(
                url,
                data=serialize_request(payload).encode("utf-8"),
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Request to %s failed: %s", url, e)
            raise TransportError(f"Request to {url} failed: {e}") from e

        body = response.text

        if not response.ok:
            logger.error("OpenAI error %s from %s: %s", response.status_code, url, body)
            raise TransportError(
                f"OpenAI returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        logger.debug("Raw response from %s: %s", url, body)
        return body
