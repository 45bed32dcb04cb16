from abc import ABC, abstractmethod
from typing import Any, Dict


class LLMClient(ABC):
    @abstractmethod
    def complete(self, payload: Dict[str, Any]) -> str:
        """Send a chat-completion payload, return the raw response body"""
        pass

    @abstractmethod
    def generate_image(self, payload: Dict[str, Any]) -> str:
        """Send an image-generation payload, return the raw response body"""
        pass
