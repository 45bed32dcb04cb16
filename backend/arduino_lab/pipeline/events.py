import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# ----------------------------
# Channels
# ----------------------------

COMPONENTS = "components"
PROJECTS = "projects"
INSTRUCTIONS = "instructions"
IMAGES = "images"


@dataclass
class ResponseEvent:
    channel: str
    ticket: int
    raw: Optional[str]
    items: List[Any]

    @property
    def no_results(self) -> bool:
        return not self.items


Listener = Callable[[ResponseEvent], None]


class RequestTracker:
    """
    Hands out increasing tickets per channel. Only the newest ticket
    of a channel is current; older responses are stale.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._latest: Dict[str, int] = defaultdict(int)

    def begin(self, channel: str) -> int:
        with self._lock:
            self._latest[channel] += 1
            return self._latest[channel]

    def is_current(self, channel: str, ticket: int) -> bool:
        with self._lock:
            return self._latest[channel] == ticket


class ResponseNotifier:
    """
    "Response received" notifications, per channel.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, channel: str, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners[channel].append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners[channel]:
                    self._listeners[channel].remove(listener)

        return unsubscribe

    def publish(self, event: ResponseEvent) -> None:
        with self._lock:
            listeners = list(self._listeners[event.channel])

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                # remaining listeners still run
                logger.exception("Listener %r failed on %s", listener, event.channel)
