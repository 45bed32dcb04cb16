import logging
import threading
from typing import Dict, Iterable, List

from arduino_lab.ir.components import COMPONENT_VOCABULARY, Component, is_known_component
from arduino_lab.ir.errors import UnknownComponentError
from arduino_lab.utils.pagination import Page, paginate

logger = logging.getLogger(__name__)

MIN_COMPONENTS_FOR_SUGGESTIONS = 3


class Inventory:
    """
    The user's components for one session. Lives in process memory only.
    Entries keep insertion order.

    Routes run in a threadpool, so every read-modify-write holds the lock.
    """

    def __init__(self, components: Iterable[Component] = ()):
        self._entries: Dict[str, Component] = {}
        self._lock = threading.RLock()
        self.merge(components)

    # ---------------------------
    # Mutation
    # ---------------------------

    def add_quantity(self, item: str, quantity: int, value: int | None = None) -> Component:
        """Add to an existing entry, or create it."""
        if not is_known_component(item):
            raise UnknownComponentError(item)

        with self._lock:
            current = self._entries.get(item)
            total = (current.quantity if current else 0) + quantity
            if total < 0:
                raise ValueError(f"Quantity of {item!r} cannot drop below zero")

            if value is None and current is not None:
                value = current.value

            self._entries[item] = Component(item=item, quantity=total, value=value)
            return self._entries[item]

    def increment(self, item: str) -> Component:
        return self.add_quantity(item, 1)

    def decrement(self, item: str) -> Component:
        with self._lock:
            current = self.get(item)
            if current.quantity == 0:
                return current
            return self.add_quantity(item, -1)

    def merge(self, components: Iterable[Component]) -> None:
        with self._lock:
            for component in components:
                self.add_quantity(component.item, component.quantity, component.value)

    def replace(self, components: Iterable[Component]) -> None:
        with self._lock:
            self._entries.clear()
            self.merge(components)

    def reset(self) -> None:
        """Restart: every known component back at zero."""
        with self._lock:
            self._entries = {
                item: Component(item=item, quantity=0) for item in COMPONENT_VOCABULARY
            }
        logger.info("Inventory reset")

    # ---------------------------
    # Queries
    # ---------------------------

    def get(self, item: str) -> Component:
        if not is_known_component(item):
            raise UnknownComponentError(item)
        with self._lock:
            return self._entries.get(item) or Component(item=item, quantity=0)

    def all(self) -> List[Component]:
        with self._lock:
            return list(self._entries.values())

    def non_zero(self) -> List[Component]:
        return [c for c in self.all() if c.quantity > 0]

    def can_suggest_projects(self) -> bool:
        return len(self.non_zero()) >= MIN_COMPONENTS_FOR_SUGGESTIONS

    def compound_string(self) -> str:
        """
        arduino x1
        led x3
        """
        return "".join(f"{c.item} x{c.quantity}\n" for c in self.non_zero())

    def page(self, page: int, page_size: int = 3) -> Page[Component]:
        return paginate(self.non_zero(), page, page_size)

    def __len__(self) -> int:
        return len(self._entries)
