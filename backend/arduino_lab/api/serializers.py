from typing import Iterable, List

from arduino_lab.ir.components import Component
from arduino_lab.schemas import ComponentView


def serialize_component(component: Component) -> ComponentView:
    return ComponentView(
        item=component.item,
        display_name=component.display_name,
        quantity=component.quantity,
        value=component.value,
    )


def serialize_components(components: Iterable[Component]) -> List[ComponentView]:
    return [serialize_component(c) for c in components]
