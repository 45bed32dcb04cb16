from pydantic import BaseModel, Field
from typing import Literal, Optional, get_args

# ---- Vocabulary ----

ComponentId = Literal[
    "arduino",
    "breadboard",
    "dc_motor",
    "diode",
    "flex_sensor",
    "led",
    "lcd_screen",
    "photo_resistor",
    "potentiometer",
    "push_button",
    "relay",
    "servo_motor",
    "soft_potentiometer",
    "temp_sensor",
    "transistor",
    "integrated_circuit",
    "piezo_buzzer",
    "resistor",
]

COMPONENT_VOCABULARY: tuple = get_args(ComponentId)

# Everything the camera scan is asked to count (resistors are implied, not scanned)
DETECTABLE_COMPONENTS: tuple = tuple(c for c in COMPONENT_VOCABULARY if c != "resistor")


def is_known_component(item: str) -> bool:
    return item in COMPONENT_VOCABULARY


def format_component_name(item: str) -> str:
    """'photo_resistor' -> 'Photo resistor'"""
    if not item:
        return ""
    return (
        item[0].upper()
        + item[1:].replace("_", " ").replace("(", " (")
    ).strip()


# ---- Core Concepts ----

class Component(BaseModel):
    item: ComponentId
    quantity: int = Field(ge=0, strict=True)
    value: Optional[int] = Field(default=None, strict=True)  # e.g. ohms for a resistor

    @property
    def display_name(self) -> str:
        return format_component_name(self.item)
