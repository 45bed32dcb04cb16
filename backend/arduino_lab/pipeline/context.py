from dataclasses import dataclass, field
from typing import Dict, List, Optional

from arduino_lab.inventory import Inventory
from arduino_lab.ir.components import Component
from arduino_lab.ir.errors import ValidationError
from arduino_lab.ir.instructions import InstructionStep
from arduino_lab.ir.project import Project


@dataclass
class SessionContext:
    # Owned components (authoritative)
    inventory: Inventory = field(default_factory=Inventory)

    # Latest scan, not yet added to the inventory
    detected_components: List[Component] = field(default_factory=list)

    # Project flow
    project_suggestions: List[Project] = field(default_factory=list)
    selected_project: Optional[Project] = None
    instructions: List[InstructionStep] = field(default_factory=list)
    step_images: Dict[int, bytes] = field(default_factory=dict)  # step index -> PNG

    errors: list[ValidationError] = field(default_factory=list)

    def add_error(self, error: ValidationError):
        self.errors.append(error)
