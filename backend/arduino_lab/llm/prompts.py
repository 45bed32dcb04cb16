from pathlib import Path
from string import Template

from arduino_lab.ir.components import COMPONENT_VOCABULARY, DETECTABLE_COMPONENTS


def load_prompt(filename: str) -> str:
    """
    Load LLM prompt files from the package's prompts/ directory.
    """
    prompt_dir = Path(__file__).resolve().parent / "prompts"
    return (prompt_dir / filename).read_text(encoding="utf-8")


def component_detection_prompt() -> str:
    lines = "\n".join(f"- {item}" for item in DETECTABLE_COMPONENTS)
    return Template(load_prompt("detect_components.txt")).substitute(
        component_lines=lines,
    )


def project_generation_prompt(components: str) -> str:
    return Template(load_prompt("generate_projects.txt")).substitute(
        components=components,
        vocabulary=", ".join(COMPONENT_VOCABULARY),
    )


def instruction_generation_prompt(title: str, description: str, components: str) -> str:
    return Template(load_prompt("generate_instructions.txt")).substitute(
        title=title,
        description=description,
        components=components,
    )
