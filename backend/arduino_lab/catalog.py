import logging
import random
from functools import lru_cache
from pathlib import Path
from typing import Optional

from arduino_lab.ir.project import ProjectList
from arduino_lab.ir.tips import Tip, TipList

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"


def load_data_file(filename: str) -> str:
    """
    Load a bundled JSON file from the package's data/ directory.
    """
    return (DATA_DIR / filename).read_text(encoding="utf-8")


@lru_cache(maxsize=1)
def load_catalog() -> ProjectList:
    """Built-in projects, selectable without asking the model."""
    catalog = ProjectList.model_validate_json(load_data_file("projects.json"))
    logger.info("Loaded %d catalog projects", len(catalog.projects))
    return catalog


@lru_cache(maxsize=1)
def load_tips() -> TipList:
    return TipList.model_validate_json(load_data_file("tips.json"))


def random_tip(tips: Optional[TipList] = None, rng: Optional[random.Random] = None) -> Optional[Tip]:
    tips = tips if tips is not None else load_tips()
    if not tips.tips:
        return None
    return (rng or random).choice(tips.tips)
