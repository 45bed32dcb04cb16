from pydantic import BaseModel, Field
from typing import List, Optional


class Tip(BaseModel):
    text: str
    category: Optional[str] = None  # beginner | safety | info


class TipList(BaseModel):
    tips: List[Tip] = Field(default_factory=list)
