from pydantic import BaseModel, Field
from typing import List

from .components import Component


class Project(BaseModel):
    title: str
    description: str
    components: List[Component] = Field(default_factory=list)


class ProjectList(BaseModel):
    projects: List[Project] = Field(default_factory=list)
