from typing import Literal

from pydantic import Field

from catalyst.models.base import CamelModel


TemplateComplexity = Literal["beginner", "intermediate", "advanced"]


class TechStack(CamelModel):
    frontend: list[str] = Field(default_factory=list)
    backend: list[str] = Field(default_factory=list)
    database: list[str] = Field(default_factory=list)
    other: list[str] = Field(default_factory=list)

    def layers(self) -> dict[str, list[str]]:
        """Non-empty layers only, in frontend/backend/database/other order."""
        return {k: v for k, v in self.model_dump().items() if v}


class ProjectTemplate(CamelModel):
    id: str
    name: str
    description: str
    category: str
    tags: list[str] = Field(default_factory=list)
    icon: str = ""
    features: list[str] = Field(default_factory=list)
    tech_stack: TechStack = Field(default_factory=TechStack)
    estimated_time: str = ""
    complexity: TemplateComplexity = "beginner"
