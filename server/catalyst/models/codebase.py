from typing import Literal

from pydantic import Field

from catalyst.models.base import CamelModel
from catalyst.models.job import FileContext


CodebaseComplexity = Literal["simple", "moderate", "complex"]


class KeyComponent(CamelModel):
    name: str
    description: str = ""
    files: list[str] = Field(default_factory=list)


class CodebaseAnalysis(CamelModel):
    tech_stack: list[str] = Field(default_factory=list)
    structure: str = ""
    key_components: list[KeyComponent] = Field(default_factory=list)
    summary: str = ""
    recommendations: list[str] = Field(default_factory=list)
    complexity: CodebaseComplexity = "simple"
    total_files: int = 0
    total_lines: int = 0


class CodebaseAnalysisRequest(CamelModel):
    files: list[FileContext] = Field(default_factory=list)
