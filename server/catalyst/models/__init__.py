from catalyst.models.chat import ChatMessage
from catalyst.models.codebase import CodebaseAnalysis, KeyComponent
from catalyst.models.job import (
    CodeGenerationPayload,
    CodeGenerationResult,
    CodeModificationPayload,
    CodeModificationResult,
    FileChange,
    FileContext,
    GeneratedFile,
    Job,
)
from catalyst.models.security import RateLimitPolicy, SecurityEvent, SecurityVerdict, ValidationResult
from catalyst.models.template import ProjectTemplate, TechStack

__all__ = [
    "ChatMessage",
    "CodebaseAnalysis",
    "KeyComponent",
    "CodeGenerationPayload",
    "CodeGenerationResult",
    "CodeModificationPayload",
    "CodeModificationResult",
    "FileChange",
    "FileContext",
    "GeneratedFile",
    "Job",
    "RateLimitPolicy",
    "SecurityEvent",
    "SecurityVerdict",
    "ValidationResult",
    "ProjectTemplate",
    "TechStack",
]
