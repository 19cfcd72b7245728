from datetime import datetime
from typing import Literal

from pydantic import Field

from catalyst.models.base import MAX_TEXT_CHARS, CamelModel
from catalyst.models.job import utcnow


Severity = Literal["none", "low", "medium", "high"]
RuleCategory = Literal[
    "instruction_override",
    "role_manipulation",
    "prompt_extraction",
    "delimiter_injection",
    "harmful_content",
    "data_exfiltration",
    "encoding_obfuscation",
    "language_smuggling",
    "destructive_operation",
]
SecurityEventType = Literal["jailbreak_attempt", "suspicious_pattern", "rate_limit_exceeded"]
Feature = Literal["code_generation", "code_modification", "codebase_analysis"]


class SecurityVerdict(CamelModel):
    is_jailbreak: bool = False
    severity: Severity = "none"
    matched_pattern: str | None = None
    category: RuleCategory | None = None


class ValidationResult(CamelModel):
    is_valid: bool
    sanitized: str = ""
    reason: str | None = None
    verdict: SecurityVerdict = Field(default_factory=SecurityVerdict)


class SecurityEvent(CamelModel):
    timestamp: datetime = Field(default_factory=utcnow)
    user_id: int | None = None
    event_type: SecurityEventType
    severity: Literal["low", "medium", "high"]
    details: str
    prompt: str | None = Field(default=None, max_length=200)


class RateLimitPolicy(CamelModel):
    per_hour: int
    per_day: int
    message: str


class PromptValidationRequest(CamelModel):
    text: str = Field(max_length=MAX_TEXT_CHARS)
    user_id: int | None = None
