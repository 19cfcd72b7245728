from datetime import datetime, timezone
from typing import Literal

from pydantic import Field

from catalyst.models.base import MAX_HISTORY_MESSAGES, MAX_NAME_CHARS, MAX_TEXT_CHARS, CamelModel
from catalyst.models.chat import ChatMessage


JobType = Literal["code_generation", "code_modification"]
JobStatus = Literal["pending", "processing", "completed", "failed"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed"})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileContext(CamelModel):
    path: str
    content: str
    language: str | None = None


# ── Payloads ─────────────────────────────────────────────────


class CodeGenerationPayload(CamelModel):
    project_name: str = Field(max_length=MAX_NAME_CHARS)
    description: str = Field(max_length=MAX_TEXT_CHARS)
    template_id: str | None = None
    conversation_history: list[ChatMessage] = Field(default_factory=list, max_length=MAX_HISTORY_MESSAGES)


class CodeModificationPayload(CamelModel):
    description: str = Field(max_length=MAX_TEXT_CHARS)
    files: list[FileContext] = Field(default_factory=list)
    repo_name: str
    user_id: int | None = None
    project_id: int | None = None


# ── Results ──────────────────────────────────────────────────


class GeneratedFile(CamelModel):
    path: str
    content: str
    language: str = "text"


class CodeGenerationResult(CamelModel):
    files: list[GeneratedFile] = Field(default_factory=list)
    summary: str = ""
    next_steps: list[str] = Field(default_factory=list)


class FileChange(CamelModel):
    path: str
    content: str
    explanation: str = ""


class CodeModificationResult(CamelModel):
    files_to_modify: list[str] = Field(default_factory=list)
    changes: list[FileChange] = Field(default_factory=list)
    summary: str = ""
    branch_name: str
    pr_title: str
    pr_body: str


JobPayload = CodeGenerationPayload | CodeModificationPayload
JobResult = CodeGenerationResult | CodeModificationResult

PAYLOAD_MODELS: dict[str, type[CodeGenerationPayload] | type[CodeModificationPayload]] = {
    "code_generation": CodeGenerationPayload,
    "code_modification": CodeModificationPayload,
}


class Job(CamelModel):
    id: str
    type: JobType
    status: JobStatus = "pending"
    progress: int = Field(ge=0, le=100, default=0)
    payload: JobPayload
    result: JobResult | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class JobStatusResponse(CamelModel):
    """Poll response; ``result`` and ``error`` are omitted until set."""

    id: str
    type: JobType
    status: JobStatus
    progress: int
    result: JobResult | None = None
    error: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_job(cls, job: Job) -> "JobStatusResponse":
        return cls(
            id=job.id,
            type=job.type,
            status=job.status,
            progress=job.progress,
            result=job.result,
            error=job.error,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class JobCreatedResponse(CamelModel):
    job_id: str
    status: JobStatus = "pending"


# ── Requests ─────────────────────────────────────────────────


class GenerateCodeRequest(CodeGenerationPayload):
    user_id: int | None = None
