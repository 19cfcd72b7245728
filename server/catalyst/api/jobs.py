import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from catalyst.api.dependencies import get_job_queue
from catalyst.config import settings
from catalyst.models.chat import ChatMessage
from catalyst.models.job import (
    CodeGenerationPayload,
    CodeModificationPayload,
    GenerateCodeRequest,
    JobCreatedResponse,
    JobStatusResponse,
)
from catalyst.models.security import Feature
from catalyst.services.job_queue import JobQueue
from catalyst.services.prompt_guard import (
    is_feature_enabled,
    log_security_event,
    screen_text,
    send_security_alert,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _require_feature(feature: Feature) -> None:
    if not is_feature_enabled(feature):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{feature.replace('_', ' ').capitalize()} is temporarily disabled",
        )


def _screen(
    text: str,
    user_id: int | None,
    background: BackgroundTasks,
    min_length: int = 0,
) -> str:
    """Run the prompt guard on one field and return its sanitized text.

    Refusals become 400s; jailbreaks are also reported.
    """
    check = screen_text(text, user_id=user_id, min_length=min_length)
    if check.is_valid:
        return check.sanitized

    if check.verdict.is_jailbreak:
        event = log_security_event(
            user_id=user_id,
            event_type="jailbreak_attempt",
            severity="high",
            details=f"Blocked request matching {check.verdict.matched_pattern}",
            prompt=text,
        )
        background.add_task(send_security_alert, event)

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=check.reason)


def _screen_generation(request: GenerateCodeRequest, background: BackgroundTasks) -> CodeGenerationPayload:
    user_id = request.user_id
    description = _screen(request.description, user_id, background, settings.min_request_length)
    project_name = _screen(request.project_name, user_id, background)

    history = []
    for message in request.conversation_history:
        if message.role == "system":
            # Never forwarded to the model
            continue
        content = _screen(message.content, user_id, background)
        history.append(ChatMessage(role=message.role, content=content))

    return CodeGenerationPayload(
        project_name=project_name,
        description=description,
        template_id=request.template_id,
        conversation_history=history,
    )


def _screen_modification(request: CodeModificationPayload, background: BackgroundTasks) -> CodeModificationPayload:
    description = _screen(request.description, request.user_id, background, settings.min_request_length)
    return request.model_copy(update={"description": description})


@router.post("/generate", status_code=status.HTTP_202_ACCEPTED)
async def submit_generation(
    request: GenerateCodeRequest,
    background: BackgroundTasks,
    queue: JobQueue = Depends(get_job_queue),
) -> JobCreatedResponse:
    """Queue a project generation job. Poll ``GET /api/jobs/{job_id}`` for progress."""
    _require_feature("code_generation")
    # Regex screening is CPU-bound; keep it off the event loop
    payload = await run_in_threadpool(_screen_generation, request, background)
    job_id = queue.create_job("code_generation", payload)
    return JobCreatedResponse(job_id=job_id)


@router.post("/modify", status_code=status.HTTP_202_ACCEPTED)
async def submit_modification(
    request: CodeModificationPayload,
    background: BackgroundTasks,
    queue: JobQueue = Depends(get_job_queue),
) -> JobCreatedResponse:
    """Queue an AI change to an existing repository."""
    _require_feature("code_modification")
    payload = await run_in_threadpool(_screen_modification, request, background)
    job_id = queue.create_job("code_modification", payload)
    return JobCreatedResponse(job_id=job_id)


@router.get("/{job_id}", response_model_exclude_none=True)
async def get_job_status(job_id: str, queue: JobQueue = Depends(get_job_queue)) -> JobStatusResponse:
    """Get job progress. Finished jobs are kept for one hour after their last update."""
    job = queue.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse.from_job(job)
