from fastapi import APIRouter

from catalyst.models.security import (
    PromptValidationRequest,
    RateLimitPolicy,
    SecurityVerdict,
    ValidationResult,
)
from catalyst.services.prompt_guard import (
    RATE_LIMITS,
    detect_jailbreak,
    validate_code_modification_request,
)

router = APIRouter()


@router.post("/validate")
def validate_prompt(request: PromptValidationRequest) -> ValidationResult:
    """Dry-run the prompt guard. Refusals come back as data, not errors.

    Plain ``def`` so the regex scan runs in the threadpool.
    """
    return validate_code_modification_request(request.text, user_id=request.user_id)


@router.post("/detect")
def detect_prompt(request: PromptValidationRequest) -> SecurityVerdict:
    return detect_jailbreak(request.text)


@router.get("/rate-limits")
async def get_rate_limits() -> dict[str, RateLimitPolicy]:
    """Per-feature request caps. Enforcement happens in front of this service."""
    return RATE_LIMITS
