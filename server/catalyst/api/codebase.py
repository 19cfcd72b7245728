import logging

from fastapi import APIRouter, Depends, HTTPException, status

from catalyst.api.dependencies import get_modification_service
from catalyst.models.codebase import CodebaseAnalysis, CodebaseAnalysisRequest
from catalyst.services.code_modification_service import CodeModificationService
from catalyst.services.prompt_guard import is_feature_enabled

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/analyze")
async def analyze_codebase(
    request: CodebaseAnalysisRequest,
    service: CodeModificationService = Depends(get_modification_service),
) -> CodebaseAnalysis:
    """Summarize a repository snapshot: tech stack, structure, key components."""
    if not is_feature_enabled("codebase_analysis"):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Codebase analysis is temporarily disabled",
        )

    try:
        return await service.analyze_codebase(request.files)
    except Exception as e:
        logger.exception("Codebase analysis failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Analysis failed. Please try again later.",
        ) from e
