from fastapi import APIRouter, HTTPException

from catalyst.models.template import ProjectTemplate
from catalyst.services.templates import (
    TEMPLATES,
    get_all_categories,
    get_template_by_id,
    get_templates_by_category,
)

router = APIRouter()


@router.get("")
async def list_templates(category: str | None = None) -> list[ProjectTemplate]:
    if category:
        return get_templates_by_category(category)
    return TEMPLATES


@router.get("/categories")
async def list_categories() -> list[str]:
    return get_all_categories()


@router.get("/{template_id}")
async def get_template(template_id: str) -> ProjectTemplate:
    template = get_template_by_id(template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return template
