"""
AI Photo API Endpoints.

Generation is synchronous: `POST /ai-photo/generate` returns once the request
has reached a terminal state. `GET /ai-photo/status/{id}` lets a client that
disconnected mid-generation read the result.
"""

from fastapi import APIRouter, Response

from api.models import (
    GenerateRequest,
    GenerateResponse,
    StatusResponse,
    TemplateListResponse,
    TemplateResponse,
)
from repositories.template_repository import list_active_templates
from services.generation_service import request_generation
from services.status_service import get_generation_status

router = APIRouter()

TEMPLATES_CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=60"


@router.post(
    "/ai-photo/generate",
    response_model=GenerateResponse,
    status_code=201,
    summary="Generate AI Photo",
)
def generate(request: GenerateRequest):
    """
    Generate an AI photo from the lead's uploaded photo.

    **Errors:**
    - 400 INVALID_PHOTO
    - 404 LEAD_NOT_FOUND / TEMPLATE_NOT_FOUND
    - 429 GENERATION_LIMIT
    - 502 AI_ERROR (the generation_id is included)
    - 500 INTERNAL_ERROR
    """
    generation_id = request_generation(
        request.lead_id,
        request.photo_url,
        request.template_id,
    )
    return GenerateResponse(generation_id=generation_id)


@router.get(
    "/ai-photo/status/{generation_id}",
    response_model=StatusResponse,
    summary="Get Generation Status",
)
def status(generation_id: str):
    view = get_generation_status(generation_id)
    return StatusResponse(generation=view.to_dict())


@router.get(
    "/ai-photo/templates",
    response_model=TemplateListResponse,
    summary="List Photo Templates",
)
def templates(response: Response):
    response.headers["Cache-Control"] = TEMPLATES_CACHE_CONTROL
    return TemplateListResponse(
        templates=[TemplateResponse(**t.public_view()) for t in list_active_templates()]
    )
