"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.

Contact fields are optional at this layer: presence and format are checked by
the lead identity service so every entry point reports the same errors.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.lead import LeadOrigin


# ============================================================================
# Lead Models
# ============================================================================

class LeadCreateRequest(BaseModel):
    """QR code / spontaneous / traffic registration."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    origin: LeadOrigin = LeadOrigin.QR_CODE
    lgpd_consent: bool = False
    franchise_interest: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Ana Silva",
                "email": "ana@example.com",
                "phone": "(11) 98765-4321",
                "origin": "qr_code",
                "lgpd_consent": True,
                "franchise_interest": False
            }
        }


class LeadSummary(BaseModel):
    id: UUID
    name: str
    email: str
    phone: str
    created_at: datetime


class LeadCreateResponse(BaseModel):
    success: bool = True
    message: str
    lead: LeadSummary
    existing: bool


class RegisterRequest(BaseModel):
    """Registration for the prize wheel or the survey."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    lgpd_consent: bool = False


# ============================================================================
# Reward Models
# ============================================================================

class PrizeResponse(BaseModel):
    slug: str
    name: str
    color: Optional[str] = None
    emoji: Optional[str] = None


class RoletaRegisterResponse(BaseModel):
    lead_id: UUID
    name: str
    already_spun: bool
    prize: Optional[PrizeResponse] = None


class SpinRequest(BaseModel):
    lead_id: UUID


class SpinResponse(BaseModel):
    already_spun: bool
    prize: PrizeResponse


class PesquisaRegisterResponse(BaseModel):
    lead_id: UUID
    name: str
    already_answered: bool
    prize: Optional[PrizeResponse] = None


class SurveySubmitRequest(BaseModel):
    lead_id: UUID
    answers: Dict[str, Any] = Field(
        ...,
        description="Answers keyed by question id"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "lead_id": "123e4567-e89b-12d3-a456-426614174000",
                "answers": {"evento_geral": 5, "voltaria": "sim", "melhorar": ""}
            }
        }


class SurveySubmitResponse(BaseModel):
    already_answered: bool
    prize: PrizeResponse


class SurveyQuestionsResponse(BaseModel):
    questions: List[Dict[str, Any]]
    prize: Dict[str, Any]


# ============================================================================
# AI Photo Models
# ============================================================================

class GenerateRequest(BaseModel):
    """Validated by the generation service (INVALID_PHOTO on bad input)."""
    lead_id: Optional[str] = None
    photo_url: Optional[str] = None
    template_id: Optional[str] = None


class GenerateResponse(BaseModel):
    success: bool = True
    generation_id: UUID


class VariantResponse(BaseModel):
    status: str
    url: Optional[str] = None


class GenerationResponse(BaseModel):
    id: UUID
    status: str
    variants: List[VariantResponse]
    error_message: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    stale: bool = False


class StatusResponse(BaseModel):
    success: bool = True
    generation: GenerationResponse


class TemplateResponse(BaseModel):
    id: UUID
    slug: str
    name: str
    description: Optional[str] = None
    preview_url: str
    aspect_ratio: str


class TemplateListResponse(BaseModel):
    templates: List[TemplateResponse]


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    code: str

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "Lead not found",
                "code": "LEAD_NOT_FOUND"
            }
        }
