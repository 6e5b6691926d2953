"""
Leads API Endpoints.

QR code / spontaneous / traffic registration.
"""

from fastapi import APIRouter

from api.models import LeadCreateRequest, LeadCreateResponse, LeadSummary
from services.lead_identity_service import resolve

router = APIRouter()


@router.post(
    "/leads",
    response_model=LeadCreateResponse,
    summary="Register Lead",
    description="Register an attendee, or return the existing lead for the same email or phone."
)
def register_lead(request: LeadCreateRequest):
    """
    Register a lead.

    Registering twice with the same email or phone returns the same lead with
    `existing: true`; only the name is updated.
    """
    resolved = resolve(
        request.name,
        request.email,
        request.phone,
        request.origin,
        request.lgpd_consent,
        franchise_interest=request.franchise_interest,
    )
    lead = resolved.lead

    return LeadCreateResponse(
        message="Registration complete" if resolved.created else "You are already registered",
        lead=LeadSummary(
            id=lead.lead_id,
            name=lead.name,
            email=lead.email,
            phone=lead.phone,
            created_at=lead.created_at,
        ),
        existing=not resolved.created,
    )
