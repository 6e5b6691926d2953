"""
Prize Wheel (Roleta) API Endpoints.
"""

from fastapi import APIRouter

from api.models import PrizeResponse, RegisterRequest, RoletaRegisterResponse, SpinRequest, SpinResponse
from domain.lead import LeadOrigin
from domain.reward import PRIZE_WHEEL
from services.lead_identity_service import resolve
from services.reward_service import find_issued_reward, spin_wheel

router = APIRouter()


@router.post(
    "/roleta/register",
    response_model=RoletaRegisterResponse,
    response_model_exclude_none=True,
    summary="Register for the Prize Wheel",
)
def register(request: RegisterRequest):
    """
    Resolve the lead and report whether they already spun.

    A lead that already spun gets their original prize back.
    """
    resolved = resolve(
        request.name,
        request.email,
        request.phone,
        LeadOrigin.ROLETA,
        request.lgpd_consent,
    )
    lead = resolved.lead

    issuance = None if resolved.created else find_issued_reward(lead.lead_id, PRIZE_WHEEL)
    prize = None
    if issuance is not None and issuance.reward is not None:
        prize = PrizeResponse(**issuance.reward.to_dict(PRIZE_WHEEL.catalog))

    return RoletaRegisterResponse(
        lead_id=lead.lead_id,
        name=lead.name,
        already_spun=issuance is not None,
        prize=prize,
    )


@router.post(
    "/roleta/spin",
    response_model=SpinResponse,
    summary="Spin the Prize Wheel",
    description="Draw a prize for the lead. A lead spins at most once; repeated spins return the first prize."
)
def spin(request: SpinRequest):
    issued = spin_wheel(request.lead_id)
    reward = issued.issuance.reward

    return SpinResponse(
        already_spun=issued.already_issued,
        prize=PrizeResponse(**reward.to_dict(PRIZE_WHEEL.catalog)),
    )
