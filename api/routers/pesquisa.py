"""
Survey (Pesquisa) API Endpoints.
"""

from fastapi import APIRouter

from api.models import (
    PesquisaRegisterResponse,
    PrizeResponse,
    RegisterRequest,
    SurveyQuestionsResponse,
    SurveySubmitRequest,
    SurveySubmitResponse,
)
from domain.lead import LeadOrigin
from domain.reward import SURVEY
from domain.survey import SURVEY_GIFT_DESCRIPTION, SURVEY_QUESTIONS
from services.lead_identity_service import resolve
from services.reward_service import find_issued_reward, submit_survey

router = APIRouter()


def _prize(reward) -> PrizeResponse:
    return PrizeResponse(**reward.to_dict(SURVEY.catalog))


@router.get(
    "/pesquisa/questions",
    response_model=SurveyQuestionsResponse,
    summary="List Survey Questions",
)
def list_questions():
    gift = SURVEY.catalog.entries[0]
    return SurveyQuestionsResponse(
        questions=[question.to_dict() for question in SURVEY_QUESTIONS],
        prize={**gift.public_view(), "description": SURVEY_GIFT_DESCRIPTION},
    )


@router.post(
    "/pesquisa/register",
    response_model=PesquisaRegisterResponse,
    response_model_exclude_none=True,
    summary="Register for the Survey",
)
def register(request: RegisterRequest):
    """
    Resolve the lead and report whether they already answered.
    """
    resolved = resolve(
        request.name,
        request.email,
        request.phone,
        LeadOrigin.PESQUISA,
        request.lgpd_consent,
    )
    lead = resolved.lead

    issuance = None if resolved.created else find_issued_reward(lead.lead_id, SURVEY)
    prize = _prize(issuance.reward) if issuance is not None and issuance.reward is not None else None

    return PesquisaRegisterResponse(
        lead_id=lead.lead_id,
        name=lead.name,
        already_answered=issuance is not None,
        prize=prize,
    )


@router.post(
    "/pesquisa/submit",
    response_model=SurveySubmitResponse,
    summary="Submit Survey Answers",
    description="Store the answers and issue the survey gift. A lead answers at most once."
)
def submit(request: SurveySubmitRequest):
    issued = submit_survey(request.lead_id, request.answers)
    reward = issued.issuance.reward
    if reward is None:
        # Legacy response rows carry no gift; report the current one.
        gift = SURVEY.catalog.entries[0]
        prize = PrizeResponse(**gift.public_view())
    else:
        prize = _prize(reward)

    return SurveySubmitResponse(already_answered=issued.already_issued, prize=prize)
