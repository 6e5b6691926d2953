"""
At-most-once reward issuance.

A lead receives at most one reward per `RewardDomain`. The first caller draws
from the domain's catalog and inserts the issuance row; every later caller
(including concurrent ones that lose the insert race) gets the persisted
reward back with `already_issued=True`. A losing caller's local draw is
discarded.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Mapping, Optional
from uuid import UUID

from domain.prizes import RandomSource
from domain.reward import PRIZE_WHEEL, SURVEY, IssuedReward, Reward, RewardDomain, RewardIssuance
from domain.survey import validate_answers
from repositories import lead_repository, reward_repository
from services.errors import InvalidInputError, NotFoundError
from services.idempotent_insert import find_or_create

logger = logging.getLogger(__name__)


def issue_reward(
    lead_id: UUID,
    domain: RewardDomain,
    extra: Optional[Mapping[str, Any]] = None,
    *,
    random_source: RandomSource = random.random,
) -> IssuedReward:
    """
    Issue the lead's single reward in `domain`, or return the one already issued.

    The caller is responsible for checking that the lead exists.
    """

    def _create() -> RewardIssuance:
        entry = domain.catalog.draw(random_source)
        return reward_repository.insert_issuance(domain, lead_id, Reward.from_entry(entry), extra)

    issuance, created = find_or_create(
        lambda: reward_repository.find_issuance(domain, lead_id),
        _create,
        label=domain.name,
    )

    if created:
        logger.info(
            "Reward issued",
            extra={
                "lead_id": str(lead_id),
                "domain": domain.name,
                "prize_slug": issuance.reward.slug if issuance.reward else None,
            },
        )
    return IssuedReward(issuance=issuance, already_issued=not created)


def _require_lead(lead_id: UUID) -> None:
    if not lead_repository.lead_exists(lead_id):
        raise NotFoundError("Lead not found")


def spin_wheel(lead_id: UUID, *, random_source: RandomSource = random.random) -> IssuedReward:
    """Spin the prize wheel for an existing lead."""

    _require_lead(lead_id)
    return issue_reward(lead_id, PRIZE_WHEEL, random_source=random_source)


def submit_survey(
    lead_id: UUID,
    answers: Mapping[str, Any],
    *,
    random_source: RandomSource = random.random,
) -> IssuedReward:
    """
    Record the lead's survey answers and issue the survey gift.

    Answers are validated before the store is touched. A lead that already
    answered gets the original gift back; the new answers are not stored.
    """

    if not isinstance(answers, Mapping):
        raise InvalidInputError("Answers must be an object", field="answers")

    errors = validate_answers(answers)
    if errors:
        raise InvalidInputError(errors[0], field="answers")

    _require_lead(lead_id)
    return issue_reward(lead_id, SURVEY, extra={"answers": dict(answers)}, random_source=random_source)


def find_issued_reward(lead_id: UUID, domain: RewardDomain) -> Optional[RewardIssuance]:
    """Read-only lookup of the lead's issuance in `domain`."""

    return reward_repository.find_issuance(domain, lead_id)


__all__ = ["issue_reward", "spin_wheel", "submit_survey", "find_issued_reward"]
