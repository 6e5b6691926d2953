"""
Tests for `services/reward_service.py`.

Covers:
- A lead receives at most one reward per domain; replays return the original.
- Concurrent spins persist one draw and every caller sees the same prize.
- Concurrent survey submissions store one response, the winner's answers.
- Survey answers are validated before the store is touched.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from uuid import UUID, uuid4

import pytest

from domain.lead import LeadOrigin
from domain.reward import PRIZE_WHEEL, SURVEY
from domain.survey import SURVEY_QUESTIONS
from services.errors import InvalidInputError, NotFoundError
from services.lead_identity_service import resolve
from services.reward_service import find_issued_reward, issue_reward, spin_wheel, submit_survey


def _lead_id() -> UUID:
    return resolve("Ana Silva", "ana@x.com", "11987654321", LeadOrigin.ROLETA, True).lead.lead_id


def _answers() -> dict:
    answers = {q.id: 5 for q in SURVEY_QUESTIONS if q.type.value == "rating"}
    answers["voltaria"] = "sim"
    return answers


def test_first_spin_draws_and_persists(fake_supabase) -> None:
    lead_id = _lead_id()

    issued = spin_wheel(lead_id, random_source=lambda: 0.0)

    assert issued.already_issued is False
    assert issued.issuance.reward.slug == "carregador"
    [row] = fake_supabase.rows("prize_wheel_spins")
    assert row["lead_id"] == str(lead_id)
    assert row["prize_slug"] == "carregador"


def test_second_spin_returns_original_prize(fake_supabase) -> None:
    lead_id = _lead_id()
    first = spin_wheel(lead_id, random_source=lambda: 0.0)
    second = spin_wheel(lead_id, random_source=lambda: 0.999)

    assert second.already_issued is True
    assert second.issuance.reward == first.issuance.reward
    assert len(fake_supabase.rows("prize_wheel_spins")) == 1


def test_spin_for_unknown_lead_is_not_found(fake_supabase) -> None:
    with pytest.raises(NotFoundError) as exc:
        spin_wheel(uuid4())

    assert exc.value.code == "NOT_FOUND"
    assert fake_supabase.rows("prize_wheel_spins") == []


def test_concurrent_spins_persist_one_draw(fake_supabase) -> None:
    lead_id = _lead_id()
    callers = 6
    barrier = threading.Barrier(callers, timeout=10)
    fake_supabase.before_insert["prize_wheel_spins"].append(lambda payload: barrier.wait())

    # Each caller would draw a different prize; only the winner's draw survives.
    draws = [i / callers for i in range(callers)]

    def _spin(i: int):
        return spin_wheel(lead_id, random_source=lambda: draws[i])

    with ThreadPoolExecutor(max_workers=callers) as pool:
        results = list(pool.map(_spin, range(callers)))

    [row] = fake_supabase.rows("prize_wheel_spins")
    assert {r.issuance.reward.slug for r in results} == {row["prize_slug"]}
    assert sum(1 for r in results if not r.already_issued) == 1


def test_concurrent_survey_submissions_store_one_response(fake_supabase) -> None:
    lead_id = _lead_id()
    callers = 6
    barrier = threading.Barrier(callers, timeout=10)
    fake_supabase.before_insert["survey_responses"].append(lambda payload: barrier.wait())

    def _submit(i: int):
        return i, submit_survey(lead_id, {**_answers(), "melhorar": f"caller {i}"})

    with ThreadPoolExecutor(max_workers=callers) as pool:
        results = list(pool.map(_submit, range(callers)))

    [row] = fake_supabase.rows("survey_responses")
    [winner] = [i for i, issued in results if not issued.already_issued]
    assert row["answers"]["melhorar"] == f"caller {winner}"
    assert {issued.issuance.reward.slug for _, issued in results} == {row["prize_slug"]}


def test_domains_are_independent(fake_supabase) -> None:
    lead_id = _lead_id()

    issue_reward(lead_id, PRIZE_WHEEL)
    survey = issue_reward(lead_id, SURVEY)

    assert survey.already_issued is False
    assert survey.issuance.reward.slug == "brinde-surpresa"


def test_submit_survey_stores_answers(fake_supabase) -> None:
    lead_id = _lead_id()

    issued = submit_survey(lead_id, _answers())

    assert issued.already_issued is False
    [row] = fake_supabase.rows("survey_responses")
    assert row["answers"]["voltaria"] == "sim"
    assert row["prize_slug"] == "brinde-surpresa"
    assert find_issued_reward(lead_id, SURVEY) is not None


def test_resubmitting_survey_keeps_first_answers(fake_supabase) -> None:
    lead_id = _lead_id()
    submit_survey(lead_id, _answers())

    changed = _answers()
    changed["voltaria"] = "nao"
    second = submit_survey(lead_id, changed)

    assert second.already_issued is True
    [row] = fake_supabase.rows("survey_responses")
    assert row["answers"]["voltaria"] == "sim"


def test_incomplete_survey_is_rejected_before_store(fake_supabase) -> None:
    answers = _answers()
    del answers["voltaria"]

    with pytest.raises(InvalidInputError):
        submit_survey(uuid4(), answers)

    assert fake_supabase.calls == []


def test_survey_for_unknown_lead_is_not_found(fake_supabase) -> None:
    with pytest.raises(NotFoundError):
        submit_survey(uuid4(), _answers())


def test_find_issued_reward_is_none_before_spin(fake_supabase) -> None:
    assert find_issued_reward(_lead_id(), PRIZE_WHEEL) is None
