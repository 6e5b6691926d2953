"""
Tests for repository error translation and row mapping against the in-memory store.
"""

from __future__ import annotations

from datetime import timedelta
from uuid import UUID, uuid4

import pytest

from domain.ai_photo import GenerationStatus, VariantStatus
from domain.lead import ContactInfo, LeadOrigin
from domain.time import utc_now
from repositories import generation_repository, lead_repository, storage_repository, template_repository
from repositories.errors import DuplicateKeyError, RepositoryError


def _contact(email: str = "ana@x.com", phone: str = "11987654321") -> ContactInfo:
    return ContactInfo(name="Ana Silva", email=email, phone=phone)


def test_duplicate_email_raises_duplicate_key(fake_supabase) -> None:
    lead_repository.insert_lead(_contact(), LeadOrigin.QR_CODE, lgpd_consent=True)

    with pytest.raises(DuplicateKeyError) as exc:
        lead_repository.insert_lead(_contact(phone="21999998888"), LeadOrigin.ROLETA, lgpd_consent=True)

    assert exc.value.table == "leads"


def test_other_store_errors_raise_repository_error(fake_supabase) -> None:
    fake_supabase.fail_next("leads", "select")

    with pytest.raises(RepositoryError) as exc:
        lead_repository.find_lead_by_contact("ana@x.com", "11987654321")

    assert not isinstance(exc.value, DuplicateKeyError)


def test_find_by_contact_matches_either_key_and_prefers_oldest(fake_supabase) -> None:
    first = lead_repository.insert_lead(_contact(), LeadOrigin.QR_CODE, lgpd_consent=True)
    lead_repository.insert_lead(
        _contact(email="bia@x.com", phone="21999998888"), LeadOrigin.QR_CODE, lgpd_consent=True
    )

    by_phone = lead_repository.find_lead_by_contact("nobody@x.com", "11987654321")
    by_both = lead_repository.find_lead_by_contact("bia@x.com", "11987654321")

    assert by_phone.lead_id == first.lead_id
    assert by_both.lead_id == first.lead_id


def test_generation_round_trip_and_conditional_terminal_write(fake_supabase) -> None:
    lead_id = uuid4()
    created = generation_repository.create_generation(lead_id, ["https://x/p.jpg"])

    assert created.status is GenerationStatus.PROCESSING
    assert all(v.status is VariantStatus.PENDING for v in created.variants)

    variants = (created.variants[0].completed("https://cdn/1.png"),) + created.variants[1:]
    assert generation_repository.save_terminal_state(
        created.generation_id,
        status=GenerationStatus.COMPLETED,
        variants=variants,
        error_message=None,
        processing_time_ms=1200,
        completed_at=utc_now(),
    )
    # Terminal rows are never updated again.
    assert not generation_repository.save_terminal_state(
        created.generation_id,
        status=GenerationStatus.FAILED,
        variants=variants,
        error_message="late",
        processing_time_ms=1,
        completed_at=utc_now(),
    )

    stored = generation_repository.get_generation(created.generation_id)
    assert stored.status is GenerationStatus.COMPLETED
    assert stored.variants[0].url == "https://cdn/1.png"
    assert stored.processing_time_ms == 1200
    assert stored.error_message is None


def test_count_generations_can_exclude_failed(fake_supabase) -> None:
    lead_id = uuid4()
    fake_supabase.seed("ai_photo_generations", lead_id=str(lead_id), status="failed")
    fake_supabase.seed("ai_photo_generations", lead_id=str(lead_id), status="completed")
    fake_supabase.seed("ai_photo_generations", lead_id=str(uuid4()), status="completed")

    assert generation_repository.count_generations_for_lead(lead_id) == 2
    assert generation_repository.count_generations_for_lead(lead_id, include_failed=False) == 1


def test_list_stuck_generations(fake_supabase) -> None:
    old = (utc_now() - timedelta(hours=1)).isoformat()
    stuck = fake_supabase.seed("ai_photo_generations", lead_id=str(uuid4()), created_at=old)
    fake_supabase.seed("ai_photo_generations", lead_id=str(uuid4()), created_at=old, status="failed")
    fake_supabase.seed("ai_photo_generations", lead_id=str(uuid4()), created_at=utc_now().isoformat())

    rows = generation_repository.list_stuck_generations(utc_now() - timedelta(minutes=10))

    assert [g.generation_id for g in rows] == [UUID(stuck["id"])]


def test_templates_only_active_in_sort_order(fake_supabase) -> None:
    template_repository.upsert_template(
        {"slug": "b", "name": "B", "preview_url": "/b.jpg", "template_image_url": "/b-full.jpg", "sort_order": 2}
    )
    template_repository.upsert_template(
        {"slug": "a", "name": "A", "preview_url": "/a.jpg", "template_image_url": "/a-full.jpg", "sort_order": 1}
    )
    hidden = template_repository.upsert_template(
        {"slug": "c", "name": "C", "preview_url": "/c.jpg", "template_image_url": "/c.jpg", "is_active": False}
    )

    assert [t.slug for t in template_repository.list_active_templates()] == ["a", "b"]
    assert template_repository.get_active_template(hidden.template_id) is None

    renamed = template_repository.upsert_template({"slug": "a", "name": "A2"})
    assert renamed.name == "A2"
    assert len(fake_supabase.rows("ai_photo_templates")) == 3


def test_upload_generated_image(fake_supabase) -> None:
    generation_id = uuid4()

    url = storage_repository.upload_generated_image(b"png", generation_id, 2, bucket="ai-photos")

    path = f"generated/{generation_id}/variant_2.png"
    assert url == f"https://storage.test/ai-photos/{path}"
    assert fake_supabase.storage.objects[("ai-photos", path)] == b"png"
    assert fake_supabase.storage.options[("ai-photos", path)]["content-type"] == "image/png"


def test_upload_failure_raises_repository_error(fake_supabase) -> None:
    fake_supabase.storage.fail_uploads = True

    with pytest.raises(RepositoryError):
        storage_repository.upload_generated_image(b"png", uuid4(), 1, bucket="ai-photos")
