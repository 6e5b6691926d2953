"""
AI photo generation orchestration.

`request_generation` is synchronous: it validates the request, enforces the
per-lead cap, inserts a `processing` row, runs each configured variant against
the image API under one overall deadline, and writes the terminal record
before returning or raising.

Each variant call runs in a worker thread awaited with a hard timeout; the
image client also receives the absolute deadline and stops polling once it
passes. A timed-out worker is abandoned, never awaited. An abandoned worker
checks the deadline again before uploading; an upload already in flight when
the deadline passes can still leave an unreferenced
`generated/{id}/variant_n.png` object in storage.

The terminal write only applies to a row still in `processing`. If another
writer finalized the row first, the caller gets the persisted outcome.

The cap check (count, then insert) is not atomic: two simultaneous requests
from a lead one below the cap can both pass. This is accepted.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Callable, List, Optional, TypeVar, Union
from uuid import UUID

from clients.kie_client import (
    ImageGenerationError,
    ImageGenerationTimeout,
    KieImageClient,
    get_image_client,
    resolve_public_url,
)
from domain.ai_photo import (
    DEFAULT_PROMPT,
    TEMPLATE_PROMPT,
    GenerationStatus,
    PhotoTemplate,
    Variant,
    is_valid_photo_url,
    overall_status,
)
from domain.ids import parse_uuid
from domain.time import utc_now
from repositories import generation_repository, lead_repository, storage_repository, template_repository
from services.errors import (
    AiServiceError,
    GenerationLimitError,
    InternalError,
    InvalidPhotoError,
    LeadNotFoundError,
    TemplateNotFoundError,
)
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _call_with_deadline(fn: Callable[[], T], timeout: float) -> T:
    """Run `fn` in a worker thread and stop waiting after `timeout` seconds."""

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ai-photo")
    future = executor.submit(fn)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeoutError:
        raise ImageGenerationTimeout("Image generation deadline exceeded") from None
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _resolve_template(template_id: Union[str, UUID, None]) -> Optional[PhotoTemplate]:
    if template_id is None or template_id == "":
        return None
    parsed = parse_uuid(template_id)
    if parsed is None:
        raise TemplateNotFoundError()
    template = template_repository.get_active_template(parsed)
    if template is None:
        raise TemplateNotFoundError()
    return template


def build_prompt_inputs(
    photo_url: str,
    template: Optional[PhotoTemplate],
    app_url: str,
) -> tuple[List[str], str]:
    """Return (reference image URLs, prompt): source photo first, template image last."""

    if template is None:
        return [photo_url], DEFAULT_PROMPT
    references = [photo_url, resolve_public_url(template.template_image_url, app_url)]
    return references, template.prompt or TEMPLATE_PROMPT


def request_generation(
    lead_id: Union[str, UUID],
    photo_url: str,
    template_id: Union[str, UUID, None] = None,
    *,
    image_client: Optional[KieImageClient] = None,
    settings: Optional[Settings] = None,
    clock: Callable[[], float] = time.monotonic,
) -> UUID:
    """
    Generate the lead's AI photo and return the generation ID.

    Preconditions are checked in order; the first failure wins:
    - INVALID_PHOTO: photo_url is not http(s), or lead_id is not a UUID
    - LEAD_NOT_FOUND
    - TEMPLATE_NOT_FOUND (only when template_id is given)
    - GENERATION_LIMIT

    After the row is created the terminal state is always persisted. If every
    variant failed in the image API, AiServiceError is raised; any other
    failure raises InternalError. Both carry the generation ID.
    """

    settings = settings or get_settings()

    lead_uuid = parse_uuid(lead_id)
    if not is_valid_photo_url(photo_url) or lead_uuid is None:
        raise InvalidPhotoError()

    if not lead_repository.lead_exists(lead_uuid):
        raise LeadNotFoundError()

    template = _resolve_template(template_id)

    prior = generation_repository.count_generations_for_lead(
        lead_uuid, include_failed=settings.count_failed_generations
    )
    if prior >= settings.max_generations_per_lead:
        logger.info(
            "Generation limit reached",
            extra={"lead_id": str(lead_uuid), "count": prior, "limit": settings.max_generations_per_lead},
        )
        raise GenerationLimitError(settings.max_generations_per_lead)

    client = image_client or get_image_client()
    references, prompt = build_prompt_inputs(photo_url, template, settings.app_url)

    generation = generation_repository.create_generation(
        lead_uuid,
        [photo_url],
        template.template_id if template else None,
    )
    generation_id = generation.generation_id
    log_extra = {"generation_id": str(generation_id), "lead_id": str(lead_uuid)}
    logger.info("Generation started", extra={**log_extra, "variants": settings.variant_count})

    started = clock()
    deadline = started + settings.generation_deadline_seconds
    variants: List[Variant] = list(generation.variants)
    external_errors: List[str] = []
    internal_error: Optional[BaseException] = None

    for slot in range(settings.variant_count):
        variant = variants[slot]

        def _generate_and_store(index: int = variant.index) -> str:
            image = client.generate_image(references, prompt, deadline)
            if clock() >= deadline:
                raise ImageGenerationTimeout("Image generation deadline exceeded")
            return storage_repository.upload_generated_image(
                image.content, generation_id, index, bucket=settings.storage_bucket
            )

        try:
            remaining = deadline - clock()
            if remaining <= 0:
                raise ImageGenerationTimeout("Image generation deadline exceeded")
            url = _call_with_deadline(_generate_and_store, remaining)
        except ImageGenerationError as e:
            variants[slot] = variant.failed()
            external_errors.append(str(e))
            logger.warning(
                "Variant generation failed: %s",
                e,
                extra={**log_extra, "variant": variant.index},
            )
            continue
        except Exception as e:
            variants[slot] = variant.failed()
            internal_error = e
            logger.exception("Generation aborted by internal error", extra=log_extra)
            break

        variants[slot] = variant.completed(url)

    status = overall_status(variants)
    if status is GenerationStatus.PROCESSING:
        status = GenerationStatus.FAILED

    if internal_error is not None:
        error_message: Optional[str] = "Internal error during generation"
    elif external_errors:
        error_message = "; ".join(external_errors)
    else:
        error_message = None

    processing_time_ms = int((clock() - started) * 1000)

    try:
        saved = generation_repository.save_terminal_state(
            generation_id,
            status=status,
            variants=tuple(variants),
            error_message=error_message,
            processing_time_ms=processing_time_ms,
            completed_at=utc_now(),
        )
    except Exception as e:
        logger.exception("Failed to persist generation result", extra=log_extra)
        raise InternalError(generation_id=generation_id) from e

    if not saved:
        return _answer_from_persisted(generation_id, log_extra)

    logger.info(
        "Generation finished",
        extra={
            **log_extra,
            "status": status.value,
            "processing_time_ms": processing_time_ms,
            "error_message": error_message,
        },
    )

    if internal_error is not None:
        raise InternalError(generation_id=generation_id) from internal_error
    if status is GenerationStatus.FAILED:
        raise AiServiceError(generation_id=generation_id)
    return generation_id


def _answer_from_persisted(generation_id: UUID, log_extra: dict) -> UUID:
    """
    Another writer (the stuck-row script) finalized the row first; its
    terminal state is the answer, so the caller and status pollers agree.
    """

    persisted = generation_repository.get_generation(generation_id)
    status = persisted.status if persisted is not None else None
    logger.warning(
        "Generation was finalized by another writer",
        extra={**log_extra, "status": status.value if status else None},
    )
    if status is GenerationStatus.COMPLETED:
        return generation_id
    if status is GenerationStatus.FAILED:
        raise AiServiceError(generation_id=generation_id)
    raise InternalError(generation_id=generation_id)


__all__ = ["build_prompt_inputs", "request_generation"]
