"""
Kie.ai image generation client (server-side only).

Kie.ai jobs are asynchronous:
1. POST `{base}/createTask` with the model, prompt and input image URLs
2. poll `{base}/recordInfo?taskId=...` until the state is `success` or `fail`
3. download the result image

Every call is bounded by an absolute `deadline` (a `time.monotonic()` value)
supplied by the caller; polling stops once it passes.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Optional, Sequence

import httpx

from settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Upper bound for a single HTTP request; the remaining deadline may lower it.
REQUEST_TIMEOUT_SECONDS = 30.0

_PENDING_STATES = {"waiting", "queuing", "generating"}


class ImageGenerationError(RuntimeError):
    """The image API rejected the job, the job failed, or the result was unusable."""


class ImageGenerationTimeout(ImageGenerationError):
    """The deadline passed before the job produced an image."""


@dataclass(frozen=True, slots=True)
class GeneratedImage:
    url: str
    content: bytes


def resolve_public_url(url_or_path: str, app_url: str) -> str:
    """Prefix site-relative paths (e.g. "/templates/pirata.jpg") with the app URL."""

    if url_or_path.startswith(("http://", "https://")):
        return url_or_path
    if not url_or_path.startswith("/"):
        url_or_path = "/" + url_or_path
    return f"{app_url.rstrip('/')}{url_or_path}"


def extract_result_url(result_json: str) -> str:
    """
    Pull the image URL out of a task's `resultJson`.

    Observed shapes: `{"resultUrls": [...]}`, a JSON string, a list of URLs or
    of `{url|image_url}` objects, an object with `url`/`image_url`/`output`/
    `image`, or a bare URL that is not JSON at all.
    """

    try:
        parsed: Any = json.loads(result_json)
    except ValueError:
        parsed = result_json

    url: Any = None
    if isinstance(parsed, str):
        url = parsed
    elif isinstance(parsed, dict) and isinstance(parsed.get("resultUrls"), list):
        url = parsed["resultUrls"][0] if parsed["resultUrls"] else None
    elif isinstance(parsed, list):
        first = parsed[0] if parsed else None
        if isinstance(first, dict):
            url = first.get("url") or first.get("image_url")
        else:
            url = first
    elif isinstance(parsed, dict):
        url = parsed.get("url") or parsed.get("image_url") or parsed.get("output") or parsed.get("image")

    if not url or not isinstance(url, str):
        raise ImageGenerationError("Could not extract image URL from Kie.ai result")
    return url


class KieImageClient:
    """Thin synchronous wrapper over the Kie.ai jobs API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str,
        model: str,
        poll_interval: float = 3.0,
        http_client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not api_key:
            raise RuntimeError("KIE_API_KEY is not set.")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._poll_interval = poll_interval
        self._http = http_client or httpx.Client()
        self._sleep = sleep
        self._clock = clock

    def close(self) -> None:
        self._http.close()

    def _remaining(self, deadline: float) -> float:
        return deadline - self._clock()

    def _timeout(self, deadline: float) -> float:
        remaining = self._remaining(deadline)
        if remaining <= 0:
            raise ImageGenerationTimeout("Image generation deadline exceeded")
        return min(REQUEST_TIMEOUT_SECONDS, remaining)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def _create_task(self, image_input: list[str], prompt: str, deadline: float) -> str:
        try:
            response = self._http.post(
                f"{self._base_url}/createTask",
                json={"model": self._model, "input": {"prompt": prompt, "image_input": image_input}},
                headers=self._headers(),
                timeout=self._timeout(deadline),
            )
        except httpx.TimeoutException as e:
            raise ImageGenerationTimeout(f"Kie.ai createTask timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ImageGenerationError(f"Kie.ai createTask request failed: {e}") from e

        if response.status_code != 200:
            logger.warning(
                "Kie.ai createTask HTTP error",
                extra={"status_code": response.status_code},
            )
            raise ImageGenerationError(f"Kie.ai API error ({response.status_code}): {response.text}")

        try:
            body = response.json()
        except ValueError as e:
            raise ImageGenerationError("Kie.ai createTask returned invalid JSON") from e

        task_id = (body.get("data") or {}).get("taskId")
        if body.get("code") != 200 or not task_id:
            raise ImageGenerationError(f"Kie.ai createTask failed: {body.get('msg') or 'Unknown error'}")
        return str(task_id)

    def _poll(self, task_id: str, deadline: float) -> str:
        """Poll until success (returns the result URL), failure or deadline."""

        while True:
            remaining = self._remaining(deadline)
            if remaining <= 0:
                raise ImageGenerationTimeout(f"Kie.ai task {task_id} did not finish before the deadline")
            self._sleep(min(self._poll_interval, remaining))

            try:
                response = self._http.get(
                    f"{self._base_url}/recordInfo",
                    params={"taskId": task_id},
                    headers=self._headers(),
                    timeout=self._timeout(deadline),
                )
            except httpx.TimeoutException:
                continue
            except httpx.HTTPError as e:
                logger.warning("Kie.ai recordInfo request failed: %s", e, extra={"task_id": task_id})
                continue

            if response.status_code != 200:
                logger.warning(
                    "Kie.ai recordInfo HTTP error",
                    extra={"task_id": task_id, "status_code": response.status_code},
                )
                continue

            try:
                data = response.json().get("data") or {}
            except ValueError:
                logger.warning("Kie.ai recordInfo returned invalid JSON", extra={"task_id": task_id})
                continue

            state = data.get("state")
            logger.debug("Kie.ai task state", extra={"task_id": task_id, "state": state})

            if state == "success":
                result_json = data.get("resultJson")
                if not result_json:
                    raise ImageGenerationError("Kie.ai returned success but no resultJson")
                return extract_result_url(result_json)

            if state == "fail":
                reason = data.get("failMsg") or data.get("failCode") or "Unknown error"
                raise ImageGenerationError(f"Kie.ai generation failed: {reason}")

            if state not in _PENDING_STATES:
                logger.warning("Unexpected Kie.ai task state", extra={"task_id": task_id, "state": state})

    def _download(self, url: str, deadline: float) -> bytes:
        try:
            response = self._http.get(url, timeout=self._timeout(deadline))
        except httpx.TimeoutException as e:
            raise ImageGenerationTimeout(f"Timed out downloading generated image: {e}") from e
        except httpx.HTTPError as e:
            raise ImageGenerationError(f"Failed to download generated image: {e}") from e
        if response.status_code != 200:
            raise ImageGenerationError(f"Failed to download generated image: {response.status_code}")
        return response.content

    def generate_image(self, reference_urls: Sequence[str], prompt: str, deadline: float) -> GeneratedImage:
        """
        Run one generation job and return the downloaded image.

        `reference_urls` order matters: the source photo first, then the
        template image (if any).

        Raises:
        - ImageGenerationTimeout if `deadline` passes first.
        - ImageGenerationError for any other failure of the image API.
        """

        image_input = list(reference_urls)
        if not image_input:
            raise ValueError("At least one reference image URL is required")

        task_id = self._create_task(image_input, prompt, deadline)
        logger.info(
            "Kie.ai task created",
            extra={"task_id": task_id, "model": self._model, "images": len(image_input)},
        )

        url = self._poll(task_id, deadline)
        content = self._download(url, deadline)
        logger.info("Kie.ai image downloaded", extra={"task_id": task_id, "bytes": len(content)})
        return GeneratedImage(url=url, content=content)


def build_image_client(settings: Settings) -> KieImageClient:
    return KieImageClient(
        settings.kie_api_key or "",
        base_url=settings.kie_api_base,
        model=settings.kie_model,
        poll_interval=settings.kie_poll_interval_seconds,
    )


@lru_cache(maxsize=1)
def get_image_client() -> KieImageClient:
    """Process-wide client, created on first use."""

    return build_image_client(get_settings())


__all__ = [
    "GeneratedImage",
    "ImageGenerationError",
    "ImageGenerationTimeout",
    "KieImageClient",
    "build_image_client",
    "extract_result_url",
    "get_image_client",
    "resolve_public_url",
]
