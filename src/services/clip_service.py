"""Clip generation service - Veo image-to-video via the Gemini REST API.

Generation is a long-running operation: submit, then poll on a fixed
interval until the operation is done or the attempt ceiling is reached.
The loop is an explicit state machine and takes an injectable ``sleep`` so
tests can run through every attempt without waiting.
"""

import asyncio
import base64
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

import httpx

from models.product import ProductRecord
from services.errors import FetchError, GenerationTimeoutError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

VEO_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_VEO_MODEL = "veo-3.0-generate-001"
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_MAX_ATTEMPTS = 60


class ClipJobState(str, Enum):
    """Lifecycle of one clip generation operation."""

    SUBMITTED = "submitted"
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


TERMINAL_STATES = {ClipJobState.DONE, ClipJobState.FAILED, ClipJobState.TIMED_OUT}


@dataclass
class ClipJob:
    """Tracks a submitted generation operation."""

    operation_name: str
    state: ClipJobState = ClipJobState.SUBMITTED
    attempts: int = 0
    video_uri: str | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


def upstream_error_message(response: httpx.Response) -> str:
    """Extract ``error.message`` from a Google API error body."""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return json.dumps(data)


def apply_operation_status(job: ClipJob, data: dict) -> ClipJob:
    """Advance a job from one operation status payload."""
    if not data.get("done"):
        job.state = ClipJobState.PENDING
        return job

    if data.get("error"):
        job.state = ClipJobState.FAILED
        job.error = f"API Error: {json.dumps(data['error'])}"
        return job

    response = data.get("response")
    if not response:
        job.state = ClipJobState.FAILED
        job.error = "No response object in API result"
        return job

    samples = (response.get("generateVideoResponse") or {}).get("generatedSamples") or []
    if not samples:
        job.state = ClipJobState.FAILED
        job.error = "No video generated in response"
        return job

    uri = (samples[0].get("video") or {}).get("uri")
    if not uri:
        job.state = ClipJobState.FAILED
        job.error = "No video URI in response"
        return job

    job.state = ClipJobState.DONE
    job.video_uri = uri
    return job


class ClipService:
    """Generates short product clips with Veo."""

    def __init__(
        self,
        default_api_key: str = "",
        model: str = DEFAULT_VEO_MODEL,
        api_base: str = VEO_API_BASE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.default_api_key = default_api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.client = client or httpx.AsyncClient(timeout=300.0, follow_redirects=True)
        self.sleep = sleep

    async def generate_clip(
        self,
        product: ProductRecord,
        prompt: str,
        aspect_ratio: str | None = "16:9",
        resolution: str | None = "720p",
        api_key: str | None = None,
    ) -> bytes:
        """Generate a clip from the product image and return the video bytes.

        Raises:
            ValidationError: If the prompt, image or API key is missing
            UpstreamError: If the operation ends in an error
            GenerationTimeoutError: If polling hits the attempt ceiling
            FetchError: On network failures
        """
        key = api_key or self.default_api_key
        if not key:
            raise ValidationError("Google AI API key is required")
        if not prompt or not prompt.strip():
            raise ValidationError("Video prompt is required")
        if not product.image_url:
            raise ValidationError("Product image URL is required")

        logger.info(f"Starting video generation for: {product.title}")

        job = await self.submit(product, prompt.strip(), aspect_ratio or "16:9", resolution or "720p", key)
        job = await self.wait_for_completion(job, key)

        if job.state == ClipJobState.TIMED_OUT:
            minutes = self.poll_interval * self.max_attempts / 60
            raise GenerationTimeoutError(f"Video generation timed out after {minutes:g} minutes")
        if job.state == ClipJobState.FAILED:
            raise UpstreamError(job.error or "Video generation failed")

        return await self.download(job.video_uri, key)

    async def submit(
        self,
        product: ProductRecord,
        prompt: str,
        aspect_ratio: str,
        resolution: str,
        api_key: str,
    ) -> ClipJob:
        """Submit a generation operation and return the job in SUBMITTED state."""
        image_bytes, mime_type = await self._fetch_image(product.image_url)

        body = {
            "instances": [{
                "prompt": prompt,
                "image": {
                    "bytesBase64Encoded": base64.b64encode(image_bytes).decode("ascii"),
                    "mimeType": mime_type,
                },
            }],
            "parameters": {
                "aspectRatio": aspect_ratio,
                "resolution": resolution,
            },
        }

        data = await self._request_json(
            "POST",
            f"{self.api_base}/models/{self.model}:predictLongRunning",
            api_key,
            json=body,
        )
        operation_name = data.get("name")
        if not operation_name:
            raise UpstreamError("Video generation did not return an operation name")

        logger.info(f"Operation initiated: {operation_name}")
        return ClipJob(operation_name=operation_name)

    async def poll_once(self, job: ClipJob, api_key: str) -> ClipJob:
        """Fetch the operation status once and advance the job."""
        data = await self._request_json(
            "GET", f"{self.api_base}/{job.operation_name}", api_key
        )
        job.attempts += 1
        apply_operation_status(job, data)
        logger.info(
            f"Attempt {job.attempts}/{self.max_attempts}... Status: {job.state.value}"
        )
        return job

    async def wait_for_completion(self, job: ClipJob, api_key: str) -> ClipJob:
        """Sleep-then-poll until the job reaches a terminal state."""
        while not job.is_terminal:
            if job.attempts >= self.max_attempts:
                job.state = ClipJobState.TIMED_OUT
                break
            await self.sleep(self.poll_interval)
            await self.poll_once(job, api_key)
        return job

    async def download(self, video_uri: str, api_key: str) -> bytes:
        """Download the generated video."""
        try:
            response = await self.client.get(video_uri, headers={"x-goog-api-key": api_key})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Video download failed with HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Video download failed: {e}") from e

        logger.info(f"Video downloaded: {len(response.content)} bytes")
        return response.content

    async def _fetch_image(self, image_url: str) -> tuple[bytes, str]:
        try:
            response = await self.client.get(image_url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Image download failed with HTTP {e.response.status_code}: {image_url}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Image download failed: {e}") from e
        mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        return response.content, mime_type or "image/jpeg"

    async def _request_json(self, method: str, url: str, api_key: str, **kwargs) -> dict:
        headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}
        try:
            response = await self.client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(upstream_error_message(e.response)) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Video API request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("Video API returned invalid JSON") from e

    async def close(self) -> None:
        await self.client.aclose()
