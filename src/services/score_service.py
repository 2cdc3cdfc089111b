"""Score Service - HTTP client for ambient music via ElevenLabs sound generation."""

import logging

import httpx

from services.errors import FetchError, UpstreamError
from services.narration_service import (
    ELEVENLABS_API_BASE,
    MIN_AUDIO_BYTES,
    provider_error_detail,
)

logger = logging.getLogger(__name__)

LUXURY_SHOWROOM_PROMPT = (
    "Elegant, sophisticated luxury showroom music with subtle ambient tones, "
    "gentle piano, and refined atmosphere for high-end stone and marble presentation"
)
DEFAULT_SCORE_SECONDS = 24.0
DEFAULT_PROMPT_INFLUENCE = 0.3


class ScoreService:
    """HTTP client for background score generation."""

    def __init__(
        self,
        api_key: str,
        api_base: str = ELEVENLABS_API_BASE,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        # Long timeout - sound generation can take a while
        self.client = client or httpx.AsyncClient(timeout=300.0)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def generate_score(
        self,
        prompt: str = LUXURY_SHOWROOM_PROMPT,
        duration_seconds: float = DEFAULT_SCORE_SECONDS,
        prompt_influence: float = DEFAULT_PROMPT_INFLUENCE,
    ) -> bytes:
        """Generate a fixed-length ambient score.

        Args:
            prompt: Mood description
            duration_seconds: Requested length in seconds
            prompt_influence: How literally the model follows the prompt (0-1)

        Returns:
            MP3 audio bytes

        Raises:
            UpstreamError: If generation fails or returns no audio
            FetchError: On network failures and timeouts
        """
        if not self.api_key:
            raise UpstreamError("ELEVENLABS_API_KEY not configured")

        headers = {
            "xi-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        payload = {
            "text": prompt,
            "duration_seconds": duration_seconds,
            "prompt_influence": prompt_influence,
        }

        logger.info(
            f"Generating score: duration={duration_seconds}s, "
            f"prompt_influence={prompt_influence}"
        )

        try:
            response = await self.client.post(
                f"{self.api_base}/sound-generation", headers=headers, json=payload
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError("ElevenLabs sound generation request timed out") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f"ElevenLabs sound generation error: {provider_error_detail(e.response)}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"ElevenLabs sound generation request failed: {e}") from e

        audio_bytes = response.content
        if not audio_bytes or len(audio_bytes) < MIN_AUDIO_BYTES:
            raise UpstreamError("ElevenLabs returned empty score audio")

        logger.info(f"Score generated: {len(audio_bytes)} bytes")
        return audio_bytes

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
