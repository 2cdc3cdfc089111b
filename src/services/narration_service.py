"""Narration Service - HTTP client for ElevenLabs text-to-speech."""

import logging

import httpx

from services.errors import FetchError, UpstreamError

logger = logging.getLogger(__name__)

ELEVENLABS_API_BASE = "https://api.elevenlabs.io/v1"
DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"
DEFAULT_TTS_MODEL = "eleven_monolingual_v1"

MIN_AUDIO_BYTES = 100


def provider_error_detail(response: httpx.Response) -> str:
    """Pull the provider's message out of an ElevenLabs error body."""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    detail = data.get("detail", data) if isinstance(data, dict) else data
    if isinstance(detail, dict):
        return str(detail.get("message") or detail.get("status") or detail)
    return str(detail)


class NarrationService:
    """Converts narration scripts to speech audio via ElevenLabs."""

    def __init__(
        self,
        api_key: str,
        voice_id: str = DEFAULT_VOICE_ID,
        model_id: str = DEFAULT_TTS_MODEL,
        api_base: str = ELEVENLABS_API_BASE,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize narration service.

        Args:
            api_key: ElevenLabs API key (xi-api-key)
            voice_id: Voice used for all narration
            model_id: ElevenLabs TTS model
            api_base: API base URL
            client: Optional pre-built HTTP client
        """
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.api_base = api_base.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=120.0)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def synthesize(
        self,
        text: str,
        stability: float = 0.5,
        similarity_boost: float = 0.75,
    ) -> bytes:
        """Generate speech audio (MP3) for a script.

        Args:
            text: Narration script
            stability: Voice stability setting
            similarity_boost: Voice similarity boost setting

        Returns:
            MP3 audio bytes

        Raises:
            UpstreamError: If the provider rejects the request or returns no audio
            FetchError: On network failures and timeouts
        """
        if not self.api_key:
            raise UpstreamError("ELEVENLABS_API_KEY not configured")
        if not text or not text.strip():
            raise UpstreamError("Cannot synthesize narration for an empty script")

        url = f"{self.api_base}/text-to-speech/{self.voice_id}"
        headers = {
            "xi-api-key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }
        payload = {
            "text": text.strip(),
            "model_id": self.model_id,
            "voice_settings": {
                "stability": stability,
                "similarity_boost": similarity_boost,
            },
        }

        logger.info(f"Generating narration: {len(text)} chars, voice={self.voice_id}")

        try:
            response = await self.client.post(url, headers=headers, json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError("ElevenLabs text-to-speech request timed out") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f"ElevenLabs text-to-speech error: {provider_error_detail(e.response)}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"ElevenLabs text-to-speech request failed: {e}") from e

        audio_bytes = response.content
        if not audio_bytes or len(audio_bytes) < MIN_AUDIO_BYTES:
            raise UpstreamError("ElevenLabs returned empty narration audio")

        logger.info(f"Narration generated: {len(audio_bytes)} bytes")
        return audio_bytes

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
