"""Configuration loading and validation for showroom."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Get the project root directory (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_CATALOG_URL = "https://agmimports.com/new_arrival/"
DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"


def load_config() -> dict:
    """Load configuration from environment variables."""

    # Helper function to resolve paths relative to project root
    def resolve_path(path: str | None, default_relative: str) -> str:
        if not path:
            return str(PROJECT_ROOT / default_relative)
        if Path(path).is_absolute():
            return path
        return str(PROJECT_ROOT / path)

    config = {
        # ElevenLabs voice + sound generation
        "elevenlabs_api_key": os.getenv("ELEVENLABS_API_KEY", ""),
        "elevenlabs_api_base": os.getenv("ELEVENLABS_API_BASE", "https://api.elevenlabs.io/v1"),
        "elevenlabs_voice_id": os.getenv("ELEVENLABS_VOICE_ID", DEFAULT_VOICE_ID),
        "elevenlabs_tts_model": os.getenv("ELEVENLABS_TTS_MODEL", "eleven_monolingual_v1"),
        "score_duration_seconds": float(os.getenv("SCORE_DURATION_SECONDS", "24")),
        "score_prompt_influence": float(os.getenv("SCORE_PROMPT_INFLUENCE", "0.3")),
        "music_gain": float(os.getenv("MUSIC_GAIN", "0.3")),
        # Scratch workspace and encoder
        "scratch_dir": resolve_path(os.getenv("SCRATCH_DIR"), "temp"),
        "ffmpeg_path": os.getenv("FFMPEG_PATH", "ffmpeg"),
        "ffprobe_path": os.getenv("FFPROBE_PATH", "ffprobe"),
        "ffmpeg_timeout_seconds": float(os.getenv("FFMPEG_TIMEOUT_SECONDS", "600")),
        # Catalog
        "catalog_url": os.getenv("CATALOG_URL", DEFAULT_CATALOG_URL),
        # Google GenAI (copy, optional script model, Veo clips).
        # Request bodies may carry their own key; this is the fallback.
        "gemini_api_key": os.getenv("GEMINI_API_KEY", ""),
        "gemini_model": os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        "veo_model": os.getenv("VEO_MODEL", "veo-3.0-generate-001"),
        "veo_api_base": os.getenv(
            "VEO_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
        ),
        "clip_poll_interval_seconds": float(os.getenv("CLIP_POLL_INTERVAL_SECONDS", "10")),
        "clip_max_poll_attempts": int(os.getenv("CLIP_MAX_POLL_ATTEMPTS", "60")),
        # Narration script: "template" or "model"
        "script_mode": os.getenv("SCRIPT_MODE", "template").lower(),
        # HTTP server
        "dashboard_dir": resolve_path(os.getenv("DASHBOARD_DIR"), "public"),
        "cors_origins": [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ],
        "port": int(os.getenv("PORT", "7761")),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_json": os.getenv("LOG_JSON", "false").lower() == "true",
    }

    return config


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return list of errors."""
    errors = []

    if not config.get("elevenlabs_api_key"):
        errors.append("ELEVENLABS_API_KEY is required for narration and score generation")

    gain = config.get("music_gain", 0.3)
    if not 0.0 <= gain <= 1.0:
        errors.append(f"MUSIC_GAIN must be between 0 and 1, got {gain}")

    if config.get("score_duration_seconds", 24) <= 0:
        errors.append("SCORE_DURATION_SECONDS must be positive")

    if config.get("clip_poll_interval_seconds", 10) < 0:
        errors.append("CLIP_POLL_INTERVAL_SECONDS must not be negative")

    if config.get("clip_max_poll_attempts", 60) < 1:
        errors.append("CLIP_MAX_POLL_ATTEMPTS must be at least 1")

    if config.get("script_mode") not in ("template", "model"):
        errors.append(f"SCRIPT_MODE must be 'template' or 'model', got {config.get('script_mode')!r}")

    if config.get("script_mode") == "model" and not config.get("gemini_api_key"):
        errors.append("GEMINI_API_KEY is required when SCRIPT_MODE=model")

    # Validate scratch path can be created
    if config.get("scratch_dir"):
        try:
            Path(config["scratch_dir"]).mkdir(parents=True, exist_ok=True)
        except Exception as e:
            errors.append(f"Cannot create scratch folder: {e}")

    return errors
