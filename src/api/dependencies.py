"""Service singletons and dependency injection for the Showroom API."""

from services.catalog_scraper import CatalogScraper
from services.clip_service import ClipService
from services.copy_service import CopyService
from services.media_transform import MediaTransformEngine
from services.narration_service import NarrationService
from services.score_service import ScoreService
from services.scratch_store import ScratchStore
from services.script_service import ScriptService
from services.video_assembly import VideoAssemblyService
from utils.config import load_config

# Shared configuration; set by create_app, loaded from the environment otherwise
_config: dict | None = None

# Service singletons
_catalog_scraper: CatalogScraper | None = None
_copy_service: CopyService | None = None
_clip_service: ClipService | None = None
_script_service: ScriptService | None = None
_narration_service: NarrationService | None = None
_score_service: ScoreService | None = None
_assembly_service: VideoAssemblyService | None = None


def configure(config: dict) -> None:
    """Use this configuration for every service built from now on."""
    global _config
    _config = config


def get_config() -> dict:
    """Return the shared configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_catalog_scraper() -> CatalogScraper:
    """Get or create the catalog scraper instance."""
    global _catalog_scraper
    if _catalog_scraper is None:
        config = get_config()
        _catalog_scraper = CatalogScraper(config["catalog_url"])
    return _catalog_scraper


def get_copy_service() -> CopyService:
    """Get or create the SEO copy service instance."""
    global _copy_service
    if _copy_service is None:
        config = get_config()
        _copy_service = CopyService(
            default_api_key=config.get("gemini_api_key", ""),
            model_name=config.get("gemini_model", "gemini-2.5-flash"),
        )
    return _copy_service


def get_clip_service() -> ClipService:
    """Get or create the clip generation service instance."""
    global _clip_service
    if _clip_service is None:
        config = get_config()
        _clip_service = ClipService(
            default_api_key=config.get("gemini_api_key", ""),
            model=config["veo_model"],
            api_base=config["veo_api_base"],
            poll_interval=config["clip_poll_interval_seconds"],
            max_attempts=config["clip_max_poll_attempts"],
        )
    return _clip_service


def get_script_service() -> ScriptService:
    """Get or create the narration script service instance."""
    global _script_service
    if _script_service is None:
        config = get_config()
        _script_service = ScriptService(
            mode=config["script_mode"],
            api_key=config.get("gemini_api_key", ""),
            model_name=config.get("gemini_model", "gemini-2.5-flash"),
        )
    return _script_service


def get_narration_service() -> NarrationService:
    """Get or create the narration service instance."""
    global _narration_service
    if _narration_service is None:
        config = get_config()
        _narration_service = NarrationService(
            api_key=config["elevenlabs_api_key"],
            voice_id=config["elevenlabs_voice_id"],
            model_id=config["elevenlabs_tts_model"],
            api_base=config["elevenlabs_api_base"],
        )
    return _narration_service


def get_score_service() -> ScoreService:
    """Get or create the score service instance."""
    global _score_service
    if _score_service is None:
        config = get_config()
        _score_service = ScoreService(
            api_key=config["elevenlabs_api_key"],
            api_base=config["elevenlabs_api_base"],
        )
    return _score_service


def get_assembly_service() -> VideoAssemblyService:
    """Get or create the video assembly orchestrator instance."""
    global _assembly_service
    if _assembly_service is None:
        config = get_config()
        _assembly_service = VideoAssemblyService(
            store=ScratchStore(config["scratch_dir"]),
            engine=MediaTransformEngine(
                ffmpeg_path=config["ffmpeg_path"],
                ffprobe_path=config["ffprobe_path"],
                timeout=config["ffmpeg_timeout_seconds"],
            ),
            script_service=get_script_service(),
            narration_service=get_narration_service(),
            score_service=get_score_service(),
            music_gain=config["music_gain"],
            score_seconds=config["score_duration_seconds"],
            score_prompt_influence=config["score_prompt_influence"],
        )
    return _assembly_service


async def close_services() -> None:
    """Close HTTP clients held by the singletons."""
    global _catalog_scraper, _copy_service, _clip_service, _script_service
    global _narration_service, _score_service, _assembly_service
    for service in (_catalog_scraper, _copy_service, _clip_service, _narration_service, _score_service):
        if service is not None:
            await service.close()
    _catalog_scraper = _copy_service = _clip_service = _script_service = None
    _narration_service = _score_service = _assembly_service = None
