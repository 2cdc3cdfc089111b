"""Video assembly orchestrator.

Turns two generated clips and a product description into one narrated,
scored promo video:

1. Persist both clips (A, B) to the scratch workspace
2. Reverse A
3. Concatenate A -> B -> reversed A into a silent composite
4. Derive the narration script
5. Synthesize narration
6. Generate the ambient score
7. Mix narration with the attenuated score (narration length)
8. Mux the mix onto the composite (shorter of the two)

Stages run strictly in order and fail fast. Every artifact a run allocates
is deleted when the run's scope exits, on success and on failure.
"""

import asyncio
import logging
import time
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator

from models.artifact import ArtifactKind
from models.media import AssemblyResult, ClipPayload, to_data_uri
from models.product import ProductRecord
from services.errors import StageError, ValidationError
from services.media_transform import DEFAULT_MUSIC_GAIN, MediaTransformEngine
from services.narration_service import NarrationService
from services.score_service import (
    DEFAULT_PROMPT_INFLUENCE,
    DEFAULT_SCORE_SECONDS,
    LUXURY_SHOWROOM_PROMPT,
    ScoreService,
)
from services.scratch_store import ArtifactScope, ScratchStore
from services.script_service import ScriptService
from utils.logging import clear_run_context, set_run_context

logger = logging.getLogger(__name__)

EXPECTED_VIDEO_COUNT = 2


class AssemblyStage(Enum):
    """Pipeline stages in execution order; values are log/error descriptions."""

    PERSIST_INPUTS = "Saving input videos"
    REVERSE = "Reversing first video"
    CONCATENATE = "Concatenating videos"
    SCRIPT = "Generating voice script"
    NARRATION = "Generating voice narration"
    SCORE = "Generating background music"
    MIX = "Mixing voice and music"
    MUX = "Adding audio to final video"
    FINALIZE = "Reading final video"

    @property
    def key(self) -> str:
        return self.name.lower()


@contextmanager
def _stage(stage: AssemblyStage) -> Iterator[None]:
    """Log a stage and wrap any failure with the stage that raised it."""
    logger.info(f"{stage.value}...")
    started = time.monotonic()
    try:
        yield
    except Exception as e:
        logger.error(f"Stage '{stage.key}' failed: {e}")
        raise StageError(stage.key, stage.value, e) from e
    logger.info(f"{stage.value} done in {time.monotonic() - started:.1f}s")


class VideoAssemblyService:
    """Runs the fixed assembly pipeline. Each call is an independent run."""

    def __init__(
        self,
        store: ScratchStore,
        engine: MediaTransformEngine,
        script_service: ScriptService,
        narration_service: NarrationService,
        score_service: ScoreService,
        music_gain: float = DEFAULT_MUSIC_GAIN,
        score_prompt: str = LUXURY_SHOWROOM_PROMPT,
        score_seconds: float = DEFAULT_SCORE_SECONDS,
        score_prompt_influence: float = DEFAULT_PROMPT_INFLUENCE,
    ):
        self.store = store
        self.engine = engine
        self.script_service = script_service
        self.narration_service = narration_service
        self.score_service = score_service
        self.music_gain = music_gain
        self.score_prompt = score_prompt
        self.score_seconds = score_seconds
        self.score_prompt_influence = score_prompt_influence

    async def assemble(
        self, videos: list[ClipPayload], product: ProductRecord | None
    ) -> AssemblyResult:
        """Build the promo video.

        Args:
            videos: Exactly two decoded clips (A, B)
            product: Product description used for the narration script

        Returns:
            AssemblyResult with a ``data:video/mp4;base64,`` URL and the script

        Raises:
            ValidationError: If the input shape is wrong (nothing is written)
            StageError: If any stage fails; wraps the original error
        """
        if videos is None or len(videos) != EXPECTED_VIDEO_COUNT:
            raise ValidationError(f"Expected {EXPECTED_VIDEO_COUNT} video URLs")
        if product is None:
            raise ValidationError("Product description is required")

        with self.store.run_scope() as scope:
            set_run_context(scope.run_key)
            try:
                logger.info("Starting video assembly with narration and score")
                return await self._run_stages(scope, videos, product)
            finally:
                clear_run_context()

    async def _run_stages(
        self, scope: ArtifactScope, videos: list[ClipPayload], product: ProductRecord
    ) -> AssemblyResult:
        with _stage(AssemblyStage.PERSIST_INPUTS):
            self.store.ensure_workspace()
            clip_a = await asyncio.to_thread(scope.write, ArtifactKind.INPUT_A, videos[0].data)
            clip_b = await asyncio.to_thread(scope.write, ArtifactKind.INPUT_B, videos[1].data)

        with _stage(AssemblyStage.REVERSE):
            reversed_a = await self.engine.reverse(
                clip_a, scope.path_for(ArtifactKind.REVERSED)
            )

        with _stage(AssemblyStage.CONCATENATE):
            composite = await self.engine.concatenate(
                [clip_a, clip_b, reversed_a],
                scope.path_for(ArtifactKind.CONCAT_LIST),
                scope.path_for(ArtifactKind.COMPOSITE),
                drop_audio=True,
            )

        with _stage(AssemblyStage.SCRIPT):
            script = await self.script_service.generate_script(product)
            logger.info(f"Script generated: {script}")

        with _stage(AssemblyStage.NARRATION):
            audio = await self.narration_service.synthesize(script)
            narration = await asyncio.to_thread(scope.write, ArtifactKind.NARRATION, audio)

        with _stage(AssemblyStage.SCORE):
            audio = await self.score_service.generate_score(
                prompt=self.score_prompt,
                duration_seconds=self.score_seconds,
                prompt_influence=self.score_prompt_influence,
            )
            score = await asyncio.to_thread(scope.write, ArtifactKind.SCORE, audio)

        with _stage(AssemblyStage.MIX):
            mixed = await self.engine.mix_audio(
                narration,
                score,
                scope.path_for(ArtifactKind.MIXED),
                track_b_gain=self.music_gain,
            )

        with _stage(AssemblyStage.MUX):
            final = await self.engine.mux_audio_onto_video(
                composite, mixed, scope.path_for(ArtifactKind.FINAL)
            )

        with _stage(AssemblyStage.FINALIZE):
            video_url = await asyncio.to_thread(self._encode_final, final)

        logger.info("Final video with audio created")
        return AssemblyResult(video_url=video_url, script=script)

    def _encode_final(self, path: Path) -> str:
        return to_data_uri(self.store.read_artifact(path), "video/mp4")
