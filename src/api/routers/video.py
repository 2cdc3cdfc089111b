"""Clip generation and promo assembly routes for the Showroom API."""

import asyncio
import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_assembly_service, get_clip_service
from api.schemas import (
    ConcatenateRequest,
    ConcatenateResponse,
    ErrorResponse,
    VideoGenerateRequest,
    VideoResponse,
)
from models.media import ClipPayload, to_data_uri
from services.clip_service import ClipService
from services.errors import ValidationError
from services.video_assembly import EXPECTED_VIDEO_COUNT, VideoAssemblyService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Video"])


def decode_clips(urls: list[str]) -> list[ClipPayload]:
    """Decode data URIs into clips; runs in a worker thread."""
    return [ClipPayload.from_data_uri(url) for url in urls]


@router.post(
    "/api/generate-video",
    response_model=VideoResponse,
    responses={
        400: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
    summary="Generate clip",
    description="Generates a short clip from the product image. Blocks until the job finishes or times out.",
)
async def generate_video(
    request: VideoGenerateRequest,
    service: ClipService = Depends(get_clip_service),
) -> VideoResponse:
    video_bytes = await service.generate_clip(
        request.product.to_record(),
        prompt=request.prompt or "",
        aspect_ratio=request.aspect_ratio,
        resolution=request.resolution,
        api_key=request.api_key,
    )
    video_url = await asyncio.to_thread(to_data_uri, video_bytes, "video/mp4")
    return VideoResponse(video_url=video_url)


@router.post(
    "/api/concatenate-videos",
    response_model=ConcatenateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Assemble promo video",
    description=(
        "Concatenates clip A, clip B and reversed clip A, then adds a narration "
        "mixed with a background score."
    ),
)
async def concatenate_videos(
    request: ConcatenateRequest,
    service: VideoAssemblyService = Depends(get_assembly_service),
) -> ConcatenateResponse:
    if not request.videos or len(request.videos) != EXPECTED_VIDEO_COUNT:
        raise ValidationError(f"Expected {EXPECTED_VIDEO_COUNT} video URLs")

    clips = await asyncio.to_thread(decode_clips, [video.url for video in request.videos])
    product = request.product_description.to_record() if request.product_description else None

    result = await service.assemble(clips, product)
    return ConcatenateResponse(video_url=result.video_url, script=result.script)
