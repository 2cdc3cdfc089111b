"""SEO copy and narration script routes for the Showroom API."""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_copy_service, get_script_service
from api.schemas import ErrorResponse, ScriptRequest, ScriptResponse, SeoRequest, SeoResponse
from services.copy_service import CopyService
from services.errors import ValidationError
from services.script_service import ScriptService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Content"])


@router.post(
    "/api/generate-seo",
    response_model=SeoResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Generate SEO copy",
    description="Drafts an SEO product description from the product image with a vision model.",
)
async def generate_seo(
    request: SeoRequest,
    service: CopyService = Depends(get_copy_service),
) -> SeoResponse:
    product = request.product.to_record()
    seo_content = await service.generate_seo_copy(
        product, image_url=product.image_url, api_key=request.api_key
    )
    return SeoResponse(seo_content=seo_content)


@router.post(
    "/api/generate-script",
    response_model=ScriptResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Generate narration script",
    description="Builds the ~20 second voice-over script for a product.",
)
async def generate_script(
    request: ScriptRequest,
    service: ScriptService = Depends(get_script_service),
) -> ScriptResponse:
    if request.product_description is None:
        raise ValidationError("Product description is required")
    script = await service.generate_script(request.product_description.to_record())
    logger.info("Script generated")
    return ScriptResponse(script=script)
