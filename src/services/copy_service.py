"""SEO copy generation from product images using Google GenAI vision models."""

import logging
from typing import Callable

import httpx
from google.genai import Client
from google.genai import types

from models.product import ProductRecord
from services.errors import FetchError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

SEO_PROMPT = """Analyze this {material} stone product image and generate an SEO-optimized description following these guidelines:

STONE DETAILS:
- Name: {title}
- Material Type: {material}
- Color Notes: {color}

LENGTH & FORMAT:
- Target 175-225 words total
- 3-5 sentences per paragraph
- Use elevated, descriptive, yet accessible language
- Blend luxury appeal with practical application

REQUIRED STRUCTURE:

1. OPENING SENTENCE (Hook):
   - Introduce the stone by name and type ({material})
   - Highlight key visual attributes (color palette, texture, distinct qualities)
   - Use emotional appeal (e.g., breathtaking, dramatic, radiant, stunning)

2. VISUAL DESCRIPTION:
   - Describe background color(s) and veining patterns you see in the image
   - Emphasize contrast, movement, or light effects
   - Use evocative comparisons (e.g., "reminiscent of flowing marble," "adds depth and sophistication")

3. DESIGN VERSATILITY:
   - Note compatibility with both classic and modern designs
   - Mention pairing well with different cabinetry, materials, or styles

4. APPLICATIONS (vary the order each time):
   Include specific use cases: kitchen countertops, islands, bathroom vanities, fireplace surrounds, flooring, feature walls
   Mix functional and aspirational phrasing

5. CLOSING STATEMENT:
   - Reinforce timelessness, durability, and elegance
   - Position as ideal choice for luxury, versatility, or long-lasting beauty

SEO KEYWORDS TO INCLUDE NATURALLY:
- Use stone's full name ({title}) multiple times naturally
- Include: natural stone, {material_lower}, elegant, luxurious, timeless, versatile, durable
- Specific applications: kitchen countertops, bathroom vanities, islands, feature walls, flooring, fireplace surrounds

IMPORTANT:
- Do NOT include lot numbers or product codes
- Do NOT overstuff keywords - keep it natural and conversational
- DO emphasize unique visual qualities from the image (color, veining, translucence, contrast)
- DO balance emotional appeal with practical use cases
- Vary application order for freshness"""


def build_seo_prompt(product: ProductRecord) -> str:
    material = product.material or "natural stone"
    return SEO_PROMPT.format(
        title=product.title,
        material=material,
        material_lower=material.lower(),
        color=product.color,
    )


class CopyService:
    """Drafts SEO product copy with a vision-capable Gemini model.

    Every call builds its client from the caller's API key; the configured
    key is only a fallback.
    """

    def __init__(
        self,
        default_api_key: str = "",
        model_name: str = "gemini-2.5-flash",
        http_client: httpx.AsyncClient | None = None,
        client_factory: Callable[[str], Client] | None = None,
        max_output_tokens: int = 2000,
    ):
        self.default_api_key = default_api_key
        self.model_name = model_name
        self.http_client = http_client or httpx.AsyncClient(timeout=60.0, follow_redirects=True)
        self.client_factory = client_factory or (lambda key: Client(api_key=key))
        self.max_output_tokens = max_output_tokens

    async def fetch_image(self, image_url: str) -> tuple[bytes, str]:
        """Download a product image.

        Returns:
            Tuple of (image bytes, mime type)

        Raises:
            FetchError: On network failure or non-2xx response
        """
        try:
            response = await self.http_client.get(image_url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Image download failed with HTTP {e.response.status_code}: {image_url}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Image download failed: {e}") from e

        mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        return response.content, mime_type or "image/jpeg"

    async def generate_seo_copy(
        self,
        product: ProductRecord,
        image_url: str | None = None,
        api_key: str | None = None,
    ) -> str:
        """Generate SEO copy for a product.

        Args:
            product: Product record (title, material, color)
            image_url: Image to analyze; defaults to the product's image
            api_key: Caller's Google AI API key

        Returns:
            Generated description text

        Raises:
            ValidationError: If no API key or image is available
            FetchError: If the image cannot be downloaded
            UpstreamError: If the model call fails
        """
        key = api_key or self.default_api_key
        if not key:
            raise ValidationError("Google AI API key is required")

        image_url = image_url or product.image_url
        if not image_url:
            raise ValidationError("Product image URL is required")

        image_bytes, mime_type = await self.fetch_image(image_url)
        logger.info(f"Generating SEO copy for {product.title} ({len(image_bytes)} byte image)")

        client = self.client_factory(key)
        try:
            response = await client.aio.models.generate_content(
                model=self.model_name,
                contents=[
                    build_seo_prompt(product),
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                ],
                config=types.GenerateContentConfig(
                    max_output_tokens=self.max_output_tokens,
                ),
            )
        except Exception as e:
            logger.error(f"SEO generation failed for {product.title}: {e}")
            raise UpstreamError(str(e)) from e

        text = (response.text or "").strip()
        if not text:
            raise UpstreamError("Model returned no SEO content")
        return text

    async def close(self) -> None:
        await self.http_client.aclose()
