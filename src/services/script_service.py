"""Narration script generation for product promo videos."""

import logging

from google.genai import Client
from google.genai import types

from models.product import ProductRecord
from services.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

SCRIPT_TEMPLATE = (
    "Discover the timeless elegance of {title}. "
    "This stunning {material} showcases {color} tones with exquisite natural veining. "
    "Perfect for luxury countertops, islands, and feature walls. "
    "Transform your space with natural beauty that lasts a lifetime."
)

SCRIPT_PROMPT = """Write a voice-over script for a 20-second luxury showroom video.

STONE:
- Name: {title}
- Material: {material}
- Color notes: {color}

RULES:
- 45-55 words, spoken at a calm pace
- Warm, elegant, aspirational tone
- Mention the stone by name once
- Mention two applications (countertops, islands, vanities, feature walls, flooring)
- No lot numbers, prices, hashtags, emojis or stage directions
- Return only the script text"""


def strip_script_text(text: str) -> str:
    """Remove quotes and surrounding whitespace models like to add."""
    return text.strip().strip('"').strip()


class ScriptService:
    """Derives the narration script from a product description.

    The default ``template`` mode is deterministic. ``model`` mode asks a
    Gemini model for a fresh script on each call.
    """

    def __init__(
        self,
        mode: str = "template",
        api_key: str = "",
        model_name: str = "gemini-2.5-flash",
        client: Client | None = None,
    ):
        if mode not in ("template", "model"):
            raise ValueError(f"Unknown script mode: {mode}")
        self.mode = mode
        self.model_name = model_name
        self.client = client
        if self.client is None and mode == "model":
            self.client = Client(api_key=api_key)

    async def generate_script(self, product: ProductRecord | None) -> str:
        """Return a ~20 second narration script for the product.

        Raises:
            ValidationError: If no product description was supplied
            UpstreamError: If model mode fails or returns nothing
        """
        if product is None:
            raise ValidationError("Product description is required")

        logger.info(f"Generating voice script for: {product.title or product.lot_number}")

        if self.mode == "model":
            return await self._generate_with_model(product)

        return SCRIPT_TEMPLATE.format(
            title=product.title,
            material=product.material,
            color=product.color,
        )

    async def _generate_with_model(self, product: ProductRecord) -> str:
        prompt = SCRIPT_PROMPT.format(
            title=product.title,
            material=product.material or "natural stone",
            color=product.color or "natural",
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=0.7,
                ),
            )
        except Exception as e:
            raise UpstreamError(f"Script generation failed: {e}") from e

        script = strip_script_text(response.text or "")
        if not script:
            raise UpstreamError("Script model returned an empty response")
        return script
