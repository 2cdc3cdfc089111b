"""Pydantic request/response models for the Showroom API."""

from pydantic import BaseModel, ConfigDict, Field

from models.product import ProductRecord

# =============================================================================
# Shared
# =============================================================================


class ProductPayload(BaseModel):
    """Product description as sent by the dashboard (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int | None = None
    title: str = ""
    image_url: str = Field(default="", alias="imageUrl")
    link: str = ""
    lot_number: str = Field(default="", alias="lotNumber")
    material: str = ""
    color: str = ""

    def to_record(self) -> ProductRecord:
        return ProductRecord(
            id=self.id if self.id is not None else 0,
            title=self.title,
            image_url=self.image_url,
            link=self.link,
            lot_number=self.lot_number,
            material=self.material,
            color=self.color,
        )


class ErrorResponse(BaseModel):
    """Uniform failure body."""

    success: bool = False
    error: str

    model_config = {"json_schema_extra": {"examples": [{"success": False, "error": "Expected 2 video URLs"}]}}


# =============================================================================
# Core
# =============================================================================


class RootResponse(BaseModel):
    """Root endpoint response."""

    message: str
    version: str

    model_config = {"json_schema_extra": {"examples": [{"message": "Showroom API", "version": "1.0.0"}]}}


class HealthResponse(BaseModel):
    """Health check response."""

    status: str

    model_config = {"json_schema_extra": {"examples": [{"status": "healthy"}]}}


# =============================================================================
# Catalog
# =============================================================================


class ScrapeResponse(BaseModel):
    success: bool = True
    products: list[dict]


# =============================================================================
# Copy and script
# =============================================================================


class SeoRequest(BaseModel):
    """Request body for SEO copy generation."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str | None = Field(default=None, alias="apiKey")
    product: ProductPayload


class SeoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    seo_content: str = Field(alias="seoContent")


class ScriptRequest(BaseModel):
    """Request body for narration script generation."""

    model_config = ConfigDict(populate_by_name=True)

    product_description: ProductPayload | None = Field(default=None, alias="productDescription")


class ScriptResponse(BaseModel):
    success: bool = True
    script: str


# =============================================================================
# Video
# =============================================================================


class VideoGenerateRequest(BaseModel):
    """Request body for clip generation."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str | None = Field(default=None, alias="apiKey")
    product: ProductPayload
    prompt: str | None = None
    aspect_ratio: str | None = Field(default="16:9", alias="aspectRatio")
    resolution: str | None = "720p"


class VideoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    video_url: str = Field(alias="videoUrl")


class VideoInput(BaseModel):
    """One clip as a ``data:video/mp4;base64,...`` URL."""

    url: str


class ConcatenateRequest(BaseModel):
    """Request body for promo assembly."""

    model_config = ConfigDict(populate_by_name=True)

    videos: list[VideoInput] | None = None
    product_description: ProductPayload | None = Field(default=None, alias="productDescription")


class ConcatenateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    video_url: str = Field(alias="videoUrl")
    script: str
