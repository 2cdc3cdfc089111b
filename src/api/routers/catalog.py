"""Catalog scraping routes for the Showroom API."""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_catalog_scraper
from api.schemas import ErrorResponse, ScrapeResponse
from services.catalog_scraper import CatalogScraper

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


@router.get(
    "/api/scrape-new-arrivals",
    response_model=ScrapeResponse,
    responses={502: {"model": ErrorResponse}},
    summary="Scrape new arrivals",
    description="Scrapes the vendor's new-arrivals page into product records, deduplicated by image URL.",
)
async def scrape_new_arrivals(
    scraper: CatalogScraper = Depends(get_catalog_scraper),
) -> ScrapeResponse:
    products = await scraper.scrape_catalog()
    logger.info(f"Final result: {len(products)} unique products")
    return ScrapeResponse(products=[product.to_dict() for product in products])
