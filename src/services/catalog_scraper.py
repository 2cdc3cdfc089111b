"""Vendor catalog scraper for the new-arrivals listing page."""

import logging
import re
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from models.product import ProductRecord
from services.errors import FetchError

logger = logging.getLogger(__name__)

LOT_NUMBER_PATTERN = re.compile(r"([A-Z]+\d+)")
MATERIAL_PATTERN = re.compile(r"Materials?:?\s*([^\n\r]+)", re.IGNORECASE)
COLOR_PATTERN = re.compile(r"Colors?:?\s*([^\n\r]+)", re.IGNORECASE)
KNOWN_MATERIALS = ("Marble", "Quartzite", "Granite", "Dolomite")


def title_from_link(link: str) -> str:
    """Derive a display title from a product link's slug.

    ``/stone/calacatta-gold-123/`` becomes ``Calacatta Gold``.
    """
    parts = link.split("/")
    slug = (parts[-2] if len(parts) >= 2 else "") or parts[-1]
    slug = re.sub(r"\d+$", "", slug.replace("-", " ")).strip()
    return " ".join(word[:1].upper() + word[1:].lower() for word in slug.split(" "))


def lot_number_from_image(image_url: str) -> str:
    match = LOT_NUMBER_PATTERN.search(image_url.split("/")[-1])
    return match.group(1) if match else ""


def material_from_title(title: str) -> str:
    lowered = title.lower()
    for material in KNOWN_MATERIALS:
        if material.lower() in lowered:
            return material
    return ""


def site_origin(page_url: str) -> str:
    parsed = urlparse(page_url)
    return f"{parsed.scheme}://{parsed.netloc}"


def parse_catalog(html: str, page_url: str) -> list[ProductRecord]:
    """Extract product records from listing HTML.

    Every anchor that wraps an image is a candidate. Records are
    deduplicated by image URL, keeping the first occurrence.
    """
    soup = BeautifulSoup(html, "html.parser")
    origin = site_origin(page_url)

    products: list[ProductRecord] = []
    total_anchors = 0
    anchors_with_images = 0

    for index, anchor in enumerate(soup.find_all("a")):
        total_anchors += 1
        img = anchor.find("img")
        if img is None:
            continue
        anchors_with_images += 1

        image_url = (img.get("src") or "").strip()
        link = (anchor.get("href") or "").strip()

        title_tag = anchor.select_one("h2, .product-title, h3")
        title = title_tag.get_text().strip() if title_tag else ""
        if not title and link:
            title = title_from_link(link)

        full_text = anchor.get_text()
        lot_number = lot_number_from_image(image_url) if image_url else ""

        material_match = MATERIAL_PATTERN.search(full_text)
        material = material_match.group(1).strip() if material_match else ""

        color_match = COLOR_PATTERN.search(full_text)
        color = color_match.group(1).strip() if color_match else ""

        if not material and title:
            material = material_from_title(title)

        if not (image_url and link and (title or lot_number)):
            logger.debug(f"Skipped anchor {index} - insufficient data")
            continue

        products.append(
            ProductRecord(
                id=index,
                title=title or f"Stone {lot_number}",
                image_url=urljoin(origin, image_url),
                link=urljoin(origin, link),
                lot_number=lot_number,
                material=material,
                color=color,
            )
        )

    seen: set[str] = set()
    unique: list[ProductRecord] = []
    for product in products:
        if product.image_url in seen:
            continue
        seen.add(product.image_url)
        unique.append(product)

    logger.info(
        f"Stats: {total_anchors} total anchors, {anchors_with_images} with images, "
        f"{len(products)} products before dedup, {len(unique)} unique"
    )
    return unique


class CatalogScraper:
    """Fetches and parses the vendor's new-arrivals page."""

    def __init__(self, page_url: str, client: httpx.AsyncClient | None = None):
        self.page_url = page_url
        self.client = client or httpx.AsyncClient(timeout=30.0, follow_redirects=True)

    async def scrape_catalog(self, page_url: str | None = None) -> list[ProductRecord]:
        """Scrape product records from the listing page.

        Raises:
            FetchError: On network failure or a non-2xx response
        """
        url = page_url or self.page_url
        logger.info(f"Starting scrape of {url}")

        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Catalog page returned HTTP {e.response.status_code}: {url}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch catalog page {url}: {e}") from e

        return parse_catalog(response.text, url)

    async def close(self) -> None:
        await self.client.aclose()
