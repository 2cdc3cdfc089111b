"""Catalog product data models."""

from dataclasses import dataclass


@dataclass
class ProductRecord:
    """A product scraped from the vendor's listing page.

    Any descriptive field may be an empty string when it could not be
    inferred from the page.
    """

    id: int
    title: str
    image_url: str
    link: str
    lot_number: str = ""
    material: str = ""
    color: str = ""

    def to_dict(self) -> dict:
        """Serialize using the camelCase keys the dashboard expects."""
        return {
            "id": self.id,
            "title": self.title,
            "imageUrl": self.image_url,
            "link": self.link,
            "lotNumber": self.lot_number,
            "material": self.material,
            "color": self.color,
        }
