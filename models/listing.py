"""
models/listing.py
-----------------
Domain models for property listings.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ListingSummary:
    """Listing as shown on its owner's profile."""
    id: int
    title: str
    description: str
    location: str
    price: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "price": self.price,
        }


@dataclass
class Listing:
    """
    A property offered by its owner.

    Attributes:
        id: Database primary key (None for new records).
        title: Short headline.
        description: Free-form text.
        location: Free-form place name, searched by substring.
        price: Non-negative nightly price.
        username: Owning user.
        image: Photo URI (a placeholder when the owner supplied none).
    """
    title: str
    description: str
    location: str
    price: float
    username: str
    image: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "price": self.price,
            "username": self.username,
            "image": self.image,
        }
