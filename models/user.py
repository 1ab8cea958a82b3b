"""
models/user.py
--------------
Domain model for marketplace users.
"""

from dataclasses import dataclass, field

from models.listing import ListingSummary


@dataclass
class User:
    """
    Public profile of a user. The password hash never leaves the repository.

    Attributes:
        username: Identity key.
        first_name: Given name.
        last_name: Family name.
        email: Unique contact address.
        listings: Listings owned by the user (filled by detail lookups only).
        bookings: Ids of booked listings, ascending (detail lookups only).
    """
    username: str
    first_name: str
    last_name: str
    email: str
    listings: list[ListingSummary] = field(default_factory=list)
    bookings: list[int] = field(default_factory=list)

    def to_profile(self) -> dict:
        """JSON shape of the public profile."""
        return {
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
        }

    def to_detail(self) -> dict:
        """JSON shape of the profile with owned listings and booked ids."""
        data = self.to_profile()
        data["listings"] = [listing.to_dict() for listing in self.listings]
        data["bookings"] = list(self.bookings)
        return data
