"""
security/auth.py
-----------------
Authorization guard for route handlers.

Policies:
    - logged in: any authenticated identity.
    - correct user: the acting identity is the target username.
    - listing owner: the acting identity owns the listing. The listing
      must already have been read, so handlers always do
      read -> authorize -> mutate.

Every violation raises ``Forbidden`` and is logged.
"""

from typing import Optional

from models.listing import Listing
from utils.errors import Forbidden
from utils.logger import get_logger

logger = get_logger(__name__)


def ensure_logged_in(identity: Optional[str]) -> str:
    """Return the acting username, or raise Forbidden if nobody is logged in."""
    if not identity:
        logger.warning("Blocked anonymous request to a logged-in route")
        raise Forbidden("Must be logged in")
    return identity


def ensure_correct_user(identity: Optional[str], username: str) -> str:
    """Require the acting user to be ``username``."""
    identity = ensure_logged_in(identity)
    if identity != username:
        logger.warning(f"Blocked {identity} from acting as {username}")
        raise Forbidden("Not allowed to act for another user")
    return identity


def ensure_listing_owner(identity: Optional[str], listing: Listing) -> str:
    """Require the acting user to own ``listing``."""
    identity = ensure_logged_in(identity)
    if identity != listing.username:
        logger.warning(
            f"Blocked {identity} from modifying listing #{listing.id} "
            f"owned by {listing.username}"
        )
        raise Forbidden("Only the owner can modify this listing")
    return identity
