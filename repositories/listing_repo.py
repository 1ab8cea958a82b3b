"""
repositories/listing_repo.py
-----------------------------
Data access layer for property listings.
All SQL queries related to the `listings` table live here.
"""

import math
from typing import Any, Mapping, Optional

from psycopg2 import errors, sql

from config import MAX_PRICE, Settings
from db.connection import get_connection, release_connection
from db.query_builder import listing_filter_where, sql_for_partial_update
from models.listing import Listing
from utils.errors import InvalidInput, NotFound
from utils.logger import get_logger

logger = get_logger(__name__)

_LISTING_COLUMNS = sql.SQL("id, title, description, location, price, username, image")
_UPDATABLE_COLUMNS = {"title", "description", "location", "price", "image"}


class ListingRepository:
    """Repository for CRUD operations and searches on the listings table."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or Settings.from_env()
        self.default_image = settings.default_listing_image

    # ── CREATE ────────────────────────────────────────────

    def create(
        self,
        owner: str,
        title: str,
        location: str,
        price: float,
        description: str = "",
        image: Optional[str] = None,
    ) -> Listing:
        """
        Insert a new listing owned by ``owner``.

        Args:
            owner: Username of the owning user.
            image: Photo URI; the placeholder image is used when omitted.

        Returns:
            The stored Listing with its ``id`` populated.

        Raises:
            InvalidInput: If the price is negative or cannot be stored.
            NotFound: If the owner does not exist.
        """
        check_price(price)

        query = sql.SQL(
            """
            INSERT INTO listings (title, description, location, price, username, image)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING {};
            """
        ).format(_LISTING_COLUMNS)
        params = (title, description, location, price, owner, image or self.default_image)

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, params)
                row = cur.fetchone()
            conn.commit()
        except errors.ForeignKeyViolation:
            conn.rollback()
            raise NotFound(f"No username: {owner}")
        except errors.NumericValueOutOfRange:
            conn.rollback()
            raise InvalidInput("Price is out of range")
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to create listing for {owner}: {e}")
            raise
        finally:
            release_connection(conn)

        listing = row_to_listing(row)
        logger.info(f"Created listing #{listing.id} for {owner}")
        return listing

    # ── READ ──────────────────────────────────────────────

    def find_all(
        self,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        location: Optional[str] = None,
    ) -> list[Listing]:
        """
        Search listings, ordered by title.

        Args:
            min_price: Inclusive lower price bound.
            max_price: Inclusive upper price bound.
            location: Case-insensitive partial match on location.

        Raises:
            InvalidInput: If min_price is greater than max_price.
        """
        if min_price is not None and max_price is not None and min_price > max_price:
            raise InvalidInput("Min price cannot be greater than max price")

        clause = listing_filter_where(min_price, max_price, location)
        query = sql.SQL("SELECT {} FROM listings {} ORDER BY title, id;").format(
            _LISTING_COLUMNS, clause.where
        )
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, clause.values)
                return [row_to_listing(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def get(self, listing_id: int) -> Listing:
        """
        Fetch a single listing.

        Raises:
            NotFound: If there is no such listing.
        """
        query = sql.SQL("SELECT {} FROM listings WHERE id = %s;").format(_LISTING_COLUMNS)
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, (listing_id,))
                row = cur.fetchone()
        finally:
            release_connection(conn)

        if row is None:
            raise NotFound(f"No listing: {listing_id}")
        return row_to_listing(row)

    # ── UPDATE ────────────────────────────────────────────

    def update(self, listing_id: int, data: Mapping[str, Any]) -> Listing:
        """
        Partially update a listing.

        Args:
            listing_id: Listing to update.
            data: Any of {title, description, location, price, image}.

        Raises:
            InvalidInput: If ``data`` is empty, names another field, or sets a price
                that check_price rejects.
            NotFound: If there is no such listing.
        """
        if data.get("price") is not None:
            check_price(data["price"])

        update = sql_for_partial_update(data, {}, _UPDATABLE_COLUMNS)
        query = sql.SQL(
            """
            UPDATE listings
            SET {}
            WHERE id = %s
            RETURNING {};
            """
        ).format(update.set_clause, _LISTING_COLUMNS)

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(query, [*update.values, listing_id])
                row = cur.fetchone()
            conn.commit()
        except errors.NumericValueOutOfRange:
            conn.rollback()
            raise InvalidInput("Price is out of range")
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update listing #{listing_id}: {e}")
            raise
        finally:
            release_connection(conn)

        if row is None:
            raise NotFound(f"No listing: {listing_id}")
        logger.info(f"Updated listing #{listing_id}: {', '.join(update.columns)}")
        return row_to_listing(row)

    # ── DELETE ────────────────────────────────────────────

    def remove(self, listing_id: int) -> None:
        """
        Delete a listing.

        Raises:
            InvalidInput: If the listing still has bookings.
            NotFound: If there is no such listing.
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM listings WHERE id = %s RETURNING id;", (listing_id,))
                row = cur.fetchone()
            conn.commit()
        except errors.ForeignKeyViolation:
            conn.rollback()
            raise InvalidInput(f"Listing {listing_id} still has bookings")
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete listing #{listing_id}: {e}")
            raise
        finally:
            release_connection(conn)

        if row is None:
            raise NotFound(f"No listing: {listing_id}")
        logger.info(f"Deleted listing #{listing_id}")


def row_to_listing(row: tuple) -> Listing:
    """Convert an (id, title, description, location, price, username, image) row."""
    return Listing(
        id=row[0],
        title=row[1],
        description=row[2],
        location=row[3],
        price=float(row[4]),
        username=row[5],
        image=row[6],
    )


def check_price(price: float) -> None:
    """
    Reject prices the listings.price column cannot hold.

    Raises:
        InvalidInput: If the price is negative or not finite, or reaches MAX_PRICE.
    """
    if not math.isfinite(price):
        raise InvalidInput("Price must be a finite number")
    if price < 0:
        raise InvalidInput("Price cannot be negative")
    if price >= MAX_PRICE:
        raise InvalidInput(f"Price must be less than {MAX_PRICE}")
