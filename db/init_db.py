"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from config import DEFAULT_LISTING_IMAGE
from db.connection import get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = f"""
-- Users table: identity key is the username; password holds a bcrypt hash
CREATE TABLE IF NOT EXISTS users (
    username        VARCHAR(25) PRIMARY KEY,
    password        TEXT NOT NULL,
    first_name      TEXT NOT NULL,
    last_name       TEXT NOT NULL,
    email           TEXT NOT NULL UNIQUE CHECK (position('@' IN email) > 1)
);

-- Listings table: owned by a user through the denormalized username column
CREATE TABLE IF NOT EXISTS listings (
    id              SERIAL PRIMARY KEY,
    title           TEXT NOT NULL,
    description     TEXT NOT NULL DEFAULT '',
    location        TEXT NOT NULL,
    price           NUMERIC(12,2) NOT NULL CHECK (price >= 0),
    username        VARCHAR(25) NOT NULL REFERENCES users(username),
    image           TEXT NOT NULL DEFAULT '{DEFAULT_LISTING_IMAGE}'
);

-- Bookings table: a (user, listing) pair exists at most once
CREATE TABLE IF NOT EXISTS bookings (
    username        VARCHAR(25) NOT NULL
                    CONSTRAINT bookings_username_fkey REFERENCES users(username),
    listing_id      INTEGER NOT NULL REFERENCES listings(id),
    PRIMARY KEY (username, listing_id)
);

-- Messages table: immutable direct messages; id breaks sent_time ties
CREATE TABLE IF NOT EXISTS messages (
    id              SERIAL PRIMARY KEY,
    from_user       VARCHAR(25) NOT NULL
                    CONSTRAINT messages_from_user_fkey REFERENCES users(username),
    to_user         VARCHAR(25) NOT NULL REFERENCES users(username),
    text            TEXT NOT NULL,
    sent_time       TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
    CHECK (from_user <> to_user)
);

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_listings_username ON listings(username);
CREATE INDEX IF NOT EXISTS idx_listings_title ON listings(title);
CREATE INDEX IF NOT EXISTS idx_bookings_listing ON bookings(listing_id);
CREATE INDEX IF NOT EXISTS idx_messages_pair ON messages(from_user, to_user, sent_time);
CREATE INDEX IF NOT EXISTS idx_messages_to_user ON messages(to_user);
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        release_connection(conn)


def drop_tables() -> None:
    """Drop all tables. Used by the integration test suite."""
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute("DROP TABLE IF EXISTS messages, bookings, listings, users;")
        conn.commit()
        logger.info("Database schema dropped.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to drop schema: {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    print("Database schema created successfully.")
