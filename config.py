"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants, plus a
``Settings`` object that is passed explicitly to the components
that need it (pool, password hasher, token codec, image service).
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


# ── Runtime ───────────────────────────────────────────────
TESTING: bool = os.getenv("TESTING", "0") == "1"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3001"))

# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "sharebnb_test" if TESTING else "sharebnb")
DB_USER: str = os.getenv("DB_USER", "sharebnb_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "5"))

# ── Security ──────────────────────────────────────────────
# Work factor 1 is below bcrypt's minimum; the hasher clamps it to 4.
BCRYPT_WORK_FACTOR: int = int(
    os.getenv("BCRYPT_WORK_FACTOR", "1" if TESTING else "12")
)
SECRET_KEY: str = os.getenv("SECRET_KEY", "sharebnb-development-secret-key-change-me")
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
TOKEN_TTL_MINUTES: int = int(os.getenv("TOKEN_TTL_MINUTES", "1440"))

# ── Object storage ────────────────────────────────────────
S3_BUCKET: str = os.getenv("S3_BUCKET", "")
AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")

# ── Listings ──────────────────────────────────────────────
DEFAULT_LISTING_IMAGE: str = (
    "https://sharebnb-photos-grant.s3.amazonaws.com/sharebnb-photos/listing-picture1.jpg"
)
# listings.price is NUMERIC(12,2): prices must stay below 10**10.
MAX_PRICE: int = 10**10


@dataclass(frozen=True)
class Settings:
    """
    Explicit configuration handed to components at construction time.

    Attributes:
        database_url: libpq connection string for the pool.
        pool_min: Minimum number of pooled connections.
        pool_max: Maximum number of pooled connections.
        bcrypt_work_factor: bcrypt cost (log2 rounds).
        secret_key: HMAC key for access tokens.
        jwt_algorithm: JWT signing algorithm.
        token_ttl_minutes: Access token lifetime; 0 disables expiry.
        s3_bucket: Bucket for listing photos, None disables uploads.
        aws_region: Region for the S3 client.
        default_listing_image: Image URI used when a listing has none.
    """
    database_url: str = DATABASE_URL
    pool_min: int = DB_POOL_MIN
    pool_max: int = DB_POOL_MAX
    bcrypt_work_factor: int = BCRYPT_WORK_FACTOR
    secret_key: str = SECRET_KEY
    jwt_algorithm: str = JWT_ALGORITHM
    token_ttl_minutes: int = TOKEN_TTL_MINUTES
    s3_bucket: Optional[str] = S3_BUCKET or None
    aws_region: str = AWS_REGION
    default_listing_image: str = DEFAULT_LISTING_IMAGE

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the module-level constants loaded from the environment."""
        return cls()
