"""
security/tokens.py
------------------
Signed access tokens (JWT) carrying the acting username.
"""

from datetime import datetime, timedelta, timezone

import jwt

from config import Settings
from utils.errors import Unauthorized


class TokenCodec:
    """Creates and verifies HS256 access tokens for logged-in users."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.secret_key
        self.algorithm = settings.jwt_algorithm
        self.ttl_minutes = settings.token_ttl_minutes

    def create_token(self, username: str) -> str:
        """Issue a token whose ``username`` claim identifies the acting user."""
        now = datetime.now(timezone.utc)
        payload = {"username": username, "iat": now}
        if self.ttl_minutes > 0:
            payload["exp"] = now + timedelta(minutes=self.ttl_minutes)
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> str:
        """
        Verify a token and return its username.

        Raises:
            Unauthorized: If the token is expired, tampered with, or has no username.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Token expired")
        except jwt.InvalidTokenError:
            raise Unauthorized("Invalid token")

        username = payload.get("username")
        if not username:
            raise Unauthorized("Invalid token")
        return username
