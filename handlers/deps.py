"""
handlers/deps.py
----------------
FastAPI dependencies: collaborators stored on ``app.state`` and the
identity of the acting user taken from a Bearer token.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from repositories.listing_repo import ListingRepository
from repositories.user_repo import UserRepository
from security.auth import ensure_logged_in
from security.tokens import TokenCodec
from services.image_service import ImageService

bearer = HTTPBearer(auto_error=False)


def get_user_repo(request: Request) -> UserRepository:
    return request.app.state.user_repo


def get_listing_repo(request: Request) -> ListingRepository:
    return request.app.state.listing_repo


def get_tokens(request: Request) -> TokenCodec:
    return request.app.state.tokens


def get_image_service(request: Request) -> ImageService:
    return request.app.state.image_service


def current_username(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    tokens: TokenCodec = Depends(get_tokens),
) -> Optional[str]:
    """
    Username from the Bearer token, or None for anonymous requests.

    Raises:
        Unauthorized: If a token is present but invalid or expired.
    """
    if credentials is None:
        return None
    return tokens.decode_token(credentials.credentials)


def require_logged_in(identity: Optional[str] = Depends(current_username)) -> str:
    """Dependency form of the logged-in policy."""
    return ensure_logged_in(identity)
