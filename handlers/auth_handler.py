"""
handlers/auth_handler.py
-------------------------
Registration and login. Both return a signed access token.
"""

from fastapi import APIRouter, Depends

from handlers.deps import get_tokens, get_user_repo
from handlers.schemas import RegisterRequest, TokenRequest
from repositories.user_repo import UserRepository
from security.tokens import TokenCodec

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/token")
def login(
    body: TokenRequest,
    users: UserRepository = Depends(get_user_repo),
    tokens: TokenCodec = Depends(get_tokens),
) -> dict:
    """POST /auth/token {username, password} => {token}"""
    user = users.authenticate(body.username, body.password)
    return {"token": tokens.create_token(user.username)}


@router.post("/register", status_code=201)
def register(
    body: RegisterRequest,
    users: UserRepository = Depends(get_user_repo),
    tokens: TokenCodec = Depends(get_tokens),
) -> dict:
    """POST /auth/register {username, password, firstName, lastName, email} => {token}"""
    user = users.register(
        username=body.username,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
    )
    return {"token": tokens.create_token(user.username)}
