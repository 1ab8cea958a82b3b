"""
handlers/users_handler.py
--------------------------
Routes for users, their bookings and their direct messages.
Every route below /users/{username} acts on behalf of that user and
requires the token to belong to them.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from handlers.deps import current_username, get_user_repo, require_logged_in
from handlers.schemas import MessageRequest, PasswordConfirmation, UserUpdateRequest
from repositories.user_repo import UserRepository
from security.auth import ensure_correct_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
def list_users(
    username: Optional[str] = Query(None, max_length=25),
    users: UserRepository = Depends(get_user_repo),
    _: str = Depends(require_logged_in),
) -> dict:
    """GET /users?username= => {users: [{username, firstName, lastName, email}, ...]}"""
    return {"users": [u.to_profile() for u in users.find_all(username)]}


@router.get("/{username}")
def get_user(
    username: str,
    users: UserRepository = Depends(get_user_repo),
    _: str = Depends(require_logged_in),
) -> dict:
    """GET /users/{username} => {user: {..., listings, bookings}}"""
    return {"user": users.get(username).to_detail()}


@router.patch("/{username}")
def update_user(
    username: str,
    body: UserUpdateRequest,
    users: UserRepository = Depends(get_user_repo),
    identity: Optional[str] = Depends(current_username),
) -> dict:
    """PATCH /users/{username} {password, firstName?, lastName?, email?} => {user}"""
    ensure_correct_user(identity, username)
    user = users.update(username, body.changes(), body.password)
    return {"user": user.to_profile()}


@router.delete("/{username}")
def delete_user(
    username: str,
    body: PasswordConfirmation,
    users: UserRepository = Depends(get_user_repo),
    identity: Optional[str] = Depends(current_username),
) -> dict:
    """DELETE /users/{username} {password} => {deleted: username}"""
    ensure_correct_user(identity, username)
    users.remove(username, body.password)
    return {"deleted": username}


# ── Bookings ──────────────────────────────────────────────

@router.get("/{username}/bookings")
def get_bookings(
    username: str,
    users: UserRepository = Depends(get_user_repo),
    identity: Optional[str] = Depends(current_username),
) -> dict:
    """GET /users/{username}/bookings => {bookings: [listing, ...]}"""
    ensure_correct_user(identity, username)
    return {"bookings": [listing.to_dict() for listing in users.get_bookings(username)]}


@router.post("/{username}/bookings/{listing_id}")
def book_listing(
    username: str,
    listing_id: int,
    users: UserRepository = Depends(get_user_repo),
    identity: Optional[str] = Depends(current_username),
) -> dict:
    """POST /users/{username}/bookings/{id} => {booked: title}"""
    ensure_correct_user(identity, username)
    return {"booked": users.book_listing(username, listing_id)}


@router.delete("/{username}/bookings/{listing_id}")
def unbook_listing(
    username: str,
    listing_id: int,
    users: UserRepository = Depends(get_user_repo),
    identity: Optional[str] = Depends(current_username),
) -> dict:
    """DELETE /users/{username}/bookings/{id} => {canceled: title}"""
    ensure_correct_user(identity, username)
    return {"canceled": users.unbook_listing(username, listing_id)}


# ── Messages ──────────────────────────────────────────────

@router.get("/{username}/messages")
def get_inbox(
    username: str,
    users: UserRepository = Depends(get_user_repo),
    identity: Optional[str] = Depends(current_username),
) -> dict:
    """GET /users/{username}/messages => {users: [username, ...]} most recent first"""
    ensure_correct_user(identity, username)
    return {"users": users.get_inbox_users(username)}


@router.post("/{username}/messages/{other_user}", status_code=201)
def send_message(
    username: str,
    other_user: str,
    body: MessageRequest,
    users: UserRepository = Depends(get_user_repo),
    identity: Optional[str] = Depends(current_username),
) -> dict:
    """POST /users/{username}/messages/{otherUser} {text} => {message: {text, sentTime}}"""
    ensure_correct_user(identity, username)
    message = users.send_message(username, other_user, body.text)
    return {"message": message.to_dict()}


@router.get("/{username}/messages/{other_user}")
def get_messages(
    username: str,
    other_user: str,
    users: UserRepository = Depends(get_user_repo),
    identity: Optional[str] = Depends(current_username),
) -> dict:
    """GET /users/{username}/messages/{otherUser} => {messages: [...]} oldest first"""
    ensure_correct_user(identity, username)
    messages = users.get_messages(username, other_user)
    return {"messages": [m.to_dict() for m in messages]}
