"""
utils/errors.py
---------------
Domain error taxonomy shared by repositories, the authorization guard
and the HTTP layer. Each error carries the status code the boundary
renders it with.
"""


class MarketplaceError(Exception):
    """Base class for all errors surfaced to the caller of an operation."""

    status: int = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__

    def to_dict(self) -> dict:
        """Render as the JSON error envelope: {"error": {"message", "status"}}."""
        return {"error": {"message": self.message, "status": self.status}}


class InvalidInput(MarketplaceError):
    """Malformed or rule-violating request data."""

    status = 400


class Conflict(MarketplaceError):
    """Uniqueness violation on create (duplicate username or email)."""

    status = 400


class Unauthorized(MarketplaceError):
    """Credential or token check failed."""

    status = 401


class Forbidden(MarketplaceError):
    """Authenticated, but not permitted to act on the resource."""

    status = 403


class NotFound(MarketplaceError):
    """Referenced entity is absent."""

    status = 404
