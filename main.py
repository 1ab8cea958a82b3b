"""
main.py
-------
Entry point for the ShareBnB marketplace API.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Build the FastAPI application with all routers.
    - Render every domain error as the JSON error envelope.
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import HOST, PORT, Settings
from db.connection import close_pool, init_pool
from db.init_db import create_tables
from handlers import auth_handler, listings_handler, users_handler
from repositories.listing_repo import ListingRepository
from repositories.user_repo import UserRepository
from security.tokens import TokenCodec
from services.image_service import ImageService
from utils.errors import MarketplaceError
from utils.logger import get_logger

logger = get_logger(__name__)


def _error_response(message, status: int) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": {"message": message, "status": status}},
    )


def create_app(
    settings: Optional[Settings] = None,
    user_repo: Optional[UserRepository] = None,
    listing_repo: Optional[ListingRepository] = None,
    image_service: Optional[ImageService] = None,
    manage_pool: bool = True,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Explicit configuration; defaults to the environment.
        user_repo: Replacement user repository (tests pass in-memory fakes).
        listing_repo: Replacement listing repository.
        image_service: Replacement image service.
        manage_pool: Open the pool and create the schema on startup,
            and close the pool on shutdown.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_pool:
            init_pool(settings)
            create_tables()
        logger.info("ShareBnB API started")
        yield
        if manage_pool:
            close_pool()

    app = FastAPI(title="ShareBnB API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.user_repo = user_repo if user_repo is not None else UserRepository(settings)
    app.state.listing_repo = (
        listing_repo if listing_repo is not None else ListingRepository(settings)
    )
    app.state.image_service = (
        image_service if image_service is not None else ImageService(settings)
    )
    app.state.tokens = TokenCodec(settings)

    app.include_router(auth_handler.router)
    app.include_router(users_handler.router)
    app.include_router(listings_handler.router)

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        return JSONResponse(status_code=exc.status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        messages = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        return _error_response(messages, 400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.detail, exc.status_code)

    return app


def main() -> None:
    """Start the API server."""
    logger.info(f"Starting ShareBnB API on {HOST}:{PORT}")
    uvicorn.run(create_app(), host=HOST, port=PORT)


if __name__ == "__main__":
    main()
