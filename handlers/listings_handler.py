"""
handlers/listings_handler.py
-----------------------------
Routes for listings. Changes to a listing always read it first to
learn its owner, then authorize, then mutate.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from config import MAX_PRICE
from handlers.deps import get_image_service, get_listing_repo, require_logged_in
from handlers.schemas import ListingUpdateRequest
from repositories.listing_repo import ListingRepository
from security.auth import ensure_listing_owner
from services.image_service import ImageService

router = APIRouter(prefix="/listings", tags=["listings"])


@router.post("", status_code=201)
def create_listing(
    title: str = Form(..., min_length=1, max_length=100),
    location: str = Form(..., min_length=1, max_length=100),
    price: float = Form(..., ge=0, lt=MAX_PRICE, allow_inf_nan=False),
    description: str = Form("", max_length=2000),
    image: Optional[UploadFile] = File(None),
    listings: ListingRepository = Depends(get_listing_repo),
    images: ImageService = Depends(get_image_service),
    owner: str = Depends(require_logged_in),
) -> dict:
    """POST /listings (multipart: title, location, price, description?, image?) => {listing}"""
    image_url = None
    if image is not None and image.filename:
        image_url = images.upload(image.file, image.content_type)

    listing = listings.create(
        owner=owner,
        title=title,
        location=location,
        price=price,
        description=description,
        image=image_url,
    )
    return {"listing": listing.to_dict()}


@router.get("")
def search_listings(
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0, allow_inf_nan=False),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0, allow_inf_nan=False),
    location: Optional[str] = Query(None, max_length=100),
    listings: ListingRepository = Depends(get_listing_repo),
    _: str = Depends(require_logged_in),
) -> dict:
    """GET /listings?minPrice=&maxPrice=&location= => {listings: [...]} ordered by title"""
    found = listings.find_all(min_price=min_price, max_price=max_price, location=location)
    return {"listings": [listing.to_dict() for listing in found]}


@router.get("/{listing_id}")
def get_listing(
    listing_id: int,
    listings: ListingRepository = Depends(get_listing_repo),
    _: str = Depends(require_logged_in),
) -> dict:
    """GET /listings/{id} => {listing}"""
    return {"listing": listings.get(listing_id).to_dict()}


@router.patch("/{listing_id}")
def update_listing(
    listing_id: int,
    body: ListingUpdateRequest,
    listings: ListingRepository = Depends(get_listing_repo),
    identity: str = Depends(require_logged_in),
) -> dict:
    """PATCH /listings/{id} {title?, description?, location?, price?, image?} => {listing}"""
    listing = listings.get(listing_id)
    ensure_listing_owner(identity, listing)
    return {"listing": listings.update(listing_id, body.changes()).to_dict()}


@router.delete("/{listing_id}")
def delete_listing(
    listing_id: int,
    listings: ListingRepository = Depends(get_listing_repo),
    identity: str = Depends(require_logged_in),
) -> dict:
    """DELETE /listings/{id} => {deleted: id}"""
    listing = listings.get(listing_id)
    ensure_listing_owner(identity, listing)
    listings.remove(listing_id)
    return {"deleted": listing_id}
