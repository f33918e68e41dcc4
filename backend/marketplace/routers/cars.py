# marketplace/routers/cars.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace import models, schemas
from marketplace.access_guard import get_owner_business, require_vehicle_listing
from marketplace.database import get_db

router = APIRouter(prefix="/business/cars", tags=["cars"])


@router.get("", response_model=list[schemas.CarListingOut])
def list_my_cars(
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
):
    stmt = (
        select(models.CarListing)
        .where(models.CarListing.business_id == business.id)
        .order_by(models.CarListing.created_at.desc())
    )
    return db.scalars(stmt).all()


@router.post("", response_model=schemas.CarListingOut, status_code=201)
def list_car(
    payload: schemas.CarListingCreateIn,
    db: Session = Depends(get_db),
    business: models.Business = Depends(require_vehicle_listing),
):
    listing = models.CarListing(business_id=business.id, status="available", **payload.model_dump())
    try:
        db.add(listing)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(listing)
    return listing


@router.patch("/{listing_id}/status", response_model=schemas.CarListingOut)
def update_car_status(
    listing_id: str,
    payload: schemas.CarListingStatusIn,
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
):
    # Marking sold/archived stays possible after access lapses
    listing = db.get(models.CarListing, listing_id)
    if not listing or listing.business_id != business.id:
        raise HTTPException(status_code=404, detail="Listing not found")

    listing.status = payload.status
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(listing)
    return listing
