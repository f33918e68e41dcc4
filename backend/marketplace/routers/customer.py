# marketplace/routers/customer.py
from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace import access, auth, models, schemas
from marketplace.access_guard import get_now
from marketplace.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/customer",
    tags=["customer"],
    dependencies=[Depends(auth.require_customer)],
)


@router.post("/bookings", response_model=schemas.BookingOut, status_code=201)
def create_booking(
    payload: schemas.BookingCreateIn,
    db: Session = Depends(get_db),
    customer: models.User = Depends(auth.require_customer),
    now: datetime = Depends(get_now),
):
    business = db.get(models.Business, payload.business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")

    if not access.has_booking_access(business, now):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "BUSINESS_NOT_ACCEPTING_BOOKINGS", "message": "This business is not accepting bookings."},
        )

    service = db.get(models.Service, payload.service_id)
    if not service or service.business_id != business.id:
        raise HTTPException(status_code=404, detail="Service not found")

    booking_time = access.as_utc_naive(payload.booking_time)
    if booking_time <= now:
        raise HTTPException(status_code=400, detail="Booking time must be in the future")

    booking = models.Booking(
        customer_id=customer.id,
        business_id=business.id,
        service_id=service.id,
        booking_time=booking_time,
        status="requested",
        price=service.price,
        created_at=now,
        updated_at=now,
    )
    try:
        db.add(booking)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(booking)

    logger.info("Booking %s requested by %s at business %s", booking.id, customer.id, business.id)
    return booking


@router.get("/bookings", response_model=list[schemas.BookingOut])
def my_bookings(
    db: Session = Depends(get_db),
    customer: models.User = Depends(auth.require_customer),
):
    stmt = (
        select(models.Booking)
        .where(models.Booking.customer_id == customer.id)
        .order_by(models.Booking.booking_time.desc())
    )
    return db.scalars(stmt).all()


@router.post("/bookings/{booking_id}/cancel", response_model=schemas.BookingOut)
def cancel_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    customer: models.User = Depends(auth.require_customer),
    now: datetime = Depends(get_now),
):
    booking = db.get(models.Booking, booking_id)
    if not booking or booking.customer_id != customer.id:
        raise HTTPException(status_code=404, detail="Booking not found")

    if booking.status != "requested":
        raise HTTPException(status_code=409, detail=f"Cannot cancel a {booking.status} booking")

    booking.status = "cancelled"
    booking.updated_at = now
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(booking)
    return booking


@router.post("/bookings/{booking_id}/rating", response_model=schemas.RatingOut, status_code=201)
def rate_booking(
    booking_id: str,
    payload: schemas.RatingIn,
    db: Session = Depends(get_db),
    customer: models.User = Depends(auth.require_customer),
    now: datetime = Depends(get_now),
):
    """One rating per completed booking, by the customer who booked it."""
    booking = db.get(models.Booking, booking_id)
    if not booking or booking.customer_id != customer.id:
        raise HTTPException(status_code=404, detail="Booking not found")
    if booking.status != "completed":
        raise HTTPException(status_code=409, detail="Only completed bookings can be rated")
    if booking.rating is not None:
        raise HTTPException(status_code=409, detail="This booking has already been rated")

    rating = models.Rating(
        booking_id=booking.id,
        customer_id=customer.id,
        business_id=booking.business_id,
        rating=payload.rating,
        feedback=(payload.feedback or "").strip() or None,
        created_at=now,
    )
    try:
        db.add(rating)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(rating)

    logger.info("Booking %s rated %s by %s", booking.id, rating.rating, customer.id)
    return rating
