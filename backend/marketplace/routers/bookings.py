# marketplace/routers/bookings.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace import models, schemas
from marketplace.access_guard import get_now, get_owner_business, require_booking_access
from marketplace.database import get_db

router = APIRouter(prefix="/business/bookings", tags=["bookings"])


def _owned_booking(db: Session, booking_id: str, business: models.Business) -> models.Booking:
    booking = db.get(models.Booking, booking_id)
    if not booking or booking.business_id != business.id:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


def _transition(db: Session, booking: models.Booking, allowed_from: tuple[str, ...], new_status: str, now: datetime):
    if booking.status not in allowed_from:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot move booking from {booking.status} to {new_status}",
        )
    booking.status = new_status
    booking.updated_at = now
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(booking)
    return booking


@router.get("", response_model=list[schemas.BookingOut])
def list_business_bookings(
    status_filter: Optional[str] = None,
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
):
    stmt = select(models.Booking).where(models.Booking.business_id == business.id)
    if status_filter:
        stmt = stmt.where(models.Booking.status == status_filter)
    return db.scalars(stmt.order_by(models.Booking.booking_time.asc())).all()


@router.post("/{booking_id}/accept", response_model=schemas.BookingOut)
def accept_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    business: models.Business = Depends(require_booking_access),
    now: datetime = Depends(get_now),
):
    booking = _owned_booking(db, booking_id, business)
    return _transition(db, booking, ("requested",), "accepted", now)


@router.post("/{booking_id}/reject", response_model=schemas.BookingOut)
def reject_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
    now: datetime = Depends(get_now),
):
    booking = _owned_booking(db, booking_id, business)
    return _transition(db, booking, ("requested",), "rejected", now)


@router.post("/{booking_id}/complete", response_model=schemas.BookingOut)
def complete_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
    now: datetime = Depends(get_now),
):
    booking = _owned_booking(db, booking_id, business)
    return _transition(db, booking, ("accepted",), "completed", now)
