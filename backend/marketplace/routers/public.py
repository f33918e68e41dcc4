# marketplace/routers/public.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from marketplace import access, models, schemas
from marketplace.access_guard import get_now
from marketplace.database import get_db

router = APIRouter(prefix="/public", tags=["public"])


def _rating_stats(db: Session, business_ids: list[str]) -> dict[str, tuple[float, int]]:
    if not business_ids:
        return {}
    rows = db.execute(
        select(models.Rating.business_id, func.avg(models.Rating.rating), func.count(models.Rating.id))
        .where(models.Rating.business_id.in_(business_ids))
        .group_by(models.Rating.business_id)
    ).all()
    return {business_id: (round(float(avg), 1), count) for business_id, avg, count in rows}


def _public_business(b: models.Business, stats: dict[str, tuple[float, int]]) -> dict:
    rating, review_count = stats.get(b.id, (None, 0))
    return {
        "id": b.id,
        "name": b.name,
        "address": b.address,
        "city": b.city,
        "type": b.type,
        "category": b.category,
        "whatsapp_number": b.whatsapp_number,
        "verified": access.is_verified(b),
        "rating": rating,
        "review_count": review_count,
    }


def _listed_business_or_404(db: Session, business_id: str, now: datetime) -> models.Business:
    business = db.get(models.Business, business_id)
    if not business or not access.is_listed_in_directory(business, now):
        raise HTTPException(status_code=404, detail="Business not found")
    return business


@router.get("/businesses", response_model=list[schemas.PublicBusinessOut])
def find_businesses(
    city: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Directory search: verified businesses and those still in their trial window."""
    stmt = select(models.Business)
    if city:
        stmt = stmt.where(func.lower(models.Business.city) == city.strip().lower())
    if category:
        stmt = stmt.where(models.Business.category == category.strip())

    rows = db.scalars(stmt.order_by(models.Business.name.asc())).all()
    listed = [b for b in rows if access.is_listed_in_directory(b, now)]
    stats = _rating_stats(db, [b.id for b in listed])
    return [_public_business(b, stats) for b in listed]


@router.get("/businesses/{business_id}", response_model=schemas.PublicBusinessOut)
def get_business(
    business_id: str,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    business = _listed_business_or_404(db, business_id, now)
    return _public_business(business, _rating_stats(db, [business.id]))


@router.get("/businesses/{business_id}/services", response_model=list[schemas.ServiceOut])
def business_services(
    business_id: str,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    business = _listed_business_or_404(db, business_id, now)
    stmt = (
        select(models.Service)
        .where(models.Service.business_id == business.id)
        .order_by(models.Service.price.asc())
    )
    return db.scalars(stmt).all()
