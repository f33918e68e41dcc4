# marketplace/routers/services.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace import models, schemas
from marketplace.access_guard import get_owner_business, require_service_publishing
from marketplace.database import get_db

router = APIRouter(prefix="/business/services", tags=["services"])


@router.get("", response_model=list[schemas.ServiceOut])
def list_services(
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
):
    stmt = (
        select(models.Service)
        .where(models.Service.business_id == business.id)
        .order_by(models.Service.created_at.desc())
    )
    return db.scalars(stmt).all()


@router.post("", response_model=schemas.ServiceOut, status_code=201)
def publish_service(
    payload: schemas.ServiceCreateIn,
    db: Session = Depends(get_db),
    business: models.Business = Depends(require_service_publishing),
):
    service = models.Service(business_id=business.id, **payload.model_dump())
    try:
        db.add(service)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(service)
    return service


@router.delete("/{service_id}", status_code=204)
def delete_service(
    service_id: str,
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
):
    service = db.get(models.Service, service_id)
    if not service or service.business_id != business.id:
        raise HTTPException(status_code=404, detail="Service not found")

    in_use = db.scalar(
        select(models.Booking.id).where(
            models.Booking.service_id == service.id,
            models.Booking.status.in_(("requested", "accepted")),
        )
    )
    if in_use:
        raise HTTPException(status_code=409, detail="Service has open bookings")

    try:
        db.delete(service)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return
