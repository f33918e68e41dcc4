# marketplace/routers/admin_businesses.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace import access, auth, email_templates, models, schemas
from marketplace.access_guard import access_payload, get_now
from marketplace.config import settings
from marketplace.database import get_db
from marketplace.emailer import notify_owner

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/businesses",
    tags=["admin-businesses"],
    dependencies=[Depends(auth.require_admin)],
)


def _admin_row(b: models.Business, now: datetime) -> dict:
    owner = b.owner
    return {
        "id": b.id,
        "name": b.name,
        "city": b.city,
        "category": b.category,
        "owner_email": owner.email if owner else None,
        "sub_end_date": b.sub_end_date.isoformat() if b.sub_end_date else None,
        **access_payload(b, now),
    }


@router.get("")
def list_businesses(
    plan: Optional[str] = Query(None),
    verification: Optional[str] = Query(None),
    access_filter: Optional[Literal["active", "inactive"]] = Query(None, alias="access"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    stmt = select(models.Business)
    if plan:
        plan_n = access.normalize_plan(plan)
        if plan_n is None:
            raise HTTPException(status_code=400, detail="Unknown plan")
        stmt = stmt.where(models.Business.subscription_plan == plan_n)
    if verification:
        stmt = stmt.where(models.Business.verification_status == verification.strip().lower())

    rows = db.scalars(stmt.order_by(models.Business.name.asc())).all()

    if access_filter:
        want = access_filter == "active"
        rows = [b for b in rows if access.has_booking_access(b, now) == want]

    return [_admin_row(b, now) for b in rows]


@router.patch("/{business_id}/verification")
def set_verification(
    business_id: str,
    payload: schemas.VerificationUpdateIn,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
    now: datetime = Depends(get_now),
):
    business = db.get(models.Business, business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")

    previous = business.verification_status
    business.verification_status = payload.verification_status
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(business)

    logger.info(
        "Admin %s set verification of %s: %s -> %s",
        admin.id, business.id, previous, business.verification_status,
    )

    owner = business.owner
    if owner and previous != business.verification_status:
        parts = email_templates.verification_decision(
            owner_name=owner.name,
            business_name=business.name,
            verification_status=business.verification_status,
            note=payload.note,
            base_url=settings.app_base_url,
        )
        notify_owner(owner.email, parts)

    return {"ok": True, "business": _admin_row(business, now)}
