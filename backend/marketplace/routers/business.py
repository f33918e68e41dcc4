# marketplace/routers/business.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from marketplace import auth, models, plans, schemas
from marketplace.access import PLAN_NONE, SUB_INACTIVE, VERIFICATION_PENDING
from marketplace.access_guard import (
    access_payload,
    enforce_feature,
    find_business_for_owner,
    get_now,
    get_owner_business,
)
from marketplace.config import settings
from marketplace.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/business",
    tags=["business"],
    dependencies=[Depends(auth.require_business_owner)],
)


@router.post("", response_model=schemas.BusinessOut, status_code=201)
def register_business(
    payload: schemas.BusinessCreateIn,
    db: Session = Depends(get_db),
    owner: models.User = Depends(auth.require_business_owner),
    now: datetime = Depends(get_now),
):
    """
    One business per owner. Registration opens the free trial window;
    verification starts as pending and there is no paid plan yet.
    """
    if find_business_for_owner(db, owner.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Business already registered")

    business = models.Business(
        owner_id=owner.id,
        name=payload.name.strip(),
        address=(payload.address or "").strip() or None,
        city=(payload.city or "").strip() or None,
        type=payload.type,
        business_type=payload.business_type,
        category=payload.category,
        whatsapp_number=(payload.whatsapp_number or "").strip() or None,
        id_number=(payload.id_number or "").strip() or None,
        verification_status=VERIFICATION_PENDING,
        subscription_plan=PLAN_NONE,
        subscription_status=SUB_INACTIVE,
        trial_start_date=now,
        trial_end_date=now + timedelta(days=settings.trial_days),
        created_at=now,
    )
    try:
        db.add(business)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(business)

    logger.info("Registered business %s for owner %s (trial ends %s)", business.id, owner.id, business.trial_end_date)
    return business


@router.get("/me", response_model=schemas.BusinessOut)
def my_business(business: models.Business = Depends(get_owner_business)):
    return business


@router.patch("/me", response_model=schemas.BusinessOut)
def update_my_business(
    payload: schemas.BusinessUpdateIn,
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
    now: datetime = Depends(get_now),
):
    changes = payload.model_dump(exclude_none=True)

    # Switching to on-site washes needs a plan that includes mobile service
    if changes.get("type") == "mobile" and business.type != "mobile":
        enforce_feature(business, plans.FEATURE_MOBILE_SERVICE, now)

    for field, value in changes.items():
        if isinstance(value, str):
            value = value.strip() or None
        if value is None and field == "name":
            continue
        setattr(business, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(business)

    logger.info("Business %s updated: %s", business.id, ", ".join(sorted(changes)))
    return business


@router.get("/access", response_model=schemas.AccessOut)
def my_access(
    business: models.Business = Depends(get_owner_business),
    now: datetime = Depends(get_now),
):
    """What the dashboard needs to enable/disable gated actions."""
    return access_payload(business, now)
