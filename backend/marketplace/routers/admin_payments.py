# marketplace/routers/admin_payments.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace import access, auth, email_templates, models, schemas
from marketplace.access_guard import get_now
from marketplace.config import settings
from marketplace.database import get_db
from marketplace.emailer import notify_owner

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/payments",
    tags=["admin-payments"],
    dependencies=[Depends(auth.require_admin)],
)


def _pending_or_409(db: Session, submission_id: str) -> models.PaymentSubmission:
    sub = db.get(models.PaymentSubmission, submission_id)
    if not sub:
        raise HTTPException(status_code=404, detail="Payment submission not found")
    if sub.status != "pending":
        raise HTTPException(status_code=409, detail=f"Payment already {sub.status}")
    return sub


def _send_decision(sub: models.PaymentSubmission, approved: bool, note: str | None) -> None:
    business = sub.business
    owner = business.owner if business else None
    if not owner:
        return
    parts = email_templates.payment_decision(
        owner_name=owner.name,
        business_name=business.name,
        plan=sub.plan_selected,
        approved=approved,
        reference_text=sub.reference_text,
        note=note,
        base_url=settings.app_base_url,
    )
    notify_owner(owner.email, parts)


@router.get("", response_model=list[schemas.PaymentSubmissionOut])
def list_payments(
    status_filter: Literal["pending", "approved", "rejected", "all"] = Query("pending", alias="status"),
    db: Session = Depends(get_db),
):
    stmt = select(models.PaymentSubmission)
    if status_filter != "all":
        stmt = stmt.where(models.PaymentSubmission.status == status_filter)
    return db.scalars(stmt.order_by(models.PaymentSubmission.submitted_at.asc())).all()


@router.post("/{submission_id}/approve", response_model=schemas.PaymentSubmissionOut)
def approve_payment(
    submission_id: str,
    payload: schemas.PaymentReviewIn | None = None,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
    now: datetime = Depends(get_now),
):
    """Activates the selected plan for one subscription period."""
    sub = _pending_or_409(db, submission_id)
    business = sub.business
    note = payload.note if payload else None

    # Renewing early extends from the current end date
    period_start = now
    if access.is_paid_active(business) and business.sub_end_date and business.sub_end_date > now:
        period_start = business.sub_end_date

    sub.status = "approved"
    sub.reviewed_at = now
    sub.reviewed_by_id = admin.id
    sub.review_note = note

    business.subscription_plan = sub.plan_selected
    business.subscription_status = access.SUB_ACTIVE
    business.sub_end_date = period_start + timedelta(days=settings.subscription_period_days)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(sub)

    logger.info("Admin %s approved payment %s; business %s now %s", admin.id, sub.id, business.id, sub.plan_selected)
    _send_decision(sub, approved=True, note=note)
    return sub


@router.post("/{submission_id}/reject", response_model=schemas.PaymentSubmissionOut)
def reject_payment(
    submission_id: str,
    payload: schemas.PaymentReviewIn | None = None,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
    now: datetime = Depends(get_now),
):
    sub = _pending_or_409(db, submission_id)
    business = sub.business
    note = payload.note if payload else None

    sub.status = "rejected"
    sub.reviewed_at = now
    sub.reviewed_by_id = admin.id
    sub.review_note = note

    # Active subscribers who tried to upgrade keep what they already paid for
    if not access.is_paid_active(business):
        business.subscription_status = access.SUB_AWAITING_PAYMENT

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(sub)

    logger.info("Admin %s rejected payment %s for business %s", admin.id, sub.id, business.id)
    _send_decision(sub, approved=False, note=note)
    return sub
