# marketplace/routers/subscription.py
from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace import access, auth, models, plans, schemas
from marketplace.access_guard import access_payload, get_now, get_owner_business
from marketplace.database import get_db

logger = logging.getLogger(__name__)

# Manual mobile-money subscriptions: owner pays, uploads proof, admin reviews.
router = APIRouter(
    prefix="/business/subscription",
    tags=["subscription"],
    dependencies=[Depends(auth.require_business_owner)],
)


def _plan_out(plan: plans.Plan) -> dict:
    return {
        "name": plan.name,
        "price": plan.price,
        "currency": plans.CURRENCY,
        "description": plan.description,
        "max_employees": plan.max_employees,
        "mobile_service": plan.mobile_service,
        "vehicle_listings": plan.vehicle_listings,
        "priority_listing": plan.priority_listing,
        "features": list(plan.features),
    }


def _pending_submission(db: Session, business_id: str) -> models.PaymentSubmission | None:
    return db.scalar(
        select(models.PaymentSubmission).where(
            models.PaymentSubmission.business_id == business_id,
            models.PaymentSubmission.status == "pending",
        )
    )


@router.get("/plans", response_model=list[schemas.PlanOut])
def list_plans():
    return [_plan_out(p) for p in plans.PLAN_CATALOG.values()]


@router.get("")
def subscription_status(
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
    now: datetime = Depends(get_now),
):
    pending = _pending_submission(db, business.id)
    return {
        "ok": True,
        "access": access_payload(business, now),
        "sub_end_date": business.sub_end_date.isoformat() if business.sub_end_date else None,
        "pending_payment": schemas.PaymentSubmissionOut.model_validate(pending).model_dump() if pending else None,
    }


@router.post("/payments", response_model=schemas.PaymentSubmissionOut, status_code=201)
def submit_payment(
    payload: schemas.PaymentSubmitIn,
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
    now: datetime = Depends(get_now),
):
    """
    Records proof of a mobile-money payment for admin review.

    Submitting never unlocks anything by itself; access changes only when
    an admin approves the submission.
    """
    if _pending_submission(db, business.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A payment is already awaiting verification")

    plan = plans.get_plan(payload.plan_selected)
    if plan is None:
        raise HTTPException(status_code=400, detail="Unknown plan")

    paid_active = access.is_paid_active(business)
    if paid_active and access.normalize_plan(business.subscription_plan) == plan.name:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This plan is already active")

    submission = models.PaymentSubmission(
        business_id=business.id,
        plan_selected=plan.name,
        amount=float(plan.price),
        mobile_network=payload.mobile_network,
        reference_text=payload.reference_text.strip(),
        proof_image_url=(payload.proof_image_url or "").strip() or None,
        status="pending",
        submitted_at=now,
    )

    # An active subscriber upgrading keeps their current access while waiting
    if not paid_active:
        business.subscription_status = access.SUB_PAYMENT_SUBMITTED

    try:
        db.add(submission)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(submission)

    logger.info("Payment %s submitted by business %s for %s", submission.id, business.id, plan.name)
    return submission


@router.get("/payments", response_model=list[schemas.PaymentSubmissionOut])
def my_payments(
    db: Session = Depends(get_db),
    business: models.Business = Depends(get_owner_business),
):
    stmt = (
        select(models.PaymentSubmission)
        .where(models.PaymentSubmission.business_id == business.id)
        .order_by(models.PaymentSubmission.submitted_at.desc())
    )
    return db.scalars(stmt).all()
