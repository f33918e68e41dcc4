# marketplace/access_guard.py
from __future__ import annotations

import logging
from datetime import datetime

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace import access, auth, models, plans
from marketplace.database import get_db

logger = logging.getLogger(__name__)

# lock reason -> error code returned to clients
_LOCK_CODES = {
    access.LOCK_NOT_VERIFIED: "BUSINESS_NOT_VERIFIED",
    access.LOCK_VERIFICATION_REJECTED: "VERIFICATION_REJECTED",
    access.LOCK_SUBSCRIPTION_REQUIRED: "SUBSCRIPTION_REQUIRED",
    plans.REASON_PLAN_UPGRADE_REQUIRED: "PLAN_UPGRADE_REQUIRED",
    plans.REASON_UNKNOWN_PLAN: "PLAN_UPGRADE_REQUIRED",
    plans.REASON_EMPLOYEE_LIMIT: "EMPLOYEE_LIMIT_REACHED",
}

_LOCK_MESSAGES = {
    "BUSINESS_NOT_VERIFIED": "Your business documents are still awaiting verification.",
    "VERIFICATION_REJECTED": "Your business verification was rejected. Please contact support.",
    "SUBSCRIPTION_REQUIRED": "Your free trial has ended. Please subscribe to continue.",
    "PLAN_UPGRADE_REQUIRED": "Your current plan does not include this feature. Please upgrade.",
    "EMPLOYEE_LIMIT_REACHED": "Your plan's employee limit is reached. Please upgrade to add more staff.",
}


def _utcnow() -> datetime:
    return datetime.utcnow()


def get_now() -> datetime:
    """Clock dependency; tests override it to pin time."""
    return _utcnow()


def find_business_for_owner(db: Session, owner_id: str) -> models.Business | None:
    return db.scalar(select(models.Business).where(models.Business.owner_id == owner_id))


def get_owner_business(
    db: Session = Depends(get_db),
    owner: models.User = Depends(auth.require_business_owner),
) -> models.Business:
    business = find_business_for_owner(db, owner.id)
    if not business:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "BUSINESS_NOT_REGISTERED", "message": "Register your business first."},
        )
    return business


def access_payload(business: models.Business, now: datetime) -> dict:
    summary = access.evaluate(business, now)
    return {
        "business_id": business.id,
        "verification_status": business.verification_status,
        "subscription_plan": business.subscription_plan,
        "subscription_status": business.subscription_status,
        "trial_expires_at": access.trial_end(business),
        **summary.as_dict(),
    }


def enforce_gate(business: models.Business, gate: plans.GateResult, feature: str, now: datetime) -> models.Business:
    """Returns the business when the gate allows it, else raises the 403 clients key off."""
    if gate.allowed:
        return business

    code = _LOCK_CODES.get(gate.reason, "ACCESS_DENIED")
    logger.info("Blocked %s for business %s: %s", feature, business.id, code)

    detail = {
        "code": code,
        "message": _LOCK_MESSAGES.get(code, "Access denied."),
        "feature": feature,
        **access_payload(business, now),
    }
    if detail["trial_expires_at"] is not None:
        detail["trial_expires_at"] = detail["trial_expires_at"].isoformat()

    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def enforce_feature(business: models.Business, feature: str, now: datetime) -> models.Business:
    return enforce_gate(business, plans.gate_feature(business, feature, now), feature, now)


def require_booking_access(
    business: models.Business = Depends(get_owner_business),
    now: datetime = Depends(get_now),
) -> models.Business:
    """Gate for accepting bookings."""
    return enforce_feature(business, plans.FEATURE_BOOKINGS, now)


def require_vehicle_listing(
    business: models.Business = Depends(get_owner_business),
    now: datetime = Depends(get_now),
) -> models.Business:
    """Gate for listing cars for sale (never on Starter)."""
    return enforce_feature(business, plans.FEATURE_VEHICLE_LISTINGS, now)


def require_service_publishing(
    business: models.Business = Depends(get_owner_business),
    now: datetime = Depends(get_now),
) -> models.Business:
    """Gate for publishing services; mobile businesses also need mobile service."""
    enforce_feature(business, plans.FEATURE_SERVICES, now)
    if business.type == "mobile":
        enforce_feature(business, plans.FEATURE_MOBILE_SERVICE, now)
    return business
