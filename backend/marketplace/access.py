# marketplace/access.py
"""
Booking-access and subscription eligibility for business accounts.

A business may publish services, list cars and accept bookings when:
  - its documents are verified, AND
  - its subscription is active, OR its free-trial window is still open.

Starter plans additionally cannot list vehicles for sale.

Everything here is a pure function of an account snapshot and a caller
supplied ``now``. Nothing reads the clock, touches the database or raises:
unknown status/plan values simply deny access.

An "account" is anything exposing the attributes below by name: a
``models.Business`` row, a pydantic schema or ``BusinessAccount``.
  - verification_status
  - subscription_status
  - subscription_plan
  - trial_expires_at (or trial_end_date on ORM rows)
  - trial_starts_at (or trial_start_date), only for directory listing
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

# -------------------------------------------------
# Status / plan values
# -------------------------------------------------
VERIFICATION_PENDING = "pending"
VERIFICATION_VERIFIED = "verified"
VERIFICATION_REJECTED = "rejected"
VERIFICATION_STATUSES = (VERIFICATION_PENDING, VERIFICATION_VERIFIED, VERIFICATION_REJECTED)

SUB_INACTIVE = "inactive"
SUB_AWAITING_PAYMENT = "awaiting_payment"
SUB_PAYMENT_SUBMITTED = "payment_submitted"
SUB_ACTIVE = "active"
SUB_EXPIRED = "expired"
SUB_SUSPENDED = "suspended"
SUBSCRIPTION_STATUSES = (
    SUB_INACTIVE,
    SUB_AWAITING_PAYMENT,
    SUB_PAYMENT_SUBMITTED,
    SUB_ACTIVE,
    SUB_EXPIRED,
    SUB_SUSPENDED,
)

PLAN_NONE = "None"
PLAN_STARTER = "Starter"
PLAN_PRO = "Pro"
PLAN_ENTERPRISE = "Enterprise"
SUBSCRIPTION_PLANS = (PLAN_NONE, PLAN_STARTER, PLAN_PRO, PLAN_ENTERPRISE)

# lock reasons reported by evaluate()
LOCK_NOT_VERIFIED = "not_verified"
LOCK_VERIFICATION_REJECTED = "verification_rejected"
LOCK_SUBSCRIPTION_REQUIRED = "subscription_required"

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class BusinessAccount:
    id: str
    verification_status: str = VERIFICATION_PENDING
    subscription_status: str = SUB_INACTIVE
    subscription_plan: str = PLAN_NONE
    trial_expires_at: Optional[datetime] = None
    trial_starts_at: Optional[datetime] = None


@dataclass(frozen=True)
class AccessSummary:
    verified: bool
    paid_active: bool
    trial_active: bool
    has_booking_access: bool
    can_list_vehicles: bool
    trial_days_remaining: int
    lock_reason: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


# -------------------------------------------------
# Normalization helpers
# -------------------------------------------------
def as_utc_naive(value: Any) -> Optional[datetime]:
    """
    Accepts datetime, ISO string, or None.
    Naive datetimes are taken as UTC; aware ones are converted to UTC.
    Anything unparseable is treated as missing.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip()
        if not s:
            return None
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _match(value: Any, allowed: Iterable[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    v = value.strip().lower()
    for candidate in allowed:
        if candidate.lower() == v:
            return candidate
    return None


def normalize_verification_status(value: Any) -> Optional[str]:
    return _match(value, VERIFICATION_STATUSES)


def normalize_subscription_status(value: Any) -> Optional[str]:
    return _match(value, SUBSCRIPTION_STATUSES)


def normalize_plan(value: Any) -> Optional[str]:
    """Missing plan means PLAN_NONE; an unrecognized one returns None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return PLAN_NONE
    return _match(value, SUBSCRIPTION_PLANS)


def trial_end(account: Any) -> Optional[datetime]:
    raw = getattr(account, "trial_expires_at", None)
    if raw is None:
        raw = getattr(account, "trial_end_date", None)
    return as_utc_naive(raw)


def trial_start(account: Any) -> Optional[datetime]:
    raw = getattr(account, "trial_starts_at", None)
    if raw is None:
        raw = getattr(account, "trial_start_date", None)
    return as_utc_naive(raw)


# -------------------------------------------------
# Predicates
# -------------------------------------------------
def is_verified(account: Any) -> bool:
    return normalize_verification_status(getattr(account, "verification_status", None)) == VERIFICATION_VERIFIED


def is_trial_active(account: Any, now: datetime) -> bool:
    end = trial_end(account)
    current = as_utc_naive(now)
    if end is None or current is None:
        return False
    return current < end


def is_paid_active(account: Any) -> bool:
    return normalize_subscription_status(getattr(account, "subscription_status", None)) == SUB_ACTIVE


def has_booking_access(account: Any, now: datetime) -> bool:
    # payment_submitted is deliberately not enough: an admin must flip it to active
    return is_verified(account) and (is_paid_active(account) or is_trial_active(account, now))


def can_list_vehicles(account: Any, now: datetime) -> bool:
    plan = normalize_plan(getattr(account, "subscription_plan", None))
    if plan is None or plan == PLAN_STARTER:
        return False
    return has_booking_access(account, now)


def days_remaining_in_trial(account: Any, now: datetime) -> int:
    end = trial_end(account)
    current = as_utc_naive(now)
    if end is None or current is None or current >= end:
        return 0
    return max(0, math.ceil((end - current) / ONE_DAY))


def lock_reason(account: Any, now: datetime) -> Optional[str]:
    verification = normalize_verification_status(getattr(account, "verification_status", None))
    if verification == VERIFICATION_REJECTED:
        return LOCK_VERIFICATION_REJECTED
    if verification != VERIFICATION_VERIFIED:
        return LOCK_NOT_VERIFIED
    if not (is_paid_active(account) or is_trial_active(account, now)):
        return LOCK_SUBSCRIPTION_REQUIRED
    return None


def evaluate(account: Any, now: datetime) -> AccessSummary:
    return AccessSummary(
        verified=is_verified(account),
        paid_active=is_paid_active(account),
        trial_active=is_trial_active(account, now),
        has_booking_access=has_booking_access(account, now),
        can_list_vehicles=can_list_vehicles(account, now),
        trial_days_remaining=days_remaining_in_trial(account, now),
        lock_reason=lock_reason(account, now),
    )


def is_listed_in_directory(account: Any, now: datetime) -> bool:
    """
    Public "find a wash" visibility: verified businesses, plus new ones
    whose trial window is currently open (start <= now < end).
    """
    if is_verified(account):
        return True
    start = trial_start(account)
    current = as_utc_naive(now)
    if start is None or current is None:
        return False
    return start <= current and is_trial_active(account, now)
