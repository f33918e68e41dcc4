# marketplace/plans.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from marketplace import access
from marketplace.access import PLAN_ENTERPRISE, PLAN_PRO, PLAN_STARTER

FEATURE_BOOKINGS = "bookings"
FEATURE_SERVICES = "services"
FEATURE_VEHICLE_LISTINGS = "vehicle_listings"
FEATURE_MOBILE_SERVICE = "mobile_service"
FEATURE_EMPLOYEES = "employees"

REASON_PLAN_UPGRADE_REQUIRED = "plan_upgrade_required"
REASON_UNKNOWN_PLAN = "unknown_plan"
REASON_UNKNOWN_FEATURE = "unknown_feature"
REASON_EMPLOYEE_LIMIT = "employee_limit_reached"

CURRENCY = "BWP"


@dataclass(frozen=True)
class Plan:
    name: str
    price: int                       # per month, in pula
    description: str
    max_employees: Optional[int]     # None = unlimited
    mobile_service: bool
    vehicle_listings: bool
    priority_listing: bool
    features: tuple[str, ...] = ()


PLAN_CATALOG: dict[str, Plan] = {
    PLAN_STARTER: Plan(
        name=PLAN_STARTER,
        price=150,
        description="For small or single-station car wash businesses",
        max_employees=3,
        mobile_service=False,
        vehicle_listings=False,
        priority_listing=False,
        features=(
            "1 registered car wash location",
            "Up to 3 verified employees",
            "Station-based bookings only",
            "Business profile listed in search",
            "Admin verification badge",
        ),
    ),
    PLAN_PRO: Plan(
        name=PLAN_PRO,
        price=300,
        description="For established stations offering mobile service",
        max_employees=10,
        mobile_service=True,
        vehicle_listings=True,
        priority_listing=False,
        features=(
            "Up to 10 verified employees",
            "Mobile / on-site services",
            "Employee ID + photo verification",
            "Service area radius selection",
            "Higher search ranking",
        ),
    ),
    PLAN_ENTERPRISE: Plan(
        name=PLAN_ENTERPRISE,
        price=600,
        description="For multi-location operators",
        max_employees=None,
        mobile_service=True,
        vehicle_listings=True,
        priority_listing=True,
        features=(
            "Unlimited employees",
            "Multiple locations under one account",
            "Priority listing in search results",
            "Dedicated admin review",
            "Advanced business analytics",
        ),
    ),
}


def get_plan(name: Any) -> Optional[Plan]:
    normalized = access.normalize_plan(name)
    return PLAN_CATALOG.get(normalized) if normalized else None


def plan_price(name: Any) -> Optional[int]:
    plan = get_plan(name)
    return plan.price if plan else None


@dataclass(frozen=True)
class GateResult:
    allowed: bool
    reason: str = ""          # e.g. "subscription_required"
    trial_ends_at: Optional[datetime] = None


def gate_feature(account: Any, feature: str, now: datetime) -> GateResult:
    """
    Central decision for a single gated feature:
      - no booking access (unverified, or no paid plan and no open trial) -> blocked
      - vehicle listings / mobile service also need a plan that includes them
      - during the trial (plan "None") everything is open
    """
    ends_at = access.trial_end(account)
    summary = access.evaluate(account, now)

    if not summary.has_booking_access:
        return GateResult(False, reason=summary.lock_reason or "", trial_ends_at=ends_at)

    if feature in (FEATURE_BOOKINGS, FEATURE_SERVICES, FEATURE_EMPLOYEES):
        return GateResult(True, trial_ends_at=ends_at)

    if feature == FEATURE_VEHICLE_LISTINGS:
        if summary.can_list_vehicles:
            return GateResult(True, trial_ends_at=ends_at)
        reason = REASON_PLAN_UPGRADE_REQUIRED
        if access.normalize_plan(getattr(account, "subscription_plan", None)) is None:
            reason = REASON_UNKNOWN_PLAN
        return GateResult(False, reason=reason, trial_ends_at=ends_at)

    if feature == FEATURE_MOBILE_SERVICE:
        plan_name = access.normalize_plan(getattr(account, "subscription_plan", None))
        if plan_name is None:
            return GateResult(False, reason=REASON_UNKNOWN_PLAN, trial_ends_at=ends_at)
        plan = PLAN_CATALOG.get(plan_name)
        if plan is not None and not plan.mobile_service:
            return GateResult(False, reason=REASON_PLAN_UPGRADE_REQUIRED, trial_ends_at=ends_at)
        return GateResult(True, trial_ends_at=ends_at)

    return GateResult(False, reason=REASON_UNKNOWN_FEATURE, trial_ends_at=ends_at)


def employee_limit(plan_name: Any) -> Optional[int]:
    """
    Verified-employee cap for a plan; None means unlimited.
    Trial accounts (plan "None") get the Starter cap so nobody outgrows
    the plan they are about to choose.
    """
    normalized = access.normalize_plan(plan_name)
    if normalized is None:
        return 0
    if normalized == access.PLAN_NONE:
        normalized = PLAN_STARTER
    return PLAN_CATALOG[normalized].max_employees


def gate_employee_slot(account: Any, current_count: int, now: datetime) -> GateResult:
    """Registering one more employee: booking access, then the plan's cap."""
    gate = gate_feature(account, FEATURE_EMPLOYEES, now)
    if not gate.allowed:
        return gate

    limit = employee_limit(getattr(account, "subscription_plan", None))
    if limit is not None and current_count >= limit:
        return GateResult(False, reason=REASON_EMPLOYEE_LIMIT, trial_ends_at=gate.trial_ends_at)
    return gate
