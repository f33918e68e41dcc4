# marketplace/email_templates.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ORG_NAME = "Carwash Marketplace"


@dataclass(frozen=True)
class EmailParts:
    subject: str
    body: str


def _clean(s: Optional[str]) -> str:
    return (s or "").strip()


def _line(label: str, value: Optional[str]) -> str:
    v = _clean(value) or "-"
    return f"{label}: {v}"


def _footer() -> str:
    return (
        "\n\n"
        "Regards,\n"
        f"{ORG_NAME}\n"
    )


def _links_block(base_url: str) -> str:
    base = _clean(base_url).rstrip("/")
    if not base:
        return ""
    return (
        "\n\n"
        "Links:\n"
        f"- Dashboard:    {base}/business/dashboard\n"
        f"- Subscription: {base}/business/subscription\n"
    )


def _note_block(note: Optional[str]) -> str:
    n = _clean(note)
    return f"\n\nNote from our team:\n{n}" if n else ""


def verification_decision(
    owner_name: Optional[str],
    business_name: str,
    verification_status: str,
    note: Optional[str] = None,
    base_url: str = "",
) -> EmailParts:
    status = _clean(verification_status).lower()
    if status == "verified":
        headline = "Good news: your business documents have been verified."
        follow_up = "You can now publish services, accept bookings and appear in search."
    elif status == "rejected":
        headline = "We could not verify your business documents."
        follow_up = "Please review your details and contact support to resubmit."
    else:
        headline = "Your business verification has been reopened for review."
        follow_up = "We will let you know once the review is complete."

    subject = f"{ORG_NAME} - Verification {status or 'update'}: {_clean(business_name)}"
    body = (
        f"Hello {_clean(owner_name) or 'there'},\n\n"
        f"{headline}\n{follow_up}\n\n"
        f"{_line('Business', business_name)}\n"
        f"{_line('Verification Status', status)}"
        f"{_note_block(note)}"
        f"{_links_block(base_url)}"
        f"{_footer()}"
    )
    return EmailParts(subject=subject, body=body)


def payment_decision(
    owner_name: Optional[str],
    business_name: str,
    plan: str,
    approved: bool,
    reference_text: str,
    note: Optional[str] = None,
    base_url: str = "",
) -> EmailParts:
    decision = "approved" if approved else "rejected"
    if approved:
        headline = f"Your {plan} subscription is now active."
    else:
        headline = "We could not confirm your subscription payment."

    subject = f"{ORG_NAME} - Payment {decision} ({_clean(reference_text)})"
    body = (
        f"Hello {_clean(owner_name) or 'there'},\n\n"
        f"{headline}\n\n"
        f"{_line('Business', business_name)}\n"
        f"{_line('Plan', plan)}\n"
        f"{_line('Reference', reference_text)}\n"
        f"{_line('Decision', decision.upper())}"
        f"{_note_block(note)}"
        f"{_links_block(base_url)}"
        f"{_footer()}"
    )
    return EmailParts(subject=subject, body=body)
