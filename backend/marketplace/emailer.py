# marketplace/emailer.py
from __future__ import annotations

import logging
import os
import smtplib
import socket
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

from marketplace.email_templates import ORG_NAME, EmailParts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int
    username: str
    password: str
    from_email: str
    from_name: str = ORG_NAME

    @classmethod
    def from_env(cls) -> Optional["SmtpConfig"]:
        """None when EMAIL_ENABLED is off or any SMTP_* value is missing."""
        enabled = (os.getenv("EMAIL_ENABLED") or "false").strip().lower()
        if enabled not in ("1", "true", "yes", "on"):
            return None

        host = (os.getenv("SMTP_HOST") or "").strip()
        username = (os.getenv("SMTP_USERNAME") or "").strip()
        password = (os.getenv("SMTP_PASSWORD") or "").strip()
        from_email = (os.getenv("SMTP_FROM_EMAIL") or username).strip()
        if not (host and username and password and from_email):
            logger.warning("Email disabled: SMTP_HOST/SMTP_USERNAME/SMTP_PASSWORD not all set")
            return None

        try:
            port = int((os.getenv("SMTP_PORT") or "587").strip())
        except ValueError:
            port = 587

        return cls(
            host=host,
            port=port,
            username=username,
            password=password,
            from_email=from_email,
            from_name=(os.getenv("SMTP_FROM_NAME") or ORG_NAME).strip(),
        )


def _build_message(config: SmtpConfig, to_email: str, parts: EmailParts) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = parts.subject
    msg["From"] = f"{config.from_name} <{config.from_email}>"
    msg["To"] = to_email
    msg.set_content(parts.body)
    return msg


def notify_owner(to_email: Optional[str], parts: EmailParts, config: Optional[SmtpConfig] = None) -> bool:
    """
    Best-effort delivery of a decision email to a business owner.

    Review decisions are already committed when this runs, so delivery
    problems are logged and reported as False instead of raised.
    """
    recipient = (to_email or "").strip()
    if not recipient:
        return False

    config = config or SmtpConfig.from_env()
    if config is None:
        logger.debug("Email skipped for %s: %s", recipient, parts.subject)
        return False

    try:
        with smtplib.SMTP(config.host, config.port, timeout=15) as server:
            server.ehlo()
            server.starttls()
            server.login(config.username, config.password)
            server.send_message(_build_message(config, recipient, parts))
    except socket.gaierror as e:
        logger.error("Email to %s failed: cannot resolve SMTP host %r: %s", recipient, config.host, e)
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Email to %s failed: %s", recipient, e)
        return False

    logger.info("Email sent to %s: %s", recipient, parts.subject)
    return True
