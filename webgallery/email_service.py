"""Sending registration invitations by e-mail."""

from __future__ import annotations

import logging
import os
import smtplib
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr

from webgallery.auth_models import Invitation

log = logging.getLogger(__name__)

SENDER_NAME = "Let's Organise"
SUBJECT = "You have been invited to join Simple-Auth-Server"

_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_BODY = (
    "Please click on the link below to complete registration. <br/>\n"
    "         <a href=\"http://localhost:3000/register.html?id={id}&email={email}\">\n"
    "         http://localhost:3030/register</a> <br>\n"
    "         your Invitation expires on <strong>{expires}</strong>"
)


def format_expiry(moment: datetime) -> str:
    """Render a time as e.g. ``03:07 PM Friday, 5 April, 2019``."""
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    century, year = divmod(moment.year, 100)
    return (
        f"{hour:02d}:{moment.minute:02d} {meridiem} {_DAYS[moment.weekday()]}, "
        f"{moment.day} {_MONTHS[moment.month - 1]}, {century:02d}{year:02d}"
    )


def build_invitation_email(invitation: Invitation, sender: str) -> EmailMessage:
    """Compose the HTML invitation message."""
    message = EmailMessage()
    message["From"] = formataddr((SENDER_NAME, sender))
    message["To"] = invitation.email
    message["Subject"] = SUBJECT
    body = _BODY.format(
        id=invitation.id,
        email=invitation.email,
        expires=format_expiry(invitation.expires_at),
    )
    message.set_content(body, subtype="html")
    return message


def _required_env(name: str) -> str:
    try:
        return os.environ[name]
    except KeyError:
        raise RuntimeError(f"{name} must be set") from None


def send_invitation(invitation: Invitation) -> bool:
    """Mail an invitation through the SMTP server from the environment.

    Needs SENDING_EMAIL_ADDRESS; SMTP_HOST, SMTP_PORT, SMTP_USER and
    SMTP_PASSWORD are optional. Delivery failures are logged, not raised;
    the result tells whether the message was handed over.
    """
    sender = _required_env("SENDING_EMAIL_ADDRESS")
    host = os.environ.get("SMTP_HOST", "localhost")
    port = int(os.environ.get("SMTP_PORT", "25"))
    user = os.environ.get("SMTP_USER")
    message = build_invitation_email(invitation, sender)
    try:
        with smtplib.SMTP(host, port) as smtp:
            if user:
                smtp.login(user, os.environ.get("SMTP_PASSWORD", ""))
            refused = smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        log.error("error \n %r", exc)
        return False
    if refused:
        log.error("Response Errors: \n %r", refused)
        return False
    log.info("invitation sent to %s", invitation.email)
    return True