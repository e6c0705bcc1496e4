"""Confirmation, admin and bulk emails for shareholder registrations.

Delivery is always best effort: transports raise ``NotificationError`` and
:class:`NotificationService` turns that into a logged, counted ``False``.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from html import escape
from typing import Protocol

import aiosmtplib

from registry.core.config import Settings
from registry.models import ShareholderRecord
from registry.obs.metrics import NOTIFICATION_COUNTER
from registry.services.companies import CompanyRegistry
from registry.services.errors import NotificationError

logger = logging.getLogger(__name__)

_BASE_STYLE = (
    "body { font-family: Arial, sans-serif; color: #333; background-color: #f4f4f4; margin: 0; padding: 20px; }"
    " .container { background-color: #ffffff; padding: 30px; border-radius: 8px; max-width: 600px; margin: 0 auto; }"
    " h1 { color: %(accent)s; font-size: 24px; margin-bottom: 20px; }"
    " p { font-size: 16px; line-height: 1.6; margin-bottom: 15px; }"
    " .highlight { color: %(accent)s; font-weight: bold; }"
    " .footer { font-size: 14px; margin-top: 30px; color: #888; border-top: 1px solid #eee; padding-top: 20px; }"
)


@dataclass(slots=True, frozen=True)
class OutboundEmail:
    recipient: str
    subject: str
    html_body: str
    kind: str = "confirmation"


class NotificationTransport(Protocol):
    async def send(self, message: OutboundEmail) -> None:
        """Send ``message`` or raise ``NotificationError``."""


def _document(accent: str, body: str) -> str:
    style = _BASE_STYLE % {"accent": accent}
    return (
        f"<html><head><meta charset=\"utf-8\"><style>{style}</style></head>"
        f"<body><div class=\"container\">{body}</div></body></html>"
    )


def _paragraphs(*lines: str) -> str:
    return "".join(f"<p>{line}</p>" for line in lines)


def _atos_body(settings: Settings) -> str:
    contact = escape(settings.contact_email)
    brand = escape(settings.brand_name)
    return (
        f"<h1>Merci pour votre pré-inscription à l'{brand} - ATOS</h1>"
        + _paragraphs(
            f"L'{brand} vous remercie de votre pré-inscription concernant les actions ATOS. "
            "Celle-ci a bien été prise en compte.",
            "Nous reviendrons vers vous lorsque la plateforme applicative de gestion de procès de groupe "
            "aura été mise en place. Cette plateforme sécurisée répondra aux normes les plus strictes "
            "de respect de la vie privée.",
            "Vous recevrez également un email vous indiquant la liste des pièces à préparer pour "
            "constituer votre dossier.",
            f"Si vous avez une question d'ici là, une seule adresse : <span class=\"highlight\">{contact}</span>",
        )
        + f"<div class=\"footer\"><p>Cordialement,<br>L'équipe de l'{brand}</p>"
        "<p><small>Cet email a été envoyé automatiquement suite à votre inscription. "
        "Merci de ne pas y répondre directement.</small></p></div>"
    )


def _english_body(display_name: str, settings: Settings) -> str:
    contact = escape(settings.contact_email)
    brand = escape(settings.brand_name)
    name = escape(display_name)
    return (
        f"<h1>Thank you for your {name} registration</h1>"
        + _paragraphs(
            f"{brand} thanks you for your pre-registration regarding {name} shares. "
            "Your registration has been successfully recorded.",
            "We will contact you when our class action management platform is ready. "
            "This secure platform will meet the strictest privacy standards.",
            f"If you have any questions, please contact us at: <span class=\"highlight\">{contact}</span>",
        )
        + f"<div class=\"footer\"><p>Best regards,<br>The {brand} Team</p></div>"
    )


def build_confirmation_email(
    record: ShareholderRecord, registry: CompanyRegistry, settings: Settings
) -> OutboundEmail:
    display_name = registry.get_display_name(record.company)
    if record.company == "atos":
        html_body = _document("#2a8bba", _atos_body(settings))
    elif record.company == "urpea":
        html_body = _document("#d63031", _english_body(display_name, settings))
    else:
        html_body = _document("#2a8bba", _english_body(display_name, settings))
    return OutboundEmail(
        recipient=record.email,
        subject=registry.get_email_subject(record.company),
        html_body=html_body,
    )


def build_admin_notification(
    record: ShareholderRecord, registry: CompanyRegistry, settings: Settings
) -> OutboundEmail | None:
    """Summarise a new registration for the administrator, when enabled."""

    if not settings.admin_notifications or not settings.admin_email:
        return None
    display_name = registry.get_display_name(record.company)
    rows = [
        ("Name", escape(record.name)),
        ("Email", escape(record.email)),
        ("Phone", escape(record.phone)),
        ("Stock Count", f"{record.share_count:,}"),
        ("Purchase Price", f"{record.purchase_price:,.2f}"),
        ("Sell Price", f"{record.sell_price:,.2f}"),
        ("Loss", f"{record.loss:,.2f}"),
        ("IP Address", escape(record.ip_address)),
        ("Country", escape(record.country)),
    ]
    if record.remarks:
        rows.append(("Remarks", escape(record.remarks).replace("\n", "<br>")))
    table = "".join(f"<tr><th>{label}</th><td>{value}</td></tr>" for label, value in rows)
    registered_at = record.created_at.isoformat(sep=" ", timespec="seconds") if record.created_at else ""
    body = (
        f"<h1>New {escape(display_name)} Shareholder Registration</h1>"
        f"<table border=\"1\" cellpadding=\"8\">{table}</table>"
        f"<p>Registration time: {registered_at}</p>"
    )
    return OutboundEmail(
        recipient=settings.admin_email,
        subject=f"New {display_name} Shareholder Registration - {record.name}",
        html_body=_document("#2a8bba", body),
        kind="admin",
    )


class SmtpTransport:
    """Sends HTML email through an SMTP relay using ``aiosmtplib``."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _build_message(self, message: OutboundEmail) -> EmailMessage:
        mime = EmailMessage()
        mime["From"] = formataddr((self._settings.email_from_name, self._settings.email_from_address))
        mime["To"] = message.recipient
        mime["Subject"] = message.subject
        if self._settings.email_reply_to:
            mime["Reply-To"] = self._settings.email_reply_to
        mime.set_content("This message requires an HTML capable email client.")
        mime.add_alternative(message.html_body, subtype="html")
        return mime

    async def send(self, message: OutboundEmail) -> None:
        settings = self._settings
        try:
            await aiosmtplib.send(
                self._build_message(message),
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_user,
                password=settings.smtp_password,
                start_tls=settings.smtp_start_tls,
                timeout=settings.smtp_timeout_seconds,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"SMTP delivery to {message.recipient} failed") from exc


class NotificationService:
    """Best-effort delivery front for a :class:`NotificationTransport`."""

    def __init__(self, transport: NotificationTransport) -> None:
        self._transport = transport

    async def deliver(self, message: OutboundEmail) -> bool:
        try:
            await self._transport.send(message)
        except NotificationError as exc:
            NOTIFICATION_COUNTER.labels(kind=message.kind, outcome="failed").inc()
            logger.warning(
                "email delivery failed",
                extra={"kind": message.kind, "subject": message.subject, "error": str(exc)},
            )
            return False
        NOTIFICATION_COUNTER.labels(kind=message.kind, outcome="sent").inc()
        return True

    async def send_bulk(
        self, records: Iterable[ShareholderRecord], subject: str, html_body: str
    ) -> int:
        """Send the same message to every record; returns how many were accepted."""

        sent = 0
        seen: set[str] = set()
        for record in records:
            if record.email in seen:
                continue
            seen.add(record.email)
            message = OutboundEmail(
                recipient=record.email, subject=subject, html_body=html_body, kind="bulk"
            )
            if await self.deliver(message):
                sent += 1
        return sent


__all__ = [
    "NotificationService",
    "NotificationTransport",
    "OutboundEmail",
    "SmtpTransport",
    "build_admin_notification",
    "build_confirmation_email",
]
