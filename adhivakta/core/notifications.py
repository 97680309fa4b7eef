from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage

import httpx
from flask import Flask, current_app

logger = logging.getLogger(__name__)

EXTENSION_KEY = "case_notifier"
TWILIO_API_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


@dataclass
class Recipients:
    user_ids: set[int] = field(default_factory=set)
    emails: set[str] = field(default_factory=set)
    phones: set[str] = field(default_factory=set)

    def add_email(self, value: str | None) -> None:
        email = (value or "").strip().lower()
        if "@" in email:
            self.emails.add(email)

    def add_phone(self, value: str | None) -> None:
        phone = "".join(ch for ch in (value or "") if ch.isdigit() or ch == "+")
        if len(phone.lstrip("+")) >= 7:
            self.phones.add(phone)

    def is_empty(self) -> bool:
        return not (self.user_ids or self.emails or self.phones)


@dataclass
class DeliveryReport:
    sent: int = 0
    failed: int = 0


class DevEmailChannel:
    def send(self, to: str, subject: str, body: str) -> None:
        logger.info("[DEV EMAIL] to=%s subject=%s", to, subject)


class SmtpEmailChannel:
    def __init__(self, host: str, port: int, username: str, password: str, use_tls: bool, sender: str) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender

    def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)


class DevSmsChannel:
    def send(self, to: str, body: str) -> None:
        logger.info("[DEV SMS] to=%s body=%s", to, body)


class TwilioSmsChannel:
    def __init__(self, account_sid: str, auth_token: str, from_number: str, client: httpx.Client | None = None) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.client = client or httpx.Client(timeout=10.0)

    def send(self, to: str, body: str) -> None:
        response = self.client.post(
            TWILIO_API_URL.format(sid=self.account_sid),
            data={"To": to, "From": self.from_number, "Body": body},
            auth=(self.account_sid, self.auth_token),
        )
        response.raise_for_status()


class CaseNotifier:
    """Best-effort email and SMS delivery.

    Each recipient is attempted independently; a failing recipient or
    channel is logged and counted, never raised.
    """

    def __init__(self, email_channel, sms_channel) -> None:
        self.email_channel = email_channel
        self.sms_channel = sms_channel

    def send_case_notification(self, recipients: Recipients, case_title: str, link: str) -> DeliveryReport:
        report = DeliveryReport()
        subject = f"You have been added to the case: {case_title}"
        body = f"You have been added to the case \"{case_title}\".\n\nView it here: {link}\n"
        for email in sorted(recipients.emails):
            try:
                self.email_channel.send(email, subject, body)
                report.sent += 1
            except Exception as exc:
                report.failed += 1
                logger.warning("Email notification to %s failed (non-blocking): %s", email, exc)
        sms_body = f"Adhivakta: you were added to case \"{case_title}\". {link}"
        for phone in sorted(recipients.phones):
            try:
                self.sms_channel.send(phone, sms_body)
                report.sent += 1
            except Exception as exc:
                report.failed += 1
                logger.warning("SMS notification to %s failed (non-blocking): %s", phone, exc)
        logger.info(
            "Case notification for %r: sent=%s failed=%s",
            case_title,
            report.sent,
            report.failed,
        )
        return report


def build_notifier(config) -> CaseNotifier:
    if (config.get("NOTIFY_EMAIL_PROVIDER") or "dev").lower() == "smtp":
        email_channel = SmtpEmailChannel(
            host=config["SMTP_HOST"],
            port=int(config["SMTP_PORT"]),
            username=config.get("SMTP_USERNAME", ""),
            password=config.get("SMTP_PASSWORD", ""),
            use_tls=bool(config.get("SMTP_USE_TLS", True)),
            sender=config["MAIL_FROM"],
        )
    else:
        email_channel = DevEmailChannel()
    if (config.get("NOTIFY_SMS_PROVIDER") or "dev").lower() == "twilio":
        sms_channel = TwilioSmsChannel(
            account_sid=config["TWILIO_ACCOUNT_SID"],
            auth_token=config["TWILIO_AUTH_TOKEN"],
            from_number=config["TWILIO_FROM_NUMBER"],
        )
    else:
        sms_channel = DevSmsChannel()
    return CaseNotifier(email_channel, sms_channel)


def init_notifier(app: Flask) -> CaseNotifier:
    notifier = build_notifier(app.config)
    app.extensions[EXTENSION_KEY] = notifier
    return notifier


def get_notifier() -> CaseNotifier:
    return current_app.extensions[EXTENSION_KEY]
