from __future__ import annotations

import httpx
import pytest

from adhivakta.cases.alerts import collect_recipients, notify_case_participants
from adhivakta.core.extensions import db, tasks
from adhivakta.core.models import CaseStakeholder, Notification, NotificationType
from adhivakta.core.notifications import (
    EXTENSION_KEY,
    CaseNotifier,
    DevEmailChannel,
    DevSmsChannel,
    Recipients,
    SmtpEmailChannel,
    TwilioSmsChannel,
    build_notifier,
)


class RecordingChannel:
    def __init__(self):
        self.sent = []

    def send(self, to, *args):
        self.sent.append(to)


class BrokenChannel:
    def send(self, to, *args):
        raise ConnectionError("provider down")


def _recipients(emails=(), phones=()):
    recipients = Recipients()
    for email in emails:
        recipients.add_email(email)
    for phone in phones:
        recipients.add_phone(phone)
    return recipients


def test_recipients_normalize_and_drop_junk():
    recipients = _recipients(
        emails=["Ravi@Example.com", "ravi@example.com", "not-an-email", ""],
        phones=["+91 98000 00003", "12", None],
    )
    assert recipients.emails == {"ravi@example.com"}
    assert recipients.phones == {"+919800000003"}
    assert Recipients().is_empty()


def test_failing_email_channel_does_not_stop_sms():
    sms = RecordingChannel()
    notifier = CaseNotifier(BrokenChannel(), sms)
    report = notifier.send_case_notification(
        _recipients(emails=["a@example.com", "b@example.com"], phones=["+919800000009"]),
        "Ravi Kumar v. KHB",
        "http://localhost:3000/cases/1",
    )
    assert report.failed == 2
    assert report.sent == 1
    assert sms.sent == ["+919800000009"]


def test_each_recipient_is_attempted_independently():
    class FlakyChannel(RecordingChannel):
        def send(self, to, *args):
            if to.startswith("a@"):
                raise TimeoutError("slow smtp")
            super().send(to, *args)

    email = FlakyChannel()
    report = CaseNotifier(email, RecordingChannel()).send_case_notification(
        _recipients(emails=["a@example.com", "b@example.com"]), "Case", "http://x/cases/1"
    )
    assert email.sent == ["b@example.com"]
    assert (report.sent, report.failed) == (1, 1)


def test_build_notifier_picks_configured_providers():
    dev = build_notifier({})
    assert isinstance(dev.email_channel, DevEmailChannel)
    assert isinstance(dev.sms_channel, DevSmsChannel)

    live = build_notifier(
        {
            "NOTIFY_EMAIL_PROVIDER": "smtp",
            "SMTP_HOST": "smtp.example.com",
            "SMTP_PORT": "2525",
            "MAIL_FROM": "desk@example.com",
            "NOTIFY_SMS_PROVIDER": "twilio",
            "TWILIO_ACCOUNT_SID": "AC123",
            "TWILIO_AUTH_TOKEN": "secret",
            "TWILIO_FROM_NUMBER": "+15550000000",
        }
    )
    assert isinstance(live.email_channel, SmtpEmailChannel)
    assert live.email_channel.port == 2525
    assert isinstance(live.sms_channel, TwilioSmsChannel)


def test_twilio_channel_posts_message_and_raises_on_error():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if b"Body=fail" in request.content:
            return httpx.Response(400, json={"message": "bad number"})
        return httpx.Response(201, json={"sid": "SM1"})

    channel = TwilioSmsChannel("AC123", "secret", "+15550000000", client=httpx.Client(transport=httpx.MockTransport(handler)))
    channel.send("+919800000003", "hello")
    assert seen[0].url.path == "/2010-04-01/Accounts/AC123/Messages.json"
    assert b"To=%2B919800000003" in seen[0].content

    with pytest.raises(httpx.HTTPStatusError):
        channel.send("+919800000003", "fail")


def test_collect_recipients_skips_the_actor(users, demo_case):
    demo_case.stakeholders.append(CaseStakeholder(name="Surveyor", email="survey@example.com", contact="+919811111111"))
    db.session.commit()

    recipients = collect_recipients(demo_case, actor=users["lawyer"])
    assert recipients.user_ids == {users["client"].id}
    assert "lawyer@adhivakta.local" not in recipients.emails
    assert {"client@adhivakta.local", "survey@example.com"} <= recipients.emails
    assert "+919800000001" not in recipients.phones
    assert "+919811111111" in recipients.phones


def test_notify_writes_in_app_rows_even_when_channels_fail(app, users, demo_case):
    app.extensions[EXTENSION_KEY] = CaseNotifier(BrokenChannel(), BrokenChannel())

    report = notify_case_participants(demo_case.id, users["lawyer"].id)
    assert report.sent == 0
    assert report.failed >= 1

    rows = Notification.query.filter_by(user_id=users["client"].id).all()
    assert len(rows) == 1
    assert rows[0].type == NotificationType.CASE
    assert rows[0].link == f"/cases/{demo_case.id}"


def test_notify_for_missing_case_is_a_noop(app):
    assert notify_case_participants(424242) is None


def test_background_task_failures_are_swallowed_and_logged(app, caplog):
    def explode():
        raise RuntimeError("boom")

    with caplog.at_level("ERROR", logger="adhivakta"):
        assert tasks.submit("explode", explode) is None
    assert "Task explode failed" in caplog.text


def test_notification_inbox(client, users, login_client, login_other_client):
    for message in ("First", "Second"):
        db.session.add(Notification(user_id=users["client"].id, message=message, type=NotificationType.EVENT))
    foreign = Notification(user_id=users["other_client"].id, message="Not yours")
    db.session.add(foreign)
    db.session.commit()
    foreign_id = foreign.id

    login_client()
    inbox = client.get("/api/notifications").get_json()
    assert inbox["unread"] == 2
    assert len(inbox["notifications"]) == 2
    first_id = inbox["notifications"][0]["id"]

    marked = client.post(f"/api/notifications/{first_id}/read").get_json()["notification"]
    assert marked["read"] is True
    assert len(client.get("/api/notifications?unread=true").get_json()["notifications"]) == 1

    assert client.post("/api/notifications/read-all").get_json()["updated"] == 1
    assert client.get("/api/notifications").get_json()["unread"] == 0

    assert client.post(f"/api/notifications/{foreign_id}/read").status_code == 403
    assert client.delete(f"/api/notifications/{foreign_id}").status_code == 403
    assert client.delete(f"/api/notifications/{first_id}").status_code == 200
    assert client.post("/api/notifications/999999/read").status_code == 404

    login_other_client()
    assert [n["message"] for n in client.get("/api/notifications").get_json()["notifications"]] == ["Not yours"]
