from __future__ import annotations

import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from adhivakta.core.errors import Forbidden, NotFound
from adhivakta.core.identity import Identity
from adhivakta.core.models import Case, Notification, NotificationType, User
from adhivakta.core.notifications import DeliveryReport, Recipients, get_notifier
from adhivakta.core.repositories import Repositories, default_repositories

logger = logging.getLogger(__name__)


def collect_recipients(case: Case, actor: User | None = None) -> Recipients:
    recipients = Recipients()
    for entry in [*case.lawyers, *case.clients]:
        if entry.user_id:
            recipients.user_ids.add(entry.user_id)
        if entry.user is not None:
            recipients.add_email(entry.user.email)
            recipients.add_phone(entry.user.phone)
        recipients.add_email(entry.email)
        recipients.add_phone(entry.contact)
    for user_id in (case.lawyer_id, case.client_id):
        if user_id:
            recipients.user_ids.add(user_id)
    for person in [*case.parties, *case.advocates, *case.stakeholders]:
        recipients.add_email(person.email)
        recipients.add_phone(person.contact)

    if actor is not None:
        recipients.user_ids.discard(actor.id)
        recipients.emails.discard((actor.email or "").lower())
        own = Recipients()
        own.add_phone(actor.phone)
        recipients.phones -= own.phones
    return recipients


def notify_case_participants(
    case_id: int,
    actor_user_id: int | None = None,
    repos: Repositories | None = None,
) -> DeliveryReport | None:
    repos = repos or default_repositories()
    case = repos.cases.get(case_id)
    if case is None:
        logger.warning("Case %s vanished before notifications were sent", case_id)
        return None
    actor = repos.users.get(actor_user_id) if actor_user_id else None
    recipients = collect_recipients(case, actor)
    if recipients.is_empty():
        return None

    for user_id in sorted(recipients.user_ids):
        repos.notifications.add(
            Notification(
                user_id=user_id,
                type=NotificationType.CASE,
                message=f"You have been added to the case: {case.title}"[:500],
                link=f"/cases/{case.id}",
            )
        )
    try:
        repos.commit()
    except SQLAlchemyError as exc:
        repos.rollback()
        logger.warning("In-app notifications for case %s failed (non-blocking): %s", case_id, exc)

    link = f"{current_app.config['APP_BASE_URL'].rstrip('/')}/cases/{case_id}"
    return get_notifier().send_case_notification(recipients, case.title, link)


def _get_notification_for(notification_id: int, identity: Identity, repos: Repositories) -> Notification:
    notification = repos.notifications.get(notification_id)
    if notification is None:
        raise NotFound("Notification not found")
    if notification.user_id != identity.user_id:
        raise Forbidden("You are not allowed to access this notification")
    return notification


def list_notifications(identity: Identity, unread_only: bool = False, repos: Repositories | None = None) -> list[Notification]:
    repos = repos or default_repositories()
    query = repos.notifications.for_user(identity.user_id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(100).all()


def mark_notification_read(notification_id: int, identity: Identity, repos: Repositories | None = None) -> Notification:
    repos = repos or default_repositories()
    notification = _get_notification_for(notification_id, identity, repos)
    notification.read = True
    repos.commit()
    return notification


def mark_all_notifications_read(identity: Identity, repos: Repositories | None = None) -> int:
    repos = repos or default_repositories()
    updated = (
        repos.notifications.for_user(identity.user_id)
        .filter(Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    repos.commit()
    return updated


def delete_notification(notification_id: int, identity: Identity, repos: Repositories | None = None) -> None:
    repos = repos or default_repositories()
    notification = _get_notification_for(notification_id, identity, repos)
    repos.notifications.delete(notification)
    repos.commit()
