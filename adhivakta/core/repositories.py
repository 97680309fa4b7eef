"""Session-backed repositories handed to the case services and the hearing synchronizer."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from math import ceil
from typing import Generic, Iterator, TypeVar

from sqlalchemy.orm import Query, Session

from adhivakta.core.extensions import db
from adhivakta.core.models import (
    LIVE_EVENT_STATUSES,
    Case,
    Document,
    Event,
    EventType,
    Notification,
    User,
)

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return ceil(self.total / self.limit) if self.limit else 0


def paginate(query: Query, page: int, limit: int) -> Page:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return Page(items=items, total=total, page=page, limit=limit)


class _SessionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, instance) -> None:
        self.session.add(instance)

    def delete(self, instance) -> None:
        self.session.delete(instance)

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class UserRepository(_SessionRepository):
    def get(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.session.query(User).filter_by(email=(email or "").strip().lower()).first()

    def query(self) -> Query:
        return self.session.query(User)


class CaseRepository(_SessionRepository):
    def get(self, case_id: int) -> Case | None:
        return self.session.get(Case, case_id)

    def find_by_number(self, case_number: str) -> Case | None:
        return self.session.query(Case).filter_by(case_number=case_number).first()

    def query(self) -> Query:
        return self.session.query(Case)

    def with_next_hearing(self) -> list[Case]:
        return (
            self.session.query(Case)
            .filter(Case.next_hearing_date.isnot(None))
            .order_by(Case.id.asc())
            .all()
        )


class EventRepository(_SessionRepository):
    def get(self, event_id: int) -> Event | None:
        return self.session.get(Event, event_id)

    def query(self) -> Query:
        return self.session.query(Event)

    def live_hearing_for_case(self, case_id: int) -> Event | None:
        return (
            self.session.query(Event)
            .filter(Event.case_id == case_id)
            .filter(Event.type == EventType.HEARING)
            .filter(Event.status.in_(LIVE_EVENT_STATUSES))
            .order_by(Event.id.asc())
            .first()
        )

    def for_case(self, case_id: int) -> list[Event]:
        return (
            self.session.query(Event)
            .filter(Event.case_id == case_id)
            .order_by(Event.start.asc(), Event.id.asc())
            .all()
        )


class DocumentRepository(_SessionRepository):
    def get(self, document_id: int) -> Document | None:
        return self.session.get(Document, document_id)

    def query(self) -> Query:
        return self.session.query(Document)


class NotificationRepository(_SessionRepository):
    def get(self, notification_id: int) -> Notification | None:
        return self.session.get(Notification, notification_id)

    def for_user(self, user_id: int) -> Query:
        return self.session.query(Notification).filter(Notification.user_id == user_id)


@dataclass
class Repositories:
    session: Session
    users: UserRepository
    cases: CaseRepository
    events: EventRepository
    documents: DocumentRepository
    notifications: NotificationRepository

    @classmethod
    def for_session(cls, session: Session) -> Repositories:
        return cls(
            session=session,
            users=UserRepository(session),
            cases=CaseRepository(session),
            events=EventRepository(session),
            documents=DocumentRepository(session),
            notifications=NotificationRepository(session),
        )

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @contextmanager
    def no_autoflush(self) -> Iterator[None]:
        with self.session.no_autoflush:
            yield


def default_repositories() -> Repositories:
    return Repositories.for_session(db.session)
