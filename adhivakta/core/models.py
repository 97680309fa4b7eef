from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from enum import Enum

from flask_login import UserMixin
from sqlalchemy import CheckConstraint, Enum as SAEnum, ForeignKey, Index, UniqueConstraint, event, inspect
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from werkzeug.security import check_password_hash, generate_password_hash

from adhivakta.core.errors import ValidationError
from adhivakta.core.extensions import db


def utcnow() -> datetime:
    # Naive UTC: values must compare equal after a round trip through SQLite.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def default_hearing_date() -> datetime:
    return utcnow() + timedelta(days=7)


def _enum_column(enum_cls: type[Enum], name: str) -> SAEnum:
    return SAEnum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])


class Role(str, Enum):
    CLIENT = "client"
    LAWYER = "lawyer"
    ADMIN = "admin"


class CaseType(str, Enum):
    CIVIL = "civil"
    CRIMINAL = "criminal"
    FAMILY = "family"
    COMMERCIAL = "commercial"
    WRIT = "writ"
    ARBITRATION = "arbitration"
    LABOUR = "labour"
    REVENUE = "revenue"
    MOTOR_ACCIDENT = "motor_accident"
    APPEAL = "appeal"
    REVISION = "revision"
    EXECUTION = "execution"
    OTHER = "other"


class CaseStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    CLOSED = "closed"
    ARCHIVED = "archived"
    PENDING = "pending"


class CasePriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class CaseStage(str, Enum):
    FILING = "filing"
    PRE_TRIAL = "pre_trial"
    TRIAL = "trial"
    EVIDENCE = "evidence"
    ARGUMENTS = "arguments"
    JUDGMENT = "judgment"
    APPEAL = "appeal"
    EXECUTION = "execution"
    CLOSED = "closed"


class PartySide(str, Enum):
    PETITIONER = "petitioner"
    RESPONDENT = "respondent"


class PartyType(str, Enum):
    INDIVIDUAL = "Individual"
    CORPORATION = "Corporation"
    ORGANIZATION = "Organization"


PARTY_ROLES: dict[PartySide, tuple[str, ...]] = {
    PartySide.PETITIONER: ("Petitioner", "Appellant", "Plaintiff", "Complainant"),
    PartySide.RESPONDENT: ("Respondent", "Accused", "Defendant", "Opponent"),
}


class LawyerRole(str, Enum):
    LEAD = "lead"
    ASSOCIATE = "associate"
    JUNIOR = "junior"
    SENIOR = "senior"
    COUNSEL = "counsel"
    OTHER = "other"


class ChairPosition(str, Enum):
    FIRST_CHAIR = "first_chair"
    SECOND_CHAIR = "second_chair"
    SUPPORTING = "supporting"
    OTHER = "other"


COUNSEL_LEVELS = ("", "Senior", "Junior")
DEFAULT_COURT_TYPE = "district_court"


class EventType(str, Enum):
    HEARING = "hearing"
    CASE_FILING = "case_filing"
    EVIDENCE_SUBMISSION = "evidence_submission"
    CLIENT_MEETING = "client_meeting"
    COURT_VISIT = "court_visit"
    MEDIATION = "mediation"
    ARBITRATION = "arbitration"
    JUDGMENT = "judgment"
    APPEAL = "appeal"


class EventPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EventStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    ADJOURNED = "adjourned"


LIVE_EVENT_STATUSES = (EventStatus.SCHEDULED, EventStatus.CONFIRMED)


class ParticipantRole(str, Enum):
    LAWYER = "lawyer"
    CLIENT = "client"
    WITNESS = "witness"
    JUDGE = "judge"
    OPPOSING_COUNSEL = "opposing_counsel"


class ParticipantStatus(str, Enum):
    INVITED = "invited"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class ReminderMethod(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class DocumentFileType(str, Enum):
    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"
    XLS = "xls"
    XLSX = "xlsx"
    PPT = "ppt"
    PPTX = "pptx"
    TXT = "txt"
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"
    OTHER = "other"


class DocumentCategory(str, Enum):
    PLEADING = "pleading"
    AFFIDAVIT = "affidavit"
    EVIDENCE = "evidence"
    CONTRACT = "contract"
    JUDGMENT = "judgment"
    ORDER = "order"
    NOTICE = "notice"
    MEMO = "memo"
    REPORT = "report"
    OTHER = "other"


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class DocumentPermission(str, Enum):
    VIEW = "view"
    DOWNLOAD = "download"
    EDIT = "edit"


PERMISSION_LEVELS: dict[DocumentPermission, int] = {
    DocumentPermission.VIEW: 1,
    DocumentPermission.DOWNLOAD: 2,
    DocumentPermission.EDIT: 3,
}


class NotificationType(str, Enum):
    CASE = "case"
    EVENT = "event"
    DOCUMENT = "document"
    OTHER = "other"


class User(UserMixin, db.Model):
    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(db.String(120), nullable=False)
    password_hash: Mapped[str] = mapped_column(db.String(255), nullable=False)
    role: Mapped[Role] = mapped_column(_enum_column(Role, "user_role"), nullable=False, default=Role.CLIENT)
    phone: Mapped[str] = mapped_column(db.String(30), nullable=False, default="")
    address: Mapped[str] = mapped_column(db.String(500), nullable=False, default="")
    bar_council_number: Mapped[str] = mapped_column(db.String(50), nullable=False, default="")
    specialization: Mapped[str] = mapped_column(db.String(120), nullable=False, default="")
    years_of_experience: Mapped[int | None] = mapped_column(nullable=True)
    bio: Mapped[str] = mapped_column(db.String(1000), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    @validates("email")
    def validate_email(self, _key, value):
        email = (value or "").strip().lower()
        if "@" not in email:
            raise ValidationError.for_field("email", "A valid email address is required")
        if self.id is not None and self.email and email != self.email:
            raise ValidationError.for_field("email", "Email cannot be changed")
        return email

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)


class Case(db.Model):
    __tablename__ = "legal_case"
    __table_args__ = (
        UniqueConstraint("case_number", name="uq_legal_case_number"),
        Index("ix_legal_case_lawyer_status", "lawyer_id", "status"),
        Index("ix_legal_case_client_status", "client_id", "status"),
        Index("ix_legal_case_updated_at", "updated_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(db.String(100), nullable=False)
    case_number: Mapped[str] = mapped_column(db.String(50), nullable=False)
    case_type: Mapped[CaseType] = mapped_column(
        _enum_column(CaseType, "case_type"),
        nullable=False,
        default=CaseType.CIVIL,
    )
    status: Mapped[CaseStatus] = mapped_column(
        _enum_column(CaseStatus, "case_status"),
        nullable=False,
        default=CaseStatus.ACTIVE,
    )
    description: Mapped[str] = mapped_column(db.String(2000), nullable=False, default="No description provided")
    court_state: Mapped[str] = mapped_column(db.String(100), nullable=False, default="")
    district: Mapped[str] = mapped_column(db.String(100), nullable=False, default="")
    bench: Mapped[str] = mapped_column(db.String(100), nullable=False, default="")
    court_type: Mapped[str] = mapped_column(db.String(50), nullable=False, default=DEFAULT_COURT_TYPE)
    court: Mapped[str] = mapped_column(db.String(200), nullable=False, default="Bangalore Urban District Court")
    court_hall: Mapped[str] = mapped_column(db.String(50), nullable=False, default="")
    court_complex: Mapped[str] = mapped_column(db.String(200), nullable=False, default="")
    filing_date: Mapped[date] = mapped_column(default=lambda: utcnow().date(), nullable=False)
    hearing_date: Mapped[datetime | None] = mapped_column(default=default_hearing_date, nullable=True)
    next_hearing_date: Mapped[datetime | None] = mapped_column(nullable=True)
    priority: Mapped[CasePriority] = mapped_column(
        _enum_column(CasePriority, "case_priority"),
        nullable=False,
        default=CasePriority.NORMAL,
    )
    is_urgent: Mapped[bool] = mapped_column(nullable=False, default=False)
    case_stage: Mapped[CaseStage] = mapped_column(
        _enum_column(CaseStage, "case_stage"),
        nullable=False,
        default=CaseStage.FILING,
    )
    act_sections: Mapped[str] = mapped_column(db.String(1000), nullable=False, default="")
    relief_sought: Mapped[str] = mapped_column(db.String(2000), nullable=False, default="")
    notes: Mapped[str] = mapped_column(db.String(2000), nullable=False, default="")
    lawyer_id: Mapped[int | None] = mapped_column(ForeignKey("user_account.id"), nullable=True, index=True)
    client_id: Mapped[int | None] = mapped_column(ForeignKey("user_account.id"), nullable=True, index=True)
    created_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("user_account.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    lawyer = relationship("User", foreign_keys=[lawyer_id])
    client = relationship("User", foreign_keys=[client_id])
    created_by = relationship("User", foreign_keys=[created_by_user_id])
    parties = relationship(
        "CaseParty",
        back_populates="case",
        order_by=lambda: (CaseParty.side, CaseParty.sort_order),
        cascade="all, delete-orphan",
    )
    lawyers = relationship(
        "CaseLawyer",
        back_populates="case",
        order_by="CaseLawyer.sort_order",
        cascade="all, delete-orphan",
    )
    clients = relationship(
        "CaseClient",
        back_populates="case",
        order_by="CaseClient.sort_order",
        cascade="all, delete-orphan",
    )
    advocates = relationship(
        "CaseAdvocate",
        back_populates="case",
        order_by="CaseAdvocate.sort_order",
        cascade="all, delete-orphan",
    )
    stakeholders = relationship(
        "CaseStakeholder",
        back_populates="case",
        order_by="CaseStakeholder.sort_order",
        cascade="all, delete-orphan",
    )
    documents = relationship("Document", back_populates="case", cascade="all, delete-orphan")
    events = relationship("Event", back_populates="case", order_by="Event.start", cascade="all, delete-orphan")

    @property
    def petitioners(self) -> list[CaseParty]:
        return [p for p in self.parties if p.side == PartySide.PETITIONER]

    @property
    def respondents(self) -> list[CaseParty]:
        return [p for p in self.parties if p.side == PartySide.RESPONDENT]

    @property
    def hearing_count(self) -> int:
        return sum(1 for e in self.events if e.type == EventType.HEARING)

    @validates("title")
    def validate_title(self, _key, value):
        title = (value or "").strip()
        if not title:
            raise ValidationError.for_field("title", "Title is required")
        if len(title) > 100:
            raise ValidationError.for_field("title", "Title must be at most 100 characters")
        return title

    @validates("case_number")
    def validate_case_number(self, _key, value):
        number = (value or "").strip()
        if not number:
            raise ValidationError.for_field("caseNumber", "Case number is required")
        if len(number) > 50:
            raise ValidationError.for_field("caseNumber", "Case number must be at most 50 characters")
        return number

    @validates("filing_date")
    def validate_filing_date(self, _key, value):
        if value is not None and value > utcnow().date():
            raise ValidationError.for_field("filingDate", "Filing date cannot be in the future")
        return value


class CaseParty(db.Model):
    __tablename__ = "case_party"
    __table_args__ = (Index("ix_case_party_case_side", "case_id", "side", "sort_order"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    case_id: Mapped[int] = mapped_column(ForeignKey("legal_case.id"), nullable=False, index=True)
    side: Mapped[PartySide] = mapped_column(_enum_column(PartySide, "party_side"), nullable=False)
    sort_order: Mapped[int] = mapped_column(nullable=False, default=0)
    name: Mapped[str] = mapped_column(db.String(200), nullable=False)
    entity_type: Mapped[PartyType] = mapped_column(
        _enum_column(PartyType, "party_type"),
        nullable=False,
        default=PartyType.INDIVIDUAL,
    )
    role: Mapped[str] = mapped_column(db.String(30), nullable=False)
    email: Mapped[str] = mapped_column(db.String(255), nullable=False, default="")
    contact: Mapped[str] = mapped_column(db.String(50), nullable=False, default="")
    address: Mapped[str] = mapped_column(db.String(500), nullable=False, default="")
    opposing_counsel: Mapped[str] = mapped_column(db.String(200), nullable=False, default="")

    case = relationship("Case", back_populates="parties")

    @validates("side", "role")
    def validate_side_role(self, key, value):
        side = value if key == "side" else self.side
        role = value if key == "role" else self.role
        if side is not None and role:
            allowed = PARTY_ROLES[PartySide(side)]
            if role not in allowed:
                raise ValidationError.for_field("role", f"Role must be one of: {', '.join(allowed)}")
        return value


class CaseLawyer(db.Model):
    __tablename__ = "case_lawyer"
    __table_args__ = (Index("ix_case_lawyer_user", "user_id", "case_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    case_id: Mapped[int] = mapped_column(ForeignKey("legal_case.id"), nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(nullable=False, default=0)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("user_account.id"), nullable=True)
    name: Mapped[str] = mapped_column(db.String(120), nullable=False, default="")
    email: Mapped[str] = mapped_column(db.String(255), nullable=False, default="")
    contact: Mapped[str] = mapped_column(db.String(50), nullable=False, default="")
    company: Mapped[str] = mapped_column(db.String(200), nullable=False, default="")
    gst: Mapped[str] = mapped_column(db.String(30), nullable=False, default="")
    role: Mapped[LawyerRole] = mapped_column(
        _enum_column(LawyerRole, "lawyer_role"),
        nullable=False,
        default=LawyerRole.ASSOCIATE,
    )
    position: Mapped[ChairPosition] = mapped_column(
        _enum_column(ChairPosition, "chair_position"),
        nullable=False,
        default=ChairPosition.SUPPORTING,
    )
    is_primary: Mapped[bool] = mapped_column(nullable=False, default=False)
    level: Mapped[str] = mapped_column(db.String(10), nullable=False, default="")
    added_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("user_account.id"), nullable=True)
    added_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    case = relationship("Case", back_populates="lawyers")
    user = relationship("User", foreign_keys=[user_id])


class CaseClient(db.Model):
    __tablename__ = "case_client"
    __table_args__ = (Index("ix_case_client_user", "user_id", "case_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    case_id: Mapped[int] = mapped_column(ForeignKey("legal_case.id"), nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(nullable=False, default=0)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("user_account.id"), nullable=True)
    name: Mapped[str] = mapped_column(db.String(120), nullable=False, default="")
    email: Mapped[str] = mapped_column(db.String(255), nullable=False, default="")
    contact: Mapped[str] = mapped_column(db.String(50), nullable=False, default="")
    address: Mapped[str] = mapped_column(db.String(500), nullable=False, default="")
    is_primary: Mapped[bool] = mapped_column(nullable=False, default=False)
    added_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("user_account.id"), nullable=True)
    added_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    case = relationship("Case", back_populates="clients")
    user = relationship("User", foreign_keys=[user_id])


class CaseAdvocate(db.Model):
    __tablename__ = "case_advocate"

    id: Mapped[int] = mapped_column(primary_key=True)
    case_id: Mapped[int] = mapped_column(ForeignKey("legal_case.id"), nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(nullable=False, default=0)
    name: Mapped[str] = mapped_column(db.String(120), nullable=False)
    email: Mapped[str] = mapped_column(db.String(255), nullable=False, default="")
    contact: Mapped[str] = mapped_column(db.String(50), nullable=False, default="")
    company: Mapped[str] = mapped_column(db.String(200), nullable=False, default="")
    gst: Mapped[str] = mapped_column(db.String(30), nullable=False, default="")
    spock: Mapped[str] = mapped_column(db.String(120), nullable=False, default="")
    poc: Mapped[str] = mapped_column(db.String(120), nullable=False, default="")
    is_lead: Mapped[bool] = mapped_column(nullable=False, default=False)
    level: Mapped[str] = mapped_column(db.String(10), nullable=False, default="")

    case = relationship("Case", back_populates="advocates")


class CaseStakeholder(db.Model):
    __tablename__ = "case_stakeholder"

    id: Mapped[int] = mapped_column(primary_key=True)
    case_id: Mapped[int] = mapped_column(ForeignKey("legal_case.id"), nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(nullable=False, default=0)
    name: Mapped[str] = mapped_column(db.String(120), nullable=False)
    email: Mapped[str] = mapped_column(db.String(255), nullable=False, default="")
    contact: Mapped[str] = mapped_column(db.String(50), nullable=False, default="")
    role: Mapped[str] = mapped_column(db.String(100), nullable=False, default="")
    notes: Mapped[str] = mapped_column(db.String(500), nullable=False, default="")

    case = relationship("Case", back_populates="stakeholders")


class Event(db.Model):
    __tablename__ = "calendar_event"
    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_event_end_after_start"),
        Index("ix_event_case_type_status", "case_id", "type", "status"),
        Index("ix_event_creator_start", "created_by_user_id", "start_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(db.String(200), nullable=False)
    description: Mapped[str] = mapped_column(db.String(1000), nullable=False, default="")
    start: Mapped[datetime] = mapped_column("start_at", nullable=False)
    end: Mapped[datetime] = mapped_column("end_at", nullable=False)
    all_day: Mapped[bool] = mapped_column(nullable=False, default=False)
    timezone: Mapped[str] = mapped_column(db.String(50), nullable=False, default="Asia/Kolkata")
    type: Mapped[EventType] = mapped_column(_enum_column(EventType, "event_type"), nullable=False)
    priority: Mapped[EventPriority] = mapped_column(
        _enum_column(EventPriority, "event_priority"),
        nullable=False,
        default=EventPriority.MEDIUM,
    )
    status: Mapped[EventStatus] = mapped_column(
        _enum_column(EventStatus, "event_status"),
        nullable=False,
        default=EventStatus.SCHEDULED,
    )
    location: Mapped[str] = mapped_column(db.String(200), nullable=False, default="")
    address: Mapped[str] = mapped_column(db.String(500), nullable=False, default="")
    is_virtual: Mapped[bool] = mapped_column(nullable=False, default=False)
    meeting_link: Mapped[str] = mapped_column(db.String(500), nullable=False, default="")
    case_id: Mapped[int | None] = mapped_column(ForeignKey("legal_case.id"), nullable=True, index=True)
    case_title: Mapped[str] = mapped_column(db.String(100), nullable=False, default="")
    case_number: Mapped[str] = mapped_column(db.String(50), nullable=False, default="")
    created_by_user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    case = relationship("Case", back_populates="events")
    created_by = relationship("User")
    participants = relationship("EventParticipant", back_populates="event", cascade="all, delete-orphan")
    reminders = relationship("EventReminder", back_populates="event", cascade="all, delete-orphan")

    @validates("title")
    def validate_title(self, _key, value):
        title = (value or "").strip()
        if not title:
            raise ValidationError.for_field("title", "Title is required")
        if len(title) > 200:
            raise ValidationError.for_field("title", "Title must be at most 200 characters")
        return title

    @validates("end")
    def validate_end(self, _key, value):
        if value is not None and self.start is not None and value <= self.start:
            raise ValidationError.for_field("end", "End must be after start")
        return value

    def reschedule(self, start: datetime, end: datetime) -> None:
        if end <= start:
            raise ValidationError.for_field("end", "End must be after start")
        self.start = start
        self.end = end


class EventParticipant(db.Model):
    __tablename__ = "event_participant"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_participant_user"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("calendar_event.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False, index=True)
    role: Mapped[ParticipantRole] = mapped_column(_enum_column(ParticipantRole, "participant_role"), nullable=False)
    status: Mapped[ParticipantStatus] = mapped_column(
        _enum_column(ParticipantStatus, "participant_status"),
        nullable=False,
        default=ParticipantStatus.INVITED,
    )

    event = relationship("Event", back_populates="participants")
    user = relationship("User")


class EventReminder(db.Model):
    __tablename__ = "event_reminder"
    __table_args__ = (CheckConstraint("minutes_before >= 1", name="ck_event_reminder_minutes"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("calendar_event.id"), nullable=False, index=True)
    method: Mapped[ReminderMethod] = mapped_column(
        _enum_column(ReminderMethod, "reminder_method"),
        nullable=False,
        default=ReminderMethod.EMAIL,
    )
    minutes_before: Mapped[int] = mapped_column(nullable=False, default=30)
    sent: Mapped[bool] = mapped_column(nullable=False, default=False)

    event = relationship("Event", back_populates="reminders")


class Document(db.Model):
    __tablename__ = "case_document"
    __table_args__ = (
        CheckConstraint("size >= 1", name="ck_case_document_size"),
        Index("ix_case_document_case_category", "case_id", "category"),
        Index("ix_case_document_owner_status", "owner_user_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(200), nullable=False)
    original_name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    description: Mapped[str] = mapped_column(db.String(500), nullable=False, default="")
    file_type: Mapped[DocumentFileType] = mapped_column(
        _enum_column(DocumentFileType, "document_file_type"),
        nullable=False,
        default=DocumentFileType.OTHER,
    )
    mime_type: Mapped[str] = mapped_column(db.String(120), nullable=False, default="application/octet-stream")
    size: Mapped[int] = mapped_column(nullable=False)
    extension: Mapped[str] = mapped_column(db.String(20), nullable=False, default="")
    storage_path: Mapped[str] = mapped_column(db.String(500), nullable=False)
    url: Mapped[str] = mapped_column(db.String(1000), nullable=False, default="")
    category: Mapped[DocumentCategory] = mapped_column(
        _enum_column(DocumentCategory, "document_category"),
        nullable=False,
        default=DocumentCategory.OTHER,
    )
    tags: Mapped[str] = mapped_column(db.String(500), nullable=False, default="")
    status: Mapped[DocumentStatus] = mapped_column(
        _enum_column(DocumentStatus, "document_status"),
        nullable=False,
        default=DocumentStatus.ACTIVE,
    )
    version: Mapped[int] = mapped_column(nullable=False, default=1)
    is_confidential: Mapped[bool] = mapped_column(nullable=False, default=False)
    case_id: Mapped[int] = mapped_column(ForeignKey("legal_case.id"), nullable=False, index=True)
    case_title: Mapped[str] = mapped_column(db.String(100), nullable=False, default="")
    uploaded_by_user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False)
    owner_user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    case = relationship("Case", back_populates="documents")
    uploaded_by = relationship("User", foreign_keys=[uploaded_by_user_id])
    owner = relationship("User", foreign_keys=[owner_user_id])
    access_grants = relationship("DocumentAccess", back_populates="document", cascade="all, delete-orphan")
    favorites = relationship("DocumentFavorite", back_populates="document", cascade="all, delete-orphan")
    shares = relationship("DocumentShare", back_populates="document", cascade="all, delete-orphan")

    @property
    def tag_list(self) -> list[str]:
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]

    @validates("name")
    def validate_name(self, _key, value):
        name = (value or "").strip()
        if not name:
            raise ValidationError.for_field("name", "Name is required")
        if len(name) > 200:
            raise ValidationError.for_field("name", "Name must be at most 200 characters")
        return name

    @validates("size")
    def validate_size(self, _key, value):
        if value is None or value < 1:
            raise ValidationError.for_field("file", "File is empty")
        return value

    def permission_level_for(self, user_id: int) -> int:
        if self.owner_user_id == user_id:
            return PERMISSION_LEVELS[DocumentPermission.EDIT]
        grant = next((g for g in self.access_grants if g.user_id == user_id), None)
        return PERMISSION_LEVELS[grant.permission] if grant else 0

    def has_access(self, user_id: int, permission: DocumentPermission = DocumentPermission.VIEW) -> bool:
        return self.permission_level_for(user_id) >= PERMISSION_LEVELS[permission]

    def is_favorite_of(self, user_id: int) -> bool:
        return any(f.user_id == user_id for f in self.favorites)


class DocumentAccess(db.Model):
    __tablename__ = "document_access"
    __table_args__ = (UniqueConstraint("document_id", "user_id", name="uq_document_access_user"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    document_id: Mapped[int] = mapped_column(ForeignKey("case_document.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False, index=True)
    permission: Mapped[DocumentPermission] = mapped_column(
        _enum_column(DocumentPermission, "document_permission"),
        nullable=False,
        default=DocumentPermission.VIEW,
    )

    document = relationship("Document", back_populates="access_grants")


class DocumentFavorite(db.Model):
    __tablename__ = "document_favorite"
    __table_args__ = (UniqueConstraint("document_id", "user_id", name="uq_document_favorite_user"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    document_id: Mapped[int] = mapped_column(ForeignKey("case_document.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    document = relationship("Document", back_populates="favorites")


class DocumentShare(db.Model):
    __tablename__ = "document_share"
    __table_args__ = (UniqueConstraint("document_id", "user_id", name="uq_document_share_user"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    document_id: Mapped[int] = mapped_column(ForeignKey("case_document.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False, index=True)
    shared_by_user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False)
    shared_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    document = relationship("Document", back_populates="shares")


class Notification(db.Model):
    __tablename__ = "notification"
    __table_args__ = (Index("ix_notification_user_read", "user_id", "read", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        _enum_column(NotificationType, "notification_type"),
        nullable=False,
        default=NotificationType.OTHER,
    )
    message: Mapped[str] = mapped_column(db.String(500), nullable=False)
    link: Mapped[str] = mapped_column(db.String(500), nullable=False, default="")
    read: Mapped[bool] = mapped_column(nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    user = relationship("User")


def _mirror_hearing_to_case(connection, target: Event) -> None:
    if target.type != EventType.HEARING or target.case_id is None:
        return
    if target.status not in LIVE_EVENT_STATUSES:
        return
    connection.execute(
        Case.__table__.update()
        .where(Case.__table__.c.id == target.case_id)
        .values(next_hearing_date=target.start)
    )


@event.listens_for(Event, "after_insert")
def hearing_event_after_insert(_mapper, connection, target: Event) -> None:
    _mirror_hearing_to_case(connection, target)


@event.listens_for(Event, "after_update")
def hearing_event_after_update(_mapper, connection, target: Event) -> None:
    state = inspect(target)
    changed = any(state.attrs[name].history.has_changes() for name in ("start", "status", "type", "case_id"))
    if changed:
        _mirror_hearing_to_case(connection, target)


def seed_demo_data(session) -> None:
    admin = User(email="admin@adhivakta.local", full_name="Admin Adhivakta", role=Role.ADMIN)
    admin.set_password("admin123")
    lawyer = User(
        email="lawyer@adhivakta.local",
        full_name="Asha Rao",
        role=Role.LAWYER,
        phone="+919800000001",
        bar_council_number="KAR/1234/2012",
        specialization="Civil litigation",
        years_of_experience=12,
    )
    lawyer.set_password("lawyer123")
    associate = User(
        email="associate@adhivakta.local",
        full_name="Vikram Shetty",
        role=Role.LAWYER,
        phone="+919800000002",
        bar_council_number="KAR/5678/2019",
        specialization="Property law",
        years_of_experience=5,
    )
    associate.set_password("associate123")
    client = User(
        email="client@adhivakta.local",
        full_name="Ravi Kumar",
        role=Role.CLIENT,
        phone="+919800000003",
        address="12 MG Road, Bengaluru",
    )
    client.set_password("client123")
    other_client = User(
        email="meera@adhivakta.local",
        full_name="Meera Nair",
        role=Role.CLIENT,
        phone="+919800000004",
    )
    other_client.set_password("meera123")
    session.add_all([admin, lawyer, associate, client, other_client])
    session.flush()

    case = Case(
        title="Ravi Kumar v. Karnataka Housing Board",
        case_number="DIS-000001",
        case_type=CaseType.CIVIL,
        status=CaseStatus.ACTIVE,
        description="Recovery of allotment deposit withheld by the board.",
        court_state="Karnataka",
        district="Bengaluru Urban",
        court_hall="Hall 4",
        filing_date=utcnow().date() - timedelta(days=60),
        priority=CasePriority.HIGH,
        case_stage=CaseStage.EVIDENCE,
        lawyer_id=lawyer.id,
        client_id=client.id,
        created_by_user_id=lawyer.id,
    )
    case.lawyers = [
        CaseLawyer(
            user_id=lawyer.id,
            name=lawyer.full_name,
            email=lawyer.email,
            contact=lawyer.phone,
            role=LawyerRole.LEAD,
            position=ChairPosition.FIRST_CHAIR,
            is_primary=True,
            level="Senior",
            added_by_user_id=lawyer.id,
        )
    ]
    case.clients = [
        CaseClient(
            user_id=client.id,
            name=client.full_name,
            email=client.email,
            contact=client.phone,
            address=client.address,
            is_primary=True,
            added_by_user_id=lawyer.id,
        )
    ]
    case.parties = [
        CaseParty(side=PartySide.PETITIONER, sort_order=0, name=client.full_name, role="Petitioner"),
        CaseParty(
            side=PartySide.RESPONDENT,
            sort_order=0,
            name="Karnataka Housing Board",
            entity_type=PartyType.ORGANIZATION,
            role="Respondent",
            opposing_counsel="R. Menon",
        ),
    ]
    session.add(case)
    session.flush()

    hearing_at = (utcnow() + timedelta(days=10)).replace(hour=5, minute=0, second=0, microsecond=0)
    session.add(
        Event(
            title=f"Hearing: {case.title}",
            description=f"Hearing for case {case.case_number}",
            start=hearing_at,
            end=hearing_at + timedelta(hours=1),
            type=EventType.HEARING,
            priority=EventPriority.HIGH,
            location=case.court,
            case_id=case.id,
            case_title=case.title,
            case_number=case.case_number,
            created_by_user_id=lawyer.id,
        )
    )
    session.commit()
