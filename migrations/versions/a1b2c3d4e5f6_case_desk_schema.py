"""case desk schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None


USER_ROLE = sa.Enum("client", "lawyer", "admin", name="user_role")
CASE_TYPE = sa.Enum(
    "civil",
    "criminal",
    "family",
    "commercial",
    "writ",
    "arbitration",
    "labour",
    "revenue",
    "motor_accident",
    "appeal",
    "revision",
    "execution",
    "other",
    name="case_type",
)
CASE_STATUS = sa.Enum("draft", "active", "inactive", "closed", "archived", "pending", name="case_status")
CASE_PRIORITY = sa.Enum("low", "normal", "high", "urgent", name="case_priority")
CASE_STAGE = sa.Enum(
    "filing",
    "pre_trial",
    "trial",
    "evidence",
    "arguments",
    "judgment",
    "appeal",
    "execution",
    "closed",
    name="case_stage",
)
PARTY_SIDE = sa.Enum("petitioner", "respondent", name="party_side")
PARTY_TYPE = sa.Enum("Individual", "Corporation", "Organization", name="party_type")
LAWYER_ROLE = sa.Enum("lead", "associate", "junior", "senior", "counsel", "other", name="lawyer_role")
CHAIR_POSITION = sa.Enum("first_chair", "second_chair", "supporting", "other", name="chair_position")
EVENT_TYPE = sa.Enum(
    "hearing",
    "case_filing",
    "evidence_submission",
    "client_meeting",
    "court_visit",
    "mediation",
    "arbitration",
    "judgment",
    "appeal",
    name="event_type",
)
EVENT_PRIORITY = sa.Enum("low", "medium", "high", "critical", name="event_priority")
EVENT_STATUS = sa.Enum("scheduled", "confirmed", "cancelled", "completed", "adjourned", name="event_status")
PARTICIPANT_ROLE = sa.Enum("lawyer", "client", "witness", "judge", "opposing_counsel", name="participant_role")
PARTICIPANT_STATUS = sa.Enum("invited", "confirmed", "declined", name="participant_status")
REMINDER_METHOD = sa.Enum("email", "sms", "push", name="reminder_method")
DOCUMENT_FILE_TYPE = sa.Enum(
    "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "txt", "jpg", "jpeg", "png", "other",
    name="document_file_type",
)
DOCUMENT_CATEGORY = sa.Enum(
    "pleading",
    "affidavit",
    "evidence",
    "contract",
    "judgment",
    "order",
    "notice",
    "memo",
    "report",
    "other",
    name="document_category",
)
DOCUMENT_STATUS = sa.Enum("draft", "active", "archived", "deleted", name="document_status")
DOCUMENT_PERMISSION = sa.Enum("view", "download", "edit", name="document_permission")
NOTIFICATION_TYPE = sa.Enum("case", "event", "document", "other", name="notification_type")


def upgrade():
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=120), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", USER_ROLE, nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("address", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("bar_council_number", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("specialization", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("years_of_experience", sa.Integer(), nullable=True),
        sa.Column("bio", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "legal_case",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("case_number", sa.String(length=50), nullable=False),
        sa.Column("case_type", CASE_TYPE, nullable=False),
        sa.Column("status", CASE_STATUS, nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=False),
        sa.Column("court_state", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("district", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("bench", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("court_type", sa.String(length=50), nullable=False, server_default="district_court"),
        sa.Column("court", sa.String(length=200), nullable=False),
        sa.Column("court_hall", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("court_complex", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("filing_date", sa.Date(), nullable=False),
        sa.Column("hearing_date", sa.DateTime(), nullable=True),
        sa.Column("next_hearing_date", sa.DateTime(), nullable=True),
        sa.Column("priority", CASE_PRIORITY, nullable=False),
        sa.Column("is_urgent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("case_stage", CASE_STAGE, nullable=False),
        sa.Column("act_sections", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("relief_sought", sa.String(length=2000), nullable=False, server_default=""),
        sa.Column("notes", sa.String(length=2000), nullable=False, server_default=""),
        sa.Column("lawyer_id", sa.Integer(), nullable=True),
        sa.Column("client_id", sa.Integer(), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["lawyer_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["client_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("case_number", name="uq_legal_case_number"),
    )
    with op.batch_alter_table("legal_case", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_legal_case_lawyer_id"), ["lawyer_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_legal_case_client_id"), ["client_id"], unique=False)
        batch_op.create_index("ix_legal_case_lawyer_status", ["lawyer_id", "status"], unique=False)
        batch_op.create_index("ix_legal_case_client_status", ["client_id", "status"], unique=False)
        batch_op.create_index("ix_legal_case_updated_at", ["updated_at"], unique=False)

    op.create_table(
        "case_party",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("side", PARTY_SIDE, nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("entity_type", PARTY_TYPE, nullable=False),
        sa.Column("role", sa.String(length=30), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("contact", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("address", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("opposing_counsel", sa.String(length=200), nullable=False, server_default=""),
        sa.ForeignKeyConstraint(["case_id"], ["legal_case.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("case_party", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_case_party_case_id"), ["case_id"], unique=False)
        batch_op.create_index("ix_case_party_case_side", ["case_id", "side", "sort_order"], unique=False)

    op.create_table(
        "case_lawyer",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("contact", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("company", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("gst", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("role", LAWYER_ROLE, nullable=False),
        sa.Column("position", CHAIR_POSITION, nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("level", sa.String(length=10), nullable=False, server_default=""),
        sa.Column("added_by_user_id", sa.Integer(), nullable=True),
        sa.Column("added_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["case_id"], ["legal_case.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["added_by_user_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("case_lawyer", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_case_lawyer_case_id"), ["case_id"], unique=False)
        batch_op.create_index("ix_case_lawyer_user", ["user_id", "case_id"], unique=False)

    op.create_table(
        "case_client",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("contact", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("address", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("added_by_user_id", sa.Integer(), nullable=True),
        sa.Column("added_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["case_id"], ["legal_case.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["added_by_user_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("case_client", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_case_client_case_id"), ["case_id"], unique=False)
        batch_op.create_index("ix_case_client_user", ["user_id", "case_id"], unique=False)

    op.create_table(
        "case_advocate",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("contact", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("company", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("gst", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("spock", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("poc", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("is_lead", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("level", sa.String(length=10), nullable=False, server_default=""),
        sa.ForeignKeyConstraint(["case_id"], ["legal_case.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("case_advocate", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_case_advocate_case_id"), ["case_id"], unique=False)

    op.create_table(
        "case_stakeholder",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("contact", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("notes", sa.String(length=500), nullable=False, server_default=""),
        sa.ForeignKeyConstraint(["case_id"], ["legal_case.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("case_stakeholder", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_case_stakeholder_case_id"), ["case_id"], unique=False)

    op.create_table(
        "calendar_event",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("start_at", sa.DateTime(), nullable=False),
        sa.Column("end_at", sa.DateTime(), nullable=False),
        sa.Column("all_day", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("timezone", sa.String(length=50), nullable=False, server_default="Asia/Kolkata"),
        sa.Column("type", EVENT_TYPE, nullable=False),
        sa.Column("priority", EVENT_PRIORITY, nullable=False),
        sa.Column("status", EVENT_STATUS, nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("address", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("is_virtual", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("meeting_link", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("case_id", sa.Integer(), nullable=True),
        sa.Column("case_title", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("case_number", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("created_by_user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("end_at > start_at", name="ck_event_end_after_start"),
        sa.ForeignKeyConstraint(["case_id"], ["legal_case.id"]),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("calendar_event", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_calendar_event_case_id"), ["case_id"], unique=False)
        batch_op.create_index("ix_event_case_type_status", ["case_id", "type", "status"], unique=False)
        batch_op.create_index("ix_event_creator_start", ["created_by_user_id", "start_at"], unique=False)

    op.create_table(
        "event_participant",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role", PARTICIPANT_ROLE, nullable=False),
        sa.Column("status", PARTICIPANT_STATUS, nullable=False),
        sa.ForeignKeyConstraint(["event_id"], ["calendar_event.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_participant_user"),
    )
    with op.batch_alter_table("event_participant", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_event_participant_event_id"), ["event_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_event_participant_user_id"), ["user_id"], unique=False)

    op.create_table(
        "event_reminder",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("method", REMINDER_METHOD, nullable=False),
        sa.Column("minutes_before", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint("minutes_before >= 1", name="ck_event_reminder_minutes"),
        sa.ForeignKeyConstraint(["event_id"], ["calendar_event.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("event_reminder", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_event_reminder_event_id"), ["event_id"], unique=False)

    op.create_table(
        "case_document",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("file_type", DOCUMENT_FILE_TYPE, nullable=False),
        sa.Column("mime_type", sa.String(length=120), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("extension", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("storage_path", sa.String(length=500), nullable=False),
        sa.Column("url", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("category", DOCUMENT_CATEGORY, nullable=False),
        sa.Column("tags", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("status", DOCUMENT_STATUS, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_confidential", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("case_id", sa.Integer(), nullable=False),
        sa.Column("case_title", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("uploaded_by_user_id", sa.Integer(), nullable=False),
        sa.Column("owner_user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("size >= 1", name="ck_case_document_size"),
        sa.ForeignKeyConstraint(["case_id"], ["legal_case.id"]),
        sa.ForeignKeyConstraint(["uploaded_by_user_id"], ["user_account.id"]),
        sa.ForeignKeyConstraint(["owner_user_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("case_document", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_case_document_case_id"), ["case_id"], unique=False)
        batch_op.create_index("ix_case_document_case_category", ["case_id", "category"], unique=False)
        batch_op.create_index("ix_case_document_owner_status", ["owner_user_id", "status"], unique=False)

    for table, extra in (
        ("document_access", [sa.Column("permission", DOCUMENT_PERMISSION, nullable=False)]),
        ("document_favorite", [sa.Column("created_at", sa.DateTime(), nullable=False)]),
        (
            "document_share",
            [
                sa.Column("shared_by_user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
                sa.Column("shared_at", sa.DateTime(), nullable=False),
            ],
        ),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("document_id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            *extra,
            sa.ForeignKeyConstraint(["document_id"], ["case_document.id"]),
            sa.ForeignKeyConstraint(["user_id"], ["user_account.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("document_id", "user_id", name=f"uq_{table}_user"),
        )
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.create_index(batch_op.f(f"ix_{table}_document_id"), ["document_id"], unique=False)
            batch_op.create_index(batch_op.f(f"ix_{table}_user_id"), ["user_id"], unique=False)

    op.create_table(
        "notification",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("type", NOTIFICATION_TYPE, nullable=False),
        sa.Column("message", sa.String(length=500), nullable=False),
        sa.Column("link", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notification_user_read", "notification", ["user_id", "read", "created_at"], unique=False)


def downgrade():
    op.drop_index("ix_notification_user_read", table_name="notification")
    op.drop_table("notification")
    for table in ("document_share", "document_favorite", "document_access"):
        op.drop_table(table)
    op.drop_table("case_document")
    op.drop_table("event_reminder")
    op.drop_table("event_participant")
    op.drop_table("calendar_event")
    op.drop_table("case_stakeholder")
    op.drop_table("case_advocate")
    op.drop_table("case_client")
    op.drop_table("case_lawyer")
    op.drop_table("case_party")
    op.drop_table("legal_case")
    op.drop_table("user_account")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum in (
            NOTIFICATION_TYPE,
            DOCUMENT_PERMISSION,
            DOCUMENT_STATUS,
            DOCUMENT_CATEGORY,
            DOCUMENT_FILE_TYPE,
            REMINDER_METHOD,
            PARTICIPANT_STATUS,
            PARTICIPANT_ROLE,
            EVENT_STATUS,
            EVENT_PRIORITY,
            EVENT_TYPE,
            CHAIR_POSITION,
            LAWYER_ROLE,
            PARTY_TYPE,
            PARTY_SIDE,
            CASE_STAGE,
            CASE_PRIORITY,
            CASE_STATUS,
            CASE_TYPE,
            USER_ROLE,
        ):
            enum.drop(bind, checkfirst=True)
