"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _stamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("created_by", sa.String(length=200), nullable=True),
        sa.Column("last_modified_at", sa.DateTime(), nullable=False),
        sa.Column("last_modified_by", sa.String(length=200), nullable=True),
    ]


def _file_ref():
    return [
        sa.Column("file_key", sa.String(length=512), nullable=True),
        sa.Column("file_url", sa.Text(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(), nullable=False),
        sa.Column("uploaded_by", sa.String(length=200), nullable=True),
    ]


def _parent(name: str, table: str):
    return sa.Column(name, sa.Integer(), sa.ForeignKey(f"{table}.id", ondelete="CASCADE"), nullable=False)


def upgrade():
    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor", sa.String(length=200), nullable=True),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.String(length=512), nullable=False),
        sa.Column("before_json", sa.Text(), nullable=True),
        sa.Column("after_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_audit_events_entity", "audit_events", ["entity_type", "entity_id"])

    # ---- agents ----
    op.create_table(
        "agents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("nationality", sa.String(length=80), nullable=True),
        sa.Column("birthday", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("join_date", sa.Date(), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        *_stamps(),
    )
    op.create_index("ix_agents_name", "agents", ["name"])

    op.create_table(
        "agent_units",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("agent_id", "agents"),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("referral_date", sa.Date(), nullable=True),
        sa.Column("revenue", sa.Float(), nullable=False),
        sa.Column("commission", sa.Float(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("property_id", sa.String(length=80), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_agent_units_agent_id", "agent_units", ["agent_id"])

    op.create_table(
        "agent_payouts",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("agent_id", "agents"),
        sa.Column("payout_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("units_json", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("payment_method", sa.String(length=60), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_agent_payouts_agent_id", "agent_payouts", ["agent_id"])

    op.create_table(
        "agent_documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("agent_id", "agents"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=60), nullable=False),
        sa.Column("size", sa.String(length=40), nullable=True),
        *_file_ref(),
    )
    op.create_index("ix_agent_documents_agent_id", "agent_documents", ["agent_id"])

    # ---- owners ----
    op.create_table(
        "owners",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("nationality", sa.String(length=80), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_vip", sa.Boolean(), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        *_stamps(),
    )
    op.create_index("ix_owners_email", "owners", ["email"])

    op.create_table(
        "owner_units",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("owner_id", "owners"),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_owner_units_owner_id", "owner_units", ["owner_id"])

    op.create_table(
        "bank_details",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("owner_id", "owners"),
        sa.Column("bank_name", sa.String(length=160), nullable=False),
        sa.Column("account_holder_name", sa.String(length=200), nullable=False),
        sa.Column("account_number", sa.String(length=64), nullable=False),
        sa.Column("iban", sa.String(length=64), nullable=True),
        sa.Column("swift_code", sa.String(length=20), nullable=True),
        sa.Column("bank_address", sa.Text(), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("added_date", sa.DateTime(), nullable=False),
        sa.Column("added_by", sa.String(length=200), nullable=True),
    )
    op.create_index("ix_bank_details_owner_id", "bank_details", ["owner_id"])

    op.create_table(
        "owner_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("owner_id", "owners"),
        sa.Column(
            "bank_detail_id", sa.Integer(), sa.ForeignKey("bank_details.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("reference", sa.String(length=120), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("responsible", sa.String(length=200), nullable=True),
        sa.Column("txn_date", sa.DateTime(), nullable=False),
        sa.Column("processed_by", sa.String(length=200), nullable=True),
    )
    op.create_index("ix_owner_transactions_owner_id", "owner_transactions", ["owner_id"])

    op.create_table(
        "owner_documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("owner_id", "owners"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=60), nullable=False),
        sa.Column("size", sa.String(length=40), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_file_ref(),
    )
    op.create_index("ix_owner_documents_owner_id", "owner_documents", ["owner_id"])

    op.create_table(
        "owner_activity",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("owner_id", "owners"),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=40), nullable=False),
        sa.Column("user", sa.String(length=200), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_owner_activity_owner_id", "owner_activity", ["owner_id"])

    # ---- cleaning ----
    op.create_table(
        "cleaning_tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("unit", sa.String(length=200), nullable=False),
        sa.Column("unit_id", sa.String(length=80), nullable=True),
        sa.Column("type", sa.String(length=40), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("priority", sa.String(length=20), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("scheduled_time", sa.String(length=5), nullable=True),
        sa.Column("duration", sa.String(length=40), nullable=True),
        sa.Column("cleaner", sa.String(length=160), nullable=True),
        sa.Column("cleaner_id", sa.String(length=80), nullable=True),
        sa.Column("cost", sa.Float(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("includes_laundry", sa.Boolean(), nullable=False),
        sa.Column("laundry_count", sa.Integer(), nullable=False),
        sa.Column("linen_comments", sa.Text(), nullable=True),
        sa.Column("static_checklist_json", sa.Text(), nullable=False),
        *_stamps(),
    )

    op.create_table(
        "cleaning_comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("task_id", "cleaning_tasks"),
        sa.Column("author", sa.String(length=200), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("posted_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_cleaning_comments_task_id", "cleaning_comments", ["task_id"])

    op.create_table(
        "cleaning_checklist_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("task_id", "cleaning_tasks"),
        sa.Column("item", sa.String(length=200), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_cleaning_checklist_items_task_id", "cleaning_checklist_items", ["task_id"])

    # ---- maintenance ----
    op.create_table(
        "maintenance_tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("unit", sa.String(length=200), nullable=False),
        sa.Column("unit_id", sa.String(length=80), nullable=True),
        sa.Column("technician", sa.String(length=160), nullable=True),
        sa.Column("technician_id", sa.String(length=80), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("priority", sa.String(length=20), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("estimated_duration", sa.String(length=40), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("cost", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("contractor", sa.String(length=160), nullable=True),
        sa.Column("inspector", sa.String(length=160), nullable=True),
        *_stamps(),
    )

    op.create_table(
        "maintenance_comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("task_id", "maintenance_tasks"),
        sa.Column("author", sa.String(length=200), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("posted_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_maintenance_comments_task_id", "maintenance_comments", ["task_id"])

    op.create_table(
        "maintenance_attachments",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("task_id", "maintenance_tasks"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=60), nullable=False),
        sa.Column("size", sa.String(length=40), nullable=True),
        *_file_ref(),
    )
    op.create_index("ix_maintenance_attachments_task_id", "maintenance_attachments", ["task_id"])

    op.create_table(
        "maintenance_photos",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("task_id", "maintenance_tasks"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("kind", sa.String(length=10), nullable=False),
        sa.Column("type", sa.String(length=60), nullable=False),
        sa.Column("size", sa.String(length=40), nullable=True),
        *_file_ref(),
    )
    op.create_index("ix_maintenance_photos_task_id", "maintenance_photos", ["task_id"])

    # ---- chat ----
    op.create_table(
        "chat_conversations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("guest_name", sa.String(length=200), nullable=False),
        sa.Column("guest_email", sa.String(length=200), nullable=True),
        sa.Column("platform", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("unread_count", sa.Integer(), nullable=False),
        sa.Column("last_message", sa.Text(), nullable=True),
        sa.Column("last_message_time", sa.DateTime(), nullable=True),
        sa.Column("reservation_id", sa.String(length=80), nullable=True),
        sa.Column("property_name", sa.String(length=200), nullable=True),
        sa.Column("check_in", sa.Date(), nullable=True),
        sa.Column("check_out", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True),
        _parent("conversation_id", "chat_conversations"),
        sa.Column("sender", sa.String(length=10), nullable=False),
        sa.Column("author", sa.String(length=200), nullable=True),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_chat_messages_conversation_id", "chat_messages", ["conversation_id"])


def downgrade():
    for table in (
        "chat_messages",
        "chat_conversations",
        "maintenance_photos",
        "maintenance_attachments",
        "maintenance_comments",
        "maintenance_tasks",
        "cleaning_checklist_items",
        "cleaning_comments",
        "cleaning_tasks",
        "owner_activity",
        "owner_documents",
        "owner_transactions",
        "bank_details",
        "owner_units",
        "owners",
        "agent_documents",
        "agent_payouts",
        "agent_units",
        "agents",
        "audit_events",
    ):
        op.drop_table(table)
