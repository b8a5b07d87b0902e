# roomy/models.py
from __future__ import annotations

import json
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base

STATIC_CHECKLIST_LEN = 6


# -----------------------------
# Audit trail
# -----------------------------
class AuditEvent(Base):
    __tablename__ = "audit_events"
    __table_args__ = (Index("ix_audit_events_entity", "entity_type", "entity_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    actor: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    action: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(512), nullable=False)

    before_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    after_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


# -----------------------------
# Agents
# -----------------------------
class Agent(Base):
    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    name: Mapped[str] = mapped_column(String(160), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    nationality: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    birthday: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")  # Active|Inactive
    join_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    created_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    last_modified_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    last_modified_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    units: Mapped[List["AgentUnit"]] = relationship(
        back_populates="agent", cascade="all, delete-orphan", order_by="AgentUnit.id"
    )
    payouts: Mapped[List["AgentPayout"]] = relationship(
        back_populates="agent", cascade="all, delete-orphan", order_by="AgentPayout.id"
    )
    documents: Mapped[List["AgentDocument"]] = relationship(
        back_populates="agent", cascade="all, delete-orphan", order_by="AgentDocument.id"
    )


class AgentUnit(Base):
    __tablename__ = "agent_units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    agent_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    referral_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    revenue: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    commission: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # percent
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")
    property_id: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    agent: Mapped["Agent"] = relationship(back_populates="units")


class AgentPayout(Base):
    __tablename__ = "agent_payouts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    agent_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True
    )

    payout_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    units_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pending")  # Completed|Pending|Failed
    payment_method: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    agent: Mapped["Agent"] = relationship(back_populates="payouts")

    @property
    def units(self) -> list[str]:
        try:
            v = json.loads(self.units_json or "[]")
        except ValueError:
            return []
        return [str(x) for x in v] if isinstance(v, list) else []


class AgentDocument(Base):
    __tablename__ = "agent_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    agent_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(60), nullable=False, default="Other")
    size: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    file_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    uploaded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    uploaded_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    agent: Mapped["Agent"] = relationship(back_populates="documents")


# -----------------------------
# Owners
# -----------------------------
class Owner(Base):
    __tablename__ = "owners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    nationality: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_vip: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    created_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    last_modified_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    last_modified_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    units: Mapped[List["OwnerUnit"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan", order_by="OwnerUnit.id"
    )
    bank_details: Mapped[List["BankDetail"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan", order_by="BankDetail.id"
    )
    transactions: Mapped[List["OwnerTransaction"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan", order_by="OwnerTransaction.id"
    )
    documents: Mapped[List["OwnerDocument"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan", order_by="OwnerDocument.id"
    )
    activity_log: Mapped[List["OwnerActivity"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan", order_by="OwnerActivity.id"
    )


class OwnerUnit(Base):
    __tablename__ = "owner_units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    owner: Mapped["Owner"] = relationship(back_populates="units")


class BankDetail(Base):
    __tablename__ = "bank_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True
    )

    bank_name: Mapped[str] = mapped_column(String(160), nullable=False)
    account_holder_name: Mapped[str] = mapped_column(String(200), nullable=False)
    account_number: Mapped[str] = mapped_column(String(64), nullable=False)
    iban: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    swift_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    bank_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    added_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    added_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    owner: Mapped["Owner"] = relationship(back_populates="bank_details")


class OwnerTransaction(Base):
    __tablename__ = "owner_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True
    )
    bank_detail_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("bank_details.id", ondelete="SET NULL"), nullable=True
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False, default="payment")  # payment|cash_payment|refund
    amount: Mapped[float] = mapped_column(Float, nullable=False)  # + credit, - debit
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="AED")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # completed|pending|failed
    reference: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    responsible: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    txn_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    processed_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    owner: Mapped["Owner"] = relationship(back_populates="transactions")


class OwnerDocument(Base):
    __tablename__ = "owner_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(60), nullable=False, default="Other")
    size: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    uploaded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    uploaded_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    owner: Mapped["Owner"] = relationship(back_populates="documents")


class OwnerActivity(Base):
    __tablename__ = "owner_activity"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True
    )

    action: Mapped[str] = mapped_column(String(80), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(40), nullable=False, default="system")
    user: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    owner: Mapped["Owner"] = relationship(back_populates="activity_log")


# -----------------------------
# Cleaning
# -----------------------------
class CleaningTask(Base):
    __tablename__ = "cleaning_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    unit: Mapped[str] = mapped_column(String(200), nullable=False)
    unit_id: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    type: Mapped[str] = mapped_column(String(40), nullable=False, default="Regular Clean")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Scheduled")
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="Normal")
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_time: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)  # HH:MM
    duration: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    cleaner: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    cleaner_id: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    includes_laundry: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    laundry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    linen_comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # positional completion flags for the fixed checklist
    static_checklist_json: Mapped[str] = mapped_column(
        Text, nullable=False, default=lambda: json.dumps([False] * STATIC_CHECKLIST_LEN)
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    created_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    last_modified_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    last_modified_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    comments: Mapped[List["CleaningComment"]] = relationship(
        back_populates="task", cascade="all, delete-orphan", order_by="CleaningComment.id"
    )
    checklist: Mapped[List["CleaningChecklistItem"]] = relationship(
        back_populates="task", cascade="all, delete-orphan", order_by="CleaningChecklistItem.id"
    )

    @property
    def static_checklist(self) -> list[bool]:
        try:
            v = json.loads(self.static_checklist_json or "[]")
        except ValueError:
            v = []
        flags = [bool(x) for x in v] if isinstance(v, list) else []
        flags = flags[:STATIC_CHECKLIST_LEN]
        return flags + [False] * (STATIC_CHECKLIST_LEN - len(flags))

    @static_checklist.setter
    def static_checklist(self, flags: list[bool]) -> None:
        self.static_checklist_json = json.dumps([bool(x) for x in flags])


class CleaningComment(Base):
    __tablename__ = "cleaning_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cleaning_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )

    author: Mapped[str] = mapped_column(String(200), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    posted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    task: Mapped["CleaningTask"] = relationship(back_populates="comments")


class CleaningChecklistItem(Base):
    __tablename__ = "cleaning_checklist_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cleaning_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )

    item: Mapped[str] = mapped_column(String(200), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    task: Mapped["CleaningTask"] = relationship(back_populates="checklist")


# -----------------------------
# Maintenance
# -----------------------------
class MaintenanceTask(Base):
    __tablename__ = "maintenance_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str] = mapped_column(String(200), nullable=False)
    unit_id: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    technician: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    technician_id: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Scheduled")
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="Normal")
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="General")
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    estimated_duration: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contractor: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    inspector: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    created_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    last_modified_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    last_modified_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    comments: Mapped[List["MaintenanceComment"]] = relationship(
        back_populates="task", cascade="all, delete-orphan", order_by="MaintenanceComment.id"
    )
    attachments: Mapped[List["MaintenanceAttachment"]] = relationship(
        back_populates="task", cascade="all, delete-orphan", order_by="MaintenanceAttachment.id"
    )
    photos: Mapped[List["MaintenancePhoto"]] = relationship(
        back_populates="task", cascade="all, delete-orphan", order_by="MaintenancePhoto.id"
    )


class MaintenanceComment(Base):
    __tablename__ = "maintenance_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("maintenance_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )

    author: Mapped[str] = mapped_column(String(200), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    posted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    task: Mapped["MaintenanceTask"] = relationship(back_populates="comments")


class MaintenanceAttachment(Base):
    __tablename__ = "maintenance_attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("maintenance_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(60), nullable=False, default="Other")
    size: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    file_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    uploaded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    uploaded_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    task: Mapped["MaintenanceTask"] = relationship(back_populates="attachments")


class MaintenancePhoto(Base):
    __tablename__ = "maintenance_photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("maintenance_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(String(10), nullable=False, default="before")  # before|after
    type: Mapped[str] = mapped_column(String(60), nullable=False, default="image")
    size: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    file_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    uploaded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    uploaded_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    task: Mapped["MaintenanceTask"] = relationship(back_populates="photos")


# -----------------------------
# Chat
# -----------------------------
class ChatConversation(Base):
    __tablename__ = "chat_conversations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    guest_name: Mapped[str] = mapped_column(String(200), nullable=False)
    guest_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    platform: Mapped[str] = mapped_column(String(20), nullable=False, default="direct")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="read")  # unread|read|replied
    unread_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_message_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    reservation_id: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    property_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    check_in: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    check_out: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    messages: Mapped[List["ChatMessage"]] = relationship(
        back_populates="conversation", cascade="all, delete-orphan", order_by="ChatMessage.id"
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    conversation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chat_conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )

    sender: Mapped[str] = mapped_column(String(10), nullable=False)  # guest|host
    author: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    conversation: Mapped["ChatConversation"] = relationship(back_populates="messages")
