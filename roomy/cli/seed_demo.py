# roomy/cli/seed_demo.py
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from roomy.db import SessionLocal, init_db
from roomy.domain.audit import stamp_created
from roomy.models import (
    Agent,
    AgentPayout,
    AgentUnit,
    BankDetail,
    ChatConversation,
    ChatMessage,
    CleaningChecklistItem,
    CleaningTask,
    MaintenanceTask,
    Owner,
    OwnerTransaction,
    OwnerUnit,
)


@dataclass(frozen=True)
class SeedResult:
    agents: int
    owners: int
    cleaning_tasks: int
    maintenance_tasks: int
    conversations: int


def _get_or_create_agent(db: Session, *, actor: str, name: str, email: str, nationality: str) -> Agent:
    row = db.scalar(select(Agent).where(Agent.email == email))
    if row:
        return row
    row = Agent(name=name, email=email, nationality=nationality, status="Active", join_date=date.today() - timedelta(days=400))
    stamp_created(row, actor)
    row.units = [
        AgentUnit(name="Marina Heights 1204", location="Dubai Marina", revenue=145000.0, commission=5.0),
        AgentUnit(name="Downtown Loft 8", location="Downtown Dubai", revenue=98000.0, commission=4.5),
    ]
    row.payouts = [
        AgentPayout(
            payout_date=date.today() - timedelta(days=30),
            amount=7250.0,
            units_json=json.dumps(["Marina Heights 1204"]),
            status="Completed",
            payment_method="Bank Transfer",
        )
    ]
    db.add(row)
    db.commit()
    return row


def _get_or_create_owner(db: Session, *, actor: str, first: str, last: str, email: str, vip: bool) -> Owner:
    row = db.scalar(select(Owner).where(Owner.email == email))
    if row:
        return row
    row = Owner(first_name=first, last_name=last, email=email, nationality="UAE", is_active=True, is_vip=vip)
    stamp_created(row, actor)
    row.units = [OwnerUnit(name="Palm Villa 3", location="Palm Jumeirah")]
    bank = BankDetail(
        bank_name="Emirates NBD",
        account_holder_name=f"{first} {last}",
        account_number="1012345678",
        iban="AE070331234567890123456",
        is_primary=True,
        added_by=actor,
    )
    row.bank_details = [bank]
    db.add(row)
    db.flush()
    row.transactions = [
        OwnerTransaction(type="payment", amount=12500.0, currency="AED", status="completed", bank_detail_id=bank.id, processed_by=actor),
        OwnerTransaction(type="cash_payment", amount=-800.0, currency="AED", status="completed", processed_by=actor),
    ]
    db.commit()
    return row


def _seed_tasks(db: Session, actor: str) -> tuple[int, int]:
    if db.scalar(select(CleaningTask.id).limit(1)) is None:
        task = CleaningTask(unit="Marina Heights 1204", type="Deep Clean", scheduled_date=date.today(), scheduled_time="10:00", cleaner="Maria")
        stamp_created(task, actor)
        task.checklist = [CleaningChecklistItem(item="Floors mopped"), CleaningChecklistItem(item="Trash emptied", completed=True)]
        db.add(task)
    if db.scalar(select(MaintenanceTask.id).limit(1)) is None:
        task = MaintenanceTask(
            title="AC not cooling",
            unit="Downtown Loft 8",
            type="HVAC",
            priority="Urgent",
            scheduled_date=date.today() + timedelta(days=1),
            description="Guest reports the bedroom unit blows warm air.",
            technician="Ahmed",
        )
        stamp_created(task, actor)
        db.add(task)
    db.commit()
    return (
        len(db.scalars(select(CleaningTask.id)).all()),
        len(db.scalars(select(MaintenanceTask.id)).all()),
    )


def _seed_chat(db: Session) -> int:
    if db.scalar(select(ChatConversation.id).limit(1)) is None:
        now = datetime.utcnow()
        convo = ChatConversation(
            guest_name="Lena Fischer",
            guest_email="lena@example.com",
            platform="airbnb",
            status="unread",
            unread_count=1,
            last_message="What time is check-in?",
            last_message_time=now,
            property_name="Marina Heights 1204",
        )
        convo.messages = [ChatMessage(sender="guest", author="Lena Fischer", text="What time is check-in?", sent_at=now)]
        db.add(convo)
        db.commit()
    return len(db.scalars(select(ChatConversation.id)).all())


def seed_demo(*, actor: str) -> SeedResult:
    init_db()
    db = SessionLocal()
    try:
        _get_or_create_agent(db, actor=actor, name="Sarah Johnson", email="sarah@roomy.local", nationality="UK")
        _get_or_create_agent(db, actor=actor, name="Omar Haddad", email="omar@roomy.local", nationality="Jordan")
        _get_or_create_owner(db, actor=actor, first="Khalid", last="Al Mansoori", email="khalid@owners.local", vip=True)
        _get_or_create_owner(db, actor=actor, first="Emma", last="Clarke", email="emma@owners.local", vip=False)
        cleaning, maintenance = _seed_tasks(db, actor)
        conversations = _seed_chat(db)

        return SeedResult(
            agents=len(db.scalars(select(Agent.id)).all()),
            owners=len(db.scalars(select(Owner.id)).all()),
            cleaning_tasks=cleaning,
            maintenance_tasks=maintenance,
            conversations=conversations,
        )
    finally:
        db.close()
