# roomy/services/lookups.py
from __future__ import annotations

from typing import Any, Type, TypeVar

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import Agent, CleaningTask, ChatConversation, MaintenanceTask, Owner

M = TypeVar("M")


def _must_get(db: Session, model: Type[M], row_id: int, label: str) -> M:
    row = db.get(model, row_id)
    if not row:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return row


def must_get_agent(db: Session, *, agent_id: int) -> Agent:
    return _must_get(db, Agent, agent_id, "agent")


def must_get_owner(db: Session, *, owner_id: int) -> Owner:
    return _must_get(db, Owner, owner_id, "owner")


def must_get_cleaning(db: Session, *, task_id: int) -> CleaningTask:
    return _must_get(db, CleaningTask, task_id, "cleaning task")


def must_get_maintenance(db: Session, *, task_id: int) -> MaintenanceTask:
    return _must_get(db, MaintenanceTask, task_id, "maintenance task")


def must_get_conversation(db: Session, *, conversation_id: int) -> ChatConversation:
    return _must_get(db, ChatConversation, conversation_id, "conversation")


def must_get_child(db: Session, model: Type[M], *, parent_field: str, parent_id: int, child_id: int, label: str) -> M:
    """A child row that must also belong to the given parent (404 otherwise)."""
    row = db.scalar(
        select(model).where(getattr(model, "id") == child_id, getattr(model, parent_field) == parent_id)
    )
    if not row:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return row
