# roomy/routers/chat.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..actor import get_actor
from ..db import get_db
from ..domain.audit import audit_write
from ..models import ChatConversation, ChatMessage
from ..schemas import (
    ConversationCreate,
    ConversationOut,
    Envelope,
    ListEnvelope,
    MessageCreate,
    MessageOut,
)
from ..services.lookups import must_get_conversation
from ..services.query import apply_search, fetch_page

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/conversations", response_model=ListEnvelope[ConversationOut])
def list_conversations(
    search: Optional[str] = Query(default=None),
    platform: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    unread: Optional[bool] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_db),
):
    q = select(ChatConversation)
    q = apply_search(
        q,
        [ChatConversation.guest_name, ChatConversation.guest_email, ChatConversation.property_name, ChatConversation.last_message],
        search,
    )
    if platform:
        q = q.where(ChatConversation.platform == platform)
    if status:
        q = q.where(ChatConversation.status == status)
    if unread:
        q = q.where(ChatConversation.unread_count > 0)

    activity = func.coalesce(ChatConversation.last_message_time, ChatConversation.created_at)
    q = q.order_by(desc(activity), desc(ChatConversation.id))

    rows, total, page, limit = fetch_page(db, q, page, limit)
    return ListEnvelope[ConversationOut](
        data=[ConversationOut.model_validate(r) for r in rows], total=total, page=page, limit=limit
    )


@router.post("/conversations", response_model=Envelope[ConversationOut])
def create_conversation(payload: ConversationCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = ChatConversation(**payload.model_dump(), status="read", unread_count=0, created_at=datetime.utcnow())
    db.add(row)
    db.flush()

    audit_write(db, actor=actor, action="chat.conversation.create", entity_type="conversation", entity_id=row.id, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=ConversationOut.model_validate(row))


@router.get("/conversations/{conversation_id}", response_model=Envelope[ConversationOut])
def get_conversation(conversation_id: int, db: Session = Depends(get_db)):
    return Envelope(data=ConversationOut.model_validate(must_get_conversation(db, conversation_id=conversation_id)))


@router.get("/conversations/{conversation_id}/messages", response_model=Envelope[list[MessageOut]])
def list_messages(conversation_id: int, db: Session = Depends(get_db)):
    convo = must_get_conversation(db, conversation_id=conversation_id)
    return Envelope(data=[MessageOut.model_validate(m) for m in convo.messages])


@router.post("/conversations/{conversation_id}/messages", response_model=Envelope[MessageOut])
def send_message(conversation_id: int, payload: MessageCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    convo = must_get_conversation(db, conversation_id=conversation_id)
    now = datetime.utcnow()

    msg = ChatMessage(
        sender=payload.sender,
        author=convo.guest_name if payload.sender == "guest" else actor,
        text=payload.text,
        sent_at=now,
    )
    convo.messages.append(msg)
    convo.last_message = payload.text
    convo.last_message_time = now
    if payload.sender == "guest":
        convo.unread_count = (convo.unread_count or 0) + 1
        convo.status = "unread"
    else:
        convo.status = "replied"
    db.flush()

    audit_write(db, actor=actor, action="chat.message.send", entity_type="conversation", entity_id=convo.id, after=msg.to_dict())
    db.commit()
    db.refresh(msg)
    return Envelope(data=MessageOut.model_validate(msg))


@router.post("/conversations/{conversation_id}/read", response_model=Envelope[ConversationOut])
def mark_read(conversation_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    convo = must_get_conversation(db, conversation_id=conversation_id)
    before = {"status": convo.status, "unread_count": convo.unread_count}

    convo.unread_count = 0
    if convo.status != "replied":
        convo.status = "read"

    audit_write(
        db,
        actor=actor,
        action="chat.conversation.read",
        entity_type="conversation",
        entity_id=convo.id,
        before=before,
        after={"status": convo.status, "unread_count": 0},
    )
    db.commit()
    db.refresh(convo)
    return Envelope(data=ConversationOut.model_validate(convo))
