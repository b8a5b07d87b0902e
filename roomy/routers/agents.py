# roomy/routers/agents.py
from __future__ import annotations

import json
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..actor import get_actor
from ..db import get_db
from ..domain import aggregates
from ..domain.audit import audit_write, stamp_created, stamp_modified
from ..models import Agent, AgentDocument, AgentPayout, AgentUnit
from ..schemas import (
    AgentAggregatesOut,
    AgentChildOut,
    AgentCreate,
    AgentDocumentCreate,
    AgentDocumentOut,
    AgentOut,
    AgentPayoutCreate,
    AgentPayoutOut,
    AgentStatsOut,
    AgentUnitCreate,
    AgentUnitOut,
    AgentUpdate,
    BulkRequest,
    BulkResultOut,
    Envelope,
    ListEnvelope,
)
from ..services.bulk import run_bulk
from ..services.lookups import must_get_agent, must_get_child
from ..services.file_store import LocalFileStore, get_file_store
from ..services.query import apply_search, apply_sort, fetch_page

router = APIRouter(prefix="/agents", tags=["agents"])

SORTABLE = {
    "id": Agent.id,
    "name": Agent.name,
    "email": Agent.email,
    "phone": Agent.phone,
    "nationality": Agent.nationality,
    "status": Agent.status,
    "joinDate": Agent.join_date,
    "createdAt": Agent.created_at,
    "lastModifiedAt": Agent.last_modified_at,
}


def _with_children(q):
    return q.options(selectinload(Agent.units), selectinload(Agent.payouts), selectinload(Agent.documents))


def _aggregates(agent: Agent) -> AgentAggregatesOut:
    return AgentAggregatesOut(**aggregates.agent_aggregates(agent.units, agent.payouts))


def _export(agent: Agent) -> dict:
    return AgentOut.model_validate(agent).model_dump(mode="json", by_alias=True)


@router.get("", response_model=ListEnvelope[AgentOut])
def list_agents(
    search: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    nationality: Optional[str] = Query(default=None),
    join_date_from: Optional[date] = Query(default=None, alias="joinDateFrom"),
    join_date_to: Optional[date] = Query(default=None, alias="joinDateTo"),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_dir: Optional[str] = Query(default="asc", alias="sortDir"),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_db),
):
    q = _with_children(select(Agent))
    q = apply_search(q, [Agent.name, Agent.email, Agent.phone, Agent.nationality], search)
    if status:
        q = q.where(Agent.status == status)
    if nationality:
        q = q.where(Agent.nationality == nationality)
    if join_date_from:
        q = q.where(Agent.join_date >= join_date_from)
    if join_date_to:
        q = q.where(Agent.join_date <= join_date_to)
    q = apply_sort(q, Agent, SORTABLE, sort_by, sort_dir)

    rows, total, page, limit = fetch_page(db, q, page, limit)
    return ListEnvelope[AgentOut](data=[AgentOut.model_validate(r) for r in rows], total=total, page=page, limit=limit)


@router.get("/stats", response_model=Envelope[AgentStatsOut])
def agent_stats(db: Session = Depends(get_db)):
    total = db.scalar(select(func.count(Agent.id))) or 0
    active = db.scalar(select(func.count(Agent.id)).where(Agent.status == "Active")) or 0
    units = db.scalar(select(func.count(AgentUnit.id))) or 0
    payouts = db.scalar(select(func.coalesce(func.sum(AgentPayout.amount), 0.0))) or 0.0
    return Envelope(
        data=AgentStatsOut(
            total_agents=int(total),
            active_agents=int(active),
            total_units=int(units),
            total_payouts=round(float(payouts), 2),
        )
    )


@router.post("/bulk", response_model=Envelope[BulkResultOut])
def bulk_agents(payload: BulkRequest, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    result = run_bulk(
        db,
        Agent,
        payload,
        entity_type="agent",
        actor=actor,
        mutators={
            "activate": lambda r: setattr(r, "status", "Active"),
            "deactivate": lambda r: setattr(r, "status", "Inactive"),
        },
        serialize=_export,
    )
    return Envelope(data=result)


@router.post("", response_model=Envelope[AgentOut])
def create_agent(payload: AgentCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    data = payload.model_dump()
    if not data.get("join_date"):
        data["join_date"] = date.today()
    row = Agent(**data)
    stamp_created(row, actor)
    db.add(row)
    db.flush()

    audit_write(db, actor=actor, action="agent.create", entity_type="agent", entity_id=row.id, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=AgentOut.model_validate(row), message="Agent created")


@router.get("/{agent_id}", response_model=Envelope[AgentOut])
def get_agent(agent_id: int, db: Session = Depends(get_db)):
    row = must_get_agent(db, agent_id=agent_id)
    return Envelope(data=AgentOut.model_validate(row))


@router.put("/{agent_id}", response_model=Envelope[AgentOut])
def update_agent(agent_id: int, payload: AgentUpdate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = must_get_agent(db, agent_id=agent_id)
    before = row.to_dict()

    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(row, k, v)
    stamp_modified(row, actor)

    audit_write(db, actor=actor, action="agent.update", entity_type="agent", entity_id=row.id, before=before, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=AgentOut.model_validate(row), message="Agent updated")


@router.delete("/{agent_id}", response_model=Envelope[dict])
def delete_agent(agent_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = must_get_agent(db, agent_id=agent_id)

    audit_write(db, actor=actor, action="agent.delete", entity_type="agent", entity_id=row.id, before=row.to_dict())
    db.delete(row)
    db.commit()
    return Envelope(data={"id": agent_id}, message="Agent deleted")


# -------------------- units --------------------

@router.get("/{agent_id}/units", response_model=Envelope[list[AgentUnitOut]])
def list_units(agent_id: int, db: Session = Depends(get_db)):
    agent = must_get_agent(db, agent_id=agent_id)
    return Envelope(data=[AgentUnitOut.model_validate(u) for u in agent.units])


@router.post("/{agent_id}/units", response_model=Envelope[AgentChildOut[AgentUnitOut]])
def add_unit(agent_id: int, payload: AgentUnitCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    agent = must_get_agent(db, agent_id=agent_id)
    unit = AgentUnit(**payload.model_dump(), created_at=datetime.utcnow())
    agent.units.append(unit)
    stamp_modified(agent, actor)
    db.flush()

    audit_write(db, actor=actor, action="agent.unit.add", entity_type="agent", entity_id=agent.id, after=unit.to_dict())
    db.commit()
    db.refresh(agent)
    return Envelope(data=AgentChildOut[AgentUnitOut](item=AgentUnitOut.model_validate(unit), aggregates=_aggregates(agent)))


@router.delete("/{agent_id}/units/{unit_id}", response_model=Envelope[AgentChildOut[AgentUnitOut]])
def remove_unit(agent_id: int, unit_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    agent = must_get_agent(db, agent_id=agent_id)
    unit = must_get_child(db, AgentUnit, parent_field="agent_id", parent_id=agent.id, child_id=unit_id, label="unit")

    audit_write(db, actor=actor, action="agent.unit.remove", entity_type="agent", entity_id=agent.id, before=unit.to_dict())
    agent.units.remove(unit)
    stamp_modified(agent, actor)
    db.commit()
    db.refresh(agent)
    return Envelope(data=AgentChildOut[AgentUnitOut](aggregates=_aggregates(agent)), message="Unit removed")


# -------------------- payouts --------------------

@router.get("/{agent_id}/payouts", response_model=Envelope[list[AgentPayoutOut]])
def list_payouts(agent_id: int, db: Session = Depends(get_db)):
    agent = must_get_agent(db, agent_id=agent_id)
    return Envelope(data=[AgentPayoutOut.model_validate(p) for p in agent.payouts])


@router.post("/{agent_id}/payouts", response_model=Envelope[AgentChildOut[AgentPayoutOut]])
def add_payout(agent_id: int, payload: AgentPayoutCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    agent = must_get_agent(db, agent_id=agent_id)
    data = payload.model_dump()
    units = data.pop("units") or []
    payout = AgentPayout(**data, units_json=json.dumps(units), created_at=datetime.utcnow())
    agent.payouts.append(payout)
    stamp_modified(agent, actor)
    db.flush()

    audit_write(db, actor=actor, action="agent.payout.add", entity_type="agent", entity_id=agent.id, after=payout.to_dict())
    db.commit()
    db.refresh(agent)
    return Envelope(data=AgentChildOut[AgentPayoutOut](item=AgentPayoutOut.model_validate(payout), aggregates=_aggregates(agent)))


@router.delete("/{agent_id}/payouts/{payout_id}", response_model=Envelope[AgentChildOut[AgentPayoutOut]])
def remove_payout(agent_id: int, payout_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    agent = must_get_agent(db, agent_id=agent_id)
    payout = must_get_child(db, AgentPayout, parent_field="agent_id", parent_id=agent.id, child_id=payout_id, label="payout")

    audit_write(db, actor=actor, action="agent.payout.remove", entity_type="agent", entity_id=agent.id, before=payout.to_dict())
    agent.payouts.remove(payout)
    stamp_modified(agent, actor)
    db.commit()
    db.refresh(agent)
    return Envelope(data=AgentChildOut[AgentPayoutOut](aggregates=_aggregates(agent)), message="Payout removed")


# -------------------- documents --------------------

@router.get("/{agent_id}/documents", response_model=Envelope[list[AgentDocumentOut]])
def list_documents(agent_id: int, db: Session = Depends(get_db)):
    agent = must_get_agent(db, agent_id=agent_id)
    return Envelope(data=[AgentDocumentOut.model_validate(d) for d in agent.documents])


@router.post("/{agent_id}/documents", response_model=Envelope[AgentChildOut[AgentDocumentOut]])
def add_document(agent_id: int, payload: AgentDocumentCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    agent = must_get_agent(db, agent_id=agent_id)
    ref = payload.file
    doc = AgentDocument(
        **payload.model_dump(exclude={"file"}),
        file_key=ref.key if ref else None,
        file_url=ref.url if ref else None,
        uploaded_at=datetime.utcnow(),
        uploaded_by=actor,
    )
    agent.documents.append(doc)
    stamp_modified(agent, actor)
    db.flush()

    audit_write(db, actor=actor, action="agent.document.add", entity_type="agent", entity_id=agent.id, after=doc.to_dict())
    db.commit()
    db.refresh(agent)
    return Envelope(data=AgentChildOut[AgentDocumentOut](item=AgentDocumentOut.model_validate(doc), aggregates=_aggregates(agent)))


@router.delete("/{agent_id}/documents/{document_id}", response_model=Envelope[AgentChildOut[AgentDocumentOut]])
def remove_document(
    agent_id: int,
    document_id: int,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
    store: LocalFileStore = Depends(get_file_store),
):
    agent = must_get_agent(db, agent_id=agent_id)
    doc = must_get_child(db, AgentDocument, parent_field="agent_id", parent_id=agent.id, child_id=document_id, label="document")

    audit_write(db, actor=actor, action="agent.document.remove", entity_type="agent", entity_id=agent.id, before=doc.to_dict())
    agent.documents.remove(doc)
    stamp_modified(agent, actor)
    db.commit()
    store.discard(doc.file_key)
    db.refresh(agent)
    return Envelope(data=AgentChildOut[AgentDocumentOut](aggregates=_aggregates(agent)), message="Document removed")
