# roomy/routers/owners.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..actor import get_actor
from ..config import settings
from ..db import get_db
from ..domain import aggregates
from ..domain.audit import audit_write, owner_activity, stamp_created, stamp_modified
from ..domain.bank import apply_primary, primary_flags, resolve_primary
from ..domain.errors import RuleViolation
from ..models import BankDetail, Owner, OwnerDocument, OwnerTransaction, OwnerUnit
from ..schemas import (
    ActivityCreate,
    ActivityOut,
    BankDetailCreate,
    BankDetailOut,
    BankDetailUpdate,
    BulkRequest,
    BulkResultOut,
    Envelope,
    ListEnvelope,
    OwnerAggregatesOut,
    OwnerChildOut,
    OwnerCreate,
    OwnerDocumentCreate,
    OwnerDocumentOut,
    OwnerOut,
    OwnerStatsOut,
    OwnerUnitCreate,
    OwnerUnitOut,
    OwnerUpdate,
    TransactionCreate,
    TransactionOut,
    TransactionUpdate,
)
from ..services.bulk import run_bulk
from ..services.lookups import must_get_child, must_get_owner
from ..services.file_store import LocalFileStore, get_file_store
from ..services.query import apply_search, apply_sort, fetch_page

router = APIRouter(prefix="/owners", tags=["owners"])

SORTABLE = {
    "id": Owner.id,
    "firstName": Owner.first_name,
    "lastName": Owner.last_name,
    "email": Owner.email,
    "phone": Owner.phone,
    "nationality": Owner.nationality,
    "dateOfBirth": Owner.date_of_birth,
    "isActive": Owner.is_active,
    "isVip": Owner.is_vip,
    "createdAt": Owner.created_at,
    "lastModifiedAt": Owner.last_modified_at,
}


def _with_children(q):
    return q.options(
        selectinload(Owner.units),
        selectinload(Owner.bank_details),
        selectinload(Owner.transactions),
        selectinload(Owner.documents),
    )


def _aggregates(owner: Owner) -> OwnerAggregatesOut:
    return OwnerAggregatesOut(**aggregates.owner_aggregates(owner.units, owner.transactions, owner.bank_details))


def _export(owner: Owner) -> dict:
    return OwnerOut.model_validate(owner).model_dump(mode="json", by_alias=True)


def _full_name(owner: Owner) -> str:
    return f"{owner.first_name} {owner.last_name}".strip()


def _touch(db: Session, owner: Owner, actor: str, *, action: str, description: str) -> None:
    """Attribution stamp plus the human-readable activity line."""
    stamp_modified(owner, actor)
    owner_activity(db, owner_id=owner.id, actor=actor, action=action, description=description)


@router.get("", response_model=ListEnvelope[OwnerOut])
def list_owners(
    search: Optional[str] = Query(default=None),
    nationality: Optional[str] = Query(default=None),
    is_active: Optional[bool] = Query(default=None, alias="isActive"),
    is_vip: Optional[bool] = Query(default=None, alias="isVip"),
    dob_from: Optional[date] = Query(default=None, alias="dateOfBirthFrom"),
    dob_to: Optional[date] = Query(default=None, alias="dateOfBirthTo"),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_dir: Optional[str] = Query(default="asc", alias="sortDir"),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_db),
):
    q = _with_children(select(Owner))
    q = apply_search(q, [Owner.first_name, Owner.last_name, Owner.email, Owner.phone], search)
    if nationality:
        q = q.where(Owner.nationality == nationality)
    if is_active is not None:
        q = q.where(Owner.is_active == is_active)
    if is_vip is not None:
        q = q.where(Owner.is_vip == is_vip)
    if dob_from:
        q = q.where(Owner.date_of_birth >= dob_from)
    if dob_to:
        q = q.where(Owner.date_of_birth <= dob_to)
    q = apply_sort(q, Owner, SORTABLE, sort_by, sort_dir)

    rows, total, page, limit = fetch_page(db, q, page, limit)
    return ListEnvelope[OwnerOut](data=[OwnerOut.model_validate(r) for r in rows], total=total, page=page, limit=limit)


@router.get("/stats", response_model=Envelope[OwnerStatsOut])
def owner_stats(db: Session = Depends(get_db)):
    total = int(db.scalar(select(func.count(Owner.id))) or 0)
    active = int(db.scalar(select(func.count(Owner.id)).where(Owner.is_active.is_(True))) or 0)
    vip = int(db.scalar(select(func.count(Owner.id)).where(Owner.is_vip.is_(True))) or 0)
    units = int(db.scalar(select(func.count(OwnerUnit.id))) or 0)
    txns = int(db.scalar(select(func.count(OwnerTransaction.id))) or 0)
    amount = db.scalar(
        select(func.coalesce(func.sum(OwnerTransaction.amount), 0.0)).where(OwnerTransaction.status == "completed")
    )
    return Envelope(
        data=OwnerStatsOut(
            total_owners=total,
            active_owners=active,
            inactive_owners=total - active,
            vip_owners=vip,
            total_units=units,
            total_transactions=txns,
            total_amount=round(float(amount or 0.0), 2),
        )
    )


@router.post("/bulk", response_model=Envelope[BulkResultOut])
def bulk_owners(payload: BulkRequest, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    def _set_active(flag: bool):
        def apply(row: Owner) -> None:
            row.is_active = flag
            owner_activity(
                db,
                owner_id=row.id,
                actor=actor,
                action="Status Changed",
                description="Owner activated" if flag else "Owner deactivated",
            )

        return apply

    result = run_bulk(
        db,
        Owner,
        payload,
        entity_type="owner",
        actor=actor,
        mutators={"activate": _set_active(True), "deactivate": _set_active(False)},
        serialize=_export,
    )
    return Envelope(data=result)


@router.post("", response_model=Envelope[OwnerOut])
def create_owner(payload: OwnerCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = Owner(**payload.model_dump())
    stamp_created(row, actor)
    db.add(row)
    db.flush()

    owner_activity(db, owner_id=row.id, actor=actor, action="Owner Created", description=f"Owner {_full_name(row)} created")
    audit_write(db, actor=actor, action="owner.create", entity_type="owner", entity_id=row.id, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=OwnerOut.model_validate(row), message="Owner created")


@router.get("/{owner_id}", response_model=Envelope[OwnerOut])
def get_owner(owner_id: int, db: Session = Depends(get_db)):
    return Envelope(data=OwnerOut.model_validate(must_get_owner(db, owner_id=owner_id)))


@router.put("/{owner_id}", response_model=Envelope[OwnerOut])
def update_owner(owner_id: int, payload: OwnerUpdate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = must_get_owner(db, owner_id=owner_id)
    before = row.to_dict()

    changes = payload.model_dump(exclude_unset=True)
    for k, v in changes.items():
        setattr(row, k, v)

    fields = ", ".join(sorted(changes)) or "nothing"
    _touch(db, row, actor, action="Owner Updated", description=f"Updated {fields}")
    audit_write(db, actor=actor, action="owner.update", entity_type="owner", entity_id=row.id, before=before, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=OwnerOut.model_validate(row), message="Owner updated")


@router.delete("/{owner_id}", response_model=Envelope[dict])
def delete_owner(owner_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    row = must_get_owner(db, owner_id=owner_id)

    audit_write(db, actor=actor, action="owner.delete", entity_type="owner", entity_id=row.id, before=row.to_dict())
    db.delete(row)
    db.commit()
    return Envelope(data={"id": owner_id}, message="Owner deleted")


# -------------------- units --------------------

@router.get("/{owner_id}/units", response_model=Envelope[list[OwnerUnitOut]])
def list_units(owner_id: int, db: Session = Depends(get_db)):
    owner = must_get_owner(db, owner_id=owner_id)
    return Envelope(data=[OwnerUnitOut.model_validate(u) for u in owner.units])


@router.post("/{owner_id}/units", response_model=Envelope[OwnerChildOut[OwnerUnitOut]])
def add_unit(owner_id: int, payload: OwnerUnitCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    owner = must_get_owner(db, owner_id=owner_id)
    unit = OwnerUnit(**payload.model_dump(), created_at=datetime.utcnow())
    owner.units.append(unit)
    db.flush()

    _touch(db, owner, actor, action="Unit Added", description=f"Unit {unit.name} added")
    audit_write(db, actor=actor, action="owner.unit.add", entity_type="owner", entity_id=owner.id, after=unit.to_dict())
    db.commit()
    db.refresh(owner)
    return Envelope(data=OwnerChildOut[OwnerUnitOut](item=OwnerUnitOut.model_validate(unit), aggregates=_aggregates(owner)))


@router.delete("/{owner_id}/units/{unit_id}", response_model=Envelope[OwnerChildOut[OwnerUnitOut]])
def remove_unit(owner_id: int, unit_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    owner = must_get_owner(db, owner_id=owner_id)
    unit = must_get_child(db, OwnerUnit, parent_field="owner_id", parent_id=owner.id, child_id=unit_id, label="unit")

    audit_write(db, actor=actor, action="owner.unit.remove", entity_type="owner", entity_id=owner.id, before=unit.to_dict())
    _touch(db, owner, actor, action="Unit Removed", description=f"Unit {unit.name} removed")
    owner.units.remove(unit)
    db.commit()
    db.refresh(owner)
    return Envelope(data=OwnerChildOut[OwnerUnitOut](aggregates=_aggregates(owner)), message="Unit removed")


# -------------------- bank details --------------------

@router.get("/{owner_id}/bank-details", response_model=Envelope[list[BankDetailOut]])
def list_bank_details(owner_id: int, db: Session = Depends(get_db)):
    owner = must_get_owner(db, owner_id=owner_id)
    return Envelope(data=[BankDetailOut.model_validate(b) for b in owner.bank_details])


@router.post("/{owner_id}/bank-details", response_model=Envelope[OwnerChildOut[BankDetailOut]])
def add_bank_detail(owner_id: int, payload: BankDetailCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    owner = must_get_owner(db, owner_id=owner_id)
    had_accounts = bool(owner.bank_details)

    bank = BankDetail(**payload.model_dump(exclude={"is_primary"}), added_date=datetime.utcnow(), added_by=actor)
    owner.bank_details.append(bank)
    db.flush()

    # first account is always primary; an explicit request demotes the rest
    target = bank.id if (payload.is_primary or not had_accounts) else resolve_primary(
        [b for b in owner.bank_details if b.id != bank.id]
    )
    apply_primary(owner.bank_details, target)

    _touch(db, owner, actor, action="Bank Details Added", description=f"Bank account at {bank.bank_name} added")
    audit_write(db, actor=actor, action="owner.bank.add", entity_type="owner", entity_id=owner.id, after=bank.to_dict())
    db.commit()
    db.refresh(owner)
    return Envelope(data=OwnerChildOut[BankDetailOut](item=BankDetailOut.model_validate(bank), aggregates=_aggregates(owner)))


@router.put("/{owner_id}/bank-details/{bank_id}", response_model=Envelope[OwnerChildOut[BankDetailOut]])
def update_bank_detail(
    owner_id: int,
    bank_id: int,
    payload: BankDetailUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
):
    owner = must_get_owner(db, owner_id=owner_id)
    bank = must_get_child(db, BankDetail, parent_field="owner_id", parent_id=owner.id, child_id=bank_id, label="bank detail")
    before = bank.to_dict()

    for k, v in payload.model_dump(exclude_unset=True).items():
        setattr(bank, k, v)

    _touch(db, owner, actor, action="Bank Details Updated", description=f"Bank account at {bank.bank_name} updated")
    audit_write(db, actor=actor, action="owner.bank.update", entity_type="owner", entity_id=owner.id, before=before, after=bank.to_dict())
    db.commit()
    db.refresh(owner)
    return Envelope(data=OwnerChildOut[BankDetailOut](item=BankDetailOut.model_validate(bank), aggregates=_aggregates(owner)))


@router.delete("/{owner_id}/bank-details/{bank_id}", response_model=Envelope[OwnerChildOut[BankDetailOut]])
def remove_bank_detail(owner_id: int, bank_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    owner = must_get_owner(db, owner_id=owner_id)
    bank = must_get_child(db, BankDetail, parent_field="owner_id", parent_id=owner.id, child_id=bank_id, label="bank detail")

    audit_write(db, actor=actor, action="owner.bank.remove", entity_type="owner", entity_id=owner.id, before=bank.to_dict())
    _touch(db, owner, actor, action="Bank Details Removed", description=f"Bank account at {bank.bank_name} removed")

    # transactions keep their history but lose the reference
    for t in owner.transactions:
        if t.bank_detail_id == bank.id:
            t.bank_detail_id = None
    owner.bank_details.remove(bank)
    apply_primary(owner.bank_details, resolve_primary(owner.bank_details))

    db.commit()
    db.refresh(owner)
    return Envelope(data=OwnerChildOut[BankDetailOut](aggregates=_aggregates(owner)), message="Bank details removed")


@router.post("/{owner_id}/bank-details/{bank_id}/primary", response_model=Envelope[OwnerChildOut[BankDetailOut]])
def set_primary_bank_detail(owner_id: int, bank_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    owner = must_get_owner(db, owner_id=owner_id)
    bank = must_get_child(db, BankDetail, parent_field="owner_id", parent_id=owner.id, child_id=bank_id, label="bank detail")

    flags = primary_flags([b.id for b in owner.bank_details], bank.id)
    changed = any(b.is_primary != flags[b.id] for b in owner.bank_details)
    if changed:
        apply_primary(owner.bank_details, bank.id)
        _touch(db, owner, actor, action="Primary Bank Changed", description=f"{bank.bank_name} set as primary account")
        audit_write(db, actor=actor, action="owner.bank.primary", entity_type="owner", entity_id=owner.id, after={"primary_bank_detail_id": bank.id})
        db.commit()
        db.refresh(owner)

    return Envelope(data=OwnerChildOut[BankDetailOut](item=BankDetailOut.model_validate(bank), aggregates=_aggregates(owner)))


# -------------------- transactions --------------------

def _check_bank_ref(db: Session, owner: Owner, bank_detail_id: Optional[int]) -> None:
    if bank_detail_id is not None:
        must_get_child(db, BankDetail, parent_field="owner_id", parent_id=owner.id, child_id=bank_detail_id, label="bank detail")


@router.get("/{owner_id}/transactions", response_model=Envelope[list[TransactionOut]])
def list_transactions(owner_id: int, db: Session = Depends(get_db)):
    owner = must_get_owner(db, owner_id=owner_id)
    return Envelope(data=[TransactionOut.model_validate(t) for t in owner.transactions])


@router.post("/{owner_id}/transactions", response_model=Envelope[OwnerChildOut[TransactionOut]])
def add_transaction(owner_id: int, payload: TransactionCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    owner = must_get_owner(db, owner_id=owner_id)
    data = payload.model_dump()
    if data["type"] == "cash_payment":
        data["bank_detail_id"] = None
    _check_bank_ref(db, owner, data["bank_detail_id"])

    data["currency"] = (data.get("currency") or settings.default_currency).upper()
    data["txn_date"] = data.get("txn_date") or datetime.utcnow()
    txn = OwnerTransaction(**data, processed_by=actor)
    owner.transactions.append(txn)
    db.flush()

    _touch(db, owner, actor, action="Transaction Added", description=f"{txn.type} of {txn.amount:.2f} {txn.currency}")
    audit_write(db, actor=actor, action="owner.transaction.add", entity_type="owner", entity_id=owner.id, after=txn.to_dict())
    db.commit()
    db.refresh(owner)
    return Envelope(data=OwnerChildOut[TransactionOut](item=TransactionOut.model_validate(txn), aggregates=_aggregates(owner)))


@router.put("/{owner_id}/transactions/{txn_id}", response_model=Envelope[OwnerChildOut[TransactionOut]])
def update_transaction(
    owner_id: int,
    txn_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
):
    owner = must_get_owner(db, owner_id=owner_id)
    txn = must_get_child(db, OwnerTransaction, parent_field="owner_id", parent_id=owner.id, child_id=txn_id, label="transaction")
    before = txn.to_dict()

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("amount") == 0:
        raise RuleViolation("amount must be non-zero")
    if "bank_detail_id" in changes:
        _check_bank_ref(db, owner, changes["bank_detail_id"])
    if "currency" in changes and changes["currency"]:
        changes["currency"] = changes["currency"].upper()

    for k, v in changes.items():
        setattr(txn, k, v)
    if txn.type == "cash_payment":
        txn.bank_detail_id = None

    _touch(db, owner, actor, action="Transaction Updated", description=f"Transaction {txn.id} updated")
    audit_write(db, actor=actor, action="owner.transaction.update", entity_type="owner", entity_id=owner.id, before=before, after=txn.to_dict())
    db.commit()
    db.refresh(owner)
    return Envelope(data=OwnerChildOut[TransactionOut](item=TransactionOut.model_validate(txn), aggregates=_aggregates(owner)))


@router.delete("/{owner_id}/transactions/{txn_id}", response_model=Envelope[OwnerChildOut[TransactionOut]])
def remove_transaction(owner_id: int, txn_id: int, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    owner = must_get_owner(db, owner_id=owner_id)
    txn = must_get_child(db, OwnerTransaction, parent_field="owner_id", parent_id=owner.id, child_id=txn_id, label="transaction")

    audit_write(db, actor=actor, action="owner.transaction.remove", entity_type="owner", entity_id=owner.id, before=txn.to_dict())
    _touch(db, owner, actor, action="Transaction Removed", description=f"Transaction {txn.id} removed")
    owner.transactions.remove(txn)
    db.commit()
    db.refresh(owner)
    return Envelope(data=OwnerChildOut[TransactionOut](aggregates=_aggregates(owner)), message="Transaction removed")


# -------------------- documents --------------------

@router.get("/{owner_id}/documents", response_model=Envelope[list[OwnerDocumentOut]])
def list_documents(owner_id: int, db: Session = Depends(get_db)):
    owner = must_get_owner(db, owner_id=owner_id)
    return Envelope(data=[OwnerDocumentOut.model_validate(d) for d in owner.documents])


@router.post("/{owner_id}/documents", response_model=Envelope[OwnerChildOut[OwnerDocumentOut]])
def add_document(owner_id: int, payload: OwnerDocumentCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    owner = must_get_owner(db, owner_id=owner_id)
    ref = payload.file
    doc = OwnerDocument(
        **payload.model_dump(exclude={"file"}),
        file_key=ref.key if ref else None,
        file_url=ref.url if ref else None,
        uploaded_at=datetime.utcnow(),
        uploaded_by=actor,
    )
    owner.documents.append(doc)
    db.flush()

    _touch(db, owner, actor, action="Document Uploaded", description=f"Document {doc.name} uploaded")
    audit_write(db, actor=actor, action="owner.document.add", entity_type="owner", entity_id=owner.id, after=doc.to_dict())
    db.commit()
    db.refresh(owner)
    return Envelope(data=OwnerChildOut[OwnerDocumentOut](item=OwnerDocumentOut.model_validate(doc), aggregates=_aggregates(owner)))


@router.delete("/{owner_id}/documents/{document_id}", response_model=Envelope[OwnerChildOut[OwnerDocumentOut]])
def remove_document(
    owner_id: int,
    document_id: int,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
    store: LocalFileStore = Depends(get_file_store),
):
    owner = must_get_owner(db, owner_id=owner_id)
    doc = must_get_child(db, OwnerDocument, parent_field="owner_id", parent_id=owner.id, child_id=document_id, label="document")

    audit_write(db, actor=actor, action="owner.document.remove", entity_type="owner", entity_id=owner.id, before=doc.to_dict())
    _touch(db, owner, actor, action="Document Removed", description=f"Document {doc.name} removed")
    owner.documents.remove(doc)
    db.commit()
    store.discard(doc.file_key)
    db.refresh(owner)
    return Envelope(data=OwnerChildOut[OwnerDocumentOut](aggregates=_aggregates(owner)), message="Document removed")


# -------------------- activity --------------------

@router.get("/{owner_id}/activity", response_model=Envelope[list[ActivityOut]])
def list_activity(owner_id: int, db: Session = Depends(get_db)):
    owner = must_get_owner(db, owner_id=owner_id)
    # newest first
    return Envelope(data=[ActivityOut.model_validate(a) for a in reversed(owner.activity_log)])


@router.post("/{owner_id}/activity", response_model=Envelope[ActivityOut])
def add_activity(owner_id: int, payload: ActivityCreate, db: Session = Depends(get_db), actor: str = Depends(get_actor)):
    owner = must_get_owner(db, owner_id=owner_id)
    row = owner_activity(
        db,
        owner_id=owner.id,
        actor=actor,
        action=payload.action,
        description=payload.description,
        type=payload.type,
    )
    db.flush()
    audit_write(db, actor=actor, action="owner.activity.add", entity_type="owner", entity_id=owner.id, after=row.to_dict())
    db.commit()
    db.refresh(row)
    return Envelope(data=ActivityOut.model_validate(row))
