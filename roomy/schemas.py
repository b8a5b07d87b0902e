# roomy/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar, Generic, List, Literal, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from .domain import aggregates
from .domain.checklist import STATIC_CHECKLIST_ITEMS, checklist_progress

T = TypeVar("T")

AgentStatus = Literal["Active", "Inactive"]
UnitStatus = Literal["Active", "Inactive"]
PayoutStatus = Literal["Completed", "Pending", "Failed"]
TxnType = Literal["payment", "cash_payment", "refund"]
TxnStatus = Literal["completed", "pending", "failed"]
Priority = Literal["Low", "Normal", "High", "Urgent"]
CleaningType = Literal["Regular Clean", "Deep Clean", "Office Clean", "Post-Checkout", "Pre-Arrival", "Mid-Stay"]
CleaningStatus = Literal["Scheduled", "In Progress", "Completed", "Cancelled"]
CleaningCommentType = Literal["cleaner", "completion", "inspection", "user"]
MaintenanceStatus = Literal["Scheduled", "In Progress", "Completed", "Cancelled", "On Hold"]
MaintenanceType = Literal["Plumbing", "Electrical", "HVAC", "General", "Emergency", "Preventive"]
MaintenanceCommentType = Literal["inspection", "contractor", "approval", "user"]
PhotoKind = Literal["before", "after"]
ChatPlatform = Literal["airbnb", "booking", "vrbo", "direct", "internal"]
ChatStatus = Literal["unread", "read", "replied"]
ChatSender = Literal["guest", "host"]
BulkAction = Literal["activate", "deactivate", "delete", "export", "complete", "cancel"]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PartialUpdate(CamelModel):
    """
    PUT bodies: omitted fields stay as they are.

    An explicit null is only allowed for columns that can hold one; the names
    in `non_null` must be omitted or carry a value.
    """

    non_null: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_null_required(self):
        cleared = [n for n in self.non_null if n in self.model_fields_set and getattr(self, n) is None]
        if cleared:
            wire = ", ".join(to_camel(n) for n in cleared)
            raise ValueError(f"{wire} cannot be null")
        return self


# -------------------- Envelopes --------------------

class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[str] = None


class ListEnvelope(BaseModel, Generic[T]):
    success: bool = True
    data: List[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 50


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    message: Optional[str] = None


# -------------------- Files --------------------

class FileRef(CamelModel):
    """Canonical storage reference. Legacy `s3Key`/`s3Url` are converted at the edge."""

    key: Optional[str] = None
    url: Optional[str] = None


class UploadOut(CamelModel):
    key: str
    url: str
    name: str
    size: int
    content_type: Optional[str] = None


class SignedUrlOut(CamelModel):
    key: str
    url: str
    expires_at: datetime


class FileListOut(CamelModel):
    folder: str
    files: List[str] = Field(default_factory=list)


def _lift_file_ref(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    if isinstance(data.get("file"), dict):
        return data
    key = data.pop("s3Key", None) or data.pop("s3_key", None) or data.pop("key", None)
    url = data.pop("s3Url", None) or data.pop("s3_url", None) or data.pop("url", None)
    if key or url:
        data["file"] = {"key": key, "url": url}
    return data


class FileBackedIn(CamelModel):
    file: Optional[FileRef] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
        return _lift_file_ref(data)


class FileBackedOut(CamelModel):
    file_key: Optional[str] = Field(default=None, exclude=True)
    file_url: Optional[str] = Field(default=None, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _flatten_file(cls, data: Any) -> Any:
        # re-validation of an already serialised payload
        if isinstance(data, dict) and isinstance(data.get("file"), dict):
            data = dict(data)
            ref = data.pop("file")
            data.setdefault("fileKey", ref.get("key"))
            data.setdefault("fileUrl", ref.get("url"))
        return data

    @computed_field(alias="file")
    @property
    def file(self) -> Optional[FileRef]:
        if not self.file_key and not self.file_url:
            return None
        return FileRef(key=self.file_key, url=self.file_url)


# -------------------- Bulk --------------------

class BulkRequest(CamelModel):
    ids: List[int] = Field(min_length=1)
    action: BulkAction


class BulkFailure(CamelModel):
    id: int
    error: str


class BulkResultOut(CamelModel):
    action: str
    succeeded: List[int] = Field(default_factory=list)
    failed: List[BulkFailure] = Field(default_factory=list)
    rows: Optional[List[dict[str, Any]]] = None


# -------------------- Agents --------------------

class AgentUnitCreate(CamelModel):
    name: str = Field(min_length=1)
    location: Optional[str] = None
    referral_date: Optional[date] = None
    revenue: float = Field(default=0.0, ge=0)
    commission: float = Field(default=0.0, ge=0, le=100)
    status: UnitStatus = "Active"
    property_id: Optional[str] = None


class AgentUnitOut(AgentUnitCreate):
    id: int
    agent_id: int


class AgentPayoutCreate(CamelModel):
    payout_date: date = Field(validation_alias=AliasChoices("date", "payoutDate", "payout_date"))
    amount: float = Field(gt=0)
    units: List[str] = Field(default_factory=list)
    status: PayoutStatus = "Pending"
    payment_method: Optional[str] = None
    description: Optional[str] = None


class AgentPayoutOut(CamelModel):
    id: int
    agent_id: int
    payout_date: date = Field(
        validation_alias=AliasChoices("payout_date", "payoutDate", "date"), serialization_alias="date"
    )
    amount: float
    units: List[str] = Field(default_factory=list)
    status: PayoutStatus
    payment_method: Optional[str] = None
    description: Optional[str] = None


class AgentDocumentCreate(FileBackedIn):
    name: str = Field(min_length=1)
    type: str = "Other"
    size: Optional[str] = None


class AgentDocumentOut(FileBackedOut):
    id: int
    agent_id: int
    name: str
    type: str
    size: Optional[str] = None
    uploaded_at: datetime
    uploaded_by: Optional[str] = None


class AgentCreate(CamelModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    nationality: Optional[str] = None
    birthday: Optional[date] = None
    status: AgentStatus = "Active"
    join_date: Optional[date] = None
    comments: Optional[str] = None


class AgentUpdate(PartialUpdate):
    non_null = ("name", "email", "status", "join_date")

    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=3)
    phone: Optional[str] = None
    nationality: Optional[str] = None
    birthday: Optional[date] = None
    status: Optional[AgentStatus] = None
    join_date: Optional[date] = None
    comments: Optional[str] = None


class AgentOut(CamelModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    nationality: Optional[str] = None
    birthday: Optional[date] = None
    status: AgentStatus
    join_date: date
    comments: Optional[str] = None

    created_at: datetime
    created_by: Optional[str] = None
    last_modified_at: datetime
    last_modified_by: Optional[str] = None

    units: List[AgentUnitOut] = Field(default_factory=list)
    payouts: List[AgentPayoutOut] = Field(default_factory=list)
    documents: List[AgentDocumentOut] = Field(default_factory=list)

    @computed_field(alias="unitsAttracted")
    @property
    def units_attracted(self) -> int:
        return aggregates.units_attracted(self.units)

    @computed_field(alias="totalPayouts")
    @property
    def total_payouts(self) -> float:
        return aggregates.total_payouts(self.payouts)

    @computed_field(alias="lastPayoutDate")
    @property
    def last_payout_date(self) -> Optional[date]:
        return aggregates.last_payout_date(self.payouts)


class AgentAggregatesOut(CamelModel):
    units_attracted: int
    total_payouts: float
    last_payout_date: Optional[date] = None


class AgentChildOut(CamelModel, Generic[T]):
    """A child mutation echo: the child plus the parent's recomputed aggregates."""

    item: Optional[T] = None
    aggregates: AgentAggregatesOut


class AgentStatsOut(CamelModel):
    total_agents: int
    active_agents: int
    total_units: int
    total_payouts: float


# -------------------- Owners --------------------

class OwnerUnitCreate(CamelModel):
    name: str = Field(min_length=1)
    location: Optional[str] = None
    status: UnitStatus = "Active"


class OwnerUnitOut(OwnerUnitCreate):
    id: int
    owner_id: int


class BankDetailCreate(CamelModel):
    bank_name: str = Field(min_length=1)
    account_holder_name: str = Field(min_length=1)
    account_number: str = Field(min_length=1)
    iban: Optional[str] = None
    swift_code: Optional[str] = None
    bank_address: Optional[str] = None
    is_primary: bool = False


class BankDetailUpdate(PartialUpdate):
    non_null = ("bank_name", "account_holder_name", "account_number")

    bank_name: Optional[str] = Field(default=None, min_length=1)
    account_holder_name: Optional[str] = Field(default=None, min_length=1)
    account_number: Optional[str] = Field(default=None, min_length=1)
    iban: Optional[str] = None
    swift_code: Optional[str] = None
    bank_address: Optional[str] = None


class BankDetailOut(CamelModel):
    id: int
    owner_id: int
    bank_name: str
    account_holder_name: str
    account_number: str
    iban: Optional[str] = None
    swift_code: Optional[str] = None
    bank_address: Optional[str] = None
    is_primary: bool
    added_date: datetime
    added_by: Optional[str] = None


class TransactionCreate(CamelModel):
    type: TxnType = "payment"
    amount: float
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    description: Optional[str] = None
    bank_detail_id: Optional[int] = None
    status: TxnStatus = "pending"
    reference: Optional[str] = None
    title: Optional[str] = None
    responsible: Optional[str] = None
    txn_date: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("date", "txnDate", "txn_date"))

    @model_validator(mode="after")
    def _amount_nonzero(self):
        if self.amount == 0:
            raise ValueError("amount must be non-zero")
        return self


class TransactionUpdate(PartialUpdate):
    non_null = ("type", "amount", "currency", "status")

    type: Optional[TxnType] = None
    amount: Optional[float] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    description: Optional[str] = None
    bank_detail_id: Optional[int] = None
    status: Optional[TxnStatus] = None
    reference: Optional[str] = None
    title: Optional[str] = None
    responsible: Optional[str] = None


class TransactionOut(CamelModel):
    id: int
    owner_id: int
    type: TxnType
    amount: float
    currency: str
    description: Optional[str] = None
    bank_detail_id: Optional[int] = None
    status: TxnStatus
    reference: Optional[str] = None
    title: Optional[str] = None
    responsible: Optional[str] = None
    txn_date: datetime = Field(validation_alias=AliasChoices("txn_date", "txnDate", "date"), serialization_alias="date")
    processed_by: Optional[str] = None


class OwnerDocumentCreate(FileBackedIn):
    name: str = Field(min_length=1)
    type: str = "Other"
    size: Optional[str] = None
    description: Optional[str] = None


class OwnerDocumentOut(FileBackedOut):
    id: int
    owner_id: int
    name: str
    type: str
    size: Optional[str] = None
    description: Optional[str] = None
    uploaded_at: datetime
    uploaded_by: Optional[str] = None


class ActivityCreate(CamelModel):
    action: str = Field(min_length=1)
    description: str = ""
    type: str = "note"


class ActivityOut(CamelModel):
    id: int
    owner_id: int
    action: str
    description: str
    type: str
    user: Optional[str] = None
    timestamp: datetime


class OwnerCreate(CamelModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_active: bool = True
    is_vip: bool = False
    comments: Optional[str] = None


class OwnerUpdate(PartialUpdate):
    non_null = ("first_name", "last_name", "email", "is_active", "is_vip")

    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=3)
    phone: Optional[str] = None
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_active: Optional[bool] = None
    is_vip: Optional[bool] = None
    comments: Optional[str] = None


class OwnerOut(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_active: bool
    is_vip: bool
    comments: Optional[str] = None

    created_at: datetime
    created_by: Optional[str] = None
    last_modified_at: datetime
    last_modified_by: Optional[str] = None

    units: List[OwnerUnitOut] = Field(default_factory=list)
    bank_details: List[BankDetailOut] = Field(default_factory=list)
    transactions: List[TransactionOut] = Field(default_factory=list)
    documents: List[OwnerDocumentOut] = Field(default_factory=list)

    @computed_field(alias="totalUnits")
    @property
    def total_units(self) -> int:
        return len(self.units)

    @computed_field(alias="balance")
    @property
    def balance(self) -> float:
        return aggregates.owner_balance(self.transactions)

    @computed_field(alias="primaryBankDetailId")
    @property
    def primary_bank_detail_id(self) -> Optional[int]:
        return aggregates.primary_bank_detail_id(self.bank_details)


class OwnerAggregatesOut(CamelModel):
    total_units: int
    balance: float
    primary_bank_detail_id: Optional[int] = None


class OwnerChildOut(CamelModel, Generic[T]):
    item: Optional[T] = None
    aggregates: OwnerAggregatesOut


class OwnerStatsOut(CamelModel):
    total_owners: int
    active_owners: int
    inactive_owners: int
    vip_owners: int
    total_units: int
    total_transactions: int
    total_amount: float


# -------------------- Cleaning --------------------

class CommentCreate(CamelModel):
    text: str = Field(min_length=1)
    type: str = "user"


class CleaningCommentCreate(CommentCreate):
    type: CleaningCommentType = "user"


class MaintenanceCommentCreate(CommentCreate):
    type: MaintenanceCommentType = "user"


class CommentOut(CamelModel):
    id: int
    task_id: int
    author: str
    text: str
    type: str
    posted_at: datetime = Field(
        validation_alias=AliasChoices("posted_at", "postedAt", "date"), serialization_alias="date"
    )


class ChecklistItemCreate(CamelModel):
    item: str = Field(min_length=1, max_length=200)


class ChecklistItemUpdate(CamelModel):
    completed: bool


class ChecklistItemOut(CamelModel):
    id: int
    task_id: int
    item: str
    completed: bool


class StaticChecklistUpdate(CamelModel):
    static_checklist: List[bool]


class ProgressOut(CamelModel):
    total: int
    completed: int
    percent: float


class ChecklistOut(CamelModel):
    static_items: List[str] = Field(default_factory=lambda: list(STATIC_CHECKLIST_ITEMS))
    static_checklist: List[bool]
    checklist: List[ChecklistItemOut] = Field(default_factory=list)

    @computed_field(alias="progress")
    @property
    def progress(self) -> ProgressOut:
        p = checklist_progress(self.static_checklist, self.checklist)
        return ProgressOut(total=p.total, completed=p.completed, percent=p.percent)


class NotesUpdate(CamelModel):
    notes: str


class CleaningCreate(CamelModel):
    unit: str = Field(min_length=1)
    unit_id: Optional[str] = None
    type: CleaningType = "Regular Clean"
    status: CleaningStatus = "Scheduled"
    priority: Priority = "Normal"
    scheduled_date: date
    scheduled_time: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    duration: Optional[str] = None
    cleaner: Optional[str] = None
    cleaner_id: Optional[str] = None
    cost: float = Field(default=0.0, ge=0)
    notes: Optional[str] = None
    includes_laundry: bool = False
    laundry_count: int = Field(default=0, ge=0)
    linen_comments: Optional[str] = None


class CleaningUpdate(PartialUpdate):
    non_null = (
        "unit", "type", "status", "priority", "scheduled_date", "cost", "includes_laundry", "laundry_count",
    )

    unit: Optional[str] = Field(default=None, min_length=1)
    unit_id: Optional[str] = None
    type: Optional[CleaningType] = None
    status: Optional[CleaningStatus] = None
    priority: Optional[Priority] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    duration: Optional[str] = None
    cleaner: Optional[str] = None
    cleaner_id: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    includes_laundry: Optional[bool] = None
    laundry_count: Optional[int] = Field(default=None, ge=0)
    linen_comments: Optional[str] = None


class CleaningOut(CamelModel):
    id: int
    unit: str
    unit_id: Optional[str] = None
    type: CleaningType
    status: CleaningStatus
    priority: Priority
    scheduled_date: date
    scheduled_time: Optional[str] = None
    duration: Optional[str] = None
    cleaner: Optional[str] = None
    cleaner_id: Optional[str] = None
    cost: float
    notes: Optional[str] = None
    includes_laundry: bool
    laundry_count: int
    linen_comments: Optional[str] = None

    created_at: datetime
    created_by: Optional[str] = None
    last_modified_at: datetime
    last_modified_by: Optional[str] = None

    comments: List[CommentOut] = Field(default_factory=list)
    checklist: List[ChecklistItemOut] = Field(default_factory=list)
    static_checklist: List[bool] = Field(default_factory=list)

    @computed_field(alias="progress")
    @property
    def progress(self) -> ProgressOut:
        p = checklist_progress(self.static_checklist, self.checklist)
        return ProgressOut(total=p.total, completed=p.completed, percent=p.percent)


class CleaningStatsOut(CamelModel):
    total_tasks: int
    scheduled_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    cancelled_tasks: int


# -------------------- Maintenance --------------------

class MaintenanceCreate(CamelModel):
    title: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    unit_id: Optional[str] = None
    technician: Optional[str] = None
    technician_id: Optional[str] = None
    status: MaintenanceStatus = "Scheduled"
    priority: Priority = "Normal"
    type: MaintenanceType = "General"
    scheduled_date: date
    estimated_duration: Optional[str] = None
    description: str = ""
    cost: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    contractor: Optional[str] = None
    inspector: Optional[str] = None


class MaintenanceUpdate(PartialUpdate):
    non_null = ("title", "unit", "status", "priority", "type", "scheduled_date", "description")

    title: Optional[str] = Field(default=None, min_length=1)
    unit: Optional[str] = Field(default=None, min_length=1)
    unit_id: Optional[str] = None
    technician: Optional[str] = None
    technician_id: Optional[str] = None
    status: Optional[MaintenanceStatus] = None
    priority: Optional[Priority] = None
    type: Optional[MaintenanceType] = None
    scheduled_date: Optional[date] = None
    estimated_duration: Optional[str] = None
    description: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    contractor: Optional[str] = None
    inspector: Optional[str] = None


class AttachmentCreate(FileBackedIn):
    name: str = Field(min_length=1)
    type: str = "Other"
    size: Optional[str] = None


class AttachmentOut(FileBackedOut):
    id: int
    task_id: int
    name: str
    type: str
    size: Optional[str] = None
    uploaded_at: datetime
    uploaded_by: Optional[str] = None


class PhotoCreate(FileBackedIn):
    name: str = Field(min_length=1)
    kind: PhotoKind = Field(default="before", validation_alias=AliasChoices("kind", "type"))
    size: Optional[str] = None


class PhotoOut(FileBackedOut):
    id: int
    task_id: int
    name: str
    kind: PhotoKind
    size: Optional[str] = None
    uploaded_at: datetime
    uploaded_by: Optional[str] = None


class MaintenanceOut(CamelModel):
    id: int
    title: str
    unit: str
    unit_id: Optional[str] = None
    technician: Optional[str] = None
    technician_id: Optional[str] = None
    status: MaintenanceStatus
    priority: Priority
    type: MaintenanceType
    scheduled_date: date
    estimated_duration: Optional[str] = None
    description: str
    cost: Optional[float] = None
    notes: Optional[str] = None
    contractor: Optional[str] = None
    inspector: Optional[str] = None

    created_at: datetime
    created_by: Optional[str] = None
    last_modified_at: datetime
    last_modified_by: Optional[str] = None

    comments: List[CommentOut] = Field(default_factory=list)
    attachments: List[AttachmentOut] = Field(default_factory=list)
    photos: List[PhotoOut] = Field(default_factory=list)


class MaintenanceStatsOut(CamelModel):
    total_tasks: int
    scheduled_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    cancelled_tasks: int
    on_hold_tasks: int
    urgent_tasks: int


# -------------------- Chat --------------------

class ConversationCreate(CamelModel):
    guest_name: str = Field(min_length=1)
    guest_email: Optional[str] = None
    platform: ChatPlatform = "direct"
    reservation_id: Optional[str] = None
    property_name: Optional[str] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None


class ConversationOut(CamelModel):
    id: int
    guest_name: str
    guest_email: Optional[str] = None
    platform: ChatPlatform
    status: ChatStatus
    unread_count: int
    last_message: Optional[str] = None
    last_message_time: Optional[datetime] = None
    reservation_id: Optional[str] = None
    property_name: Optional[str] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None


class MessageCreate(CamelModel):
    sender: ChatSender = "host"
    text: str = Field(min_length=1)


class MessageOut(CamelModel):
    id: int
    conversation_id: int
    sender: ChatSender
    author: Optional[str] = None
    text: str
    sent_at: datetime
