"""
Action Models for the Chief of Staff

An action is a side effect the assistant proposes: booking a meeting,
sending an email, paying a bill. Actions move through a small state
machine:

    pending ──► approved ──► executed
       │                └──► failed
       └──────► rejected

DESIGN DECISION: The payload is a tagged union keyed by `type`.
`PendingAction.type` is read from the payload, so an action can never
carry the payload of a different type.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    computed_field,
    field_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class ActionType(str, Enum):
    """Side-effect categories an action can belong to."""
    CALENDAR = "calendar"
    EMAIL = "email"
    TRANSACTION = "transaction"
    REMINDER = "reminder"
    NOTE = "note"


class RiskLevel(str, Enum):
    """
    Risk classification driving mandatory approval.

    Anything that is not explicitly "low" is treated as high risk.
    """
    LOW = "low"
    HIGH = "high"

    @classmethod
    def normalize(cls, value: Any) -> "RiskLevel":
        """Map free-form risk labels (e.g. "medium") onto LOW/HIGH."""
        if isinstance(value, RiskLevel):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.LOW.value:
            return cls.LOW
        return cls.HIGH


class ActionStatus(str, Enum):
    """Lifecycle status of an action."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXECUTED = "executed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            ActionStatus.REJECTED,
            ActionStatus.EXECUTED,
            ActionStatus.FAILED,
        )

    def can_transition_to(self, target: "ActionStatus") -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS: dict[ActionStatus, frozenset[ActionStatus]] = {
    ActionStatus.PENDING: frozenset({ActionStatus.APPROVED, ActionStatus.REJECTED}),
    ActionStatus.APPROVED: frozenset({ActionStatus.EXECUTED, ActionStatus.FAILED}),
    ActionStatus.REJECTED: frozenset(),
    ActionStatus.EXECUTED: frozenset(),
    ActionStatus.FAILED: frozenset(),
}


# =============================================================================
# PAYLOADS - one variant per action type
# =============================================================================

class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="forbid")


class CalendarPayload(_Payload):
    """Create or move a calendar event."""
    type: Literal["calendar"] = "calendar"

    title: Optional[str] = Field(default=None, max_length=200)
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    location: Optional[str] = None
    attendees: tuple[str, ...] = ()

    @field_validator("end")
    @classmethod
    def end_after_start(cls, v: Optional[datetime], info) -> Optional[datetime]:
        start = info.data.get("start")
        if v is not None and start is not None and v < start:
            raise ValueError("Event end cannot be before start")
        return v


class EmailPayload(_Payload):
    """Send or draft an email."""
    type: Literal["email"] = "email"

    to: tuple[str, ...] = ()
    subject: Optional[str] = Field(default=None, max_length=300)
    body: Optional[str] = None
    draft_only: bool = False


class TransactionPayload(_Payload):
    """Move money: pay a bill, transfer between accounts."""
    type: Literal["transaction"] = "transaction"

    amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    payee: Optional[str] = None
    from_account: Optional[str] = None
    scheduled_for: Optional[date] = None
    memo: Optional[str] = None


class ReminderPayload(_Payload):
    """Remind the user about something later."""
    type: Literal["reminder"] = "reminder"

    message: Optional[str] = None
    remind_at: Optional[datetime] = None


class NotePayload(_Payload):
    """Capture a note."""
    type: Literal["note"] = "note"

    content: Optional[str] = None
    tags: tuple[str, ...] = ()


ActionPayload = Annotated[
    Union[
        CalendarPayload,
        EmailPayload,
        TransactionPayload,
        ReminderPayload,
        NotePayload,
    ],
    Field(discriminator="type"),
]

_payload_adapter: TypeAdapter[ActionPayload] = TypeAdapter(ActionPayload)


def build_payload(action_type: Union[ActionType, str], fields: Optional[dict[str, Any]] = None) -> ActionPayload:
    """
    Build the typed payload for an action type.

    Raises:
        pydantic.ValidationError: unknown type or fields not valid for it
    """
    data = dict(fields or {})
    data["type"] = action_type.value if isinstance(action_type, ActionType) else action_type
    return _payload_adapter.validate_python(data)


# =============================================================================
# ACTIONS
# =============================================================================

class PendingAction(BaseModel):
    """
    A proposed side effect and its decision status.

    Instances are immutable; status changes produce a new copy
    via `with_status`.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    payload: ActionPayload
    description: str = Field(..., min_length=1, max_length=500)
    risk_level: RiskLevel = RiskLevel.HIGH
    status: ActionStatus = ActionStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
    error: Optional[str] = Field(
        default=None,
        description="Error summary when execution failed"
    )

    @field_validator("risk_level", mode="before")
    @classmethod
    def normalize_risk(cls, v: Any) -> RiskLevel:
        return RiskLevel.normalize(v)

    @computed_field
    @property
    def type(self) -> ActionType:
        return ActionType(self.payload.type)

    def with_status(
        self,
        status: ActionStatus,
        error: Optional[str] = None,
    ) -> "PendingAction":
        """
        Copy of this action in a new status.

        Raises:
            ValueError: the transition is not allowed
        """
        if not self.status.can_transition_to(status):
            raise ValueError(
                f"Cannot move action {self.id} from {self.status.value} to {status.value}"
            )
        return self.model_copy(
            update={
                "status": status,
                "error": error,
                "updated_at": datetime.now(timezone.utc),
            }
        )

    def to_log_dict(self) -> dict:
        return {
            "action_id": self.id,
            "action_type": self.type.value,
            "risk_level": self.risk_level.value,
            "status": self.status.value,
        }


class ActionProposal(BaseModel):
    """
    An action as a provider describes it, before validation.

    `payload` is untyped here; `to_pending_action` turns it into the
    typed variant for `type`.
    """
    type: str
    description: str
    payload: dict[str, Any] = Field(default_factory=dict)
    risk_level: str = Field(
        default=RiskLevel.HIGH.value,
        validation_alias=AliasChoices("risk_level", "riskLevel"),
    )

    def to_pending_action(self) -> PendingAction:
        """
        Raises:
            pydantic.ValidationError: unknown type or invalid payload
        """
        return PendingAction(
            payload=build_payload(self.type.strip().lower(), self.payload),
            description=self.description,
            risk_level=self.risk_level,
        )
