"""
Tests for the Chief of Staff models

Test strategy:
1. Unit tests for individual components (models, policy, queue, parser)
2. Orchestrator flows with scripted providers and executors
3. No real API calls in tests (use fakes and mock transports)
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from chief_of_staff.models.actions import (
    ActionProposal,
    ActionStatus,
    ActionType,
    CalendarPayload,
    PendingAction,
    RiskLevel,
    TransactionPayload,
    build_payload,
)
from chief_of_staff.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from chief_of_staff.models.conversation import (
    AIProvider,
    ChiefOfStaffConfig,
    ChiefOfStaffState,
    ConversationMessage,
    Memory,
    MessageRole,
)


class TestConversationModels:
    """Tests for messages and configuration."""

    def test_message_creation(self):
        message = ConversationMessage(role=MessageRole.USER, content="  pay my bill  ")
        assert message.content == "pay my bill"
        assert message.id
        assert message.timestamp.tzinfo is not None

    def test_message_ids_are_unique(self):
        a = ConversationMessage(role=MessageRole.USER, content="a")
        b = ConversationMessage(role=MessageRole.USER, content="a")
        assert a.id != b.id

    def test_message_is_immutable(self):
        message = ConversationMessage(role=MessageRole.USER, content="hello")
        with pytest.raises(ValidationError):
            message.content = "changed"

    def test_message_rejects_blank_content(self):
        with pytest.raises(ValidationError):
            ConversationMessage(role=MessageRole.USER, content="   ")

    def test_config_defaults(self):
        config = ChiefOfStaffConfig()
        assert config.primary_provider == AIProvider.CLAUDE
        assert config.fallback_provider == AIProvider.GEMINI
        assert config.enable_autonomous_actions is False
        assert config.require_approval_for_high_risk is True

    def test_config_rejects_unknown_options(self):
        with pytest.raises(ValidationError):
            ChiefOfStaffConfig(max_budget=10)

    def test_config_rejects_unknown_provider(self):
        with pytest.raises(ValidationError):
            ChiefOfStaffConfig(primary_provider="llama")

    def test_memory_importance_bounds(self):
        with pytest.raises(ValidationError):
            Memory(content="I prefer mornings", importance=11)


class TestActionModels:
    """Tests for actions, payload variants and the status machine."""

    def test_type_comes_from_payload(self):
        action = PendingAction(
            payload=TransactionPayload(amount=Decimal("84.20"), payee="City Power"),
            description="Pay City Power",
        )
        assert action.type == ActionType.TRANSACTION
        assert action.status == ActionStatus.PENDING

    def test_build_payload_picks_variant(self):
        payload = build_payload("calendar", {"title": "Dentist"})
        assert isinstance(payload, CalendarPayload)
        assert payload.title == "Dentist"

    def test_build_payload_rejects_fields_of_other_type(self):
        with pytest.raises(ValidationError):
            build_payload(ActionType.EMAIL, {"amount": "10.00"})

    def test_build_payload_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            build_payload("teleport", {})

    def test_transaction_rejects_negative_amount(self):
        with pytest.raises(ValidationError):
            TransactionPayload(amount=Decimal("-5"))

    def test_calendar_end_before_start(self):
        with pytest.raises(ValidationError, match="Event end cannot be before start"):
            CalendarPayload(
                start=datetime(2026, 3, 2, 10, tzinfo=timezone.utc),
                end=datetime(2026, 3, 2, 9, tzinfo=timezone.utc),
            )

    @pytest.mark.parametrize("label,expected", [
        ("low", RiskLevel.LOW),
        ("LOW", RiskLevel.LOW),
        ("high", RiskLevel.HIGH),
        ("medium", RiskLevel.HIGH),
        ("whatever", RiskLevel.HIGH),
    ])
    def test_risk_normalization(self, label, expected):
        assert RiskLevel.normalize(label) == expected

    def test_allowed_transitions(self):
        assert ActionStatus.PENDING.can_transition_to(ActionStatus.APPROVED)
        assert ActionStatus.PENDING.can_transition_to(ActionStatus.REJECTED)
        assert ActionStatus.APPROVED.can_transition_to(ActionStatus.EXECUTED)
        assert ActionStatus.APPROVED.can_transition_to(ActionStatus.FAILED)
        assert not ActionStatus.PENDING.can_transition_to(ActionStatus.EXECUTED)

    @pytest.mark.parametrize("terminal", [
        ActionStatus.REJECTED,
        ActionStatus.EXECUTED,
        ActionStatus.FAILED,
    ])
    def test_terminal_states_never_return_to_pending(self, terminal):
        assert terminal.is_terminal
        for status in ActionStatus:
            assert not terminal.can_transition_to(status)

    def test_with_status_returns_copy(self):
        action = PendingAction(payload=build_payload("note"), description="Save note")
        approved = action.with_status(ActionStatus.APPROVED)
        assert action.status == ActionStatus.PENDING
        assert approved.status == ActionStatus.APPROVED
        assert approved.id == action.id
        assert approved.updated_at is not None

    def test_with_status_rejects_invalid_transition(self):
        action = PendingAction(payload=build_payload("note"), description="Save note")
        rejected = action.with_status(ActionStatus.REJECTED)
        with pytest.raises(ValueError):
            rejected.with_status(ActionStatus.PENDING)

    def test_proposal_accepts_camel_case_risk(self):
        p = ActionProposal.model_validate({
            "type": "reminder",
            "description": "Remind me Thursday",
            "riskLevel": "low",
        })
        action = p.to_pending_action()
        assert action.risk_level == RiskLevel.LOW
        assert action.type == ActionType.REMINDER

    def test_dump_includes_type(self):
        action = PendingAction(payload=build_payload("email", {"to": ["a@b.c"]}), description="Email")
        data = action.model_dump(mode="json")
        assert data["type"] == "email"
        assert data["payload"]["to"] == ["a@b.c"]


class TestStateSnapshot:
    def test_awaiting_approval_filters_pending(self):
        pending = PendingAction(payload=build_payload("note"), description="a")
        executed = (
            PendingAction(payload=build_payload("note"), description="b")
            .with_status(ActionStatus.APPROVED)
            .with_status(ActionStatus.EXECUTED)
        )
        state = ChiefOfStaffState(pending_actions=(pending, executed))
        assert state.awaiting_approval == (pending,)

    def test_snapshot_is_frozen(self):
        state = ChiefOfStaffState()
        with pytest.raises(ValidationError):
            state.is_processing = True


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.MESSAGE_RECEIVED,
            description="User message received",
        )
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        event = AuditEvent(
            event_type=AuditEventType.ACTION_EXECUTED,
            description="transaction action executed",
            details={"payee": "City Power"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "action_executed"
        assert log_dict["details"]["payee"] == "City Power"

    def test_audit_event_json_line_round_trip(self):
        event = AuditEventBuilder.provider_failed("claude", "HTTP 503", correlation_id=uuid4())
        restored = AuditEvent.model_validate_json(event.to_json_line())
        assert restored == event

    def test_builder_message_received(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.message_received("msg-1", 12, correlation_id)
        assert event.event_type == AuditEventType.MESSAGE_RECEIVED
        assert event.entity_id == "msg-1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_builder_action_failed_is_error(self):
        event = AuditEventBuilder.action_failed("act-1", "email", "SMTP down")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "SMTP down"

    def test_builder_truncates_long_descriptions(self):
        event = AuditEventBuilder.action_admitted(
            AuditEventType.ACTION_QUEUED,
            action_id="act-1",
            action_type="note",
            risk_level="low",
            description="x" * 1000,
        )
        assert len(event.description) <= 500
