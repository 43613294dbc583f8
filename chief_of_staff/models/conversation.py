"""
Conversation Models for the Chief of Staff

These models describe what the assistant remembers and what it exposes:
1. Messages exchanged in one conversation
2. Long-lived memories about the user
3. The per-instance configuration
4. The read-only state snapshot handed to subscribers

DESIGN DECISION: Every model here is frozen. A snapshot given to a
consumer can never be used to change the orchestrator's own state.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from chief_of_staff.models.actions import ActionStatus, PendingAction


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class MessageRole(str, Enum):
    """Who authored a conversation message."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class AIProvider(str, Enum):
    """
    Reasoning backends the assistant knows how to reach.

    Used as identifiers in configuration (primary/fallback).
    """
    CLAUDE = "claude"
    GEMINI = "gemini"
    OPENAI = "openai"


class MemoryCategory(str, Enum):
    """Kinds of facts the assistant keeps about the user."""
    PREFERENCE = "preference"
    GOAL = "goal"
    CONTEXT = "context"
    INSIGHT = "insight"


# =============================================================================
# MESSAGES
# =============================================================================

class MessageMetadata(BaseModel):
    """Extra information attached to assistant messages."""
    model_config = ConfigDict(frozen=True)

    model: Optional[str] = Field(
        default=None,
        description="Provider that produced the reply"
    )
    actions_taken: tuple[str, ...] = Field(
        default=(),
        description="Types of actions proposed alongside the reply"
    )
    is_error: bool = Field(
        default=False,
        description="True when the message is a failure notice"
    )


class ConversationMessage(BaseModel):
    """
    A single message in the conversation history.

    Created once when appended; never mutated afterwards.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    role: MessageRole
    content: str = Field(..., min_length=1)
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="Creation instant (UTC)"
    )
    metadata: Optional[MessageMetadata] = None


# =============================================================================
# MEMORIES
# =============================================================================

class Memory(BaseModel):
    """
    Something the assistant learned about the user.

    Memories with importance >= 5 are included in the system prompt.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    content: str = Field(..., min_length=1)
    category: MemoryCategory = MemoryCategory.PREFERENCE
    importance: int = Field(default=5, ge=1, le=10)
    created_at: datetime = Field(default_factory=utc_now)
    last_accessed_at: datetime = Field(default_factory=utc_now)


# =============================================================================
# CONFIGURATION
# =============================================================================

class ChiefOfStaffConfig(BaseModel):
    """
    Per-instance configuration.

    Recognizes exactly four options; anything else is rejected.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    primary_provider: AIProvider = Field(
        default=AIProvider.CLAUDE,
        description="Backend tried first"
    )
    fallback_provider: AIProvider = Field(
        default=AIProvider.GEMINI,
        description="Backend tried once if the primary fails or times out"
    )
    enable_autonomous_actions: bool = Field(
        default=False,
        description="If False, every action waits for approval"
    )
    require_approval_for_high_risk: bool = Field(
        default=True,
        description="If True, high-risk actions always wait for approval"
    )


# =============================================================================
# STATE SNAPSHOT
# =============================================================================

class ChiefOfStaffState(BaseModel):
    """
    Externally observable snapshot of one orchestrator.

    `pending_actions` holds every action the session has tracked,
    whatever its status. Use `awaiting_approval` for the ones a human
    still has to decide on.
    """
    model_config = ConfigDict(frozen=True)

    conversation_history: tuple[ConversationMessage, ...] = ()
    pending_actions: tuple[PendingAction, ...] = ()
    is_processing: bool = False
    current_provider: Optional[str] = None
    memories: tuple[Memory, ...] = ()

    @property
    def awaiting_approval(self) -> tuple[PendingAction, ...]:
        """Actions whose status is still pending."""
        return tuple(
            a for a in self.pending_actions if a.status == ActionStatus.PENDING
        )
