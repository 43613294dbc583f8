"""
Prompting for the Chief of Staff

Two deterministic helpers feed every provider call:
1. classify_task(): keyword classifier that tells the model what the
   user is focused on (finance, calendar, notes, ...)
2. build_system_prompt(): role, focus, known user context, and the
   action tag format replies must use to propose side effects
"""

import re
from enum import Enum
from typing import Iterable, Optional

from chief_of_staff.models.actions import ActionType, RiskLevel
from chief_of_staff.models.conversation import ChiefOfStaffConfig, Memory


class TaskCategory(str, Enum):
    FINANCE = "finance"
    CALENDAR = "calendar"
    NOTES = "notes"
    EMAIL = "email"
    STRATEGY = "strategy"
    GENERAL = "general"


# Checked in order; the first match wins
_CATEGORY_PATTERNS: list[tuple[TaskCategory, re.Pattern]] = [
    (TaskCategory.FINANCE, re.compile(r"budget|expense|spend|money|bill|pay|transfer|account")),
    (TaskCategory.CALENDAR, re.compile(r"schedule|meeting|calendar|appointment|event|time")),
    (TaskCategory.NOTES, re.compile(r"note|thought|idea|remember|write|journal")),
    (TaskCategory.EMAIL, re.compile(r"email|message|reply|draft|send|inbox")),
    (TaskCategory.STRATEGY, re.compile(r"plan|strategy|goal|objective|analyze|decision")),
]

MAX_PROMPT_MEMORIES = 10
MIN_PROMPT_IMPORTANCE = 5


def classify_task(message: str) -> TaskCategory:
    """
    Guess what a message is about.

    Substring matching on lowercase text, so "payroll" counts as
    finance and "timeline" as calendar.
    """
    lowered = message.lower()
    for category, pattern in _CATEGORY_PATTERNS:
        if pattern.search(lowered):
            return category
    return TaskCategory.GENERAL


def select_prompt_memories(memories: Iterable[Memory]) -> list[Memory]:
    """Most important memories first, at most ten, importance >= 5."""
    relevant = [m for m in memories if m.importance >= MIN_PROMPT_IMPORTANCE]
    relevant.sort(key=lambda m: m.importance, reverse=True)
    return relevant[:MAX_PROMPT_MEMORIES]


def _approval_guideline(config: Optional[ChiefOfStaffConfig]) -> str:
    if config is None or not config.enable_autonomous_actions:
        return "Nothing you propose happens until the user approves it"
    if config.require_approval_for_high_risk:
        return "Low-risk actions run as soon as you propose them; high-risk actions wait for the user's approval"
    return "Every action you propose runs immediately, so only propose what the user asked for"


def build_system_prompt(
    category: TaskCategory,
    memories: Iterable[Memory] = (),
    config: Optional[ChiefOfStaffConfig] = None,
) -> str:
    context = "\n".join(f"- {m.content}" for m in select_prompt_memories(memories))
    action_types = ", ".join(t.value for t in ActionType)
    risk_levels = ", ".join(r.value for r in RiskLevel)

    return f"""You are the Chief of Staff AI assistant for MoneyLoop, a personal productivity and finance platform.

Your role is to help the user organize their:
- Financial life (budgets, bills, transactions, savings goals)
- Schedule (calendar, meetings, events)
- Thoughts and notes (capture, organize, synthesize)
- Strategic planning (goal setting, decision making, analysis)

Current focus: {category.value}

Key context about the user:
{context or 'No specific preferences stored yet.'}

Guidelines:
1. Be proactive but not intrusive
2. Suggest actions when appropriate, but clearly indicate what you're proposing
3. For financial matters, always prioritize accuracy and security
4. For scheduling, respect existing commitments and preferences
5. {_approval_guideline(config)}

To propose an action, put it on its own line:
[ACTION:type:riskLevel] description {{"optional": "json payload"}}

Where type is one of: {action_types}
And riskLevel is one of: {risk_levels}
Anything that moves money or contacts other people is high risk."""
