"""Prompting helpers for the assistant."""

from chief_of_staff.agents.prompts import (
    TaskCategory,
    build_system_prompt,
    classify_task,
    select_prompt_memories,
)

__all__ = [
    "TaskCategory",
    "build_system_prompt",
    "classify_task",
    "select_prompt_memories",
]
