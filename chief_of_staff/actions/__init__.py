"""Pending actions: storage, admission policy and execution."""

from chief_of_staff.actions.executors import (
    ActionExecutionError,
    ActionExecutor,
    CallableExecutor,
    ExecutorRegistry,
    HttpActionExecutor,
    NoExecutorError,
)
from chief_of_staff.actions.policy import AdmissionDecision, decide_admission
from chief_of_staff.actions.queue import (
    ActionNotActionableError,
    PendingActionQueue,
)

__all__ = [
    "ActionExecutionError",
    "ActionExecutor",
    "ActionNotActionableError",
    "AdmissionDecision",
    "CallableExecutor",
    "ExecutorRegistry",
    "HttpActionExecutor",
    "NoExecutorError",
    "PendingActionQueue",
    "decide_admission",
]
