"""
Action Admission Policy

Decides, for each proposed action, whether it waits for a human or runs
immediately:

1. Autonomous actions disabled → QUEUE
2. High risk and approval required for high risk → QUEUE
3. Otherwise → EXECUTE

The decision is a pure function of the config and the action's risk
level. It has no side effects; executing is the orchestrator's job.
"""

from enum import Enum

from chief_of_staff.models.actions import PendingAction, RiskLevel
from chief_of_staff.models.conversation import ChiefOfStaffConfig


class AdmissionDecision(str, Enum):
    QUEUE = "queue"
    EXECUTE = "execute"


def decide_admission(
    config: ChiefOfStaffConfig,
    action: PendingAction,
) -> AdmissionDecision:
    if not config.enable_autonomous_actions:
        return AdmissionDecision.QUEUE
    if config.require_approval_for_high_risk and action.risk_level == RiskLevel.HIGH:
        return AdmissionDecision.QUEUE
    return AdmissionDecision.EXECUTE
