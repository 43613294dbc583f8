"""
Pending Action Queue

Stores every action of a session by id and enforces the status machine.
Actions are immutable; a transition replaces the stored copy.

Pending actions are never removed. Terminal actions stay for the
lifetime of the session so the UI can show what happened to them.
"""

from typing import Iterator, Optional

from chief_of_staff.models.actions import ActionStatus, PendingAction


class ActionNotActionableError(LookupError):
    """No action with this id, or it is no longer pending."""

    def __init__(self, action_id: str, status: Optional[ActionStatus] = None):
        if status is None:
            message = f"Action {action_id} not found"
        else:
            message = f"Action {action_id} is {status.value}, not pending"
        super().__init__(message)
        self.action_id = action_id
        self.status = status


class PendingActionQueue:
    def __init__(self):
        self._actions: dict[str, PendingAction] = {}

    def __len__(self) -> int:
        return len(self._actions)

    def __contains__(self, action_id: object) -> bool:
        return action_id in self._actions

    def __iter__(self) -> Iterator[PendingAction]:
        return iter(list(self._actions.values()))

    def add(self, action: PendingAction) -> PendingAction:
        """
        Insert a new action.

        Raises:
            ValueError: An action with the same id exists
        """
        if action.id in self._actions:
            raise ValueError(f"Duplicate action id {action.id}")
        self._actions[action.id] = action
        return action

    def get(self, action_id: str) -> Optional[PendingAction]:
        return self._actions.get(action_id)

    def require_pending(self, action_id: str) -> PendingAction:
        """
        Look up an action a human can still decide on.

        Raises:
            ActionNotActionableError: Unknown id or status is not pending
        """
        action = self._actions.get(action_id)
        if action is None:
            raise ActionNotActionableError(action_id)
        if action.status != ActionStatus.PENDING:
            raise ActionNotActionableError(action_id, action.status)
        return action

    def transition(
        self,
        action_id: str,
        status: ActionStatus,
        error: Optional[str] = None,
    ) -> PendingAction:
        """
        Move an action to a new status and store the updated copy.

        Raises:
            ActionNotActionableError: Unknown id
            ValueError: Transition not allowed from the current status
        """
        action = self._actions.get(action_id)
        if action is None:
            raise ActionNotActionableError(action_id)
        updated = action.with_status(status, error=error)
        self._actions[action_id] = updated
        return updated

    def by_status(self, status: ActionStatus) -> list[PendingAction]:
        return [a for a in self._actions.values() if a.status == status]

    def pending(self) -> list[PendingAction]:
        """Actions awaiting a human decision."""
        return self.by_status(ActionStatus.PENDING)

    def all(self) -> list[PendingAction]:
        """Every tracked action, in insertion order."""
        return list(self._actions.values())

    def counts(self) -> dict[str, int]:
        """Number of actions per status, for badges."""
        counts = {status.value: 0 for status in ActionStatus}
        for action in self._actions.values():
            counts[action.status.value] += 1
        return counts
