"""
Action Executors

An executor performs the side effect behind an approved action: creating
the calendar event, sending the email, submitting the payment.

Executors signal failure by raising. The orchestrator turns any raised
error into a `failed` action; executors never change action status
themselves.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Union

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from chief_of_staff.models.actions import ActionType, PendingAction

logger = structlog.get_logger(__name__)


class ActionExecutionError(Exception):
    """The side effect of an action could not be performed."""

    def __init__(self, message: str, action_id: Optional[str] = None):
        super().__init__(message)
        self.action_id = action_id


class NoExecutorError(ActionExecutionError):
    """No executor is registered for the action's type."""
    pass


class ActionExecutor(ABC):
    @abstractmethod
    async def execute(self, action: PendingAction) -> None:
        """
        Perform the action's side effect.

        Raises:
            ActionExecutionError: (or any exception) the side effect failed
        """
        pass

    async def aclose(self) -> None:
        return None


class CallableExecutor(ActionExecutor):
    """Adapts an `async def handler(action)` function to an executor."""

    def __init__(self, handler: Callable[[PendingAction], Awaitable[None]]):
        self._handler = handler

    async def execute(self, action: PendingAction) -> None:
        await self._handler(action)


class HttpActionExecutor(ActionExecutor):
    """
    Executes actions through the MoneyLoop backend.

    POSTs the action as JSON to the execution endpoint; any non-2xx
    response is a failure. Only connection errors (request never sent)
    are retried, so a payment is never submitted twice.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        path: str = "/api/chief-of-staff/execute",
        api_token: Optional[str] = None,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self._path = path
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout_seconds,
        )

    @retry(
        retry=retry_if_exception_type(httpx.ConnectError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _post(self, body: dict) -> httpx.Response:
        return await self._client.post(self._path, json=body)

    async def execute(self, action: PendingAction) -> None:
        body = action.model_dump(mode="json")
        try:
            response = await self._post(body)
        except httpx.HTTPError as e:
            raise ActionExecutionError(
                f"Execution service unreachable: {e}", action_id=action.id
            ) from e

        if response.is_error:
            raise ActionExecutionError(
                f"Execution service rejected {action.type.value} action: HTTP {response.status_code}",
                action_id=action.id,
            )

        logger.info("action_executed_remotely", **action.to_log_dict())

    async def aclose(self) -> None:
        await self._client.aclose()


class ExecutorRegistry:
    """
    Routes actions to executors by type.

    A default executor, when set, handles every type without its own
    registration.
    """

    def __init__(
        self,
        executors: Optional[dict[Union[ActionType, str], ActionExecutor]] = None,
        default: Optional[ActionExecutor] = None,
    ):
        self._executors: dict[ActionType, ActionExecutor] = {}
        self._default = default
        for action_type, executor in (executors or {}).items():
            self.register(action_type, executor)

    def register(self, action_type: Union[ActionType, str], executor: ActionExecutor) -> None:
        self._executors[ActionType(action_type)] = executor

    def get(self, action_type: Union[ActionType, str]) -> ActionExecutor:
        """
        Raises:
            NoExecutorError: Nothing registered for the type and no default
        """
        executor = self._executors.get(ActionType(action_type), self._default)
        if executor is None:
            raise NoExecutorError(f"No executor registered for {ActionType(action_type).value} actions")
        return executor

    async def execute(self, action: PendingAction) -> None:
        await self.get(action.type).execute(action)

    async def aclose(self) -> None:
        seen = set()
        for executor in [*self._executors.values(), self._default]:
            if executor is None or id(executor) in seen:
                continue
            seen.add(id(executor))
            await executor.aclose()
