"""
Request executor for Inteliose A2A

Dispatches JSON-RPC methods and drives every SendMessage through the task
state machine: pending -> working -> completed | failed, with cancel allowed
from any non-terminal state.
"""
from typing import Any, Awaitable, Callable, Dict, List, Optional
import logging

from pydantic import ValidationError

from ..db.store import TaskStateError, TaskStore
from ..models import (
    Artifact, Message, Task, TaskState, TaskStats, TextPart,
    agent_message, text_part
)
from ..notify import Notifier, dispatch_notification
from .parser import parse_skill_request
from .rpc import (
    JSONRPCException, JSONRPCInternalError, JSONRPCInvalidParams,
    JSONRPCMethodNotFound, JSONRPCRequest, JSONRPCResponse,
    JSONRPCTaskNotCancelable, JSONRPCTaskNotFound, create_success_response
)
from .skills import SkillContext, SkillRegistry

logger = logging.getLogger(__name__)

NO_SKILL_MESSAGE = "Could not determine which skill to use. Please provide a tokenAddress and chain."
DEFAULT_COMPLETION_MESSAGE = "Analysis complete."
DEFAULT_FAILURE_MESSAGE = "Skill execution failed."
INTERNAL_FAILURE_MESSAGE = "Internal error while processing the task."

DEFAULT_LIST_LIMIT = 50

class RequestExecutor:
    """
    JSON-RPC method dispatcher

    The executor is the only writer of task state. It owns no globals: the
    store, the skills and the notifier are handed in at construction.
    """

    def __init__(self, store: TaskStore, skills: SkillRegistry, context: SkillContext,
                 notifier: Optional[Notifier] = None):
        self._store = store
        self._skills = skills
        self._context = context
        self._notifier = notifier
        self._methods: Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
            "SendMessage": self.send_message,
            "GetTask": self.get_task,
            "ListTasks": self.list_tasks,
            "CancelTask": self.cancel_task,
        }

    @property
    def skills(self) -> SkillRegistry:
        return self._skills

    async def handle(self, request: JSONRPCRequest) -> JSONRPCResponse:
        """
        Handle one JSON-RPC request

        Protocol errors come back as error responses; this method does not raise.

        Args:
            request: A validated JSON-RPC envelope

        Returns:
            JSONRPCResponse carrying either a result or an error
        """
        handler = self._methods.get(request.method)
        if handler is None:
            return JSONRPCMethodNotFound(request.method).to_response(request.id)

        try:
            result = await handler(request.params or {})
        except JSONRPCException as e:
            return e.to_response(request.id)
        except Exception:
            logger.exception("Unhandled error in %s", request.method)
            return JSONRPCInternalError().to_response(request.id)
        return create_success_response(request.id, result)

    async def send_message(self, params: Dict[str, Any]) -> Dict[str, Any]:
        message = self._validate_message(params.get("message"))
        context_id = params.get("contextId") or message.contextId
        if context_id is not None and not isinstance(context_id, str):
            raise JSONRPCInvalidParams("contextId must be a string")

        task = await self._store.create_task(context_id)
        logger.info("Created task %s", task.id)
        try:
            task = await self._process(task, message)
        except TaskStateError as e:
            # Canceled while the skill was running: the first terminal state stands
            logger.warning("Discarding late result for task %s: %s", task.id, e)
            task = self._require(await self._store.get_task(task.id), task.id)
        except Exception:
            logger.exception("Processing failed for task %s", task.id)
            task = await self._fail(task.id, INTERNAL_FAILURE_MESSAGE)

        logger.info("Task %s finished as %s", task.id, task.status.state.value)
        return {"task": task.to_wire()}

    async def get_task(self, params: Dict[str, Any]) -> Dict[str, Any]:
        task = await self._lookup(params.get("taskId"))
        return {"task": task.to_wire()}

    async def list_tasks(self, params: Dict[str, Any]) -> Dict[str, Any]:
        limit = _int_param(params, "limit", DEFAULT_LIST_LIMIT, minimum=1)
        offset = _int_param(params, "offset", 0, minimum=0)
        tasks = await self._store.list_tasks(limit, offset)
        return {"tasks": [task.to_wire() for task in tasks]}

    async def cancel_task(self, params: Dict[str, Any]) -> Dict[str, Any]:
        task = await self._lookup(params.get("taskId"))
        if task.is_terminal:
            raise JSONRPCTaskNotCancelable(task.id, task.status.state.value)
        try:
            canceled = await self._store.update_status(task.id, TaskState.CANCELED)
        except TaskStateError as e:
            raise JSONRPCTaskNotCancelable(task.id, e.current.value)
        logger.info("Canceled task %s", task.id)
        return {"task": self._require(canceled, task.id).to_wire()}

    async def get_stats(self) -> TaskStats:
        return await self._store.get_stats()

    async def recent_tasks(self, limit: int = 20) -> List[Task]:
        return await self._store.list_tasks(limit)

    async def _process(self, task: Task, message: Message) -> Task:
        """Run the parse -> dispatch -> persist pipeline for a freshly created task"""
        inbound = message.model_copy(update={"taskId": task.id, "contextId": task.contextId})
        self._require(await self._store.add_message(task.id, inbound), task.id)
        self._require(await self._store.update_status(task.id, TaskState.WORKING), task.id)

        request = parse_skill_request(message)
        if not request.resolved:
            return await self._fail(task.id, NO_SKILL_MESSAGE)

        result = await self._skills.execute(request.skill_id, request.input, self._context)
        if result.error is not None:
            return await self._fail(task.id, result.error or DEFAULT_FAILURE_MESSAGE)

        artifact = Artifact(name=f"{request.skill_id}-result", parts=result.parts)
        self._require(await self._store.add_artifact(task.id, artifact), task.id)

        summary = next((part for part in result.parts if isinstance(part, TextPart)), None)
        completed = await self._store.update_status(
            task.id,
            TaskState.COMPLETED,
            Message(role="agent", parts=[summary or text_part(DEFAULT_COMPLETION_MESSAGE)]),
        )
        completed = self._require(completed, task.id)
        dispatch_notification(self._notifier, completed)
        return completed

    async def _fail(self, task_id: str, reason: str) -> Task:
        try:
            failed = await self._store.update_status(task_id, TaskState.FAILED, agent_message(reason))
        except TaskStateError as e:
            logger.warning("Task %s already final, not marking failed: %s", task_id, e)
            failed = await self._store.get_task(task_id)
        return self._require(failed, task_id)

    async def _lookup(self, task_id: Any) -> Task:
        if not task_id or not isinstance(task_id, str):
            raise JSONRPCTaskNotFound()
        task = await self._store.get_task(task_id)
        if task is None:
            raise JSONRPCTaskNotFound(task_id)
        return task

    @staticmethod
    def _validate_message(raw: Any) -> Message:
        if not isinstance(raw, dict) or not raw.get("parts"):
            raise JSONRPCInvalidParams("Invalid message: must contain parts")
        try:
            return Message.model_validate(raw)
        except ValidationError as e:
            raise JSONRPCInvalidParams(
                "Invalid message",
                data={"errors": [err["msg"] for err in e.errors()]}
            )

    @staticmethod
    def _require(task: Optional[Task], task_id: str) -> Task:
        # The executor created this task; losing it mid-request is a bug, not a client error
        if task is None:
            raise RuntimeError(f"Task {task_id} vanished from the store")
        return task

def _int_param(params: Dict[str, Any], name: str, default: int, *, minimum: int) -> int:
    value = params.get(name)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise JSONRPCInvalidParams(f"{name} must be an integer >= {minimum}")
    return value
