"""
Task store

One row per task. The full task is kept as a JSON document next to a few
columns (state, created_at) used for ordering and statistics. Every mutation
is a read-modify-write inside one transaction, serialized per task.
"""
from datetime import datetime
from typing import Callable, Dict, List, Optional
import asyncio
import logging

import sqlalchemy as sa
from sqlalchemy import func, select
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Mapped, declarative_base, mapped_column
from sqlalchemy.pool import StaticPool

from ..models import (
    Artifact, Message, Task, TaskState, TaskStats, TaskStatus,
    can_transition, utc_now
)

logger = logging.getLogger(__name__)

Base = declarative_base()

# Async drivers used when a URL names only the backend
ASYNC_DRIVERS = {"sqlite": "aiosqlite"}

class TaskRecord(Base):
    __tablename__ = "a2a_tasks"
    seq: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(sa.String(36), unique=True, index=True)
    context_id: Mapped[str] = mapped_column(sa.Text)
    state: Mapped[str] = mapped_column(sa.String(32), index=True)
    document: Mapped[dict] = mapped_column(sa.JSON)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), index=True)
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True))

    @classmethod
    def from_task(cls, task: Task) -> "TaskRecord":
        return cls(
            id=task.id,
            context_id=task.contextId,
            state=task.status.state.value,
            document=task.to_wire(),
            created_at=datetime.fromisoformat(task.createdAt),
            updated_at=datetime.fromisoformat(task.updatedAt),
        )

    def to_task(self) -> Task:
        return Task.model_validate(self.document)

class TaskStateError(Exception):
    """Raised when a change would move a task backwards or out of a terminal state"""
    def __init__(self, task_id: str, current: TaskState, target: Optional[TaskState] = None):
        self.task_id = task_id
        self.current = current
        self.target = target
        if target is None:
            message = f"Task {task_id} is {current.value} and can no longer be modified"
        else:
            message = f"Task {task_id} cannot move from {current.value} to {target.value}"
        super().__init__(message)

def create_store_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the task store

    A URL without a driver gets the async one for its backend, so
    ``sqlite:///inteliose.db`` and ``sqlite+aiosqlite:///inteliose.db`` are
    equivalent. In-memory SQLite shares a single connection so that every
    session sees the same database.
    """
    url = make_url(database_url)
    backend = url.get_backend_name()
    if url.drivername == backend and backend in ASYNC_DRIVERS:
        url = url.set(drivername=f"{backend}+{ASYNC_DRIVERS[backend]}")

    kwargs = {}
    if backend == "sqlite" and url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    return create_async_engine(url, echo=False, **kwargs)

class TaskStore:
    """Persistence and lifecycle bookkeeping for A2A tasks"""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        self._locks: Dict[str, asyncio.Lock] = {}
        self._schema_lock = asyncio.Lock()
        self._schema_ready = False

    @classmethod
    def from_url(cls, database_url: str) -> "TaskStore":
        return cls(create_store_engine(database_url))

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        async with self._schema_lock:
            if not self._schema_ready:
                async with self._engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
                self._schema_ready = True

    async def close(self) -> None:
        """Release pooled connections"""
        await self._engine.dispose()

    def _lock_for(self, task_id: str) -> asyncio.Lock:
        return self._locks.setdefault(task_id, asyncio.Lock())

    async def create_task(self, context_id: Optional[str] = None) -> Task:
        """
        Allocate and persist a new pending task

        Args:
            context_id: Conversation id supplied by the caller; generated if absent

        Returns:
            The stored task
        """
        await self._ensure_schema()
        task = Task(contextId=context_id) if context_id else Task()
        async with self._session_factory() as session, session.begin():
            session.add(TaskRecord.from_task(task))
        logger.debug("Created task %s (context %s)", task.id, task.contextId)
        return task

    async def get_task(self, task_id: str) -> Optional[Task]:
        await self._ensure_schema()
        async with self._session_factory() as session:
            record = (await session.execute(
                select(TaskRecord).where(TaskRecord.id == task_id)
            )).scalar_one_or_none()
            return record.to_task() if record else None

    async def _mutate(self, task_id: str, change: Callable[[Task], None]) -> Optional[Task]:
        await self._ensure_schema()
        # Locks of missing or finished tasks are dropped once the write is over
        release = True
        try:
            async with self._lock_for(task_id):
                async with self._session_factory() as session, session.begin():
                    record = (await session.execute(
                        select(TaskRecord).where(TaskRecord.id == task_id).with_for_update()
                    )).scalar_one_or_none()
                    if record is None:
                        return None

                    task = record.to_task()
                    release = task.is_terminal
                    change(task)
                    release = task.is_terminal
                    task.updatedAt = utc_now()

                    record.document = task.to_wire()
                    record.state = task.status.state.value
                    record.updated_at = datetime.fromisoformat(task.updatedAt)
                return task
        finally:
            if release:
                self._locks.pop(task_id, None)

    async def update_status(self, task_id: str, state: TaskState, message: Optional[Message] = None) -> Optional[Task]:
        """
        Replace a task's status

        Args:
            task_id: Task to update
            state: New state; must be reachable from the current one
            message: Optional status message

        Returns:
            The updated task, or None if it does not exist

        Raises:
            TaskStateError: If the transition is not allowed; the task is unchanged
        """
        def change(task: Task) -> None:
            current = task.status.state
            if not can_transition(current, state):
                raise TaskStateError(task_id, current, state)
            task.status = TaskStatus(state=state, message=message)

        return await self._mutate(task_id, change)

    async def add_message(self, task_id: str, message: Message) -> Optional[Task]:
        def change(task: Task) -> None:
            if task.is_terminal:
                raise TaskStateError(task_id, task.status.state)
            task.messages.append(message)

        return await self._mutate(task_id, change)

    async def add_artifact(self, task_id: str, artifact: Artifact) -> Optional[Task]:
        def change(task: Task) -> None:
            if task.is_terminal:
                raise TaskStateError(task_id, task.status.state)
            task.artifacts.append(artifact)

        return await self._mutate(task_id, change)

    async def list_tasks(self, limit: int = 50, offset: int = 0) -> List[Task]:
        """Tasks ordered newest first by creation time"""
        await self._ensure_schema()
        stmt = (
            select(TaskRecord)
            .order_by(TaskRecord.created_at.desc(), TaskRecord.seq.desc())
            .offset(offset)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [record.to_task() for record in result.scalars()]

    async def get_stats(self) -> TaskStats:
        await self._ensure_schema()
        stmt = select(TaskRecord.state, func.count()).group_by(TaskRecord.state)
        async with self._session_factory() as session:
            counts = {state: count for state, count in await session.execute(stmt)}
        return TaskStats(
            total=sum(counts.values()),
            pending=counts.get(TaskState.PENDING.value, 0),
            working=counts.get(TaskState.WORKING.value, 0),
            completed=counts.get(TaskState.COMPLETED.value, 0),
            failed=counts.get(TaskState.FAILED.value, 0),
            canceled=counts.get(TaskState.CANCELED.value, 0),
        )
