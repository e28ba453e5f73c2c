"""
Completion notifications

After a task completes the executor hands it to a notifier without waiting for
the outcome. Publishing problems are logged here and never reach the caller.
"""
from typing import Any, Dict, Optional, Protocol, Set
import asyncio
import logging

import httpx

from .models import DataPart, Task, TaskState

logger = logging.getLogger(__name__)

MAX_CAST_LENGTH = 320
CAST_SUFFIX = " | daointel.io"
HEALTH_EMOJI = {"GREEN": "\U0001F7E2", "YELLOW": "\U0001F7E1"}
RED_EMOJI = "\U0001F534"

class Notifier(Protocol):
    async def notify(self, task: Task) -> None:
        ...

# Strong references to in-flight notifications until they finish
_pending: Set["asyncio.Task[None]"] = set()

def _on_done(handle: "asyncio.Task[None]") -> None:
    _pending.discard(handle)
    if handle.cancelled():
        return
    error = handle.exception()
    if error is not None:
        logger.error("Notification failed: %s", error, exc_info=error)

async def _run(notifier: Notifier, task: Task) -> None:
    await notifier.notify(task)

def dispatch_notification(notifier: Optional[Notifier], task: Task) -> Optional["asyncio.Task[None]"]:
    """
    Schedule ``notifier.notify(task)`` in the background

    Returns:
        The background handle, or None when there is no notifier
    """
    if notifier is None:
        return None
    handle = asyncio.get_running_loop().create_task(_run(notifier, task))
    _pending.add(handle)
    handle.add_done_callback(_on_done)
    return handle

async def drain_notifications() -> None:
    """Wait for in-flight notifications, e.g. on shutdown"""
    if _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)

def _result_data(task: Task) -> Optional[Dict[str, Any]]:
    if not task.artifacts:
        return None
    for part in task.artifacts[0].parts:
        if isinstance(part, DataPart):
            return part.data
    return None

def format_health_verdict(task: Task) -> Optional[str]:
    """
    Render a completed health check as a cast of at most 320 characters

    Returns None for results without an AI verdict (e.g. risk baselines).
    """
    data = _result_data(task)
    if not data or not data.get("aiVerdict"):
        return None

    verdict = data["aiVerdict"]
    health = verdict.get("health", "")
    symbol = (data.get("tokenData") or {}).get("symbol") or "TOKEN"
    chain = data.get("chain") or "Base"

    text = f"{HEALTH_EMOJI.get(health, RED_EMOJI)} {health} | {symbol} on {chain} | Risk: {verdict.get('riskLevel')}"

    summary = verdict.get("summary")
    if summary:
        remaining = MAX_CAST_LENGTH - len(text) - len(" | ") - len(CAST_SUFFIX)
        if len(summary) > remaining:
            summary = summary[:max(remaining - 3, 0)] + "..."
        text += f" | {summary}"

    text += CAST_SUFFIX
    return text[:MAX_CAST_LENGTH]

class LoggingNotifier:
    """Records completions in the log; used when publishing is disabled"""

    async def notify(self, task: Task) -> None:
        logger.info("Task %s completed with %d artifact(s)", task.id, len(task.artifacts))

class FarcasterPublisher:
    """Publishes completed health verdicts as Farcaster casts through Neynar"""

    def __init__(self, http: httpx.AsyncClient, *, api_key: str, signer_uuid: str,
                 base_url: str = "https://api.neynar.com", timeout: float = 10.0):
        self._http = http
        self._api_key = api_key
        self._signer_uuid = signer_uuid
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def notify(self, task: Task) -> None:
        if task.status.state != TaskState.COMPLETED:
            return
        text = format_health_verdict(task)
        if not text:
            return

        response = await self._http.post(
            f"{self._base_url}/v2/farcaster/cast",
            json={"signer_uuid": self._signer_uuid, "text": text},
            headers={"x-api-key": self._api_key},
            timeout=self._timeout,
        )
        response.raise_for_status()
        cast_hash = (response.json().get("cast") or {}).get("hash")
        logger.info("Published task %s as cast %s", task.id, cast_hash)
