import json

import httpx
import pytest

from inteliose_a2a.models import Artifact, Task, TaskState, TaskStatus, data_part, text_part
from inteliose_a2a.notify import (
    MAX_CAST_LENGTH, FarcasterPublisher, dispatch_notification, drain_notifications,
    format_health_verdict
)

from conftest import RecordingNotifier

def completed_task(data=None, state=TaskState.COMPLETED) -> Task:
    artifacts = []
    if data is not None:
        artifacts.append(Artifact(name="token-health-check-result", parts=[data_part(data), text_part("summary")]))
    return Task(status=TaskStatus(state=state), artifacts=artifacts)

def health_result(health="GREEN", summary="Deep liquidity."):
    return {
        "tokenData": {"symbol": "EXM"},
        "chain": "Base",
        "aiVerdict": {"health": health, "riskLevel": "Low", "summary": summary},
    }

def test_format_health_verdict():
    text = format_health_verdict(completed_task(health_result()))
    assert text == "\U0001F7E2 GREEN | EXM on Base | Risk: Low | Deep liquidity. | daointel.io"

def test_format_unknown_health_uses_red():
    text = format_health_verdict(completed_task(health_result(health="RED")))
    assert text.startswith("\U0001F534 RED | EXM on Base")

def test_format_truncates_long_summary():
    text = format_health_verdict(completed_task(health_result(summary="x" * 1000)))

    assert len(text) <= MAX_CAST_LENGTH
    assert text.endswith("... | daointel.io")

def test_format_skips_results_without_verdict():
    assert format_health_verdict(completed_task({"riskBaseline": "Low"})) is None
    assert format_health_verdict(completed_task()) is None

@pytest.mark.asyncio
async def test_dispatch_runs_in_background():
    notifier = RecordingNotifier()
    task = completed_task(health_result())

    handle = dispatch_notification(notifier, task)
    await drain_notifications()

    assert handle.done()
    assert notifier.tasks == [task]

@pytest.mark.asyncio
async def test_dispatch_swallows_failures():
    handle = dispatch_notification(RecordingNotifier(fail=True), completed_task())
    await drain_notifications()

    assert handle.done()
    assert isinstance(handle.exception(), RuntimeError)

def test_dispatch_without_notifier():
    assert dispatch_notification(None, completed_task()) is None

@pytest.mark.asyncio
async def test_farcaster_publisher_posts_cast():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"cast": {"hash": "0xcast"}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        publisher = FarcasterPublisher(http, api_key="key", signer_uuid="signer", base_url="https://neynar.test")
        await publisher.notify(completed_task(health_result()))
        await publisher.notify(completed_task({"riskBaseline": "Low"}))
        await publisher.notify(completed_task(health_result(), state=TaskState.FAILED))

    assert len(requests) == 1
    assert requests[0].url.path == "/v2/farcaster/cast"
    assert requests[0].headers["x-api-key"] == "key"
    body = json.loads(requests[0].content)
    assert body["signer_uuid"] == "signer"
    assert body["text"].endswith(" | daointel.io")

@pytest.mark.asyncio
async def test_farcaster_publisher_raises_on_rejection():
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(401))) as http:
        publisher = FarcasterPublisher(http, api_key="key", signer_uuid="signer")
        with pytest.raises(httpx.HTTPStatusError):
            await publisher.notify(completed_task(health_result()))
