from typing import Any, Dict, List, Optional

import pytest

from inteliose_a2a.core.executor import RequestExecutor
from inteliose_a2a.core.skills import SkillContext
from inteliose_a2a.db.store import TaskStore
from inteliose_a2a.skills import default_registry
from inteliose_a2a.skills.market import MarketSnapshot

EVM_ADDRESS = "0x1234567890123456789012345678901234567890"
NOW = 1_700_000_000.0
DAY_MS = 24 * 60 * 60 * 1000

def healthy_snapshot() -> MarketSnapshot:
    return MarketSnapshot(
        name="Example",
        symbol="EXM",
        price_usd="0.0123",
        volume_24h=2_500_000,
        liquidity_usd=4_000_000,
        market_cap=40_000_000,
        pair_created_at=NOW * 1000 - 30 * DAY_MS,
        price_change_24h=3.4,
    )

def dexscreener_pair(**overrides: Any) -> Dict[str, Any]:
    pair = {
        "baseToken": {"name": "Example", "symbol": "EXM"},
        "priceUsd": "0.0123",
        "volume": {"h24": 2_500_000},
        "liquidity": {"usd": 4_000_000},
        "marketCap": 40_000_000,
        "pairCreatedAt": NOW * 1000 - 30 * DAY_MS,
        "priceChange": {"h24": 3.4},
        "txns": {"h24": {"buys": 10, "sells": 4}},
    }
    pair.update(overrides)
    return pair

class FakeMarket:
    """Stands in for MarketDataClient"""
    def __init__(self, snapshot: Optional[MarketSnapshot] = None, error: Optional[Exception] = None):
        self.snapshot = snapshot
        self.error = error
        self.calls: List[str] = []

    async def fetch_snapshot(self, token_address: str) -> Optional[MarketSnapshot]:
        self.calls.append(token_address)
        if self.error:
            raise self.error
        return self.snapshot

class FakeLLM:
    """Stands in for GeminiClient"""
    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply

class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.tasks = []

    async def notify(self, task) -> None:
        self.tasks.append(task)
        if self.fail:
            raise RuntimeError("publish failed")

VERDICT_REPLY = (
    'Here is my analysis:\n```json\n'
    '{"health": "GREEN", "riskLevel": "Low", "summary": "Deep liquidity and steady volume.", '
    '"recommendation": "Fine for a small position.", "keyPoints": ["liquid"], "failureModes": []}\n```'
)

@pytest.fixture
def store() -> TaskStore:
    """A fresh in-memory task store"""
    return TaskStore.from_url("sqlite://")

@pytest.fixture
def market() -> FakeMarket:
    return FakeMarket(snapshot=healthy_snapshot())

@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM(reply=VERDICT_REPLY)

@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()

@pytest.fixture
def context(market, llm) -> SkillContext:
    return SkillContext(market=market, llm=llm, clock=lambda: NOW)

@pytest.fixture
def executor(store, context, notifier) -> RequestExecutor:
    return RequestExecutor(store, default_registry(), context, notifier=notifier)
