import httpx

from inteliose_a2a.config import Settings
from inteliose_a2a.db.store import TaskStore
from inteliose_a2a.notify import FarcasterPublisher, LoggingNotifier
from inteliose_a2a.server import build_executor, build_notifier

def test_publishing_needs_flag_and_credentials():
    http = httpx.AsyncClient()

    assert isinstance(build_notifier(Settings(FARCASTER_AUTO_CAST=False), http), LoggingNotifier)
    assert isinstance(build_notifier(Settings(FARCASTER_AUTO_CAST=True, NEYNAR_API_KEY=None), http), LoggingNotifier)
    enabled = Settings(FARCASTER_AUTO_CAST=True, NEYNAR_API_KEY="key", NEYNAR_SIGNER_UUID="signer")
    assert isinstance(build_notifier(enabled, http), FarcasterPublisher)

def test_build_executor_registers_both_skills():
    settings = Settings(GEMINI_API_KEY=None)
    executor = build_executor(settings, httpx.AsyncClient(), TaskStore.from_url("sqlite://"))

    assert "token-health-check" in executor.skills
    assert "risk-baseline" in executor.skills
