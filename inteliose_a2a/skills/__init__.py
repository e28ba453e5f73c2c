from ..core.skills import SkillRegistry
from .risk_baseline import risk_baseline, score_snapshot
from .token_health_check import token_health_check, FALLBACK_VERDICT
from .market import MarketDataClient, MarketDataError, MarketSnapshot
from .llm import GeminiClient, LLMError, extract_verdict

def default_registry() -> SkillRegistry:
    """Registry with every skill this agent advertises"""
    return SkillRegistry([token_health_check, risk_baseline])
