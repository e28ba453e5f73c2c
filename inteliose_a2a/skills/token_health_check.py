"""
Token Health Check skill

Full DYOR analysis: market data plus an AI verdict. The market data is the
primary deliverable; when the model is unavailable the verdict degrades to a
neutral fallback instead of failing the task.
"""
from typing import Any, Dict, Optional
import copy
import logging

from ..core.parser import TOKEN_HEALTH_CHECK
from ..core.skills import SkillContext, SkillResult, skill
from ..models import TokenHealthCheckInput, data_part, text_part, utc_now
from .llm import LLMError, extract_verdict
from .market import MarketDataError, MarketSnapshot, format_millions, format_price
from .validation import validate_token_request

logger = logging.getLogger(__name__)

FALLBACK_VERDICT: Dict[str, Any] = {
    "health": "YELLOW",
    "riskLevel": "Moderate",
    "summary": "AI analysis unavailable. Review token data manually.",
    "recommendation": "Proceed with caution and verify on-chain data.",
    "keyPoints": ["AI verdict could not be generated"],
    "failureModes": ["Unknown - manual review needed"],
}

PROMPT_TEMPLATE = """You are a cryptocurrency token analyst. Analyze this token and provide a verdict.

Token: {name} ({symbol})
Chain: {chain}
Price: {price}
24h Volume: {volume}
Liquidity: {liquidity}
Market Cap: {market_cap}
24h Price Change: {price_change}%

Respond with exactly one JSON object in this format and nothing else:
{{
  "health": "GREEN" | "YELLOW" | "RED",
  "riskLevel": "Low" | "Moderate" | "Elevated" | "Critical",
  "summary": "2-3 sentence summary",
  "recommendation": "1 sentence actionable recommendation",
  "keyPoints": ["point1", "point2", "point3"],
  "failureModes": ["mode1", "mode2"]
}}"""

def token_data(snapshot: MarketSnapshot) -> Dict[str, Any]:
    return {
        "name": snapshot.name,
        "symbol": snapshot.symbol,
        "price": format_price(snapshot.price_usd),
        "volume24h": format_millions(snapshot.volume_24h),
        "liquidity": format_millions(snapshot.liquidity_usd),
        "marketCap": format_millions(snapshot.market_cap),
        "priceChange24h": snapshot.price_change_24h,
        "txns24h": snapshot.txns_24h,
    }

def build_prompt(data: Dict[str, Any], chain: str) -> str:
    price_change = data["priceChange24h"]
    return PROMPT_TEMPLATE.format(
        name=data["name"],
        symbol=data["symbol"],
        chain=chain,
        price=data["price"] or "N/A",
        volume=data["volume24h"] or "N/A",
        liquidity=data["liquidity"] or "N/A",
        market_cap=data["marketCap"] or "N/A",
        price_change="N/A" if price_change is None else price_change,
    )

async def ai_verdict(llm: Optional[Any], prompt: str, token_address: str) -> Dict[str, Any]:
    """Ask the model for a verdict, falling back to the neutral one on any failure"""
    if llm is None:
        return copy.deepcopy(FALLBACK_VERDICT)
    try:
        reply = await llm.generate(prompt)
    except LLMError as e:
        logger.warning("AI analysis failed for %s, using fallback verdict: %s", token_address, e)
        return copy.deepcopy(FALLBACK_VERDICT)

    verdict = extract_verdict(reply)
    if verdict is None:
        logger.warning("No verdict object in LLM reply for %s, using fallback verdict", token_address)
        return copy.deepcopy(FALLBACK_VERDICT)
    return verdict

@skill(
    id=TOKEN_HEALTH_CHECK,
    name="Token Health Check",
    input_model=TokenHealthCheckInput,
    tags=["defi", "token-analysis", "risk", "base", "solana", "dyor", "ai-verdict"],
)
async def token_health_check(request: TokenHealthCheckInput, context: SkillContext) -> SkillResult:
    """
    Full DYOR analysis of a token. Returns an AI-powered health verdict
    (GREEN/YELLOW/RED), risk assessment, failure modes, key points, and
    actionable recommendations. Requires a token address and chain (Base or Solana).
    """
    error = validate_token_request(request.tokenAddress, request.chain)
    if error:
        return SkillResult.failure(error)

    try:
        snapshot = await context.market.fetch_snapshot(request.tokenAddress)
    except MarketDataError as e:
        if e.status_code is not None:
            return SkillResult.failure("Failed to fetch token data from DexScreener")
        return SkillResult.failure(f"Token health check failed: {e}")

    if snapshot is None:
        return SkillResult.failure("Token not found on DexScreener. It may not be listed yet.")

    data = token_data(snapshot)
    verdict = await ai_verdict(context.llm, build_prompt(data, request.chain), request.tokenAddress)

    result = {
        "tokenData": data,
        "chain": request.chain,
        "address": request.tokenAddress,
        "aiVerdict": verdict,
        "timestamp": utc_now(),
        "source": "inteliose-a2a",
    }
    if request.devWallet:
        result["devWallet"] = request.devWallet

    summary = f"Health: {verdict.get('health')} | Risk: {verdict.get('riskLevel')} | {verdict.get('summary', '')}"
    return SkillResult(parts=[data_part(result), text_part(summary)])
