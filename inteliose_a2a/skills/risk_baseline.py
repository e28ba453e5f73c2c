"""
Risk Baseline skill

Quick scan of a token's market structure. No AI call: the score is an additive
function of the market snapshot alone, so the same snapshot at the same moment
always yields the same band.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.parser import RISK_BASELINE
from ..core.skills import SkillContext, SkillResult, skill
from ..models import RiskBaselineInput, data_part, text_part, utc_now
from .market import (
    MarketDataError, MarketSnapshot, format_millions, format_price
)
from .validation import validate_token_request

HOUR_MS = 60 * 60 * 1000

@dataclass
class RiskAssessment:
    score: int = 0
    flags: List[str] = field(default_factory=list)

    @property
    def band(self) -> str:
        return risk_band(self.score)

    def add(self, points: int, flag: str) -> None:
        self.score += points
        self.flags.append(flag)

def risk_band(score: int) -> str:
    if score >= 60:
        return "Critical"
    if score >= 40:
        return "Elevated"
    if score >= 20:
        return "Moderate"
    return "Low"

def score_snapshot(snapshot: MarketSnapshot, now_ms: float) -> RiskAssessment:
    """
    Score the four independent market signals

    Args:
        snapshot: Market data of the token's primary pair
        now_ms: Current time in epoch milliseconds, used for the pair age

    Returns:
        RiskAssessment with the summed score and one flag per triggered signal
    """
    assessment = RiskAssessment()
    liquidity = snapshot.liquidity_usd
    volume = snapshot.volume_24h

    if not liquidity or liquidity < 10_000:
        assessment.add(30, "Very low liquidity (< $10K)")
    elif liquidity < 50_000:
        assessment.add(15, "Low liquidity (< $50K)")

    if not volume or volume < 1_000:
        assessment.add(25, "Very low 24h volume (< $1K)")
    elif volume < 10_000:
        assessment.add(10, "Low 24h volume (< $10K)")

    if snapshot.pair_created_at:
        age_hours = (now_ms - snapshot.pair_created_at) / HOUR_MS
        if age_hours < 24:
            assessment.add(20, "Token pair is less than 24 hours old")
        elif age_hours < 72:
            assessment.add(10, "Token pair is less than 3 days old")

    if snapshot.market_cap and liquidity:
        if snapshot.market_cap / liquidity > 50:
            assessment.add(20, "Market cap to liquidity ratio is very high (> 50x)")

    return assessment

def summary_line(assessment: RiskAssessment) -> str:
    return (
        f"Risk: {assessment.band} (score: {assessment.score}/100) | "
        f"{len(assessment.flags)} flags: {'; '.join(assessment.flags)}"
    )

@skill(
    id=RISK_BASELINE,
    name="Risk Baseline Scan",
    input_model=RiskBaselineInput,
    tags=["defi", "risk", "security", "quick-check"],
)
async def risk_baseline(request: RiskBaselineInput, context: SkillContext) -> SkillResult:
    """
    Quick risk scan of a token from its liquidity, volume, pair age and
    market-cap-to-liquidity ratio. Returns a risk band (Low, Moderate, Elevated,
    Critical), the score and the triggered flags. No AI call, fast and lightweight.
    """
    error = validate_token_request(request.tokenAddress, request.chain)
    if error:
        return SkillResult.failure(error)

    try:
        snapshot: Optional[MarketSnapshot] = await context.market.fetch_snapshot(request.tokenAddress)
    except MarketDataError as e:
        return SkillResult.failure(f"Risk baseline scan failed: {e}")

    if snapshot is None:
        return SkillResult.failure("Token not found on DexScreener")

    assessment = score_snapshot(snapshot, context.now_ms())
    result = {
        "tokenAddress": request.tokenAddress,
        "chain": request.chain,
        "tokenInfo": {
            "name": snapshot.name,
            "symbol": snapshot.symbol,
            "price": format_price(snapshot.price_usd),
            "liquidity": format_millions(snapshot.liquidity_usd),
            "volume24h": format_millions(snapshot.volume_24h),
            "marketCap": format_millions(snapshot.market_cap),
        },
        "riskBaseline": assessment.band,
        "riskScore": assessment.score,
        "riskFlags": assessment.flags,
        "timestamp": utc_now(),
        "source": "inteliose-a2a",
    }
    return SkillResult(parts=[data_part(result), text_part(summary_line(assessment))])
