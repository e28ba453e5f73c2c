"""
Skill resolution for inbound A2A messages

Callers range from structured A2A clients sending data parts to agents that
just paste an address into a sentence. Resolution runs in tiers and the first
tier that matches wins:

1. a data part carrying ``skillId`` (input is its ``input`` field or the payload)
2. a data part carrying ``tokenAddress`` (skill inferred from the payload shape)
3. a text part holding a JSON object with either of the above
4. an EVM or Solana address found in text that does not parse as JSON
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import json
import re

from ..models import DataPart, Message, TextPart

TOKEN_HEALTH_CHECK = "token-health-check"
RISK_BASELINE = "risk-baseline"

EVM_ADDRESS = re.compile(r"0x[a-fA-F0-9]{40}")
# base58 alphabet: no 0, O, I or l
SOLANA_ADDRESS = re.compile(r"[1-9A-HJ-NP-Za-km-z]{32,44}")

@dataclass(frozen=True)
class SkillRequest:
    skill_id: Optional[str]
    input: Any

    @property
    def resolved(self) -> bool:
        return self.skill_id is not None

UNRESOLVED = SkillRequest(skill_id=None, input=None)

def infer_skill(payload: Dict[str, Any]) -> Optional[SkillRequest]:
    """
    Turn a loosely-typed payload into a skill request

    An explicit ``skillId`` always wins. Otherwise a payload with a
    ``tokenAddress`` is routed by shape: a ``devWallet`` key asks for the full
    health check, its absence for the lightweight risk baseline.

    Args:
        payload: A decoded JSON object from a data or text part

    Returns:
        The skill request, or None when the payload names neither
    """
    if payload.get("skillId"):
        skill_input = payload.get("input") or payload
        return SkillRequest(skill_id=str(payload["skillId"]), input=skill_input)
    if payload.get("tokenAddress"):
        skill_id = TOKEN_HEALTH_CHECK if "devWallet" in payload else RISK_BASELINE
        return SkillRequest(skill_id=skill_id, input=payload)
    return None

def extract_address(text: str) -> Optional[SkillRequest]:
    """Find a token address in natural language, EVM before Solana"""
    match = EVM_ADDRESS.search(text)
    if match:
        return SkillRequest(
            skill_id=TOKEN_HEALTH_CHECK,
            input={"tokenAddress": match.group(0), "chain": "Base"}
        )
    match = SOLANA_ADDRESS.search(text)
    if match:
        return SkillRequest(
            skill_id=TOKEN_HEALTH_CHECK,
            input={"tokenAddress": match.group(0), "chain": "Solana"}
        )
    return None

NOT_JSON = object()

def _decode_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return NOT_JSON

def parse_skill_request(message: Message) -> SkillRequest:
    """
    Extract the skill id and skill input from a message

    Args:
        message: The inbound user message

    Returns:
        SkillRequest; ``skill_id`` is None when nothing matched
    """
    for part in message.parts:
        if isinstance(part, DataPart) and part.data:
            request = infer_skill(part.data)
            if request:
                return request

    for part in message.parts:
        if not isinstance(part, TextPart):
            continue
        payload = _decode_json(part.text)
        if payload is not NOT_JSON:
            # Valid JSON is never scanned for addresses
            request = infer_skill(payload) if isinstance(payload, dict) else None
            if request:
                return request
            continue
        request = extract_address(part.text)
        if request:
            return request

    return UNRESOLVED
