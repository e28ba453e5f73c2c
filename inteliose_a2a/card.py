from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

PROTOCOL_VERSION = "1.0"

AGENT_NAME = "Inteliose Intelligence Agent"
AGENT_DESCRIPTION = (
    "Web4 AI intelligence agent for cryptocurrency token analysis on Base and Solana. "
    "Provides health verdicts (GREEN/YELLOW/RED), risk baselines, failure mode detection, "
    "and revival plans. Powered by on-chain data aggregation and Gemini AI."
)

@dataclass
class AgentSkill:
    id: str
    name: str
    description: str = ""
    tags: List[str] = field(default_factory=list)

@dataclass
class AgentCardData:
    name: str
    description: str
    url: str
    version: str
    skills: List[AgentSkill]
    protocolVersion: str = PROTOCOL_VERSION
    provider: Dict[str, str] = field(
        default_factory=lambda: {"organization": "Inteliose", "url": "https://www.daointel.io"}
    )
    capabilities: Dict[str, bool] = field(
        default_factory=lambda: {"streaming": False, "pushNotifications": False}
    )
    defaultInputModes: List[str] = field(default_factory=lambda: ["application/json", "text/plain"])
    defaultOutputModes: List[str] = field(default_factory=lambda: ["application/json"])
    securitySchemes: Optional[Dict[str, Any]] = field(
        default_factory=lambda: {"bearer": {"type": "http", "scheme": "bearer"}}
    )

    def to_dict(self) -> Dict[str, Any]:
        card = asdict(self)
        if card["securitySchemes"] is None:
            del card["securitySchemes"]
        return card

def build_agent_card(base_url: str, skills: List[AgentSkill], version: str) -> AgentCardData:
    """
    Build the discovery document served at /.well-known/agent-card.json

    Args:
        base_url: Public scheme and host the agent is reached at
        skills: Skills registered with the executor
        version: Agent version

    Returns:
        AgentCardData
    """
    return AgentCardData(
        name=AGENT_NAME,
        description=AGENT_DESCRIPTION,
        url=f"{base_url.rstrip('/')}/a2a",
        version=version,
        skills=skills,
    )
