"""
Agent card and discovery routes
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Request

from ..card import AgentSkill, build_agent_card

def public_base_url(request: Request) -> str:
    """Scheme and host the caller used, honouring reverse-proxy headers"""
    scheme = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}"

def create_card_router(skills: List[AgentSkill], version: str) -> APIRouter:
    """
    Create router for card-related endpoints

    Args:
        skills: Skills advertised on the card
        version: Agent version

    Returns:
        FastAPI router
    """
    router = APIRouter()

    @router.get("/.well-known/agent-card.json", response_model=Dict[str, Any])
    async def get_agent_card(request: Request) -> Dict[str, Any]:
        """Get the agent card"""
        return build_agent_card(public_base_url(request), skills, version).to_dict()

    return router
