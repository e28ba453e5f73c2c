from typing import Optional

from ..models import SUPPORTED_CHAINS

def validate_token_request(token_address: Optional[str], chain: Optional[str]) -> Optional[str]:
    """Return the error message for a bad address/chain pair, or None"""
    if not token_address:
        return "tokenAddress is required"
    if chain not in SUPPORTED_CHAINS:
        return "chain must be 'Base' or 'Solana'"
    return None
