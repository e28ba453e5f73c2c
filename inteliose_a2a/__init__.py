"""
Inteliose A2A - token analysis agent exposed over the Agent-to-Agent protocol
"""

__version__ = "1.0.0"

# Core imports
from .core.executor import RequestExecutor
from .core.skills import SkillContext, SkillRegistry, SkillResult, skill
from .db.store import TaskStore
from .server import build_app
