"""
Skills module for Inteliose A2A

This module provides the skill decorator, the result type every skill returns,
and the registry the executor dispatches through.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, TypeVar
import inspect
import logging
import time

from pydantic import BaseModel, ValidationError

from ..card import AgentSkill
from ..models import Part

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable["SkillResult"]])

@dataclass
class SkillResult:
    """Outcome of a skill run; ``error`` set means the parts are not usable"""
    parts: List[Part] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "SkillResult":
        return cls(parts=[], error=error)

@dataclass
class SkillContext:
    """Collaborators handed to every skill invocation"""
    market: Any
    llm: Optional[Any] = None
    clock: Callable[[], float] = time.time

    def now_ms(self) -> float:
        return self.clock() * 1000

def skill(id: str, name: str, input_model: Type[BaseModel], tags: List[str]) -> Callable[[F], F]:
    """
    Decorator to mark a coroutine as an A2A skill

    The function's docstring becomes the skill description on the agent card.

    Args:
        id: Skill identifier used for dispatch
        name: Human readable skill name
        input_model: Pydantic model the raw input is validated against
        tags: Discovery tags

    Returns:
        The same function with skill metadata attached
    """
    def decorator(fn: F) -> F:
        if not inspect.iscoroutinefunction(fn):
            raise TypeError(f"Skill '{id}' must be an async function")
        fn._a2a_skill = AgentSkill(
            id=id,
            name=name,
            description=inspect.cleandoc(fn.__doc__ or ""),
            tags=list(tags),
        )
        fn._a2a_input_model = input_model
        return fn
    return decorator

class SkillRegistry:
    """Skills available to one executor, keyed by skill id"""

    def __init__(self, functions: Optional[List[Callable]] = None):
        self._skills: Dict[str, Callable] = {}
        for fn in functions or []:
            self.register(fn)

    def register(self, fn: Callable) -> None:
        definition = getattr(fn, "_a2a_skill", None)
        if definition is None:
            raise ValueError(f"{fn!r} is not decorated with @skill")
        self._skills[definition.id] = fn

    def get(self, skill_id: str) -> Optional[Callable]:
        return self._skills.get(skill_id)

    def definitions(self) -> List[AgentSkill]:
        """Skill metadata for the agent card, in registration order"""
        return [fn._a2a_skill for fn in self._skills.values()]

    def __contains__(self, skill_id: str) -> bool:
        return skill_id in self._skills

    async def execute(self, skill_id: str, raw_input: Any, context: SkillContext) -> SkillResult:
        """
        Validate the input and run a skill

        Never raises: unknown skills, invalid input and unexpected exceptions
        all come back as ``SkillResult.error``.

        Args:
            skill_id: Skill to run
            raw_input: Loosely-typed input from the message parser
            context: Collaborators for the skill

        Returns:
            SkillResult
        """
        fn = self.get(skill_id)
        if fn is None:
            return SkillResult.failure(f"Unknown skill: {skill_id}")

        if not isinstance(raw_input, dict):
            return SkillResult.failure("Skill input must be a JSON object")
        try:
            skill_input = fn._a2a_input_model.model_validate(raw_input)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            return SkillResult.failure(f"Invalid input for {skill_id}: {fields}")

        try:
            return await fn(skill_input, context)
        except Exception as e:
            logger.exception("Skill %s raised instead of returning an error", skill_id)
            return SkillResult.failure(f"{skill_id} failed: {e}")
