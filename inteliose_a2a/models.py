"""
A2A protocol models for Inteliose

Tasks, messages, parts and artifacts as they travel over JSON-RPC and as they
are persisted by the task store. Field names follow the A2A wire format.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field

SUPPORTED_CHAINS = ("Base", "Solana")

def utc_now() -> str:
    """Current time as an ISO-8601 string"""
    return datetime.now(timezone.utc).isoformat()

def new_id() -> str:
    return str(uuid.uuid4())

class TaskState(str, Enum):
    PENDING = "pending"
    WORKING = "working"
    INPUT_REQUIRED = "input-required"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"

TERMINAL_STATES: FrozenSet[TaskState] = frozenset(
    {TaskState.COMPLETED, TaskState.FAILED, TaskState.CANCELED}
)

# Forward-only transitions; terminal states have no way out
ALLOWED_TRANSITIONS: Dict[TaskState, FrozenSet[TaskState]] = {
    TaskState.PENDING: frozenset(
        {TaskState.WORKING, TaskState.FAILED, TaskState.CANCELED}
    ),
    TaskState.WORKING: frozenset(
        {TaskState.COMPLETED, TaskState.FAILED, TaskState.CANCELED, TaskState.INPUT_REQUIRED}
    ),
    TaskState.INPUT_REQUIRED: frozenset(
        {TaskState.WORKING, TaskState.FAILED, TaskState.CANCELED}
    ),
    TaskState.COMPLETED: frozenset(),
    TaskState.FAILED: frozenset(),
    TaskState.CANCELED: frozenset(),
}

def can_transition(current: TaskState, target: TaskState) -> bool:
    return target in ALLOWED_TRANSITIONS[current]

class TextPart(BaseModel):
    """Plain text content"""
    type: Literal["text"] = "text"
    text: str

class DataPart(BaseModel):
    """MIME-typed structured payload"""
    type: Literal["data"] = "data"
    mimeType: str = "application/json"
    data: Dict[str, Any]

Part = Annotated[Union[TextPart, DataPart], Field(discriminator="type")]

class Message(BaseModel):
    """Role-tagged content exchanged between a caller and the agent"""
    model_config = ConfigDict(extra="allow")

    role: Literal["user", "agent"]
    parts: List[Part]
    messageId: Optional[str] = None
    taskId: Optional[str] = None
    contextId: Optional[str] = None

class Artifact(BaseModel):
    """Named bundle of parts produced by a completed skill"""
    artifactId: str = Field(default_factory=new_id)
    name: Optional[str] = None
    parts: List[Part]

class TaskStatus(BaseModel):
    state: TaskState
    timestamp: str = Field(default_factory=utc_now)
    message: Optional[Message] = None

class Task(BaseModel):
    """The unit of work tracked for every inbound request"""
    id: str = Field(default_factory=new_id)
    contextId: str = Field(default_factory=new_id)
    status: TaskStatus = Field(default_factory=lambda: TaskStatus(state=TaskState.PENDING))
    messages: List[Message] = Field(default_factory=list)
    artifacts: List[Artifact] = Field(default_factory=list)
    createdAt: str = Field(default_factory=utc_now)
    updatedAt: str = Field(default_factory=utc_now)

    @property
    def is_terminal(self) -> bool:
        return self.status.state in TERMINAL_STATES

    def to_wire(self) -> Dict[str, Any]:
        """JSON-compatible representation, omitting unset optionals"""
        return self.model_dump(mode="json", exclude_none=True)

class TaskStats(BaseModel):
    total: int = 0
    pending: int = 0
    working: int = 0
    completed: int = 0
    failed: int = 0
    canceled: int = 0

# Skill inputs: one explicit model per skill
class RiskBaselineInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tokenAddress: Optional[str] = None
    chain: Optional[str] = None

class TokenHealthCheckInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tokenAddress: Optional[str] = None
    chain: Optional[str] = None
    devWallet: Optional[str] = None

def text_part(text: str) -> TextPart:
    return TextPart(text=text)

def data_part(data: Dict[str, Any], mime_type: str = "application/json") -> DataPart:
    return DataPart(mimeType=mime_type, data=data)

def agent_message(text: str) -> Message:
    """Single-text-part message authored by the agent"""
    return Message(role="agent", parts=[text_part(text)])
