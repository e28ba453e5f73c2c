from .skills import skill, SkillContext, SkillRegistry, SkillResult
from .rpc import (
    ErrorCodes, JSONRPCException, JSONRPCInvalidRequest, JSONRPCInvalidParams,
    JSONRPCMethodNotFound, JSONRPCTaskNotFound, JSONRPCTaskNotCancelable,
    JSONRPCRequest, JSONRPCResponse, create_success_response, create_error_response
)
from .parser import parse_skill_request, infer_skill, SkillRequest
from .executor import RequestExecutor
