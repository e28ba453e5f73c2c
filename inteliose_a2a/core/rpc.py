"""
JSON-RPC module for Inteliose A2A

This module provides JSON-RPC 2.0 models, error codes and exceptions used by
the request executor and the HTTP layer.
"""
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

RequestId = Optional[Union[str, int]]

# JSON-RPC Error codes
class ErrorCodes:
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    TASK_NOT_FOUND = -32001
    TASK_NOT_CANCELABLE = -32002

class JSONRPCRequest(BaseModel):
    """JSON-RPC 2.0 Request envelope"""
    model_config = ConfigDict(extra="ignore")

    jsonrpc: str
    id: RequestId = None
    method: str = Field(min_length=1)
    params: Optional[Dict[str, Any]] = None

class JSONRPCError(BaseModel):
    """JSON-RPC 2.0 Error object"""
    code: int
    message: str
    data: Optional[Any] = None

class JSONRPCResponse(BaseModel):
    """JSON-RPC 2.0 Response envelope"""
    jsonrpc: str = "2.0"
    id: RequestId = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[JSONRPCError] = None

    def to_wire(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json", exclude_none=True)
        # id is mandatory in a response, even when the request had none
        payload["id"] = self.id
        return payload

class JSONRPCException(Exception):
    """Base exception for JSON-RPC errors"""
    def __init__(self, code: int, message: str, data: Optional[Any] = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)

    def to_response(self, request_id: RequestId) -> JSONRPCResponse:
        """Convert exception to a JSON-RPC error response"""
        return create_error_response(request_id, self.code, self.message, self.data)

class JSONRPCParseError(JSONRPCException):
    def __init__(self, message: str = "Parse error"):
        super().__init__(code=ErrorCodes.PARSE_ERROR, message=message)

class JSONRPCInvalidRequest(JSONRPCException):
    """Exception for invalid JSON-RPC requests"""
    def __init__(self, message: str = "Invalid JSON-RPC 2.0 request"):
        super().__init__(code=ErrorCodes.INVALID_REQUEST, message=message)

class JSONRPCMethodNotFound(JSONRPCException):
    """Exception for method not found in JSON-RPC requests"""
    def __init__(self, method: str):
        super().__init__(
            code=ErrorCodes.METHOD_NOT_FOUND,
            message=f"Method not found: {method}"
        )

class JSONRPCInvalidParams(JSONRPCException):
    def __init__(self, message: str = "Invalid params", data: Optional[Any] = None):
        super().__init__(code=ErrorCodes.INVALID_PARAMS, message=message, data=data)

class JSONRPCTaskNotFound(JSONRPCException):
    """Exception for task not found in A2A requests"""
    def __init__(self, task_id: Optional[str] = None):
        super().__init__(
            code=ErrorCodes.TASK_NOT_FOUND,
            message="Task not found",
            data={"taskId": task_id} if task_id else None
        )

class JSONRPCTaskNotCancelable(JSONRPCException):
    """Exception for cancel requests against a finished task"""
    def __init__(self, task_id: str, state: str):
        super().__init__(
            code=ErrorCodes.TASK_NOT_CANCELABLE,
            message="Task is in a terminal state and cannot be canceled",
            data={"taskId": task_id, "state": state}
        )

class JSONRPCInternalError(JSONRPCException):
    def __init__(self, message: str = "Internal error"):
        super().__init__(code=ErrorCodes.INTERNAL_ERROR, message=message)

def parse_envelope(raw: Any) -> JSONRPCRequest:
    """
    Validate a decoded request body as a JSON-RPC 2.0 envelope

    Args:
        raw: The decoded JSON body

    Returns:
        The validated request

    Raises:
        JSONRPCInvalidRequest: If jsonrpc is not "2.0" or method is missing
    """
    if not isinstance(raw, dict) or raw.get("jsonrpc") != "2.0":
        raise JSONRPCInvalidRequest()
    try:
        return JSONRPCRequest.model_validate(raw)
    except ValidationError:
        raise JSONRPCInvalidRequest()

def request_id_of(raw: Any) -> RequestId:
    """Best-effort id extraction from a body that failed validation"""
    if isinstance(raw, dict) and isinstance(raw.get("id"), (str, int)):
        return raw["id"]
    return None

def create_success_response(request_id: RequestId, result: Dict[str, Any]) -> JSONRPCResponse:
    """
    Create a JSON-RPC 2.0 success response

    Args:
        request_id: The ID from the request
        result: The result data

    Returns:
        JSONRPCResponse
    """
    return JSONRPCResponse(id=request_id, result=result)

def create_error_response(request_id: RequestId, code: int, message: str, data: Optional[Any] = None) -> JSONRPCResponse:
    """
    Create a JSON-RPC 2.0 error response

    Args:
        request_id: The ID from the request
        code: The error code
        message: The error message
        data: Additional error data

    Returns:
        JSONRPCResponse
    """
    error = JSONRPCError(code=code, message=message, data=data)
    return JSONRPCResponse(id=request_id, error=error)
