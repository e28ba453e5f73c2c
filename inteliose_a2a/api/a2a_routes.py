"""
A2A JSON-RPC endpoint
"""
from typing import Any
import json
import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ..core.executor import RequestExecutor
from ..core.rpc import (
    JSONRPCException, JSONRPCInternalError, JSONRPCParseError,
    parse_envelope, request_id_of
)

logger = logging.getLogger(__name__)

def create_a2a_router(executor: RequestExecutor) -> APIRouter:
    """
    Create router for the JSON-RPC endpoint

    Args:
        executor: The request executor

    Returns:
        FastAPI router
    """
    router = APIRouter()

    @router.post("/a2a")
    async def a2a(request: Request) -> JSONResponse:
        """
        Handle an A2A JSON-RPC 2.0 request

        Malformed envelopes are rejected with HTTP 400 before they reach the
        executor; every other outcome, RPC errors included, is HTTP 200.
        """
        try:
            body: Any = json.loads(await request.body())
        except ValueError:
            return JSONResponse(
                content=JSONRPCParseError().to_response(None).to_wire(),
                status_code=status.HTTP_400_BAD_REQUEST
            )

        try:
            rpc_request = parse_envelope(body)
        except JSONRPCException as e:
            return JSONResponse(
                content=e.to_response(request_id_of(body)).to_wire(),
                status_code=status.HTTP_400_BAD_REQUEST
            )

        try:
            response = await executor.handle(rpc_request)
        except Exception:
            logger.exception("Executor failed on %s", rpc_request.method)
            response = JSONRPCInternalError().to_response(rpc_request.id)
        return JSONResponse(content=response.to_wire())

    return router
