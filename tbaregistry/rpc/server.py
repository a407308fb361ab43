"""
JSON-RPC 2.0 over HTTP POST.

Handlers are plain (or async) callables registered by name; positional params
arrive as ``*args`` and named params as ``**kwargs``. A handler signals a
protocol-level failure by raising ``RPCError``; anything else it raises is
reported as an internal error and logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
EXECUTION_ERROR = 3

MAX_BATCH_SIZE = 100


class RPCError(Exception):
    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def response(self, req_id: Any) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return {"jsonrpc": "2.0", "id": req_id, "error": error}


class RPCServer:
    """JSON-RPC 2.0 server with method registration and dispatch."""

    def __init__(self, title: str = "tba-registry JSON-RPC") -> None:
        self.app = FastAPI(title=title, docs_url=None, redoc_url=None)
        self._methods: dict[str, Callable] = {}
        self.app.add_api_route("/", self._handle_http, methods=["POST"])

    # -----------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------

    def register(self, name: str, handler: Callable) -> None:
        if name in self._methods:
            logger.debug("Replacing RPC method %s", name)
        self._methods[name] = handler

    def method(self, name: str) -> Callable:
        def decorator(func: Callable) -> Callable:
            self.register(name, func)
            return func

        return decorator

    @property
    def methods(self) -> list[str]:
        return sorted(self._methods)

    # -----------------------------------------------------------------
    # Dispatch
    # -----------------------------------------------------------------

    async def _handle_http(self, request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except Exception:
            return JSONResponse(RPCError(PARSE_ERROR, "Parse error").response(None))

        if not isinstance(body, list):
            reply = await self.dispatch(body)
            if reply is None:
                return JSONResponse(content=None, status_code=204)
            return JSONResponse(reply)

        if not body:
            return JSONResponse(RPCError(INVALID_REQUEST, "Empty batch").response(None))
        if len(body) > MAX_BATCH_SIZE:
            return JSONResponse(
                RPCError(INVALID_REQUEST, f"Batch exceeds {MAX_BATCH_SIZE} requests").response(None)
            )
        replies = []
        for item in body:
            reply = await self.dispatch(item)
            if reply is not None:
                replies.append(reply)
        return JSONResponse(replies or None)

    async def dispatch(self, request: Any) -> Optional[dict]:
        """Handle one request object; None for notifications."""
        if not isinstance(request, dict):
            return RPCError(INVALID_REQUEST, "Invalid request").response(None)

        req_id = request.get("id")
        method = request.get("method")
        if request.get("jsonrpc") != "2.0":
            return RPCError(INVALID_REQUEST, "Invalid JSON-RPC version").response(req_id)
        if not isinstance(method, str):
            return RPCError(INVALID_REQUEST, "Invalid method").response(req_id)

        is_notification = "id" not in request
        try:
            result = await self._invoke(method, request.get("params", []))
        except RPCError as e:
            if is_notification:
                return None
            return e.response(req_id)

        if is_notification:
            return None
        return {"jsonrpc": "2.0", "id": req_id, "result": result}

    async def _invoke(self, method: str, params: Any) -> Any:
        handler = self._methods.get(method)
        if handler is None:
            raise RPCError(METHOD_NOT_FOUND, f"Method not found: {method}")
        if isinstance(params, list):
            args, kwargs = params, {}
        elif isinstance(params, dict):
            args, kwargs = [], params
        else:
            raise RPCError(INVALID_PARAMS, "Invalid params")

        try:
            result = handler(*args, **kwargs)
            if asyncio.iscoroutine(result):
                result = await result
        except RPCError:
            raise
        except TypeError as e:
            logger.warning("RPC TypeError in %s: %s", method, e)
            raise RPCError(INVALID_PARAMS, str(e)) from e
        except Exception as e:
            logger.exception("RPC internal error in %s", method)
            raise RPCError(INTERNAL_ERROR, str(e)) from e
        return result


# ---------------------------------------------------------------------------
# Hex helpers
# ---------------------------------------------------------------------------

def hex_to_int(value: str | int) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


def int_to_hex(value: int) -> str:
    return hex(value)


def bytes_to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def hex_to_bytes(value: str) -> bytes:
    if value[:2] in ("0x", "0X"):
        value = value[2:]
    return bytes.fromhex(value)
