"""HTTP API for direct dispatch to the agent loop, plus tool listing and status.

Thin layer over a ``Dispatcher`` (the agent loop, which lives outside this
package):

- ``POST /api/dispatch``: run one message through the agent, return its reply
- ``GET /api/tools``: tool definitions currently offered to the model
- ``GET /api/status``: the dispatcher's startup/status record
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("tinyclaw.api")

DEFAULT_CHANNEL = "api"
DEFAULT_CHAT_ID = "dispatch"


class Dispatcher(ABC):
    """The agent loop, as seen by the HTTP API."""

    @abstractmethod
    async def process_direct(self, content: str, session_key: str, channel: str, chat_id: str) -> str:
        """Run one message through the agent and return the final reply.

        Raises any exception to signal a failed turn; its text is returned
        to the HTTP caller.
        """

    @abstractmethod
    def tool_definitions(self) -> Optional[list[dict[str, Any]]]:
        """Current tool definitions (name/description records)."""

    @abstractmethod
    def startup_info(self) -> Optional[dict[str, Any]]:
        """Status record reported verbatim by /api/status."""


def _error(status_code: int, message: str, finish_reason: str = "") -> JSONResponse:
    body = {"content": "", "finish_reason": finish_reason, "error": message}
    return JSONResponse(status_code=status_code, content=body)


def create_router(dispatcher: Dispatcher) -> APIRouter:
    """Build the API routes bound to a dispatcher."""
    router = APIRouter(prefix="/api", tags=["api"])

    @router.post("/dispatch")
    async def dispatch(request: Request):
        try:
            payload = json.loads(await request.body())
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _error(400, "invalid request body")
        if not isinstance(payload, dict):
            return _error(400, "invalid request body")

        content = payload.get("content") or ""
        if not isinstance(content, str):
            return _error(400, "invalid request body")
        if not content:
            return _error(400, "content is required")

        for key in ("channel", "chat_id", "session_key"):
            if payload.get(key) is not None and not isinstance(payload[key], str):
                return _error(400, "invalid request body")

        channel = payload.get("channel") or DEFAULT_CHANNEL
        chat_id = payload.get("chat_id") or DEFAULT_CHAT_ID
        session_key = payload.get("session_key") or f"api:{chat_id}"

        logger.info(f"Dispatch [{channel}:{chat_id}] session={session_key}: {content[:100]}")

        try:
            result = await dispatcher.process_direct(content, session_key, channel, chat_id)
        except Exception as e:
            logger.error(f"Dispatch failed for session {session_key}: {e}", exc_info=True)
            return _error(500, str(e), finish_reason="error")

        return {"content": result, "finish_reason": "stop"}

    @router.get("/tools")
    async def tools():
        defs = dispatcher.tool_definitions() or []
        return {"tools": defs, "count": len(defs)}

    @router.get("/status")
    async def status():
        return dispatcher.startup_info() or {}

    return router


def create_app(dispatcher: Dispatcher) -> FastAPI:
    """Create the FastAPI application."""
    from . import __version__

    app = FastAPI(title="TinyClaw", version=__version__)
    app.include_router(create_router(dispatcher))
    return app
