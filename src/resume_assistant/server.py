"""FastAPI application exposing the same-origin chat proxy."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, StrictStr

from .config import UpstreamConfig, load_config, upstream_from_config
from .errors import InvalidInput, ProxyError
from .proxy import ProxyHandler

logger = logging.getLogger(__name__)


# -----------------------------
# Pydantic request/response
# -----------------------------
class ChatRequest(BaseModel):
    message: StrictStr = Field(..., min_length=1)


class ChatResponse(BaseModel):
    message: Optional[str] = None


# -----------------------------
# App factory
# -----------------------------
def create_app(
    config_path: Optional[str] = None,
    upstream: Optional[UpstreamConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    cfg = load_config(config_path)

    level = str(cfg.get("logging", {}).get("level", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO))

    cors_origins = cfg.get("server", {}).get("cors_origins", ["*"])

    upstream = upstream or upstream_from_config(cfg)
    handler = ProxyHandler(upstream, transport=transport)
    logger.info("Proxying to %s (contract=%s)", upstream.url, upstream.contract.name)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await handler.aclose()

    app = FastAPI(title="Resume Assistant", version="0.1.0", lifespan=lifespan)
    app.state.proxy = handler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ProxyError)
    async def proxy_error(request: Request, exc: ProxyError) -> JSONResponse:
        return JSONResponse(exc.to_envelope(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected chat request: %s", exc.errors())
        err = InvalidInput()
        return JSONResponse(err.to_envelope(), status_code=err.status_code)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "contract": upstream.contract.name,
            "agent_id": upstream.agent_id,
            "credential_configured": bool(upstream.credential),
        }

    @app.post("/api/chat", response_model=ChatResponse, response_model_exclude_none=True)
    async def chat(req: ChatRequest):
        return await handler.handle(req.message)

    return app
