"""
FastAPI application entry point.

Run: uvicorn clarifia.main:app --host 0.0.0.0 --port 3000
  or: clarifia
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clarifia.api_routes import router as api_router
from clarifia.core.errors import PayloadTooLarge, register_error_handlers
from clarifia.core.logging_config import configure_logging
from clarifia.core.rate_limit import build_limiter
from clarifia.core.settings import Settings
from clarifia.services.analyzer import DocumentAnalyzer
from clarifia.services.llm_client import LLMConfig, build_llm

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("Clarifia backend running on http://localhost:%s", settings.port)
    yield
    logger.info("Clarifia backend shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level)

    for name in settings.missing_secrets():
        logger.warning("Missing %s; requests depending on it will fail", name)

    llm = build_llm(
        LLMConfig(
            provider="openai",
            model=settings.openai_model,
            max_output_tokens=settings.max_output_tokens,
            timeout_seconds=settings.openai_timeout_seconds,
            base_url=settings.openai_base_url,
            openai_api_key=settings.openai_api_key,
        )
    )

    app = FastAPI(title="Clarifia backend", lifespan=lifespan)
    app.state.settings = settings
    app.state.analyzer = DocumentAnalyzer(
        llm,
        max_text_chars=settings.max_text_chars,
        strict_output_schema=settings.strict_output_schema,
    )

    app.state.limiter = build_limiter(settings)

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > settings.max_body_bytes:
            return JSONResponse(status_code=413, content=PayloadTooLarge().to_body())
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    settings: Settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
