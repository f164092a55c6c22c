from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docflow.core.config import settings
from docflow.core.errors import DocflowError, InputContractError
from docflow.core.logging import configure_logging
from docflow.engine.gateway import build_engine
from docflow.modules.backlog.router import router as backlog_router
from docflow.modules.contracts.router import router as contracts_router
from docflow.modules.credit.router import router as credit_router
from docflow.modules.documents.router import router as documents_router
from docflow.modules.news.router import router as news_router
from docflow.modules.news.sources import build_news_source
from docflow.modules.verification.router import router as verification_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging(settings.debug)
    app.state.engine = build_engine()
    app.state.news_source = build_news_source()
    logger.info("Starting Docflow API", provider=settings.llm_provider, news_source=settings.news_source)
    yield
    logger.info("Shutting down Docflow API")


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DocflowError)
async def docflow_error_handler(request: Request, exc: DocflowError) -> JSONResponse:
    logger.info(
        "request_failed",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=exc.status_code,
    )
    content: dict = {"detail": exc.user_message, "error": type(exc).__name__}
    if isinstance(exc, InputContractError) and exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


# Mount routers
app.include_router(documents_router, prefix=settings.api_prefix)
app.include_router(contracts_router, prefix=settings.api_prefix)
app.include_router(backlog_router, prefix=settings.api_prefix)
app.include_router(news_router, prefix=settings.api_prefix)
app.include_router(verification_router, prefix=settings.api_prefix)
app.include_router(credit_router, prefix=settings.api_prefix)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
