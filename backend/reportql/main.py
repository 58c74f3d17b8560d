from __future__ import annotations

import logging
import os
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .compiler import QueryCompiler
from .core import (
    CompilerError,
    CompileRequest,
    CompileResponse,
    ErrorCode,
    ErrorDetail,
    get_settings,
)
from .knowledge import all_providers

settings = get_settings()

# Configure logging
_level = getattr(logging, settings.log_level, None)
logging.basicConfig(
    level=_level if isinstance(_level, int) else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="ReportQL Compiler", version="0.1.0")
compiler = QueryCompiler(settings=settings)

# CORS configuration
cors_origins = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)


# --- Structured Error Response ---

def raise_error(status_code: int, error_code: str, message: str, details: dict | None = None):
    """Raise HTTPException with structured error detail."""
    raise HTTPException(
        status_code=status_code,
        detail=ErrorDetail(error_code=error_code, message=message, details=details).model_dump()
    )


# --- Input Sanitization ---

def sanitize_user_input(message: str) -> str:
    """Strip surrounding whitespace; length is bounded by the compiler."""
    if not message:
        return ""
    return message.strip()


# --- Startup Events ---

@app.on_event("startup")
def _log_catalog() -> None:
    for provider in all_providers():
        templates = provider.report_templates()
        columns = sum(len(t.columns) for t in templates)
        logger.info(f"Knowledge {provider.context.value}: {len(templates)} template(s), {columns} column(s)")
    logger.info(f"SQL dialect: {settings.sql_dialect.value}, max rows: {settings.max_rows}")


# --- API Endpoints ---

@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/templates")
def list_templates() -> dict[str, Any]:
    """Registered domains with their report templates and column aliases."""
    domains = []
    for provider in all_providers():
        domains.append({
            "context": provider.context.value,
            "templates": [
                {
                    "name": template.name,
                    "main_keywords": list(template.main_keywords),
                    "columns": {alias: column.alias for alias, column in template.columns.items()},
                }
                for template in provider.report_templates()
            ],
        })
    return {"domains": domains, "count": sum(len(d["templates"]) for d in domains)}


@app.get("/api/capabilities")
def capabilities() -> dict[str, str]:
    return {"help": compiler.describe_capabilities()}


def _compile(message: str) -> CompileResponse:
    text = sanitize_user_input(message)
    if not text:
        raise_error(400, "empty_query", "Request text is required")

    if compiler.is_capabilities_request(text):
        logger.info("Returning capabilities help")
        return CompileResponse(help=compiler.describe_capabilities())

    logger.info(f"Compile request: {text[:100]}")
    try:
        compiled = compiler.compile(text)
    except CompilerError as exc:
        status = 500 if exc.code == ErrorCode.CONTRACT_VIOLATION else 422
        logger.warning(f"Compilation failed ({exc.code.value}): {exc.message}")
        payload = exc.to_dict()
        raise_error(status, payload["error_code"], payload["message"], payload["details"])

    return CompileResponse(
        sql=compiled.sql,
        params=compiled.params,
        columns=compiled.columns,
        report=compiled.report,
        context=compiled.context,
        warnings=compiled.warnings,
    )


@app.get("/api/compile", response_model=CompileResponse)
def compile_get(
    q: str = Query(..., min_length=1, max_length=2000, description="Report request in German"),
) -> CompileResponse:
    """
    Compile a natural-language report request into parameterised SQL.

    - **q**: the request (e.g., "Verträge für Makler 100120 außer Firma, Land")

    Returns SQL, bound parameters in placeholder order and the column aliases.
    """
    return _compile(q)


@app.post("/api/compile", response_model=CompileResponse)
def compile_post(payload: CompileRequest) -> CompileResponse:
    return _compile(payload.message)
