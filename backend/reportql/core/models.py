from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class CompiledQuery(BaseModel):
    """Result of a successful compilation.

    `params` are bound in placeholder order; they are never inlined into `sql`.
    """
    sql: str
    params: list[Any] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)
    report: str
    context: str
    warnings: list[str] = Field(default_factory=list)


class CompileRequest(BaseModel):
    message: str


class CompileResponse(BaseModel):
    sql: Optional[str] = None
    params: list[Any] = Field(default_factory=list)
    columns: list[str] = Field(default_factory=list)
    report: Optional[str] = None
    context: Optional[str] = None
    help: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    error_code: str
    message: str
    details: dict[str, Any] | None = None
