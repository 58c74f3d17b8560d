"""Core infrastructure module.

Contains configuration, error taxonomy and response models.
"""

from .config import (
    Settings,
    SqlDialect,
    get_settings,
    get_cached_settings,
    clear_settings_cache,
)
from .exceptions import (
    DEFAULT_SUGGESTIONS,
    CompilerError,
    ContractViolationError,
    ErrorCode,
    MalformedValueError,
    NoMatchingTemplateError,
    UnrecognizedRequestError,
    UnresolvedFieldError,
)
from .models import CompiledQuery, CompileRequest, CompileResponse, ErrorDetail

__all__ = [
    # Config
    "Settings",
    "SqlDialect",
    "get_settings",
    "get_cached_settings",
    "clear_settings_cache",
    # Exceptions
    "DEFAULT_SUGGESTIONS",
    "CompilerError",
    "ContractViolationError",
    "ErrorCode",
    "MalformedValueError",
    "NoMatchingTemplateError",
    "UnrecognizedRequestError",
    "UnresolvedFieldError",
    # Models
    "CompiledQuery",
    "CompileRequest",
    "CompileResponse",
    "ErrorDetail",
]
