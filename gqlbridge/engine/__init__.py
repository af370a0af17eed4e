"""
GraphQL Execution Engine

Provides:
- Schema construction from SDL and resolver maps
- Request and result types
- Query validation and execution
"""

from .schema import (
    ResolverRegistry,
    create_schema,
    load_schema_file,
    schema_to_sdl
)

from .types import (
    ErrorEntry,
    ExecutionRequest,
    ExecutionResult,
    ResolverContext
)

from .executor import (
    ExecutionEngine,
    INTERNAL_ERROR_MESSAGE
)

from .rules import depth_limit_rule

__all__ = [
    # Schema
    "ResolverRegistry",
    "create_schema",
    "load_schema_file",
    "schema_to_sdl",
    # Types
    "ErrorEntry",
    "ExecutionRequest",
    "ExecutionResult",
    "ResolverContext",
    # Executor
    "ExecutionEngine",
    "INTERNAL_ERROR_MESSAGE",
    # Rules
    "depth_limit_rule"
]
