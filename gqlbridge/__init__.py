"""
gqlbridge - one GraphQL engine, many HTTP hosts

Architecture:
- engine/: Schema construction, validation and execution
- lifecycle/: Start-then-attach ordering and graceful drain
- adapters/: Standalone listener, FastAPI, aiohttp and AWS Lambda
- health/: Health-check responder
- config/: Adapter, engine and server options
"""

__version__ = "1.0.0"
__author__ = "gqlbridge contributors"

from .config import AdapterOptions, BodyParserConfig, CorsPolicy, EngineConfig, ServerSettings
from .engine import ExecutionEngine, ExecutionRequest, ExecutionResult, ResolverRegistry, create_schema
from .lifecycle import LifecycleController, LifecycleState
from .health import HealthCheckResponder, HealthStatus
from .adapters import AioHttpAdapter, FastAPIAdapter, LambdaHandler, StandaloneServer
from .errors import (
    GraphQLBridgeError,
    ValidationError,
    ExecutionError,
    MalformedRequestError,
    LifecycleError,
    AlreadyStartedError,
    NotStartedError,
    InternalError,
    ConfigurationError,
)

__all__ = [
    "AdapterOptions",
    "BodyParserConfig",
    "CorsPolicy",
    "EngineConfig",
    "ServerSettings",
    "ExecutionEngine",
    "ExecutionRequest",
    "ExecutionResult",
    "ResolverRegistry",
    "create_schema",
    "LifecycleController",
    "LifecycleState",
    "HealthCheckResponder",
    "HealthStatus",
    "AioHttpAdapter",
    "FastAPIAdapter",
    "LambdaHandler",
    "StandaloneServer",
    "GraphQLBridgeError",
    "ValidationError",
    "ExecutionError",
    "MalformedRequestError",
    "LifecycleError",
    "AlreadyStartedError",
    "NotStartedError",
    "InternalError",
    "ConfigurationError",
]
