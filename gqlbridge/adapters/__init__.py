"""
Middleware Adapters

Provides:
- Standalone listener (FastAPI + uvicorn)
- FastAPI and aiohttp attachments
- AWS Lambda handler
- Shared GraphQL-over-HTTP pipeline
"""

from .http import (
    GraphQLHTTPHandler,
    GraphQLPayload,
    HttpRequest,
    HttpResponse,
    error_response,
    parse_http_request
)
from .base import MiddlewareAdapter
from .fastapi_adapter import FastAPIAdapter
from .aiohttp_adapter import AioHttpAdapter
from .lambda_adapter import LambdaHandler
from .standalone import StandaloneServer

__all__ = [
    # Shared pipeline
    "GraphQLHTTPHandler",
    "GraphQLPayload",
    "HttpRequest",
    "HttpResponse",
    "error_response",
    "parse_http_request",
    # Adapters
    "MiddlewareAdapter",
    "FastAPIAdapter",
    "AioHttpAdapter",
    "LambdaHandler",
    "StandaloneServer"
]
