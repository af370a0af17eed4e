"""
Adapter and Engine Options

Provides:
- CORS policy definition
- Body parser limits
- Adapter options (mount path, health check, CORS)
- Engine options (depth limit, introspection, timing)
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from ..errors import ConfigurationError

DEFAULT_HEALTH_CHECK_PATH = "/health"

HealthCallback = Callable[[], Union[Any, Awaitable[Any]]]


@dataclass
class CorsPolicy:
    """
    Cross-origin resource sharing policy

    Attributes:
        allow_origins: Allowed origins, "*" for any
        allow_methods: Methods advertised on preflight
        allow_headers: Request headers advertised on preflight, "*" echoes the request
        expose_headers: Response headers exposed to the browser
        allow_credentials: Whether credentials are allowed
        max_age: Preflight cache lifetime in seconds
    """
    allow_origins: List[str] = field(default_factory=lambda: ["*"])
    allow_methods: List[str] = field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    allow_headers: List[str] = field(default_factory=lambda: ["*"])
    expose_headers: List[str] = field(default_factory=list)
    allow_credentials: bool = False
    max_age: int = 600

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False
        return "*" in self.allow_origins or origin in self.allow_origins

    def is_method_allowed(self, method: Optional[str]) -> bool:
        if not method:
            return False
        return "*" in self.allow_methods or method.upper() in (m.upper() for m in self.allow_methods)

    def middleware_options(self) -> Dict[str, Any]:
        """Keyword arguments for Starlette's CORSMiddleware"""
        return {
            "allow_origins": list(self.allow_origins),
            "allow_methods": list(self.allow_methods),
            "allow_headers": list(self.allow_headers),
            "expose_headers": list(self.expose_headers),
            "allow_credentials": self.allow_credentials,
            "max_age": self.max_age,
        }

    def _allow_origin_value(self, origin: str) -> str:
        # A wildcard cannot be combined with credentials
        if "*" in self.allow_origins and not self.allow_credentials:
            return "*"
        return origin

    def response_headers(self, origin: Optional[str]) -> Dict[str, str]:
        """Headers added to a simple (non-preflight) response"""
        if not self.is_origin_allowed(origin):
            return {}
        headers = {"Access-Control-Allow-Origin": self._allow_origin_value(origin)}
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        if self.expose_headers:
            headers["Access-Control-Expose-Headers"] = ", ".join(self.expose_headers)
        if headers["Access-Control-Allow-Origin"] != "*":
            headers["Vary"] = "Origin"
        return headers

    def preflight_headers(
        self,
        origin: Optional[str],
        requested_headers: Optional[str] = None
    ) -> Dict[str, str]:
        """Headers for an OPTIONS preflight response"""
        headers = self.response_headers(origin)
        if not headers:
            return {}
        headers["Access-Control-Allow-Methods"] = ", ".join(self.allow_methods)
        if "*" in self.allow_headers:
            if requested_headers:
                headers["Access-Control-Allow-Headers"] = requested_headers
        else:
            headers["Access-Control-Allow-Headers"] = ", ".join(self.allow_headers)
        headers["Access-Control-Max-Age"] = str(self.max_age)
        return headers

    def to_dict(self) -> dict:
        return {
            "allow_origins": self.allow_origins,
            "allow_methods": self.allow_methods,
            "allow_headers": self.allow_headers,
            "expose_headers": self.expose_headers,
            "allow_credentials": self.allow_credentials,
            "max_age": self.max_age
        }


@dataclass
class BodyParserConfig:
    """
    Transport body parsing limits

    Attributes:
        max_body_bytes: Largest accepted request body
        content_types: Accepted request media types for POST bodies
    """
    max_body_bytes: int = 100 * 1024
    content_types: List[str] = field(default_factory=lambda: ["application/json"])

    def accepts(self, content_type: Optional[str]) -> bool:
        if not content_type:
            return False
        media_type = content_type.split(";", 1)[0].strip().lower()
        return media_type in self.content_types

    def to_dict(self) -> dict:
        return {
            "max_body_bytes": self.max_body_bytes,
            "content_types": self.content_types
        }


@dataclass
class AdapterOptions:
    """
    Options for attaching an adapter to a host

    Attributes:
        path: Mount point; None selects the adapter's own default
        cors: CORS policy, or None to send no CORS headers
        on_health_check: Callback returning the health status
        disable_health_check: Answer 404 on the health path
        health_check_path: Where the health check is exposed
        body_parser: Transport body parsing limits
    """
    path: Optional[str] = None
    cors: Optional[CorsPolicy] = None
    on_health_check: Optional[HealthCallback] = None
    disable_health_check: bool = False
    health_check_path: str = DEFAULT_HEALTH_CHECK_PATH
    body_parser: BodyParserConfig = field(default_factory=BodyParserConfig)

    def validate(self, default_path: Optional[str] = None) -> None:
        """
        Raise ConfigurationError for inconsistent options

        Args:
            default_path: The adapter's own mount default, used when path is None
        """
        if self.path is not None and not self.path.startswith("/"):
            raise ConfigurationError(f"Mount path must start with '/': {self.path!r}")
        if not self.health_check_path.startswith("/"):
            raise ConfigurationError(
                f"Health check path must start with '/': {self.health_check_path!r}"
            )
        if self.body_parser.max_body_bytes <= 0:
            raise ConfigurationError("body_parser.max_body_bytes must be positive")

        mount_path = self.path or default_path
        if mount_path is not None:
            mount_path = self.resolved_path(mount_path)
            health_path = self.health_check_path.rstrip("/") or "/"
            if health_path == mount_path:
                raise ConfigurationError(
                    f"Health check path {self.health_check_path!r} collides with the mount path {mount_path!r}"
                )

    def resolved_path(self, default: str) -> str:
        path = self.path or default
        if len(path) > 1:
            path = path.rstrip("/")
        return path

    def copy(self) -> "AdapterOptions":
        """Copy taken at attach time; the callback is shared, not copied"""
        return AdapterOptions(
            path=self.path,
            cors=copy.deepcopy(self.cors),
            on_health_check=self.on_health_check,
            disable_health_check=self.disable_health_check,
            health_check_path=self.health_check_path,
            body_parser=copy.deepcopy(self.body_parser)
        )

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "cors": self.cors.to_dict() if self.cors else None,
            "has_health_callback": self.on_health_check is not None,
            "disable_health_check": self.disable_health_check,
            "health_check_path": self.health_check_path,
            "body_parser": self.body_parser.to_dict()
        }


@dataclass
class EngineConfig:
    """
    Execution engine configuration

    Attributes:
        max_query_depth: Reject documents nested deeper than this
        introspection: Allow __schema and __type queries
        include_timing: Attach a timing extension to every result
        mask_internal_errors: Hide unexpected resolver exception messages
    """
    max_query_depth: Optional[int] = None
    introspection: bool = True
    include_timing: bool = False
    mask_internal_errors: bool = False
    extra_rules: Sequence[Any] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "max_query_depth": self.max_query_depth,
            "introspection": self.introspection,
            "include_timing": self.include_timing,
            "mask_internal_errors": self.mask_internal_errors,
            "extra_rules": [getattr(r, "__name__", str(r)) for r in self.extra_rules]
        }
