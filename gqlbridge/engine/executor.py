"""
GraphQL Executor - Executes GraphQL queries and mutations

Provides:
- Query parsing and validation
- Query execution (async and sync)
- Response formatting
- Error classification (validation vs. partial execution)
"""

import itertools
import logging
import threading
import time
from inspect import isawaitable
from typing import Any, Dict, List, Mapping, NoReturn, Optional, Tuple, Union

from graphql import (
    DocumentNode,
    GraphQLError,
    GraphQLSchema,
    OperationDefinitionNode,
    OperationType,
    execute,
    get_operation_ast,
    parse,
    validate,
)
from graphql import ExecutionResult as GraphQLExecutionResult
from graphql.validation import NoSchemaIntrospectionCustomRule, specified_rules

from ..config.options import EngineConfig
from ..errors import GraphQLBridgeError, InternalError, MethodNotAllowedError, ValidationError
from .rules import depth_limit_rule
from .schema import ResolverRegistry, Resolver, check_schema, create_schema, schema_to_sdl
from .types import ErrorEntry, ExecutionRequest, ExecutionResult, ResolverContext

logger = logging.getLogger("GraphQLEngine")

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ExecutionEngine:
    """
    Executes GraphQL requests against a schema it owns

    The schema and resolver graph are read-only after construction, so one
    engine may serve concurrent requests from any number of adapters.
    """

    def __init__(
        self,
        schema: GraphQLSchema,
        config: Optional[EngineConfig] = None,
        root_value: Any = None
    ):
        check_schema(schema)
        self._schema = schema
        self._config = config or EngineConfig()
        self._root_value = root_value
        self._rules = self._build_rules(self._config)
        self._request_ids = itertools.count(1)
        self._stats = {"requests": 0, "validation_failures": 0, "partial_results": 0}
        self._stats_lock = threading.Lock()

    @classmethod
    def from_sdl(
        cls,
        type_defs: str,
        resolvers: Optional[Union[ResolverRegistry, Mapping[str, Resolver]]] = None,
        config: Optional[EngineConfig] = None,
        root_value: Any = None
    ) -> "ExecutionEngine":
        """Build an engine from SDL and a resolver map"""
        return cls(create_schema(type_defs, resolvers), config=config, root_value=root_value)

    @staticmethod
    def _build_rules(config: EngineConfig) -> List[Any]:
        rules = list(specified_rules)
        if not config.introspection:
            rules.append(NoSchemaIntrospectionCustomRule)
        if config.max_query_depth is not None:
            rules.append(depth_limit_rule(config.max_query_depth))
        rules.extend(config.extra_rules)
        return rules

    @property
    def schema(self) -> GraphQLSchema:
        return self._schema

    @property
    def config(self) -> EngineConfig:
        return self._config

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """
        Execute a GraphQL request

        Args:
            request: The normalized request

        Returns:
            ExecutionResult; resolver failures produce a partial result

        Raises:
            ValidationError: the operation does not conform to the schema
            MethodNotAllowedError: a mutation was sent over GET
        """
        request_id = next(self._request_ids)
        start_time = time.perf_counter()
        document, _operation = self._prepare(request)

        result = execute(
            self._schema,
            document,
            root_value=self._root_value,
            context_value=ResolverContext(request),
            variable_values=dict(request.variables),
            operation_name=request.operation_name
        )
        if isawaitable(result):
            result = await result
        return self._finish(result, request_id, start_time)

    def execute_sync(self, request: ExecutionRequest) -> ExecutionResult:
        """Execute when every resolver involved is synchronous"""
        request_id = next(self._request_ids)
        start_time = time.perf_counter()
        document, _operation = self._prepare(request)

        result = execute(
            self._schema,
            document,
            root_value=self._root_value,
            context_value=ResolverContext(request),
            variable_values=dict(request.variables),
            operation_name=request.operation_name
        )
        if isawaitable(result):
            close = getattr(result, "close", None)
            if close is not None:
                close()
            logger.error("Synchronous execution reached an async resolver")
            raise InternalError("Operation requires asynchronous execution")
        return self._finish(result, request_id, start_time)

    def _prepare(self, request: ExecutionRequest) -> Tuple[DocumentNode, OperationDefinitionNode]:
        """Parse and validate; raises ValidationError on any request-level problem"""
        self._count("requests")

        if not request.query or not request.query.strip():
            self._reject("Must provide query string.")

        try:
            document = parse(request.query)
        except GraphQLError as e:
            self._reject(e.message, [ErrorEntry.from_graphql_error(e)])

        errors = validate(self._schema, document, self._rules)
        if errors:
            self._reject(errors[0].message, [ErrorEntry.from_graphql_error(e) for e in errors])

        operation = get_operation_ast(document, request.operation_name)
        if operation is None:
            if request.operation_name:
                self._reject(f"Unknown operation named '{request.operation_name}'.")
            self._reject("Must provide operation name if query contains multiple operations.")

        if operation.operation == OperationType.SUBSCRIPTION:
            self._reject("Subscriptions are not supported over this transport.")

        if request.method == "GET" and operation.operation != OperationType.QUERY:
            raise MethodNotAllowedError(
                f"Can only perform a {operation.operation.value} operation from a POST request."
            )

        return document, operation

    def _reject(self, message: str, entries: Optional[List[ErrorEntry]] = None) -> NoReturn:
        self._count("validation_failures")
        entries = entries or [ErrorEntry(message=message)]
        logger.debug(f"Rejected request: {message}")
        raise ValidationError(message, entries)

    def _finish(
        self,
        result: GraphQLExecutionResult,
        request_id: int,
        start_time: float
    ) -> ExecutionResult:
        graphql_errors = result.errors or []
        entries = tuple(self._entry_for(e) for e in graphql_errors)

        # Variable coercion failures stop execution before any field runs
        if result.data is None and entries and all(not e.path for e in entries):
            self._reject(entries[0].message, list(entries))

        if entries:
            self._count("partial_results")

        extensions: Dict[str, Any] = dict(result.extensions or {})
        if self._config.include_timing:
            extensions["timing"] = {
                "duration_ms": (time.perf_counter() - start_time) * 1000,
                "request_id": request_id
            }

        return ExecutionResult(data=result.data, errors=entries, status_code=200, extensions=extensions)

    def _entry_for(self, error: GraphQLError) -> ErrorEntry:
        original = error.original_error
        if original is None or isinstance(original, GraphQLError):
            return ErrorEntry.from_graphql_error(error)

        path = ".".join(str(p) for p in error.path or ())
        logger.warning(f"Resolver error at {path or '<root>'}: {original!r}")
        if self._config.mask_internal_errors and not isinstance(original, GraphQLBridgeError):
            return ErrorEntry.from_graphql_error(error, message=INTERNAL_ERROR_MESSAGE)
        return ErrorEntry.from_graphql_error(error)

    def schema_sdl(self) -> str:
        """Get the schema as SDL"""
        return schema_to_sdl(self._schema)

    def _count(self, key: str) -> None:
        # Hosts may execute from several threads
        with self._stats_lock:
            self._stats[key] += 1

    def statistics(self) -> Dict[str, Any]:
        """Get executor statistics"""
        with self._stats_lock:
            counters = dict(self._stats)
        return {
            **counters,
            "types": len(self._schema.type_map),
            "config": self._config.to_dict()
        }
