"""
Schema construction - SDL plus a resolver map

Provides:
- ResolverRegistry keyed by "Type.field" coordinates
- create_schema() binding resolvers onto an SDL-built schema
- SDL loading and printing helpers
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple, Union

from graphql import (
    GraphQLObjectType,
    GraphQLSchema,
    build_schema,
    print_schema,
    validate_schema,
)
from graphql.error import GraphQLSyntaxError

from ..errors import ConfigurationError

logger = logging.getLogger("GraphQLSchema")

Resolver = Callable[..., object]


def _split_coordinate(coordinate: str) -> Tuple[str, str]:
    type_name, sep, field_name = coordinate.partition(".")
    if not sep or not type_name or not field_name:
        raise ConfigurationError(f"Resolver coordinate must look like 'Type.field': {coordinate!r}")
    return type_name, field_name


class ResolverRegistry:
    """
    Resolvers keyed by schema coordinate

    Resolvers use the graphql-core signature ``resolver(parent, info, **args)``
    and may be plain functions or coroutines.
    """

    def __init__(self, resolvers: Optional[Mapping[str, Resolver]] = None):
        self._resolvers: Dict[Tuple[str, str], Resolver] = {}
        for coordinate, resolver in (resolvers or {}).items():
            self.register(coordinate, resolver)

    def register(self, coordinate: str, resolver: Resolver) -> None:
        """Register a resolver for "Type.field" """
        if not callable(resolver):
            raise ConfigurationError(f"Resolver for {coordinate} is not callable")
        key = _split_coordinate(coordinate)
        if key in self._resolvers:
            logger.warning(f"Replacing resolver for {coordinate}")
        self._resolvers[key] = resolver

    def resolver(self, coordinate: str) -> Callable[[Resolver], Resolver]:
        """Decorator form of register()"""
        def decorator(fn: Resolver) -> Resolver:
            self.register(coordinate, fn)
            return fn
        return decorator

    def items(self) -> Iterator[Tuple[Tuple[str, str], Resolver]]:
        return iter(self._resolvers.items())

    def __len__(self) -> int:
        return len(self._resolvers)

    def __contains__(self, coordinate: str) -> bool:
        return _split_coordinate(coordinate) in self._resolvers

    def bind(self, schema: GraphQLSchema) -> GraphQLSchema:
        """Attach every resolver to its field; unknown coordinates are errors"""
        for (type_name, field_name), resolver in self._resolvers.items():
            graphql_type = schema.get_type(type_name)
            if not isinstance(graphql_type, GraphQLObjectType):
                raise ConfigurationError(f"Schema has no object type named {type_name}")
            graphql_field = graphql_type.fields.get(field_name)
            if graphql_field is None:
                raise ConfigurationError(f"Type {type_name} has no field named {field_name}")
            graphql_field.resolve = resolver
        return schema


def create_schema(
    type_defs: str,
    resolvers: Optional[Union[ResolverRegistry, Mapping[str, Resolver]]] = None
) -> GraphQLSchema:
    """
    Build an executable schema from SDL

    Args:
        type_defs: Schema definition language text
        resolvers: Registry or mapping of "Type.field" to resolver

    Returns:
        A validated GraphQLSchema
    """
    try:
        schema = build_schema(type_defs)
    except GraphQLSyntaxError as e:
        raise ConfigurationError(f"Invalid schema SDL: {e.message}") from e
    except TypeError as e:
        raise ConfigurationError(f"Invalid schema SDL: {e}") from e

    if resolvers is not None:
        registry = resolvers if isinstance(resolvers, ResolverRegistry) else ResolverRegistry(resolvers)
        registry.bind(schema)

    check_schema(schema)
    logger.debug(f"Built schema with {len(schema.type_map)} types")
    return schema


def check_schema(schema: GraphQLSchema) -> None:
    """Raise ConfigurationError when the schema is not executable"""
    errors = validate_schema(schema)
    if errors:
        raise ConfigurationError("Invalid schema: " + "; ".join(e.message for e in errors))


def load_schema_file(path: Union[str, Path]) -> str:
    """Read SDL from a .graphql file"""
    schema_path = Path(path)
    if not schema_path.is_file():
        raise ConfigurationError(f"Schema file not found: {schema_path}")
    return schema_path.read_text(encoding="utf-8")


def schema_to_sdl(schema: GraphQLSchema) -> str:
    return print_schema(schema)
