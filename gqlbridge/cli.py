"""
Command line entry points

Usage:
    python -m gqlbridge serve --schema schema.graphql --resolvers app.resolvers:RESOLVERS
    python -m gqlbridge sdl --schema schema.graphql
    python -m gqlbridge version
"""

import argparse
import asyncio
import importlib
import logging
import sys
from typing import Any, List, Optional

from .config.options import AdapterOptions, CorsPolicy, EngineConfig
from .config.settings import ServerSettings, configure_logging
from .engine.executor import ExecutionEngine
from .engine.schema import create_schema, load_schema_file, schema_to_sdl
from .errors import ConfigurationError, GraphQLBridgeError
from .lifecycle.controller import LifecycleController
from .lifecycle.states import LifecycleState
from .adapters.standalone import StandaloneServer

logger = logging.getLogger("gqlbridge.cli")


def load_object(reference: str) -> Any:
    """Import "package.module:attribute" """
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigurationError(f"Expected 'module:attribute', got {reference!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import {module_name}: {e}") from e
    try:
        return getattr(module, attribute)
    except AttributeError as e:
        raise ConfigurationError(f"{module_name} has no attribute {attribute}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gqlbridge",
        description="Serve a GraphQL schema over HTTP"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    serve_parser = subparsers.add_parser("serve", help="Run the standalone server")
    serve_parser.add_argument("--schema", required=True, help="Path to a .graphql SDL file")
    serve_parser.add_argument("--resolvers", help="Resolver map as module:attribute")
    serve_parser.add_argument("--host", help="Host to bind to (env GQLBRIDGE_HOST)")
    serve_parser.add_argument("--port", type=int, help="Port to listen on (env GQLBRIDGE_PORT)")
    serve_parser.add_argument("--path", help="GraphQL mount path (env GQLBRIDGE_PATH)")
    serve_parser.add_argument("--log-level", help="Logging level (env GQLBRIDGE_LOG_LEVEL)")
    serve_parser.add_argument("--cors", action="store_true", help="Allow cross-origin requests from any origin")
    serve_parser.add_argument("--max-depth", type=int, help="Reject queries nested deeper than this")
    serve_parser.add_argument("--no-introspection", action="store_true", help="Disable schema introspection")
    serve_parser.add_argument("--no-health-check", action="store_true", help="Disable the health-check path")

    sdl_parser = subparsers.add_parser("sdl", help="Print the normalized schema")
    sdl_parser.add_argument("--schema", required=True, help="Path to a .graphql SDL file")

    subparsers.add_parser("version", help="Show version")
    return parser


def settings_from_args(args: argparse.Namespace) -> ServerSettings:
    settings = ServerSettings.from_env()
    if args.host:
        settings.host = args.host
    if args.port is not None:
        settings.port = args.port
    if args.path:
        settings.path = args.path
    if args.log_level:
        settings.log_level = args.log_level.upper()
    return settings


async def serve(
    engine: ExecutionEngine,
    settings: ServerSettings,
    options: AdapterOptions
) -> None:
    """Start, attach, listen until interrupted, then drain"""
    controller = LifecycleController(name="gqlbridge")
    controller.start()
    server = StandaloneServer(engine, settings)
    controller.attach(server, options)

    try:
        await server.serve_forever()
    finally:
        if controller.state in (LifecycleState.STARTED, LifecycleState.ATTACHED):
            report = await controller.drain()
            for failure in report.failures:
                logger.error(f"Drain hook {failure.name} failed: {failure.error!r}")


def run_serve(args: argparse.Namespace) -> int:
    settings = settings_from_args(args)
    configure_logging(settings.log_level)

    resolvers = load_object(args.resolvers) if args.resolvers else None
    engine = ExecutionEngine.from_sdl(
        load_schema_file(args.schema),
        resolvers,
        config=EngineConfig(
            max_query_depth=args.max_depth,
            introspection=not args.no_introspection
        )
    )
    options = AdapterOptions(
        path=settings.path,
        cors=CorsPolicy() if args.cors else None,
        disable_health_check=args.no_health_check
    )
    asyncio.run(serve(engine, settings, options))
    return 0


def run_sdl(args: argparse.Namespace) -> int:
    schema = create_schema(load_schema_file(args.schema))
    print(schema_to_sdl(schema))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "serve":
            return run_serve(args)
        if args.command == "sdl":
            return run_sdl(args)
        if args.command == "version":
            from . import __version__
            print(f"gqlbridge v{__version__}")
            return 0
    except GraphQLBridgeError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130

    parser.print_help()
    return 1
