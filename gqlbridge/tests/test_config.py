"""Tests for configuration"""

import pytest

from ..config.options import AdapterOptions, BodyParserConfig, EngineConfig
from ..config.settings import LOG_FORMAT, ServerSettings, configure_logging
from ..errors import ConfigurationError


class TestAdapterOptions:
    """Tests for AdapterOptions"""

    def test_defaults(self):
        options = AdapterOptions()
        options.validate()

        assert options.path is None
        assert options.cors is None
        assert options.health_check_path == "/health"
        assert not options.disable_health_check

    @pytest.mark.parametrize("path, expected", [
        (None, "/graphql"),
        ("/api/", "/api"),
        ("/", "/"),
    ])
    def test_resolved_path(self, path, expected):
        assert AdapterOptions(path=path).resolved_path("/graphql") == expected

    @pytest.mark.parametrize("kwargs", [
        {"path": "graphql"},
        {"health_check_path": "health"},
        {"body_parser": BodyParserConfig(max_body_bytes=0)},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            AdapterOptions(**kwargs).validate()

    @pytest.mark.parametrize("kwargs, default_path", [
        ({"health_check_path": "/graphql"}, "/graphql"),
        ({"health_check_path": "/graphql/"}, "/graphql"),
        ({"path": "/api/", "health_check_path": "/api"}, "/graphql"),
        ({"path": "/health"}, "/graphql"),
        ({"health_check_path": "/"}, "/"),
    ])
    def test_health_path_collides_with_mount(self, kwargs, default_path):
        with pytest.raises(ConfigurationError, match="collides"):
            AdapterOptions(**kwargs).validate(default_path)

    def test_distinct_health_and_mount_paths(self):
        AdapterOptions(path="/", health_check_path="/health").validate("/")
        AdapterOptions(health_check_path="/graphql/health").validate("/graphql")

    def test_collision_ignored_without_mount_path(self):
        AdapterOptions(health_check_path="/graphql").validate()

    def test_copy_shares_callback(self):
        def check():
            return True

        options = AdapterOptions(on_health_check=check)
        copied = options.copy()

        assert copied.on_health_check is check
        assert copied.body_parser is not options.body_parser
        assert copied.to_dict()["has_health_callback"]


class TestBodyParserConfig:
    """Tests for BodyParserConfig"""

    def test_accepts(self):
        config = BodyParserConfig()
        assert config.accepts("application/json")
        assert config.accepts("Application/JSON; charset=utf-8")
        assert not config.accepts("text/plain")
        assert not config.accepts(None)


class TestEngineConfig:
    """Tests for EngineConfig"""

    def test_to_dict(self):
        data = EngineConfig(max_query_depth=5).to_dict()
        assert data["max_query_depth"] == 5
        assert data["introspection"] is True


class TestServerSettings:
    """Tests for ServerSettings"""

    def test_from_env(self):
        settings = ServerSettings.from_env({
            "GQLBRIDGE_HOST": "127.0.0.1",
            "GQLBRIDGE_PORT": "8080",
            "GQLBRIDGE_PATH": "/graphql",
            "GQLBRIDGE_LOG_LEVEL": "debug",
        })
        assert settings.to_dict() == {
            "host": "127.0.0.1",
            "port": 8080,
            "path": "/graphql",
            "log_level": "DEBUG"
        }

    def test_defaults_from_empty_env(self):
        assert ServerSettings.from_env({}) == ServerSettings()

    def test_invalid_port(self):
        with pytest.raises(ConfigurationError):
            ServerSettings.from_env({"GQLBRIDGE_PORT": "http"})


class TestConfigureLogging:
    """Tests for configure_logging"""

    def test_unknown_level(self):
        with pytest.raises(ConfigurationError):
            configure_logging("LOUD")

    def test_format_names_logger(self):
        assert "%(name)s" in LOG_FORMAT
        configure_logging("warning")
