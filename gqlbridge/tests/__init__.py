"""
Unit tests for gqlbridge

Test suite covering:
- Execution engine (test_engine.py, test_schema.py)
- Lifecycle controller (test_lifecycle.py)
- Health checks (test_health.py)
- Shared HTTP pipeline (test_http.py)
- Adapters (test_fastapi_adapter.py, test_aiohttp_adapter.py,
  test_lambda_adapter.py, test_standalone.py)
- Configuration and CLI (test_config.py, test_cli.py)

Run tests with:
    pytest gqlbridge/tests/ -v
"""
