"""
Pytest Configuration for Integration Tests

Integration tests talk to the MinIO server named by MINIO_ENDPOINT and are
skipped unless selected with -m integration.
"""

import pytest


def pytest_collection_modifyitems(config, items):
    """Skip integration tests by default unless explicitly requested."""
    if config.getoption("-m") and "integration" in config.getoption("-m"):
        return

    skip_integration = pytest.mark.skip(
        reason="Integration tests skipped by default. Run with: pytest -m integration"
    )

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
