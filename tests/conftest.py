import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Keep structlog's global configuration from leaking between tests."""
    yield
    structlog.reset_defaults()
