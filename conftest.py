import pytest

from kestrel import api


@pytest.fixture(autouse=True)
def reset_active_client():
    yield
    api.stop(timeout=1)
    api._client = None
