from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from client_records.api.deps import get_pool_manager
from client_records.core.pool import PoolManager
from client_records.main import app


@pytest.fixture
def pool_manager() -> MagicMock:
    """PoolManager double; async methods (query, execute, ...) are AsyncMocks."""
    return MagicMock(spec=PoolManager)


@pytest.fixture
def client(pool_manager: MagicMock) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_pool_manager] = lambda: pool_manager
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
