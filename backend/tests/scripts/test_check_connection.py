import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from client_records import check_connection as check
from client_records.core.errors import DatabaseConnectionError


def test_check_connection_success(pool_manager: MagicMock) -> None:
    pool_manager.query.side_effect = [
        [{"result": 2}],
        [{"count": 5}],
        [{"version": "8.0.36"}],
    ]
    result = asyncio.run(check.check_connection(pool_manager))
    assert result == {"result": 2, "clients": 5, "version": "8.0.36"}
    pool_manager.get_pool.assert_awaited_once()
    pool_manager.close_pool.assert_awaited_once()


def test_check_connection_closes_pool_on_failure(pool_manager: MagicMock) -> None:
    pool_manager.get_pool.side_effect = DatabaseConnectionError("refused")
    with pytest.raises(DatabaseConnectionError):
        asyncio.run(check.check_connection(pool_manager))
    pool_manager.query.assert_not_awaited()
    pool_manager.close_pool.assert_awaited_once()


def test_main_exit_codes() -> None:
    with patch.object(check, "check_connection", new=AsyncMock(return_value={})):
        assert check.main() == 0
    with patch.object(
        check, "check_connection", new=AsyncMock(side_effect=RuntimeError("down"))
    ):
        assert check.main() == 1
