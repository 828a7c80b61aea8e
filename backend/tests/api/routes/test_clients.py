"""Tests for the /api/clients routes (PoolManager is a mock)."""

from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from client_records.core.config import settings
from client_records.core.pool import ExecuteResult
from tests.utils.client import client_row
from tests.utils.utils import db_error


def _base() -> str:
    return f"{settings.API_PREFIX}/clients"


# --- list / count ---


def test_list_clients(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.return_value = [client_row(2), client_row(1)]
    response = client.get(_base())
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["count"] == 2
    assert [c["id"] for c in data["data"]] == [2, 1]
    assert data["data"][0]["email"] == "client2@example.com"
    assert data["data"][0]["created_at"] == "2024-01-02T09:30:00"
    pool_manager.query.assert_awaited_once_with(
        "SELECT * FROM clients ORDER BY created_at DESC"
    )


def test_list_clients_empty(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.return_value = []
    response = client.get(_base())
    assert response.status_code == 200
    assert response.json() == {"success": True, "count": 0, "data": []}


def test_list_clients_db_error(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.side_effect = RuntimeError("connection lost")
    response = client.get(_base())
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to fetch clients",
        "message": "connection lost",
    }


def test_count_clients(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.return_value = [{"total": 3}]
    response = client.get(f"{_base()}/count")
    assert response.status_code == 200
    assert response.json() == {"success": True, "count": 3}


# --- detail ---


def test_get_client(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.return_value = [client_row(5, phone=None)]
    response = client.get(f"{_base()}/5")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["id"] == 5
    assert "message" not in body
    # null columns are kept, as in the list and write responses
    assert "phone" in body["data"]
    assert body["data"]["phone"] is None
    pool_manager.query.assert_awaited_once_with(
        "SELECT * FROM clients WHERE id = %s", [5]
    )


def test_get_client_not_found(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.return_value = []
    response = client.get(f"{_base()}/42")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Client not found",
        "message": "No client found with ID: 42",
    }


def test_get_client_invalid_id(client: TestClient, pool_manager: MagicMock) -> None:
    response = client.get(f"{_base()}/abc")
    assert response.status_code == 422
    assert response.json()["success"] is False
    pool_manager.query.assert_not_awaited()


# --- create ---


def test_create_client(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.execute.return_value = ExecuteResult(rowcount=1, lastrowid=7)
    pool_manager.query.return_value = [
        client_row(7, full_name="Ada Lovelace", email="ada@example.com")
    ]
    response = client.post(
        _base(), json={"full_name": "Ada Lovelace", "email": "ada@example.com"}
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Client created successfully"
    assert body["data"]["id"] == 7
    assert body["data"]["full_name"] == "Ada Lovelace"
    sql, params = pool_manager.execute.await_args.args
    assert sql.startswith("INSERT INTO clients (full_name, email, phone, company)")
    assert params == ["Ada Lovelace", "ada@example.com", None, None]
    pool_manager.query.assert_awaited_once_with(
        "SELECT * FROM clients WHERE id = %s", [7]
    )


def test_create_client_missing_required(
    client: TestClient, pool_manager: MagicMock
) -> None:
    response = client.post(_base(), json={"full_name": "No Email"})
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Validation error",
        "message": "full_name and email are required fields",
    }
    pool_manager.execute.assert_not_awaited()


def test_create_client_without_body(
    client: TestClient, pool_manager: MagicMock
) -> None:
    response = client.post(_base())
    assert response.status_code == 400
    assert response.json()["message"] == "full_name and email are required fields"
    pool_manager.execute.assert_not_awaited()


def test_create_client_duplicate_email(
    client: TestClient, pool_manager: MagicMock
) -> None:
    pool_manager.execute.side_effect = db_error(
        1062, "Duplicate entry 'ada@example.com' for key 'email'", cls=IntegrityError
    )
    response = client.post(
        _base(), json={"full_name": "Ada", "email": "ada@example.com"}
    )
    assert response.status_code == 409
    assert response.json()["error"] == "Duplicate email"


def test_create_client_other_db_error(
    client: TestClient, pool_manager: MagicMock
) -> None:
    pool_manager.execute.side_effect = RuntimeError("disk full")
    response = client.post(
        _base(), json={"full_name": "Ada", "email": "ada@example.com"}
    )
    assert response.status_code == 500
    assert response.json()["error"] == "Failed to create client"
    assert response.json()["message"] == "disk full"


# --- update ---


def test_update_client(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.side_effect = [
        [client_row(3)],
        [client_row(3, full_name="Renamed", phone=None)],
    ]
    pool_manager.execute.return_value = ExecuteResult(rowcount=1, lastrowid=None)
    response = client.put(
        f"{_base()}/3", json={"full_name": "Renamed", "phone": None}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Client updated successfully"
    assert body["data"]["full_name"] == "Renamed"
    pool_manager.execute.assert_awaited_once_with(
        "UPDATE clients SET full_name = %s, phone = %s WHERE id = %s",
        ["Renamed", None, 3],
    )


def test_update_client_not_found(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.return_value = []
    response = client.put(f"{_base()}/9", json={"full_name": "x"})
    assert response.status_code == 404
    assert response.json()["message"] == "No client found with ID: 9"
    pool_manager.execute.assert_not_awaited()


def test_update_client_no_fields(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.return_value = [client_row(3)]
    response = client.put(f"{_base()}/3", json={})
    assert response.status_code == 400
    assert response.json()["error"] == "No fields to update"
    pool_manager.execute.assert_not_awaited()


def test_update_client_ignores_unknown_fields(
    client: TestClient, pool_manager: MagicMock
) -> None:
    pool_manager.query.return_value = [client_row(3)]
    response = client.put(f"{_base()}/3", json={"id": 99, "is_admin": True})
    assert response.status_code == 400
    pool_manager.execute.assert_not_awaited()


def test_update_client_duplicate_email(
    client: TestClient, pool_manager: MagicMock
) -> None:
    pool_manager.query.return_value = [client_row(3)]
    pool_manager.execute.side_effect = db_error(
        1062, "Duplicate entry", cls=IntegrityError
    )
    response = client.put(f"{_base()}/3", json={"email": "taken@example.com"})
    assert response.status_code == 409


# --- delete ---


def test_delete_client(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.return_value = [client_row(4)]
    pool_manager.execute.return_value = ExecuteResult(rowcount=1, lastrowid=None)
    response = client.delete(f"{_base()}/4")
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Client deleted successfully"
    assert body["data"]["id"] == 4
    pool_manager.execute.assert_awaited_once_with(
        "DELETE FROM clients WHERE id = %s", [4]
    )


def test_delete_client_not_found(client: TestClient, pool_manager: MagicMock) -> None:
    pool_manager.query.return_value = []
    response = client.delete(f"{_base()}/4")
    assert response.status_code == 404
    pool_manager.execute.assert_not_awaited()


# --- fallback ---


def test_unknown_route(client: TestClient) -> None:
    response = client.get(f"{settings.API_PREFIX}/nope")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Route not found",
        "message": f"Cannot GET {settings.API_PREFIX}/nope",
    }


def test_unsupported_method_is_route_not_found(client: TestClient) -> None:
    response = client.patch(f"{_base()}/1", json={})
    assert response.status_code == 404
    assert response.json()["error"] == "Route not found"
