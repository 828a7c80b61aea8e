"""
Client records CRUD.

Endpoints: list, count, detail, create, update (partial), delete.
Errors use the envelope ``{success: false, error, message}``.
"""

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from client_records.api.deps import PoolDep
from client_records.core.pool import ER_DUP_ENTRY, PoolManager, mysql_error_code
from client_records.models import (
    ClientCountOut,
    ClientCreate,
    ClientDetailOut,
    ClientListOut,
    ClientOut,
    ClientUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["clients"])

_SELECT_BY_ID = "SELECT * FROM clients WHERE id = %s"


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    """Return the standard error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": message},
    )


def _not_found(id: int) -> JSONResponse:
    return _error(404, "Client not found", f"No client found with ID: {id}")


def _is_duplicate_email(exc: Exception) -> bool:
    return isinstance(exc, IntegrityError) and mysql_error_code(exc) == ER_DUP_ENTRY


async def _get_client(pool: PoolManager, id: int) -> dict[str, Any] | None:
    rows = await pool.query(_SELECT_BY_ID, [id])
    return rows[0] if rows else None


@router.get("", response_model=ClientListOut)
async def list_clients(pool: PoolDep) -> Any:
    """All clients, newest first."""
    try:
        rows = await pool.query("SELECT * FROM clients ORDER BY created_at DESC")
    except Exception as e:
        logger.exception("Error fetching clients")
        return _error(500, "Failed to fetch clients", str(e))
    return ClientListOut(count=len(rows), data=rows)


@router.get("/count", response_model=ClientCountOut)
async def count_clients(pool: PoolDep) -> Any:
    try:
        rows = await pool.query("SELECT COUNT(*) AS total FROM clients")
    except Exception as e:
        logger.exception("Error counting clients")
        return _error(500, "Failed to count clients", str(e))
    return ClientCountOut(count=rows[0]["total"])


@router.get("/{id}", response_model=ClientDetailOut)
async def get_client(pool: PoolDep, id: int) -> Any:
    try:
        client = await _get_client(pool, id)
    except Exception as e:
        logger.exception("Error fetching client %s", id)
        return _error(500, "Failed to fetch client", str(e))
    if client is None:
        return _not_found(id)
    return ClientDetailOut(data=client)


@router.post("", response_model=ClientOut, status_code=201)
async def create_client(pool: PoolDep, body: ClientCreate | None = None) -> Any:
    """Create a client; full_name and email are required, email must be unique."""
    body = body or ClientCreate()
    if not body.full_name or not body.email:
        return _error(
            400, "Validation error", "full_name and email are required fields"
        )
    try:
        result = await pool.execute(
            "INSERT INTO clients (full_name, email, phone, company) "
            "VALUES (%s, %s, %s, %s)",
            [body.full_name, body.email, body.phone or None, body.company or None],
        )
        client = await _get_client(pool, result.lastrowid)
    except Exception as e:
        logger.exception("Error creating client")
        if _is_duplicate_email(e):
            return _error(
                409, "Duplicate email", "A client with this email already exists"
            )
        return _error(500, "Failed to create client", str(e))
    return ClientOut(message="Client created successfully", data=client)


@router.put("/{id}", response_model=ClientOut)
async def update_client(pool: PoolDep, id: int, body: ClientUpdate) -> Any:
    """Update only the fields present in the body."""
    try:
        if await _get_client(pool, id) is None:
            return _not_found(id)

        updates = body.model_dump(exclude_unset=True)
        if not updates:
            return _error(
                400,
                "No fields to update",
                "Please provide at least one field to update",
            )
        # Column names come from the ClientUpdate schema, never from the request.
        assignments = ", ".join(f"{column} = %s" for column in updates)
        await pool.execute(
            f"UPDATE clients SET {assignments} WHERE id = %s",
            [*updates.values(), id],
        )
        client = await _get_client(pool, id)
    except Exception as e:
        logger.exception("Error updating client %s", id)
        if _is_duplicate_email(e):
            return _error(
                409, "Duplicate email", "A client with this email already exists"
            )
        return _error(500, "Failed to update client", str(e))
    return ClientOut(message="Client updated successfully", data=client)


@router.delete("/{id}", response_model=ClientOut)
async def delete_client(pool: PoolDep, id: int) -> Any:
    """Delete a client; returns the deleted row."""
    try:
        client = await _get_client(pool, id)
        if client is None:
            return _not_found(id)
        await pool.execute("DELETE FROM clients WHERE id = %s", [id])
    except Exception as e:
        logger.exception("Error deleting client %s", id)
        return _error(500, "Failed to delete client", str(e))
    return ClientOut(message="Client deleted successfully", data=client)
