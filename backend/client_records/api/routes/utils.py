import html

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, JSONResponse

from client_records.api.deps import PoolDep, SettingsDep
from client_records.core.health import liveness_check, readiness_check

router = APIRouter(tags=["utils"])

_STATUS_PAGE = """
<html>
  <head>
    <title>{title}</title>
  </head>
  <body>
    <h1>{title}</h1>
    <p>
      Welcome to the {title}.
      This system helps manage and organize client data efficiently.
    </p>
    <p>
      <strong>Total clients in database:</strong> {total}
    </p>
  </body>
</html>
"""

_STATUS_ERROR_PAGE = """
<html>
  <head><title>Database Error</title></head>
  <body>
    <h1>Database Connection Failed</h1>
    <p><strong>Error:</strong> {error}</p>
  </body>
</html>
"""


@router.get("/status", response_class=HTMLResponse)
async def status(pool: PoolDep, config: SettingsDep) -> HTMLResponse:
    """Human-readable status page with the total number of clients."""
    try:
        rows = await pool.query("SELECT COUNT(*) AS total FROM clients")
    except Exception as e:
        error = html.escape(str(e))
        return HTMLResponse(_STATUS_ERROR_PAGE.format(error=error), status_code=500)
    return HTMLResponse(
        _STATUS_PAGE.format(title=config.PROJECT_NAME, total=rows[0]["total"])
    )


@router.get("/utils/liveness/", response_model=None)
async def liveness() -> bool | JSONResponse:
    """
    Liveness probe: is the process alive and responsive?

    Lightweight: no DB I/O.  If this fails the container should be
    restarted by the orchestrator.
    """
    ok, failures = liveness_check()
    if not ok:
        return JSONResponse(
            status_code=503,
            content={"success": False, "message": "Process unhealthy", "data": failures},
        )
    return True


@router.get("/utils/health-check/", response_model=None)
async def health_check(pool: PoolDep, config: SettingsDep) -> bool | JSONResponse:
    """
    Readiness probe: can the service handle traffic?

    Checks: MySQL reachable + every migration file recorded in the ledger.
    Returns 200 with true if ready; 503 otherwise.
    """
    ok, failures = await readiness_check(pool, config)
    if not ok:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "Service not ready",
                "data": failures,
            },
        )
    return True
