import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from dailychallenge.core.database import check_connection
from dailychallenge.core.logging import get_request_id

logger = logging.getLogger("dailychallenge")

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    """Liveness plus database reachability."""
    db_ok = check_connection()
    if not db_ok:
        logger.warning("healthz.db_unreachable", extra={"request_id": get_request_id()})
        return JSONResponse(status_code=503, content={"status": "degraded", "db": False})
    return {"status": "ok", "db": True}
