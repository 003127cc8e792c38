"""Liveness and readiness checks."""

import logging
import os

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from prledger.db.session import get_db
from prledger.models.lift_log import LiftLog
from prledger.services.scope_locks import scope_locks

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def health():
    """Liveness. Adds built_at when PRLEDGER_BUILT_AT is set."""
    payload: dict = {"status": "ok"}
    built_at = os.environ.get("PRLEDGER_BUILT_AT")
    if built_at:
        payload["built_at"] = built_at
    return payload


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_db)):
    """Readiness: the lift log table answers, plus how many scopes are mid-rebuild."""
    try:
        lift_logs = await db.scalar(select(func.count()).select_from(LiftLog))
    except Exception as e:
        logger.exception("Readiness check failed")
        return JSONResponse(status_code=503, content={"status": "error", "database": str(e)})
    return {
        "status": "ok",
        "database": "connected",
        "lift_logs": lift_logs,
        "busy_scopes": len(scope_locks),
    }
