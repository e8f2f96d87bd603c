"""
Health Check Endpoints.

Liveness, readiness and version endpoints used by load balancers and
deployment checks.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from yoyo_mall.core.logging_config import get_logger
from yoyo_mall.server.core import constant
from yoyo_mall.server.services.deps import SessionDep

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    summary="Liveness",
    description="Answers as long as the process serves requests; touches no dependency.",
)
async def health_check():
    return {"status": "ok"}


@router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Check that the database answers queries.",
    response_description="Status object; 503 when the database is unreachable.",
    responses={503: {"description": "Database unavailable"}},
)
async def readiness_check(session: SessionDep):
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unavailable", "database": "error"})
    return {"status": "ok", "database": "ok"}


@router.get(
    "/version",
    summary="Version",
    description="Package version of the API and the version of its response schema.",
)
async def version():
    return {"version": constant.VERSION, "schema_version": constant.SCHEMA_VERSION}
