"""Health check endpoint for monitoring service status."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from connection_core.dependencies import DatabaseDep, RegistryDep
from connection_core.logging import logger
from connection_core.storage.db import STORE_ERRORS

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    database: str
    entities: list[str]


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check(
    response: Response, database: DatabaseDep, registry: RegistryDep
) -> HealthResponse:
    """
    Report store reachability and the entities served.

    Responds 503 Service Unavailable while the database cannot be reached.
    """
    try:
        await database.ping()
    except STORE_ERRORS as e:
        logger.error(f"Database health check failed: {e}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="unhealthy", database="unreachable", entities=registry.names()
        )

    return HealthResponse(
        status="healthy", database="reachable", entities=registry.names()
    )
