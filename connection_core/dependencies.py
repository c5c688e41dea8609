"""
Dependency injection configuration for FastAPI.

The database and resolver live on ``app.state`` (created by the lifespan),
the entity registry is cached with ``@lru_cache``. All of them can be
overridden in tests through ``app.dependency_overrides``.

Example:
    ```python
    @router.post("/connections/{entity}")
    async def list_connection(
        entity: str,
        context: TenantContextDep,
        resolver: ResolverDep,
        registry: RegistryDep,
    ) -> dict[str, Any]:
        ...
    ```
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from connection_core.entities.catalog import default_registry
from connection_core.entities.meta import EntityRegistry
from connection_core.exceptions import UnauthenticatedError
from connection_core.logging import logger
from connection_core.resolver import ConnectionResolver
from connection_core.schemas.context import TenantContext
from connection_core.schemas.user import UserModel
from connection_core.storage.db import Database


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_resolver(request: Request) -> ConnectionResolver:
    return request.app.state.resolver


@lru_cache
def get_registry() -> EntityRegistry:
    """
    Get the cached entity registry.

    Returns:
        Registry holding every list-queryable entity.
    """
    return default_registry()


def get_tenant_context(request: Request) -> TenantContext:
    """
    Build the tenant context from the authenticated user.

    Anonymous requests get an anonymous context; the resolver rejects it
    before any store access.
    """
    user = request.scope.get("user")
    if isinstance(user, UserModel):
        return user.to_tenant_context()
    return TenantContext.anonymous()


DatabaseDep = Annotated[Database, Depends(get_database)]
ResolverDep = Annotated[ConnectionResolver, Depends(get_resolver)]
RegistryDep = Annotated[EntityRegistry, Depends(get_registry)]
TenantContextDep = Annotated[TenantContext, Depends(get_tenant_context)]


def require_tenant(context: TenantContextDep) -> None:
    """
    Reject anonymous callers before the path is interpreted.

    Attached to routers whose paths name entities or nodes, so an anonymous
    caller gets the same 401 for every path and cannot tell which entities
    exist.

    Raises:
        UnauthenticatedError: If the caller is anonymous or has no tenant.
    """
    if not context.is_authenticated or not context.tenant_id:
        logger.warning("Rejected anonymous request before entity lookup")
        raise UnauthenticatedError("Authentication required")
