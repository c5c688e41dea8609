"""HTTP surface of the connection engine."""

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from connection_core.dependencies import (
    RegistryDep,
    ResolverDep,
    TenantContextDep,
    require_tenant,
)
from connection_core.entities.meta import EntityMeta
from connection_core.schemas.errors import HTTPErrorResponse
from connection_core.schemas.query import ConnectionQuery

router = APIRouter(
    prefix="/connections",
    tags=["connections"],
    dependencies=[Depends(require_tenant)],
)

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": HTTPErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": HTTPErrorResponse},
    status.HTTP_403_FORBIDDEN: {"model": HTTPErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": HTTPErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": HTTPErrorResponse},
}


def _set_cache_headers(response: Response, entity: EntityMeta) -> None:
    """Advisory caching hint; results are per tenant, so never shared."""
    if entity.cache_max_age:
        response.headers["Cache-Control"] = (
            f"private, max-age={entity.cache_max_age}"
        )
    else:
        response.headers["Cache-Control"] = "no-store"


def _dump(node: Any) -> dict[str, Any]:
    return node.model_dump(mode="json")


@router.post(
    "/{entity}",
    summary="Resolve one page of a list query",
    responses=_ERROR_RESPONSES,
)
async def list_connection(
    entity: str,
    query: ConnectionQuery,
    response: Response,
    context: TenantContextDep,
    resolver: ResolverDep,
    registry: RegistryDep,
) -> dict[str, Any]:
    """
    Resolve a Relay connection for ``entity``.

    The body carries filters, sorts, pagination arguments, requested facets
    and scope values. Errors use the standard error envelope.

    Example:
        ```
        POST /connections/repairOrders
        {
            "filters": [{"field": "status", "operator": "EQUALS", "value": "OPEN"}],
            "sorts": [{"field": "priority", "direction": "DESC"}],
            "pagination": {"first": 10}
        }
        ```
    """
    meta = registry.get(entity)
    connection = await resolver.resolve_connection(
        context,
        meta,
        base_scope=query.scope,
        filters=query.filters,
        sorts=query.sorts,
        pagination=query.pagination,
        facets=query.facets,
    )
    _set_cache_headers(response, meta)
    return connection.map_nodes(_dump).model_dump(mode="json", by_alias=True)


@router.get(
    "/{entity}/{node_id}",
    summary="Fetch one node by id",
    responses=_ERROR_RESPONSES,
)
async def get_node(
    entity: str,
    node_id: str,
    response: Response,
    context: TenantContextDep,
    resolver: ResolverDep,
    registry: RegistryDep,
) -> dict[str, Any]:
    meta = registry.get(entity)
    node = await resolver.get_node(context, meta, node_id)
    _set_cache_headers(response, meta)
    return _dump(node)
