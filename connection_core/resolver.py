"""
Connection resolver: the single entry point of the list-query engine.

Pipeline per call (no state survives between calls):

    auth check -> permission -> compile filters/sorts -> page request
    -> decode cursor -> count -> window -> facets -> connection

Everything before the first store call is pure, so unauthenticated callers,
unknown fields, mixed pagination modes and malformed cursors are rejected
without touching the database.
"""

import time
from typing import Any, Mapping, Sequence

from sqlmodel import select

from connection_core.constants import MAX_PAGE_SIZE
from connection_core.entities.meta import EntityMeta
from connection_core.exceptions import (
    AppException,
    AuthorizationError,
    NotFoundError,
    StoreError,
    UnauthenticatedError,
    ValidationError,
)
from connection_core.logging import logger, set_log_context
from connection_core.schemas.connection import Connection
from connection_core.schemas.context import TenantContext
from connection_core.schemas.query import (
    FilterDescriptor,
    PaginationRequest,
    SortDescriptor,
)
from connection_core.settings import app_settings
from connection_core.storage.connection import ConnectionBuilder
from connection_core.storage.db import STORE_ERRORS, Database
from connection_core.storage.pagination import (
    WindowStrategy,
    resolve_page_request,
    select_strategy,
)
from connection_core.storage.query import FilterCompiler, build_plan
from connection_core.storage.query.coercion import coerce_value
from connection_core.types import QueryOutcome, TenantId, WindowMode
from connection_core.utils.metrics import (
    connection_page_size,
    connection_queries_total,
    connection_query_duration_seconds,
)


def _outcome(ex: AppException) -> QueryOutcome:
    if isinstance(ex, UnauthenticatedError):
        return "unauthenticated"
    if isinstance(ex, AuthorizationError):
        return "permission_denied"
    if isinstance(ex, NotFoundError):
        return "not_found"
    if isinstance(ex, ValidationError):
        return "validation_error"
    return "store_error"


class ConnectionResolver:
    """
    Resolves list and single-node queries for any registered entity.

    Args:
        database: Store the queries run against.
        strategy: Window strategy; defaults to ``CURSOR_STRATEGY``.
        default_page_size: Size used when neither ``first`` nor ``last`` is
            given; defaults to ``DEFAULT_PAGE_SIZE``.
        max_page_size: Requests above this are clamped.

    Example:
        ```python
        resolver = ConnectionResolver(database)
        connection = await resolver.resolve_connection(
            context,
            repair_orders,
            base_scope={"customerId": "c-1"},
            filters=[FilterDescriptor(field="status", operator="IN",
                                      values=["OPEN", "IN_PROGRESS"])],
            sorts=[SortDescriptor(field="priority", direction="DESC")],
            pagination=PaginationRequest(first=10),
        )
        ```
    """

    def __init__(
        self,
        database: Database,
        strategy: WindowStrategy | None = None,
        default_page_size: int | None = None,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.database = database
        self.strategy = strategy or select_strategy(
            app_settings.CURSOR_STRATEGY
        )
        self.default_page_size = (
            default_page_size or app_settings.DEFAULT_PAGE_SIZE
        )
        self.max_page_size = max_page_size

    @staticmethod
    def _authorize(context: TenantContext, entity: EntityMeta) -> TenantId:
        """
        Gate every call on the tenant context.

        Raises:
            UnauthenticatedError: If the caller is anonymous or has no tenant.
            AuthorizationError: If the entity's permission is missing.
        """
        if not context.is_authenticated or not context.tenant_id:
            raise UnauthenticatedError("Authentication required")
        if entity.required_permission and not context.has_permission(
            entity.required_permission
        ):
            raise AuthorizationError(
                f"Permission '{entity.required_permission}' required "
                f"to query '{entity.name}'"
            )
        return context.tenant_id

    def _record(self, entity: EntityMeta, ex: AppException) -> None:
        outcome = _outcome(ex)
        connection_queries_total.labels(entity=entity.name, outcome=outcome).inc()
        if isinstance(ex, (UnauthenticatedError, AuthorizationError)):
            logger.warning(f"Rejected {entity.name} query: {ex.message}")
        elif isinstance(ex, ValidationError):
            logger.warning(f"Invalid {entity.name} query: {ex.message}")

    async def resolve_connection(
        self,
        context: TenantContext,
        entity: EntityMeta,
        base_scope: Mapping[str, Any] | None = None,
        filters: Sequence[FilterDescriptor] | None = None,
        sorts: Sequence[SortDescriptor] | None = None,
        pagination: PaginationRequest | None = None,
        facets: Sequence[str] | None = None,
    ) -> Connection[Any]:
        """
        Resolve one page of a tenant-scoped list query.

        Args:
            context: Caller's tenant/auth context.
            entity: Entity metadata of the listed type.
            base_scope: Trusted equality filters from the calling resolver.
            filters: Caller filters (allow-listed fields only).
            sorts: Caller sorts; entity default when empty.
            pagination: Relay pagination arguments.
            facets: Facetable fields to aggregate over the filtered set.

        Returns:
            Connection whose nodes are the entity's model instances.

        Raises:
            UnauthenticatedError: Before any store access, if unauthenticated.
            AuthorizationError: If the entity permission is missing.
            InvalidFieldError: If a field is unknown or lacks the capability.
            InvalidFilterError: If a filter is malformed.
            InvalidPaginationError: If forward and backward modes are mixed.
            InvalidCursorError: If a cursor is malformed or foreign.
            StoreError: If a store call fails (not retried).
        """
        start_time = time.time()
        try:
            tenant_id = self._authorize(context, entity)
            set_log_context(tenant_id=tenant_id, entity=entity.name)

            plan = build_plan(entity, tenant_id, filters, sorts, base_scope)
            page = resolve_page_request(
                pagination, self.default_page_size, self.max_page_size
            )
            position = self.strategy.parse_cursor(plan, page.cursor)
            for field in facets or []:
                entity.resolve(field, "facet")
            mode: WindowMode = "forward" if page.forward else "backward"
            logger.debug(
                f"Compiled {entity.name} plan: {len(plan.where)} predicates, "
                f"sort {[key.signature() for key in plan.sort_keys]}, "
                f"{mode} window of {page.size}"
            )

            try:
                async with self.database.session() as session:
                    builder = ConnectionBuilder(session, self.strategy)
                    connection = await builder.build(
                        plan, page, position, facets
                    )
            except STORE_ERRORS as ex:
                logger.error(
                    f"Store error while listing {entity.name}: {ex}",
                    exc_info=True,
                )
                raise StoreError("resolve_connection", entity.name) from ex
        except AppException as ex:
            self._record(entity, ex)
            raise

        connection_queries_total.labels(
            entity=entity.name, outcome="success"
        ).inc()
        connection_query_duration_seconds.labels(entity=entity.name).observe(
            time.time() - start_time
        )
        connection_page_size.labels(entity=entity.name).observe(
            len(connection.edges)
        )
        logger.debug(
            f"Resolved {entity.name} page ({self.strategy.name}): "
            f"{len(connection.edges)} edges, "
            f"total {connection.total_count}"
        )
        return connection

    async def get_node(
        self,
        context: TenantContext,
        entity: EntityMeta,
        node_id: str,
        base_scope: Mapping[str, Any] | None = None,
    ) -> Any:
        """
        Fetch one row by primary key under the same tenant scope as lists.

        A row owned by another tenant, soft-deleted, or outside
        ``base_scope`` is reported exactly like a missing one.

        Raises:
            UnauthenticatedError: Before any store access, if unauthenticated.
            AuthorizationError: If the entity permission is missing.
            NotFoundError: If no visible row has that id.
            StoreError: If the store call fails.
        """
        try:
            tenant_id = self._authorize(context, entity)
            set_log_context(tenant_id=tenant_id, entity=entity.name)

            pk = entity.column(entity.primary_key)
            where = FilterCompiler(entity).base_scope(tenant_id, base_scope)
            try:
                where.append(pk == coerce_value(pk, node_id, entity.primary_key))
            except ValidationError:
                raise NotFoundError(f"{entity.name} '{node_id}' not found") from None

            try:
                async with self.database.session() as session:
                    results = await session.exec(
                        select(entity.model).where(*where)
                    )
                    node = results.first()
            except STORE_ERRORS as ex:
                logger.error(
                    f"Store error while loading {entity.name}: {ex}",
                    exc_info=True,
                )
                raise StoreError("get_node", entity.name) from ex

            if node is None:
                raise NotFoundError(f"{entity.name} '{node_id}' not found")
        except AppException as ex:
            self._record(entity, ex)
            raise

        connection_queries_total.labels(
            entity=entity.name, outcome="success"
        ).inc()
        return node
