from pydantic import BaseModel, ConfigDict

from connection_core.types import TenantId, UserId


class TenantContext(BaseModel):  # type: ignore[misc]
    """
    Per-request tenant/auth context.

    Produced by the authentication collaborator and passed into every engine
    operation. The engine never authenticates credentials itself; it only
    refuses to run when ``is_authenticated`` is false or no tenant is known.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: TenantId | None = None
    user_id: UserId | None = None
    permissions: frozenset[str] = frozenset()
    is_authenticated: bool = False

    @classmethod
    def anonymous(cls) -> "TenantContext":
        return cls()

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions
