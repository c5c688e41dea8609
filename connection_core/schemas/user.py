from datetime import datetime

from pydantic import BaseModel, Field

from connection_core.schemas.context import TenantContext
from connection_core.settings import app_settings


class UserModel(BaseModel):  # type: ignore[misc]
    id: str = Field(..., alias="sub")
    expired_in: int = Field(
        ..., alias="exp"
    )  # timestamp when keycloak session expires
    username: str = Field(..., alias="preferred_username")
    tenant_id: str | None = None
    roles: list[str] = []

    def __init__(self, **kwargs) -> None:  # type: ignore[no-untyped-def]
        # Get client roles
        kwargs["roles"] = (
            kwargs.get("resource_access", {})
            .get(kwargs["azp"], {})
            .get("roles", [])
        )
        kwargs["tenant_id"] = kwargs.get(app_settings.TENANT_CLAIM)

        super(UserModel, self).__init__(**kwargs)

    @property
    def is_authenticated(self) -> bool:
        return self.expired_seconds > 0

    @property
    def expired_seconds(self) -> int:
        return self.expired_in - int(datetime.now().timestamp())

    def to_tenant_context(self) -> TenantContext:
        return TenantContext(
            tenant_id=self.tenant_id,
            user_id=self.id,
            permissions=frozenset(self.roles),
            is_authenticated=self.is_authenticated,
        )

    def __hash__(self) -> int:
        return hash(self.id)
