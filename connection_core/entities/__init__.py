from connection_core.entities.meta import (
    EntityMeta,
    EntityRegistry,
    FieldSpec,
)

__all__ = ["EntityMeta", "EntityRegistry", "FieldSpec"]
