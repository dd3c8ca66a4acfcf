"""Built-in resource types and their legacy counterparts."""

from .models import LegacyRecord, NormalizedResource
from .registry import ModelRegistry


class LegacyAccessControl(LegacyRecord):
    """Legacy access-control list: a record that only carries permissions."""

    properties = frozenset()


class AccessControl(NormalizedResource):
    """Normalized access-control list for a single target resource."""


class LegacyCollection(LegacyRecord):
    """Legacy PCDM collection."""

    properties = frozenset(
        {"title", "creator", "description", "collection_type_gid", "member_of_collection_ids"}
    )


class PcdmCollection(NormalizedResource):
    """Normalized PCDM collection."""

    human_readable_type = "Collection"


DEFAULT_PAIRS: tuple[tuple[type[NormalizedResource], type[LegacyRecord]], ...] = (
    (AccessControl, LegacyAccessControl),
    (PcdmCollection, LegacyCollection),
)


def register_defaults(registry: ModelRegistry) -> ModelRegistry:
    """Register the built-in type pairs. Returns the registry for chaining."""
    for normalized_type, legacy_type in DEFAULT_PAIRS:
        registry.register(normalized_type, legacy_type)
    return registry
