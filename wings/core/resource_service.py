"""Resource service: implements ResourcePort over a legacy store.

Reads run legacy record -> registry -> attribute and access-control
transformers -> normalized resource. Writes run the same steps backward
and then re-read the stored record, so callers always get back a
resource that reflects what the store holds.
"""

import logging
from collections.abc import Sequence

from .access_control import AccessControlTransformer
from .attribute_transformer import AttributeTransformer
from .errors import ResourceNotFoundError
from .models import LegacyRecord, NormalizedResource
from .ports import LegacyStorePort, ResourcePort
from .registry import ModelRegistry
from .resources import AccessControl

logger = logging.getLogger(__name__)


class ResourceService(ResourcePort):
    """Core implementation of ResourcePort."""

    def __init__(
        self,
        store: LegacyStorePort,
        registry: ModelRegistry,
        attributes: AttributeTransformer | None = None,
        access_control: AccessControlTransformer | None = None,
    ):
        """Initialize the resource service.

        Args:
            store: LegacyStorePort implementation for persistence.
            registry: Registry resolving type pairs.
            attributes: Attribute transformer (lenient by default).
            access_control: Access-control transformer.
        """
        self.store = store
        self.registry = registry
        self.access_control = access_control or AccessControlTransformer()
        self.attributes = attributes or AttributeTransformer(
            access_control=self.access_control
        )

    def _normalize(self, record: LegacyRecord) -> NormalizedResource:
        resource_type = self.registry.reverse_lookup(type(record))
        return self.attributes.to_normalized(record, resource_type)

    async def find_by_id(self, resource_id: str) -> NormalizedResource:
        record = await self.store.get(resource_id)
        if record is None:
            raise ResourceNotFoundError(resource_id)
        return self._normalize(record)

    async def find_many_by_ids(
        self, resource_ids: Sequence[str]
    ) -> list[NormalizedResource]:
        records = await self.store.get_many(resource_ids)
        return [self._normalize(record) for record in records]

    async def find_access_control(
        self, target_id: str
    ) -> NormalizedResource | None:
        legacy_type = self.registry.lookup(AccessControl)
        record = await self.store.find_by_access_to(target_id, legacy_type)
        if record is None:
            return None
        return self._normalize(record)

    async def save(self, resource: NormalizedResource) -> NormalizedResource:
        legacy_type = self.registry.lookup(type(resource))

        existing = None
        if resource.id is not None and not resource.new_record:
            existing = await self.store.get(resource.id.id)
            if existing is not None and type(existing) is not legacy_type:
                logger.warning(
                    f"Record {resource.id} is stored as {type(existing).__name__}, "
                    f"overwriting as {legacy_type.__name__}"
                )
                existing = None

        # Collapse first so a malformed subject aborts before anything is written
        permissions = self.access_control.collapse_permissions(resource.permissions)
        record = self.attributes.to_legacy(resource, legacy_type, existing)
        record.permissions = permissions

        saved = await self.store.save(record)
        logger.info(
            f"Saved {type(resource).__name__} {saved.id} as {legacy_type.__name__}"
        )
        return self._normalize(saved)

    async def delete(self, resource: NormalizedResource) -> None:
        if resource.id is None or not await self.store.delete(resource.id.id):
            raise ResourceNotFoundError("" if resource.id is None else resource.id.id)
        logger.info(f"Deleted {type(resource).__name__} {resource.id}")
