"""Port interfaces for the Wings adapter core.

These abstract base classes define the boundaries between the core
conversion logic and the outside world. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - LegacyStorePort: Read and write legacy records and their permissions

2. **Driving Ports** (callers call into core)
   - ResourcePort: Read and write normalized resources
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from .models import LegacyRecord, NormalizedResource


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class LegacyStorePort(ABC):
    """Port for the persistence collaborator that owns legacy records.

    Adapters must return records as instances of the concrete legacy
    type they were saved as, with permissions in their stored order.
    Latency, retries and connection management are the adapter's
    responsibility.
    """

    @abstractmethod
    async def get(self, record_id: str) -> LegacyRecord | None:
        """Load a record with its permissions.

        Returns:
            The record, or None if no record has this id.

        Raises:
            Exception: If the backing store is unreachable.
        """

    @abstractmethod
    async def get_many(self, record_ids: Sequence[str]) -> list[LegacyRecord]:
        """Load several records.

        Returns:
            Records found, in the order of ``record_ids``. Missing ids
            are skipped.
        """

    @abstractmethod
    async def find_by_access_to(
        self, target_id: str, legacy_type: type[LegacyRecord]
    ) -> LegacyRecord | None:
        """Find a record of ``legacy_type`` holding permissions on ``target_id``.

        Records of other types are ignored, even when they carry a
        permission on the same target.

        Returns:
            The matching record that was first stored, or None.
        """

    @abstractmethod
    async def save(self, record: LegacyRecord) -> LegacyRecord:
        """Create or update a record and replace its permission list.

        Assigns ids to the record and to any new permissions, sets the
        creation timestamp on first save and the modification timestamp
        on every save.

        Returns:
            The stored record, marked as persisted.
        """

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        """Delete a record and its permissions.

        Returns:
            True if a record was deleted.
        """

    @abstractmethod
    async def close_pool(self) -> None:
        """Release any held connections."""


# ============================================================================
# DRIVING PORTS (Callers call into core)
# ============================================================================


class ResourcePort(ABC):
    """Port for reading and writing normalized resources."""

    @abstractmethod
    async def find_by_id(self, resource_id: str) -> NormalizedResource:
        """Load the normalized resource for a legacy record id.

        Raises:
            ResourceNotFoundError: If no record has this id.
            UnregisteredTypeError: If the record's type is not registered.
        """

    @abstractmethod
    async def find_many_by_ids(
        self, resource_ids: Sequence[str]
    ) -> list[NormalizedResource]:
        """Load several resources, skipping missing ids."""

    @abstractmethod
    async def find_access_control(
        self, target_id: str
    ) -> NormalizedResource | None:
        """Load the access-control resource governing ``target_id``.

        Raises:
            UnregisteredTypeError: If AccessControl has no legacy counterpart.
        """

    @abstractmethod
    async def save(self, resource: NormalizedResource) -> NormalizedResource:
        """Persist a resource through the legacy store.

        Returns:
            The resource as re-read after saving.

        Raises:
            UnregisteredTypeError: If the resource's type is not registered.
            UnmappableAttributeError: In strict mode.
            MalformedSubjectError: If a permission subject is malformed.
        """

    @abstractmethod
    async def delete(self, resource: NormalizedResource) -> None:
        """Delete a persisted resource.

        Raises:
            ResourceNotFoundError: If the resource was never saved or no
                longer exists.
        """
