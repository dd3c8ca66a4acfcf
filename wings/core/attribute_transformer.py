"""Attribute transformer: legacy records <-> normalized resources.

The forward direction copies every legacy attribute verbatim and adds
the derived fields (new-record flag, creation and modification
timestamps) plus the expanded permission list. The reverse direction
writes the attribute mapping back onto a legacy type, leaving derived
fields and permissions to their own handlers.
"""

import logging
from dataclasses import replace
from typing import TypeVar

from .access_control import AccessControlTransformer
from .errors import UnmappableAttributeError
from .models import AttributeValues, LegacyRecord, NormalizedResource

logger = logging.getLogger(__name__)

ResourceT = TypeVar("ResourceT", bound=NormalizedResource)
RecordT = TypeVar("RecordT", bound=LegacyRecord)


class AttributeTransformer:
    """Converts attribute sets between the two object models.

    Pure logic: neither direction mutates its input.
    """

    def __init__(
        self,
        strict: bool = False,
        access_control: AccessControlTransformer | None = None,
    ):
        """Initialize the transformer.

        Args:
            strict: If True, attributes with no legacy counterpart abort
                to_legacy with UnmappableAttributeError. Otherwise they
                are dropped.
            access_control: Transformer used to expand permissions on the
                forward path.
        """
        self.strict = strict
        self.access_control = access_control or AccessControlTransformer()

    def to_normalized(
        self,
        record: LegacyRecord,
        resource_type: type[ResourceT] = NormalizedResource,  # type: ignore[assignment]
    ) -> ResourceT:
        """Build a normalized resource from a legacy record."""
        permissions = self.access_control.expand_permissions(record)
        access_to = self.access_control.derive_access_to(permissions)

        return resource_type(
            id=record.id,  # type: ignore[arg-type]  # coerced in __post_init__
            attributes=dict(record.attributes),
            new_record=record.new_record,
            created_at=record.create_date,
            updated_at=record.modified_date,
            permissions=permissions,
            access_to=None if access_to is None else access_to.access_to,
        )

    def map_attributes(
        self, resource: NormalizedResource, legacy_type: type[LegacyRecord]
    ) -> dict[str, AttributeValues]:
        """Select the resource attributes the legacy type can hold.

        Raises:
            UnmappableAttributeError: In strict mode, on the first attribute
                the legacy type does not declare.
        """
        properties = legacy_type.properties
        mapped: dict[str, AttributeValues] = {}
        for name, values in resource.attributes.items():
            if properties is not None and name not in properties:
                if self.strict:
                    raise UnmappableAttributeError(name, legacy_type)
                logger.debug(
                    f"Dropping attribute {name!r}: not a property of {legacy_type.__name__}"
                )
                continue
            mapped[name] = values
        return mapped

    def to_legacy(
        self,
        resource: NormalizedResource,
        legacy_type: type[RecordT],
        existing: RecordT | None = None,
    ) -> RecordT:
        """Build (or update a copy of) a legacy record from a normalized resource.

        Args:
            resource: The resource to write back.
            legacy_type: Legacy type registered for the resource's type.
            existing: The currently stored record with the same id, if any.
                For a legacy type with declared properties, a property the
                resource lacks is written as empty. For an open schema the
                stored value is kept; set it to ``[]`` to remove it.

        Returns:
            A new legacy record. ``existing`` is never modified.

        Raises:
            UnmappableAttributeError: In strict mode, see map_attributes.
            ValueError: If ``existing`` is of another type or has another id.
        """
        mapped = self.map_attributes(resource, legacy_type)

        if existing is None:
            return legacy_type(
                id=None if resource.id is None else resource.id.id,
                attributes=mapped,
                new_record=resource.new_record,
                create_date=resource.created_at,
                modified_date=resource.updated_at,
            )

        if type(existing) is not legacy_type:
            raise ValueError(
                f"Existing record is a {type(existing).__name__}, expected {legacy_type.__name__}"
            )
        if resource.id is not None and existing.id != resource.id.id:
            raise ValueError(
                f"Existing record {existing.id!r} does not match resource {resource.id.id!r}"
            )

        attributes = {**existing.attributes, **mapped}
        if legacy_type.properties is not None:
            # A declared property the resource no longer carries is cleared
            for name in attributes.keys() - mapped.keys():
                attributes[name] = ()

        return replace(
            existing,
            attributes=attributes,
            permissions=list(existing.permissions),
        )
