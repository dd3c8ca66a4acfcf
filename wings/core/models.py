"""Domain models for the Wings adapter core.

Two object models live side by side here:

- Legacy records: mutable, owned and persisted by a store adapter,
  carrying framework-native attribute storage and a permission list.
- Normalized resources: frozen values built fresh from a legacy record
  on every read and discarded once consumed.

All models use only Python standard library types.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, TypeAlias

AttributeValues: TypeAlias = tuple[Any, ...]

GROUP_PREFIX = "group/"


def normalize_values(value: Any) -> AttributeValues:
    """Coerce a single attribute value into the multi-valued tuple form.

    Strings and bytes count as one value, ``None`` as no values, any other
    iterable as a sequence of values.
    """
    if value is None:
        return ()
    if isinstance(value, (str, bytes)):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(value)
    return (value,)


def _humanize(name: str) -> str:
    return " ".join(re.findall(r"[A-Z]+(?![a-z])|[A-Z]?[a-z0-9]+", name))


class AccessLevel(Enum):
    """Access modes a permission can grant."""

    DISCOVER = "discover"
    READ = "read"
    DOWNLOAD = "download"
    EDIT = "edit"
    MANAGE = "manage"


class SubjectType(Enum):
    """Whether a permission subject is an individual agent or a group."""

    PERSON = "person"
    GROUP = "group"


@dataclass(frozen=True)
class ResourceId:
    """Identifier reference in the normalized model."""

    id: str

    @property
    def present(self) -> bool:
        """True when the identifier is non-blank."""
        return bool(self.id and self.id.strip())

    def __str__(self) -> str:
        return self.id


@dataclass
class LegacyPermission:
    """A single access-control entry as stored by the legacy framework."""

    access: AccessLevel
    agent_name: str
    subject_type: SubjectType = SubjectType.PERSON
    access_to_id: str | None = None
    id: str | None = None
    new_record: bool = True


@dataclass
class LegacyRecord:
    """A record in the legacy object model.

    Subclasses act as legacy types. ``properties`` names the attributes
    a type persists; ``None`` leaves the schema open.

    Note: intentionally mutable. The store adapter assigns ids and
    timestamps on save and callers may edit attributes in place.
    """

    id: str | None = None
    attributes: dict[str, AttributeValues] = field(default_factory=dict)
    new_record: bool = True
    create_date: datetime | None = None
    modified_date: datetime | None = None
    permissions: list[LegacyPermission] = field(default_factory=list)

    properties: ClassVar[frozenset[str] | None] = None

    def __post_init__(self) -> None:
        """Normalize attribute values and check them against the schema."""
        self.attributes = {
            name: normalize_values(value) for name, value in self.attributes.items()
        }
        if self.properties is not None:
            unknown = set(self.attributes) - self.properties
            if unknown:
                raise ValueError(
                    f"{type(self).__name__} has no properties {sorted(unknown)}"
                )
        if self.modified_date and self.create_date and self.modified_date < self.create_date:
            raise ValueError(
                f"modified_date ({self.modified_date}) cannot be before "
                f"create_date ({self.create_date})"
            )
        self.permissions = list(self.permissions)


@dataclass(frozen=True)
class Permission:
    """An access-control grant in the normalized model.

    ``agent`` is the bare agent name for individuals and
    ``"group/<name>"`` for groups.
    """

    mode: AccessLevel
    agent: str
    access_to: ResourceId | None = None
    id: str | None = None
    new_record: bool = True

    @property
    def is_group(self) -> bool:
        return self.agent.startswith(GROUP_PREFIX)


@dataclass(frozen=True)
class NormalizedResource:
    """A resource in the normalized model.

    Subclasses act as normalized types. Attributes mirror the source
    legacy record and are exposed read-only; use ``with_attributes`` to
    derive an updated copy for write-back.
    """

    id: ResourceId | None = None
    attributes: dict[str, Any] | MappingProxyType[str, AttributeValues] = field(
        default_factory=dict
    )  # converted to proxy in __post_init__
    new_record: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    permissions: tuple[Permission, ...] = ()
    access_to: ResourceId | None = None

    human_readable_type: ClassVar[str] = "Resource"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "human_readable_type" not in cls.__dict__:
            cls.human_readable_type = _humanize(cls.__name__)

    def __post_init__(self) -> None:
        """Freeze attributes and check the access_to reference."""
        object.__setattr__(
            self,
            "attributes",
            MappingProxyType(
                {name: normalize_values(value) for name, value in self.attributes.items()}
            ),
        )
        if not isinstance(self.permissions, tuple):
            object.__setattr__(self, "permissions", tuple(self.permissions))
        if isinstance(self.id, str):
            object.__setattr__(self, "id", ResourceId(self.id))
        if self.access_to is not None and all(
            p.access_to != self.access_to for p in self.permissions
        ):
            raise ValueError(
                f"access_to {self.access_to} does not match any contained permission"
            )

    def __getitem__(self, name: str) -> AttributeValues:
        return self.attributes[name]

    def get(self, name: str, default: AttributeValues = ()) -> AttributeValues:
        return self.attributes.get(name, default)

    def with_attributes(
        self, values: Mapping[str, Any] | None = None, /, **kwargs: Any
    ) -> "NormalizedResource":
        """Return a copy with the given attributes replaced.

        Names that are not Python identifiers (``"dc:title"``) go in ``values``.
        """
        merged: Mapping[str, Any] = {**self.attributes, **(values or {}), **kwargs}
        return replace(self, attributes=dict(merged))
