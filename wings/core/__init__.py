"""Core conversion logic for the Wings adapter.

This package has no external dependencies. It holds the two object
models, the registry that pairs their types, and the transformers that
convert between them. Persistence is reached only through the ports
in ports.py.
"""

from .access_control import AccessControlTransformer
from .attribute_transformer import AttributeTransformer
from .errors import (
    DuplicateRegistrationError,
    MalformedSubjectError,
    ResourceNotFoundError,
    UndefinedSchemaError,
    UnmappableAttributeError,
    UnregisteredTypeError,
    WingsError,
)
from .models import (
    AccessLevel,
    LegacyPermission,
    LegacyRecord,
    NormalizedResource,
    Permission,
    ResourceId,
    SubjectType,
)
from .registry import ModelRegistry

__all__ = [
    "AccessControlTransformer",
    "AccessLevel",
    "AttributeTransformer",
    "DuplicateRegistrationError",
    "LegacyPermission",
    "LegacyRecord",
    "MalformedSubjectError",
    "ModelRegistry",
    "NormalizedResource",
    "Permission",
    "ResourceId",
    "ResourceNotFoundError",
    "SubjectType",
    "UndefinedSchemaError",
    "UnmappableAttributeError",
    "UnregisteredTypeError",
    "WingsError",
]
