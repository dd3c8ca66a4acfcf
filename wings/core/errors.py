"""Error types raised by the Wings adapter core.

Every failure here is a local conversion or lookup failure. None of them
are retried: the operations are deterministic, so the same input fails
the same way.
"""


class WingsError(Exception):
    """Base class for all adapter errors."""


class UnregisteredTypeError(WingsError, LookupError):
    """Raised when a type has no registered counterpart."""

    def __init__(self, model: type, direction: str = "normalized"):
        super().__init__(
            f"No {'legacy' if direction == 'normalized' else 'normalized'} type "
            f"registered for {direction} type {model.__qualname__}"
        )
        self.model = model
        self.direction = direction


class DuplicateRegistrationError(WingsError):
    """Raised by a strict registry when a pair conflicts with an existing one."""

    def __init__(self, normalized_type: type, legacy_type: type, existing: type):
        super().__init__(
            f"Cannot register {normalized_type.__qualname__} <-> "
            f"{legacy_type.__qualname__}: conflicts with {existing.__qualname__}"
        )
        self.normalized_type = normalized_type
        self.legacy_type = legacy_type
        self.existing = existing


class UnmappableAttributeError(WingsError):
    """Raised in strict mode when an attribute has no legacy counterpart."""

    def __init__(self, attribute: str, legacy_type: type):
        super().__init__(
            f"Attribute {attribute!r} has no counterpart on {legacy_type.__qualname__}"
        )
        self.attribute = attribute
        self.legacy_type = legacy_type


class MalformedSubjectError(WingsError, ValueError):
    """Raised when a permission subject breaks the group prefix convention."""

    def __init__(self, subject: str):
        super().__init__(f"Malformed permission subject: {subject!r}")
        self.subject = subject


class UndefinedSchemaError(WingsError):
    """Raised when a configured model path cannot be resolved."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot resolve model {path!r}: {reason}")
        self.path = path
        self.reason = reason


class ResourceNotFoundError(WingsError, LookupError):
    """Raised when the store holds no record for an id."""

    def __init__(self, resource_id: str):
        super().__init__(f"No record found for id {resource_id!r}")
        self.resource_id = resource_id
