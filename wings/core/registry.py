"""Model registry: the bidirectional map between normalized and legacy types.

The registry is the single source of truth for type correspondence.
It is populated once at start-up and read on every conversion, so all
access is serialized on one lock.
"""

import logging
import threading

from .errors import DuplicateRegistrationError, UnregisteredTypeError

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Thread-safe bijection of (normalized type, legacy type) pairs.

    By default a registration that conflicts with an existing pair
    replaces it (last write wins) and drops the stale counterpart so
    the table stays one-to-one. A strict registry raises
    DuplicateRegistrationError instead.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self._lock = threading.Lock()
        self._legacy_by_normalized: dict[type, type] = {}
        self._normalized_by_legacy: dict[type, type] = {}

    def register(self, normalized_type: type, legacy_type: type) -> None:
        """Record the mapping in both directions.

        Raises:
            DuplicateRegistrationError: In strict mode, if either type is
                already mapped to a different counterpart.
        """
        with self._lock:
            prior_legacy = self._legacy_by_normalized.get(normalized_type)
            prior_normalized = self._normalized_by_legacy.get(legacy_type)

            if prior_legacy is legacy_type and prior_normalized is normalized_type:
                return

            conflict: type | None = None
            if prior_legacy is not None and prior_legacy is not legacy_type:
                conflict = prior_legacy
            elif prior_normalized is not None and prior_normalized is not normalized_type:
                conflict = prior_normalized

            if conflict is not None:
                if self.strict:
                    raise DuplicateRegistrationError(normalized_type, legacy_type, conflict)
                logger.warning(
                    f"Replacing registration of {conflict.__qualname__} with "
                    f"{normalized_type.__qualname__} <-> {legacy_type.__qualname__}"
                )

            if prior_legacy is not None:
                self._normalized_by_legacy.pop(prior_legacy, None)
            if prior_normalized is not None:
                self._legacy_by_normalized.pop(prior_normalized, None)

            self._legacy_by_normalized[normalized_type] = legacy_type
            self._normalized_by_legacy[legacy_type] = normalized_type

        logger.debug(
            f"Registered {normalized_type.__qualname__} <-> {legacy_type.__qualname__}"
        )

    def unregister(self, normalized_type: type) -> type | None:
        """Remove a pair by its normalized type. Returns the legacy type, if any."""
        with self._lock:
            legacy_type = self._legacy_by_normalized.pop(normalized_type, None)
            if legacy_type is not None:
                self._normalized_by_legacy.pop(legacy_type, None)
            return legacy_type

    def lookup(self, normalized_type: type) -> type:
        """Return the legacy type registered for a normalized type.

        Raises:
            UnregisteredTypeError: If no mapping exists.
        """
        with self._lock:
            try:
                return self._legacy_by_normalized[normalized_type]
            except KeyError:
                raise UnregisteredTypeError(normalized_type, "normalized") from None

    def reverse_lookup(self, legacy_type: type) -> type:
        """Return the normalized type registered for a legacy type.

        Raises:
            UnregisteredTypeError: If no mapping exists.
        """
        with self._lock:
            try:
                return self._normalized_by_legacy[legacy_type]
            except KeyError:
                raise UnregisteredTypeError(legacy_type, "legacy") from None

    def legacy_types_for(self, *normalized_types: type) -> list[type]:
        """Legacy types a query over the given normalized types must cover.

        Used when searching an index that still stores documents under
        their legacy type names.
        """
        return [self.lookup(model) for model in normalized_types]

    def pairs(self) -> list[tuple[type, type]]:
        """Snapshot of all registered (normalized, legacy) pairs."""
        with self._lock:
            return list(self._legacy_by_normalized.items())

    def __contains__(self, model: object) -> bool:
        with self._lock:
            return model in self._legacy_by_normalized or model in self._normalized_by_legacy

    def __len__(self) -> int:
        with self._lock:
            return len(self._legacy_by_normalized)
