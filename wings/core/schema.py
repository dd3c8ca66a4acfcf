"""Start-up loading of configured model pairs into the registry.

Model pairs are configured as dotted paths, ``"package.module:ClassName"``.
Whether an unresolvable path stops start-up is an explicit flag rather
than something inferred from the deployment environment.
"""

import importlib
import logging
from collections.abc import Mapping

from .errors import UndefinedSchemaError
from .models import LegacyRecord, NormalizedResource
from .registry import ModelRegistry

logger = logging.getLogger(__name__)


def resolve_model(path: str, base: type) -> type:
    """Import the class named by a ``module:ClassName`` path.

    Raises:
        UndefinedSchemaError: If the path is malformed, cannot be imported,
            or does not name a subclass of ``base``.
    """
    module_name, sep, qualname = path.partition(":")
    if not sep or not module_name or not qualname:
        raise UndefinedSchemaError(path, "expected 'module:ClassName'")

    try:
        target: object = importlib.import_module(module_name)
    except ImportError as e:
        raise UndefinedSchemaError(path, str(e)) from e

    for part in qualname.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise UndefinedSchemaError(path, str(e)) from e

    if not isinstance(target, type) or not issubclass(target, base):
        raise UndefinedSchemaError(path, f"not a subclass of {base.__name__}")
    return target


def model_path(model: type) -> str:
    """Dotted ``module:ClassName`` path of a class; inverse of resolve_model."""
    return f"{model.__module__}:{model.__qualname__}"


def registered_legacy_type(registry: ModelRegistry, path: str) -> type[LegacyRecord]:
    """Return the registered legacy type whose model path is ``path``.

    Stores persist the legacy type as a path and resolve it here on read.
    Nothing is imported: a path that names no registered type is rejected.

    Raises:
        ValueError: If no registered legacy type has this path.
    """
    for _, legacy_type in registry.pairs():
        if model_path(legacy_type) == path:
            return legacy_type
    raise ValueError(f"Unknown model {path!r}: no registered legacy type has this path")


def load_model_map(
    registry: ModelRegistry,
    model_map: Mapping[str, str],
    strict_schema: bool = False,
) -> int:
    """Register every configured (normalized path -> legacy path) pair.

    Args:
        registry: Registry to populate.
        model_map: Normalized model path to legacy model path.
        strict_schema: If True, the first unresolvable pair raises.
            Otherwise it is logged and skipped.

    Returns:
        Number of pairs registered.

    Raises:
        UndefinedSchemaError: In strict mode, see resolve_model.
    """
    registered = 0
    for normalized_path, legacy_path in model_map.items():
        try:
            normalized_type = resolve_model(normalized_path, NormalizedResource)
            legacy_type = resolve_model(legacy_path, LegacyRecord)
        except UndefinedSchemaError as e:
            if strict_schema:
                logger.error(f"Schema loading failed: {e}")
                raise
            logger.warning(f"Skipping model pair {normalized_path} -> {legacy_path}: {e}")
            continue

        registry.register(normalized_type, legacy_type)
        registered += 1

    logger.info(f"Loaded {registered} of {len(model_map)} configured model pairs")
    return registered
