"""Access-control transformer: legacy permission entries <-> normalized permissions.

Group subjects are encoded in the normalized model with a ``group/``
prefix so they can never be confused with individual agents.

Pure transformation logic, no side effects.
"""

from collections.abc import Iterable, Sequence

from .errors import MalformedSubjectError
from .models import (
    GROUP_PREFIX,
    LegacyPermission,
    LegacyRecord,
    Permission,
    ResourceId,
    SubjectType,
)


def encode_subject(subject_type: SubjectType, agent_name: str) -> str:
    """Build the normalized subject string for a legacy subject."""
    if subject_type == SubjectType.GROUP:
        return f"{GROUP_PREFIX}{agent_name}"
    return agent_name


def decode_subject(agent: str) -> tuple[SubjectType, str]:
    """Split a normalized subject string into subject type and name.

    Raises:
        MalformedSubjectError: If the subject is empty, or uses the group
            prefix with an empty name.
    """
    if agent.startswith(GROUP_PREFIX):
        name = agent[len(GROUP_PREFIX):]
        if not name.strip():
            raise MalformedSubjectError(agent)
        return SubjectType.GROUP, name
    if not agent.strip():
        raise MalformedSubjectError(agent)
    return SubjectType.PERSON, agent


class AccessControlTransformer:
    """Converts permission lists between the legacy and normalized models."""

    def expand_permission(self, entry: LegacyPermission) -> Permission:
        access_to = None if entry.access_to_id is None else ResourceId(entry.access_to_id)
        return Permission(
            id=entry.id,
            mode=entry.access,
            agent=encode_subject(entry.subject_type, entry.agent_name),
            access_to=access_to,
            new_record=entry.new_record,
        )

    def expand_permissions(self, record: LegacyRecord) -> tuple[Permission, ...]:
        """Normalize every permission on a legacy record, keeping order."""
        return tuple(self.expand_permission(entry) for entry in record.permissions)

    def derive_access_to(self, permissions: Iterable[Permission]) -> Permission | None:
        """Return the first permission whose target reference is present.

        Returns None for an empty sequence or when no permission carries
        a non-blank target.
        """
        for permission in permissions:
            if permission.access_to is not None and permission.access_to.present:
                return permission
        return None

    def collapse_permission(self, permission: Permission) -> LegacyPermission:
        subject_type, agent_name = decode_subject(permission.agent)
        return LegacyPermission(
            id=permission.id,
            access=permission.mode,
            agent_name=agent_name,
            subject_type=subject_type,
            access_to_id=None if permission.access_to is None else permission.access_to.id,
            new_record=permission.new_record,
        )

    def collapse_permissions(
        self, permissions: Sequence[Permission]
    ) -> list[LegacyPermission]:
        """Inverse of expand_permissions.

        Raises:
            MalformedSubjectError: If any subject string is malformed. No
                partial list is returned.
        """
        return [self.collapse_permission(permission) for permission in permissions]
