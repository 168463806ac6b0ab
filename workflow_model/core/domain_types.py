"""Domain Types — rich types that replace bare strings across the resolver.

Invariants:
    - Every ACL action, target and restriction tag is an Enum member, never a raw string match
    - ADDITIONAL_ALLOWED_GET_FIELDS is always readable, whatever the policy says
    - Identifiers are strings (UUID text) so they double as workflow business keys

Design Decisions:
    - str Enums: compare equal to the plain strings found in JSON definitions
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

InstanceId = NewType("InstanceId", str)
IdentityId = NewType("IdentityId", str)
TaskId = NewType("TaskId", str)


# ─── Enums ───────────────────────────────────────────────────────

class AclAction(str, Enum):
    """Actions a policy decision can be requested for."""
    ACCESS = "access"
    READ = "read"
    WRITE = "write"
    CREATE = "create"
    DESTROY = "destroy"
    TASK = "task"


class AclTarget(str, Enum):
    """Roles a caller can act as for one decision."""
    ANONYMOUS = "anonymous"
    USER = "user"
    OWNER = "owner"
    ADMINISTRATOR = "administrator"


class Restriction(str, Enum):
    """Restriction tags narrowing an allow decision."""
    ALL = "all"
    OWNER = "owner"


# ─── Constants ───────────────────────────────────────────────────

ADDITIONAL_ALLOWED_GET_FIELDS: tuple[str, ...] = (
    "id", "created", "updated", "tasks", "restrictedFields",
)

META_FIELDS = frozenset({"__typename"})
