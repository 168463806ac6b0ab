"""Request Context — per-request identity memo and instance cache.

Invariants:
    - One RequestContext per inbound request; never shared or reused across requests
    - The identity is resolved at most once per request (None results included)
    - Instance caches are keyed by entity type name, then by instance id
    - Cache is write-once per id: the first loader wins
"""

from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass
class RequestContext:
    """Explicit request-scoped state passed to every resolver call."""

    # Opaque user reference supplied by the request-handling layer
    user: str | None = None

    resolved_user: Any | None = None
    user_resolved: bool = False

    instance_lookup: dict[str, dict[str, Any]] = field(default_factory=dict)

    def remember_user(self, identity: Any | None) -> None:
        self.resolved_user = identity
        self.user_resolved = True

    def lookup_for(self, entity_type: str) -> dict[str, Any]:
        return self.instance_lookup.setdefault(entity_type, {})

    def cached_instance(self, entity_type: str, instance_id: str) -> Any | None:
        return self.instance_lookup.get(entity_type, {}).get(instance_id)

    def add_instances(self, entity_type: str, instances: Iterable[Any]) -> None:
        lookup = self.lookup_for(entity_type)
        for instance in instances:
            instance_id = getattr(instance, "id", None)
            if instance_id:
                lookup.setdefault(instance_id, instance)
