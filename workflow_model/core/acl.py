"""Policy Evaluator — pure rule-table evaluation for (targets, action, instance).

Invariants:
    - apply_rules is PURE and deterministic for a fixed rule table; it never mutates the instance
    - No matching rule → allow=False
    - A matching deny rule always wins over any number of allow rules
    - A conditional rule never matches when no instance is supplied
    - allowed_fields / allowed_restrictions / allowed_tasks of None mean "unrestricted"

Design Decisions:
    - Rule table is a tuple of frozen dataclasses built once per entity type
    - Allowing rules union their field/restriction/task sets; a single allowing rule
      that leaves a dimension unspecified makes that dimension unrestricted
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from workflow_model.core.domain_types import AclAction, AclTarget


@dataclass(frozen=True)
class AclRule:
    """One row of an entity type's rule table."""
    targets: frozenset[str]
    actions: frozenset[str]
    allow: bool = True
    allowed_fields: frozenset[str] | None = None
    allowed_restrictions: frozenset[str] | None = None
    allowed_tasks: frozenset[str] | None = None
    conditions: Mapping[str, tuple[Any, ...]] | None = None
    label: str | None = None

    def matches(
        self, targets: Iterable[str], action: str, instance: Any | None,
    ) -> bool:
        if action not in self.actions:
            return False
        if self.targets.isdisjoint(targets):
            return False
        return self.conditions_hold(instance)

    def conditions_hold(self, instance: Any | None) -> bool:
        if not self.conditions:
            return True
        if instance is None:
            return False
        return all(
            getattr(instance, name, None) in expected
            for name, expected in self.conditions.items()
        )

    def description(self) -> str:
        if self.label:
            return self.label
        verb = "allow" if self.allow else "deny"
        parts = [
            f"{verb} [{', '.join(sorted(self.actions))}]",
            f"for [{', '.join(sorted(self.targets))}]",
        ]
        if self.conditions:
            conds = ", ".join(
                f"{k} in {list(v)}" for k, v in self.conditions.items()
            )
            parts.append(f"when {conds}")
        if self.allowed_restrictions:
            parts.append(f"restricted to [{', '.join(sorted(self.allowed_restrictions))}]")
        return " ".join(parts)


@dataclass
class AclMatch:
    """Outcome of one policy decision."""
    allow: bool = False
    allowed_fields: frozenset[str] | None = None
    allowed_restrictions: frozenset[str] | None = None
    allowed_tasks: frozenset[str] | None = None
    matching_rules: list[AclRule] = field(default_factory=list)


def _union(values: list[frozenset[str] | None]) -> frozenset[str] | None:
    if not values or any(v is None for v in values):
        return None
    return frozenset().union(*values)


class AclSet:
    """Static rule table for one entity type."""

    def __init__(self, rules: Iterable[AclRule]):
        self.rules: tuple[AclRule, ...] = tuple(rules)

    def applicable_rules(
        self,
        targets: Iterable[str],
        action: AclAction | str,
        instance: Any | None = None,
    ) -> list[AclRule]:
        action_key = action.value if isinstance(action, AclAction) else action
        target_keys = {
            t.value if isinstance(t, AclTarget) else t for t in targets
        }
        return [
            r for r in self.rules if r.matches(target_keys, action_key, instance)
        ]

    def apply_rules(
        self,
        targets: Iterable[str],
        action: AclAction | str,
        instance: Any | None = None,
    ) -> AclMatch:
        matching = self.applicable_rules(targets, action, instance)
        if not matching or any(not r.allow for r in matching):
            return AclMatch(allow=False, matching_rules=matching)

        return AclMatch(
            allow=True,
            allowed_fields=_union([r.allowed_fields for r in matching]),
            allowed_restrictions=_union([r.allowed_restrictions for r in matching]),
            allowed_tasks=_union([r.allowed_tasks for r in matching]),
            matching_rules=matching,
        )
