"""Field Selection — turns a selection string into the flat list of requested top-level fields.

Invariants:
    - "a,b.c,b.d" → ["a", "b"]: nested paths collapse to their top-level field
    - Order of first appearance is kept; duplicates dropped
    - Meta fields (__typename) are never returned
    - An absent selection means "everything the schema can expose"
"""

from typing import Iterable

from workflow_model.core.domain_types import META_FIELDS
from workflow_model.core.model_schema import ModelSchema

BASE_FIELDS = ("id", "created", "updated")


def requested_fields(selection: str | None, default: Iterable[str] = ()) -> list[str]:
    if selection is None:
        return list(dict.fromkeys(default))

    fields: list[str] = []
    for part in selection.split(","):
        name = part.strip().split(".", 1)[0].strip()
        if not name or name in META_FIELDS or name in fields:
            continue
        fields.append(name)
    return fields


def default_fields(schema: ModelSchema) -> list[str]:
    return [*BASE_FIELDS, *schema.read_fields]
