"""ACL Enforcement — pure helpers shared by every resolver operation.

Invariants:
    - All functions are PURE: no IO, no async, no side effects on the instance
    - Targets always contain "anonymous"; "user" whenever an identity is present; "owner" only when an owner join field equals the identity id
    - The restriction rule lives here and nowhere else
    - Read/write field sets never exceed the schema ceilings
    - Redacted output never contains a disallowed key
"""

from typing import Any, Iterable, Mapping

from workflow_model.core.acl import AclMatch
from workflow_model.core.domain_types import (
    ADDITIONAL_ALLOWED_GET_FIELDS, AclTarget, Restriction,
)
from workflow_model.core.model_schema import ModelSchema

TASK_METADATA_KEYS = ("_links", "_embedded")
SCALAR_TYPES = (str, int, float, bool)


def user_to_acl_targets(
    identity: Any | None,
    instance: Any | None,
    owner_join_fields: Iterable[str],
    grant_administrator: bool = False,
) -> tuple[list[str], bool]:
    """Resolve the caller's target set and ownership for one instance."""
    targets = [AclTarget.ANONYMOUS.value]
    is_owner = False
    identity_id = getattr(identity, "id", None) if identity is not None else None

    if identity_id and grant_administrator:
        targets.append(AclTarget.ADMINISTRATOR.value)

    if identity_id:
        targets.append(AclTarget.USER.value)

    if identity_id and instance is not None:
        is_owner = any(
            getattr(instance, join_field, None) == identity_id
            for join_field in owner_join_fields
        )
        if is_owner:
            targets.append(AclTarget.OWNER.value)

    return targets, is_owner


def restrictions_apply_to_user(
    restrictions: Iterable[str] | None, is_owner: bool,
) -> bool:
    """Empty restrictions, or "all", grant; "owner" grants only to the owner."""
    if not restrictions:
        return True
    restrictions = set(restrictions)
    if Restriction.ALL.value in restrictions:
        return True
    return is_owner and Restriction.OWNER.value in restrictions


def is_match_authorized(match: AclMatch | None, is_owner: bool) -> bool:
    """allow=True and the restriction rule holds for this caller."""
    if match is None:
        return True
    return match.allow and restrictions_apply_to_user(
        match.allowed_restrictions, is_owner,
    )


def allowed_read_fields(
    schema: ModelSchema,
    read_match: AclMatch | None,
    include_additional: bool = True,
) -> set[str]:
    """Read ceiling narrowed by the policy's allowed fields."""
    if read_match is not None and read_match.allowed_fields is not None:
        fields = {f for f in schema.read_fields if f in read_match.allowed_fields}
    else:
        fields = set(schema.read_fields)
    if include_additional:
        fields.update(ADDITIONAL_ALLOWED_GET_FIELDS)
    return fields


def allowed_write_fields(
    schema: ModelSchema, write_match: AclMatch | None,
) -> set[str]:
    """Input ceiling narrowed by the policy's allowed fields."""
    if write_match is not None and write_match.allowed_fields is not None:
        return {f for f in schema.input_fields if f in write_match.allowed_fields}
    return set(schema.input_fields)


def redact_instance(
    instance: Any,
    read_match: AclMatch | None,
    is_owner: bool,
    schema: ModelSchema,
    requested_fields: list[str],
) -> dict:
    """Shape one instance into {field: value} limited to readable fields."""
    instance_id = getattr(instance, "id", None)

    if not is_match_authorized(read_match, is_owner):
        return {
            "id": instance_id,
            "restrictedFields": [f for f in requested_fields if f != "id"],
        }

    allowed = allowed_read_fields(schema, read_match, include_additional=True)
    result: dict[str, Any] = {"id": instance_id}
    for f in requested_fields:
        if f in allowed and f != "restrictedFields" and hasattr(instance, f):
            result[f] = getattr(instance, f)

    restricted = [f for f in requested_fields if f not in allowed]
    if restricted:
        result["restrictedFields"] = restricted
    return result


def partition_input(
    values: Mapping[str, Any], allowed: set[str],
) -> tuple[dict[str, Any], list[str]]:
    """Split caller input into (applicable values, disallowed keys)."""
    applicable = {k: v for k, v in values.items() if k in allowed}
    restricted = [k for k in values if k not in allowed]
    return applicable, restricted


def filter_state_input(
    state: Mapping[str, Any] | None, schema: ModelSchema,
) -> dict[str, Any]:
    """Keep only declared state fields from a caller-supplied state map."""
    if not state or not schema.state_fields:
        return {}
    state_names = set(schema.state_field_names)
    return {k: v for k, v in state.items() if k in state_names}


def is_scalar_value(value: Any) -> bool:
    return value is None or isinstance(value, SCALAR_TYPES)


def non_scalar_fields(values: Mapping[str, Any]) -> list[str]:
    """Keys whose value cannot be stored in a single column (lists, objects)."""
    return [k for k, v in values.items() if not is_scalar_value(v)]


def apply_values(instance: Any, values: Mapping[str, Any]) -> bool:
    """Assign values onto the instance. Returns True if anything changed."""
    did_modify = False
    for key, value in values.items():
        if getattr(instance, key, None) != value:
            setattr(instance, key, value)
            did_modify = True
    return did_modify


def to_process_variables(state: Mapping[str, Any]) -> dict[str, dict]:
    """Only scalar (str/number) or null values are forwarded to the workflow engine."""
    variables = {}
    for key, value in state.items():
        if value is None or (
            isinstance(value, (str, int, float)) and not isinstance(value, bool)
        ):
            variables[key] = {"value": value}
    return variables


def strip_task_metadata(tasks: list[dict]) -> list[dict]:
    return [
        {k: v for k, v in task.items() if k not in TASK_METADATA_KEYS}
        for task in tasks
    ]


def filter_tasks_by_acl(tasks: list[dict], match: AclMatch | None) -> list[dict]:
    if match is None or match.allowed_tasks is None:
        return tasks
    return [t for t in tasks if t.get("taskDefinitionKey") in match.allowed_tasks]
