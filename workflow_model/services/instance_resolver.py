"""Instance Resolver — authorization-aware get/list/create/update/destroy/task operations.

Invariants:
    - Every operation resolves identity and loads the instance concurrently, then evaluates policy
    - access is evaluated before any per-action gate; every gate applies the restriction rule
    - Returned objects never contain a field outside the read ceiling ∩ policy allowed fields
    - Updates are all-or-nothing: any disallowed key rejects the whole update
    - State fields bypass write-ACL only during destroy / task completion
    - Lists or objects supplied for a column are rejected as UserInputError before any write
    - Workflow transport failures surface as a coarse EngineError; no retries
    - A persisted write followed by a failing workflow call is NOT rolled back

Design Decisions:
    - One resolver per entity type, built once at startup from its TaskDefinition
    - All pure decisions delegated to core.enforce_acl; this class only orchestrates IO
    - RequestContext passed explicitly; cache keyed by the entity type name
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from workflow_model.core.acl import AclMatch, AclSet
from workflow_model.core.domain_types import AclAction, Restriction
from workflow_model.core.enforce_acl import (
    allowed_read_fields,
    allowed_write_fields,
    apply_values,
    filter_state_input,
    filter_tasks_by_acl,
    is_match_authorized,
    non_scalar_fields,
    partition_input,
    redact_instance,
    strip_task_metadata,
    to_process_variables,
    user_to_acl_targets,
)
from workflow_model.core.errors import (
    AuthorizationError,
    ConfigurationError,
    EngineError,
    ErrorContext,
    NotFoundError,
    UserInputError,
    WorkflowEngineError,
)
from workflow_model.core.list_query import build_list_query
from workflow_model.core.model_schema import Element
from workflow_model.core.repository_protocols import (
    IdentityStore, InstanceStore, WorkflowEngine,
)
from workflow_model.core.request_context import RequestContext
from workflow_model.schemas.definitions import EnumTable, TaskDefinition

logger = logging.getLogger(__name__)

NO_ACCESS_MESSAGE = "You do not have access to this object."


class InstanceResolver:
    """Mediates every operation on one entity type."""

    def __init__(
        self,
        store: InstanceStore,
        task_definition: TaskDefinition,
        identities: IdentityStore,
        workflow: WorkflowEngine,
        enums: EnumTable | None = None,
        *,
        grant_administrator: bool = False,
        debug_acl_rules: bool = False,
    ):
        self.store = store
        self.identities = identities
        self.workflow = workflow
        self.task_def = task_definition
        self.schema = task_definition.model.to_schema()
        self.acl: AclSet | None = task_definition.to_acl_set()
        self.enums = enums or {}
        self.grant_administrator = grant_administrator
        self.debug_acl_rules = debug_acl_rules
        self.log_prefix = f"[InstanceResolver/{task_definition.name}]"

    @property
    def entity_type(self) -> str:
        return self.task_def.name

    @property
    def process_key(self) -> str:
        return self.task_def.options.process_key

    # ─── Read ────────────────────────────────────────────────────

    def get_allowed_read_fields(
        self, read_match: AclMatch | None, include_additional: bool = True,
    ) -> set[str]:
        return allowed_read_fields(self.schema, read_match, include_additional)

    async def get(
        self,
        instance_id: str,
        requested_fields: list[str],
        context: RequestContext,
    ) -> dict:
        logger.debug(f"{self.log_prefix} get [id: {instance_id}]")
        eager = self._eager_relations(requested_fields)

        instance, user = await asyncio.gather(
            self.store.find(instance_id, eager),
            self.resolve_user_for_context(context),
        )
        if instance is None:
            raise NotFoundError(
                "Instance not found.", self._error_context(instance_id),
            )

        self.add_instances_to_context([instance], context)

        targets, is_owner = self.user_to_acl_targets(user, instance)
        self._authorize(
            user, targets, is_owner, AclAction.ACCESS, instance, NO_ACCESS_MESSAGE,
        )
        return self._get_instance(instance, user, requested_fields)

    async def list_instances(
        self,
        filter_input: Mapping[str, Any] | None,
        sorting: Mapping[str, Any] | None,
        requested_fields: list[str],
        context: RequestContext,
    ) -> list[dict]:
        eager = self._eager_relations(requested_fields)
        logger.debug(
            f"{self.log_prefix} list (fields={len(requested_fields)}, "
            f"eager=[{','.join(eager)}])"
        )

        user = await self.resolve_user_for_context(context)

        allowed_restrictions = None
        if self.acl is not None:
            targets, _ = self.user_to_acl_targets(user, None)
            access_match = self.acl.apply_rules(targets, AclAction.ACCESS)
            self._debug_acl_matching(user, targets, None, AclAction.ACCESS, access_match)
            if not access_match.allow:
                raise AuthorizationError(
                    NO_ACCESS_MESSAGE, context=self._error_context(None, AclAction.ACCESS),
                )
            allowed_restrictions = access_match.allowed_restrictions

        owner_user_id = None
        if allowed_restrictions and Restriction.ALL.value not in allowed_restrictions:
            if user is None:
                raise AuthorizationError(
                    "You must be a valid user to list these objects.",
                    context=self._error_context(None, AclAction.ACCESS),
                )
            if not self.schema.owner_fields:
                # no owner fields: nothing can be owned by the caller
                return []
            owner_user_id = user.id

        try:
            query = build_list_query(
                self.schema, filter_input, sorting,
                owner_user_id=owner_user_id, eager=tuple(eager),
            )
        except UserInputError as e:
            raise UserInputError(
                e.message, self._error_context(None, AclAction.ACCESS),
            ) from e
        rows = await self.store.query(query)

        self.add_instances_to_context(rows, context)

        # Read ACL is conditional per instance: ownership differs row by row.
        return [self._get_instance(row, user, requested_fields) for row in rows]

    def _get_instance(
        self, instance: Any, user: Any | None, requested_fields: list[str],
    ) -> dict:
        targets, is_owner = self.user_to_acl_targets(user, instance)
        read_match = None
        if self.acl is not None:
            read_match = self.acl.apply_rules(targets, AclAction.READ, instance)
            self._debug_acl_matching(user, targets, is_owner, AclAction.READ, read_match)
        return redact_instance(
            instance, read_match, is_owner, self.schema, requested_fields,
        )

    # ─── Write ───────────────────────────────────────────────────

    async def create(self, context: RequestContext) -> Any:
        now = datetime.now(timezone.utc)
        new_instance = self.store.new_instance(created=now, updated=now)

        user = await self.resolve_user_for_context(context)
        if self.acl is not None:
            targets, _ = self.user_to_acl_targets(user, new_instance)
            match = self.acl.apply_rules(targets, AclAction.CREATE, new_instance)
            self._debug_acl_matching(user, targets, None, AclAction.CREATE, match)
            if not match.allow:
                raise AuthorizationError(
                    "You do not have rights to create a new instance.",
                    context=self._error_context(None, AclAction.CREATE),
                )

        user_id = getattr(user, "id", None) if user is not None else None
        if user_id:
            for join_field in self.schema.owner_join_fields:
                setattr(new_instance, join_field, user_id)

        self._apply_defaults(new_instance)

        await self.store.save(new_instance)

        try:
            await self.workflow.start_process(self.process_key, new_instance.id)
        except WorkflowEngineError as e:
            logger.error(
                f"{self.log_prefix} unable to start process [{self.process_key}] "
                f"for instance [{new_instance.id}]: {e}",
                extra=self._log_extra(new_instance.id, AclAction.CREATE),
            )
            raise EngineError(
                "Unable to start business process for the new instance.",
                context=self._error_context(new_instance.id, AclAction.CREATE),
            ) from e

        logger.info(
            f"{self.log_prefix} created instance [{new_instance.id}]",
        )
        return new_instance

    def _apply_defaults(self, instance: Any) -> None:
        for element in self.schema.elements:
            has_default = element.default_value or (
                element.default_enum and element.default_enum_key
            )
            if not has_default or element.is_relation:
                continue
            if getattr(instance, element.field, None) is not None:
                continue
            if element.default_enum and element.default_enum_key:
                value = self.resolve_enum(element.default_enum, element.default_enum_key)
                if value:
                    setattr(instance, element.field, value)
            elif element.default_value:
                setattr(instance, element.field, element.default_value)

    async def update(
        self,
        instance_id: str,
        values: Mapping[str, Any],
        context: RequestContext,
    ) -> bool:
        if not self.schema.input_enabled:
            raise ConfigurationError(
                "Model is not defined as allowing updates.",
                self._error_context(instance_id, AclAction.WRITE),
            )

        instance, user = await self._load_with_user(instance_id, context)

        write_match = None
        if self.acl is not None:
            targets, is_owner = self.user_to_acl_targets(user, instance)
            self._authorize(
                user, targets, is_owner, AclAction.ACCESS, instance, NO_ACCESS_MESSAGE,
            )
            write_match = self._authorize(
                user, targets, is_owner, AclAction.WRITE, instance,
                "You do not have write access to this object.",
            )

        updates = {k: v for k, v in values.items() if k != "id"}
        applicable, restricted = partition_input(
            updates, allowed_write_fields(self.schema, write_match),
        )
        if restricted:
            raise AuthorizationError(
                "You do not have write access on the following fields: "
                f"{', '.join(restricted)}",
                restricted_fields=restricted,
                context=self._error_context(instance_id, AclAction.WRITE),
            )

        self._reject_non_scalar(applicable, instance_id, AclAction.WRITE)
        if apply_values(instance, applicable):
            await self.store.save(instance)
        else:
            logger.debug(f"{self.log_prefix} update [id: {instance_id}] no changes")
        return True

    async def destroy(
        self,
        instance_id: str,
        state: Mapping[str, Any] | None,
        context: RequestContext,
    ) -> bool:
        instance, user = await self._load_with_user(instance_id, context)

        if self.acl is not None:
            targets, is_owner = self.user_to_acl_targets(user, instance)
            self._authorize(
                user, targets, is_owner, AclAction.ACCESS, instance, NO_ACCESS_MESSAGE,
            )
            self._authorize(
                user, targets, is_owner, AclAction.DESTROY, instance,
                "You do not have the rights allowed to destroy this object.",
            )

        # State fields are not subject to write-ACL during destruction.
        filtered_state = filter_state_input(state, self.schema)
        self._reject_non_scalar(filtered_state, instance_id, AclAction.DESTROY)
        if filtered_state and apply_values(instance, filtered_state):
            await self.store.save(instance)

        try:
            process_instances = await self.workflow.list_process_instances(
                business_key=instance_id, process_definition_key=self.process_key,
            )
            if process_instances:
                process_instance = process_instances[0]
                business_key = process_instance.get("businessKey")
                if (
                    process_instance.get("id")
                    and business_key
                    and str(business_key).lower() == str(instance_id).lower()
                ):
                    logger.debug(
                        f"{self.log_prefix} deleting process instance "
                        f"[{process_instance['id']}] from business process engine.",
                    )
                    await self.workflow.delete_process_instance(process_instance["id"])
                    return True
            return False
        except WorkflowEngineError as e:
            logger.error(
                f"{self.log_prefix} destroy: BPM engine request failed due to: {e}",
                extra=self._log_extra(instance_id, AclAction.DESTROY),
            )
            raise EngineError(
                "Unable to destroy instance due to business engine error.",
                context=self._error_context(instance_id, AclAction.DESTROY),
            ) from e

    # ─── Tasks ───────────────────────────────────────────────────

    async def get_tasks(self, instance_id: str, context: RequestContext) -> list[dict]:
        instance, user = await self._load_with_user(instance_id, context)

        tasks_match = None
        if self.acl is not None:
            targets, is_owner = self.user_to_acl_targets(user, instance)
            tasks_match = self._authorize(
                user, targets, is_owner, AclAction.TASK, instance,
                "You do not have the rights to view tasks for this object.",
            )

        try:
            tasks = await self.workflow.list_tasks(instance_id)
        except WorkflowEngineError as e:
            logger.error(
                f"{self.log_prefix} get_tasks: BPM engine request failed due to: {e}",
                extra=self._log_extra(instance_id, AclAction.TASK),
            )
            raise EngineError(
                "Unable to fetch tasks for instance due to business engine error.",
                context=self._error_context(instance_id, AclAction.TASK),
            ) from e

        return filter_tasks_by_acl(strip_task_metadata(tasks), tasks_match)

    async def complete_task(
        self,
        instance_id: str,
        task_id: str,
        state: Mapping[str, Any] | None,
        context: RequestContext,
    ) -> bool:
        if not instance_id or not task_id:
            raise UserInputError(
                "Complete Task requires an id and taskId to be supplied",
            )

        instance, user, tasks = await asyncio.gather(
            self.store.find(instance_id),
            self.resolve_user_for_context(context),
            self._find_tasks(instance_id, task_id),
        )

        if instance is None:
            raise NotFoundError(
                "Instance with identifier not found.", self._error_context(instance_id),
            )
        if not tasks:
            raise NotFoundError(
                "Specific task not found for instance.",
                self._error_context(instance_id, AclAction.TASK),
            )

        self.add_instances_to_context([instance], context)

        tasks_match = None
        if self.acl is not None:
            targets, is_owner = self.user_to_acl_targets(user, instance)
            self._authorize(
                user, targets, is_owner, AclAction.ACCESS, instance, NO_ACCESS_MESSAGE,
            )
            tasks_match = self._authorize(
                user, targets, is_owner, AclAction.TASK, instance,
                "You do not have the rights to complete tasks for this object.",
            )

        if not filter_tasks_by_acl(tasks, tasks_match):
            raise AuthorizationError(
                "You do not have access to the task associated with the instance.",
                context=self._error_context(instance_id, AclAction.TASK),
            )

        variables = None
        filtered_state = filter_state_input(state, self.schema)
        self._reject_non_scalar(filtered_state, instance_id, AclAction.TASK)
        if filtered_state:
            variables = to_process_variables(filtered_state)
            if apply_values(instance, filtered_state):
                await self.store.save(instance)

        try:
            await self.workflow.complete_task(task_id, variables)
        except WorkflowEngineError as e:
            logger.error(
                f"{self.log_prefix} unable to complete business process engine task "
                f"[{task_id}] due to error: {e}",
                extra=self._log_extra(instance_id, AclAction.TASK, task_id=task_id),
            )
            raise EngineError(
                "Unable to complete task for instance due to business engine error.",
                context=self._error_context(instance_id, AclAction.TASK),
            ) from e
        return True

    async def _find_tasks(self, instance_id: str, task_id: str) -> list[dict]:
        try:
            tasks = await self.workflow.list_tasks(instance_id)
        except WorkflowEngineError as e:
            logger.error(
                f"{self.log_prefix} complete_task: BPM engine request failed due to: {e}",
                extra=self._log_extra(instance_id, AclAction.TASK, task_id=task_id),
            )
            raise EngineError(
                "Unable to fetch tasks for instance due to business engine error.",
                context=self._error_context(instance_id, AclAction.TASK),
            ) from e
        return [t for t in tasks if t.get("id") == task_id]

    # ─── Context helpers ─────────────────────────────────────────

    async def resolve_instance_using_context(
        self, instance_id: str, context: RequestContext | None,
    ) -> Any | None:
        if context is None:
            return await self.store.find(instance_id)

        cached = context.cached_instance(self.entity_type, instance_id)
        if cached is not None:
            return cached

        instance = await self.store.find(instance_id)
        if instance is None:
            return None
        self.add_instances_to_context([instance], context)
        return context.cached_instance(self.entity_type, instance_id)

    def add_instances_to_context(
        self, instances: list[Any], context: RequestContext | None,
    ) -> None:
        if context is not None and instances:
            context.add_instances(self.entity_type, instances)

    async def resolve_relation(
        self, element: Element, parent: Mapping[str, Any] | None, context: RequestContext,
    ) -> Any | None:
        """Resolve a relation field of an already-shaped parent object."""
        if not parent or not parent.get("id"):
            return None
        if element.field in (parent.get("restrictedFields") or []):
            return None
        if element.field in parent:
            return parent[element.field]

        instance = await self.resolve_instance_using_context(parent["id"], context)
        if instance is None:
            return None
        return await self.store.load_relation(instance, element.field)

    async def resolve_user_for_context(self, context: RequestContext | None) -> Any | None:
        if context is None or not context.user:
            return None
        if context.user_resolved:
            return context.resolved_user

        identity = await self.identities.find(context.user)
        context.remember_user(identity)
        return identity

    def user_to_acl_targets(
        self, user: Any | None, instance: Any | None,
    ) -> tuple[list[str], bool]:
        return user_to_acl_targets(
            user, instance, self.schema.owner_join_fields, self.grant_administrator,
        )

    def resolve_enum(self, enum_name: str, enum_key: str) -> Any | None:
        enum = self.enums.get(enum_name)
        if enum is None:
            return None
        return enum.values.get(enum_key)

    # ─── Internals ───────────────────────────────────────────────

    async def _load_with_user(
        self, instance_id: str, context: RequestContext,
    ) -> tuple[Any, Any | None]:
        instance, user = await asyncio.gather(
            self.store.find(instance_id),
            self.resolve_user_for_context(context),
        )
        if instance is None:
            raise NotFoundError(
                "Instance with identifier not found.", self._error_context(instance_id),
            )
        self.add_instances_to_context([instance], context)
        return instance, user

    def _eager_relations(self, requested_fields: list[str]) -> list[str]:
        return [f for f in self.schema.relation_field_names if f in requested_fields]

    def _authorize(
        self,
        user: Any | None,
        targets: list[str],
        is_owner: bool,
        action: AclAction,
        instance: Any,
        message: str,
    ) -> AclMatch | None:
        if self.acl is None:
            return None
        match = self.acl.apply_rules(targets, action, instance)
        self._debug_acl_matching(user, targets, is_owner, action, match)
        if not is_match_authorized(match, is_owner):
            raise AuthorizationError(
                message,
                context=self._error_context(getattr(instance, "id", None), action),
            )
        return match

    def _reject_non_scalar(
        self, values: Mapping[str, Any], instance_id: str, action: AclAction,
    ) -> None:
        invalid = non_scalar_fields(values)
        if invalid:
            raise UserInputError(
                "Values must be single values for the following fields: "
                f"{', '.join(invalid)}",
                self._error_context(instance_id, action),
            )

    def _log_extra(
        self, instance_id: str | None, action: AclAction, **fields: Any,
    ) -> dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "instance_id": instance_id,
            "action": action.value,
            **fields,
        }

    def _error_context(
        self, instance_id: str | None, action: AclAction | None = None,
    ) -> ErrorContext:
        return ErrorContext(
            entity_type=self.entity_type,
            instance_id=instance_id,
            action=action.value if action else None,
        )

    def _debug_acl_matching(
        self,
        user: Any | None,
        targets: list[str],
        is_owner: bool | None,
        action: AclAction,
        match: AclMatch | None,
    ) -> None:
        if not self.debug_acl_rules:
            return

        user_label = getattr(user, "id", None) if user is not None else "anon"
        logger.info(
            f"acl-match: action:({action.value}) user({user_label}) "
            f"acl-targets:({', '.join(targets)}) is-owner:({bool(is_owner)})",
        )
        if match is None:
            return
        if match.matching_rules:
            for rule in match.matching_rules:
                logger.info(f"\t+ {rule.description()}")
        else:
            logger.info("\tno matching rules found")
        logger.info(f"\toutcome: {'allow' if match.allow else 'disallow'}")
