"""Create/read/update/delete state machine shared by all resource types."""

from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

import structlog

from okta_iac.clients.exceptions import (
    APIError,
    PartialSuccessError,
    RemoteCallError,
    ResourceNotFoundError,
)
from okta_iac.clients.remote import OktaObject
from okta_iac.core.capability import check_feature_available
from okta_iac.core.context import ReconcileContext
from okta_iac.core.status import STATUS_ACTIVE, reconcile_status
from okta_iac.resources.base import ResourceDefinition
from okta_iac.resources.models import ResourceState

logger = structlog.get_logger(__name__)

StateT = TypeVar("StateT", bound=ResourceState)

STEP_CREATE = "create"
STEP_READ = "read"
STEP_UPDATE = "update"
STEP_DELETE = "delete"
STEP_SET_STATUS = "set status"
STEP_SYNC_ASSIGNMENTS = "sync groups/users"
STEP_READ_ASSIGNMENTS = "read groups/users"
STEP_UPLOAD_LOGO = "upload logo"


class ReconcileState(str, Enum):
    """Lifecycle of a managed object as seen by the reconciler."""
    ABSENT = "absent"
    CREATING = "creating"
    PRESENT = "present"
    UPDATING = "updating"
    DELETING = "deleting"


class Reconciler(Generic[StateT]):
    """Converges one remote object to a desired state record.

    The reconciler holds no per-call state; every operation receives an
    explicit ``ReconcileContext`` and returns a fresh state record. Remote
    calls are never retried here.
    """

    def __init__(self, definition: ResourceDefinition[StateT]) -> None:
        self.definition = definition
        self._logger = logger.bind(resource_type=definition.resource_type)

    # Lifecycle entry points

    async def create(
        self,
        ctx: ReconcileContext,
        desired: StateT,
        on_created: Optional[Callable[[StateT], None]] = None,
    ) -> StateT:
        """Create the remote object, then its sub-resources, then read it back.

        ``on_created`` receives the state as soon as the identifier is known.

        Raises:
            FeatureUnavailableError: Before any remote call, if the org lacks a feature
            RemoteCallError: If the create call fails
            PartialSuccessError: If the object exists but a sub-step failed
        """
        self._check_feature(ctx, desired)
        self._transition(ReconcileState.ABSENT, ReconcileState.CREATING)

        payload = self.definition.mapper.to_remote_shape(desired)
        try:
            remote = await ctx.client.create_object(
                self.definition.kind,
                payload,
                activate=desired.status == STATUS_ACTIVE,
            )
        except APIError as e:
            raise self._remote_error(STEP_CREATE, e) from e

        # The only place an identifier is assigned
        state = desired.model_copy(update={"id": remote.id})
        self._logger.info("Created remote object", object_id=remote.id)
        if on_created is not None:
            on_created(state)

        await self._sync_subresources(ctx, remote, prior=None, state=state)

        self._transition(ReconcileState.CREATING, ReconcileState.PRESENT)
        try:
            return await self.read(ctx, state)
        except RemoteCallError as e:
            raise self._partial_error(e.step, e.cause, state) from e

    async def read(self, ctx: ReconcileContext, state: StateT) -> StateT:
        """Refresh state from the remote object.

        A missing object is not an error: the returned state has an empty
        ``id`` so the caller drops it.
        """
        self._check_feature(ctx, state)
        if not state.exists:
            return state

        try:
            remote = await ctx.client.read_object(self.definition.kind, state.id)
        except ResourceNotFoundError:
            self._logger.warning("Remote object no longer exists", object_id=state.id)
            return state.model_copy(update={"id": ""})
        except APIError as e:
            raise self._remote_error(STEP_READ, e, state.id) from e

        if not remote.id:
            self._logger.warning("Remote object no longer exists", object_id=state.id)
            return state.model_copy(update={"id": ""})

        try:
            fresh = self.definition.mapper.from_remote_shape(remote)
        except ValueError as e:
            raise self._remote_error(STEP_READ, e, state.id) from e
        carried: Dict[str, Any] = {
            name: getattr(state, name) for name in self.definition.state_model.LOCAL_FIELDS
        }
        if self.definition.manages_assignments:
            carried.update(await self._read_assignments(ctx, remote.id, state))

        return fresh.model_copy(update=carried)

    async def update(self, ctx: ReconcileContext, prior: StateT, desired: StateT) -> StateT:
        """Apply ``desired`` to the object recorded in ``prior``.

        Status transitions, assignment sync and logo upload only issue calls
        when something diverged. A failed logo upload rolls the ``logo``
        attribute back to its prior value in the state carried by the error.
        """
        self._check_feature(ctx, desired)
        self._transition(ReconcileState.PRESENT, ReconcileState.UPDATING)

        object_id = prior.id
        payload = self.definition.mapper.to_remote_shape(desired)
        try:
            remote = await ctx.client.update_object(self.definition.kind, object_id, payload)
        except APIError as e:
            raise self._remote_error(STEP_UPDATE, e, object_id) from e

        state = desired.model_copy(update={"id": object_id})

        try:
            await reconcile_status(
                ctx.client, self.definition.kind, object_id, remote.status, desired.status
            )
        except APIError as e:
            raise self._partial_error(STEP_SET_STATUS, e, state) from e

        await self._sync_subresources(ctx, remote, prior=prior, state=state)

        self._transition(ReconcileState.UPDATING, ReconcileState.PRESENT)
        return await self.read(ctx, state)

    async def delete(self, ctx: ReconcileContext, state: StateT) -> None:
        """Delete the remote object.

        An object that is already gone counts as deleted.
        """
        self._check_feature(ctx, state)
        if not state.exists:
            return
        self._transition(ReconcileState.PRESENT, ReconcileState.DELETING)

        kind = self.definition.kind
        try:
            if self.definition.deactivate_before_delete and state.status == STATUS_ACTIVE:
                await ctx.client.set_activation(kind, state.id, False)
            await ctx.client.delete_object(kind, state.id)
        except ResourceNotFoundError:
            self._logger.info("Remote object already deleted", object_id=state.id)
        except APIError as e:
            raise self._remote_error(STEP_DELETE, e, state.id) from e

        self._transition(ReconcileState.DELETING, ReconcileState.ABSENT)

    # Sub-resources

    async def _sync_subresources(
        self,
        ctx: ReconcileContext,
        remote: OktaObject,
        prior: Optional[StateT],
        state: StateT,
    ) -> None:
        """Sync assignments, then the logo. An assignment failure skips the logo."""
        object_id = state.id

        if self.definition.manages_assignments:
            try:
                await self._sync_assignments(ctx, object_id, prior, state)
            except APIError as e:
                raise self._partial_error(STEP_SYNC_ASSIGNMENTS, e, state) from e

        if not self.definition.manages_logo:
            return

        previous_logo = getattr(prior, "logo", "") if prior is not None else ""
        logo = getattr(state, "logo", "")
        if not logo or logo == previous_logo:
            return

        try:
            await ctx.client.upload_asset(
                object_id,
                remote.link_href("uploadLogo"),
                Path(logo).read_bytes(),
                filename=Path(logo).name,
            )
        except (APIError, OSError) as e:
            # The remote logo is unchanged, so state must keep the old path
            rolled_back = state.model_copy(update={"logo": previous_logo})
            raise self._partial_error(STEP_UPLOAD_LOGO, e, rolled_back) from e

        self._logger.info("Uploaded logo", object_id=object_id, logo=logo)

    async def _sync_assignments(
        self,
        ctx: ReconcileContext,
        app_id: str,
        prior: Optional[StateT],
        desired: StateT,
    ) -> None:
        desired_groups = getattr(desired, "groups", None)
        if desired_groups is not None and desired_groups != (getattr(prior, "groups", None) or set()):
            self._logger.debug("Syncing group assignments", object_id=app_id)
            await ctx.client.sync_group_assignments(app_id, set(desired_groups))

        desired_users = getattr(desired, "users", None)
        if desired_users is not None and desired_users != (getattr(prior, "users", None) or []):
            self._logger.debug("Syncing user assignments", object_id=app_id)
            await ctx.client.sync_user_assignments(app_id, list(desired_users))

    async def _read_assignments(
        self, ctx: ReconcileContext, app_id: str, state: StateT
    ) -> Dict[str, Any]:
        """Read the assignments this state manages.

        Passwords are never returned by the API, so known ones are kept.
        """
        known_groups = getattr(state, "groups", None)
        known_users = getattr(state, "users", None)
        result: Dict[str, Any] = {}

        try:
            if known_groups is not None:
                result["groups"] = set(await ctx.client.list_group_assignments(app_id))
            if known_users is not None:
                users = await ctx.client.list_user_assignments(app_id)
                known = {user.id: user for user in known_users}
                merged = []
                for user in users:
                    previous = known.get(user.id)
                    if previous is not None and previous.username == user.username:
                        user = user.model_copy(update={"password": previous.password})
                    merged.append(user)
                result["users"] = sorted(merged, key=lambda user: user.id)
        except APIError as e:
            raise self._remote_error(STEP_READ_ASSIGNMENTS, e, app_id) from e

        return result

    # Helpers

    def _check_feature(self, ctx: ReconcileContext, state: StateT) -> None:
        check_feature_available(
            ctx.org,
            self.definition.required_feature(state),
            self.definition.resource_type,
        )

    def _transition(self, current: ReconcileState, target: ReconcileState) -> None:
        self._logger.debug("State transition", current=current.value, target=target.value)

    def _remote_error(
        self, step: str, error: Exception, object_id: Optional[str] = None
    ) -> RemoteCallError:
        self._logger.error("Remote call failed", step=step, object_id=object_id, error=str(error))
        return RemoteCallError(
            step, error, resource_type=self.definition.resource_type, object_id=object_id
        )

    def _partial_error(self, step: str, error: Exception, state: StateT) -> PartialSuccessError:
        self._logger.error(
            "Remote object changed but a follow-up step failed",
            step=step,
            object_id=state.id,
            error=str(error),
        )
        return PartialSuccessError(
            step,
            error,
            state,
            resource_type=self.definition.resource_type,
            object_id=state.id,
        )
