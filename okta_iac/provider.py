"""IaC engine surface: resource handlers, the policy data source and the provider."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, List, Mapping, Optional, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from okta_iac.clients.base import BaseAPIClient
from okta_iac.clients.exceptions import (
    APIError,
    FeatureUnavailableError,
    PartialSuccessError,
    ReconcileError,
    RemoteCallError,
    ResourceNotFoundError,
)
from okta_iac.clients.okta import OktaClient
from okta_iac.clients.remote import RemoteAPIClient
from okta_iac.config.models import DEFAULT_OPERATION_TIMEOUT_SECONDS, OktaConfig, ProviderConfig, TimeoutsConfig
from okta_iac.core.context import OrgContext, ReconcileContext
from okta_iac.core.reconciler import Reconciler
from okta_iac.resources.app_swa import SWA_APP
from okta_iac.resources.base import ResourceDefinition
from okta_iac.resources.models import PolicyDataState, ResourceState
from okta_iac.resources.policy import POLICY, POLICY_DATA_SOURCE_TYPE, read_policy_data_source
from okta_iac.resources.schema import POLICY_DATA_SOURCE_SCHEMA, Schema

logger = structlog.get_logger(__name__)

StateT = TypeVar("StateT")


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """A problem reported back to the IaC engine."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    summary: str
    detail: str = ""
    step: Optional[str] = None
    attribute: Optional[str] = None


@dataclass
class OperationResult(Generic[StateT]):
    """Outcome of one handler call.

    ``state`` is what the engine should record. It is kept even when
    diagnostics are present, so a partially applied change stays tracked.
    """

    state: Optional[StateT] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self.diagnostics)


def validation_diagnostics(error: PydanticValidationError) -> List[Diagnostic]:
    """One diagnostic per invalid attribute."""
    diagnostics = []
    for item in error.errors():
        attribute = ".".join(str(part) for part in item.get("loc", ())) or None
        diagnostics.append(
            Diagnostic(
                severity=Severity.ERROR,
                summary="Invalid attribute value",
                detail=item.get("msg", ""),
                attribute=attribute,
            )
        )
    return diagnostics


def error_diagnostic(error: Exception) -> Diagnostic:
    """Convert a reconciliation error into a diagnostic."""
    if isinstance(error, FeatureUnavailableError):
        return Diagnostic(
            severity=Severity.ERROR,
            summary="Feature not available",
            detail=str(error),
        )
    if isinstance(error, PartialSuccessError):
        return Diagnostic(
            severity=Severity.ERROR,
            summary=f"Object saved but '{error.step}' failed",
            detail=str(error),
            step=error.step,
        )
    if isinstance(error, RemoteCallError):
        return Diagnostic(
            severity=Severity.ERROR,
            summary=f"Failed to {error.step}",
            detail=str(error),
            step=error.step,
        )
    if isinstance(error, ResourceNotFoundError):
        return Diagnostic(severity=Severity.ERROR, summary="Object not found", detail=str(error))
    return Diagnostic(severity=Severity.ERROR, summary="Operation failed", detail=str(error))


async def _run_with_timeout(
    operation: str,
    call: Awaitable[Any],
    timeout_seconds: float,
    fallback: Callable[[], Any],
    bound_logger: Any,
) -> OperationResult[Any]:
    """Await ``call`` under a timeout and turn failures into diagnostics.

    ``fallback`` is evaluated after a failure and supplies the state to keep.

    Cancellation is not intercepted.
    """
    try:
        state = await asyncio.wait_for(call, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        bound_logger.error("Operation timed out", operation=operation, timeout_seconds=timeout_seconds)
        return OperationResult(
            state=fallback(),
            diagnostics=[
                Diagnostic(
                    severity=Severity.ERROR,
                    summary="Operation timed out",
                    detail=f"{operation} did not complete within {timeout_seconds:g} seconds",
                    step=operation,
                )
            ],
        )
    except PartialSuccessError as e:
        return OperationResult(state=e.state, diagnostics=[error_diagnostic(e)])
    except (ReconcileError, APIError) as e:
        return OperationResult(state=fallback(), diagnostics=[error_diagnostic(e)])

    return OperationResult(state=state)


class ResourceHandler(Generic[StateT]):
    """Engine entry points for one managed resource type."""

    def __init__(
        self,
        definition: ResourceDefinition,
        timeouts: Optional[TimeoutsConfig] = None,
    ) -> None:
        self.definition = definition
        self.timeouts = timeouts or TimeoutsConfig()
        self.reconciler: Reconciler = Reconciler(definition)
        self._logger = logger.bind(resource_type=definition.resource_type)

    @property
    def resource_type(self) -> str:
        return self.definition.resource_type

    @property
    def schema(self) -> Schema:
        return self.definition.schema

    def validate(self, config: Mapping[str, Any]) -> OperationResult[StateT]:
        """Build a state record from user configuration.

        Computed attributes cannot be configured.
        """
        state_model = self.definition.state_model
        diagnostics = [
            Diagnostic(
                severity=Severity.ERROR,
                summary="Cannot set computed attribute",
                detail=f"'{name}' is assigned by Okta",
                attribute=name,
            )
            for name in config
            if name in state_model.COMPUTED_FIELDS
        ]
        if diagnostics:
            return OperationResult(diagnostics=diagnostics)

        try:
            state = state_model.model_validate(dict(config))
        except PydanticValidationError as e:
            return OperationResult(diagnostics=validation_diagnostics(e))
        return OperationResult(state=state)

    async def create(self, ctx: ReconcileContext, desired: StateT) -> OperationResult[StateT]:
        """Create the object; once it has an identifier the result always carries it."""
        created: List[StateT] = []
        return await _run_with_timeout(
            "create",
            self.reconciler.create(ctx, desired, on_created=created.append),
            self.timeouts.create_seconds,
            lambda: created[-1] if created else None,
            self._logger,
        )

    async def read(self, ctx: ReconcileContext, state: StateT) -> OperationResult[StateT]:
        """Refresh ``state``; an empty ``id`` in the result means the object is gone."""
        return await _run_with_timeout(
            "read",
            self.reconciler.read(ctx, state),
            self.timeouts.read_seconds,
            lambda: state,
            self._logger,
        )

    async def update(
        self, ctx: ReconcileContext, prior: StateT, desired: StateT
    ) -> OperationResult[StateT]:
        return await _run_with_timeout(
            "update",
            self.reconciler.update(ctx, prior, desired),
            self.timeouts.update_seconds,
            lambda: prior,
            self._logger,
        )

    async def delete(self, ctx: ReconcileContext, state: StateT) -> OperationResult[StateT]:
        """Delete the object; on success the result carries no state."""
        return await _run_with_timeout(
            "delete",
            self.reconciler.delete(ctx, state),
            self.timeouts.delete_seconds,
            lambda: state,
            self._logger,
        )


class PolicyDataSource:
    """Engine entry point for the ``okta_policy`` data source."""

    data_source_type = POLICY_DATA_SOURCE_TYPE

    def __init__(self, timeout_seconds: float = DEFAULT_OPERATION_TIMEOUT_SECONDS) -> None:
        self.timeout_seconds = timeout_seconds
        self._logger = logger.bind(data_source_type=POLICY_DATA_SOURCE_TYPE)

    @property
    def schema(self) -> Schema:
        return POLICY_DATA_SOURCE_SCHEMA

    async def read(
        self, ctx: ReconcileContext, name: str, type: str
    ) -> OperationResult[PolicyDataState]:
        """Resolve the policy named ``name`` of the given ``type``."""
        try:
            query = PolicyDataState(name=name, type=type)
        except PydanticValidationError as e:
            return OperationResult(diagnostics=validation_diagnostics(e))

        return await _run_with_timeout(
            "read",
            read_policy_data_source(ctx, query),
            self.timeout_seconds,
            lambda: None,
            self._logger,
        )


def create_okta_client(
    config: OktaConfig, transport: Optional[httpx.AsyncBaseTransport] = None
) -> OktaClient:
    """Create an Okta client from configuration."""
    return OktaClient(
        domain=config.domain,
        api_token=config.api_token,
        timeout_seconds=config.timeout_seconds,
        rate_limit_per_minute=config.rate_limit_per_minute,
        max_retries=config.max_retries,
        retry_delay_seconds=config.retry_delay_seconds,
        transport=transport,
    )


class Provider:
    """Bundles the reconciliation context with every handler.

    Attributes:
        context: Client and org context passed to each handler call
        resources: Resource handlers keyed by resource type
        data_sources: Data sources keyed by data source type
    """

    def __init__(
        self,
        client: RemoteAPIClient,
        org: OrgContext,
        timeouts: Optional[TimeoutsConfig] = None,
    ) -> None:
        timeouts = timeouts or TimeoutsConfig()
        self.context = ReconcileContext(client=client, org=org)
        self.resources: Dict[str, ResourceHandler[ResourceState]] = {
            definition.resource_type: ResourceHandler(definition, timeouts)
            for definition in (SWA_APP, POLICY)
        }
        self.data_sources: Dict[str, PolicyDataSource] = {
            POLICY_DATA_SOURCE_TYPE: PolicyDataSource(timeouts.read_seconds),
        }

    @classmethod
    async def from_config(
        cls,
        config: ProviderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "Provider":
        """Create the Okta client and discover what the org supports."""
        client = create_okta_client(config.okta, transport=transport)
        try:
            pipeline = await client.get_org_pipeline()
        except APIError:
            await client.close()
            raise

        org = OrgContext.from_pipeline(pipeline, config.features)
        logger.info(
            "Configured provider",
            okta_domain=config.okta.domain,
            pipeline=org.pipeline,
            features=sorted(org.features),
        )
        return cls(client, org, config.timeouts)

    def resource(self, resource_type: str) -> ResourceHandler[ResourceState]:
        try:
            return self.resources[resource_type]
        except KeyError:
            raise ValueError(f"Unknown resource type: {resource_type}") from None

    @property
    def policy_data_source(self) -> PolicyDataSource:
        return self.data_sources[POLICY_DATA_SOURCE_TYPE]

    async def close(self) -> None:
        if isinstance(self.context.client, BaseAPIClient):
            await self.context.client.close()

    async def __aenter__(self) -> "Provider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
