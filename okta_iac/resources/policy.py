"""Policy resource and policy data source."""

from typing import Optional

import structlog

from okta_iac.clients.exceptions import APIError, RemoteCallError, ResourceNotFoundError
from okta_iac.clients.remote import ObjectKind
from okta_iac.core.capability import check_feature_available
from okta_iac.core.context import FEATURE_IDENTITY_ENGINE, ReconcileContext
from okta_iac.core.lookup import PolicyKey, resolve_by_key
from okta_iac.resources.base import ResourceDefinition
from okta_iac.resources.mappers import PolicyMapper
from okta_iac.resources.models import (
    IDENTITY_ENGINE_POLICY_TYPES,
    PolicyDataState,
    PolicyState,
    PolicyType,
)
from okta_iac.resources.schema import POLICY_SCHEMA

logger = structlog.get_logger(__name__)

POLICY_DATA_SOURCE_TYPE = "okta_policy"


def policy_required_feature(state: PolicyState) -> Optional[str]:
    """Identity-Engine-only policy types need an Identity Engine org."""
    if PolicyType(state.type) in IDENTITY_ENGINE_POLICY_TYPES:
        return FEATURE_IDENTITY_ENGINE
    return None


POLICY = ResourceDefinition[PolicyState](
    resource_type="okta_policy",
    kind=ObjectKind.POLICY,
    state_model=PolicyState,
    mapper=PolicyMapper(),
    schema=POLICY_SCHEMA,
    required_feature=policy_required_feature,
)


async def read_policy_data_source(ctx: ReconcileContext, query: PolicyDataState) -> PolicyDataState:
    """Resolve a policy by name and type and report its id and status.

    The data source is only offered on Identity Engine orgs.

    Raises:
        FeatureUnavailableError: On Classic Engine orgs
        ResourceNotFoundError: If no policy matches
        AmbiguousMatchError: If several policies share the name
        RemoteCallError: If listing policies fails
    """
    check_feature_available(ctx.org, FEATURE_IDENTITY_ENGINE, POLICY_DATA_SOURCE_TYPE)

    key = PolicyKey(name=query.name, type=PolicyType(query.type).value)
    try:
        policy = await resolve_by_key(ctx.client, key)
    except ResourceNotFoundError:
        raise
    except APIError as e:
        raise RemoteCallError("lookup", e, resource_type=POLICY_DATA_SOURCE_TYPE) from e

    logger.debug("Resolved policy data source", name=key.name, type=key.type, policy_id=policy.id)
    return query.model_copy(update={"id": policy.id, "status": policy.status or ""})
