"""SWA application resource."""

from okta_iac.clients.remote import ObjectKind
from okta_iac.resources.base import ResourceDefinition
from okta_iac.resources.mappers import SwaAppMapper
from okta_iac.resources.models import SwaAppState
from okta_iac.resources.schema import SWA_APP_SCHEMA

SWA_APP = ResourceDefinition[SwaAppState](
    resource_type="okta_app_swa",
    kind=ObjectKind.APPLICATION,
    state_model=SwaAppState,
    mapper=SwaAppMapper(),
    schema=SWA_APP_SCHEMA,
    manages_assignments=True,
    manages_logo=True,
    deactivate_before_delete=True,
)
