"""Resource definitions binding a state model to its mapper and API kind."""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, Type, TypeVar

from okta_iac.clients.remote import ObjectKind
from okta_iac.resources.mappers import Mapper
from okta_iac.resources.models import ResourceState
from okta_iac.resources.schema import Schema

StateT = TypeVar("StateT", bound=ResourceState)


def _no_feature(state: ResourceState) -> Optional[str]:
    return None


@dataclass(frozen=True)
class ResourceDefinition(Generic[StateT]):
    """Everything the reconciler needs to know about one resource type.

    Attributes:
        resource_type: Name used in errors and logs (e.g. ``okta_app_swa``)
        kind: Remote object kind
        state_model: State record class
        mapper: Attribute mapper for the state record
        schema: Declarative schema table
        required_feature: Returns the org feature a state needs, if any
        manages_assignments: Whether group/user assignments are synchronized
        manages_logo: Whether the logo sub-resource is uploaded
        deactivate_before_delete: Whether the object must be inactive to delete
    """

    resource_type: str
    kind: ObjectKind
    state_model: Type[StateT]
    mapper: Mapper[StateT]
    schema: Schema
    required_feature: Callable[[StateT], Optional[str]] = _no_feature
    manages_assignments: bool = False
    manages_logo: bool = False
    deactivate_before_delete: bool = False
