"""Natural-key resolution of remote objects."""

from typing import List

import structlog
from pydantic import BaseModel, ConfigDict

from okta_iac.clients.exceptions import AmbiguousMatchError, ResourceNotFoundError
from okta_iac.clients.remote import ObjectKind, OktaObject, RemoteAPIClient

logger = structlog.get_logger(__name__)


class PolicyKey(BaseModel):
    """Natural key of a policy."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str


async def resolve_by_key(
    client: RemoteAPIClient,
    key: PolicyKey,
    kind: ObjectKind = ObjectKind.POLICY,
) -> OktaObject:
    """Find the single object whose name matches ``key`` exactly.

    Only used when no identifier is known yet; names are not stable over
    time, so once an id is stored all reads go through it.

    Raises:
        ResourceNotFoundError: If nothing matches
        AmbiguousMatchError: If more than one object matches
    """
    candidates = await client.list_objects_by_type(kind, key.type)
    matches: List[OktaObject] = [
        obj for obj in candidates if getattr(obj, "name", None) == key.name
    ]

    logger.debug(
        "Resolved objects by natural key",
        kind=kind.value,
        name=key.name,
        type=key.type,
        candidates=len(candidates),
        matches=len(matches),
    )

    if not matches:
        raise ResourceNotFoundError(
            f"No {kind.value} named '{key.name}' with type '{key.type}'", status_code=404
        )
    if len(matches) > 1:
        raise AmbiguousMatchError(key.name, key.type, len(matches))
    return matches[0]
