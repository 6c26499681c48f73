"""Lifecycle status reconciliation."""

from typing import Optional

import structlog

from okta_iac.clients.remote import ObjectKind, RemoteAPIClient

logger = structlog.get_logger(__name__)

STATUS_ACTIVE = "ACTIVE"
STATUS_INACTIVE = "INACTIVE"


async def reconcile_status(
    client: RemoteAPIClient,
    kind: ObjectKind,
    object_id: str,
    current: Optional[str],
    desired: str,
) -> bool:
    """Activate or deactivate the object when its status diverges.

    Returns:
        True if a transition call was made
    """
    if current == desired:
        return False

    logger.info(
        "Transitioning lifecycle status",
        kind=kind.value,
        object_id=object_id,
        current=current,
        desired=desired,
    )
    await client.set_activation(kind, object_id, desired == STATUS_ACTIVE)
    return True
