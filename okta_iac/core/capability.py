"""Feature gating for org tiers."""

from typing import Optional

import structlog

from okta_iac.clients.exceptions import FeatureUnavailableError
from okta_iac.core.context import OrgContext

logger = structlog.get_logger(__name__)


def check_feature_available(
    org: OrgContext,
    feature: Optional[str],
    resource_type: Optional[str] = None,
) -> None:
    """Ensure the org supports ``feature`` before any remote call is made.

    Args:
        org: Target org context
        feature: Required feature key, or None when nothing is required
        resource_type: Resource type named in the error message

    Raises:
        FeatureUnavailableError: If the org lacks the feature
    """
    if feature is None or org.supports(feature):
        return
    logger.warning(
        "Feature not available for org",
        feature=feature,
        resource_type=resource_type,
        pipeline=org.pipeline,
    )
    raise FeatureUnavailableError(feature, resource_type=resource_type)
