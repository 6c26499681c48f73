"""Org and reconciliation context threaded through every operation."""

from dataclasses import dataclass
from typing import FrozenSet, Iterable

from pydantic import BaseModel, ConfigDict

from okta_iac.clients.okta import CLASSIC_PIPELINE, IDENTITY_ENGINE_PIPELINE
from okta_iac.clients.remote import RemoteAPIClient

# Feature key for orgs running Okta Identity Engine
FEATURE_IDENTITY_ENGINE = "okta_identity_engine"


class OrgContext(BaseModel):
    """What the target org supports."""

    model_config = ConfigDict(frozen=True)

    pipeline: str = CLASSIC_PIPELINE
    features: FrozenSet[str] = frozenset()

    @classmethod
    def from_pipeline(cls, pipeline: str, extra_features: Iterable[str] = ()) -> "OrgContext":
        """Build a context from the org's pipeline and any configured features."""
        features = set(extra_features)
        if pipeline == IDENTITY_ENGINE_PIPELINE:
            features.add(FEATURE_IDENTITY_ENGINE)
        return cls(pipeline=pipeline, features=frozenset(features))

    @property
    def is_classic(self) -> bool:
        return self.pipeline == CLASSIC_PIPELINE

    def supports(self, feature: str) -> bool:
        return feature in self.features


@dataclass(frozen=True)
class ReconcileContext:
    """Explicit collaborators for one reconciliation call chain."""

    client: RemoteAPIClient
    org: OrgContext
