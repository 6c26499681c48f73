"""Remote API clients."""

from okta_iac.clients.okta import OktaClient
from okta_iac.clients.remote import (
    AppUserAssignment,
    ObjectKind,
    OktaApplication,
    OktaObject,
    OktaPolicy,
    RemoteAPIClient,
)

__all__ = [
    "AppUserAssignment",
    "ObjectKind",
    "OktaApplication",
    "OktaClient",
    "OktaObject",
    "OktaPolicy",
    "RemoteAPIClient",
]
