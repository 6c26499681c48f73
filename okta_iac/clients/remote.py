"""Remote object models and the client surface the reconciler depends on."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ObjectKind(str, Enum):
    """Kinds of remote objects managed through the client."""
    APPLICATION = "app"
    POLICY = "policy"

    @property
    def collection_path(self) -> str:
        """API collection path for this kind."""
        return "/apps" if self is ObjectKind.APPLICATION else "/policies"

    def wrap(self, data: Dict[str, Any]) -> "OktaObject":
        """Wrap raw API data in the model for this kind."""
        if self is ObjectKind.APPLICATION:
            return OktaApplication(data)
        return OktaPolicy(data)


class OktaObject:
    """Base wrapper around an Okta API response."""

    def __init__(self, data: Dict[str, Any]) -> None:
        """Initialize from Okta API response data."""
        self.data = data
        self.id: str = data.get("id") or ""
        self.status: Optional[str] = data.get("status")
        self.created = data.get("created")
        self.last_updated = data.get("lastUpdated")
        self._links: Dict[str, Any] = data.get("_links") or {}

    def link_href(self, rel: str) -> Optional[str]:
        """Get the href of a hypermedia link, if present."""
        link = self._links.get(rel)
        if isinstance(link, list):
            link = link[0] if link else None
        if isinstance(link, dict):
            return link.get("href")
        return None


class OktaApplication(OktaObject):
    """Okta application data model."""

    def __init__(self, data: Dict[str, Any]) -> None:
        super().__init__(data)
        self.name = data.get("name")
        self.label = data.get("label")
        self.sign_on_mode = data.get("signOnMode")
        self.settings: Dict[str, Any] = data.get("settings") or {}
        self.credentials: Dict[str, Any] = data.get("credentials") or {}
        self.accessibility: Dict[str, Any] = data.get("accessibility") or {}
        self.visibility: Dict[str, Any] = data.get("visibility") or {}


class OktaPolicy(OktaObject):
    """Okta policy data model."""

    def __init__(self, data: Dict[str, Any]) -> None:
        super().__init__(data)
        self.name = data.get("name")
        self.type = data.get("type")
        self.description = data.get("description")
        self.priority = data.get("priority")
        self.system = bool(data.get("system", False))


class AppUserAssignment(BaseModel):
    """A user assigned to an application, with optional app credentials.

    Okta never returns the password on reads.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    username: str = ""
    password: SecretStr = Field(default=SecretStr(""))


class RemoteAPIClient(ABC):
    """Remote API surface consumed by the reconciler.

    Implementations own authentication, transport and any retry policy.
    ``read_object`` must raise ``ResourceNotFoundError`` when the object does
    not exist so callers can tell absence apart from transport failures.
    """

    @abstractmethod
    async def create_object(
        self, kind: ObjectKind, payload: Dict[str, Any], activate: bool = True
    ) -> OktaObject:
        """Create an object and return the server's representation."""

    @abstractmethod
    async def read_object(self, kind: ObjectKind, object_id: str) -> OktaObject:
        """Read an object by id."""

    @abstractmethod
    async def update_object(
        self, kind: ObjectKind, object_id: str, payload: Dict[str, Any]
    ) -> OktaObject:
        """Replace an object's writable attributes."""

    @abstractmethod
    async def delete_object(self, kind: ObjectKind, object_id: str) -> None:
        """Delete an object by id."""

    @abstractmethod
    async def set_activation(self, kind: ObjectKind, object_id: str, active: bool) -> None:
        """Activate or deactivate an object."""

    @abstractmethod
    async def list_objects_by_type(self, kind: ObjectKind, object_type: str) -> List[OktaObject]:
        """List objects of a kind filtered by subtype."""

    @abstractmethod
    async def list_group_assignments(self, app_id: str) -> Set[str]:
        """Get ids of the groups assigned to an application."""

    @abstractmethod
    async def list_user_assignments(self, app_id: str) -> List[AppUserAssignment]:
        """Get the users assigned to an application."""

    @abstractmethod
    async def sync_group_assignments(self, app_id: str, desired: Set[str]) -> None:
        """Make the application's group assignments equal ``desired``."""

    @abstractmethod
    async def sync_user_assignments(
        self, app_id: str, desired: List[AppUserAssignment]
    ) -> None:
        """Make the application's user assignments equal ``desired``."""

    @abstractmethod
    async def upload_asset(
        self,
        app_id: str,
        asset_link: Optional[str],
        content: bytes,
        filename: str = "logo.png",
    ) -> None:
        """Upload a logo for an application."""
