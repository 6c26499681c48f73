"""Shared pytest fixtures for the okta-iac tests."""

import copy
from typing import Any, Dict, List, Optional, Set
from unittest.mock import AsyncMock

import pytest

from okta_iac.clients.exceptions import ResourceNotFoundError
from okta_iac.clients.remote import AppUserAssignment, ObjectKind, OktaObject, RemoteAPIClient
from okta_iac.core.context import OrgContext, ReconcileContext
from okta_iac.resources.models import SwaAppState

BASE_URL = "https://test.okta.com/api/v1"


class FakeOktaClient(RemoteAPIClient):
    """In-memory Okta org.

    Every call is recorded in ``calls``. Setting ``failures[method]`` makes
    that method raise the given exception.
    """

    def __init__(self) -> None:
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.kinds: Dict[str, ObjectKind] = {}
        self.groups: Dict[str, Set[str]] = {}
        self.users: Dict[str, Dict[str, AppUserAssignment]] = {}
        self.logos: Dict[str, bytes] = {}
        self.calls: List[str] = []
        self.failures: Dict[str, Exception] = {}
        self._counter = 0

    def _record(self, method: str) -> None:
        self.calls.append(method)
        error = self.failures.get(method)
        if error is not None:
            raise error

    def _get(self, kind: ObjectKind, object_id: str) -> Dict[str, Any]:
        if object_id not in self.objects or self.kinds[object_id] is not kind:
            raise ResourceNotFoundError(f"{kind.value} not found: {object_id}", status_code=404)
        return self.objects[object_id]

    def add_object(self, kind: ObjectKind, data: Dict[str, Any]) -> str:
        """Seed an object created outside the reconciler."""
        self._counter += 1
        object_id = data.get("id") or f"{'0oa' if kind is ObjectKind.APPLICATION else '00p'}{self._counter}"
        stored = copy.deepcopy(data)
        stored["id"] = object_id
        stored.setdefault("status", "ACTIVE")
        if kind is ObjectKind.APPLICATION:
            stored["_links"] = {
                "uploadLogo": {"href": f"{BASE_URL}/apps/{object_id}/logo"},
                "logo": [{"name": "medium", "href": f"https://logos.test/{object_id}.png"}],
            }
            self.groups[object_id] = set()
            self.users[object_id] = {}
        else:
            stored.setdefault("system", False)
            stored.setdefault("priority", 1)
        self.objects[object_id] = stored
        self.kinds[object_id] = kind
        return object_id

    def call_count(self, method: str) -> int:
        return self.calls.count(method)

    async def create_object(
        self, kind: ObjectKind, payload: Dict[str, Any], activate: bool = True
    ) -> OktaObject:
        self._record("create_object")
        data = copy.deepcopy(payload)
        data["status"] = "ACTIVE" if activate else "INACTIVE"
        object_id = self.add_object(kind, data)
        return kind.wrap(copy.deepcopy(self.objects[object_id]))

    async def read_object(self, kind: ObjectKind, object_id: str) -> OktaObject:
        self._record("read_object")
        return kind.wrap(copy.deepcopy(self._get(kind, object_id)))

    async def update_object(
        self, kind: ObjectKind, object_id: str, payload: Dict[str, Any]
    ) -> OktaObject:
        self._record("update_object")
        current = self._get(kind, object_id)
        updated = copy.deepcopy(payload)
        for key in ("id", "status", "_links", "system"):
            if key in current:
                updated[key] = current[key]
        if "priority" in current:
            updated.setdefault("priority", current["priority"])
        self.objects[object_id] = updated
        return kind.wrap(copy.deepcopy(updated))

    async def delete_object(self, kind: ObjectKind, object_id: str) -> None:
        self._record("delete_object")
        self._get(kind, object_id)
        del self.objects[object_id]
        del self.kinds[object_id]

    async def set_activation(self, kind: ObjectKind, object_id: str, active: bool) -> None:
        self._record("set_activation")
        self._get(kind, object_id)["status"] = "ACTIVE" if active else "INACTIVE"

    async def list_objects_by_type(self, kind: ObjectKind, object_type: str) -> List[OktaObject]:
        self._record("list_objects_by_type")
        field = "type" if kind is ObjectKind.POLICY else "name"
        return [
            kind.wrap(copy.deepcopy(data))
            for object_id, data in self.objects.items()
            if self.kinds[object_id] is kind and data.get(field) == object_type
        ]

    async def list_group_assignments(self, app_id: str) -> Set[str]:
        self._record("list_group_assignments")
        return set(self.groups.get(app_id, set()))

    async def list_user_assignments(self, app_id: str) -> List[AppUserAssignment]:
        self._record("list_user_assignments")
        # Passwords are never returned
        return [
            AppUserAssignment(id=user.id, username=user.username)
            for user in self.users.get(app_id, {}).values()
        ]

    async def sync_group_assignments(self, app_id: str, desired: Set[str]) -> None:
        self._record("sync_group_assignments")
        self.groups[app_id] = set(desired)

    async def sync_user_assignments(
        self, app_id: str, desired: List[AppUserAssignment]
    ) -> None:
        self._record("sync_user_assignments")
        self.users[app_id] = {user.id: user for user in desired}

    async def upload_asset(
        self,
        app_id: str,
        asset_link: Optional[str],
        content: bytes,
        filename: str = "logo.png",
    ) -> None:
        self._record("upload_asset")
        self.logos[app_id] = content


@pytest.fixture
def fake_client():
    """Create an empty in-memory Okta org."""
    return FakeOktaClient()


@pytest.fixture
def classic_org():
    """Org context for a Classic Engine org."""
    return OrgContext.from_pipeline("v1")


@pytest.fixture
def identity_engine_org():
    """Org context for an Identity Engine org."""
    return OrgContext.from_pipeline("idx")


@pytest.fixture
def ctx(fake_client, identity_engine_org):
    """Reconcile context over the in-memory org."""
    return ReconcileContext(client=fake_client, org=identity_engine_org)


@pytest.fixture
def mock_client():
    """Create a mock remote client with every surface method as an AsyncMock."""
    return AsyncMock(spec=RemoteAPIClient)


@pytest.fixture
def swa_app_state():
    """Desired state for a custom SWA login page."""
    return SwaAppState(
        label="Okta Login",
        username_field="user",
        password_field="pass",
        url="https://example.com/login",
        status="ACTIVE",
    )


@pytest.fixture
def logo_files(tmp_path):
    """Two small logo files."""
    first = tmp_path / "logo.png"
    first.write_bytes(b"\x89PNG first")
    second = tmp_path / "logo-v2.png"
    second.write_bytes(b"\x89PNG second")
    return first, second
