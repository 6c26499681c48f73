"""Okta API client for application and policy management."""

import json
from typing import Any, Dict, List, Optional, Set
from urllib.parse import parse_qs, urlparse

import httpx
import structlog
from pydantic import SecretStr

from okta_iac.clients.base import BaseAPIClient
from okta_iac.clients.exceptions import (
    APIError,
    OktaError,
    ResourceNotFoundError,
    ValidationError,
)
from okta_iac.clients.remote import (
    AppUserAssignment,
    ObjectKind,
    OktaObject,
    RemoteAPIClient,
)

logger = structlog.get_logger(__name__)

CLASSIC_PIPELINE = "v1"
IDENTITY_ENGINE_PIPELINE = "idx"


class OktaClient(BaseAPIClient, RemoteAPIClient):
    """Okta API client for applications, policies and their assignments."""

    def __init__(
        self,
        domain: str,
        api_token: SecretStr,
        timeout_seconds: int = 30,
        rate_limit_per_minute: int = 600,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize Okta client.

        Args:
            domain: Okta domain (e.g., 'yourorg.okta.com')
            api_token: Okta API token
            timeout_seconds: Request timeout in seconds
            rate_limit_per_minute: Maximum requests per minute
            max_retries: Maximum retry attempts
            retry_delay_seconds: Initial retry delay
            transport: Optional httpx transport (used by tests)
        """
        self.domain = domain.replace("https://", "").replace("http://", "").rstrip("/")
        if not self.domain.endswith(".okta.com") and not self.domain.endswith(".oktapreview.com"):
            raise ValueError(f"Invalid Okta domain: {domain}")

        self._api_token = api_token

        super().__init__(
            base_url=f"https://{self.domain}/api/v1",
            timeout_seconds=timeout_seconds,
            rate_limit_per_minute=rate_limit_per_minute,
            max_retries=max_retries,
            retry_delay_seconds=retry_delay_seconds,
            transport=transport,
        )

        self._logger = logger.bind(okta_domain=self.domain)

    def _get_auth_headers(self) -> Dict[str, str]:
        """Get Okta authentication headers."""
        return {
            "Authorization": f"SSWS {self._api_token.get_secret_value()}",
        }

    async def get_org_pipeline(self) -> str:
        """Get the org's authentication pipeline.

        Returns:
            ``"v1"`` for Classic Engine orgs, ``"idx"`` for Identity Engine orgs
        """
        try:
            data = await self.get_json(f"https://{self.domain}/.well-known/okta-organization")
        except APIError as e:
            raise self._convert_to_okta_error(e) from e
        return data.get("pipeline") or CLASSIC_PIPELINE

    # Object lifecycle

    async def create_object(
        self, kind: ObjectKind, payload: Dict[str, Any], activate: bool = True
    ) -> OktaObject:
        """Create an application or policy.

        Args:
            kind: Object kind
            payload: Request body in Okta's shape
            activate: Whether Okta should activate the object on creation

        Returns:
            The created object
        """
        params = {"activate": "true" if activate else "false"}
        try:
            data = await self.post_json(kind.collection_path, json_data=payload, params=params)
        except APIError as e:
            raise self._convert_to_okta_error(e) from e
        return kind.wrap(data)

    async def read_object(self, kind: ObjectKind, object_id: str) -> OktaObject:
        """Get a single application or policy by ID.

        Raises:
            ResourceNotFoundError: If the object does not exist
            OktaError: If API call fails
        """
        try:
            data = await self.get_json(f"{kind.collection_path}/{object_id}")
        except APIError as e:
            if e.status_code == 404:
                raise ResourceNotFoundError(
                    f"{kind.value} not found: {object_id}", status_code=404
                ) from e
            raise self._convert_to_okta_error(e) from e
        return kind.wrap(data)

    async def update_object(
        self, kind: ObjectKind, object_id: str, payload: Dict[str, Any]
    ) -> OktaObject:
        """Replace an application or policy."""
        try:
            data = await self.put_json(f"{kind.collection_path}/{object_id}", json_data=payload)
        except APIError as e:
            if e.status_code == 404:
                raise ResourceNotFoundError(
                    f"{kind.value} not found: {object_id}", status_code=404
                ) from e
            raise self._convert_to_okta_error(e) from e
        return kind.wrap(data)

    async def delete_object(self, kind: ObjectKind, object_id: str) -> None:
        """Delete an application or policy.

        Raises:
            ResourceNotFoundError: If the object does not exist
        """
        try:
            await self.delete(f"{kind.collection_path}/{object_id}")
        except APIError as e:
            if e.status_code == 404:
                raise ResourceNotFoundError(
                    f"{kind.value} not found: {object_id}", status_code=404
                ) from e
            raise self._convert_to_okta_error(e) from e

    async def set_activation(self, kind: ObjectKind, object_id: str, active: bool) -> None:
        """Activate or deactivate an application or policy."""
        transition = "activate" if active else "deactivate"
        try:
            await self.post(f"{kind.collection_path}/{object_id}/lifecycle/{transition}")
        except APIError as e:
            if e.status_code == 404:
                raise ResourceNotFoundError(
                    f"{kind.value} not found: {object_id}", status_code=404
                ) from e
            raise self._convert_to_okta_error(e) from e

    async def list_objects_by_type(self, kind: ObjectKind, object_type: str) -> List[OktaObject]:
        """List policies of a type, or applications with a given app name."""
        if kind is ObjectKind.POLICY:
            params = {"type": object_type}
        else:
            params = {"filter": f'name eq "{object_type}"'}
        try:
            items = await self.paginate(kind.collection_path, params=params)
        except APIError as e:
            raise self._convert_to_okta_error(e) from e
        return [kind.wrap(item) for item in items]

    # Application assignments

    async def list_group_assignments(self, app_id: str) -> Set[str]:
        """Get ids of the groups assigned to an application."""
        try:
            items = await self.paginate(f"/apps/{app_id}/groups")
        except APIError as e:
            raise self._convert_to_okta_error(e) from e
        return {item["id"] for item in items if item.get("id")}

    async def list_user_assignments(self, app_id: str) -> List[AppUserAssignment]:
        """Get the users assigned to an application."""
        try:
            items = await self.paginate(f"/apps/{app_id}/users")
        except APIError as e:
            raise self._convert_to_okta_error(e) from e
        return [
            AppUserAssignment(
                id=item["id"],
                username=(item.get("credentials") or {}).get("userName") or "",
            )
            for item in items
            if item.get("scope", "USER") == "USER"
        ]

    async def sync_group_assignments(self, app_id: str, desired: Set[str]) -> None:
        """Assign missing groups and unassign extra ones."""
        current = await self.list_group_assignments(app_id)
        to_add = sorted(desired - current)
        to_remove = sorted(current - desired)

        self._logger.debug(
            "Syncing application group assignments",
            app_id=app_id,
            to_add=to_add,
            to_remove=to_remove,
        )

        try:
            for group_id in to_add:
                await self.put(f"/apps/{app_id}/groups/{group_id}", json_data={})
            for group_id in to_remove:
                await self.delete(f"/apps/{app_id}/groups/{group_id}")
        except APIError as e:
            raise self._convert_to_okta_error(e) from e

    async def sync_user_assignments(
        self, app_id: str, desired: List[AppUserAssignment]
    ) -> None:
        """Assign missing users, update changed credentials, unassign extra users."""
        current = {user.id: user for user in await self.list_user_assignments(app_id)}
        desired_by_id = {user.id: user for user in desired}

        try:
            for user in desired:
                existing = current.get(user.id)
                if existing is None:
                    await self.post(
                        f"/apps/{app_id}/users",
                        json_data=self._user_assignment_body(user),
                    )
                elif existing.username != user.username or user.password.get_secret_value():
                    await self.post(
                        f"/apps/{app_id}/users/{user.id}",
                        json_data=self._user_assignment_body(user),
                    )
            for user_id in current:
                if user_id not in desired_by_id:
                    await self.delete(f"/apps/{app_id}/users/{user_id}")
        except APIError as e:
            raise self._convert_to_okta_error(e) from e

        self._logger.debug(
            "Synced application user assignments",
            app_id=app_id,
            desired=len(desired_by_id),
            previous=len(current),
        )

    def _user_assignment_body(self, user: AppUserAssignment) -> Dict[str, Any]:
        credentials: Dict[str, Any] = {"userName": user.username}
        password = user.password.get_secret_value()
        if password:
            credentials["password"] = {"value": password}
        return {"id": user.id, "scope": "USER", "credentials": credentials}

    async def upload_asset(
        self,
        app_id: str,
        asset_link: Optional[str],
        content: bytes,
        filename: str = "logo.png",
    ) -> None:
        """Upload an application logo.

        Args:
            app_id: Application ID
            asset_link: The app's ``uploadLogo`` link, if the API returned one
            content: Image bytes
            filename: File name sent with the multipart upload
        """
        path = asset_link or f"/apps/{app_id}/logo"
        try:
            await self.post(path, files={"file": (filename, content)})
        except APIError as e:
            raise self._convert_to_okta_error(e) from e

    # Pagination Implementation

    async def paginate(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Paginate through all results for an endpoint.

        Args:
            path: API endpoint path
            params: Query parameters
            limit: Maximum number of items to retrieve

        Returns:
            List of all items from all pages
        """
        all_items: List[Dict[str, Any]] = []
        current_params = params.copy() if params else {}
        current_params.setdefault("limit", 200)  # Okta max page size

        next_url = None

        while True:
            if next_url:
                parsed = urlparse(next_url)
                path = parsed.path.replace("/api/v1", "")
                current_params = parse_qs(parsed.query)
                current_params = {k: v[0] if len(v) == 1 else v for k, v in current_params.items()}

            response = await self.get(path, params=current_params)

            try:
                items = response.json()
            except ValueError as e:
                raise APIError(f"Failed to parse paginated response: {e}") from e
            if not isinstance(items, list):
                raise ValidationError(f"Expected list response, got {type(items)}")

            all_items.extend(items)

            if limit and len(all_items) >= limit:
                return all_items[:limit]

            next_url = None
            link_header = response.headers.get("Link")
            if link_header:
                next_url = self._parse_link_header(link_header).get("next")

            if not next_url or not items:
                break

        return all_items

    def _parse_link_header(self, link_header: str) -> Dict[str, str]:
        """Parse HTTP Link header for pagination.

        Returns:
            Dictionary mapping relation types to URLs
        """
        links = {}
        for link in link_header.split(","):
            parts = link.strip().split(";")
            if len(parts) >= 2:
                url = parts[0].strip("<> ")
                for part in parts[1:]:
                    if "rel=" in part:
                        rel = part.split("=")[1].strip('" ')
                        links[rel] = url
                        break
        return links

    def _convert_to_okta_error(self, api_error: APIError) -> OktaError:
        """Convert generic API error to Okta-specific error.

        Okta error bodies carry ``errorCode``, ``errorId`` and a human
        readable ``errorSummary`` which replaces the generic message.
        """
        if isinstance(api_error, OktaError):
            return api_error

        error_code = None
        error_id = None
        message = api_error.message

        if api_error.response_text:
            try:
                error_data = json.loads(api_error.response_text)
                if isinstance(error_data, dict):
                    error_code = error_data.get("errorCode")
                    error_id = error_data.get("errorId")
                    if "errorSummary" in error_data:
                        message = error_data["errorSummary"]
            except (json.JSONDecodeError, TypeError):
                pass

        return OktaError(
            message=message,
            error_code=error_code,
            error_id=error_id,
            status_code=api_error.status_code,
            response_text=api_error.response_text,
        )
