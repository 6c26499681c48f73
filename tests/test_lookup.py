"""Tests for natural-key resolution."""

import pytest

from okta_iac.clients.exceptions import AmbiguousMatchError, ResourceNotFoundError
from okta_iac.clients.remote import ObjectKind, OktaPolicy
from okta_iac.core.lookup import PolicyKey, resolve_by_key


def policy(policy_id, name, policy_type="ACCESS_POLICY"):
    return OktaPolicy({"id": policy_id, "name": name, "type": policy_type, "status": "ACTIVE"})


class TestResolveByKey:
    """Test cases for resolve_by_key."""

    @pytest.mark.asyncio
    async def test_single_exact_match(self, mock_client):
        mock_client.list_objects_by_type.return_value = [
            policy("00p1", "Default Policy"),
            policy("00p2", "Seeded Policy"),
        ]

        result = await resolve_by_key(mock_client, PolicyKey(name="Seeded Policy", type="ACCESS_POLICY"))

        assert result.id == "00p2"
        mock_client.list_objects_by_type.assert_awaited_once_with(ObjectKind.POLICY, "ACCESS_POLICY")

    @pytest.mark.asyncio
    async def test_match_is_case_sensitive(self, mock_client):
        mock_client.list_objects_by_type.return_value = [policy("00p1", "seeded policy")]

        with pytest.raises(ResourceNotFoundError):
            await resolve_by_key(mock_client, PolicyKey(name="Seeded Policy", type="ACCESS_POLICY"))

    @pytest.mark.asyncio
    async def test_no_match(self, mock_client):
        mock_client.list_objects_by_type.return_value = []

        with pytest.raises(ResourceNotFoundError) as exc_info:
            await resolve_by_key(mock_client, PolicyKey(name="Missing", type="PASSWORD"))

        assert exc_info.value.status_code == 404
        assert "Missing" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_multiple_matches_are_ambiguous(self, mock_client):
        mock_client.list_objects_by_type.return_value = [
            policy("00p1", "Duplicate"),
            policy("00p2", "Duplicate"),
        ]

        with pytest.raises(AmbiguousMatchError) as exc_info:
            await resolve_by_key(mock_client, PolicyKey(name="Duplicate", type="ACCESS_POLICY"))

        assert exc_info.value.matches == 2
        assert exc_info.value.name == "Duplicate"
