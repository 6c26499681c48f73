"""Tests for org context, feature gating and status reconciliation."""

import pytest

from okta_iac.clients.exceptions import FeatureUnavailableError
from okta_iac.clients.remote import ObjectKind
from okta_iac.core.capability import check_feature_available
from okta_iac.core.context import FEATURE_IDENTITY_ENGINE, OrgContext
from okta_iac.core.status import STATUS_ACTIVE, STATUS_INACTIVE, reconcile_status


class TestOrgContext:
    """Test cases for OrgContext."""

    def test_identity_engine_pipeline_adds_feature(self):
        org = OrgContext.from_pipeline("idx")

        assert org.supports(FEATURE_IDENTITY_ENGINE)
        assert not org.is_classic

    def test_classic_pipeline(self):
        org = OrgContext.from_pipeline("v1")

        assert not org.supports(FEATURE_IDENTITY_ENGINE)
        assert org.is_classic

    def test_extra_features(self):
        org = OrgContext.from_pipeline("v1", ["custom_feature"])

        assert org.supports("custom_feature")
        assert org.features == frozenset({"custom_feature"})


class TestCheckFeatureAvailable:
    """Test cases for check_feature_available."""

    def test_no_feature_required(self, classic_org):
        check_feature_available(classic_org, None)

    def test_supported_feature(self, identity_engine_org):
        check_feature_available(identity_engine_org, FEATURE_IDENTITY_ENGINE)

    def test_unsupported_feature_names_feature(self, classic_org):
        with pytest.raises(FeatureUnavailableError) as exc_info:
            check_feature_available(classic_org, FEATURE_IDENTITY_ENGINE, "okta_policy")

        assert exc_info.value.feature == FEATURE_IDENTITY_ENGINE
        assert FEATURE_IDENTITY_ENGINE in str(exc_info.value)
        assert "okta_policy" in str(exc_info.value)


class TestReconcileStatus:
    """Test cases for reconcile_status."""

    @pytest.mark.asyncio
    async def test_no_call_when_equal(self, mock_client):
        changed = await reconcile_status(
            mock_client, ObjectKind.APPLICATION, "0oa1", STATUS_ACTIVE, STATUS_ACTIVE
        )

        assert changed is False
        mock_client.set_activation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deactivates(self, mock_client):
        changed = await reconcile_status(
            mock_client, ObjectKind.POLICY, "00p1", STATUS_ACTIVE, STATUS_INACTIVE
        )

        assert changed is True
        mock_client.set_activation.assert_awaited_once_with(ObjectKind.POLICY, "00p1", False)

    @pytest.mark.asyncio
    async def test_activates(self, mock_client):
        await reconcile_status(
            mock_client, ObjectKind.APPLICATION, "0oa1", STATUS_INACTIVE, STATUS_ACTIVE
        )

        mock_client.set_activation.assert_awaited_once_with(ObjectKind.APPLICATION, "0oa1", True)
