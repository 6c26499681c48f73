"""Tests for the command line interface."""

from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from okta_iac.cli import app
from okta_iac.clients.remote import ObjectKind
from okta_iac.provider import Provider

runner = CliRunner()

CONFIG_YAML = """
okta:
  domain: test.okta.com
  api_token: test-token
logging:
  level: WARNING
  format: text
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "okta-iac.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


class TestCli:
    """Test cases for the okta-iac commands."""

    def test_validate(self, config_path):
        result = runner.invoke(app, ["validate", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "test.okta.com" in result.output

    def test_validate_invalid_config(self, tmp_path):
        path = tmp_path / "okta-iac.yaml"
        path.write_text("okta:\n  domain: example.com\n  api_token: t\n", encoding="utf-8")

        result = runner.invoke(app, ["validate", "--config", str(path)])

        assert result.exit_code == 1
        assert "Error loading configuration" in result.output

    def test_lookup_policy(self, config_path, fake_client, identity_engine_org):
        policy_id = fake_client.add_object(ObjectKind.POLICY, {"name": "Seeded", "type": "ACCESS_POLICY"})
        provider = Provider(fake_client, identity_engine_org)

        with patch.object(Provider, "from_config", AsyncMock(return_value=provider)):
            result = runner.invoke(
                app, ["lookup-policy", "Seeded", "ACCESS_POLICY", "--config", str(config_path)]
            )

        assert result.exit_code == 0
        assert policy_id in result.output

    def test_lookup_policy_on_classic_org(self, config_path, fake_client, classic_org):
        provider = Provider(fake_client, classic_org)

        with patch.object(Provider, "from_config", AsyncMock(return_value=provider)):
            result = runner.invoke(
                app, ["lookup-policy", "Seeded", "ACCESS_POLICY", "--config", str(config_path)]
            )

        assert result.exit_code == 1
        assert "Feature not available" in result.output
