"""Tests keeping schema tables consistent with the state records."""

import pytest

from okta_iac.resources.models import PolicyDataState, PolicyState, SwaAppState
from okta_iac.resources.schema import (
    POLICY_DATA_SOURCE_SCHEMA,
    POLICY_SCHEMA,
    SWA_APP_SCHEMA,
    AttributeEffect,
    computed_attributes,
    required_attributes,
)


@pytest.mark.parametrize(
    "schema,model",
    [(SWA_APP_SCHEMA, SwaAppState), (POLICY_SCHEMA, PolicyState)],
)
class TestResourceSchemas:
    """Schema tables describe exactly the state record fields."""

    def test_attributes_are_model_fields(self, schema, model):
        assert set(schema) == set(model.model_fields) - {"id"}

    def test_computed_attributes_match_model(self, schema, model):
        assert set(computed_attributes(schema)) == set(model.COMPUTED_FIELDS) - {"id"}

    def test_required_attributes_match_model(self, schema, model):
        required = {name for name, field in model.model_fields.items() if field.is_required()}
        assert set(required_attributes(schema)) == required


def test_data_source_schema():
    assert set(required_attributes(POLICY_DATA_SOURCE_SCHEMA)) == {"name", "type"}
    assert set(POLICY_DATA_SOURCE_SCHEMA) == set(PolicyDataState.model_fields) - {"id"}


def test_users_are_sensitive():
    assert SWA_APP_SCHEMA["users"].sensitive is True


def test_priority_is_optional_computed():
    assert POLICY_SCHEMA["priority"].effect is AttributeEffect.OPTIONAL_COMPUTED
