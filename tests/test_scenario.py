"""End-to-end create and read of an SWA application against an in-memory org."""

import pytest

from okta_iac.core.reconciler import Reconciler
from okta_iac.resources.app_swa import SWA_APP


@pytest.mark.asyncio
async def test_create_then_read_returns_desired_state(ctx, fake_client, swa_app_state):
    reconciler = Reconciler(SWA_APP)

    created = await reconciler.create(ctx, swa_app_state)
    read = await reconciler.read(ctx, created)

    assert read.id == created.id != ""
    assert read.writable_values() == swa_app_state.writable_values()
    assert read.label == "Okta Login"
    assert read.username_field == "user"
    assert read.password_field == "pass"
    assert read.url == "https://example.com/login"
    assert read.status == "ACTIVE"

    stored = fake_client.objects[created.id]
    assert stored["settings"]["app"] == {
        "usernameField": "user",
        "passwordField": "pass",
        "url": "https://example.com/login",
    }


@pytest.mark.asyncio
async def test_external_delete_then_recreate(ctx, fake_client, swa_app_state):
    reconciler = Reconciler(SWA_APP)
    created = await reconciler.create(ctx, swa_app_state)
    del fake_client.objects[created.id]

    dropped = await reconciler.read(ctx, created)
    recreated = await reconciler.create(ctx, swa_app_state)

    assert dropped.id == ""
    assert recreated.id not in ("", created.id)
