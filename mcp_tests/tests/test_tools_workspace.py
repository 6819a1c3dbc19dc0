import pytest

from tools import workspace

from conftest import raw_path

USER = {"display_name": "Dev", "username": "dev", "account_id": "1:2", "type": "user"}


@pytest.mark.asyncio
async def test_get_user_defaults_to_authenticated_user(make_client):
    client, seen = make_client({"/user": USER, "/users/%7Bu-1%7D": {**USER, "display_name": "Other"}})

    me = await workspace.get_user(client, {})
    other = await workspace.get_user(client, {"username": "{u-1}"})

    assert [raw_path(r) for r in seen] == ["/user", "/users/%7Bu-1%7D"]
    assert me.text.startswith("User: Dev (@dev)")
    assert other.text.startswith("User: Other (@dev)")


@pytest.mark.asyncio
async def test_get_current_user(make_client):
    client, _ = make_client({"/user": USER})
    result = await workspace.get_current_user(client, {})
    assert result.text.startswith("Current User: Dev (@dev)")
    assert "Location: Not specified" in result.text


@pytest.mark.asyncio
async def test_list_workspaces_and_get_workspace(make_client):
    client, _ = make_client(
        {
            "/workspaces": {"size": 1, "values": [{"slug": "acme", "name": "Acme", "type": "workspace"}]},
            "/workspaces/acme": {"slug": "acme", "name": "Acme", "type": "workspace", "uuid": "{w}"},
        }
    )

    listing = await workspace.list_workspaces(client, {})
    detail = await workspace.get_workspace(client, {"workspace": "acme"})

    assert "- acme (Acme)" in listing.text
    assert detail.text.startswith("Workspace: Acme (acme)")
    assert "UUID: {w}" in detail.text
