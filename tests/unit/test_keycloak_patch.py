from admin_gateway.core.keycloak import RealmPatch, RolePatch


def test_realm_patch_keeps_known_fields():
    patch = RealmPatch.from_updates({"displayName": "Demo", "enabled": False, "accessTokenLifespan": 600})
    assert patch.values == {"displayName": "Demo", "enabled": False, "accessTokenLifespan": 600}
    assert patch.ignored == ()
    assert patch


def test_realm_patch_ignores_unknown_keys():
    patch = RealmPatch.from_updates({"dispalyName": "typo", "displayName": "Demo"})
    assert patch.values == {"displayName": "Demo"}
    assert patch.ignored == ("dispalyName",)


def test_realm_patch_ignores_mistyped_values():
    patch = RealmPatch.from_updates({"enabled": "yes", "accessTokenLifespan": True, "failureFactor": "3"})
    assert patch.values == {}
    assert set(patch.ignored) == {"enabled", "accessTokenLifespan", "failureFactor"}
    assert not patch


def test_none_clears_a_field():
    representation = {"realm": "demo", "displayName": "Old"}
    RealmPatch.from_updates({"displayName": None}).apply(representation)
    assert representation == {"realm": "demo", "displayName": None}


def test_apply_overwrites_in_place():
    role = {"id": "1", "name": "editor", "description": "old"}
    result = RolePatch.from_updates({"description": "new", "composite": True}).apply(role)
    assert result is role
    assert role == {"id": "1", "name": "editor", "description": "new"}


def test_empty_and_missing_update_maps():
    assert RolePatch.from_updates(None).values == {}
    assert RolePatch.from_updates({}).values == {}
