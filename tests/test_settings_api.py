from tests.conftest import auth_headers


def test_defaults_when_never_saved(client, employee):
    resp = client.get("/system/settings/", headers=auth_headers(employee))
    assert resp.status_code == 200
    data = resp.json()
    assert data["task_completion_base"] == 10
    assert data["complexity_multiplier"] == 1.5
    assert data["monthly_bonus"] == 50
    assert data["version"] == 0


def test_update_persists_and_bumps_version(client, admin):
    first = client.put("/system/settings/", json={"monthly_bonus": 80}, headers=auth_headers(admin)).json()
    assert first["monthly_bonus"] == 80
    assert first["task_completion_base"] == 10
    assert first["version"] == 1

    second = client.put("/system/settings/", json={"complexity_multiplier": 2.5}, headers=auth_headers(admin)).json()
    assert second["version"] == 2
    assert second["monthly_bonus"] == 80

    read = client.get("/system/settings/", headers=auth_headers(admin)).json()
    assert read["complexity_multiplier"] == 2.5


def test_only_admin_updates(client, manager):
    resp = client.put("/system/settings/", json={"monthly_bonus": 1}, headers=auth_headers(manager))
    assert resp.status_code == 403


def test_negative_values_rejected(client, admin):
    resp = client.put("/system/settings/", json={"task_completion_base": -5}, headers=auth_headers(admin))
    assert resp.status_code == 422


def test_initialize_is_idempotent(client, admin):
    first = client.post("/system/settings/initialize", headers=auth_headers(admin)).json()
    assert first["version"] == 1
    client.put("/system/settings/", json={"monthly_bonus": 5}, headers=auth_headers(admin))
    again = client.post("/system/settings/initialize", headers=auth_headers(admin)).json()
    assert again["monthly_bonus"] == 5
    assert again["version"] == 2
