"""Tests for owner directory and deposit endpoints."""


def test_save_and_list_owners(auth_client):
    saved = auth_client.post(
        "/api/v1/owners/", json={"name": "Patil Carriers", "vehicle_number": "MH09", "is_partner": True}
    )
    partners = auth_client.get("/api/v1/owners/", params={"is_partner": True})

    assert saved.status_code == 200
    assert saved.json()["deposit_balance"] == 0
    assert [o["name"] for o in partners.json()] == ["Patil Carriers"]


def test_save_owner_requires_vehicle(auth_client):
    response = auth_client.post("/api/v1/owners/", json={"name": "Patil Carriers"})

    assert response.status_code == 400


def test_owner_by_name(auth_client, deposit_owner):
    found = auth_client.get(f"/api/v1/owners/by-name/{deposit_owner.name}")
    missing = auth_client.get("/api/v1/owners/by-name/Nobody")

    assert found.json()["deposit_balance"] == 300
    assert missing.status_code == 200
    assert missing.json() is None


def test_quote_rate(auth_client, partner_owner):
    response = auth_client.get(f"/api/v1/owners/by-name/{partner_owner.name}/rate")

    assert response.json() == {"owner_type": "partner", "rate": 1000, "applied_rate": 1000}


def test_deposit_add_deduct_and_history(auth_client, deposit_owner):
    owner_id = str(deposit_owner.id)

    added = auth_client.post(f"/api/v1/owners/{owner_id}/deposit/add", json={"amount": 200})
    deducted = auth_client.post(f"/api/v1/owners/{owner_id}/deposit/deduct", json={"amount": 1000})
    history = auth_client.get(f"/api/v1/owners/{owner_id}/deposit/transactions")
    reconcile = auth_client.get(f"/api/v1/owners/{owner_id}/deposit/reconcile")

    assert added.status_code == 201
    assert added.json()["new_balance"] == 500
    assert deducted.json()["amount"] == 500
    assert [t["type"] for t in history.json()] == ["deduct", "add"]
    assert reconcile.json()["stored_balance"] == 0


def test_deduct_from_empty_deposit(auth_client, partner_owner):
    response = auth_client.post(f"/api/v1/owners/{partner_owner.id}/deposit/deduct", json={"amount": 10})

    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient deposit balance"


def test_unknown_deposit_type(auth_client, deposit_owner):
    response = auth_client.post(f"/api/v1/owners/{deposit_owner.id}/deposit/set", json={"amount": 10})

    assert response.status_code == 422


def test_set_deposit_balance(auth_client, deposit_owner):
    response = auth_client.put(f"/api/v1/owners/{deposit_owner.id}/deposit", json={"amount": 1000})

    assert response.json()["type"] == "add"
    assert response.json()["amount"] == 700


def test_partner_toggle_and_deactivate(auth_client, deposit_owner):
    owner_id = str(deposit_owner.id)

    partner = auth_client.put(f"/api/v1/owners/{owner_id}/partner", json={"is_partner": True, "partner_rate": 950})
    removed = auth_client.delete(f"/api/v1/owners/{owner_id}")
    again = auth_client.put(f"/api/v1/owners/{owner_id}", json={"phone": "1"})

    assert partner.json()["partner_rate"] == 950
    assert removed.json()["is_active"] is False
    assert again.status_code == 404


def test_saving_deactivated_owner_reactivates(auth_client, deposit_owner):
    auth_client.delete(f"/api/v1/owners/{deposit_owner.id}")

    saved = auth_client.post(
        "/api/v1/owners/", json={"name": deposit_owner.name, "vehicle_number": "MH12ZZ0001"}
    )
    listed = auth_client.get("/api/v1/owners/")

    assert saved.json()["is_active"] is True
    assert saved.json()["deposit_balance"] == 300
    assert [o["name"] for o in listed.json()] == [deposit_owner.name]
