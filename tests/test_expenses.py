"""Tests for expense endpoints."""
from quarry_ledger.models.expense import Expense


def record(client, **overrides):
    payload = {
        "expense_date": "2024-03-10",
        "category": "FUEL",
        "description": "Diesel for loader",
        "amount": 2500,
        "ghat_location": "North ghat",
    }
    payload.update(overrides)
    return client.post("/api/v1/expenses/", json=payload)


def test_create_and_get_expense(auth_client):
    created = record(auth_client)
    fetched = auth_client.get(f"/api/v1/expenses/{created.json()['id']}")

    assert created.status_code == 201
    assert created.json()["created_by"] == "clerk"
    assert fetched.json()["amount"] == 2500


def test_create_expense_validation_error(auth_client):
    response = record(auth_client, amount="")

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_list_expenses_with_filters(auth_client):
    record(auth_client)
    record(auth_client, category="LABOR", expense_date="2024-03-12")

    response = auth_client.get("/api/v1/expenses/", params={"category": "LABOR"})

    assert [e["category"] for e in response.json()] == ["LABOR"]


def test_categories_and_reports(auth_client):
    record(auth_client, amount=100)
    record(auth_client, amount=300, expense_date="2024-03-20")

    categories = auth_client.get("/api/v1/expenses/categories")
    daily = auth_client.get("/api/v1/expenses/reports/daily", params={"day": "2024-03-10"})
    monthly = auth_client.get("/api/v1/expenses/reports/monthly", params={"year": 2024, "month": 3})
    summary = auth_client.get("/api/v1/expenses/summary")

    assert "FUEL" in [c["name"] for c in categories.json()]
    assert daily.json()["total_amount"] == 100
    assert monthly.json()["monthly_total"] == 400
    assert monthly.json()["average_daily"] == 200
    assert summary.status_code == 200


def test_monthly_report_rejects_bad_month(auth_client):
    response = auth_client.get("/api/v1/expenses/reports/monthly", params={"year": 2024, "month": 13})

    assert response.status_code == 422


def test_clerk_cannot_update_admin_expense(auth_client, store, admin_user):
    expense = Expense(category="RENT", description="Yard rent", amount=5000, created_by=admin_user.username)
    store.expenses.expenses[expense.id] = expense

    response = auth_client.put(f"/api/v1/expenses/{expense.id}", json={"amount": 1})

    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


def test_clerk_cannot_delete(auth_client):
    expense = record(auth_client).json()

    response = auth_client.delete(f"/api/v1/expenses/{expense['id']}")

    assert response.status_code == 403


def test_admin_updates_and_deletes(admin_client):
    expense = record(admin_client).json()

    updated = admin_client.put(f"/api/v1/expenses/{expense['id']}", json={"status": "PENDING"})
    deleted = admin_client.delete(f"/api/v1/expenses/{expense['id']}")
    missing = admin_client.get(f"/api/v1/expenses/{expense['id']}")

    assert updated.json()["status"] == "PENDING"
    assert deleted.status_code == 204
    assert missing.status_code == 404
