"""
Tests for the plan endpoints.
"""
from app.db.models import PantryItemModel


def generate(client, user_id, **body):
    return client.post(f"/plans/{user_id}/generate", json=body or None)


def test_generate_accepts_and_finalizes(client, make_user, plan_service):
    user_id = make_user()

    response = generate(client, user_id, days=2, startDate="2024-03-11")
    assert response.status_code == 202
    data = response.json()
    assert data["state"] == "PENDING"
    assert data["perPlanCap"] == 30
    assert data["remainingBudget"] == 150

    # Background tasks have run by the time TestClient returns
    plan = client.get(f"/plans/{data['planId']}").json()
    assert plan["state"] == "FINALIZED"
    assert plan["userId"] == user_id
    assert plan["week"] == {"start": "2024-03-11", "end": "2024-03-12"}
    assert [d["date"] for d in plan["dias"]] == ["2024-03-11", "2024-03-12"]
    assert [m["mealSlot"] for m in plan["dias"][0]["meals"]] == ["breakfast", "lunch", "dinner"]
    assert plan["dias"][0]["meals"][0]["missingIngredients"][0] == {
        "nombre": "tomate", "cantidad": 2, "unidad": "kg"
    }
    assert plan_service.budget.points_used_today > 0


def test_generate_defaults_to_a_week_from_today(client, make_user):
    response = client.post(f"/plans/{make_user()}/generate")
    assert response.status_code == 202

    plan = client.get(f"/plans/{response.json()['planId']}").json()
    assert plan["week"] == {"start": "2024-03-04", "end": "2024-03-10"}
    assert len(plan["dias"]) == 7


def test_generate_unknown_user(client):
    assert generate(client, 999).status_code == 404


def test_generate_rejected_when_budget_low(client, make_user, plan_service):
    plan_service.budget.points_used_today = 120
    response = generate(client, make_user())
    assert response.status_code == 429


def test_generate_invalid_input(client, make_user):
    user_id = make_user()
    assert client.post("/plans/abc/generate").status_code == 400
    assert generate(client, user_id, days=0).status_code == 400
    assert generate(client, user_id, days=15).status_code == 400
    assert generate(client, user_id, startDate="not-a-date").status_code == 400


def test_cancelled_plan_is_visible(client, make_user, fake_catalog):
    fake_catalog.result_limit = 1
    plan_id = generate(client, make_user(), days=1).json()["planId"]

    plan = client.get(f"/plans/{plan_id}").json()
    assert plan["state"] == "CANCELLED"
    assert plan["dias"] == []
    assert plan["lista_compras"] == []


def test_get_unknown_plan(client):
    assert client.get("/plans/424242").status_code == 404
    assert client.get("/plans/424242/lista-compras").status_code == 404


def test_shopping_list(client, make_user, pantry_item):
    user_id = make_user(pantry=[pantry_item("leche", 10, "l")])
    plan_id = generate(client, user_id, days=1).json()["planId"]

    response = client.get(f"/plans/{plan_id}/lista-compras")
    assert response.status_code == 200
    assert response.json() == {
        "planId": plan_id,
        "lista_compras": [
            {"nombre": "tomate", "cantidad": 6, "unidad": "kg", "categoria": "vegetales", "comprado": False},
        ],
    }


def test_purchase_updates_list_and_pantry(client, make_user, session_factory):
    user_id = make_user()
    plan_id = generate(client, user_id, days=1).json()["planId"]

    response = client.patch(
        f"/plans/{plan_id}/lista-compras",
        json={"items": [
            {"nombre": " LECHE ", "comprado": True},
            {"nombre": "tomate", "comprado": False},
            {"nombre": "azafrán", "comprado": True},
        ]},
    )
    assert response.status_code == 200
    assert response.json() == {"updatedItems": 2, "addedToPantry": 1, "notFound": ["azafrán"]}

    items = {i["nombre"]: i for i in client.get(f"/plans/{plan_id}/lista-compras").json()["lista_compras"]}
    assert items["leche"]["comprado"] is True
    assert items["tomate"]["comprado"] is False

    session = session_factory()
    try:
        pantry = session.query(PantryItemModel).filter(PantryItemModel.user_id == user_id).all()
        assert len(pantry) == 1
        assert pantry[0].name == "leche"
        assert pantry[0].quantity == 3
        assert pantry[0].category == "lácteos"
        assert pantry[0].storage_location == "desconocido"
    finally:
        session.close()


def test_purchase_requires_items(client, make_user):
    plan_id = generate(client, make_user(), days=1).json()["planId"]
    assert client.patch(f"/plans/{plan_id}/lista-compras", json={"items": []}).status_code == 400
    assert client.patch(f"/plans/{plan_id}/lista-compras", json={}).status_code == 400


def test_purchase_on_unknown_plan(client):
    response = client.patch("/plans/424242/lista-compras", json={"items": [{"nombre": "leche", "comprado": True}]})
    assert response.status_code == 404


def test_health_reports_budget_and_cache(client):
    data = client.get("/health").json()
    assert data["status"] == "healthy"
    assert data["budget"]["daily_limit"] == 150
    assert data["cache"] == {"search_entries": 0, "detail_entries": 0}


def test_plan_admitted_at_cost_threshold_finalizes(client, make_user, plan_service):
    # A cold 7-day plan costs 8.5 + 12 for the searches and 21 for details
    plan_service.budget.points_used_today = 150 - 41.5

    response = generate(client, make_user())
    assert response.status_code == 202
    assert response.json()["estimatedPoints"] == 41.5

    plan = client.get(f"/plans/{response.json()['planId']}").json()
    assert plan["state"] == "FINALIZED"
    assert plan_service.budget.remaining == 0


def test_generate_rejected_when_plan_cost_exceeds_remaining(client, make_user, plan_service):
    # Inside the per-plan cap but short of a 7-day plan's cost
    plan_service.budget.points_used_today = 109
    assert generate(client, make_user()).status_code == 429
    assert generate(client, make_user(name="Luis"), days=1).status_code == 202
