from uuid import uuid4

import pytest
from httpx import AsyncClient


async def register_user(client: AsyncClient, email: str, monthly_budget: float = 0.0) -> str:
    response = await client.post(
        "/auth/register",
        json={
            "name": email.split("@")[0],
            "email": email,
            "password": "testpass123",
            "monthly_budget": monthly_budget,
        },
    )
    assert response.status_code == 201
    return response.json()["token"]["access_token"]


async def create_expense(
    client: AsyncClient,
    token: str,
    amount: float,
    category: str,
    description: str,
    date: str | None = None,
    tags: list[str] | None = None,
) -> dict:
    payload: dict = {"amount": amount, "category": category, "description": description}
    if date is not None:
        payload["date"] = date
    if tags is not None:
        payload["tags"] = tags
    response = await client.post(
        "/expenses",
        headers={"Authorization": f"Bearer {token}"},
        json=payload,
    )
    assert response.status_code == 201
    return response.json()["expense"]


@pytest.mark.asyncio
async def test_expense_endpoints_require_auth(client: AsyncClient) -> None:
    assert (await client.get("/expenses")).status_code == 401
    assert (await client.get("/expenses/stats")).status_code == 401
    assert (await client.get("/expenses/dashboard")).status_code == 401
    assert (
        await client.post(
            "/expenses",
            json={"amount": 5, "category": "Food", "description": "Lunch"},
        )
    ).status_code == 401
    assert (await client.put(f"/expenses/{uuid4()}", json={"amount": 5})).status_code == 401
    assert (await client.delete(f"/expenses/{uuid4()}")).status_code == 401


@pytest.mark.asyncio
async def test_create_expense_defaults_date_and_tags(client: AsyncClient) -> None:
    token = await register_user(client, "create@example.com")
    response = await client.post(
        "/expenses",
        headers={"Authorization": f"Bearer {token}"},
        json={"amount": 12.75, "category": "Food", "description": "  Burrito bowl  "},
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["message"] == "Expense added successfully"
    expense = payload["expense"]
    assert expense["amount"] == 12.75
    assert expense["category"] == "Food"
    assert expense["description"] == "Burrito bowl"
    assert expense["tags"] == []
    assert expense["date"]


@pytest.mark.asyncio
async def test_create_expense_keeps_explicit_date_and_tags(client: AsyncClient) -> None:
    token = await register_user(client, "dated@example.com")
    expense = await create_expense(
        client,
        token,
        amount=60,
        category="Travel",
        description="Train tickets",
        date="2024-05-02T08:30:00Z",
        tags=["work", "trip"],
    )
    assert expense["date"] == "2024-05-02T08:30:00"
    assert expense["tags"] == ["work", "trip"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"amount": 0, "category": "Food", "description": "Free lunch"},
        {"amount": -3, "category": "Food", "description": "Refund"},
        {"amount": 10, "category": "Groceries", "description": "Unknown category"},
        {"amount": 10, "category": "Food", "description": ""},
        {"amount": 10, "category": "Food", "description": "   "},
        {"amount": 10, "category": "Food", "description": "x" * 201},
        {"amount": 10, "category": "Food", "description": "Bad date", "date": "yesterday"},
    ],
)
async def test_create_expense_validation(client: AsyncClient, payload: dict) -> None:
    token = await register_user(client, "validation@example.com")
    response = await client.post(
        "/expenses",
        headers={"Authorization": f"Bearer {token}"},
        json=payload,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_expenses_is_owner_scoped_and_paginated(client: AsyncClient) -> None:
    token = await register_user(client, "lister@example.com")
    other_token = await register_user(client, "other.lister@example.com")
    for day in range(1, 6):
        await create_expense(
            client,
            token,
            amount=day * 10,
            category="Food",
            description=f"Meal {day}",
            date=f"2024-03-0{day}",
        )
    await create_expense(
        client,
        other_token,
        amount=999,
        category="Food",
        description="Someone else's meal",
        date="2024-03-03",
    )

    headers = {"Authorization": f"Bearer {token}"}
    first_page = await client.get("/expenses?limit=2", headers=headers)
    assert first_page.status_code == 200
    data = first_page.json()
    assert data["total"] == 5
    assert data["total_pages"] == 3
    assert data["current_page"] == 1
    assert [item["description"] for item in data["expenses"]] == ["Meal 5", "Meal 4"]

    last_page = await client.get("/expenses?limit=2&page=3", headers=headers)
    assert [item["description"] for item in last_page.json()["expenses"]] == ["Meal 1"]

    beyond = await client.get("/expenses?limit=2&page=9", headers=headers)
    assert beyond.json()["expenses"] == []


@pytest.mark.asyncio
async def test_list_expenses_filters(client: AsyncClient) -> None:
    token = await register_user(client, "filters@example.com")
    await create_expense(client, token, 25, "Food", "Pizza night", date="2024-01-05")
    await create_expense(client, token, 80, "Bills", "Electricity", date="2024-01-20")
    await create_expense(client, token, 15, "Transportation", "Bus pass", date="2024-02-01")
    headers = {"Authorization": f"Bearer {token}"}

    by_category = await client.get("/expenses?category=Bills", headers=headers)
    assert [item["description"] for item in by_category.json()["expenses"]] == ["Electricity"]

    by_range = await client.get(
        "/expenses?startDate=2024-01-05&endDate=2024-01-20",
        headers=headers,
    )
    assert by_range.json()["total"] == 2

    by_text = await client.get("/expenses?search=PIZZA", headers=headers)
    assert [item["description"] for item in by_text.json()["expenses"]] == ["Pizza night"]

    by_category_text = await client.get("/expenses?search=transport", headers=headers)
    assert [item["description"] for item in by_category_text.json()["expenses"]] == ["Bus pass"]

    bad_category = await client.get("/expenses?category=Groceries", headers=headers)
    assert bad_category.status_code == 422

    bad_limit = await client.get("/expenses?limit=101", headers=headers)
    assert bad_limit.status_code == 422

    inverted = await client.get(
        "/expenses?startDate=2024-02-01&endDate=2024-01-01",
        headers=headers,
    )
    assert inverted.status_code == 422


@pytest.mark.asyncio
async def test_update_expense_applies_partial_changes(client: AsyncClient) -> None:
    token = await register_user(client, "updater@example.com")
    expense = await create_expense(client, token, 40, "Shopping", "Shoes", date="2024-04-04")
    headers = {"Authorization": f"Bearer {token}"}

    update_res = await client.put(
        f"/expenses/{expense['id']}",
        headers=headers,
        json={"amount": 55.5, "category": "Other"},
    )
    assert update_res.status_code == 200
    payload = update_res.json()
    assert payload["message"] == "Expense updated successfully"
    assert payload["expense"]["amount"] == 55.5
    assert payload["expense"]["category"] == "Other"
    assert payload["expense"]["description"] == "Shoes"
    assert payload["expense"]["date"] == "2024-04-04T00:00:00"

    invalid = await client.put(
        f"/expenses/{expense['id']}",
        headers=headers,
        json={"amount": 0},
    )
    assert invalid.status_code == 422


@pytest.mark.asyncio
async def test_update_and_delete_are_owner_scoped(client: AsyncClient) -> None:
    owner_token = await register_user(client, "owner@example.com")
    intruder_token = await register_user(client, "intruder@example.com")
    expense = await create_expense(client, owner_token, 20, "Food", "Sandwich")
    intruder_headers = {"Authorization": f"Bearer {intruder_token}"}

    update_res = await client.put(
        f"/expenses/{expense['id']}",
        headers=intruder_headers,
        json={"amount": 1},
    )
    assert update_res.status_code == 404

    delete_res = await client.delete(f"/expenses/{expense['id']}", headers=intruder_headers)
    assert delete_res.status_code == 404

    owner_list = await client.get(
        "/expenses",
        headers={"Authorization": f"Bearer {owner_token}"},
    )
    assert owner_list.json()["expenses"][0]["amount"] == 20.0


@pytest.mark.asyncio
async def test_delete_expense(client: AsyncClient) -> None:
    token = await register_user(client, "deleter@example.com")
    expense = await create_expense(client, token, 9.99, "Entertainment", "Movie")
    headers = {"Authorization": f"Bearer {token}"}

    delete_res = await client.delete(f"/expenses/{expense['id']}", headers=headers)
    assert delete_res.status_code == 200
    assert delete_res.json() == {
        "expense_id": expense["id"],
        "message": "Expense deleted successfully",
    }

    again = await client.delete(f"/expenses/{expense['id']}", headers=headers)
    assert again.status_code == 404

    malformed = await client.delete("/expenses/not-a-uuid", headers=headers)
    assert malformed.status_code == 422
