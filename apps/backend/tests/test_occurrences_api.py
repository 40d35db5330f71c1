from datetime import date

from finflow import models

EXPENSE = models.TransactionKind.EXPENSE


def _create_template(client, **overrides):
    payload = {
        "description": "Rent",
        "value": 1200,
        "recurrence_type": "MONTHLY",
        "start_date": "2024-01-10",
    }
    payload.update(overrides)
    r = client.post("/api/fixed-expenses", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def _list(client, month, year, kind="expense", **params):
    r = client.get(f"/api/{kind}", params={"month": month, "year": year, **params})
    assert r.status_code == 200, r.text
    return r.json()


def test_empty_month_returns_empty_list(client):
    assert _list(client, 5, 2024) == []


def test_pending_entry_for_each_month(client, categories):
    template = _create_template(client, category_id=categories["Housing"].id)
    for month in range(1, 13):
        items = _list(client, month, 2024)
        assert len(items) == 1
        entry = items[0]
        assert entry["pending"] is True
        assert entry["id"] == f"pending-{template['id']}-{month}-2024"
        assert entry["date"] == f"2024-{month:02d}-10"
        assert entry["category_name"] == "Housing"
        assert entry["linked_template_id"] == template["id"]
    assert _list(client, 12, 2023) == []


def test_listing_is_idempotent(client, make_row):
    _create_template(client)
    make_row(EXPENSE, description="Coffee", value=4.5, date=date(2024, 3, 3))
    first = _list(client, 3, 2024)
    second = _list(client, 3, 2024)
    assert first == second
    assert [e["pending"] for e in first] == [False, True]


def test_real_rows_first_newest_first(client, make_row):
    _create_template(client)
    older = make_row(EXPENSE, description="Coffee", value=4.5, date=date(2024, 3, 3))
    newer = make_row(EXPENSE, description="Books", value=30, date=date(2024, 3, 20))
    items = _list(client, 3, 2024)
    assert [e["id"] for e in items[:2]] == [newer.id, older.id]
    assert items[2]["pending"] is True


def test_yearly_template_only_in_its_month(client):
    _create_template(client, description="Insurance", value=900, recurrence_type="YEARLY", start_date="2024-03-15")
    for year in (2024, 2025):
        for month in range(1, 13):
            items = _list(client, month, year)
            if month == 3:
                assert len(items) == 1 and items[0]["date"] == f"{year}-03-15"
            else:
                assert items == []


def test_end_date_exclusivity(client):
    _create_template(client, end_date="2024-06-15")
    assert len(_list(client, 6, 2024)) == 1
    assert _list(client, 7, 2024) == []


def test_day_clamped_in_short_month(client):
    _create_template(client, description="Gym", value=50, start_date="2024-01-31")
    items = _list(client, 2, 2024)
    assert items[0]["date"] == "2024-02-29"
    assert items[0]["id"].startswith("pending-")


def test_promotion_is_idempotent(client):
    template = _create_template(client)
    pending = _list(client, 3, 2024)[0]
    assert pending["pending"] is True

    body = {
        "description": "Rent",
        "value": 1200,
        "date": pending["date"],
        "linked_template_id": template["id"],
    }
    r = client.post("/api/expense", json=body)
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["linked_template_id"] == template["id"]
    assert created["is_fixed"] is False

    items = _list(client, 3, 2024)
    assert len(items) == 1
    assert items[0]["id"] == created["id"]
    assert items[0]["pending"] is False

    # Promoting the same month again hands back the stored row
    r = client.post("/api/expense", json={**body, "date": "2024-03-25"})
    assert r.status_code == 200, r.text
    assert r.json()["id"] == created["id"]
    assert len(_list(client, 3, 2024)) == 1


def test_legacy_row_suppresses_pending_and_gets_linked(client, categories, make_row, db_session):
    housing = categories["Housing"].id
    template = _create_template(client, category_id=housing)
    legacy = make_row(EXPENSE, description="Rent", value=1200, category_id=housing, date=date(2024, 2, 10))

    items = _list(client, 2, 2024)
    assert len(items) == 1
    assert items[0]["id"] == legacy.id
    assert items[0]["pending"] is False

    db_session.refresh(legacy)
    assert legacy.linked_template_id == template["id"]
    # The repaired link keeps the month covered
    assert len(_list(client, 2, 2024)) == 1


def test_unrelated_row_does_not_cover_template(client, make_row):
    _create_template(client)
    make_row(EXPENSE, description="Rent", value=1100, date=date(2024, 2, 10))
    items = _list(client, 2, 2024)
    assert [e["pending"] for e in items] == [False, True]


def test_fixed_only_keeps_linked_rows_and_pending(client, make_row):
    first = _create_template(client)
    _create_template(client, description="Internet", value=80, start_date="2024-01-05")
    linked = make_row(EXPENSE, description="Rent", value=1200, date=date(2024, 4, 10), linked_template_id=first["id"])
    make_row(EXPENSE, description="Coffee", value=4.5, date=date(2024, 4, 3))

    items = _list(client, 4, 2024, fixed="true")
    assert [e["id"] for e in items if not e["pending"]] == [linked.id]
    assert [e["description"] for e in items if e["pending"]] == ["Internet"]


def test_no_period_lists_stored_rows_without_projection(client, make_row):
    _create_template(client)
    row = make_row(EXPENSE, description="Coffee", value=4.5, date=date(2024, 4, 3))
    r = client.get("/api/expense")
    assert r.status_code == 200
    assert [e["id"] for e in r.json()] == [row.id]


def test_kinds_are_separate(client):
    _create_template(client)
    assert _list(client, 3, 2024, kind="income") == []


def test_month_without_year_is_rejected(client):
    r = client.get("/api/expense", params={"month": 3})
    assert r.status_code == 400
    assert "together" in r.json()["detail"]


def test_out_of_range_period_is_rejected(client):
    assert client.get("/api/expense", params={"month": 13, "year": 2024}).status_code == 422
    assert client.get("/api/expense", params={"month": 1, "year": 1800}).status_code == 422


def test_one_off_with_foreign_category_is_rejected(client, db_session):
    other = models.User(email="other@example.com", is_active=True)
    db_session.add(other)
    db_session.flush()
    foreign = models.Category(user_id=other.id, name="Theirs")
    db_session.add(foreign)
    db_session.commit()

    r = client.post(
        "/api/expense",
        json={"description": "Lunch", "value": 12, "date": "2024-03-02", "category_id": foreign.id},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Category not found"


def test_promotion_for_unknown_template_is_not_found(client):
    r = client.post(
        "/api/expense",
        json={"description": "Rent", "value": 1200, "date": "2024-03-10", "linked_template_id": 999},
    )
    assert r.status_code == 404


def test_invalid_date_is_rejected(client):
    r = client.post("/api/expense", json={"description": "x", "value": 1, "date": "2024-13-40"})
    assert r.status_code == 422


def test_promotion_requires_a_projected_month(client):
    template = _create_template(client, recurrence_type="YEARLY", start_date="2024-03-10", end_date="2026-03-10")
    body = {"description": "Rent", "value": 1200, "linked_template_id": template["id"]}

    for day in ("2024-07-10", "2024-02-10", "2027-03-10"):
        r = client.post("/api/expense", json={**body, "date": day})
        assert r.status_code == 400, day
        assert "has no occurrence" in r.json()["detail"]

    assert [e["pending"] for e in _list(client, 7, 2024)] == []
    r = client.post("/api/expense", json={**body, "date": "2025-03-10"})
    assert r.status_code == 201, r.text
