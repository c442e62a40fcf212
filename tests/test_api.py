import json
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from suby.db.dal import Database
from suby.main import create_app
from suby.services.rates.base import RateSource


@pytest.fixture
def netflix(client):
    resp = client.post(
        "/subscriptions/",
        json={
            "name": " Netflix ",
            "price": 15.49,
            "currency": "usd",
            "billing_cycle": "Monthly",
            "start_date": "2024-01-31",
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def yearly_plan(client):
    resp = client.post(
        "/subscriptions/",
        json={
            "name": "Cloud Backup",
            "price": 120,
            "billing_cycle": "Yearly",
            "category": "Utilities",
            "start_date": "2024-03-15",
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------- subscriptions -----------------
def test_create_normalises_and_fills_display_defaults(netflix):
    assert netflix["name"] == "Netflix"
    assert netflix["currency"] == "USD"
    assert netflix["category"] == "Entertainment"
    assert netflix["color_hex"] == "#FF2D55"
    assert netflix["icon_name"] == "tv.fill"
    assert netflix["monthly_cost"] == 15.49


def test_list_and_filter_by_category(client, netflix, yearly_plan):
    all_subs = client.get("/subscriptions/").json()
    assert [s["name"] for s in all_subs] == ["Netflix", "Cloud Backup"]

    utilities = client.get("/subscriptions/", params={"category": "Utilities"}).json()
    assert [s["id"] for s in utilities] == [yearly_plan["id"]]
    assert utilities[0]["monthly_cost"] == 10.0


def test_patch_replaces_stored_record(client, netflix):
    resp = client.patch(f"/subscriptions/{netflix['id']}", json={"price": 17.99})
    assert resp.status_code == 200
    assert resp.json()["price"] == 17.99
    assert resp.json()["name"] == "Netflix"

    fetched = client.get(f"/subscriptions/{netflix['id']}").json()
    assert fetched["price"] == 17.99


def test_patch_without_fields_is_rejected(client, netflix):
    resp = client.patch(f"/subscriptions/{netflix['id']}", json={})
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


def test_unknown_subscription_is_404(client):
    resp = client.get(f"/subscriptions/{uuid4()}")
    assert resp.status_code == 404
    assert resp.json() == {"error": "not_found", "detail": "subscription not found"}


def test_invalid_payloads_are_422(client):
    for body in (
        {"name": "Free", "price": 0},
        {"name": "   ", "price": 3},
        {"name": "Bad", "price": 3, "currency": "dollars"},
        {"name": "Bad", "price": 3, "billing_cycle": "Weekly"},
        {"name": "Bad", "price": 3, "color_hex": "red"},
    ):
        resp = client.post("/subscriptions/", json=body)
        assert resp.status_code == 422, body


def test_duplicate_id_conflicts(client):
    sub_id = str(uuid4())
    body = {"id": sub_id, "name": "Gym", "price": 40, "category": "Health & Fitness"}
    assert client.post("/subscriptions/", json=body).status_code == 201
    resp = client.post("/subscriptions/", json=body)
    assert resp.status_code == 409


def test_delete_one_then_reset_all(client, netflix, yearly_plan):
    assert client.delete(f"/subscriptions/{netflix['id']}").status_code == 204
    assert client.delete(f"/subscriptions/{netflix['id']}").status_code == 404

    resp = client.delete("/subscriptions/")
    assert resp.json() == {"status": "deleted", "deleted": 1}
    assert client.get("/subscriptions/").json() == []


def test_form_options(client):
    body = client.get("/subscriptions/options").json()

    assert body["billing_cycles"] == ["Monthly", "Yearly"]
    assert body["currencies"] == ["USD", "SGD", "EUR", "GBP"]
    assert len(body["color_palette"]) == 9
    assert all(c.startswith("#") for c in body["color_palette"])
    entertainment = body["categories"][0]
    assert entertainment == {
        "category": "Entertainment",
        "icon": "tv.fill",
        "color_hex": "#FF2D55",
    }
    assert len(body["categories"]) == 8


# ---------------- calendar -----------------
def test_month_view_clamps_and_totals(client, netflix):
    resp = client.get("/calendar/2024/2", params={"today": "2024-02-10"})
    assert resp.status_code == 200
    body = resp.json()

    assert body["leading_blanks"] == 4
    assert len(body["days"]) == 29
    assert body["total"] == 15.49
    assert body["remaining"] == 15.49
    assert body["active_count"] == 1
    assert [p["due_date"] for p in body["payments"]] == ["2024-02-29"]
    assert body["payments"][0]["days_until"] == 19
    due_days = [d["date"] for d in body["days"] if d["subscription_ids"]]
    assert due_days == ["2024-02-29"]


def test_month_view_other_month_has_nothing_remaining(client, netflix):
    body = client.get("/calendar/2024/4", params={"today": "2024-02-10"}).json()

    assert body["total"] == 15.49
    assert body["remaining"] == 0.0
    assert body["payments"][0]["due_date"] == "2024-04-30"


def test_month_view_in_display_currency(client, netflix):
    body = client.get(
        "/calendar/2024/2", params={"today": "2024-02-10", "currency": "sgd"}
    ).json()

    assert body["currency"] == "SGD"
    # rates are still the bare default table, so SGD converts at 1.0
    assert body["total"] == 15.49


def test_month_view_before_start_is_empty(client, netflix):
    body = client.get("/calendar/2023/12").json()

    assert body["total"] == 0.0
    assert body["payments"] == []


def test_day_view(client, netflix, yearly_plan):
    body = client.get("/calendar/day/2024-02-29").json()
    assert body["total"] == 15.49
    assert [s["name"] for s in body["subscriptions"]] == ["Netflix"]

    march = client.get("/calendar/day/2024-03-15").json()
    assert march["total"] == 120.0


def test_invalid_month_is_422(client):
    resp = client.get("/calendar/2024/13")
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


# ---------------- analytics -----------------
def test_summary_uses_monthly_equivalent(client, netflix, yearly_plan):
    body = client.get("/analytics/summary").json()

    assert body == {"currency": "USD", "monthly": 25.49, "annual": 305.88, "count": 2}


def test_categories_breakdown(client, netflix, yearly_plan):
    items = client.get("/analytics/categories").json()

    assert [i["category"] for i in items] == ["Entertainment", "Utilities"]
    assert [i["amount"] for i in items] == [15.49, 10.0]
    assert items[0]["percent"] == 60.77


def test_billed_counts_each_charge(client, netflix, yearly_plan):
    body = client.get("/analytics/billed", params={"year": 2024}).json()

    # 12 x 15.49 plus one 120 yearly charge in March
    assert body == {"year": 2024, "currency": "USD", "total": 305.88}


# ---------------- rates -----------------
def test_rates_start_from_default_table(client):
    body = client.get("/rates/").json()

    assert body["base_currency"] == "USD"
    assert body["rates"] == {"USD": 1.0}
    assert body["last_updated"] is None


def test_refresh_then_convert_and_persist(client, settings):
    resp = client.post("/rates/refresh", params={"wait": "true"})
    assert resp.status_code == 202
    assert resp.json() == {"status": "ok", "rate_count": 4, "error": None}

    body = client.get("/rates/").json()
    assert body["rates"]["SGD"] == 1.35
    assert body["last_updated"] is not None

    conv = client.get(
        "/rates/convert", params={"amount": 100, "from_currency": "usd", "to_currency": "SGD"}
    ).json()
    assert conv["converted_amount"] == 135.0
    assert conv["rate"] == pytest.approx(1.35)

    cached = Database(settings.db_path).get_metadata(settings.rates_cache_key)
    assert json.loads(cached)["GBP"] == 0.79

    # a fresh process starts from the persisted snapshot
    with TestClient(create_app(settings_override=settings)) as second:
        rates = second.get("/rates/").json()
        assert rates["rates"]["SGD"] == 1.35
        assert rates["last_updated"] is None


def test_refresh_reports_unexpected_source_failure(client):
    class DroppedConnection(RateSource):
        name = "dropped"

        def fetch_rates(self, base_currency):
            raise ConnectionResetError("connection reset by peer")

    client.app.state.rate_provider._source = DroppedConnection()

    resp = client.post("/rates/refresh", params={"wait": "true"})

    assert resp.status_code == 202
    assert resp.json()["status"] == "failed"
    assert client.get("/rates/").json()["rates"] == {"USD": 1.0}


def test_refresh_without_wait_is_scheduled(client):
    resp = client.post("/rates/refresh")
    assert resp.status_code == 202
    assert resp.json()["status"] == "scheduled"


def test_converted_totals_after_refresh(client, netflix):
    client.post("/rates/refresh", params={"wait": "true"})

    body = client.get(
        "/calendar/2024/2", params={"today": "2024-02-10", "currency": "SGD"}
    ).json()
    assert body["total"] == 20.91
    assert body["payments"][0]["converted_amount"] == 20.91
    assert body["payments"][0]["amount"] == 15.49


# ---------------- misc -----------------
def test_health_and_request_id(client):
    resp = client.get("/health", headers={"x-request-id": "abc-123"})

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["subscriptions"] == 0
    assert resp.json()["rates_last_updated"] is None
    assert resp.headers["x-request-id"] == "abc-123"


def test_health_counts_subscriptions(client, netflix, yearly_plan):
    assert client.get("/health").json()["subscriptions"] == 2


def test_unknown_route_has_error_envelope(client):
    resp = client.get("/nope")

    assert resp.status_code == 404
    assert resp.json() == {"error": "not_found", "detail": "No route for GET /nope"}
