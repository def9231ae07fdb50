"""
Integration Tests — Planning Book Endpoints

Tests:
- Time settings, periods and hierarchy
- Key figure registration, formula validation and dependency errors
- Version lifecycle, copy and history
- Bulk update, grid assembly and alert evaluation over HTTP
- Error envelope and caller identity
"""
import pytest
from fastapi.testclient import TestClient

API = "/api/v1/planning-book"


@pytest.fixture
def book(client: TestClient, user_headers):
    """Q1 2024 monthly horizon, DEMAND with Jan/Feb/Mar data and DEMAND_PLUS_10PCT."""
    setting = client.post(f"{API}/time-settings", headers=user_headers, json={
        "name": "Q1 2024",
        "type": "fixed",
        "start_date": "2024-01-01",
        "end_date": "2024-03-31",
        "time_hierarchy": {"month": True, "quarter": True},
    }).json()
    demand = client.post(f"{API}/key-figures", headers=user_headers, json={
        "code": "DEMAND",
        "name": "Demand",
        "type": "base",
        "source_table": "sales",
        "source_field": "qty",
        "aggregation": "sum",
    }).json()
    plus = client.post(f"{API}/key-figures", headers=user_headers, json={
        "code": "DEMAND_PLUS_10PCT",
        "name": "Demand +10%",
        "type": "calculated",
        "formula": "DEMAND * 1.1",
    }).json()
    version = client.post(f"{API}/versions", headers=user_headers, json={"name": "Baseline"}).json()
    resp = client.post(f"{API}/planning-data/bulk-update", headers=user_headers, json={
        "version_id": version["id"],
        "updates": [
            {"key_figure_id": demand["id"], "period": "2024-01", "period_type": "month", "value": 100},
            {"key_figure_id": demand["id"], "period": "2024-02", "period_type": "month", "value": 120},
            {"key_figure_id": demand["id"], "period": "2024-03", "period_type": "month", "value": 90},
        ],
    })
    assert resp.status_code == 200
    return {"setting": setting, "demand": demand, "plus": plus, "version": version}


class TestIdentityAndHealth:

    def test_missing_identity_header_returns_401(self, client: TestClient):
        resp = client.get(f"{API}/versions")
        assert resp.status_code == 401

    def test_health(self, client: TestClient):
        assert client.get("/health").json()["status"] == "healthy"

    def test_request_id_is_echoed(self, client: TestClient):
        resp = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"


class TestTimeSettings:

    def test_periods_endpoint(self, client: TestClient, user_headers, book):
        resp = client.get(
            f"{API}/periods",
            headers=user_headers,
            params={"time_setting_id": book["setting"]["id"], "level": "quarter"},
        )
        assert resp.status_code == 200
        assert resp.json() == [{"period": "2024-Q1", "type": "quarter", "label": "Q1 2024", "date": "2024-01-01"}]

    def test_disabled_level_returns_422(self, client: TestClient, user_headers, book):
        resp = client.get(
            f"{API}/periods",
            headers=user_headers,
            params={"time_setting_id": book["setting"]["id"], "level": "day"},
        )
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_HIERARCHY_LEVEL"

    def test_hierarchy_and_roll_forward(self, client: TestClient, user_headers, book):
        setting_id = book["setting"]["id"]
        hierarchy = client.get(f"{API}/time-settings/{setting_id}/hierarchy", headers=user_headers).json()
        assert hierarchy["levels"] == ["month", "quarter"]

        rolled = client.post(f"{API}/time-settings/{setting_id}/roll-forward", headers=user_headers).json()
        assert rolled["start_date"] == "2024-02-01"
        assert rolled["end_date"] == "2024-04-30"

    def test_rolling_setting_requires_rolling_fields(self, client: TestClient, user_headers):
        resp = client.post(f"{API}/time-settings", headers=user_headers, json={
            "name": "Broken",
            "type": "rolling",
            "start_date": "2024-01-01",
            "time_hierarchy": ["month"],
        })
        assert resp.status_code == 422


class TestKeyFigures:

    def test_duplicate_code_returns_409(self, client: TestClient, user_headers, book):
        resp = client.post(f"{API}/key-figures", headers=user_headers, json={
            "code": "DEMAND", "name": "Again", "type": "base",
        })
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "DUPLICATE_KEY_FIGURE_CODE"

    def test_unknown_reference_returns_422(self, client: TestClient, user_headers, book):
        resp = client.post(f"{API}/key-figures", headers=user_headers, json={
            "code": "COVER", "name": "Cover", "type": "calculated", "formula": "STOCK / DEMAND",
        })
        assert resp.status_code == 422
        assert resp.json()["error"]["context"]["missing"] == ["STOCK"]

    def test_validate_formula(self, client: TestClient, user_headers, book):
        resp = client.post(f"{API}/key-figures/validate-formula", headers=user_headers, json={
            "formula": "DEMAND * 2 +",
        })
        assert resp.status_code == 200
        assert resp.json()["is_valid"] is False

    def test_dependencies(self, client: TestClient, user_headers, book):
        resp = client.get(f"{API}/key-figures/{book['plus']['id']}/dependencies", headers=user_headers)
        assert resp.json()["evaluation_order"] == ["DEMAND", "DEMAND_PLUS_10PCT"]

    def test_referenced_key_figure_cannot_be_deleted(self, client: TestClient, user_headers, book):
        resp = client.delete(f"{API}/key-figures/{book['demand']['id']}", headers=user_headers)
        assert resp.status_code == 422


class TestGridAndData:

    def test_grid_scenario(self, client: TestClient, user_headers, book):
        resp = client.get(f"{API}/grid", headers=user_headers, params={
            "version_id": book["version"]["id"],
            "time_setting_id": book["setting"]["id"],
            "key_figure_ids": f"{book['demand']['id']},{book['plus']['id']}",
        })
        assert resp.status_code == 200
        grid = resp.json()
        assert [c["period"] for c in grid["columns"]] == ["2024-01", "2024-02", "2024-03"]
        demand_row, plus_row = grid["rows"]
        assert [c["value"] for c in demand_row["values"]] == [100, 120, 90]
        assert [round(c["value"], 6) for c in plus_row["values"]] == [110, 132, 99]
        assert plus_row["values"][0]["data_id"] is None

    def test_grid_rolls_months_into_quarter(self, client: TestClient, user_headers, book):
        resp = client.get(f"{API}/grid", headers=user_headers, params={
            "version_id": book["version"]["id"],
            "time_setting_id": book["setting"]["id"],
            "key_figure_ids": str(book["demand"]["id"]),
            "level": "quarter",
        })
        assert resp.json()["rows"][0]["values"][0]["value"] == 310

    def test_dashboard_grid_path_accepts_key_figures(self, client: TestClient, user_headers, book):
        params = {
            "version_id": book["version"]["id"],
            "time_setting_id": book["setting"]["id"],
        }
        comma = client.get(f"{API}/planning-data/grid", headers=user_headers, params={
            **params, "key_figures": f"{book['plus']['id']},{book['demand']['id']}",
        })
        assert comma.status_code == 200
        assert [r["key_figure_code"] for r in comma.json()["rows"]] == ["DEMAND_PLUS_10PCT", "DEMAND"]

        repeated = client.get(f"{API}/planning-data/grid", headers=user_headers, params={
            **params, "key_figures": [book["demand"]["id"]],
        })
        assert [c["value"] for c in repeated.json()["rows"][0]["values"]] == [100, 120, 90]

    def test_bad_key_figure_id_list_returns_400(self, client: TestClient, user_headers, book):
        resp = client.get(f"{API}/grid", headers=user_headers, params={
            "version_id": book["version"]["id"],
            "time_setting_id": book["setting"]["id"],
            "key_figure_ids": "1,abc",
        })
        assert resp.status_code == 400

    def test_bulk_update_on_calculated_key_figure_is_rejected(self, client: TestClient, user_headers, book):
        resp = client.post(f"{API}/planning-data/bulk-update", headers=user_headers, json={
            "version_id": book["version"]["id"],
            "updates": [
                {"key_figure_id": book["demand"]["id"], "period": "2024-01", "period_type": "month", "value": 1},
                {"key_figure_id": book["plus"]["id"], "period": "2024-01", "period_type": "month", "value": 2},
            ],
        })
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "READ_ONLY_KEY_FIGURE"

        data = client.get(f"{API}/planning-data", headers=user_headers, params={
            "version_id": book["version"]["id"], "period_from": "2024-01", "period_to": "2024-01",
        }).json()
        assert float(data[0]["value"]) == 100

    def test_locked_version_rejects_bulk_update(self, client: TestClient, user_headers, book):
        version_id = book["version"]["id"]
        client.post(f"{API}/versions/{version_id}/activate", headers=user_headers)
        lock = client.post(f"{API}/versions/{version_id}/lock", headers=user_headers)
        assert lock.json()["status"] == "locked"
        assert lock.json()["locked_by"] == user_headers["X-User-Id"]

        resp = client.post(f"{API}/planning-data/bulk-update", headers=user_headers, json={
            "version_id": version_id,
            "updates": [{"key_figure_id": book["demand"]["id"], "period": "2024-01", "period_type": "month", "value": 5}],
        })
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "VERSION_LOCKED"


class TestVersionsAndHistory:

    def test_list_versions_is_paginated(self, client: TestClient, user_headers, book):
        client.post(f"{API}/versions", headers=user_headers, json={"name": "Upside"})
        body = client.get(f"{API}/versions", headers=user_headers, params={"page_size": 1}).json()
        assert body["total"] == 2
        assert body["total_pages"] == 2
        assert [v["name"] for v in body["items"]] == ["Upside"]

    def test_copy_and_history(self, client: TestClient, user_headers, book):
        version_id = book["version"]["id"]
        copy = client.post(f"{API}/versions/{version_id}/copy", headers=user_headers, json={"name": "Upside"})
        assert copy.status_code == 201
        assert copy.json()["base_version_id"] == version_id

        history = client.get(f"{API}/history", headers=user_headers, params={"version_id": version_id}).json()
        assert [h["action"] for h in history] == ["create", "create", "create", "create"]
        assert history[-1]["key_figure_id"] is None

        copy_history = client.get(f"{API}/history/{copy.json()['id']}", headers=user_headers).json()
        assert [h["action"] for h in copy_history] == ["copy"]

    def test_delete_requires_archived(self, client: TestClient, user_headers, book):
        resp = client.delete(f"{API}/versions/{book['version']['id']}", headers=user_headers)
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "VERSION_NOT_ARCHIVED"

    def test_full_lifecycle_to_delete(self, client: TestClient, user_headers, book):
        version_id = book["version"]["id"]
        for step in ("activate", "lock", "archive"):
            assert client.post(f"{API}/versions/{version_id}/{step}", headers=user_headers).status_code == 200
        assert client.delete(f"{API}/versions/{version_id}", headers=user_headers).status_code == 204
        assert client.get(f"{API}/versions/{version_id}", headers=user_headers).status_code == 404


class TestAlerts:

    def test_evaluate_and_resolve(self, client: TestClient, user_headers, book):
        rule = client.post(f"{API}/alert-rules", headers=user_headers, json={
            "name": "Low demand",
            "key_figure_id": book["demand"]["id"],
            "comparison": "lt",
            "threshold_value": 100,
            "alert_type": "shortage",
            "severity": "error",
        })
        assert rule.status_code == 201

        version_id = book["version"]["id"]
        first = client.post(f"{API}/alerts/evaluate", headers=user_headers, json={"version_id": version_id}).json()
        second = client.post(f"{API}/alerts/evaluate", headers=user_headers, json={"version_id": version_id}).json()
        assert len(first) == 1
        assert [a["id"] for a in first] == [a["id"] for a in second]
        assert first[0]["time_period"] == "2024-03"

        resolved = client.post(f"{API}/alerts/{first[0]['id']}/resolve", headers=user_headers)
        assert resolved.json()["is_resolved"] is True
        again = client.post(f"{API}/alerts/{first[0]['id']}/resolve", headers=user_headers)
        assert again.status_code == 409

        unresolved = client.get(f"{API}/alerts/unresolved", headers=user_headers, params={"version_id": version_id})
        assert unresolved.json() == []


class TestPartialUpdates:

    def test_activate_on_locked_version_returns_409(self, client: TestClient, user_headers, book):
        version_id = book["version"]["id"]
        client.post(f"{API}/versions/{version_id}/activate", headers=user_headers)
        client.post(f"{API}/versions/{version_id}/lock", headers=user_headers)

        resp = client.post(f"{API}/versions/{version_id}/activate", headers=user_headers)
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_STATE_TRANSITION"
        assert client.get(f"{API}/versions/{version_id}", headers=user_headers).json()["status"] == "locked"

    def test_null_version_name_returns_422(self, client: TestClient, user_headers, book):
        version_id = book["version"]["id"]
        resp = client.put(f"{API}/versions/{version_id}", headers=user_headers, json={"name": None})
        assert resp.status_code == 422
        assert client.get(f"{API}/versions/{version_id}", headers=user_headers).json()["name"] == "Baseline"

        cleared = client.put(f"{API}/versions/{version_id}", headers=user_headers, json={"description": None})
        assert cleared.status_code == 200

    def test_null_start_date_returns_422(self, client: TestClient, user_headers, book):
        resp = client.put(
            f"{API}/time-settings/{book['setting']['id']}", headers=user_headers, json={"start_date": None},
        )
        assert resp.status_code == 422

    def test_null_threshold_returns_422(self, client: TestClient, user_headers, book):
        rule = client.post(f"{API}/alert-rules", headers=user_headers, json={
            "name": "Low demand",
            "key_figure_id": book["demand"]["id"],
            "comparison": "lt",
            "threshold_value": 100,
        }).json()
        resp = client.put(f"{API}/alert-rules/{rule['id']}", headers=user_headers, json={"threshold_value": None})
        assert resp.status_code == 422

    def test_null_key_figure_name_returns_422(self, client: TestClient, user_headers, book):
        resp = client.put(f"{API}/key-figures/{book['demand']['id']}", headers=user_headers, json={"name": None})
        assert resp.status_code == 422

    def test_pinned_rule_blocks_disabling_its_level(self, client: TestClient, user_headers, book):
        setting_id = book["setting"]["id"]
        client.post(f"{API}/alert-rules", headers=user_headers, json={
            "name": "Monthly cap",
            "key_figure_id": book["demand"]["id"],
            "comparison": "gt",
            "threshold_value": 110,
            "time_setting_id": setting_id,
            "period_type": "month",
        })
        resp = client.put(
            f"{API}/time-settings/{setting_id}", headers=user_headers, json={"time_hierarchy": ["quarter"]},
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "BUSINESS_RULE_VIOLATION"

        evaluated = client.post(
            f"{API}/alerts/evaluate", headers=user_headers, json={"version_id": book["version"]["id"]},
        )
        assert [a["time_period"] for a in evaluated.json()] == ["2024-02"]
