"""Integration tests for API endpoints"""

from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, forecast_body: dict):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/forecast", json=forecast_body)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "forecast_runs_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


def test_forecast_endpoint(client: TestClient, forecast_body: dict):
    """Test POST /v1/forecast returns the daily timeline and summary figures"""
    response = client.post("/v1/forecast", json=forecast_body)

    assert response.status_code == 200
    data = response.json()
    assert data["safe_to_spend_cents"] == 42200
    assert data["lowest_balance_cents"] == 62200
    assert data["lowest_balance_date"] == "2025-03-12"
    assert data["horizon_end"] == "2025-04-03"
    assert len(data["timeline"]) == 30
    assert data["timeline"][0]["spendable_balance_cents"] == 81100
    assert data["timeline"][0]["status"] == "healthy"
    assert data["timeline"][0]["occurrences"][0]["definition_id"] == "groceries"
    assert data["diagnostics"] == []


def test_forecast_defaults_horizon_and_buffer(client: TestClient, forecast_body: dict):
    del forecast_body["horizon_days"]
    del forecast_body["buffer_cents"]
    response = client.post("/v1/forecast", json=forecast_body)

    assert response.status_code == 200
    data = response.json()
    assert len(data["timeline"]) == 60
    assert data["buffer_cents"] == 50000


def test_forecast_reports_bad_definition(client: TestClient, forecast_body: dict):
    forecast_body["definitions"].append(
        {
            "definition_id": "ghost",
            "kind": "bill",
            "amount_cents": 1000,
            "frequency": "monthly",
            "anchor_date": "2025-03-10",
            "account_id": "closed",
        }
    )
    response = client.post("/v1/forecast", json=forecast_body)

    assert response.status_code == 200
    assert response.json()["diagnostics"] == [
        {"definition_id": "ghost", "reason": "unknown_account", "detail": "account closed not found"}
    ]


def test_forecast_horizon_too_long(client: TestClient, forecast_body: dict):
    forecast_body["horizon_days"] = 400
    response = client.post("/v1/forecast", json=forecast_body)

    assert response.status_code == 422
    assert "horizon_days" in response.json()["detail"]


def test_forecast_unknown_frequency(client: TestClient, forecast_body: dict):
    forecast_body["definitions"][0]["frequency"] = "every-other-tuesday"
    response = client.post("/v1/forecast", json=forecast_body)

    assert response.status_code == 422


def test_digest_endpoint(client: TestClient, forecast_body: dict):
    response = client.post("/v1/forecast/digest", json=forecast_body)

    assert response.status_code == 200
    data = response.json()
    assert data["week_start"] == "2025-03-05"
    assert data["total_bills_cents"] == 18900
    assert data["alerts"]["has_low_balance"] is False


def test_alert_endpoint_without_alert(client: TestClient, forecast_body: dict):
    response = client.post("/v1/forecast/alert", json=forecast_body)

    assert response.status_code == 200
    assert response.json() is None


def test_alert_endpoint_with_low_balance(client: TestClient, forecast_body: dict):
    forecast_body["accounts"][0]["balance_cents"] = 30000
    response = client.post("/v1/forecast/alert", json=forecast_body)

    assert response.status_code == 200
    data = response.json()
    assert data["date"] == "2025-03-05"
    assert data["projected_balance_cents"] == 11100
    assert data["is_overdraft"] is False


def test_scenario_endpoint(client: TestClient, forecast_body: dict):
    """Test POST /v1/scenario with a purchase that causes an overdraft"""
    forecast_body["purchase"] = {"amount_cents": 70000, "date": "2025-03-08"}
    response = client.post("/v1/scenario", json=forecast_body)

    assert response.status_code == 200
    data = response.json()
    assert data["can_afford"] is False
    assert data["previous_lowest_cents"] == 62200
    assert data["first_problem_date"] == "2025-03-08"
    assert len(data["preview"]) == 7


def test_scenario_rejects_non_positive_amount(client: TestClient, forecast_body: dict):
    forecast_body["purchase"] = {"amount_cents": 0, "date": "2025-03-08"}
    response = client.post("/v1/scenario", json=forecast_body)

    assert response.status_code == 422


def test_payments_predict_endpoint(client: TestClient):
    response = client.post(
        "/v1/payments/predict",
        json={
            "today": "2025-03-05",
            "invoices": [
                {"invoice_id": "slow", "invoice_date": "2025-02-06", "terms": "net_30", "client_history": "usually_late"},
                {"invoice_id": "quick", "invoice_date": "2025-03-03", "terms": "net_7"},
            ],
        },
    )

    assert response.status_code == 200
    predictions = response.json()["predictions"]
    assert [p["invoice_id"] for p in predictions] == ["quick", "slow"]
    assert predictions[1]["expected_date"] == "2025-03-17"
    assert predictions[1]["lateness_adjustment_days"] == 7


def test_payments_custom_terms_without_days(client: TestClient):
    response = client.post(
        "/v1/payments/predict",
        json={"invoices": [{"invoice_id": "x", "invoice_date": "2025-03-03", "terms": "custom"}]},
    )

    assert response.status_code == 422
