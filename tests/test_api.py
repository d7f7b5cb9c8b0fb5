"""HTTP surface: uploads, error mapping, startup checks."""

import json

import pytest
from fastapi.testclient import TestClient

from conftest import JPEG, PNG, FakeModel
from propcontrol.core.config import Settings
from propcontrol.core.errors import (
    AuthError,
    ConfigurationError,
    ProviderError,
    TransportError,
)
from propcontrol.main import create_app
from propcontrol.services.estimation_service import EstimationService
from propcontrol.services.notification_service import NotificationService

CFG = Settings(MODEL_PROVIDER="mock", PROMETHEUS_ENABLED=False, ENV="dev")


def client_with(model, cfg: Settings = CFG) -> TestClient:
    app = create_app(
        cfg=cfg,
        estimation_service=EstimationService(model),
        notification_service=NotificationService(None, None),
    )
    return TestClient(app)


def uploads():
    return [
        ("photos", ("kitchen.jpg", JPEG, "image/jpeg")),
        ("photos", ("bath.png", PNG, "image/png")),
    ]


class TestRehabEstimates:
    def test_returns_estimate(self, estimate_dict) -> None:
        model = FakeModel(json.dumps(estimate_dict))
        r = client_with(model).post("/v1/rehab-estimates", files=uploads(), data={"square_footage": "1500"})

        assert r.status_code == 200
        body = r.json()
        assert body["strategy_analysis"]["recommendation"] == "BRRRR"
        assert [room["room_total"] for room in body["room_breakdowns"]] == [5000, 12000]
        assert "1,500 sqft" in model.calls[0][1]
        assert [p.mime_type for p in model.calls[0][0]] == ["image/jpeg", "image/png"]

    def test_no_photos(self) -> None:
        model = FakeModel("{}")
        r = client_with(model).post("/v1/rehab-estimates", data={"square_footage": "900"})
        assert r.status_code == 400
        assert r.json()["error"] == "invalid_input"
        assert model.calls == []

    def test_negative_square_footage(self) -> None:
        r = client_with(FakeModel("{}")).post("/v1/rehab-estimates", files=uploads(), data={"square_footage": "-20"})
        assert r.status_code == 400

    def test_unreadable_photo(self) -> None:
        files = [("photos", ("blank.bin", b"", "application/octet-stream"))]
        r = client_with(FakeModel("{}")).post("/v1/rehab-estimates", files=files)
        assert r.status_code == 422
        assert r.json()["error"] == "photo_unreadable"

    def test_malformed_model_output(self) -> None:
        r = client_with(FakeModel("I cannot process this.")).post("/v1/rehab-estimates", files=uploads())
        assert r.status_code == 502
        body = r.json()
        assert body["error"] == "model_response_malformed"
        assert body["raw_response"] == "I cannot process this."

    def test_raw_output_hidden_outside_dev(self) -> None:
        cfg = Settings(MODEL_PROVIDER="mock", PROMETHEUS_ENABLED=False, ENV="prod")
        r = client_with(FakeModel("I cannot process this."), cfg).post("/v1/rehab-estimates", files=uploads())
        assert r.status_code == 502
        assert "raw_response" not in r.json()

    def test_schema_violation_names_field(self, estimate_dict) -> None:
        estimate_dict["strategy_analysis"]["recommendation"] = "HOLD"
        r = client_with(FakeModel(json.dumps(estimate_dict))).post("/v1/rehab-estimates", files=uploads())
        assert r.status_code == 502
        assert r.json()["field"] == "strategy_analysis.recommendation"

    @pytest.mark.parametrize(
        "error, status, code",
        [
            (TransportError("down"), 503, "model_unreachable"),
            (AuthError("bad key"), 502, "model_auth_failed"),
            (ProviderError("quota", status_code=429, transient=True), 503, "model_provider_error"),
            (ProviderError("bad", status_code=400), 502, "model_provider_error"),
        ],
    )
    def test_provider_failures(self, error, status, code) -> None:
        r = client_with(FakeModel(error)).post("/v1/rehab-estimates", files=uploads())
        assert r.status_code == status
        assert r.json()["error"] == code

    def test_request_id_echoed(self, estimate_dict) -> None:
        r = client_with(FakeModel(json.dumps(estimate_dict))).post(
            "/v1/rehab-estimates", files=uploads(), headers={"x-request-id": "req-123"}
        )
        assert r.headers["X-Request-Id"] == "req-123"


class TestVisualize:
    def test_always_501(self) -> None:
        model = FakeModel("{}")
        r = client_with(model).post(
            "/v1/rehab-estimates/visualize",
            files=[("photo", ("kitchen.jpg", JPEG, "image/jpeg"))],
            data={"room_name": "Kitchen", "furniture_style": "Rustic Farmhouse"},
        )
        assert r.status_code == 501
        assert r.json()["error"] == "capability_unavailable"
        assert model.calls == []

    def test_501_without_upload(self) -> None:
        r = client_with(FakeModel("{}")).post("/v1/rehab-estimates/visualize")
        assert r.status_code == 501

    def test_capabilities(self) -> None:
        r = client_with(FakeModel("{}")).get("/v1/rehab-estimates/capabilities")
        assert r.json() == {"analyze_property_photos": True, "visualize_room": False, "model_provider": "fake"}


class TestApp:
    def test_health(self) -> None:
        assert client_with(FakeModel("{}")).get("/v1/health").json() == {"status": "ok"}

    def test_missing_credential_fails_at_startup(self) -> None:
        with pytest.raises(ConfigurationError):
            create_app(cfg=Settings(MODEL_PROVIDER="gemini", GEMINI_API_KEY=None))

    def test_metrics_route(self) -> None:
        cfg = Settings(MODEL_PROVIDER="mock", PROMETHEUS_ENABLED=True)
        client = client_with(FakeModel("{}"), cfg)
        client.get("/v1/ping")
        r = client.get("/v1/metrics")
        assert r.status_code == 200
        assert "http_requests_total" in r.text

    def test_mock_provider_end_to_end(self) -> None:
        app = create_app(cfg=Settings(MODEL_PROVIDER="mock", PROMETHEUS_ENABLED=False))
        r = TestClient(app).post("/v1/rehab-estimates", files=uploads())
        assert r.status_code == 200
        assert len(r.json()["room_breakdowns"]) == 2
