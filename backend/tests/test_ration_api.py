"""
Integration tests for the ration audit API endpoints
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.dependencies import load_constant_overrides
from app.main import app
from middleware.cors_config import DEV_ORIGINS, cors_origins, setup_cors

client = TestClient(app)


def audit_payload(**overrides):
    payload = {
        "animal_profile": {
            "name": "Holstein-Friesian 41kg melk",
            "weight_kg": 675,
            "parity": 3,
            "days_in_milk": 150,
            "days_pregnant": 0,
            "is_lactating": True,
        },
        "milk_production": {"kg_per_day": 30.0, "fat_percent": 4.4, "protein_percent": 3.5},
        "feeds": [
            {
                "feed": {
                    "name": "kuil_1_gras",
                    "display_name": "Grass silage",
                    "basis": "per kg DS",
                    "vem": 951,
                    "dve": 76,
                    "oeb": 28,
                    "default_ds_percent": 41,
                    "category": "roughage",
                },
                "amount_kg": 40.0,
            },
            {
                "feed": {
                    "name": "stalbrok",
                    "basis": "per kg product",
                    "vem": 940,
                    "dve": 105,
                    "oeb": 20,
                    "default_ds_percent": 89,
                },
                "amount_kg": 8.0,
            },
        ],
        "is_grazing": False,
    }
    payload.update(overrides)
    return payload


class TestServiceEndpoints:
    """Root and health endpoints"""

    def test_root(self):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestAuditEndpoint:
    """POST /ration/audit"""

    def test_audit_ration(self):
        response = client.post("/ration/audit", json=audit_payload())
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["audit_id"]
        result = data["result"]
        assert [b["parameter"] for b in result["balances"]] == ["VEM", "DVE", "OEB", "SW"]
        assert result["requirements"]["milk_source"] == "milk record"
        assert len(data["steps"]) == len(result["steps"])
        assert [row["Feed"] for row in data["feeds"]] == ["Grass silage", "stalbrok"]
        assert data["steps"][0]["feed"] == ""
        assert data["steps"][0]["name"] == "Metabolic body weight"

    def test_not_fed_lines_are_dropped(self):
        payload = audit_payload()
        payload["feeds"][1]["amount_kg"] = 0
        response = client.post("/ration/audit", json=payload)
        assert response.status_code == 200
        assert len(response.json()["result"]["feeds"]) == 1

    def test_empty_ration(self):
        response = client.post("/ration/audit", json=audit_payload(feeds=[]))
        assert response.status_code == 200
        summary = response.json()["result"]["summary"]
        assert summary["vem_supplied"] == 0
        assert summary["oeb_status"] == "ok"
        assert summary["sw_status"] == "Insufficient"

    def test_name_derived_milk_basis(self):
        response = client.post("/ration/audit", json=audit_payload(milk_production=None))
        assert response.status_code == 200
        assert response.json()["result"]["requirements"]["milk_source"] == "name-derived default"

    def test_invalid_profile(self):
        payload = audit_payload()
        payload["animal_profile"]["weight_kg"] = -50
        response = client.post("/ration/audit", json=payload)
        assert response.status_code == 422
        error = response.json()["detail"]["error"]
        assert error["type"] == "INVALID_PROFILE"
        assert error["field"] == "weight_kg"

    def test_missing_feed_data(self):
        payload = audit_payload()
        del payload["feeds"][0]["feed"]["dve"]
        response = client.post("/ration/audit", json=payload)
        assert response.status_code == 422
        assert response.json()["detail"]["error"]["type"] == "MISSING_FEED_DATA"

    def test_unknown_basis(self):
        payload = audit_payload()
        payload["feeds"][0]["feed"]["basis"] = "per litre"
        response = client.post("/ration/audit", json=payload)
        assert response.status_code == 422
        assert response.json()["detail"]["error"]["type"] == "INVALID_FEED_INPUT"

    def test_request_validation(self):
        """Malformed bodies are rejected by request validation"""
        payload = audit_payload()
        payload["animal_profile"]["name"] = "   "
        response = client.post("/ration/audit", json=payload)
        assert response.status_code == 422


class TestReportEndpoint:
    """POST /ration/audit/report"""

    def test_report(self):
        response = client.post("/ration/audit/report", json=audit_payload())
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "RATION AUDIT REPORT" in response.text
        assert "VEM maintenance" in response.text
        assert response.headers["x-audit-id"]

    def test_report_error(self):
        payload = audit_payload()
        payload["animal_profile"]["parity"] = 0
        response = client.post("/ration/audit/report", json=payload)
        assert response.status_code == 422


class TestConstants:
    """Constant table and overrides"""

    def test_get_constants(self):
        response = client.get("/ration/constants")
        assert response.status_code == 200
        data = response.json()
        assert data["vem_maintenance_lactating"] == 53.0
        assert data["vem_grazing_supply_surcharge"] == 1175.0

    def test_overrides_from_environment(self):
        overrides = load_constant_overrides({"RATION_SW_MINIMUM": "0.9", "RATION_VOC_TOLERANCE_PERCENT": ""})
        assert overrides == {"sw_minimum": 0.9}

    def test_invalid_override(self):
        with pytest.raises(ValueError):
            load_constant_overrides({"RATION_COVERAGE_OK_PERCENT": "high"})


class TestMiddleware:
    """Request logging and CORS"""

    def test_process_time_header(self):
        response = client.post("/ration/audit/report", json=audit_payload())
        assert float(response.headers["x-process-time-ms"]) >= 0

    def test_health_checks_are_not_timed(self):
        response = client.get("/health")
        assert response.status_code == 200
        assert "x-process-time-ms" not in response.headers

    def test_cors_origins_from_environment(self):
        origins = cors_origins({"CORS_ORIGINS": "https://farm.example, ,https://vet.example"})
        assert origins == ["https://farm.example", "https://vet.example"]

    def test_development_adds_local_origins_once(self):
        origins = cors_origins({"CORS_ORIGINS": DEV_ORIGINS[0], "ENVIRONMENT": "development"})
        assert origins == DEV_ORIGINS

    def test_no_origins_by_default(self):
        assert cors_origins({}) == []

    def test_audit_headers_exposed_to_browsers(self):
        cors_app = FastAPI()
        setup_cors(cors_app, {"CORS_ORIGINS": "https://farm.example"})

        @cors_app.get("/ping")
        def ping():
            return {"ok": True}

        response = TestClient(cors_app).get("/ping", headers={"Origin": "https://farm.example"})
        assert response.headers["access-control-allow-origin"] == "https://farm.example"
        exposed = response.headers["access-control-expose-headers"].lower()
        assert "x-audit-id" in exposed
        assert "x-process-time-ms" in exposed


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
