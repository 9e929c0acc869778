"""Tests for the HTTP API."""
import json

from conftest import SCENARIO_ONE_TEXT


class TestHealth:
    def test_health(self, api_client):
        response = api_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestFromTextEndpoint:
    """POST /plans/from-text"""

    def test_success(self, api_client):
        response = api_client.post("/plans/from-text", json={"text": SCENARIO_ONE_TEXT, "target_minutes": 2})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["plan"]["total_duration_sec"] == 120
        assert body["plan"]["blocks"][0]["timeline"] == ["30s | Jumping Jacks"]
        assert body["stages"][-1] == "validated"

    def test_metadata_is_carried(self, api_client):
        response = api_client.post(
            "/plans/from-text",
            json={"text": SCENARIO_ONE_TEXT, "target_minutes": 2, "class_name": "Pop-up", "equipment": ["mat"]},
        )
        metadata = response.json()["plan"]["metadata"]
        assert metadata["class_name"] == "Pop-up"
        assert metadata["equipment"] == ["mat"]

    def test_empty_text(self, api_client):
        response = api_client.post("/plans/from-text", json={"text": ""})
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["plan"] is None
        assert "No workout blocks" in body["error"]

    def test_invalid_target(self, api_client):
        response = api_client.post("/plans/from-text", json={"text": SCENARIO_ONE_TEXT, "target_minutes": 0})
        assert response.status_code == 422


class TestFromCandidateEndpoint:
    """POST /plans/from-candidate"""

    def test_object(self, api_client, sample_candidate):
        response = api_client.post("/plans/from-candidate", json={"candidate": sample_candidate})
        assert response.status_code == 200
        assert response.json()["plan"]["total_duration_sec"] == 600

    def test_json_string(self, api_client, sample_candidate):
        response = api_client.post("/plans/from-candidate", json={"candidate": json.dumps(sample_candidate)})
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_bad_json(self, api_client):
        response = api_client.post("/plans/from-candidate", json={"candidate": "{not json"})
        assert response.status_code == 422
        assert "not valid JSON" in response.json()["error"]


class TestReconcileEndpoint:
    """POST /plans/reconcile"""

    def test_new_target(self, api_client, sample_candidate):
        response = api_client.post("/plans/reconcile", json={"plan": sample_candidate, "target_minutes": 15})
        assert response.status_code == 200
        body = response.json()
        assert body["plan"]["total_duration_sec"] == 900
        assert body["plan"]["metadata"]["duration_min"] == 15
        assert body["was_modified"] is True
        assert body["exhausted"] is False
        assert "added cooldown time" in body["message"]

    def test_bad_plan(self, api_client):
        response = api_client.post("/plans/reconcile", json={"plan": {"blocks": []}, "target_minutes": 15})
        assert response.status_code == 422
        assert "missing required fields" in response.json()["error"]


class TestCanonicalEndpoint:
    def test_canonical_text(self, api_client):
        response = api_client.post("/text/canonical", json={"text": SCENARIO_ONE_TEXT})
        assert response.status_code == 200
        assert response.json()["canonical"].startswith("BLOCK 1\nNAME: WARMUP\nTYPE: WARMUP")
