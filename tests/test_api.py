"""End-to-end tests for the AgriSahay HTTP API with a fake inference backend."""

from __future__ import annotations

from src.services.errors import InferenceMalformedError, InferenceUnavailableError

PROFILE = {
    "state": "Odisha",
    "land_size": "2",
    "income": 150000,
    "crop": "Rice",
    "category": "General",
}


# -----------------------------------------------------------------------
# Authentication
# -----------------------------------------------------------------------


class TestAuthentication:
    def test_profile_requires_token(self, client) -> None:
        response = client.get("/api/profile")
        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized"}

    def test_invalid_token_rejected(self, client) -> None:
        response = client.get("/api/profile", headers={"Authorization": "Bearer farmer-1.deadbeef"})
        assert response.status_code == 401

    def test_generate_requires_token(self, client, fake_backend) -> None:
        response = client.post("/api/recommendations/generate")
        assert response.status_code == 401
        assert fake_backend.call_count == 0

    def test_schemes_are_public(self, client) -> None:
        assert client.get("/api/schemes").status_code == 200


# -----------------------------------------------------------------------
# Profile
# -----------------------------------------------------------------------


class TestProfileEndpoints:
    def test_get_before_save_returns_null(self, client, auth_headers) -> None:
        response = client.get("/api/profile", headers=auth_headers())
        assert response.status_code == 200
        assert response.json() is None

    def test_save_then_get(self, client, auth_headers) -> None:
        saved = client.post("/api/profile", json=PROFILE, headers=auth_headers())
        assert saved.status_code == 200
        body = saved.json()
        assert body["owner_id"] == "farmer-1"
        assert body["land_size"] == "2"

        fetched = client.get("/api/profile", headers=auth_headers()).json()
        assert fetched["id"] == body["id"]
        assert fetched["state"] == "Odisha"

    def test_update_keeps_single_profile(self, client, auth_headers) -> None:
        first = client.post("/api/profile", json=PROFILE, headers=auth_headers()).json()
        second = client.post(
            "/api/profile", json={**PROFILE, "crop": "Wheat"}, headers=auth_headers()
        ).json()
        assert second["id"] == first["id"]
        assert second["crop"] == "Wheat"

    def test_profiles_scoped_to_owner(self, client, auth_headers) -> None:
        client.post("/api/profile", json=PROFILE, headers=auth_headers("farmer-1"))
        response = client.get("/api/profile", headers=auth_headers("farmer-2"))
        assert response.json() is None

    def test_invalid_land_size_names_field(self, client, auth_headers) -> None:
        response = client.post(
            "/api/profile", json={**PROFILE, "land_size": "two acres"}, headers=auth_headers()
        )
        assert response.status_code == 400
        body = response.json()
        assert body["field"] == "land_size"
        assert body["message"].startswith("Land size must be a number")
        assert client.get("/api/profile", headers=auth_headers()).json() is None

    def test_missing_income_names_field(self, client, auth_headers) -> None:
        payload = {k: v for k, v in PROFILE.items() if k != "income"}
        response = client.post("/api/profile", json=payload, headers=auth_headers())
        assert response.status_code == 400
        assert response.json()["field"] == "income"


# -----------------------------------------------------------------------
# Schemes
# -----------------------------------------------------------------------


class TestSchemeEndpoints:
    def test_lists_seeded_catalog(self, client) -> None:
        schemes = client.get("/api/schemes").json()
        assert len(schemes) == 10
        assert [s["external_id"] for s in schemes][:3] == ["S001", "S002", "S003"]
        assert schemes[0]["supported_states"] == ["All"]


# -----------------------------------------------------------------------
# Recommendations
# -----------------------------------------------------------------------


class TestRecommendationEndpoints:
    def test_missing_profile_is_400_without_inference(self, client, fake_backend, auth_headers) -> None:
        response = client.post("/api/recommendations/generate", headers=auth_headers())
        assert response.status_code == 400
        assert response.json() == {
            "message": "Profile not found. Please complete your profile first."
        }
        assert fake_backend.call_count == 0, "no inference without a stored profile"

    def test_generate_returns_reconciled_results(self, client, fake_backend, auth_headers) -> None:
        fake_backend.answer = (
            '{"recommendations": ['
            '{"scheme_id": 1, "explanation": "Small farmer within the income limit."},'
            '{"scheme_id": 9999, "explanation": "Not a real scheme."},'
            '{"scheme_id": 2, "explanation": "Rice is covered by crop insurance."}'
            "]}"
        )
        client.post("/api/profile", json=PROFILE, headers=auth_headers())

        response = client.post("/api/recommendations/generate", headers=auth_headers())
        assert response.status_code == 200
        body = response.json()
        assert [item["scheme"]["id"] for item in body] == [1, 2]
        assert body[0]["scheme"]["name"] == "PM-KISAN Samman Nidhi"
        assert body[1]["explanation"] == "Rice is covered by crop insurance."
        assert fake_backend.call_count == 1
        assert "- State: Odisha" in fake_backend.queries[0]

    def test_only_unknown_schemes_gives_empty_array(self, client, fake_backend, auth_headers) -> None:
        fake_backend.answer = '{"recommendations":[{"scheme_id": 9999, "explanation": "x"}]}'
        client.post("/api/profile", json=PROFILE, headers=auth_headers())

        response = client.post("/api/recommendations/generate", headers=auth_headers())
        assert response.status_code == 200
        assert response.json() == []

    def test_backend_failure_is_500(self, client, fake_backend, auth_headers) -> None:
        fake_backend.error = InferenceUnavailableError("provider down")
        client.post("/api/profile", json=PROFILE, headers=auth_headers())

        response = client.post("/api/recommendations/generate", headers=auth_headers())
        assert response.status_code == 500
        assert response.json() == {"message": "Failed to generate recommendations"}

    def test_malformed_answer_is_500(self, client, fake_backend, auth_headers) -> None:
        fake_backend.answer = "Here are some schemes you might like!"
        client.post("/api/profile", json=PROFILE, headers=auth_headers())

        response = client.post("/api/recommendations/generate", headers=auth_headers())
        assert response.status_code == 500

    def test_malformed_error_from_backend_is_500(self, client, fake_backend, auth_headers) -> None:
        fake_backend.error = InferenceMalformedError("no content")
        client.post("/api/profile", json=PROFILE, headers=auth_headers())
        assert client.post("/api/recommendations/generate", headers=auth_headers()).status_code == 500

    def test_history_records_generated_results(self, client, fake_backend, auth_headers) -> None:
        fake_backend.answer = '{"recommendations":[{"scheme_id": 3, "explanation": "credit"}]}'
        client.post("/api/profile", json=PROFILE, headers=auth_headers())
        client.post("/api/recommendations/generate", headers=auth_headers())

        history = client.get("/api/recommendations", headers=auth_headers()).json()
        assert [(h["scheme_id"], h["explanation"]) for h in history] == [(3, "credit")]
        assert client.get("/api/recommendations", headers=auth_headers("farmer-2")).json() == []


# -----------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------


class TestHealthEndpoints:
    def test_liveness(self, client) -> None:
        body = client.get("/api/health").json()
        assert body["status"] == "healthy"

    def test_readiness_reports_components(self, client) -> None:
        body = client.get("/api/health/ready").json()
        assert body["checks"]["storage"] == "in_memory"
        assert body["checks"]["catalog"] == "ok (10 schemes loaded)"
        assert body["checks"]["inference"] == "fake"
        assert body["status"] == "ready"
