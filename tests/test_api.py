"""
Tab Grouper - HTTP API Tests

Exercises the FastAPI app with the pipeline swapped for one over a
scripted completion client.
"""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from grouping_service.main import app, get_pipeline

from .conftest import FakeCompletionClient


@pytest.fixture
def api(make_pipeline):
    """Returns a function that installs a scripted client and gives back (http client, fake)."""

    def _api(*script):
        fake = FakeCompletionClient(*script)
        pipeline = make_pipeline(fake)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return TestClient(app), fake

    yield _api
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_returns_ok_and_uptime(self):
        """Health returns status ok with a non-negative uptime."""
        response = TestClient(app).get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["uptime"] >= 0


class TestGroupTabsEndpoint:
    """Tests for POST /group-tabs."""

    def test_groups_tabs(self, api):
        """Tabs are grouped with a single upstream call."""
        client, fake = api(SimpleNamespace(text='{"Work":[1,2]}'))

        response = client.post("/group-tabs", json={"tabs": [
            {"id": 1, "title": "Jira", "url": "https://jira.example.com"},
            {"id": 2, "title": "Confluence", "url": "https://wiki.example.com"},
        ]})

        assert response.status_code == 200
        assert response.json() == {"Work": [1, 2]}
        assert fake.calls == 1

    @pytest.mark.parametrize("payload", [{}, {"tabs": []}, {"tabs": None}])
    def test_no_tabs(self, api, payload):
        """Missing or empty tab lists return 400 without calling upstream."""
        client, fake = api('{"A": [1]}')

        response = client.post("/group-tabs", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "No tabs provided"}
        assert fake.calls == 0

    def test_malformed_body(self, api):
        """A body that is not JSON is treated as having no tabs."""
        client, _ = api('{"A": [1]}')

        response = client.post(
            "/group-tabs",
            content=b"tabs=1",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "No tabs provided"}

    def test_invalid_tab_entry(self, api):
        """An entry that is not an object returns 400 with its index."""
        client, _ = api('{"A": [1]}')

        response = client.post("/group-tabs", json={"tabs": [42]})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid tab entry", "index": 0}

    def test_upstream_exhausted(self, api, sample_tabs, recording_sleep):
        """Three upstream failures end in a generic 500 with the last error."""
        client, fake = api(RuntimeError("quota exceeded"))

        response = client.post("/group-tabs", json={"tabs": sample_tabs})

        assert response.status_code == 500
        assert response.json() == {"error": "Something went wrong", "details": "quota exceeded", "attempts": 3}
        assert fake.calls == 3
        assert recording_sleep.waits == [1.0, 2.0]

    def test_unexpected_response_structure(self, api, sample_tabs):
        """Unknown response shapes report their top-level keys."""
        client, _ = api({"promptFeedback": {"blockReason": "SAFETY"}})

        response = client.post("/group-tabs", json={"tabs": sample_tabs})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Unexpected API response structure",
            "responseKeys": ["promptFeedback"],
        }

    def test_no_json_in_response(self, api, sample_tabs):
        """Text without JSON returns 500 with a preview of the text."""
        client, _ = api("Sorry, I can't help with that.")

        response = client.post("/group-tabs", json={"tabs": sample_tabs})

        assert response.status_code == 500
        assert response.json() == {
            "error": "No valid JSON found in AI response",
            "rawResponse": "Sorry, I can't help with that.",
        }

    def test_unparseable_json(self, api, sample_tabs):
        """A broken JSON candidate returns 500 with the parse error message."""
        client, _ = api("Groups: {'News': [2]}")

        response = client.post("/group-tabs", json={"tabs": sample_tabs})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to parse AI response as JSON"
        assert response.json()["rawResponse"] == "Groups: {'News': [2]}"

    def test_non_object_json(self, api, sample_tabs):
        """A JSON array from the model is rejected."""
        client, _ = api("[[1, 2], [3]]")

        response = client.post("/group-tabs", json={"tabs": sample_tabs})

        assert response.status_code == 500
        assert response.json() == {"error": "Invalid response structure from AI", "received": [[1, 2], [3]]}

    def test_nan_in_model_output(self, api, sample_tabs):
        """NaN from the model is a parse failure with a JSON error body."""
        client, _ = api('{"Work": [NaN]}')

        response = client.post("/group-tabs", json={"tabs": sample_tabs})

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {
            "error": "Failed to parse AI response as JSON",
            "rawResponse": '{"Work": [NaN]}',
        }

    def test_unrenderable_groups_use_catch_all(self, sample_tabs):
        """A result that cannot be serialized still gets a JSON error body."""

        class NanPipeline:
            async def run(self, body):
                return {"Work": [float("nan")]}

        app.dependency_overrides[get_pipeline] = lambda: NanPipeline()
        try:
            response = TestClient(app).post("/group-tabs", json={"tabs": sample_tabs})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["error"] == "Something went wrong"

    def test_tabs_with_loose_fields(self, api):
        """Tabs missing an id or carrying numeric titles still reach the model."""
        client, fake = api('{"Misc": [1]}')

        response = client.post("/group-tabs", json={"tabs": [
            {"title": "no id", "url": "u"},
            {"id": 1.5},
            {"id": 1, "title": 123},
        ]})

        assert response.status_code == 200
        assert fake.calls == 1
        assert "ID:undefined | no id (u)\nID:1.5 |  ()\nID:1 | 123 ()" in fake.requests[0].prompt

    def test_unexpected_exception(self, sample_tabs):
        """Errors outside the taxonomy become a generic 500 with the message."""

        class BrokenPipeline:
            async def run(self, body):
                raise KeyError("boom")

        app.dependency_overrides[get_pipeline] = lambda: BrokenPipeline()
        try:
            response = TestClient(app).post("/group-tabs", json={"tabs": sample_tabs})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json() == {"error": "Something went wrong", "details": "'boom'"}


class TestCors:
    """CORS preflight for the browser extension."""

    def test_preflight_from_extension(self):
        """The configured extension origin is allowed to POST JSON."""
        origin = "chrome-extension://dcjoknhdcfdpodgkpmekmmddcloinhak"

        response = TestClient(app).options("/group-tabs", headers={
            "Origin": origin,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        })

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == origin
