"""
API tests for the /v1 question validator routes (model endpoint stubbed)
"""
import pytest
from fastapi.testclient import TestClient

from conftest import analysis_payload
from main import app
from question_validator.core.dependencies import get_controller
from question_validator.models.response import ControllerStatus
from question_validator.models.rubric import DEFAULT_EXAMPLES, DEFAULT_RUBRIC, SAMPLE_HOT_QUESTION, SAMPLE_QUESTION


@pytest.fixture
def wired(make_controller):
    """Returns a factory: queue model responses, get (client, controller, llm)."""

    def _wire(responses=None, error=None, **kwargs):
        controller, llm = make_controller(responses, error=error, **kwargs)
        app.dependency_overrides[get_controller] = lambda: controller
        return TestClient(app), controller, llm

    yield _wire
    app.dependency_overrides.clear()


@pytest.mark.integration
class TestAnalyzeRoutes:

    def test_analyze_text(self, wired):
        client, controller, llm = wired([analysis_payload()])

        response = client.post("/v1/analyze", json={"question": SAMPLE_QUESTION})

        assert response.status_code == 200
        data = response.json()
        assert data["isHigherOrder"] is False
        assert data["analyzedContent"] == SAMPLE_QUESTION
        assert set(data) == set(analysis_payload())
        assert controller.result is not None
        assert len(llm.calls) == 1

    def test_blank_question_is_rejected(self, wired):
        client, _, llm = wired()
        response = client.post("/v1/analyze", json={"question": "   "})
        assert response.status_code == 422
        assert llm.calls == []

    def test_analyze_file(self, wired):
        client, _, llm = wired([analysis_payload(isHigherOrder=True, score=9)])

        response = client.post(
            "/v1/analyze/file",
            files={"file": ("question.txt", SAMPLE_HOT_QUESTION.encode("utf-8"), "text/plain")},
        )

        assert response.status_code == 200
        assert response.json()["score"] == 9
        assert SAMPLE_HOT_QUESTION in llm.calls[0]["messages"][1]["content"][0]["text"]

    def test_unsupported_file(self, wired):
        client, controller, llm = wired()

        response = client.post(
            "/v1/analyze/file",
            files={"file": ("setup.exe", b"MZ\x90\x00", "application/x-msdownload")},
        )

        assert response.status_code == 415
        body = response.json()
        assert body["type"] == "UnsupportedTypeError"
        assert body["details"] == {"extension": "exe"}
        assert llm.calls == []
        assert controller.busy is False

    def test_empty_model_response(self, wired):
        client, _, _ = wired([""])
        response = client.post("/v1/analyze", json={"question": SAMPLE_QUESTION})
        assert response.status_code == 422
        assert response.json()["error"] == "No response from AI"

    def test_model_unavailable(self, wired):
        client, _, _ = wired(error=ConnectionError("offline"))
        response = client.post("/v1/analyze", json={"question": SAMPLE_QUESTION})
        assert response.status_code == 503
        assert response.json()["type"] == "ModelUnavailableError"

    def test_busy_controller_returns_conflict(self, wired):
        client, controller, llm = wired([analysis_payload()])
        controller._status = ControllerStatus(state="busy", operation="extract_and_classify_batch")

        response = client.post("/v1/analyze", json={"question": SAMPLE_QUESTION})

        assert response.status_code == 409
        assert response.json()["details"] == {"in_flight": "extract_and_classify_batch"}
        assert llm.calls == []

    def test_extract_question(self, wired):
        client, _, _ = wired([{"text": "Calculate the molar mass of NaCl."}])
        response = client.post(
            "/v1/extract-question",
            files={"file": ("worksheet.png", b"\x89PNG\r\n\x1a\nbody", "image/png")},
        )
        assert response.status_code == 200
        assert response.json() == {"text": "Calculate the molar mass of NaCl."}

    def test_reset_clears_result(self, wired):
        client, controller, _ = wired([analysis_payload()])
        client.post("/v1/analyze", json={"question": SAMPLE_QUESTION})

        response = client.post("/v1/reset")

        assert response.status_code == 200
        assert response.json()["state"] == "idle"
        assert controller.result is None


@pytest.mark.integration
class TestRubricRoutes:

    def test_get_default_rubric(self, wired):
        client, _, _ = wired()
        response = client.get("/v1/rubric")
        assert response.status_code == 200
        assert response.json()["id"] == DEFAULT_RUBRIC.id

    def test_update_rubric(self, wired):
        client, controller, _ = wired()
        response = client.put("/v1/rubric", json={"criteria": "1. Requires evaluation"})
        assert response.status_code == 200
        assert response.json()["name"] == DEFAULT_RUBRIC.name
        assert controller.rubric.criteria == "1. Requires evaluation"

    def test_import_rubric(self, wired):
        client, controller, _ = wired([{"text": "1. Interprets data\n2. Justifies claims"}])

        response = client.post(
            "/v1/rubric/import",
            files={"file": ("rubric.txt", b"Rubric table ...", "text/plain")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["updated"] is True
        assert data["rubric"]["criteria"] == "1. Interprets data\n2. Justifies claims"
        assert controller.rubric.name == DEFAULT_RUBRIC.name

    def test_import_oversized_file(self, wired):
        client, controller, llm = wired(max_upload_bytes=10)
        response = client.post("/v1/rubric/import", files={"file": ("rubric.txt", b"x" * 20, "text/plain")})
        assert response.status_code == 422
        assert response.json()["details"]["max_bytes"] == 10
        assert llm.calls == []
        assert controller.rubric == DEFAULT_RUBRIC

    def test_import_empty_file(self, wired):
        client, _, llm = wired()
        response = client.post("/v1/rubric/import", files={"file": ("rubric.txt", b"", "text/plain")})
        assert response.status_code == 422
        assert response.json()["type"] == "InputValidationError"
        assert llm.calls == []


@pytest.mark.integration
class TestExampleRoutes:

    def test_list_examples(self, wired):
        client, _, _ = wired()
        response = client.get("/v1/examples")
        assert response.status_code == 200
        assert [ex["id"] for ex in response.json()] == [ex.id for ex in DEFAULT_EXAMPLES]

    def test_add_and_remove_example(self, wired):
        client, controller, _ = wired()

        created = client.post(
            "/v1/examples",
            json={"content": "Why does ice float?", "type": "Higher Order", "explanation": "Links density to bonding"},
        )
        assert created.status_code == 201
        example_id = created.json()["id"]
        assert controller.examples[-1].id == example_id

        assert client.delete(f"/v1/examples/{example_id}").status_code == 204
        assert client.delete(f"/v1/examples/{example_id}").status_code == 404
        assert controller.examples == DEFAULT_EXAMPLES

    def test_add_example_requires_explanation(self, wired):
        client, controller, _ = wired()
        response = client.post("/v1/examples", json={"content": "Why does ice float?", "explanation": ""})
        assert response.status_code == 422
        assert controller.examples == DEFAULT_EXAMPLES

    def test_batch_import(self, wired):
        batch = {
            "questions": [
                {"content": "Define oxidation.", "type": "Lower Order", "explanation": "Recall of a definition"},
            ]
        }
        client, controller, _ = wired([batch])

        response = client.post(
            "/v1/examples/import",
            files={"file": ("questions.txt", b"1. Define oxidation.", "text/plain")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Successfully imported 1 questions!"
        assert data["total_examples"] == len(DEFAULT_EXAMPLES) + 1
        assert controller.examples[-1].content == "Define oxidation."


@pytest.mark.integration
def test_state_and_samples(wired):
    client, _, _ = wired([analysis_payload()])
    client.post("/v1/analyze", json={"question": SAMPLE_QUESTION})

    state = client.get("/v1/state").json()
    assert state["status"]["state"] == "idle"
    assert state["result"]["bloomLevel"] == "Remember"
    assert len(state["examples"]) == len(DEFAULT_EXAMPLES)

    samples = client.get("/v1/samples").json()
    assert samples == {"lower_order": SAMPLE_QUESTION, "higher_order": SAMPLE_HOT_QUESTION}


@pytest.mark.integration
def test_health_reports_prompts(wired):
    client, _, _ = wired()
    response = client.get("/health")
    assert response.status_code in (200, 503)
    assert response.json()["services"]["prompts"] == "operational"
