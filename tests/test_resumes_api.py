import json
import unittest
from unittest.mock import patch

from support import JOB_DESCRIPTION, FakeAIClient, make_image_only_pdf, make_pdf

from fastapi.testclient import TestClient

from resume_edge.core.errors import AIConfigurationError, AIServiceError
from resume_edge.core.rate_limit import limiter
from resume_edge.main import app
from resume_edge.services.analysis_service import wipe_analyses

AI_CLIENT_TARGET = "resume_edge.services.analysis_service.get_ai_client"


def _parse_sse(body: str) -> list[tuple[str, dict]]:
    events = []
    for block in body.strip().split("\n\n"):
        name = None
        data = None
        for line in block.splitlines():
            if line.startswith("event: "):
                name = line[len("event: "):]
            elif line.startswith("data: "):
                data = json.loads(line[len("data: "):])
        if name is not None:
            events.append((name, data))
    return events


class ResumesApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)
        cls.pdf = make_pdf()
        cls.form = {
            "company-name": "Acme",
            "job-title": "Senior Backend Engineer",
            "job-description": JOB_DESCRIPTION,
        }

    def setUp(self):
        limiter.reset()
        wipe_analyses()

    def _files(self, content=None, filename="resume.pdf", content_type="application/pdf"):
        return {"file": (filename, content if content is not None else self.pdf, content_type)}

    def _analyze(self, ai_client=None, **kwargs):
        with patch(AI_CLIENT_TARGET, return_value=ai_client or FakeAIClient()):
            return self.client.post(
                "/v1/resumes/analyze",
                files=kwargs.pop("files", None) or self._files(),
                data=kwargs.pop("data", None) or self.form,
            )

    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_analyze_contract_shape(self):
        response = self._analyze()
        self.assertEqual(response.status_code, 200)
        body = response.json()

        self.assertTrue(body["saved"])
        self.assertIsInstance(body["trace"], list)
        record = body["record"]
        self.assertEqual(record["status"], "completed")
        self.assertEqual(record["company_name"], "Acme")
        self.assertEqual(record["job_title"], "Senior Backend Engineer")
        self.assertEqual(record["file_name"], "resume.pdf")
        self.assertEqual(record["file_size"], len(self.pdf))
        feedback = record["feedback"]
        self.assertEqual(feedback["overall_score"], 84)
        self.assertEqual(feedback["ATS"]["score"], 79)
        self.assertEqual(feedback["job_match_analysis"]["missing_skills"], ["Kafka"])
        self.assertEqual(feedback["source"], "ai")

    def test_analyze_without_company_uses_default(self):
        form = dict(self.form)
        form.pop("company-name")
        response = self._analyze(data=form)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["record"]["company_name"], "Target Company")

    def test_analyze_validation_messages(self):
        cases = [
            ({"files": {}}, "Please select a resume file"),
            ({"files": self._files(b"hello world" * 200, "resume.txt", "text/plain")}, "Please upload a PDF file"),
            ({"files": self._files(b"%PDF-1.4\n%%EOF")}, "File appears to be too small or corrupted"),
            ({"data": {**self.form, "job-title": "  "}}, "Job title is required"),
            (
                {"data": {**self.form, "job-description": "Short description."}},
                "Job description should be more detailed (at least 50 characters)",
            ),
        ]
        for overrides, message in cases:
            with self.subTest(message=message):
                files = overrides.get("files", self._files())
                data = overrides.get("data", self.form)
                response = self.client.post("/v1/resumes/analyze", files=files or None, data=data)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["detail"], message)

    def test_analyze_image_only_pdf_is_unprocessable(self):
        response = self._analyze(files=self._files(make_image_only_pdf()))
        self.assertEqual(response.status_code, 422)
        self.assertIn("Could not extract sufficient text from PDF", response.json()["detail"])

    def test_analyze_ai_unavailable_maps_to_503(self):
        client = FakeAIClient(response=AIServiceError("Gemini API error (500): boom"))
        response = self._analyze(ai_client=client)
        self.assertEqual(response.status_code, 503)
        self.assertEqual(
            response.json()["detail"],
            "AI analysis service is temporarily unavailable. Please try again in a few minutes.",
        )

    def test_analyze_missing_ai_key_maps_to_500(self):
        with patch(AI_CLIENT_TARGET, side_effect=AIConfigurationError("Gemini API key not found.")):
            response = self.client.post("/v1/resumes/analyze", files=self._files(), data=self.form)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json()["detail"],
            "AI service configuration error. Please check your API key setup.",
        )

    def test_analyze_rate_limited(self):
        # requests are counted before the form is validated
        for _ in range(10):
            response = self.client.post("/v1/resumes/analyze", data=self.form)
            self.assertEqual(response.status_code, 400)
        response = self.client.post("/v1/resumes/analyze", files=self._files(), data=self.form)
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()["detail"], "Too many requests. Please wait a minute and try again.")

    def test_overlong_job_title_is_bad_request(self):
        data = {**self.form, "job-title": "Engineer " * 30}
        response = self.client.post("/v1/resumes/analyze", files=self._files(), data=data)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Job title must be at most 200 characters")

    def test_oversized_upload_is_rejected_while_reading(self):
        oversized = b"%PDF-1.4\n" + b"0" * (10 * 1024 * 1024)
        response = self.client.post("/v1/resumes/extract-text", files=self._files(oversized))
        self.assertEqual(response.status_code, 413)
        self.assertEqual(response.json()["detail"], "File size must be less than 10MB")

    def test_pdf_extension_with_unusual_content_type_is_accepted(self):
        response = self.client.post(
            "/v1/resumes/extract-text",
            files=self._files(content_type="application/x-pdf"),
        )
        self.assertEqual(response.status_code, 200)

    def test_record_lifecycle(self):
        record = self._analyze().json()["record"]
        analysis_id = record["id"]

        listing = self.client.get("/v1/resumes").json()
        self.assertEqual(listing["total"], 1)
        self.assertEqual(listing["items"][0]["id"], analysis_id)
        self.assertEqual(listing["items"][0]["overall_score"], 84)

        fetched = self.client.get(f"/v1/resumes/{analysis_id}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json()["feedback"]["ATS"]["score"], 79)

        pdf = self.client.get(f"/v1/resumes/{analysis_id}/file")
        self.assertEqual(pdf.status_code, 200)
        self.assertEqual(pdf.headers["content-type"], "application/pdf")
        self.assertEqual(pdf.content, self.pdf)

        preview = self.client.get(f"/v1/resumes/{analysis_id}/preview")
        self.assertEqual(preview.status_code, 200)
        self.assertEqual(preview.headers["content-type"], "image/png")
        self.assertTrue(preview.content.startswith(b"\x89PNG"))

        deleted = self.client.delete(f"/v1/resumes/{analysis_id}")
        self.assertEqual(deleted.json(), {"deleted": True})
        self.assertEqual(self.client.get(f"/v1/resumes/{analysis_id}").status_code, 404)
        self.assertEqual(self.client.delete(f"/v1/resumes/{analysis_id}").status_code, 404)

    def test_unknown_record_is_404(self):
        for path in ("/v1/resumes/missing", "/v1/resumes/missing/file", "/v1/resumes/missing/preview"):
            with self.subTest(path=path):
                response = self.client.get(path)
                self.assertEqual(response.status_code, 404)
                self.assertEqual(response.json()["detail"], "Resume analysis not found.")

    def test_wipe_removes_all_records(self):
        self._analyze()
        self._analyze()
        response = self.client.delete("/v1/resumes")
        self.assertEqual(response.json(), {"deleted": 2})
        self.assertEqual(self.client.get("/v1/resumes").json()["total"], 0)

    def test_stream_emits_progress_then_result(self):
        with patch(AI_CLIENT_TARGET, return_value=FakeAIClient()):
            response = self.client.post("/v1/resumes/analyze/stream", files=self._files(), data=self.form)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/event-stream"))

        events = _parse_sse(response.text)
        names = [name for name, _ in events]
        self.assertEqual(names[0], "connected")
        self.assertEqual(names[-1], "result")
        percents = [data["percent"] for name, data in events if name == "progress"]
        self.assertEqual(percents, [5, 15, 25, 35, 60, 85, 95, 100])
        self.assertEqual(events[-1][1]["record"]["feedback"]["overall_score"], 84)

    def test_stream_reports_errors_as_events(self):
        with patch(AI_CLIENT_TARGET, return_value=FakeAIClient(response=AIServiceError("timeout"))):
            response = self.client.post("/v1/resumes/analyze/stream", files=self._files(), data=self.form)
        events = _parse_sse(response.text)
        self.assertEqual(events[-1][0], "error")
        self.assertEqual(events[-1][1]["status"], 503)

    def test_stream_validation_errors_are_plain_400(self):
        data = {**self.form, "job-description": ""}
        response = self.client.post("/v1/resumes/analyze/stream", files=self._files(), data=data)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Job description is required")

    def test_quick_check(self):
        response = self.client.post("/v1/resumes/quick-check", files=self._files())
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["file_name"], "resume.pdf")
        self.assertEqual(body["file_quality"], "Your PDF is properly formatted and readable.")
        self.assertIn("Optimal for email", body["size_note"])
        self.assertEqual(len(body["recommendations"]), 4)
        self.assertEqual(len(body["next_steps"]), 4)

    def test_quick_check_flags_image_only_pdf(self):
        response = self.client.post("/v1/resumes/quick-check", files=self._files(make_image_only_pdf()))
        self.assertEqual(response.status_code, 200)
        self.assertIn("No selectable text", response.json()["file_quality"])

    def test_extract_text(self):
        response = self.client.post("/v1/resumes/extract-text", files=self._files())
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["pages"], 1)
        self.assertIn("Senior Backend Engineer", body["text"])
        self.assertEqual(body["characters"], len(body["text"]))

    def test_extract_text_rejects_non_pdf(self):
        response = self.client.post(
            "/v1/resumes/extract-text",
            files=self._files(b"plain text", "notes.txt", "text/plain"),
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Please upload a PDF file")

    def test_render_preview(self):
        response = self.client.post("/v1/resumes/preview", files=self._files())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], "image/png")
        self.assertEqual(response.headers["x-preview-renderer"], "pymupdf")

    def test_render_preview_falls_back_to_placeholder(self):
        broken = b"%PDF-1.4\n" + b"garbage " * 300
        response = self.client.post("/v1/resumes/preview", files=self._files(broken))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["x-preview-renderer"], "placeholder")

    def test_analytics_summary_counts_runs(self):
        self._analyze()
        self._analyze(ai_client=FakeAIClient(response="no json here"))
        summary = self.client.get("/v1/analytics/summary").json()
        self.assertTrue(summary["enabled"])
        self.assertGreaterEqual(summary["by_status"].get("success", 0), 1)
        self.assertGreaterEqual(summary["by_status"].get("fallback", 0), 1)
        latest = self.client.get("/v1/analytics/latest", params={"limit": 1}).json()
        self.assertEqual(len(latest), 1)
        self.assertEqual(latest[0]["provider"], "fake")


if __name__ == "__main__":
    unittest.main()
