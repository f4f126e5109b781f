"""API endpoint tests for transcript extraction.

Tests cover success cases, error cases, and validation for the
/api/transcript endpoint. All tests use the fake yt-dlp runner to avoid
network access and keep execution fast.
"""

from unittest.mock import patch

from transcript_api.errors import ExtractionTimeoutError, ToolExecutionError

from .conftest import MANUAL_VTT, SAMPLE_VTT


VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


class TestTranscriptEndpointSuccess:
    """Tests for successful transcript retrieval."""

    def test_auto_captions(self, client, fake_ytdlp, work_dir):
        """Test the success body shape."""
        response = client.post("/api/transcript", json={"url": VIDEO_URL})

        assert response.status_code == 200
        data = response.json()
        assert data == {
            "success": True,
            "url": VIDEO_URL,
            "transcript": "Never gonna give you up",
            "length": 23,
        }
        assert fake_ytdlp.stages == ["auto"]
        assert list(work_dir.iterdir()) == []

    def test_sample_document(self, client, fake_ytdlp):
        """Test the canonical sample transcript and its length."""
        fake_ytdlp.captions = {"auto": SAMPLE_VTT}

        response = client.post("/api/transcript", json={"url": "https://youtu.be/dQw4w9WgXcQ"})

        assert response.status_code == 200
        data = response.json()
        assert data["transcript"] == "Hello world how are you"
        assert data["length"] == len(data["transcript"])

    def test_manual_captions_fallback(self, client, fake_ytdlp):
        """Test a video with manual captions only."""
        fake_ytdlp.captions = {"manual": MANUAL_VTT}

        response = client.post("/api/transcript", json={"url": VIDEO_URL})

        assert response.status_code == 200
        assert response.json()["transcript"].startswith("We're no strangers to love")
        assert fake_ytdlp.stages == ["auto", "manual"]

    def test_url_without_scheme(self, client):
        """Test that scheme-less YouTube URLs are accepted."""
        response = client.post("/api/transcript", json={"url": "www.youtube.com/watch?v=dQw4w9WgXcQ"})

        assert response.status_code == 200


class TestTranscriptEndpointErrors:
    """Tests for error handling in transcript retrieval."""

    def test_no_captions_returns_404(self, client, fake_ytdlp, work_dir):
        """Test that a video without captions returns 404."""
        fake_ytdlp.captions = {}

        response = client.post("/api/transcript", json={"url": VIDEO_URL})

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "Transcript Not Found"
        assert "message" in data
        assert list(work_dir.iterdir()) == []

    def test_tool_failure_returns_404(self, client, fake_ytdlp):
        """Test that yt-dlp errors on both stages are reported as not found."""
        error = ToolExecutionError("yt-dlp exited with status 1", returncode=1)
        fake_ytdlp.captions = {}
        fake_ytdlp.errors = {"auto": error, "manual": error}

        response = client.post("/api/transcript", json={"url": VIDEO_URL})

        assert response.status_code == 404

    def test_timeout_returns_408(self, client, fake_ytdlp, work_dir):
        """Test that a killed yt-dlp returns 408 and leaves no temp files."""
        fake_ytdlp.errors = {"auto": ExtractionTimeoutError("did not finish within 30 seconds")}

        response = client.post("/api/transcript", json={"url": VIDEO_URL})

        assert response.status_code == 408
        assert response.json()["error"] == "Request Timeout"
        assert list(work_dir.iterdir()) == []

    def test_tool_not_installed_returns_500(self, client, fake_ytdlp):
        """Test that a missing yt-dlp binary returns a configuration error."""
        with patch("transcript_api.service.shutil.which", return_value=None):
            response = client.post("/api/transcript", json={"url": VIDEO_URL})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Server Configuration Error"
        assert "yt-dlp" in data["message"]
        assert fake_ytdlp.calls == []

    def test_unexpected_error_returns_500(self, client, fake_ytdlp, work_dir):
        """Test that unexpected failures return 500 with details."""
        fake_ytdlp.errors = {"auto": RuntimeError("disk on fire")}

        response = client.post("/api/transcript", json={"url": VIDEO_URL})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Internal Server Error"
        assert data["message"] == "Failed to extract transcript"
        assert data["details"] == "disk on fire"
        assert list(work_dir.iterdir()) == []


class TestTranscriptEndpointValidation:
    """Tests for input validation."""

    def test_missing_url_returns_400(self, client, fake_ytdlp):
        """Test that a body without url returns 400."""
        response = client.post("/api/transcript", json={})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Bad Request"
        assert data["message"] == "YouTube URL is required"
        assert fake_ytdlp.calls == []

    def test_missing_body_returns_400(self, client, fake_ytdlp):
        """Test that a request without body returns 400."""
        response = client.post("/api/transcript")

        assert response.status_code == 400
        assert response.json()["message"] == "YouTube URL is required"
        assert fake_ytdlp.calls == []

    def test_empty_url_returns_400(self, client, fake_ytdlp):
        """Test that an empty url returns 400."""
        response = client.post("/api/transcript", json={"url": ""})

        assert response.status_code == 400
        assert fake_ytdlp.calls == []

    def test_malformed_url_returns_400(self, client, fake_ytdlp):
        """Test that a non-URL returns 400 without invoking yt-dlp."""
        response = client.post("/api/transcript", json={"url": "not a url"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid URL"
        assert fake_ytdlp.calls == []

    def test_non_youtube_url_returns_400(self, client, fake_ytdlp):
        """Test that other hosts are rejected."""
        response = client.post("/api/transcript", json={"url": "https://example.com/watch?v=123"})

        assert response.status_code == 400
        assert fake_ytdlp.calls == []

    def test_non_string_url_returns_400(self, client, fake_ytdlp):
        """Test that a wrongly typed url is a validation error."""
        response = client.post("/api/transcript", json={"url": 12345})

        assert response.status_code == 400
        assert response.json()["error"] == "Validation Error"
        assert fake_ytdlp.calls == []

    def test_long_tracking_parameters_accepted(self, client, fake_ytdlp):
        """Test that a long but valid YouTube URL is not a validation error."""
        url = VIDEO_URL + "&si=" + "a" * 600 + "&pp=" + "b" * 400

        response = client.post("/api/transcript", json={"url": url})

        assert response.status_code == 200
        assert response.json()["url"] == url
        assert fake_ytdlp.stages == ["auto"]


class TestHealthAndRouting:
    """Tests for the health check and unmatched routes."""

    def test_health_endpoint(self, client):
        """Test health endpoint returns OK status."""
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["message"] == "YouTube Transcript API is running"
        assert "T" in data["timestamp"]

    def test_unknown_route_returns_404(self, client):
        """Test that unknown endpoints return the JSON not-found body."""
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {
            "error": "Not Found",
            "message": "The requested endpoint does not exist",
        }
