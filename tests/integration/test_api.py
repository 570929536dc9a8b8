"""
Integration tests for the HTTP surface.

Jobs run inline through SyncJobAdapter and coordinators are built from the
port fakes, so no ffmpeg binary or OpenAI access is needed.
"""

import pytest
from fastapi.testclient import TestClient

from adapters.local.sync_job import SyncJobAdapter
from api import create_app
from config import Config
from fakes import EngineFactory, FakeAnalysis, FakeTranscription, make_coordinator

FORM = {"client_name": "Acme", "meeting_title": "Weekly sync", "date": "2026-10-17"}


@pytest.fixture
def cfg(monkeypatch, tmp_path):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("TEMP_DIR", str(tmp_path))
    yield Config.reload()
    monkeypatch.undo()
    Config.reload()


def _client(cfg, **coordinator_kwargs):
    def factory(progress):
        return make_coordinator(progress=progress, **coordinator_kwargs)

    return TestClient(create_app(cfg, coordinator_factory=factory, job_queue=SyncJobAdapter()))


def _upload(client, filename="meeting.mp3", data=b"ID3 fake mp3 bytes"):
    return client.post("/v1/minutes", files={"file": (filename, data, "audio/mpeg")}, data=FORM)


def test_health(cfg):
    response = _client(cfg).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "configured": True}


def test_generates_minutes(cfg):
    client = _client(cfg)

    created = _upload(client)
    assert created.status_code == 202
    job_id = created.json()["job_id"]

    body = client.get(f"/v1/minutes/{job_id}").json()
    assert body["status"] == "completed"
    assert body["stage"] == "analyzing"
    assert body["progress"] == {"converting": 1.0, "transcribing": 1.0, "analyzing": 1.0}
    topic = body["result"]["minutes"]["topics"][0]
    assert topic == {
        "title": "Budget",
        "keyPoints": ["Discussed budget"],
        "actionItems": ["Send proposal by Friday"],
    }
    assert body["result"]["meeting"]["clientName"] == "Acme"
    assert body["markdown"].startswith("# Weekly sync\n")
    assert "1. Send proposal by Friday" in body["markdown"]
    assert body["error"] is None


@pytest.mark.parametrize("filename", ["notes.txt", "recording"])
def test_rejects_unsupported_files(cfg, filename):
    response = _upload(_client(cfg), filename=filename)

    assert response.status_code == 400


def test_rejects_empty_upload(cfg):
    response = _upload(_client(cfg), data=b"")

    assert response.status_code == 400


def test_rejects_oversized_upload(cfg):
    cfg.max_upload_mb = 0

    response = _upload(_client(cfg))

    assert response.status_code == 413


def test_missing_api_key(monkeypatch, tmp_path):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("TEMP_DIR", str(tmp_path))
    cfg = Config.reload()
    try:
        response = _upload(_client(cfg))
    finally:
        monkeypatch.undo()
        Config.reload()

    assert response.status_code == 503
    assert "OPENAI_API_KEY" in response.json()["detail"]


def test_unknown_job(cfg):
    client = _client(cfg)

    assert client.get("/v1/minutes/nope").status_code == 404
    assert client.delete("/v1/minutes/nope").status_code == 404


def test_failed_job_reports_error(cfg):
    client = _client(cfg, analysis=FakeAnalysis(payload="not json"))
    job_id = _upload(client).json()["job_id"]

    body = client.get(f"/v1/minutes/{job_id}").json()

    assert body["status"] == "failed"
    assert "unreadable" in body["error"]
    assert body["result"] is None
    assert body["progress"]["analyzing"] < 1.0


def test_credential_failure_is_reported(cfg):
    client = _client(cfg, transcription=FakeTranscription(configured=False))
    job_id = _upload(client).json()["job_id"]

    body = client.get(f"/v1/minutes/{job_id}").json()

    assert body["status"] == "failed"
    assert "API key" in body["error"]


def test_cancelled_job_is_not_an_error(cfg):
    def factory(progress):
        coordinator = make_coordinator(progress=progress)
        coordinator.cancel()
        return coordinator

    client = TestClient(create_app(cfg, coordinator_factory=factory, job_queue=SyncJobAdapter()))
    job_id = _upload(client).json()["job_id"]

    body = client.get(f"/v1/minutes/{job_id}").json()

    assert body["status"] == "cancelled"
    assert body["error"] is None


def test_cancel_after_completion_keeps_result(cfg):
    client = _client(cfg)
    job_id = _upload(client).json()["job_id"]

    cancelled = client.delete(f"/v1/minutes/{job_id}")

    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "completed"
    assert client.get(f"/v1/minutes/{job_id}").json()["result"] is not None


def test_job_queue_is_shut_down_with_the_app(cfg):
    class RecordingQueue(SyncJobAdapter):
        closed = False

        def shutdown(self):
            self.closed = True

    queue = RecordingQueue()
    with TestClient(create_app(cfg, coordinator_factory=lambda progress: make_coordinator(progress=progress), job_queue=queue)):
        assert not queue.closed

    assert queue.closed


def test_engines_are_released_after_each_job(cfg):
    engines = EngineFactory()
    client = TestClient(
        create_app(
            cfg,
            coordinator_factory=lambda progress: make_coordinator(engine_factory=engines, progress=progress),
            job_queue=SyncJobAdapter(),
        )
    )

    for _ in range(3):
        _upload(client)

    assert engines.calls == 3
    assert all(engine.terminated for engine in engines.engines)


def test_oldest_finished_jobs_are_evicted(cfg):
    cfg.max_finished_jobs = 2
    queue = SyncJobAdapter()
    app = create_app(cfg, coordinator_factory=lambda progress: make_coordinator(progress=progress), job_queue=queue)
    client = TestClient(app)

    job_ids = [_upload(client).json()["job_id"] for _ in range(3)]

    assert client.get(f"/v1/minutes/{job_ids[0]}").status_code == 404
    assert queue.status(job_ids[0]) == "unknown"
    assert [client.get(f"/v1/minutes/{job_id}").status_code for job_id in job_ids[1:]] == [200, 200]
    assert len(app.state.jobs) == 2
