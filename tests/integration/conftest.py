"""Integration test fixtures for ScreenVault.

Runs a small FastAPI stand-in for the recordings server in-process and
wires a full ``AppContext`` to it through ``httpx.ASGITransport``, with
the in-memory capture backend in place of ffmpeg.
"""

import uuid

import pytest
from fastapi import FastAPI, File, UploadFile
from fastapi.responses import JSONResponse
from httpx import ASGITransport

from src.core.config import Settings
from src.core.context import create_app_context


def create_fake_server() -> FastAPI:
    """Build an in-memory recordings server with list/upload/delete."""
    app = FastAPI()
    app.state.recordings = []
    app.state.blobs = {}
    app.state.list_calls = 0
    app.state.upload_calls = 0
    app.state.reject_uploads = False

    @app.get("/api/recordings")
    async def list_recordings():
        app.state.list_calls += 1
        return app.state.recordings

    @app.post("/api/recordings", status_code=201)
    async def upload_recording(video: UploadFile = File(...)):
        app.state.upload_calls += 1
        if app.state.reject_uploads:
            return JSONResponse(status_code=500, content={"error": "Storage unavailable"})
        record = {
            "id": uuid.uuid4().hex,
            "filename": video.filename,
            "filepath": f"uploads/{video.filename}",
            "mimetype": video.content_type,
        }
        app.state.blobs[record["id"]] = await video.read()
        app.state.recordings.append(record)
        return record

    @app.delete("/api/recordings/{recording_id}")
    async def delete_recording(recording_id: str):
        before = len(app.state.recordings)
        app.state.recordings = [r for r in app.state.recordings if r["id"] != recording_id]
        if len(app.state.recordings) == before:
            return JSONResponse(status_code=404, content={"error": "Recording not found"})
        app.state.blobs.pop(recording_id, None)
        return {"message": "Recording deleted"}

    return app


@pytest.fixture
def server():
    """Fresh fake recordings server."""
    return create_fake_server()


@pytest.fixture
def backend(fake_backend):
    return fake_backend


@pytest.fixture
async def context(server, backend):
    """AppContext talking to the fake server, with ticks driven by the test."""
    settings = Settings(
        _env_file=None,
        api_base_url="http://recordings.test",
        tick_interval=3600.0,
    )
    ctx = create_app_context(
        settings, backend=backend, transport=ASGITransport(app=server)
    )
    yield ctx
    await ctx.shutdown()
