"""API tests for the template download endpoints (fake upstream, no network)."""
import io
import zipfile
from fastapi.testclient import TestClient
from template_service.core.errors import UpstreamUnavailable
from template_service.main import create_app
from tests.conftest import UPSTREAM_FILES, FakeArchiveClient


def _names(body: bytes) -> list:
    with zipfile.ZipFile(io.BytesIO(body)) as zf:
        return [i.filename for i in zf.infolist()]


def _contents(body: bytes) -> dict:
    with zipfile.ZipFile(io.BytesIO(body)) as zf:
        return {i.filename: zf.read(i) for i in zf.infolist()}


def _under(template: str) -> dict:
    prefix = f"{template}/"
    return {p[len(prefix):]: c for p, c in UPSTREAM_FILES.items() if p.startswith(prefix)}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_list_templates(client):
    resp = client.get("/api/templates")
    assert resp.status_code == 200
    assert resp.json() == {"templates": ["react", "angular", "express", "nestjs"]}


def test_single_template_download(client, fake_client):
    resp = client.get("/api/generate-template/react")

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/zip"
    assert resp.headers["content-disposition"] == "attachment; filename=react-template.zip"
    assert _contents(resp.content) == _under("react")
    assert fake_client.calls == 1


def test_single_template_invalid_name_makes_no_fetch(client, fake_client):
    resp = client.get("/api/generate-template/vue")

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid template"
    assert body["available"] == ["react", "angular", "express", "nestjs"]
    assert fake_client.calls == 0


def test_allow_listed_but_missing_template_is_not_found(client, fake_client):
    resp = client.get("/api/generate-template/nestjs")

    assert resp.status_code == 404
    assert resp.json()["template"] == "nestjs"
    assert fake_client.calls == 1


def test_combined_download_prefixes_every_path(client):
    resp = client.post("/api/templates", json={"templates": ["react", "express"]})

    assert resp.status_code == 200
    assert resp.headers["content-disposition"] == "attachment; filename=react-express-stack.zip"
    assert resp.headers["x-content-type-options"] == "nosniff"
    names = _names(resp.content)
    assert all(n.startswith(("react/", "express/")) for n in names)
    assert "react/package.json" in names and "express/package.json" in names
    assert len(names) == len(set(names))
    assert names[0].startswith("react/") and names[-1].startswith("express/")


def test_combined_download_single_name_matches_single_endpoint(client):
    resp = client.post("/api/templates", json={"templates": ["angular"]})
    assert resp.status_code == 200
    assert resp.headers["content-disposition"] == "attachment; filename=angular-template.zip"
    assert _contents(resp.content) == _under("angular")


def test_legacy_combined_endpoint(client):
    resp = client.post("/api/generate-combined", json={"templates": ["react", "angular"]})
    assert resp.status_code == 200
    assert set(_contents(resp.content)) == (
        {f"react/{p}" for p in _under("react")} | {f"angular/{p}" for p in _under("angular")}
    )


def test_combined_with_invalid_name_fails_before_fetch(client, fake_client):
    resp = client.post("/api/templates", json={"templates": ["react", "svelte"]})
    assert resp.status_code == 400
    assert "svelte" in resp.json()["message"]
    assert fake_client.calls == 0


def test_combined_with_missing_template_aborts_batch(client):
    resp = client.post("/api/templates", json={"templates": ["react", "nestjs"]})
    assert resp.status_code == 404
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json()["template"] == "nestjs"


def test_empty_template_list_is_rejected_before_fetch(client, fake_client):
    resp = client.post("/api/templates", json={"templates": []})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request"
    assert fake_client.calls == 0


def test_non_array_payload_is_rejected_before_fetch(client, fake_client):
    for payload in ({"templates": "react"}, {"templates": None}, {}, {"templates": [1, 2]}):
        resp = client.post("/api/templates", json=payload)
        assert resp.status_code == 400, payload
    assert fake_client.calls == 0


def test_duplicate_names_are_rejected(client, fake_client):
    resp = client.post("/api/templates", json={"templates": ["react", "react"]})
    assert resp.status_code == 400
    assert fake_client.calls == 0


def test_upstream_failure_is_reported(client, fake_client):
    fake_client.error = UpstreamUnavailable("Upstream returned HTTP 503")
    resp = client.get("/api/generate-template/react")
    assert resp.status_code == 502
    assert resp.json()["error"] == "Failed to fetch templates from GitHub"


def test_corrupt_upstream_archive_is_reported(client, fake_client):
    fake_client.data = b"<html>rate limited</html>"
    resp = client.get("/api/generate-template/react")
    assert resp.status_code == 502
    assert resp.json()["error"] == "Corrupt upstream archive"


def test_repeated_requests_are_byte_identical(client):
    first = client.post("/api/templates", json={"templates": ["react", "express"]})
    second = client.post("/api/templates", json={"templates": ["react", "express"]})
    assert first.content == second.content


def test_buffered_mode_sets_content_length(test_settings, fake_client):
    test_settings.stream_archives = False
    app = create_app(test_settings)
    app.state.template_service.client = fake_client

    resp = TestClient(app).get("/api/generate-template/express")
    assert resp.status_code == 200
    assert int(resp.headers["content-length"]) == len(resp.content)
    assert _contents(resp.content) == _under("express")


def test_rate_limit_applies_to_downloads(test_settings, upstream_zip):
    test_settings.rate_limit_max_requests = 2
    app = create_app(test_settings)
    app.state.template_service.client = FakeArchiveClient(upstream_zip)
    client = TestClient(app)

    assert client.get("/api/generate-template/react").status_code == 200
    assert client.get("/api/generate-template/react").status_code == 200
    resp = client.get("/api/generate-template/react")
    assert resp.status_code == 429
    assert resp.json()["error"] == "Too many requests, please try again later."
    # Listing is not limited.
    assert client.get("/api/templates").status_code == 200
