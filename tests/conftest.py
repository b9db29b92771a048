"""Shared fixtures: an in-memory upstream archive and a fake GitHub client."""
import io
import zipfile
from typing import Dict, Optional
import pytest
from fastapi.testclient import TestClient
from template_service.core.config import Settings
from template_service.main import create_app

ROOT = "zero-config-templates-main"

UPSTREAM_FILES: Dict[str, bytes] = {
    "README.md": b"# zero-config-templates\n",
    "react/package.json": b'{"name": "react-template"}\n',
    "react/src/App.jsx": b"export default function App() { return null; }\n",
    "react/public/logo.png": bytes(range(256)) * 4,
    "express/package.json": b'{"name": "express-template"}\n',
    "express/index.js": b"const express = require('express');\n",
    "angular/package.json": b'{"name": "angular-template"}\n',
    "angular/src/main.ts": b"bootstrapApplication(AppComponent);\n",
}


def build_zip(files: Dict[str, bytes], root: Optional[str] = ROOT) -> bytes:
    """Build a ZIP laid out like a GitHub "download as ZIP" archive."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        written_dirs = set()
        if root:
            zf.writestr(f"{root}/", b"")
            written_dirs.add(f"{root}/")
        for path, content in files.items():
            full = f"{root}/{path}" if root else path
            parts = full.split("/")[:-1]
            for i in range(1, len(parts) + 1):
                d = "/".join(parts[:i]) + "/"
                if d not in written_dirs:
                    zf.writestr(d, b"")
                    written_dirs.add(d)
            zf.writestr(full, content)
    return buf.getvalue()


class FakeArchiveClient:
    """Stands in for GitHubArchiveClient and counts fetches."""
    def __init__(self, data: bytes = b"", error: Optional[Exception] = None):
        self.data = data
        self.error = error
        self.calls = 0

    async def fetch_archive(self) -> bytes:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.data


@pytest.fixture
def upstream_zip() -> bytes:
    return build_zip(UPSTREAM_FILES)


@pytest.fixture
def fake_client(upstream_zip) -> FakeArchiveClient:
    return FakeArchiveClient(upstream_zip)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        templates=["react", "angular", "express", "nestjs"],
        rate_limit_max_requests=1000,
        rate_limit_window_seconds=60,
    )


@pytest.fixture
def test_app(test_settings, fake_client):
    app = create_app(test_settings)
    app.state.template_service.client = fake_client
    return app


@pytest.fixture
def client(test_app) -> TestClient:
    return TestClient(test_app)
