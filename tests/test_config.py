"""Tests for Settings defaults and environment overrides."""
from template_service.core.config import Settings


def test_defaults(monkeypatch):
    for var in ("TEMPLATES", "UPSTREAM_ARCHIVE_URL", "COMPRESSION_LEVEL", "STREAM_ARCHIVES"):
        monkeypatch.delenv(var, raising=False)
    cfg = Settings(_env_file=None)
    assert cfg.templates == ["react", "angular", "express", "nestjs"]
    assert cfg.upstream_archive_url.endswith("/zero-config-templates/archive/refs/heads/main.zip")
    assert cfg.compression_level == 9
    assert cfg.stream_archives is True
    assert cfg.api_port == 8000


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TEMPLATES", '["vue", "svelte"]')
    monkeypatch.setenv("STREAM_ARCHIVES", "false")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "10")
    cfg = Settings(_env_file=None)
    assert cfg.templates == ["vue", "svelte"]
    assert cfg.stream_archives is False
    assert cfg.rate_limit_max_requests == 10
