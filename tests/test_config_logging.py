from __future__ import annotations

import json
import logging
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend.core.config import Settings
from backend.core.logging import JsonFormatter


def test_defaults_from_bundled_yaml():
    settings = Settings.load(environ={})

    assert settings.webdav.file_path == "/Documents/proposals.csv"
    assert settings.menu.location_id == "610"
    assert settings.images.cache_ttl_seconds == 86400
    assert settings.http.verify_tls is False
    assert settings.images_configured is False


def test_environment_overrides_yaml(tmp_path):
    config = tmp_path / "dashboard.yaml"
    config.write_text("webdav:\n  base_url: https://yaml.example.test\n  timeout: 5\n", encoding="utf-8")

    settings = Settings.load(
        environ={
            "DASHBOARD_CONFIG": str(config),
            "NEXTCLOUD_URL": "https://env.example.test",
            "NEXTCLOUD_USERNAME": "jane",
            "GOOGLE_CUSTOM_SEARCH_API_KEY": "k",
            "GOOGLE_CUSTOM_SEARCH_ENGINE_ID": "cx",
            "API_CORS_ORIGINS": "https://a.example.test, https://b.example.test",
            "HTTP_VERIFY_TLS": "true",
        }
    )

    assert settings.webdav.base_url == "https://env.example.test"
    assert settings.webdav.timeout == 5
    assert settings.webdav.username == "jane"
    assert settings.images_configured is True
    assert settings.http.cors_origins == ["https://a.example.test", "https://b.example.test"]
    assert settings.http.verify_tls is True


def test_missing_config_file_uses_model_defaults(tmp_path):
    settings = Settings.load(path=tmp_path / "absent.yaml", environ={})

    assert settings.deck.timeout == 30.0
    assert settings.logging.level == "INFO"


def test_json_formatter_includes_context_fields():
    record = logging.LogRecord("backend.test", logging.INFO, __file__, 1, "fetched %s", ("file",), None)
    record.ctx_status = 207
    record.other = "ignored"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "fetched file"
    assert payload["level"] == "INFO"
    assert payload["status"] == 207
    assert "other" not in payload
