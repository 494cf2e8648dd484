import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from aura.config import ServerConfig, parse_args
from aura.tools.dashboard import create_app
from aura.utils.env import load_env
from aura.utils.logger import configure_logging


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in (
        "AURA_HOST",
        "AURA_PORT",
        "AURA_SNAPSHOT_PATH",
        "AURA_CHECKPOINT_INTERVAL",
        "AURA_SHUTDOWN_GRACE",
        "AURA_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


def test_load_env_parses_dotenv(tmp_path: Path):
    env_file = tmp_path / ".env"
    env_file.write_text('# comment\nexport AURA_PORT=9000\nAURA_HOST="127.0.0.1"\nbroken line\n')
    assert load_env(env_file) == {"AURA_PORT": "9000", "AURA_HOST": "127.0.0.1"}
    assert load_env(tmp_path / "missing") == {}


def test_defaults_without_env(tmp_path: Path):
    config = parse_args(["--env-file", str(tmp_path / "missing")])
    assert config == ServerConfig()


def test_precedence_cli_over_env_over_dotenv(tmp_path: Path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("AURA_PORT=9000\nAURA_CHECKPOINT_INTERVAL=10\nAURA_SNAPSHOT_PATH=data/k.json\n")
    monkeypatch.setenv("AURA_CHECKPOINT_INTERVAL", "15")

    config = parse_args(["--env-file", str(env_file), "--port", "9100"])
    assert config.port == 9100
    assert config.checkpoint_interval == 15.0
    assert config.snapshot_path == Path("data/k.json")


def test_invalid_numeric_env_is_reported(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("AURA_PORT", "eighty")
    with pytest.raises(ValueError, match="AURA_PORT"):
        parse_args(["--env-file", str(tmp_path / "missing")])


def test_non_positive_interval_rejected(tmp_path: Path):
    with pytest.raises(ValueError):
        parse_args(["--env-file", str(tmp_path / "missing"), "--checkpoint-interval", "0"])


def test_dashboard_serves_last_checkpoint(tmp_path: Path):
    path = tmp_path / "knowledge.json"
    client = TestClient(create_app(path))

    assert client.get("/health").json() == {"status": "ok"}
    waiting = client.get("/api/scores").json()
    assert waiting["scores"] == {}
    assert waiting["waiting"] is True

    path.write_text(json.dumps({"a": 3}))
    body = client.get("/api/scores").json()
    assert body["scores"] == {"a": 3}
    assert "checkpointed_at" in body

    path.write_text("{broken")
    assert client.get("/api/scores").status_code == 500


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError, match="verbose"):
        configure_logging("verbose")
