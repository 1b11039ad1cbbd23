"""Tests for artifactor serve."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from typer.testing import CliRunner

from artifactor.cli.main import app

runner = CliRunner()


@pytest.fixture
def uvicorn_run():
    with patch("artifactor.cli.serve.uvicorn.run") as run:
        yield run


@pytest.fixture
def api_keys(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")


def test_serve_starts_uvicorn(tmp_path: Path, uvicorn_run, api_keys) -> None:
    result = runner.invoke(app, ["serve", "--dir", str(tmp_path)])

    assert result.exit_code == 0, result.output
    (served_app,), kwargs = uvicorn_run.call_args
    assert isinstance(served_app, FastAPI)
    assert kwargs == {"host": "127.0.0.1", "port": 4000, "log_level": "info"}
    assert (tmp_path / ".artifactor.db").exists()


def test_serve_flag_overrides(tmp_path: Path, uvicorn_run, api_keys) -> None:
    (tmp_path / "artifactor.yaml").write_text("server:\n  port: 5000\n", encoding="utf-8")
    runner.invoke(app, ["serve", "--dir", str(tmp_path), "--host", "0.0.0.0", "--port", "8080"])

    kwargs = uvicorn_run.call_args.kwargs
    assert (kwargs["host"], kwargs["port"]) == ("0.0.0.0", 8080)


def test_serve_writes_log_file(tmp_path: Path, uvicorn_run, api_keys) -> None:
    (tmp_path / "artifactor.yaml").write_text(
        "logging:\n  level: debug\n  file: logs/server.log\n", encoding="utf-8"
    )
    runner.invoke(app, ["serve", "--dir", str(tmp_path)])

    assert (tmp_path / "logs" / "server.log").exists()
    assert uvicorn_run.call_args.kwargs["log_level"] == "debug"


def test_serve_missing_orchestrator_key(tmp_path: Path, uvicorn_run, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    result = runner.invoke(app, ["serve", "--dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "ANTHROPIC_API_KEY" in result.output
    uvicorn_run.assert_not_called()


def test_serve_anythingllm_skips_model_key_and_warns(
    tmp_path: Path, uvicorn_run, monkeypatch
) -> None:
    (tmp_path / "artifactor.yaml").write_text(
        "orchestrator:\n  backend: anythingllm\n", encoding="utf-8"
    )
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("ANYTHINGLLM_API_KEY", raising=False)

    result = runner.invoke(app, ["serve", "--dir", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "ANYTHINGLLM_API_KEY" in result.output
    uvicorn_run.assert_called_once()


def test_serve_invalid_config(tmp_path: Path, uvicorn_run) -> None:
    (tmp_path / "artifactor.yaml").write_text("retrieval:\n  top_k: 0\n", encoding="utf-8")
    result = runner.invoke(app, ["serve", "--dir", str(tmp_path)])
    assert result.exit_code == 1
    uvicorn_run.assert_not_called()
